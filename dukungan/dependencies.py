"""
Request-scoped accessors for the collaborators built in the app lifespan.
Tests replace them through ``app.dependency_overrides``.
"""
from fastapi import Request

from dukungan.clients.base import BaseMutationSource, BaseTransactionStore
from dukungan.clients.telegram import TelegramNotifier
from dukungan.config import Settings
from dukungan.errors import ConfigurationError
from dukungan.services.app_config import AppConfigStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> BaseTransactionStore:
    store = request.app.state.store
    if store is None:
        raise ConfigurationError("Server configuration incomplete", detail="transaction store not configured")
    return store


def get_mutation_source(request: Request) -> BaseMutationSource:
    return request.app.state.mutation_source


def get_notifier(request: Request) -> TelegramNotifier:
    return request.app.state.notifier


def get_config_store(request: Request) -> AppConfigStore:
    return request.app.state.config_store
