"""
Application configuration file (branding, goal, fee and tolerance knobs).

Stored as a small JSON document. Reading never fails: a missing or broken
file yields the defaults, and any field missing from the file falls back to
its default.
"""
import json
from pathlib import Path
from typing import Any, Dict

import structlog
from pydantic import ValidationError as PydanticValidationError

from dukungan.errors import ValidationError
from dukungan.models import AppConfig

logger = structlog.get_logger(__name__)

NUMERIC_FIELDS = ("targetGoal", "feePercent", "paymentTolerancePercent", "paymentToleranceMin")


class AppConfigStore:
    def __init__(self, path: str):
        self.path = Path(path)

    def read(self) -> AppConfig:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return AppConfig()
        except (OSError, ValueError) as e:
            logger.warning("app_config_unreadable", path=str(self.path), error=str(e))
            return AppConfig()

        if not isinstance(raw, dict):
            return AppConfig()
        try:
            return AppConfig.model_validate(raw)
        except PydanticValidationError as e:
            logger.warning("app_config_invalid", path=str(self.path), error=str(e))
            return AppConfig()

    def update(self, incoming: Dict[str, Any]) -> AppConfig:
        """Merge ``incoming`` (camelCase keys) over the current config and persist it."""
        current = self.read().model_dump(by_alias=True)
        merged = {**current, **{k: v for k, v in incoming.items() if v is not None}}

        for field in NUMERIC_FIELDS:
            try:
                merged[field] = float(merged[field])
            except (TypeError, ValueError):
                raise ValidationError(f"{field} must be a number", detail=repr(merged[field]))

        try:
            config = AppConfig.model_validate(merged)
        except PydanticValidationError as e:
            raise ValidationError("Invalid configuration", detail=str(e)) from e

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(config.model_dump(by_alias=True), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        logger.info("app_config_saved", path=str(self.path))
        return config
