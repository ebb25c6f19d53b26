from typing import Any, Dict, List

import httpx
import structlog

from dukungan.clients.base import BaseMutationSource
from dukungan.config import Settings
from dukungan.errors import RemoteUnavailable

logger = structlog.get_logger(__name__)


class MutasiClient(BaseMutationSource):
    """
    Bank mutation history provider.
    Request: POST {auth_username, auth_token}
    Response: {"status": true, "data": [{"type": "CR", "amount": "10.000", ...}, ...]}
    """

    def __init__(self, http: httpx.AsyncClient, settings: Settings):
        self.http = http
        self.url = settings.mutasi_endpoint
        self.username = settings.mutasi_auth_username
        self.token = settings.mutasi_auth_token

    @property
    def source_name(self) -> str:
        return "mutasi"

    async def fetch_mutations(self) -> List[Dict[str, Any]]:
        if not (self.url and self.username and self.token):
            logger.warning("mutasi_not_configured", has_username=bool(self.username), has_token=bool(self.token))
            raise RemoteUnavailable("Failed to fetch mutation data", detail="mutation API not configured")

        try:
            response = await self.http.post(
                self.url,
                json={"auth_username": self.username, "auth_token": self.token},
            )
        except httpx.HTTPError as e:
            logger.error("mutasi_fetch_exception", url=self.url, error=str(e))
            raise RemoteUnavailable("Failed to fetch mutation data", detail=str(e)) from e

        if response.is_error:
            logger.error("mutasi_fetch_failed", status=response.status_code, url=self.url, error=response.text)
            raise RemoteUnavailable(
                "Failed to fetch mutation data", detail=f"HTTP {response.status_code}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise RemoteUnavailable("Failed to fetch mutation data", detail="response is not JSON") from e

        if not isinstance(body, dict) or not body.get("status") or not isinstance(body.get("data"), list):
            logger.error("mutasi_unexpected_payload", url=self.url)
            raise RemoteUnavailable("Failed to fetch mutation data", detail="unexpected response payload")

        return body["data"]
