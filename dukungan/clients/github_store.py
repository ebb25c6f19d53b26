import base64
import json
from typing import Any, Dict, Optional

import httpx
import structlog

from dukungan.clients.base import BaseTransactionStore, StoreSnapshot, WriteResult
from dukungan.config import Settings
from dukungan.errors import ConfigurationError, RemoteUnavailable, VersionConflict

logger = structlog.get_logger(__name__)

GITHUB_API = "https://api.github.com"

# GitHub answers a PUT with a stale sha with 409, and one that omits the sha
# of an existing file with 422. Other 422s (bad path, bad content) are not
# conflicts.
CONFLICT_STATUS = 409
UNPROCESSABLE_STATUS = 422


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return body.get("message") or response.text
    return response.text


def _is_conflict(response: httpx.Response, detail: str) -> bool:
    if response.status_code == CONFLICT_STATUS:
        return True
    return response.status_code == UNPROCESSABLE_STATUS and "sha" in detail.lower()


def _json_object(response: httpx.Response, failure: str) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError as e:
        logger.error("store_response_not_json", status=response.status_code, error=str(e))
        raise RemoteUnavailable(failure, detail="response is not JSON") from e
    if not isinstance(body, dict):
        logger.error("store_response_not_object", status=response.status_code, kind=type(body).__name__)
        raise RemoteUnavailable(failure, detail="unexpected response payload")
    return body


class GitHubTransactionStore(BaseTransactionStore):
    """
    Transaction store kept in a single JSON file of a GitHub repository.

    Reads and writes go through the contents API. The file's blob sha is the
    version token: a PUT must carry the sha read immediately before it, and
    GitHub rejects the write when the file has moved on.
    """

    def __init__(self, http: httpx.AsyncClient, settings: Settings):
        if not settings.github_configured:
            raise ConfigurationError("Server configuration incomplete (GitHub store)")
        self.http = http
        self.owner = settings.repo_owner
        self.repo = settings.repo_name
        self.branch = settings.branch
        self.path = settings.json_file_path
        self.headers = {
            "Authorization": f"token {settings.github_token}",
            "Accept": "application/vnd.github.v3+json",
        }

    @property
    def url(self) -> str:
        return f"{GITHUB_API}/repos/{self.owner}/{self.repo}/contents/{self.path}"

    async def read_all(self) -> StoreSnapshot:
        try:
            response = await self.http.get(
                self.url, params={"ref": self.branch}, headers=self.headers
            )
        except httpx.HTTPError as e:
            logger.error("store_read_exception", url=self.url, error=str(e))
            raise RemoteUnavailable("Failed to fetch data from GitHub", detail=str(e)) from e

        if response.status_code == 404:
            logger.info("store_file_missing", url=self.url, branch=self.branch)
            return StoreSnapshot(entries={}, sha=None)

        if response.is_error:
            detail = _error_message(response)
            logger.error("store_read_failed", status=response.status_code, url=self.url, error=detail)
            raise RemoteUnavailable("Failed to fetch data from GitHub", detail=detail)

        info = _json_object(response, "Failed to fetch data from GitHub")
        try:
            decoded = base64.b64decode(info.get("content", "")).decode("utf-8")
            entries = json.loads(decoded) if decoded.strip() else {}
        except (ValueError, UnicodeDecodeError) as e:
            logger.error("store_content_undecodable", url=self.url, error=str(e))
            raise RemoteUnavailable("Stored transaction file is not valid JSON", detail=str(e)) from e

        if not isinstance(entries, dict):
            raise RemoteUnavailable("Stored transaction file is not a JSON object")

        return StoreSnapshot(entries=entries, sha=info.get("sha"))

    async def write(
        self,
        entries: Dict[str, Dict[str, Any]],
        expected_sha: Optional[str],
        message: str,
    ) -> WriteResult:
        content = json.dumps(entries, indent=2, ensure_ascii=False).encode("utf-8")
        payload = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": self.branch,
        }
        if expected_sha:
            payload["sha"] = expected_sha

        try:
            response = await self.http.put(self.url, json=payload, headers=self.headers)
        except httpx.HTTPError as e:
            logger.error("store_write_exception", url=self.url, error=str(e))
            raise RemoteUnavailable("Failed to save data to GitHub", detail=str(e)) from e

        if response.is_error:
            detail = _error_message(response)
            if _is_conflict(response, detail):
                logger.warning("store_write_conflict", status=response.status_code, sha=expected_sha, error=detail)
                raise VersionConflict(
                    "Data changed while saving, reload and try again", detail=detail
                )
            logger.error("store_write_failed", status=response.status_code, url=self.url, error=detail)
            raise RemoteUnavailable("Failed to save data to GitHub", detail=detail)

        result = _json_object(response, "Failed to save data to GitHub")
        new_sha = (result.get("content") or {}).get("sha")
        commit_url = (result.get("commit") or {}).get("html_url")
        logger.info("store_written", message=message, sha=new_sha, commit_url=commit_url)
        return WriteResult(sha=new_sha, commit_url=commit_url)
