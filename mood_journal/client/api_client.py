import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from mood_journal.config import get_settings

logger = logging.getLogger("client.api")


class ApiError(Exception):
    """Non-2xx answer (or transport failure) from the mood journal API."""

    def __init__(self, status_code: Optional[int], message: str, body: Optional[Dict[str, Any]] = None):
        super().__init__(f"{status_code}: {message}" if status_code else message)
        self.status_code = status_code
        self.message = message
        self.body = body or {}


def _error_body(resp: httpx.Response) -> Dict[str, Any]:
    try:
        data = resp.json()
    except ValueError:
        return {"error": resp.text or resp.reason_phrase}
    return data if isinstance(data, dict) else {"error": str(data)}


class MoodJournalClient:
    """Async client for the /api endpoints, shared by the web board and the extension."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or get_settings().api_base_url).rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=self.base_url, transport=transport)

    async def __aenter__(self) -> "MoodJournalClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise ApiError(None, str(e)) from e
        if resp.is_error:
            body = _error_body(resp)
            logger.warning("%s %s → %s %s", method, path, resp.status_code, body.get("error"))
            raise ApiError(resp.status_code, str(body.get("error") or resp.reason_phrase), body)
        return resp

    # --- Tasks ---------------------------------------------------------------

    async def list_tasks(self) -> List[Dict[str, Any]]:
        resp = await self._request("GET", "/api/tasks")
        return resp.json()

    async def create_task(
        self,
        text: str,
        *,
        done: bool = False,
        created_at: Optional[datetime] = None,
        source: str = "web",
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"text": text, "done": done, "source": source}
        if created_at is not None:
            payload["createdAt"] = created_at.isoformat()
        resp = await self._request("POST", "/api/tasks", json=payload)
        return resp.json()

    async def update_task(
        self, task_id: int, *, text: Optional[str] = None, done: Optional[bool] = None
    ) -> Optional[Dict[str, Any]]:
        payload: Dict[str, Any] = {}
        if text is not None:
            payload["text"] = text
        if done is not None:
            payload["done"] = done
        resp = await self._request("PATCH", f"/api/tasks/{task_id}", json=payload)
        return resp.json() if resp.content else None

    async def delete_task(self, task_id: int) -> None:
        await self._request("DELETE", f"/api/tasks/{task_id}")

    async def weekly(self) -> List[Dict[str, Any]]:
        resp = await self._request("GET", "/api/tasks/weekly")
        return resp.json()

    # --- Journal -------------------------------------------------------------

    async def save_journal(self, date_key: str, mood: Optional[int] = None, note: Optional[str] = None) -> Dict[str, Any]:
        resp = await self._request("POST", "/api/journal", json={"dateKey": date_key, "mood": mood, "note": note})
        return resp.json()

    async def get_journal(self, date_key: str) -> Optional[Dict[str, Any]]:
        try:
            resp = await self._request("GET", f"/api/journal/{date_key}")
        except ApiError as e:
            if e.status_code == 404:
                return None
            raise
        return resp.json()

    # --- Chat ----------------------------------------------------------------

    async def chat(self, messages: List[Dict[str, str]]) -> str:
        resp = await self._request("POST", "/api/chat", json={"messages": messages})
        return resp.json().get("reply") or ""
