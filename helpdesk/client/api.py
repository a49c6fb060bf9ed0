"""
Helpdesk HTTP Client
====================

Thin async wrapper over the REST API.

Error mapping:
- 401 on any call except login clears the session store and raises
  UnauthenticatedException
- Transport failures and 5xx answers raise ExternalServiceException;
  GET requests are retried with exponential backoff first
- Other 4xx answers raise the matching application exception
"""

import asyncio
from typing import Any, Dict, List, Optional

import httpx

from helpdesk.config import settings
from helpdesk.core import (
    ApplicationException,
    ConflictException,
    ExternalServiceException,
    ForbiddenException,
    ResourceNotFoundException,
    UnauthenticatedException,
    ValidationException,
)
from helpdesk.client.session import SessionStore
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

SERVICE_NAME = "Helpdesk API"


def _detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("detail"):
        detail = body["detail"]
        return detail if isinstance(detail, str) else str(detail)
    return response.reason_phrase


class HelpdeskClient:
    """
    Async client for the helpdesk API.

    Usage:
        async with HelpdeskClient() as client:
            await client.login("agent@example.com", "secret")
            tickets = await client.list_tickets(status="Open")
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        store: Optional[SessionStore] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_retries: int = 3,
        retry_delay: float = 0.5
    ):
        self.store = store or SessionStore()
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self._http = httpx.AsyncClient(
            base_url=(base_url or settings.api_base_url).rstrip("/"),
            timeout=timeout or settings.api_timeout_seconds,
            transport=transport
        )

    async def __aenter__(self) -> "HelpdeskClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        """Close HTTP client."""
        await self._http.aclose()

    # ========== Transport ==========

    def _headers(self) -> Dict[str, str]:
        if self.store.token:
            return {"Authorization": f"Bearer {self.store.token}"}
        return {}

    async def _request(self, method: str, path: str, login: bool = False, **kwargs) -> httpx.Response:
        attempts = self.max_retries if method == "GET" else 1
        for attempt in range(attempts):
            try:
                response = await self._http.request(method, path, headers=self._headers(), **kwargs)
            except httpx.TransportError as e:
                logger.warning(
                    "Helpdesk API request failed",
                    extra={"method": method, "path": path, "error": str(e), "attempt": attempt + 1}
                )
                if attempt == attempts - 1:
                    raise ExternalServiceException(SERVICE_NAME, str(e), {"path": path})
            else:
                if response.status_code < 500 or attempt == attempts - 1:
                    self._raise_for_status(response, method, path, login)
                    return response
                logger.warning(
                    "Helpdesk API returned server error",
                    extra={"method": method, "path": path, "status_code": response.status_code, "attempt": attempt + 1}
                )
            await asyncio.sleep(self.retry_delay * 2 ** attempt)
        raise ExternalServiceException(SERVICE_NAME, "request failed", {"path": path})

    def _raise_for_status(self, response: httpx.Response, method: str, path: str, login: bool) -> None:
        code = response.status_code
        if code < 400:
            return
        detail = _detail(response)
        if code == 401:
            if not login:
                self.store.clear()
            raise UnauthenticatedException(detail)
        if code == 403:
            role = (self.store.user or {}).get("role")
            raise ForbiddenException(f"{method} {path}", role, {"detail": detail})
        if code == 404:
            raise ResourceNotFoundException("Resource", path, {"detail": detail})
        if code == 409:
            raise ConflictException(detail)
        if code == 422:
            raise ValidationException(detail)
        if code >= 500:
            raise ExternalServiceException(SERVICE_NAME, detail, {"path": path, "status_code": code})
        raise ApplicationException(detail, {"path": path, "status_code": code})

    async def _get(self, path: str, **params) -> Any:
        params = {k: v for k, v in params.items() if v is not None}
        return (await self._request("GET", path, params=params)).json()

    async def _send(self, method: str, path: str, payload: Optional[dict] = None) -> Any:
        response = await self._request(method, path, json=payload)
        return response.json() if response.content else None

    # ========== Auth ==========

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """Sign in and remember the token. Bad credentials raise UnauthenticatedException."""
        response = await self._request("POST", "/auth/login", login=True, json={"email": email, "password": password})
        data = response.json()
        self.store.save(data["token"], data["user"])
        return data

    async def register(self, email: str, password: str, name: Optional[str] = None) -> Dict[str, Any]:
        response = await self._request(
            "POST", "/auth/register", login=True,
            json={"email": email, "password": password, "name": name}
        )
        data = response.json()
        self.store.save(data["token"], data["user"])
        return data

    def logout(self) -> None:
        self.store.clear()

    async def change_password(self, current_password: str, new_password: str) -> Any:
        return await self._send(
            "POST", "/auth/change-password",
            {"current_password": current_password, "new_password": new_password}
        )

    async def reset_password(self, email: str, token: str, new_password: str) -> Any:
        return await self._send(
            "POST", "/auth/reset-password",
            {"email": email, "token": token, "new_password": new_password}
        )

    # ========== Tickets ==========

    async def list_tickets(
        self,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        assigned_to_me: bool = False,
        limit: int = 100,
        offset: int = 0
    ) -> Dict[str, Any]:
        return await self._get(
            "/tickets", status=status, priority=priority,
            assigned_to_me=assigned_to_me or None, limit=limit, offset=offset
        )

    async def get_ticket(self, ticket_id: str) -> Dict[str, Any]:
        return await self._get(f"/tickets/{ticket_id}")

    async def create_ticket(
        self,
        subject: str,
        description: str,
        priority: str = "Medium",
        category: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self._send("POST", "/tickets", {
            "subject": subject, "description": description, "priority": priority, "category": category
        })

    async def update_status(self, ticket_id: str, status: str) -> Dict[str, Any]:
        return await self._send("PATCH", f"/tickets/{ticket_id}/status", {"status": status})

    async def assign_ticket(self, ticket_id: str, agent_id: Optional[str]) -> Dict[str, Any]:
        return await self._send("PATCH", f"/tickets/{ticket_id}/assign", {"assigned_agent_id": agent_id})

    async def submit_feedback(self, ticket_id: str, rating: int, feedback: Optional[str] = None) -> Dict[str, Any]:
        return await self._send(
            "PATCH", f"/tickets/{ticket_id}/feedback",
            {"happiness_rating": rating, "customer_feedback": feedback}
        )

    async def log_time(self, ticket_id: str, minutes: float) -> Dict[str, Any]:
        return await self._send("POST", f"/tickets/{ticket_id}/time", {"minutes": minutes})

    async def get_sla(self, ticket_id: str) -> Dict[str, Any]:
        return await self._get(f"/tickets/{ticket_id}/sla")

    async def list_replies(self, ticket_id: str) -> List[Dict[str, Any]]:
        return await self._get(f"/tickets/{ticket_id}/replies")

    async def post_reply(self, ticket_id: str, message: str, is_internal: bool = False) -> Dict[str, Any]:
        return await self._send(
            "POST", f"/tickets/{ticket_id}/replies", {"message": message, "is_internal": is_internal}
        )

    async def list_history(self, ticket_id: str) -> List[Dict[str, Any]]:
        return await self._get(f"/tickets/{ticket_id}/history")

    async def get_insights(self, ticket_id: str) -> Dict[str, Any]:
        return await self._get(f"/tickets/{ticket_id}/insights")

    # ========== Attachments ==========

    async def list_attachments(self, ticket_id: str) -> List[Dict[str, Any]]:
        return await self._get(f"/attachments/ticket/{ticket_id}")

    async def upload_attachment(
        self,
        ticket_id: str,
        filename: str,
        content: bytes,
        content_type: str = "application/octet-stream"
    ) -> Dict[str, Any]:
        response = await self._request(
            "POST", f"/attachments/{ticket_id}", files={"file": (filename, content, content_type)}
        )
        return response.json()

    async def download_attachment(self, filename: str) -> bytes:
        return (await self._request("GET", f"/attachments/download/{filename}")).content

    def download_url(self, filename: str) -> str:
        return f"{self._http.base_url}/attachments/download/{filename}"

    # ========== Users ==========

    async def list_users(self, staff_only: bool = False) -> List[Dict[str, Any]]:
        data = await self._get("/users", staff_only=staff_only or None)
        return data["users"] if isinstance(data, dict) else data

    async def get_me(self) -> Dict[str, Any]:
        return await self._get("/users/me")

    async def update_me(self, **fields) -> Dict[str, Any]:
        return await self._send("PATCH", "/users/me", fields)

    async def create_user(self, **fields) -> Dict[str, Any]:
        return await self._send("POST", "/users", fields)

    async def update_user(self, user_id: str, **fields) -> Dict[str, Any]:
        return await self._send("PATCH", f"/users/{user_id}", fields)

    async def toggle_user_status(self, user_id: str) -> Dict[str, Any]:
        return await self._send("PATCH", f"/users/{user_id}/status")

    async def delete_user(self, user_id: str) -> None:
        await self._request("DELETE", f"/users/{user_id}")

    async def issue_password_reset(self, user_id: str) -> Dict[str, Any]:
        return await self._send("POST", f"/users/{user_id}/password-reset")

    # ========== Knowledge base ==========

    async def list_articles(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self._get("/kb", category=category)

    async def list_categories(self) -> List[Dict[str, Any]]:
        return await self._get("/kb/categories")

    async def search_articles(self, keyword: str) -> List[Dict[str, Any]]:
        return await self._get("/kb/search", q=keyword)

    async def create_article(self, **fields) -> Dict[str, Any]:
        return await self._send("POST", "/kb", fields)

    # ========== Notifications & reports ==========

    async def list_notifications(self) -> Dict[str, Any]:
        return await self._get("/notifications")

    async def mark_notification_read(self, notification_id: str) -> Dict[str, Any]:
        return await self._send("PATCH", f"/notifications/{notification_id}/read")

    async def analytics_summary(self, range_value: str = "monthly") -> Dict[str, Any]:
        return await self._get("/reports/summary", range=range_value)

    async def health(self) -> Dict[str, Any]:
        return await self._get("/health")
