"""Python client for the chatbot HTTP API.

Each ChatbotClient carries its own base URL and bearer token; nothing is
configured globally, so several clients (users) can coexist in one process.
"""
import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class ApiClientError(Exception):
    """Non-2xx response from the chatbot API."""

    def __init__(self, status_code: int, message: str, body: Optional[Dict[str, Any]] = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.body = body or {}


class ChatbotClient:
    """
    Thin wrapper over the chatbot API.

    login() and register() keep the returned token; a 401 from any call
    drops it, so the caller has to log in again.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._http = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def __enter__(self) -> "ChatbotClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    @property
    def authenticated(self) -> bool:
        return self.token is not None

    def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        data = self._request(
            "POST",
            "/api/auth/register",
            json={"username": username, "email": email, "password": password},
        )
        self.token = data["token"]
        return data["user"]

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self._request("POST", "/api/auth/login", json={"email": email, "password": password})
        self.token = data["token"]
        return data["user"]

    def logout(self) -> None:
        self.token = None

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/api/auth/me")["user"]

    def send_text(self, prompt: str) -> Dict[str, Any]:
        return self._request("POST", "/api/chat/text", json={"prompt": prompt})

    def send_image(self, prompt: str) -> Dict[str, Any]:
        return self._request("POST", "/api/chat/image", json={"prompt": prompt})

    def history(self, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        return self._request("GET", "/api/chat/history", params={"page": page, "limit": limit})

    def delete_chat(self, chat_id: int) -> str:
        return self._request("DELETE", f"/api/chat/{chat_id}")["message"]

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        response = self._http.request(method, path, headers=headers, **kwargs)

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code == 401:
            logger.warning("Token rejected by %s, logging out", self.base_url)
            self.token = None

        if response.is_error:
            message = body.get("message") if isinstance(body, dict) else None
            raise ApiClientError(response.status_code, message or response.reason_phrase, body)

        return body
