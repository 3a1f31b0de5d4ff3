"""
HTTP client for the Sanctum Check-in API
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from app.client.config import ClientConfig
from app.client.errors import NotFoundError, RemoteServiceError

logger = logging.getLogger(__name__)


class RemoteDataService:
    """
    Thin async wrapper over the REST API.

    Raises ``NotFoundError`` for 404 responses and ``RemoteServiceError`` for
    transport failures and every other error status.
    """

    def __init__(
        self,
        base_url: str,
        access_token: Optional[str] = None,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_config(cls, config: ClientConfig, access_token: Optional[str] = None, **kwargs) -> "RemoteDataService":
        return cls(config.api_base_url, access_token=access_token, timeout=config.request_timeout, **kwargs)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "RemoteDataService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def _headers(self) -> Dict[str, str]:
        if not self.access_token:
            return {}
        return {"Authorization": f"Bearer {self.access_token}"}

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise RemoteServiceError(str(e))

        if response.status_code == 404:
            raise NotFoundError(self._detail(response))
        if response.status_code >= 400:
            detail = self._detail(response)
            logger.error(f"{method} {path} returned {response.status_code}: {detail}")
            raise RemoteServiceError(detail, status_code=response.status_code)
        return response

    @staticmethod
    def _detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason_phrase
        if isinstance(body, dict) and isinstance(body.get("detail"), str):
            return body["detail"]
        return str(body)

    async def _json(self, method: str, path: str, **kwargs) -> Any:
        response = await self._request(method, path, **kwargs)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ==================== ORGANIZATIONS ====================

    async def get_organization_by_code(self, code: str) -> List[Dict[str, Any]]:
        return await self._json("GET", "/organizations/lookup", params={"code": code})

    async def get_organization(self, organization_id: int) -> Dict[str, Any]:
        return await self._json("GET", f"/organizations/{organization_id}")

    async def get_kiosk_config(self, org_code: str) -> Dict[str, Any]:
        return await self._json("GET", f"/kiosk/{org_code}")

    # ==================== IDENTITY ====================

    async def request_otp(self, phone: str) -> Dict[str, Any]:
        return await self._json("POST", "/auth/otp/request", json={"phone": phone})

    async def verify_otp(self, phone: str, code: str, organization_id: Optional[int] = None) -> Dict[str, Any]:
        payload = {"phone": phone, "code": code}
        if organization_id is not None:
            payload["organization_id"] = organization_id
        return await self._json("POST", "/auth/otp/verify", json=payload)

    async def staff_login(self, email: str, password: str) -> Dict[str, Any]:
        return await self._json("POST", "/auth/login", json={"email": email, "password": password})

    # ==================== CHECK-IN ====================

    async def resolve_qr_token(self, token: str) -> Dict[str, Any]:
        return await self._json("GET", "/check-in/resolve", params={"token": token})

    async def search_members(self, query: str) -> List[Dict[str, Any]]:
        return await self._json("GET", "/check-in/search", params={"q": query})

    async def check_in(self, member_id: int, notes: Optional[str] = None) -> Dict[str, Any]:
        return await self._json("POST", "/check-in", json={"member_id": member_id, "notes": notes})

    # ==================== MEMBER APP ====================

    async def get_me(self, organization_id: int) -> Dict[str, Any]:
        return await self._json("GET", "/me", params={"organization_id": organization_id})

    async def register_push_token(self, organization_id: int, push_token: str) -> Dict[str, Any]:
        return await self._json(
            "PUT",
            "/me/push-token",
            params={"organization_id": organization_id},
            json={"push_token": push_token},
        )

    async def clear_push_token(self, organization_id: int) -> Dict[str, Any]:
        return await self._json("DELETE", "/me/push-token", params={"organization_id": organization_id})
