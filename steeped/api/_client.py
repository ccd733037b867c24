"""
Storefront API client — the network collaborator behind every resource.

Responses come back as `ApiResponse(success, data)`, where `data` is the
decoded JSON body. Non-2xx answers raise ApiError; transport failures raise
httpx errors. No retries and no timeout policy of our own: httpx's defaults
apply.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from steeped._canonical import normalize
from steeped.config import Settings

logger = logging.getLogger(__name__)

type Document = dict[str, Any]


# ═══════════════════════════════════════════════════════════════════════════════
# Response / Errors
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ApiResponse[T]:
    success: bool
    data: T


class ApiError(Exception):
    """Non-2xx response from the storefront API."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        return f"{self.status}: {self.message}"


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or "Request failed"
    if isinstance(body, Mapping) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase or "Request failed"


# ═══════════════════════════════════════════════════════════════════════════════
# Client
# ═══════════════════════════════════════════════════════════════════════════════


class StorefrontApi:
    """
    Thin async client over the storefront's REST endpoints.

    Example:
        async with httpx.AsyncClient(base_url=settings.api_url) as http:
            api = StorefrontApi(http, token=session_token)
            response = await api.list_products({"page": 1, "category": "oolong"})
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        token: str | None = None,
        on_unauthorized: Callable[[], None] | None = None,
    ) -> None:
        self._client = client
        self.token = token
        self.on_unauthorized = on_unauthorized

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        on_unauthorized: Callable[[], None] | None = None,
    ) -> StorefrontApi:
        client = httpx.AsyncClient(base_url=settings.api_url)
        return cls(client, token=settings.api_token, on_unauthorized=on_unauthorized)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
    ) -> ApiResponse[Document]:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else None
        query = normalize(params or {})

        response = await self._client.get(path, params=query, headers=headers)
        logger.debug("GET %s -> %d", response.request.url, response.status_code)

        if response.status_code == httpx.codes.UNAUTHORIZED and self.on_unauthorized is not None:
            self.on_unauthorized()
        if response.is_error:
            raise ApiError(response.status_code, _error_message(response))

        body = response.json()
        if not isinstance(body, dict):
            body = {"success": True, "data": body}
        return ApiResponse(success=bool(body.get("success", False)), data=body)

    # ─────────────────────────────────────────────────────────────────────────
    # Endpoints
    # ─────────────────────────────────────────────────────────────────────────

    async def list_products(self, params: Mapping[str, Any] | None = None) -> ApiResponse[Document]:
        return await self.get("/products", params)

    async def get_product(self, product_id: str) -> ApiResponse[Document]:
        return await self.get(f"/products/{product_id}")

    async def best_sellers(self) -> ApiResponse[Document]:
        return await self.get("/products/bestsellers")

    async def featured(self) -> ApiResponse[Document]:
        return await self.get("/products/featured")

    async def categories(self) -> ApiResponse[Document]:
        return await self.get("/categories")

    async def search(self, term: str) -> ApiResponse[Document]:
        return await self.get("/products/search", {"q": term})


__all__ = ("Document", "ApiResponse", "ApiError", "StorefrontApi")
