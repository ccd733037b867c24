"""
API — the storefront's REST endpoints over httpx.
"""

from __future__ import annotations

from steeped.api._client import Document, ApiResponse, ApiError, StorefrontApi

__all__ = ("Document", "ApiResponse", "ApiError", "StorefrontApi")
