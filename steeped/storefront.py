"""
Storefront — the catalog resources the shop reads through the cache.

    storefront = Storefront(api, coordinator, settings.ttl)

    page = await storefront.products.get(ListingQuery(page=2, category="oolong"))
    tea = await storefront.product.get("64f0c2")
    hits = await storefront.search("sencha")

Cached payloads are the API's JSON documents:

    products     whole listing body ({products, total, totalPages, ...})
    product      the `product` document
    bestsellers  list of product documents
    featured     list of product documents
    categories   list of category documents
    search       list of product documents
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx
from kungfu import Result, Ok, Error, LazyCoroResult

from steeped import lift as L
from steeped import cache as C
from steeped import fetch as F
from steeped.api import ApiError, ApiResponse, Document, StorefrontApi
from steeped.config import TTLSettings

MIN_SEARCH_LENGTH = 2


# ═══════════════════════════════════════════════════════════════════════════════
# Query Parameters
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ListingQuery:
    page: int = 1
    limit: int = 12
    category: str | None = None
    sort: str | None = None
    search: str | None = None


type Listing = ListingQuery | Mapping[str, Any]


# ═══════════════════════════════════════════════════════════════════════════════
# API → Result
# ═══════════════════════════════════════════════════════════════════════════════


def to_fetch_error(exc: Exception) -> F.FetchError:
    match exc:
        case ApiError(status=status, message=message):
            return F.FetchError(F.FetchErrorKind.API, message, status=status, cause=exc)
        case httpx.HTTPError():
            return F.FetchError(F.FetchErrorKind.NETWORK, str(exc) or type(exc).__name__, cause=exc)
        case _:
            return F.FetchError(F.FetchErrorKind.NETWORK, str(exc), cause=exc)


def unwrap(response: ApiResponse[Document], field: str | None = None) -> Result[Any, F.FetchError]:
    """Payload of a `{success, data}` response, or the API's complaint."""
    if not response.success:
        message = str(response.data.get("message") or "Request was not successful")
        return Error(F.FetchError(F.FetchErrorKind.API, message))
    if field is None:
        return Ok(response.data)
    if field not in response.data:
        return Error(F.FetchError(F.FetchErrorKind.API, f"Response has no '{field}'"))
    return Ok(response.data[field])


def call_api(
    request: Callable[[], Awaitable[ApiResponse[Document]]],
    field: str | None = None,
) -> LazyCoroResult[Any, F.FetchError]:
    """Lift one API call into a lazy result of its payload."""
    return L.then_sync(
        L.from_awaitable(request, on_error=to_fetch_error),
        lambda response: unwrap(response, field),
    )


def _product_id(doc: Any) -> str | None:
    if not isinstance(doc, Mapping):
        return None
    product_id = doc.get("_id", doc.get("id"))
    return str(product_id) if product_id is not None else None


def _merge_into(docs: list[Any], product_id: str, updates: Mapping[str, Any]) -> list[Any]:
    return [
        {**doc, **updates} if _product_id(doc) == product_id else doc
        for doc in docs
    ]


def _lists(docs: Any, product_id: str) -> bool:
    return isinstance(docs, list) and any(_product_id(d) == product_id for d in docs)


# ═══════════════════════════════════════════════════════════════════════════════
# Storefront
# ═══════════════════════════════════════════════════════════════════════════════


class Storefront:
    """Catalog resources bound to one API client and coordinator."""

    def __init__(
        self,
        api: StorefrontApi,
        coordinator: F.FetchCoordinator,
        ttl: TTLSettings | None = None,
    ) -> None:
        ttl = ttl or TTLSettings()
        self.api = api
        self.coordinator = coordinator

        self.products: F.Resource[Listing, Document] = (
            F.resource(C.PRODUCTS, self._fetch_products)
            .key(_listing_key)
            .ttl(delta=ttl.for_namespace(C.PRODUCTS))
            .build(coordinator)
        )
        self.product: F.Resource[str, Document] = (
            F.resource(C.PRODUCT, self._fetch_product)
            .ttl(delta=ttl.for_namespace(C.PRODUCT))
            .build(coordinator)
        )
        self.best_sellers: F.Resource[None, list[Document]] = (
            F.resource(C.BESTSELLERS, lambda _: call_api(api.best_sellers, "products"))
            .ttl(delta=ttl.for_namespace(C.BESTSELLERS))
            .build(coordinator)
        )
        self.featured: F.Resource[None, list[Document]] = (
            F.resource(C.FEATURED, lambda _: call_api(api.featured, "products"))
            .ttl(delta=ttl.for_namespace(C.FEATURED))
            .build(coordinator)
        )
        self.categories: F.Resource[None, list[Document]] = (
            F.resource(C.CATEGORIES, lambda _: call_api(api.categories, "categories"))
            .ttl(delta=ttl.for_namespace(C.CATEGORIES))
            .build(coordinator)
        )
        self.search_results: F.Resource[str, list[Document]] = (
            F.resource(C.SEARCH, self._fetch_search)
            .ttl(delta=ttl.for_namespace(C.SEARCH))
            .build(coordinator)
        )

    def _fetch_products(self, query: Listing | None) -> LazyCoroResult[Document, F.FetchError]:
        return call_api(lambda: self.api.list_products(_listing_params(query)))

    def _fetch_product(self, product_id: str | None) -> LazyCoroResult[Document, F.FetchError]:
        if not product_id:
            return L.fail(F.FetchError(F.FetchErrorKind.API, "Product id is required"))
        return call_api(lambda: self.api.get_product(product_id), "product")

    def _fetch_search(self, term: str | None) -> LazyCoroResult[list[Document], F.FetchError]:
        return call_api(lambda: self.api.search(term or ""), "products")

    # ─────────────────────────────────────────────────────────────────────────
    # Search
    # ─────────────────────────────────────────────────────────────────────────

    def search(self, term: str) -> LazyCoroResult[F.Fetched[list[Document]], F.FetchError]:
        """
        Search the catalog.

        Terms shorter than two characters answer an empty list without a
        network call and without touching the cache.
        """
        term = term.strip()
        if len(term) < MIN_SEARCH_LENGTH:
            key = self.search_results.key(term)
            return L.pure(F.Fetched([], from_cache=False, key=key))
        return self.search_results.get(term)

    def abort_search(self, term: str) -> bool:
        return self.search_results.abort(term.strip())

    # ─────────────────────────────────────────────────────────────────────────
    # Cache Management
    # ─────────────────────────────────────────────────────────────────────────

    def clear_cache(self) -> int:
        return sum(self.coordinator.invalidate(ns) for ns in C.NAMESPACES)

    async def update_product_optimistic(
        self,
        product_id: str,
        updates: Mapping[str, Any],
        confirm: LazyCoroResult[Any, F.FetchError],
    ) -> Result[Any, F.FetchError]:
        """
        Show `updates` on every cached copy of a product before the server agrees.

        Patches the single-product entry, every cached listing page that
        contains the product, and the best-seller / featured lists. If
        `confirm` fails, all of them go back to what they were.
        """
        cache = self.coordinator.cache
        patches: list[tuple[str, Callable[[Any], Any]]] = []

        product_key = self.product.key(product_id)
        if cache.peek(product_key) is not None:
            patches.append((product_key, lambda doc: {**doc, **updates}))

        for key in cache.keys(C.PRODUCTS):
            entry = cache.peek(key)
            if entry is not None and _lists(entry.payload.get("products"), product_id):
                patches.append((
                    key,
                    lambda page: {**page, "products": _merge_into(page["products"], product_id, updates)},
                ))

        for namespace in (C.BESTSELLERS, C.FEATURED):
            for key in cache.keys(namespace):
                entry = cache.peek(key)
                if entry is not None and _lists(entry.payload, product_id):
                    patches.append((key, lambda docs: _merge_into(docs, product_id, updates)))

        return await self.coordinator.optimistic(patches, confirm)


def _listing_key(namespace: str, query: Listing | None) -> str:
    return C.canonical_key(namespace, query if query is not None else ListingQuery())


def _listing_params(query: Listing | None) -> Mapping[str, Any]:
    if query is None:
        query = ListingQuery()
    if isinstance(query, Mapping):
        return query
    return {
        "page": query.page,
        "limit": query.limit,
        "category": query.category,
        "sort": query.sort,
        "search": query.search,
    }


__all__ = (
    "MIN_SEARCH_LENGTH",
    "ListingQuery",
    "Listing",
    "to_fetch_error",
    "unwrap",
    "call_api",
    "Storefront",
)
