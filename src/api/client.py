# the one and only gateway to the shop backend
from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from api.errors import ApiError, SessionInvalidError
from api.models import (
    AdminOrder,
    AuthResponse,
    Cart,
    CartItemRequest,
    CheckoutRequest,
    Order,
    OrderPage,
    OrderStatus,
    Product,
    ProductDraft,
    ProductPage,
    Profile,
    ProfileUpdate,
)
from db.storage import SessionStorage
from utils.config import API_BASE_URL
from utils.logger import get_logger

_logger = get_logger(__name__)

SessionInvalidListener = Callable[[SessionInvalidError], Awaitable[None]]


def _query(params: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Drop unset values; booleans go over the wire as true/false."""
    if not params:
        return {}
    out: Dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            out[key] = "true" if value else "false"
        elif hasattr(value, "value"):  # enums
            out[key] = str(value.value)
        else:
            out[key] = str(value)
    return out


class BearerAuth(httpx.Auth):
    """Attach the persisted token, if there is one, to every request."""

    def __init__(self, storage: SessionStorage):
        self._storage = storage

    def auth_flow(self, request: httpx.Request):
        token = self._storage.token
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        yield request


class ApiClient:
    """
    Wraps every backend call. Returns decoded bodies, raises ApiError on error
    statuses and lets transport failures (httpx.RequestError) through untouched.

    A 401 from any endpoint outside /auth clears the persisted session, is
    broadcast to the listeners registered with add_session_invalid_listener,
    then raised as SessionInvalidError to the caller.
    """

    def __init__(
        self,
        storage: SessionStorage,
        base_url: str = API_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._storage = storage
        self._listeners: List[SessionInvalidListener] = []
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            auth=BearerAuth(storage),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def add_session_invalid_listener(self, listener: SessionInvalidListener) -> None:
        self._listeners.append(listener)

    def remove_session_invalid_listener(self, listener: SessionInvalidListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ---------------------------
    # plumbing
    # ---------------------------

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        files: Any = None,
    ) -> Any:
        query = _query(params)
        _logger.debug(f"{method} {url} {query or ''}")
        response = await self._http.request(
            method, url, params=query or None, json=json, files=files
        )

        # a 401 from /auth/* means bad credentials, not a lost session
        if response.status_code == 401 and not url.startswith("/auth/"):
            await self._storage.clear()
            error = SessionInvalidError(401, _error_message(response), _payload(response))
            _logger.warning(f"{method} {url} rejected the session, clearing it")
            for listener in list(self._listeners):
                await listener(error)
            raise error

        if response.is_error:
            message = _error_message(response)
            _logger.warning(f"{method} {url} failed: {response.status_code} {message}")
            raise ApiError(response.status_code, message, _payload(response))

        if response.status_code == 204 or not response.content:
            return None
        if "json" not in response.headers.get("content-type", "json"):
            return response.text
        return response.json()

    # ---------------------------
    # Auth
    # ---------------------------

    async def login(self, username: str, password: str) -> AuthResponse:
        data = await self._request(
            "POST", "/auth/login", json={"username": username, "password": password}
        )
        return AuthResponse.from_json(data)

    async def register(self, payload: dict) -> AuthResponse:
        data = await self._request("POST", "/auth/register", json=payload)
        return AuthResponse.from_json(data)

    # ---------------------------
    # Catalog
    # ---------------------------

    async def list_products(self, filters: Optional[Dict[str, Any]] = None) -> ProductPage:
        data = await self._request("GET", "/products", params=filters)
        return ProductPage.from_json(data)

    async def list_all_products(self) -> List[Product]:
        return (await self.list_products()).content

    async def get_product(self, product_id: int) -> Product:
        return Product.from_json(await self._request("GET", f"/products/{product_id}"))

    async def list_brands(self) -> List[str]:
        return list(await self._request("GET", "/products/brands") or [])

    async def list_layouts(self) -> List[str]:
        return list(await self._request("GET", "/products/layouts") or [])

    # ---------------------------
    # Cart
    # ---------------------------

    async def get_cart(self) -> Cart:
        return Cart.from_json(await self._request("GET", "/cart"))

    async def add_cart_item(self, product_id: int, quantity: int) -> Cart:
        body = CartItemRequest(product_id=product_id, quantity=quantity).to_json()
        return Cart.from_json(await self._request("POST", "/cart/items", json=body))

    async def update_cart_item(self, product_id: int, quantity: int) -> Cart:
        data = await self._request(
            "PUT", f"/cart/items/{product_id}", params={"quantity": quantity}
        )
        return Cart.from_json(data)

    async def remove_cart_item(self, product_id: int) -> Cart:
        return Cart.from_json(await self._request("DELETE", f"/cart/items/{product_id}"))

    async def clear_cart(self) -> Cart:
        return Cart.from_json(await self._request("DELETE", "/cart"))

    # ---------------------------
    # Orders
    # ---------------------------

    async def checkout(self, request: CheckoutRequest) -> Order:
        data = await self._request("POST", "/orders/checkout", json=request.to_json())
        return Order.from_json(data)

    async def list_orders(self, page: int = 0, size: Optional[int] = None) -> OrderPage:
        data = await self._request("GET", "/orders", params={"page": page, "size": size})
        return OrderPage.from_json(data)

    async def get_order(self, order_id: int) -> Order:
        return Order.from_json(await self._request("GET", f"/orders/{order_id}"))

    # ---------------------------
    # Admin
    # ---------------------------

    async def admin_list_orders(self) -> List[AdminOrder]:
        data = await self._request("GET", "/admin/orders")
        if isinstance(data, dict):
            data = data.get("content") or []
        return [AdminOrder.from_json(o) for o in data or []]

    async def admin_get_order(self, order_id: int) -> Order:
        return Order.from_json(await self._request("GET", f"/admin/orders/{order_id}"))

    async def admin_update_order_status(self, order_id: int, status: OrderStatus) -> Order:
        data = await self._request(
            "PUT", f"/admin/orders/{order_id}/status", params={"status": status}
        )
        return Order.from_json(data)

    async def admin_list_products(self) -> List[Product]:
        data = await self._request("GET", "/admin/products")
        if isinstance(data, dict):
            data = data.get("content") or []
        return [Product.from_json(p) for p in data or []]

    async def admin_get_product(self, product_id: int) -> Product:
        return Product.from_json(
            await self._request("GET", f"/admin/products/{product_id}")
        )

    async def admin_create_product(self, draft: ProductDraft) -> Product:
        data = await self._request("POST", "/admin/products", json=draft.to_json())
        return Product.from_json(data)

    async def admin_update_product(self, product_id: int, draft: ProductDraft) -> Product:
        data = await self._request(
            "PUT", f"/admin/products/{product_id}", json=draft.to_json()
        )
        return Product.from_json(data)

    async def admin_delete_product(self, product_id: int) -> None:
        await self._request("DELETE", f"/admin/products/{product_id}")

    async def upload_product_image(
        self, filename: str, content: bytes, content_type: str = "application/octet-stream"
    ) -> str:
        """Multipart upload; the backend answers with the stored image path."""
        data = await self._request(
            "POST",
            "/products/upload-image",
            files={"file": (filename, content, content_type)},
        )
        if isinstance(data, dict):
            data = data.get("path") or data.get("imageUrl") or ""
        return str(data).strip().strip('"')

    # ---------------------------
    # Profile
    # ---------------------------

    async def get_profile(self) -> Profile:
        return Profile.from_json(await self._request("GET", "/profile"))

    async def update_profile(self, update: ProfileUpdate) -> Profile:
        data = await self._request("PUT", "/profile", json=update.to_json())
        return Profile.from_json(data)


def _payload(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


def _error_message(response: httpx.Response) -> str:
    payload = _payload(response)
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    if isinstance(payload, str) and payload:
        return payload
    return response.reason_phrase or f"HTTP {response.status_code}"
