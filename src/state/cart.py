from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from api.client import ApiClient
from api.models import Cart, CartItem, Product
from state.session import SessionStore
from utils.logger import get_logger
from utils.validation import ensure_valid, validate_quantity

_logger = get_logger(__name__)


@dataclass(frozen=True)
class StockConflicts:
    out_of_stock: List[CartItem] = field(default_factory=list)
    over_quantity: List[CartItem] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.out_of_stock or self.over_quantity)

    def conflict_message(self) -> Optional[str]:
        if self.out_of_stock:
            return (
                "Some items in your cart are out of stock. "
                "Please remove them before checkout."
            )
        if self.over_quantity:
            return (
                "Some items exceed available stock. "
                "Please adjust quantities before checkout."
            )
        return None


def item_conflict(item: CartItem) -> Optional[str]:
    """'out_of_stock', 'over_quantity' or None for a single cart line."""
    stock = item.product.stock_quantity
    if stock == 0:
        return "out_of_stock"
    if item.quantity > stock > 0:
        return "over_quantity"
    return None


def stock_conflicts(cart: Optional[Cart]) -> StockConflicts:
    if not cart:
        return StockConflicts()
    out_of_stock, over_quantity = [], []
    for item in cart.items:
        kind = item_conflict(item)
        if kind == "out_of_stock":
            out_of_stock.append(item)
        elif kind == "over_quantity":
            over_quantity.append(item)
    return StockConflicts(out_of_stock, over_quantity)


def checkout_allowed(cart: Optional[Cart]) -> bool:
    """View level gate only; the server re-validates stock on checkout."""
    if not cart or not cart.items:
        return False
    return not stock_conflicts(cart).has_conflicts


def max_orderable(product: Product) -> int:
    return max(product.stock_quantity, 0)


class CartState:
    """
    Mirror of the server side cart. Every mutation is one round trip whose
    returned snapshot replaces `cart` wholesale; nothing is computed locally
    except the derived counters. When two responses race, the last one wins.
    """

    def __init__(self, client: ApiClient, session: SessionStore) -> None:
        self._client = client
        self._session = session
        self.cart: Optional[Cart] = None
        self.loading = False

        session.subscribe(self._on_session_changed)

    async def _on_session_changed(self, _session: SessionStore) -> None:
        await self.refresh()

    # ---------------------------
    # derived
    # ---------------------------

    @property
    def item_count(self) -> int:
        if not self.cart:
            return 0
        return sum(item.quantity for item in self.cart.items)

    @property
    def line_count(self) -> int:
        return len(self.cart.items) if self.cart else 0

    @property
    def is_empty(self) -> bool:
        return self.line_count == 0

    @property
    def conflicts(self) -> StockConflicts:
        return stock_conflicts(self.cart)

    @property
    def can_checkout(self) -> bool:
        return checkout_allowed(self.cart)

    def find_item(self, product_id: int) -> Optional[CartItem]:
        if not self.cart:
            return None
        for item in self.cart.items:
            if item.product.id == product_id:
                return item
        return None

    # ---------------------------
    # operations
    # ---------------------------

    async def refresh(self) -> Optional[Cart]:
        if not self._session.is_authenticated:
            self.cart = None
            return None

        self.loading = True
        try:
            self.cart = await self._client.get_cart()
        except Exception as e:
            # fall back to empty rather than showing a stale cart
            _logger.error(f"Error fetching cart: {e}")
            self.cart = None
        finally:
            self.loading = False
        return self.cart

    async def add(self, product_id: int, quantity: int = 1) -> Cart:
        ensure_valid(validate_quantity(quantity))
        return await self._mutate(
            "adding to cart", self._client.add_cart_item(product_id, quantity)
        )

    async def set_quantity(self, product_id: int, quantity: int) -> Cart:
        ensure_valid(validate_quantity(quantity))
        return await self._mutate(
            "updating cart item", self._client.update_cart_item(product_id, quantity)
        )

    async def remove(self, product_id: int) -> Cart:
        return await self._mutate(
            "removing from cart", self._client.remove_cart_item(product_id)
        )

    async def clear(self) -> Cart:
        return await self._mutate("clearing cart", self._client.clear_cart())

    async def _mutate(self, what: str, call) -> Cart:
        self.loading = True
        try:
            cart = await call
        except Exception as e:
            _logger.error(f"Error {what}: {e}")
            raise
        finally:
            self.loading = False
        self.cart = cart
        return cart
