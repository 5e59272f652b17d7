from __future__ import annotations

from dataclasses import dataclass, fields, replace
from decimal import Decimal
from math import ceil
from typing import Dict, List, Optional, Union

from api.client import ApiClient
from api.models import ProductPage
from utils.config import DEFAULT_PAGE_SIZE, PRICE_SLIDER_MAX

Price = Union[int, float, Decimal]

# python field name -> query parameter
_QUERY_NAMES = {
    "layout": "layout",
    "min_price": "minPrice",
    "max_price": "maxPrice",
    "brand": "brand",
    "switch_type": "switchType",
    "rgb_support": "rgbSupport",
    "wireless_support": "wirelessSupport",
    "page": "page",
    "size": "size",
}


@dataclass(frozen=True)
class FilterState:
    """
    One immutable filter snapshot. Unset fields are None and are left out
    of the query entirely.
    """

    layout: Optional[str] = None
    min_price: Optional[Price] = None
    max_price: Optional[Price] = None
    brand: Optional[str] = None
    switch_type: Optional[str] = None
    rgb_support: Optional[bool] = None
    wireless_support: Optional[bool] = None
    page: int = 0
    size: int = DEFAULT_PAGE_SIZE

    def to_query(self) -> Dict[str, object]:
        return {
            _QUERY_NAMES[f.name]: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    @property
    def has_filters(self) -> bool:
        # page/size never count, neither do blank strings or unticked boxes
        for f in fields(self):
            if f.name in ("page", "size"):
                continue
            value = getattr(self, f.name)
            if value is not None and value != "" and value is not False:
                return True
        return False


class CatalogState:
    """
    Pending-change buffer over the product listing query.

    `draft` is what the user is editing, `active` is the last committed
    snapshot and is the only thing `load` ever queries with. `apply` is the
    commit: draft becomes active with the page reset to the first one.
    """

    def __init__(self, client: ApiClient, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self._client = client
        self._page_size = page_size
        self.draft = FilterState(size=page_size)
        self.active = FilterState(size=page_size)
        self.result: Optional[ProductPage] = None
        self.brands: List[str] = []
        self.layouts: List[str] = []

    # ---------------------------
    # draft edits, never hit the network
    # ---------------------------

    def edit(self, **changes) -> FilterState:
        for key in ("rgb_support", "wireless_support"):
            # an unticked feature box means "don't care", not "must not have"
            if key in changes and not changes[key]:
                changes[key] = None
        for key in ("layout", "brand", "switch_type"):
            if key in changes and changes[key] == "":
                changes[key] = None
        self.draft = replace(self.draft, **changes)
        return self.draft

    def _bounds(self):
        lo = self.draft.min_price if self.draft.min_price is not None else 0
        hi = self.draft.max_price if self.draft.max_price is not None else PRICE_SLIDER_MAX
        return lo, hi

    def set_min_price(self, value: Price) -> FilterState:
        """Raising min above max drags max along."""
        _, hi = self._bounds()
        value = value or 0
        if value > hi:
            hi = value
        return self.edit(min_price=value, max_price=hi)

    def set_max_price(self, value: Price) -> FilterState:
        """Lowering max below min drags min along."""
        lo, _ = self._bounds()
        value = value or 0
        if value < lo:
            lo = value
        return self.edit(min_price=lo, max_price=value)

    def set_price_range(self, low: Price, high: Price) -> FilterState:
        """Both handles of the slider at once; low never passes high."""
        if low > high:
            low = high
        return self.edit(min_price=low, max_price=high)

    # ---------------------------
    # commits
    # ---------------------------

    def apply(self) -> FilterState:
        self.active = replace(self.draft, page=0)
        return self.active

    def change_page(self, page_number: int) -> FilterState:
        """`page_number` is 1-based as shown to the user."""
        self.active = replace(self.active, page=max(page_number, 1) - 1)
        return self.active

    def clear(self) -> FilterState:
        self.draft = FilterState(size=self._page_size)
        self.active = FilterState(size=self._page_size)
        return self.active

    # ---------------------------
    # queries
    # ---------------------------

    @property
    def current_page(self) -> int:
        return self.active.page + 1

    @property
    def page_count(self) -> int:
        if not self.result:
            return 1
        if self.result.total_pages:
            return max(self.result.total_pages, 1)
        return max(ceil(self.result.total_elements / self.active.size), 1)

    async def load(self) -> ProductPage:
        snapshot = self.active
        page = await self._client.list_products(snapshot.to_query())
        # a later commit may have superseded this query meanwhile
        if snapshot == self.active:
            self.result = page
        return page

    async def load_facets(self) -> None:
        self.brands = await self._client.list_brands()
        self.layouts = await self._client.list_layouts()
