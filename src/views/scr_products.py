from decimal import Decimal
from typing import Optional

import httpx
from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.validation import Number
from textual.widgets import Button, Checkbox, DataTable, Input, Label, Select

from api.errors import ApiError
from api.models import KeyboardLayout
from state.catalog import CatalogState
from utils.pure import format_price, humanize_enum
from views.base_screen import BaseScreen
from views.modal_prod_detail import ProdDetailModal


def _selected(select: Select) -> Optional[str]:
    # blank selection is a sentinel object, not a string
    return select.value if isinstance(select.value, str) else None


class ProductsScreen(BaseScreen):
    """
    Catalog browsing. The filter panel edits a draft; nothing is queried
    until Apply commits it.
    """

    BINDINGS = [
        Binding("ctrl+r", "apply_filters", "Apply Filters", show=True),
    ]

    def __init__(self):
        super().__init__()
        self.catalog: Optional[CatalogState] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-catalog"):
            with Vertical(id="div-filters"):
                yield Label("Filters", classes="section-title")
                yield Label("Layout")
                yield Select([], prompt="Any layout", id="select-layout")
                yield Label("Brand")
                yield Select([], prompt="Any brand", id="select-brand")
                yield Label("Switch Type")
                yield Input(placeholder="e.g. Gateron Yellow", id="input-switch")
                yield Label("Price Range ($)")
                with Horizontal(id="div-price"):
                    yield Input(
                        placeholder="Min",
                        id="input-min-price",
                        type="number",
                        validators=[Number(minimum=0)],
                    )
                    yield Input(
                        placeholder="Max",
                        id="input-max-price",
                        type="number",
                        validators=[Number(minimum=0)],
                    )
                yield Checkbox("RGB Support", id="chk-rgb")
                yield Checkbox("Wireless Support", id="chk-wireless")
                with Horizontal(id="div-filter-btns"):
                    yield Button("Clear", id="btn-clear-filters")
                    yield Button("Apply", id="btn-apply-filters", variant="primary")
            with Vertical(id="div-products"):
                yield Label("", id="label-catalog-title")
                yield DataTable(id="table-products")
                with Horizontal(id="hort-table-control"):
                    yield Button("<", id="btn-prev")
                    yield Input("1", id="input-page", type="integer")
                    yield Label(" / 1", id="label-total-page-cnt")
                    yield Button(">", id="btn-next")

    def on_mount(self):
        self.catalog = CatalogState(self.app.client)

        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Name", "Brand", "Layout", "Switches", "Price", "Stock")

        self.load_facets()
        self.load_products()

    def sync_state(self) -> None:
        super().sync_state()
        title = (
            "Product Inventory Management"
            if self.app.session.is_admin
            else "Mechanical Keyboards"
        )
        self.query_one("#label-catalog-title", Label).update(title)

    # ---------------------------
    # draft edits
    # ---------------------------

    @on(Select.Changed, "#select-layout")
    def handle_layout(self, event: Select.Changed) -> None:
        self.catalog.edit(layout=_selected(event.select))

    @on(Select.Changed, "#select-brand")
    def handle_brand(self, event: Select.Changed) -> None:
        self.catalog.edit(brand=_selected(event.select))

    @on(Input.Changed, "#input-switch")
    def handle_switch(self, event: Input.Changed) -> None:
        self.catalog.edit(switch_type=event.value.strip())

    @on(Checkbox.Changed, "#chk-rgb")
    def handle_rgb(self, event: Checkbox.Changed) -> None:
        self.catalog.edit(rgb_support=event.value)

    @on(Checkbox.Changed, "#chk-wireless")
    def handle_wireless(self, event: Checkbox.Changed) -> None:
        self.catalog.edit(wireless_support=event.value)

    @on(Input.Changed, "#input-min-price")
    def handle_min_price(self, event: Input.Changed) -> None:
        # only user edits; programmatic syncs below come back here unfocused
        if self.focused != event.input:
            return
        if not event.value.strip():
            self.catalog.edit(min_price=None)
            return
        if event.input.is_valid:
            self.catalog.set_min_price(Decimal(event.value))
            self._sync_price_inputs()

    @on(Input.Changed, "#input-max-price")
    def handle_max_price(self, event: Input.Changed) -> None:
        if self.focused != event.input:
            return
        if not event.value.strip():
            self.catalog.edit(max_price=None)
            return
        if event.input.is_valid:
            self.catalog.set_max_price(Decimal(event.value))
            self._sync_price_inputs()

    def _sync_price_inputs(self) -> None:
        draft = self.catalog.draft
        for selector, value in (
            ("#input-min-price", draft.min_price),
            ("#input-max-price", draft.max_price),
        ):
            widget = self.query_one(selector, Input)
            if widget != self.focused:
                text = "" if value is None else str(value)
                if widget.value != text:
                    widget.value = text

    # ---------------------------
    # commits
    # ---------------------------

    @on(Button.Pressed, "#btn-apply-filters")
    def action_apply_filters(self) -> None:
        self.catalog.apply()
        self.load_products()

    @on(Button.Pressed, "#btn-clear-filters")
    def handle_clear_filters(self) -> None:
        self.catalog.clear()
        self.query_one("#select-layout", Select).clear()
        self.query_one("#select-brand", Select).clear()
        for selector in ("#input-switch", "#input-min-price", "#input-max-price"):
            self.query_one(selector, Input).value = ""
        self.query_one("#chk-rgb", Checkbox).value = False
        self.query_one("#chk-wireless", Checkbox).value = False
        self.load_products()

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        if self.catalog.current_page > 1:
            self.catalog.change_page(self.catalog.current_page - 1)
            self.load_products()

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        if self.catalog.current_page < self.catalog.page_count:
            self.catalog.change_page(self.catalog.current_page + 1)
            self.load_products()

    @on(Input.Submitted, "#input-page")
    def handle_page_input(self, event: Input.Submitted) -> None:
        if not event.input.is_valid:
            self.notify(
                f"Page must be between 1 and {self.catalog.page_count}.", severity="error"
            )
            return
        page = int(event.value)
        if page != self.catalog.current_page:
            self.catalog.change_page(page)
            self.load_products()

    # ---------------------------
    # loading
    # ---------------------------

    @work(exclusive=True, group="facets")
    async def load_facets(self) -> None:
        try:
            await self.catalog.load_facets()
        except (ApiError, httpx.HTTPError) as e:
            self.notify(f"Failed to load filter options: {e}", severity="warning")
            return
        self.query_one("#select-brand", Select).set_options(
            [(brand, brand) for brand in self.catalog.brands]
        )
        layouts = self.catalog.layouts or [layout.value for layout in KeyboardLayout]
        self.query_one("#select-layout", Select).set_options(
            [(humanize_enum(layout), layout) for layout in layouts]
        )

    @work(exclusive=True, group="catalog")
    async def load_products(self) -> None:
        try:
            page = await self.catalog.load()
        except (ApiError, httpx.HTTPError) as e:
            self.notify(f"Failed to load products: {e}", severity="error")
            return

        table = self.query_one(DataTable)
        table.clear()
        for p in page.content:
            layout = p.layout.value if isinstance(p.layout, KeyboardLayout) else p.layout
            table.add_row(
                p.id,
                p.name,
                p.brand,
                humanize_enum(layout),
                p.switch_type or "-",
                format_price(p.price),
                p.stock_quantity if p.in_stock else "Out of Stock",
                key=str(p.id),
            )

        page_input = self.query_one("#input-page", Input)
        page_input.validators = [Number(minimum=1, maximum=self.catalog.page_count)]
        page_input.value = str(self.catalog.current_page)
        self.query_one("#label-total-page-cnt", Label).update(
            f" / {self.catalog.page_count}"
        )
        self.query_one("#btn-prev", Button).disabled = self.catalog.current_page <= 1
        self.query_one("#btn-next", Button).disabled = (
            self.catalog.current_page >= self.catalog.page_count
        )

    @on(DataTable.RowSelected, "#table-products")
    @work()
    async def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        product_id = int(event.row_key.value)
        if await self.app.push_screen_wait(ProdDetailModal(product_id)):
            self.load_products()
