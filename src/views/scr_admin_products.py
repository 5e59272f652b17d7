from __future__ import annotations

from typing import List, Optional

import httpx
from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable, Input

from api.errors import ApiError
from api.models import KeyboardLayout, Product
from utils.pure import format_price, humanize_enum
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmDialogModal
from views.modal_product_form import ProductFormModal


class AdminProductsScreen(BaseScreen):
    """
    Admins search the inventory, then create, edit or delete products.
    """

    def __init__(self) -> None:
        super().__init__()
        self._products: List[Product] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Input(id="input-search", placeholder="Filter by name, brand or ID...")
            yield DataTable(id="table-admin-products")
            with Horizontal(id="hort-controls"):
                yield Button("Refresh", id="btn-refresh")
                yield Button("Delete", id="btn-delete", variant="error")
                yield Button("Edit", id="btn-edit")
                yield Button("New Product", id="btn-new", variant="success")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Name", "Brand", "Layout", "Price", "Stock")

    def sync_state(self) -> None:
        super().sync_state()
        self.load_products()

    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True, group="admin-products")
    async def load_products(self) -> None:
        if not self.app.session.is_admin:
            return
        try:
            self._products = await self.app.client.admin_list_products()
        except (ApiError, httpx.HTTPError) as e:
            self.notify(f"Failed to load products: {e}", severity="error")
            return
        self.render_table()

    @on(Input.Changed, "#input-search")
    def render_table(self) -> None:
        query = self.query_one("#input-search", Input).value.strip().lower()
        table = self.query_one(DataTable)
        table.clear()
        for p in self._products:
            if query and not (
                query in p.name.lower() or query in p.brand.lower() or query == str(p.id)
            ):
                continue
            layout = p.layout.value if isinstance(p.layout, KeyboardLayout) else p.layout
            table.add_row(
                p.id,
                p.name,
                p.brand,
                humanize_enum(layout),
                format_price(p.price),
                p.stock_quantity if p.in_stock else "Out of Stock",
                key=str(p.id),
            )

    def _selected(self) -> Optional[Product]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key = table.coordinate_to_cell_key(table.cursor_coordinate).row_key
        for p in self._products:
            if str(p.id) == row_key.value:
                return p
        return None

    @on(Button.Pressed, "#btn-new")
    @work()
    async def handle_new(self) -> None:
        if await self.app.push_screen_wait(ProductFormModal()):
            self.load_products()

    @on(Button.Pressed, "#btn-edit")
    @on(DataTable.RowSelected, "#table-admin-products")
    @work()
    async def handle_edit(self) -> None:
        product = self._selected()
        if not product:
            self.notify("Select a product first.", severity="warning")
            return
        if await self.app.push_screen_wait(ProductFormModal(product)):
            self.load_products()

    @on(Button.Pressed, "#btn-delete")
    @work()
    async def handle_delete(self) -> None:
        product = self._selected()
        if not product:
            self.notify("Select a product first.", severity="warning")
            return
        if not await self.app.push_screen_wait(
            ConfirmDialogModal(
                f'Delete "{product.name}"? This cannot be undone.', tone="error"
            )
        ):
            return
        try:
            await self.app.client.admin_delete_product(product.id)
        except (ApiError, httpx.HTTPError) as e:
            self.notify(f"Failed to delete product: {e}", severity="error")
            return
        self.notify("Product deleted.")
        self.load_products()
