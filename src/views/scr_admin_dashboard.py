import asyncio
from collections import Counter

import httpx
from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, MarkdownViewer

from api.errors import ApiError
from api.models import OrderStatus
from utils.config import LOW_STOCK_THRESHOLD
from utils.pure import format_price, generate_markdown_table, humanize_enum
from views.base_screen import BaseScreen


class AdminDashboardScreen(BaseScreen):
    """
    Store overview for admins: inventory health and order pipeline.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-dashboard", show_table_of_contents=False)
            with Horizontal(id="hort-dashboard-btns"):
                yield Button("Manage Products", id="btn-goto-products")
                yield Button("Manage Orders", id="btn-goto-orders")
                yield Button("Refresh", id="btn-refresh", variant="primary")

    def sync_state(self) -> None:
        super().sync_state()
        self.handle_reload()

    @on(Button.Pressed, "#btn-goto-products")
    def handle_goto_products(self) -> None:
        self.app.navigate("admin_products")

    @on(Button.Pressed, "#btn-goto-orders")
    def handle_goto_orders(self) -> None:
        self.app.navigate("admin_orders")

    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        if not self.app.session.is_admin:
            return
        try:
            products, orders = await asyncio.gather(
                self.app.client.admin_list_products(),
                self.app.client.admin_list_orders(),
            )
        except (ApiError, httpx.HTTPError) as e:
            self.notify(f"Failed to load dashboard: {e}", severity="error")
            return

        out_of_stock = [p for p in products if not p.in_stock]
        low_stock = [p for p in products if 0 < p.stock_quantity <= LOW_STOCK_THRESHOLD]
        by_status = Counter(
            o.status.value if isinstance(o.status, OrderStatus) else o.status
            for o in orders
        )
        # revenue counts every order the shop did not cancel
        revenue = sum(
            (o.total_amount for o in orders if o.status != OrderStatus.CANCELLED), 0
        )

        md = (
            f"### Welcome, {self.app.session.identity.username}\n\n"
            "#### Inventory\n\n"
            f"- Products: {len(products)}\n"
            f"- Out of stock: {len(out_of_stock)}\n"
            f"- Low stock (≤ {LOW_STOCK_THRESHOLD}): {len(low_stock)}\n\n"
            "#### Orders\n\n"
            f"- Total orders: {len(orders)}\n"
            f"- Revenue (excluding cancelled): {format_price(revenue)}\n\n"
        )
        if by_status:
            md += generate_markdown_table(
                ["Status", "Orders"],
                [[humanize_enum(s), n] for s, n in sorted(by_status.items())],
                ["l", "r"],
            )
        if low_stock or out_of_stock:
            md += "\n\n#### Needs restocking\n\n" + generate_markdown_table(
                ["ID", "Name", "Stock"],
                [[p.id, p.name, p.stock_quantity] for p in out_of_stock + low_stock],
                ["r", "l", "r"],
            )
        self.query_one("#md-dashboard", MarkdownViewer).document.update(md)
