from typing import List, Optional

import httpx
from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label, MarkdownViewer

from api.errors import ApiError
from api.models import Order, OrderStatus
from utils.config import ORDERS_PAGE_SIZE
from utils.pure import format_price, generate_markdown_table, humanize_enum
from utils.validation import PAYMENT_METHODS
from views.base_screen import BaseScreen


def status_text(status) -> str:
    return humanize_enum(status.value if isinstance(status, OrderStatus) else status)


def order_markdown(order: Optional[Order]) -> str:
    if not order:
        return "### Select an order to view its details."

    when = order.created_at.strftime("%Y-%m-%d %H:%M") if order.created_at else "-"
    payment = PAYMENT_METHODS.get(order.payment_method, order.payment_method or "-")
    header = (
        f"### Order #{order.id}\n"
        f"Status: **{status_text(order.status)}**  \n"
        f"Placed: {when}  \n"
        f"Ship To: {order.shipping_address or '-'}  \n"
        f"Bill To: {order.billing_address or '-'}  \n"
        f"Payment: {payment}\n\n"
    )
    rows = [
        [
            item.product.name,
            item.quantity,
            format_price(item.unit_price),
            format_price(item.line_total),
        ]
        for item in order.items
    ]
    table = generate_markdown_table(
        ["Product", "Qty", "Unit Price", "Line Total"], rows, ["l", "r", "r", "r"]
    )
    footer = f"\n\n**Grand Total:** {format_price(order.total_amount)}"
    return header + table + footer


class OrdersScreen(BaseScreen):
    """
    Customers browse their past orders with pagination and view details.

    Layout:
    - Markdown detail view at the top, showing the highlighted order.
    - Orders table below, newest first, with Prev/Next.
    """

    page_idx = reactive(1)
    page_cnt = reactive(1)

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("<", id="btn-prev")
            yield Input("1", id="input-page", type="integer")
            yield Label(" / 1", id="label-total-page-cnt")
            yield Button(">", id="btn-next")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Date", "Status", "Items", "Total")

    def sync_state(self) -> None:
        super().sync_state()
        self._load_orders(self.page_idx)

    @on(Button.Pressed, "#btn-refresh")
    def handle_refresh(self):
        self.page_idx = 1
        self._load_orders(1)

    def watch_page_idx(self, old: int, new: int) -> None:
        if old != new:
            self._load_orders(new)

    def _refresh_controls(self) -> None:
        page_input = self.query_one("#input-page", Input)
        page_input.validators = [Number(minimum=1, maximum=self.page_cnt)]
        page_input.value = str(self.page_idx)
        self.query_one("#label-total-page-cnt", Label).update(f" / {self.page_cnt}")
        self.query_one("#btn-prev", Button).disabled = self.page_idx <= 1
        self.query_one("#btn-next", Button).disabled = self.page_idx >= self.page_cnt

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        if self.page_idx > 1:
            self.page_idx -= 1

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        if self.page_idx < self.page_cnt:
            self.page_idx += 1

    @on(Input.Submitted, "#input-page")
    def handle_page_input(self, ev: Input.Submitted) -> None:
        if not ev.input.is_valid:
            self.notify(f"Page must be between 1 and {self.page_cnt}.", severity="error")
            return
        self.page_idx = int(ev.value)

    @work(exclusive=True, group="orders")
    async def _load_orders(self, page: int) -> None:
        if not self.app.session.is_authenticated:
            return
        try:
            result = await self.app.client.list_orders(page - 1, ORDERS_PAGE_SIZE)
        except (ApiError, httpx.HTTPError) as e:
            self.notify(f"Failed to load orders: {e}", severity="error")
            return

        orders = result.content  # server returns newest first

        table = self.query_one(DataTable)
        table.clear()
        for o in orders:
            table.add_row(
                o.id,
                o.created_at.strftime("%Y-%m-%d") if o.created_at else "-",
                status_text(o.status),
                sum(item.quantity for item in o.items),
                format_price(o.total_amount),
                key=str(o.id),
            )
        self._orders = orders
        self.page_cnt = max(result.total_pages, 1)
        self._refresh_controls()

        if orders:
            table.cursor_coordinate = (0, 0)
            self._render_detail(orders[0])
        else:
            self._render_detail(None)

    @on(DataTable.RowHighlighted, "#table-orders")
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        if event.row_key is None or event.row_key.value is None:
            return
        self._load_and_render_detail(int(event.row_key.value))

    @work(exclusive=True, group="order-detail")
    async def _load_and_render_detail(self, order_id: int) -> None:
        try:
            order = await self.app.client.get_order(order_id)
        except (ApiError, httpx.HTTPError) as e:
            self.notify(f"Failed to load order #{order_id}: {e}", severity="error")
            return
        self._render_detail(order)

    def _render_detail(self, order: Optional[Order]) -> None:
        self.query_one("#md-order-detail", MarkdownViewer).document.update(
            order_markdown(order)
        )
