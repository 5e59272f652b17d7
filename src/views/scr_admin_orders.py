from typing import List, Optional

import httpx
from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable, Label, MarkdownViewer, Select

from api.errors import ApiError
from api.models import AdminOrder, OrderStatus
from utils.pure import format_price, generate_markdown_table, humanize_enum
from utils.validation import PAYMENT_METHODS
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmDialogModal
from views.scr_orders import status_text


def admin_order_markdown(order: Optional[AdminOrder]) -> str:
    if not order:
        return "### Select an order to view its details."
    when = order.created_at.strftime("%Y-%m-%d %H:%M") if order.created_at else "-"
    md = (
        f"### Order {order.order_number}\n"
        f"Customer: {order.customer_name} ({order.username})  \n"
        f"Status: **{status_text(order.status)}**  \n"
        f"Placed: {when}  \n"
        f"Ship To: {order.shipping_address or '-'}  \n"
        f"Bill To: {order.billing_address or '-'}  \n"
        f"Payment: {PAYMENT_METHODS.get(order.payment_method, order.payment_method or '-')}\n\n"
    )
    rows = [
        [i.product_name, i.quantity, format_price(i.unit_price)] for i in order.items
    ]
    md += generate_markdown_table(["Product", "Qty", "Unit Price"], rows, ["l", "r", "r"])
    md += f"\n\n**Total:** {format_price(order.total_amount)}"
    return md


class AdminOrdersScreen(BaseScreen):
    """
    Every customer's orders; admins move them through the status pipeline.
    """

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[AdminOrder] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Label("", id="label-order-count")
            yield DataTable(id="table-admin-orders")
            yield MarkdownViewer(id="md-admin-order", show_table_of_contents=False)
        with Horizontal(id="hort-status-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Select(
                [(humanize_enum(s.value), s.value) for s in OrderStatus],
                prompt="New status",
                id="select-status",
            )
            yield Button("Update Status", id="btn-update-status", variant="primary")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order", "Customer", "Items", "Total", "Status", "Date")

    def sync_state(self) -> None:
        super().sync_state()
        self.load_orders()

    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True, group="admin-orders")
    async def load_orders(self) -> None:
        if not self.app.session.is_admin:
            return
        try:
            self._orders = await self.app.client.admin_list_orders()
        except (ApiError, httpx.HTTPError) as e:
            self.notify(f"Failed to load orders: {e}", severity="error")
            return

        self.query_one("#label-order-count", Label).update(
            f"{len(self._orders)} total orders"
        )
        table = self.query_one(DataTable)
        table.clear()
        for o in self._orders:
            table.add_row(
                o.order_number,
                o.customer_name,
                len(o.items),
                format_price(o.total_amount),
                status_text(o.status),
                o.created_at.strftime("%Y-%m-%d") if o.created_at else "-",
                key=str(o.id),
            )
        self._render_selected()

    def _selected(self) -> Optional[AdminOrder]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key = table.coordinate_to_cell_key(table.cursor_coordinate).row_key
        for o in self._orders:
            if str(o.id) == row_key.value:
                return o
        return None

    @on(DataTable.RowHighlighted, "#table-admin-orders")
    def _render_selected(self) -> None:
        order = self._selected()
        self.query_one("#md-admin-order", MarkdownViewer).document.update(
            admin_order_markdown(order)
        )
        if order and isinstance(order.status, OrderStatus):
            self.query_one("#select-status", Select).value = order.status.value

    @on(Button.Pressed, "#btn-update-status")
    @work(exclusive=True, group="admin-order-status")
    async def handle_update_status(self) -> None:
        order = self._selected()
        new_status = self.query_one("#select-status", Select).value
        if not order or not isinstance(new_status, str):
            self.notify("Select an order and a status first.", severity="warning")
            return
        if new_status == getattr(order.status, "value", order.status):
            self.notify("Nothing to update.", severity="warning")
            return
        if not await self.app.push_screen_wait(
            ConfirmDialogModal(
                f"Change order {order.order_number} to {humanize_enum(new_status)}?"
            )
        ):
            return
        try:
            await self.app.client.admin_update_order_status(
                order.id, OrderStatus(new_status)
            )
        except (ApiError, httpx.HTTPError) as e:
            self.notify(f"Failed to update order status: {e}", severity="error")
            return
        self.notify("Order status updated.")
        self.load_orders()
