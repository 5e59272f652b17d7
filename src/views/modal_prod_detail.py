from typing import Optional

import httpx
from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer

from api.errors import ApiError
from api.models import CartItem, KeyboardLayout, Product
from state.cart import max_orderable
from utils.config import LOW_STOCK_THRESHOLD
from utils.messages import CartChangedMessage, LoginRequestedMessage
from utils.pure import format_price, generate_markdown_table, humanize_enum, resolve_image_url
from utils.validation import ValidationError


def product_markdown(prod: Product) -> str:
    layout = prod.layout.value if isinstance(prod.layout, KeyboardLayout) else prod.layout
    rows = [
        ["Brand", prod.brand],
        ["Price", format_price(prod.price)],
        ["Layout", humanize_enum(layout)],
        ["Switches", prod.switch_type or "-"],
        ["Keycaps", prod.keycap_material or "-"],
        ["Case", prod.case_material or "-"],
        ["RGB", "Yes" if prod.rgb_support else "No"],
        ["Wireless", "Yes" if prod.wireless_support else "No"],
        ["Stock", prod.stock_quantity if prod.in_stock else "Out of Stock"],
    ]
    image = resolve_image_url(prod.image_url)
    if image:
        rows.append(["Image", image])
    md = f"### {prod.name}\n\n{prod.description}\n\n"
    md += generate_markdown_table(["Attribute", "Value"], rows, ["l", "l"])
    if not prod.in_stock:
        md += (
            "\n\n> This product is currently out of stock. "
            "Please check back later."
        )
    elif prod.stock_quantity <= LOW_STOCK_THRESHOLD:
        md += f"\n\n> Only {prod.stock_quantity} left in stock! Order soon."
    return md


class ProdDetailModal(ModalScreen[bool]):
    """
    product detail, plus ordering
    Will return true if cart changed, false if not
    """

    order_qty = reactive(1)

    def __init__(self, product_id: int) -> None:
        super().__init__()
        self._product_id = product_id
        self._prod: Optional[Product] = None
        self._existing_cart_item: Optional[CartItem] = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical(id="div-order"):
                yield Label("Quantity")
                with Horizontal():
                    yield Button("-", id="btn-sub-qty")
                    yield Input(value="1", id="input-order-qty", type="integer")
                    yield Button("+", id="btn-add-qty")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Add to Cart", id="btn-addcart", variant="primary")

    def on_mount(self):
        self.load_product()

    @work(exclusive=True)
    async def load_product(self) -> None:
        try:
            self._prod = await self.app.client.get_product(self._product_id)
        except (ApiError, httpx.HTTPError) as e:
            self.app.notify(f"Failed to load product: {e}", severity="error")
            self.dismiss(False)
            return

        await self.query_one(MarkdownViewer).document.update(product_markdown(self._prod))

        session = self.app.session
        order_btn = self.query_one("#btn-addcart", Button)
        if session.is_admin:
            # admins manage stock, they don't shop
            self.query_one("#div-order").display = False
            return

        if not session.is_authenticated:
            order_btn.label = "Log in to buy"
        elif not self._prod.in_stock:
            order_btn.label = "Out of Stock"
            order_btn.disabled = True
            order_btn.variant = "warning"

        self.query_one("#input-order-qty", Input).validators = [
            Number(minimum=1, maximum=max_orderable(self._prod))
        ]

        self._existing_cart_item = self.app.cart.find_item(self._product_id)
        if self._existing_cart_item:
            self.order_qty = self._existing_cart_item.quantity
            order_btn.label = "Update Cart"
        self._refresh_stepper()
        self.query_one("#input-order-qty").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    def on_input_changed(self, message: Input.Changed) -> None:
        if (
            message.input.id == "input-order-qty"
            and message.input.is_valid
            and self.focused == message.input
        ):
            self.order_qty = int(message.value)

    def watch_order_qty(self, _qty: int) -> None:
        if self.is_mounted:
            self._refresh_stepper()

    def _refresh_stepper(self) -> None:
        ceiling = max_orderable(self._prod) if self._prod else 1
        self.query_one("#btn-sub-qty").disabled = self.order_qty <= 1
        self.query_one("#btn-add-qty").disabled = self.order_qty >= ceiling
        qty_input = self.query_one("#input-order-qty", Input)
        if qty_input.value != str(self.order_qty):
            qty_input.value = str(self.order_qty)

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self):
        self.order_qty += 1

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self):
        self.order_qty = max(1, self.order_qty - 1)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)

    @on(Button.Pressed, "#btn-addcart")
    @work(exclusive=True)
    async def handle_addcart(self):
        if not self.app.session.is_authenticated:
            self.dismiss(False)
            self.app.post_message(LoginRequestedMessage())
            return

        if not self.query_one("#input-order-qty", Input).is_valid:
            self.notify(
                f"Quantity must be between 1 and {max_orderable(self._prod)}.",
                severity="error",
            )
            return

        cart = self.app.cart
        try:
            if self._existing_cart_item:
                await cart.set_quantity(self._product_id, self.order_qty)
                self.app.notify("Updated cart item quantity.")
            else:
                await cart.add(self._product_id, self.order_qty)
                self.app.notify("Item added to cart successfully.")
        except ValidationError as e:
            self.notify(str(e), severity="error")
            return
        except (ApiError, httpx.HTTPError) as e:
            self.notify(f"Could not update cart: {e}", severity="error")
            return

        self.app.post_message(CartChangedMessage())
        self.dismiss(True)
