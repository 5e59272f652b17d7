import httpx
from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.message import Message
from textual.widgets import Button, Label, Rule

from api.errors import ApiError
from api.models import CartItem
from state.cart import item_conflict, max_orderable
from utils.messages import CartChangedMessage, NewOrderMessage
from utils.pure import format_price
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import ConfirmDialogModal


class CartItemQuantityMessage(Message):
    bubble = True

    def __init__(self, item: CartItem, quantity: int) -> None:
        super().__init__()
        self.item = item
        self.quantity = quantity


class CartItemRemoveMessage(Message):
    bubble = True

    def __init__(self, item: CartItem) -> None:
        super().__init__()
        self.item = item


class CartItemWidget(HorizontalGroup):
    """One cart line: name, unit price, stepper, stock badge and remove."""

    def __init__(self, item: CartItem):
        super().__init__()
        self.item = item

    def compose(self):
        prod = self.item.product
        conflict = item_conflict(self.item)
        with Container(id="div-cart-item-group"):
            with Container(id="div-item"):
                yield Label(prod.name, id="label-item-name")
                yield Label(format_price(prod.price), id="label-item-price")
                if prod.in_stock:
                    yield Label(f"In Stock ({prod.stock_quantity})", classes="badge-ok")
                else:
                    yield Label("Out of Stock", classes="badge-error")
                if conflict == "over_quantity":
                    yield Label(
                        f"Only {prod.stock_quantity} available", classes="warn"
                    )
                elif conflict == "out_of_stock":
                    yield Label("This item is out of stock", classes="error")
            with Horizontal(id="div-actions"):
                yield Button(
                    "-", id="btn-item-sub", disabled=self.item.quantity <= 1
                )
                yield Label(str(self.item.quantity), id="label-item-qty")
                yield Button(
                    "+",
                    id="btn-item-add",
                    disabled=self.item.quantity >= max_orderable(prod),
                )
                yield Button("Remove", id="btn-item-remove", variant="error")

    @on(Button.Pressed, "#btn-item-sub")
    def handle_sub(self):
        self.post_message(CartItemQuantityMessage(self.item, max(1, self.item.quantity - 1)))

    @on(Button.Pressed, "#btn-item-add")
    def handle_add(self):
        self.post_message(CartItemQuantityMessage(self.item, self.item.quantity + 1))

    @on(Button.Pressed, "#btn-item-remove")
    def handle_remove(self):
        self.post_message(CartItemRemoveMessage(self.item))


class CartScreen(BaseScreen):
    """
    Cart lines, totals as reported by the server, and the checkout gate.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("", id="label-cart-conflict")
        yield Label("Total: $0.00", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Refresh", id="btn-refresh")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    def sync_state(self) -> None:
        super().sync_state()
        self.render_cart()

    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True, group="cart-refresh")
    async def handle_refresh(self):
        await self.app.cart.refresh()
        self.app.post_message(CartChangedMessage())

    @work(exclusive=True, group="cart-render")  # exclusive, else duplicate lines
    async def render_cart(self):
        cart_state = self.app.cart
        cart = cart_state.cart

        content = self.query_one("#vertscroll-content")
        await content.remove_children()
        if cart and cart.items:
            await content.mount_all([CartItemWidget(item) for item in cart.items])
            content.remove_class("no-items")
        else:
            await content.mount(Label("Your cart is empty.", id="label-empty"))
            content.add_class("no-items")

        # displayed total is the server's, never summed here
        total = cart.total_amount if cart else 0
        self.query_one("#label-cart-total", Label).update(
            f"Items: {cart_state.item_count}    Total: {format_price(total)}"
        )

        conflict_label = self.query_one("#label-cart-conflict", Label)
        message = cart_state.conflicts.conflict_message()
        conflict_label.update(message or "")
        conflict_label.display = bool(message)

        self.query_one("#btn-checkout", Button).disabled = not cart_state.can_checkout
        self.query_one("#btn-clear-cart", Button).disabled = cart_state.is_empty

    @on(CartItemQuantityMessage)
    @work(group="cart-mutation")
    async def handle_quantity(self, event: CartItemQuantityMessage):
        try:
            await self.app.cart.set_quantity(event.item.product.id, event.quantity)
        except (ApiError, httpx.HTTPError, ValueError) as e:
            self.notify(f"Could not update quantity: {e}", severity="error")
            return
        self.app.post_message(CartChangedMessage())

    @on(CartItemRemoveMessage)
    @work(group="cart-mutation")
    async def handle_remove(self, event: CartItemRemoveMessage):
        if not await self.app.push_screen_wait(
            ConfirmDialogModal("Do you really want to remove this item from cart?")
        ):
            return
        try:
            await self.app.cart.remove(event.item.product.id)
        except (ApiError, httpx.HTTPError) as e:
            self.notify(f"Could not remove item: {e}", severity="error")
            return
        self.app.post_message(CartChangedMessage())
        self.notify("Item removed from cart.", severity="information")

    @on(Button.Pressed, "#btn-clear-cart")
    @work(group="cart-mutation")
    async def handle_clear_cart(self) -> None:
        if self.app.cart.is_empty:
            self.app.notify("Cart is empty.", severity="warning")
            return

        if not await self.app.push_screen_wait(
            ConfirmDialogModal(
                "Do you really want to remove all items from cart?", tone="error"
            )
        ):
            return
        try:
            await self.app.cart.clear()
        except (ApiError, httpx.HTTPError) as e:
            self.notify(f"Could not clear cart: {e}", severity="error")
            return
        self.app.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        cart_state = self.app.cart
        if cart_state.is_empty:
            self.app.notify("Cart is empty.", severity="warning")
            return
        if not cart_state.can_checkout:
            self.app.notify(cart_state.conflicts.conflict_message(), severity="error")
            return

        order = await self.app.push_screen_wait(CheckoutModal())
        if order is not None:
            self.app.post_message(CartChangedMessage())
            self.app.post_message(NewOrderMessage())
            self.app.navigate("orders")
