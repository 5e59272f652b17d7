from typing import Optional

import httpx
from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, MarkdownViewer, Select

from api.errors import ApiError
from api.models import Cart, CartItemRequest, CheckoutRequest, Order
from state.cart import checkout_allowed
from utils.logger import get_logger
from utils.pure import format_price, generate_markdown_table
from utils.validation import PAYMENT_METHODS, CheckoutForm, validate_checkout
from views.modal_dialog import ConfirmDialogModal

_logger = get_logger(__name__)

_INPUTS = {
    "phone_number": "#input-phone",
    "shipping_address": "#input-shipping",
    "billing_address": "#input-billing",
}


class CheckoutModal(ModalScreen[Optional[Order]]):
    """
    Order summary plus address and payment entry.
    Dismisses with the created Order, or None when cancelled or failed.
    """

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="div-checkout"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical(id="div-checkout-form"):
                yield Label("Phone Number *")
                yield Input(placeholder="+1 555 0100", id="input-phone")
                yield Label("Shipping Address *")
                yield Input(placeholder="123 Main St, Anytown, ST 00000", id="input-shipping")
                yield Label("Billing Address *")
                yield Input(placeholder="123 Main St, Anytown, ST 00000", id="input-billing")
                yield Label("Payment Method")
                yield Select(
                    [(label, key) for key, label in PAYMENT_METHODS.items()],
                    value="cod",
                    allow_blank=False,
                    id="select-payment",
                )
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self):
        cart = self.app.cart.cart
        headers = ["Product", "Unit Price", "Quantity", "Line Price"]
        rows = [
            [
                item.product.name,
                format_price(item.product.price),
                item.quantity,
                format_price(item.product.price * item.quantity),
            ]
            for item in (cart.items if cart else [])
        ]
        md = "### Order Summary\n\n" + generate_markdown_table(
            headers, rows, ["l", "r", "c", "r"]
        )
        md += f"\n\n**Total:** {format_price(cart.total_amount if cart else 0)}"
        await self.query_one(MarkdownViewer).document.update(md)
        self.query_one("#input-shipping").focus()
        self.prefill_from_profile()

    @work(exclusive=True)
    async def prefill_from_profile(self) -> None:
        try:
            profile = await self.app.client.get_profile()
        except (ApiError, httpx.HTTPError) as e:
            # prefill is a convenience only
            _logger.debug(f"Profile prefill skipped: {e}")
            return
        phone = self.query_one("#input-phone", Input)
        shipping = self.query_one("#input-shipping", Input)
        if not phone.value and profile.phone_number:
            phone.value = profile.phone_number
        if not shipping.value and profile.address:
            shipping.value = profile.address

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    def _form(self) -> CheckoutForm:
        payment = self.query_one("#select-payment", Select).value
        return CheckoutForm(
            shipping_address=self.query_one("#input-shipping", Input).value,
            billing_address=self.query_one("#input-billing", Input).value,
            payment_method=payment if isinstance(payment, str) else "",
            phone_number=self.query_one("#input-phone", Input).value.strip(),
        )

    def _checkout_cart(self) -> Optional[Cart]:
        """
        The cart as it is now. A 401 or a failed refresh may have dropped it
        while the modal was open; then there is nothing to check out.
        """
        cart = self.app.cart.cart
        if not checkout_allowed(cart):
            self.app.notify(
                "Your cart changed and can no longer be checked out. Please review it.",
                severity="warning",
            )
            self.dismiss(None)
            return None
        return cart

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        if self._checkout_cart() is None:
            return

        form = self._form()
        errors = validate_checkout(form)
        if errors:
            for field, selector in _INPUTS.items():
                if field in errors:
                    self.query_one(selector, Input).add_class("-invalid")
            self.notify("\n".join(errors.values()), severity="error")
            return

        if not await self.app.push_screen_wait(
            ConfirmDialogModal("Place order? This cannot be undone.", tone="positive")
        ):
            return

        cart = self._checkout_cart()
        if cart is None:
            return

        request = CheckoutRequest(
            items=[
                CartItemRequest(product_id=item.product.id, quantity=item.quantity)
                for item in cart.items
            ],
            shipping_address=form.shipping_address.strip(),
            billing_address=form.billing_address.strip(),
            payment_method=form.payment_method,
            phone_number=form.phone_number,
        )
        try:
            order = await self.app.client.checkout(request)
        except ApiError as e:
            self.notify(e.message or "Checkout failed. Please try again.", severity="error")
            return
        except httpx.HTTPError as e:
            self.notify(f"Checkout failed: {e}", severity="error")
            return

        await self.app.cart.refresh()
        self.app.notify(f"Order placed. Your order number is {order.id}.")
        self.dismiss(order)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(None)

    def on_input_changed(self, message: Input.Changed) -> None:
        if message.value.strip():
            message.input.remove_class("-invalid")
