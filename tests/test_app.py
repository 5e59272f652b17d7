import os
import sys
import unittest
from unittest import mock

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from textual.widgets import Input, Select  # noqa: E402

from api.client import ApiClient  # noqa: E402
from api.errors import ApiError, SessionInvalidError  # noqa: E402
from db.storage import SessionStorage  # noqa: E402
from fake_backend import BASE_URL, ShopTestCase  # noqa: E402
from main import KeebShopApp  # noqa: E402
from state.session import SessionStatus  # noqa: E402
from views.modal_checkout import CheckoutModal  # noqa: E402
from views.modal_dialog import ConfirmDialogModal  # noqa: E402
from views.modal_prod_detail import ProdDetailModal  # noqa: E402
from views.modal_product_form import ProductFormModal  # noqa: E402
from views.scr_cart import CartScreen  # noqa: E402
from views.scr_login import LoginScreen  # noqa: E402

SCREEN_SIZE = (120, 40)


class AppTestCase(ShopTestCase):
    """Drives the real app against the fake backend with Textual's pilot."""

    async def asyncSetUp(self):
        self.storage = SessionStorage()
        self.client = ApiClient(self.storage, base_url=BASE_URL, transport=self.shop.transport)
        self.app = KeebShopApp(self.storage, self.client)

    async def wait_until(self, pilot, predicate, what="condition"):
        for _ in range(100):
            if predicate():
                return
            await pilot.pause(0.02)
        self.fail(f"timed out waiting for {what}")

    async def settle(self, pilot, rounds=10):
        for _ in range(rounds):
            await pilot.pause(0.02)

    async def start(self, pilot, username=None, password=None, mode=None):
        app = self.app
        await self.wait_until(
            pilot,
            lambda: app.session.status == SessionStatus.ANONYMOUS
            and app.current_mode == "products",
            "startup",
        )
        if username:
            await app.session.login(username, password)
        if mode:
            app.navigate(mode)
            await self.wait_until(pilot, lambda: app.current_mode == mode, mode)

    def requests_to(self, path_suffix):
        return [r for r in self.shop.requests if r.url.path.endswith(path_suffix)]


class NavigationTestCase(AppTestCase):
    async def test_anonymous_user_lands_on_products(self):
        async with self.app.run_test(size=SCREEN_SIZE) as pilot:
            await self.start(pilot)
            self.assertEqual(self.app.current_mode, "products")
            self.assertFalse(isinstance(self.app.screen, LoginScreen))

    async def test_protected_screen_asks_anonymous_user_to_log_in(self):
        async with self.app.run_test(size=SCREEN_SIZE) as pilot:
            await self.start(pilot)
            self.app.navigate("orders")
            await self.wait_until(
                pilot, lambda: isinstance(self.app.screen, LoginScreen), "login screen"
            )
            self.assertEqual(self.app.current_mode, "products")

    async def test_unresolved_session_does_not_navigate(self):
        async with self.app.run_test(size=SCREEN_SIZE) as pilot:
            await self.start(pilot)
            self.app.session.status = SessionStatus.LOADING
            self.app.navigate("orders")
            await self.settle(pilot)
            self.assertEqual(self.app.current_mode, "products")
            self.assertFalse(isinstance(self.app.screen, LoginScreen))

    async def test_customer_is_sent_home_from_admin_screens(self):
        async with self.app.run_test(size=SCREEN_SIZE) as pilot:
            await self.start(pilot, "alice", "secret1", mode="cart")
            self.app.navigate("admin_orders")
            await self.wait_until(pilot, lambda: self.app.current_mode == "products", "redirect")

    async def test_admin_is_sent_to_dashboard_from_shopping_screens(self):
        async with self.app.run_test(size=SCREEN_SIZE) as pilot:
            await self.start(pilot, "root", "hunter22", mode="products")
            self.app.navigate("cart")
            await self.wait_until(
                pilot, lambda: self.app.current_mode == "admin_dashboard", "redirect"
            )

    async def test_rejected_session_notifies_and_asks_for_login(self):
        async with self.app.run_test(size=SCREEN_SIZE) as pilot:
            await self.start(pilot, "alice", "secret1", mode="cart")
            with mock.patch.object(self.app, "notify", wraps=self.app.notify) as notify:
                self.shop.tokens.clear()
                await self.app.cart.refresh()
                await self.wait_until(
                    pilot, lambda: isinstance(self.app.screen, LoginScreen), "login screen"
                )
            self.assertFalse(self.app.session.is_authenticated)
            self.assertIsNone(self.storage.token)
            messages = [str(c.args[0]) for c in notify.call_args_list if c.args]
            self.assertTrue(any("session has expired" in m for m in messages), messages)

    async def test_wrong_password_is_not_reported_as_expired_session(self):
        async with self.app.run_test(size=SCREEN_SIZE) as pilot:
            await self.start(pilot)
            with mock.patch.object(self.app, "notify", wraps=self.app.notify) as notify:
                with self.assertRaises(ApiError) as ctx:
                    await self.app.session.login("alice", "typo")
                self.assertNotIsInstance(ctx.exception, SessionInvalidError)
                await self.settle(pilot)
            messages = [str(c.args[0]) for c in notify.call_args_list if c.args]
            self.assertFalse(any("session has expired" in m for m in messages), messages)
            self.assertFalse(isinstance(self.app.screen, LoginScreen))


class ProductDetailTestCase(AppTestCase):
    async def open_detail(self, pilot, product_id):
        modal = ProdDetailModal(product_id)
        self.app.push_screen(modal)
        await self.wait_until(
            pilot,
            lambda: modal._prod is not None
            and modal.query_one("#input-order-qty", Input).validators,
            "product detail",
        )
        return modal

    async def test_quantity_input_is_bounded_by_stock(self):
        async with self.app.run_test(size=SCREEN_SIZE) as pilot:
            await self.start(pilot, "alice", "secret1")
            modal = await self.open_detail(pilot, 9)  # stock 3
            qty = modal.query_one("#input-order-qty", Input)
            qty.focus()
            await pilot.pause()

            qty.value = "99"
            await pilot.pause()
            self.assertFalse(qty.is_valid)
            self.assertLessEqual(modal.order_qty, 3)

            qty.value = "0"
            await pilot.pause()
            self.assertFalse(qty.is_valid)
            self.assertGreaterEqual(modal.order_qty, 1)

            qty.value = "3"
            await pilot.pause()
            self.assertTrue(qty.is_valid)
            self.assertEqual(modal.order_qty, 3)
            self.assertTrue(modal.query_one("#btn-add-qty").disabled)

    async def test_out_of_range_quantity_is_never_sent(self):
        async with self.app.run_test(size=SCREEN_SIZE) as pilot:
            await self.start(pilot, "alice", "secret1")
            modal = await self.open_detail(pilot, 9)
            qty = modal.query_one("#input-order-qty", Input)
            qty.focus()
            await pilot.pause()
            qty.value = "99"
            await pilot.pause()

            modal.handle_addcart()
            await self.settle(pilot)
            self.assertEqual(self.requests_to("/cart/items"), [])
            self.assertIs(self.app.screen, modal)


class CheckoutTestCase(AppTestCase):
    async def open_checkout(self, pilot):
        modal = CheckoutModal()
        self.app.push_screen(modal)
        # profile prefill fills the phone number
        await self.wait_until(
            pilot,
            lambda: modal.is_mounted and modal.query_one("#input-phone", Input).value,
            "checkout prefill",
        )
        return modal

    async def test_phone_number_is_required(self):
        self.shop.carts[1] = [(7, 1)]
        async with self.app.run_test(size=SCREEN_SIZE) as pilot:
            await self.start(pilot, "alice", "secret1")
            modal = await self.open_checkout(pilot)
            modal.query_one("#input-phone", Input).value = ""
            modal.query_one("#input-shipping", Input).value = "1 Main St"
            modal.query_one("#input-billing", Input).value = "1 Main St"

            modal.handle_submit()
            await self.settle(pilot)
            self.assertTrue(modal.query_one("#input-phone", Input).has_class("-invalid"))
            self.assertFalse(isinstance(self.app.screen, ConfirmDialogModal))
            self.assertEqual(self.requests_to("/orders/checkout"), [])

    async def test_cart_dropped_while_open_closes_modal(self):
        self.shop.carts[1] = [(7, 1)]
        async with self.app.run_test(size=SCREEN_SIZE) as pilot:
            await self.start(pilot, "alice", "secret1")
            modal = await self.open_checkout(pilot)
            modal.query_one("#input-shipping", Input).value = "1 Main St"
            modal.query_one("#input-billing", Input).value = "1 Main St"

            self.shop.fail_next = 500
            self.assertIsNone(await self.app.cart.refresh())

            modal.handle_submit()
            await self.wait_until(pilot, lambda: self.app.screen is not modal, "dismissal")
            self.assertEqual(self.requests_to("/orders/checkout"), [])

    async def test_cart_screen_blocks_checkout_with_stock_conflicts(self):
        self.shop.carts[1] = [(8, 1)]  # out of stock
        async with self.app.run_test(size=SCREEN_SIZE) as pilot:
            await self.start(pilot, "alice", "secret1", mode="cart")
            screen = self.app.screen
            self.assertIsInstance(screen, CartScreen)
            screen.handle_checkout()
            await self.settle(pilot)
            self.assertIs(self.app.screen, screen)

    async def test_cart_screen_opens_checkout_for_clean_cart(self):
        self.shop.carts[1] = [(7, 1)]
        async with self.app.run_test(size=SCREEN_SIZE) as pilot:
            await self.start(pilot, "alice", "secret1", mode="cart")
            self.app.screen.handle_checkout()
            await self.wait_until(
                pilot, lambda: isinstance(self.app.screen, CheckoutModal), "checkout modal"
            )


class NumberInputTestCase(AppTestCase):
    async def test_page_input_outside_page_count_is_ignored(self):
        async with self.app.run_test(size=SCREEN_SIZE) as pilot:
            await self.start(pilot)
            screen = self.app.screen
            page_input = screen.query_one("#input-page", Input)
            await self.wait_until(pilot, lambda: page_input.validators, "page validators")
            sent = len(self.requests_to("/products"))

            page_input.focus()
            page_input.value = "5"
            await pilot.press("enter")
            await self.settle(pilot)

            self.assertFalse(page_input.is_valid)
            self.assertEqual(screen.catalog.current_page, 1)
            self.assertEqual(len(self.requests_to("/products")), sent)

    async def test_admin_product_form_rejects_non_positive_price(self):
        async with self.app.run_test(size=SCREEN_SIZE) as pilot:
            await self.start(pilot, "root", "hunter22")
            modal = ProductFormModal()
            self.app.push_screen(modal)
            await self.wait_until(pilot, lambda: modal.is_mounted, "product form")
            await self.settle(pilot)

            for selector, value in (
                ("#input-name", "Q1 Max"),
                ("#input-brand", "Keychron"),
                ("#input-description", "Gasket mounted 75%"),
                ("#input-price", "-3"),
                ("#input-stock", "5"),
            ):
                modal.query_one(selector, Input).value = value
            modal.query_one("#select-layout", Select).value = "TKL"
            await pilot.pause()

            modal.handle_submit()
            await self.settle(pilot)
            self.assertTrue(modal.query_one("#input-price", Input).has_class("-invalid"))
            self.assertFalse(modal.query_one("#input-stock", Input).has_class("-invalid"))
            self.assertEqual(self.requests_to("/admin/products"), [])
            self.assertIs(self.app.screen, modal)


if __name__ == "__main__":
    unittest.main()
