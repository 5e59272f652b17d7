import os
import sys
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from api.errors import ApiError  # noqa: E402
from api.models import Cart, Product  # noqa: E402
from fake_backend import ShopTestCase, product_json  # noqa: E402
from state.cart import (  # noqa: E402
    checkout_allowed,
    item_conflict,
    max_orderable,
    stock_conflicts,
)
from utils.validation import ValidationError  # noqa: E402


def make_cart(*lines) -> Cart:
    """lines are (quantity, stock) pairs"""
    items = [
        {
            "id": idx + 1,
            "product": product_json(idx + 1, f"Board {idx + 1}", "100.00", stock),
            "quantity": qty,
        }
        for idx, (qty, stock) in enumerate(lines)
    ]
    return Cart.from_json({"id": 1, "userId": 1, "items": items, "totalAmount": 0})


class StockConflictTestCase(unittest.TestCase):
    def test_single_line_kinds(self):
        out, over, fine = make_cart((1, 0), (5, 3), (2, 5)).items
        self.assertEqual(item_conflict(out), "out_of_stock")
        self.assertEqual(item_conflict(over), "over_quantity")
        self.assertIsNone(item_conflict(fine))

    def test_conflicts_are_grouped(self):
        conflicts = stock_conflicts(make_cart((1, 0), (5, 3), (2, 5)))
        self.assertTrue(conflicts.has_conflicts)
        self.assertEqual([i.product.id for i in conflicts.out_of_stock], [1])
        self.assertEqual([i.product.id for i in conflicts.over_quantity], [2])

    def test_out_of_stock_message_wins(self):
        both = stock_conflicts(make_cart((1, 0), (5, 3)))
        self.assertIn("out of stock", both.conflict_message())
        over = stock_conflicts(make_cart((5, 3)))
        self.assertIn("exceed available stock", over.conflict_message())
        self.assertIsNone(stock_conflicts(make_cart((2, 5))).conflict_message())

    def test_checkout_allowed(self):
        self.assertTrue(checkout_allowed(make_cart((2, 5), (3, 3))))
        self.assertFalse(checkout_allowed(make_cart((2, 5), (4, 3))))
        self.assertFalse(checkout_allowed(make_cart((1, 0))))
        self.assertFalse(checkout_allowed(make_cart()))
        self.assertFalse(checkout_allowed(None))

    def test_no_cart_has_no_conflicts(self):
        self.assertFalse(stock_conflicts(None).has_conflicts)

    def test_max_orderable(self):
        self.assertEqual(max_orderable(Product.from_json(product_json(1, "A", "1", 4))), 4)
        self.assertEqual(max_orderable(Product.from_json(product_json(1, "A", "1", 0))), 0)


class CartStateTestCase(ShopTestCase):
    async def login(self):
        await self.session.initialize()
        await self.session.login("alice", "secret1")

    async def test_anonymous_cart_is_empty_and_never_fetched(self):
        await self.session.initialize()
        self.assertIsNone(await self.cart.refresh())
        self.assertEqual(self.cart.item_count, 0)
        self.assertTrue(self.cart.is_empty)
        self.assertEqual(
            [r for r in self.shop.requests if r.url.path.endswith("/cart")], []
        )

    async def test_login_loads_cart(self):
        self.shop.carts[1] = [(7, 1), (9, 2)]
        await self.login()
        self.assertEqual(self.cart.line_count, 2)
        self.assertEqual(self.cart.item_count, 3)
        self.assertEqual(str(self.cart.cart.total_amount), "430.0")
        self.assertEqual(self.cart.find_item(9).quantity, 2)
        self.assertIsNone(self.cart.find_item(8))

    async def test_logout_drops_cart(self):
        self.shop.carts[1] = [(7, 1)]
        await self.login()
        await self.session.logout()
        self.assertIsNone(self.cart.cart)
        self.assertEqual(self.cart.item_count, 0)

    async def test_refresh_failure_falls_back_to_empty(self):
        self.shop.carts[1] = [(7, 1)]
        await self.login()
        self.shop.fail_next = 500
        self.assertIsNone(await self.cart.refresh())
        self.assertIsNone(self.cart.cart)
        self.assertFalse(self.cart.loading)

    async def test_failed_mutation_keeps_previous_snapshot(self):
        await self.login()
        before = await self.cart.add(7, 1)
        self.shop.fail_next = 500
        with self.assertRaises(ApiError):
            await self.cart.add(9, 1)
        self.assertIs(self.cart.cart, before)
        self.assertFalse(self.cart.loading)

    async def test_quantity_floor_is_checked_before_the_network(self):
        await self.login()
        sent = len(self.shop.requests)
        with self.assertRaises(ValidationError) as ctx:
            await self.cart.add(7, 0)
        self.assertIn("quantity", ctx.exception.errors)
        with self.assertRaises(ValidationError):
            await self.cart.set_quantity(7, -1)
        self.assertEqual(len(self.shop.requests), sent)

    async def test_conflicts_follow_server_snapshot(self):
        self.shop.carts[1] = [(8, 1), (9, 5)]
        await self.login()
        self.assertTrue(self.cart.conflicts.has_conflicts)
        self.assertFalse(self.cart.can_checkout)

        await self.cart.remove(8)
        await self.cart.set_quantity(9, 3)
        self.assertFalse(self.cart.conflicts.has_conflicts)
        self.assertTrue(self.cart.can_checkout)

    async def test_add_change_remove(self):
        await self.login()
        self.assertTrue(self.cart.is_empty)

        await self.cart.add(7, 2)
        self.assertEqual(self.cart.line_count, 1)
        self.assertEqual(self.cart.find_item(7).quantity, 2)
        self.assertEqual(self.cart.item_count, 2)

        with self.assertRaises(ValidationError):
            await self.cart.set_quantity(7, 0)
        self.assertEqual(self.cart.find_item(7).quantity, 2)

        await self.cart.remove(7)
        self.assertTrue(self.cart.is_empty)
        self.assertEqual(self.cart.item_count, 0)

    async def test_clear(self):
        self.shop.carts[1] = [(7, 1), (9, 1)]
        await self.login()
        await self.cart.clear()
        self.assertTrue(self.cart.is_empty)
        self.assertEqual(self.shop.carts[1], [])


if __name__ == "__main__":
    unittest.main()
