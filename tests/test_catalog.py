import os
import sys
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from fake_backend import ShopTestCase  # noqa: E402
from state.catalog import CatalogState, FilterState  # noqa: E402


class FilterStateTestCase(unittest.TestCase):
    def test_defaults(self):
        state = FilterState()
        self.assertEqual(state.page, 0)
        self.assertEqual(state.size, 12)
        self.assertFalse(state.has_filters)
        self.assertEqual(state.to_query(), {"page": 0, "size": 12})

    def test_query_uses_wire_names_and_drops_unset(self):
        state = FilterState(min_price=50, switch_type="Cherry MX Red", rgb_support=True)
        self.assertEqual(
            state.to_query(),
            {
                "minPrice": 50,
                "switchType": "Cherry MX Red",
                "rgbSupport": True,
                "page": 0,
                "size": 12,
            },
        )
        self.assertTrue(state.has_filters)

    def test_page_alone_is_not_a_filter(self):
        self.assertFalse(FilterState(page=4, size=24).has_filters)


class CatalogStateTestCase(ShopTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.catalog = CatalogState(self.client)

    def test_edit_touches_draft_only(self):
        self.catalog.edit(brand="Keychron", layout="TKL")
        self.assertEqual(self.catalog.draft.brand, "Keychron")
        self.assertEqual(self.catalog.active, FilterState())

    def test_unticked_boxes_and_blank_selects_are_unset(self):
        self.catalog.edit(rgb_support=True, wireless_support=True, brand="Keychron")
        self.catalog.edit(rgb_support=False, wireless_support=None, brand="")
        self.assertIsNone(self.catalog.draft.rgb_support)
        self.assertIsNone(self.catalog.draft.wireless_support)
        self.assertIsNone(self.catalog.draft.brand)
        self.assertFalse(self.catalog.draft.has_filters)

    def test_apply_commits_and_resets_page(self):
        self.catalog.edit(brand="Keychron")
        self.catalog.change_page(3)
        self.assertEqual(self.catalog.current_page, 3)

        active = self.catalog.apply()
        self.assertEqual(active.brand, "Keychron")
        self.assertEqual(active.page, 0)
        self.assertEqual(self.catalog.apply(), active)

    def test_change_page_is_one_based(self):
        self.catalog.change_page(2)
        self.assertEqual(self.catalog.active.page, 1)
        self.assertEqual(self.catalog.current_page, 2)
        self.catalog.change_page(0)
        self.assertEqual(self.catalog.active.page, 0)

    def test_clear_resets_both(self):
        self.catalog.edit(brand="Keychron", rgb_support=True)
        self.catalog.apply()
        self.catalog.change_page(2)
        self.catalog.clear()
        self.assertEqual(self.catalog.draft, FilterState())
        self.assertEqual(self.catalog.active, FilterState())
        self.assertEqual(self.catalog.active.size, 12)

    def test_min_above_max_drags_max(self):
        self.catalog.set_max_price(100)
        self.catalog.set_min_price(150)
        self.assertEqual(self.catalog.draft.min_price, 150)
        self.assertEqual(self.catalog.draft.max_price, 150)

    def test_max_below_min_drags_min(self):
        self.catalog.set_min_price(200)
        self.assertEqual(self.catalog.draft.max_price, 500)
        self.catalog.set_max_price(50)
        self.assertEqual(self.catalog.draft.min_price, 50)
        self.assertEqual(self.catalog.draft.max_price, 50)

    def test_slider_low_never_passes_high(self):
        self.catalog.set_price_range(300, 100)
        self.assertEqual(self.catalog.draft.min_price, 100)
        self.assertEqual(self.catalog.draft.max_price, 100)
        self.catalog.set_price_range(20, 400)
        self.assertEqual(self.catalog.draft.min_price, 20)
        self.assertEqual(self.catalog.draft.max_price, 400)

    async def test_load_queries_with_active_snapshot(self):
        self.catalog.edit(brand="Keychron", rgb_support=True)
        await self.catalog.load()
        params = self.shop.last("/products").url.params
        self.assertNotIn("brand", params)
        self.assertNotIn("rgbSupport", params)
        self.assertEqual(params.get("size"), "12")

        self.catalog.apply()
        page = await self.catalog.load()
        params = self.shop.last("/products").url.params
        self.assertEqual(params.get("brand"), "Keychron")
        self.assertEqual(params.get("rgbSupport"), "true")
        self.assertEqual(params.get("page"), "0")

        self.assertIs(self.catalog.result, page)
        self.assertEqual(self.catalog.page_count, 1)

    async def test_page_count_without_result(self):
        self.assertEqual(self.catalog.page_count, 1)

    async def test_facets(self):
        await self.catalog.load_facets()
        self.assertEqual(self.catalog.brands, ["Keychron"])
        self.assertIn("TKL", self.catalog.layouts)


if __name__ == "__main__":
    unittest.main()
