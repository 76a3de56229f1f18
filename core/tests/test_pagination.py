from django.test import SimpleTestCase

from core.pagination import paginate, pagination_meta, parse_page


class PaginationTest(SimpleTestCase):
    def test_page_count_is_ceiling(self):
        page = paginate(list(range(31)), 1, 15)
        self.assertEqual(page["total"], 31)
        self.assertEqual(page["total_pages"], 3)
        self.assertEqual(len(page["items"]), 15)
        self.assertFalse(page["has_previous"])
        self.assertTrue(page["has_next"])

    def test_last_page_holds_remainder(self):
        page = paginate(list(range(31)), 3, 15)
        self.assertEqual(page["items"], [30])
        self.assertTrue(page["has_previous"])
        self.assertFalse(page["has_next"])

    def test_page_past_end_is_empty(self):
        page = paginate(list(range(10)), 5, 12)
        self.assertEqual(page["items"], [])
        self.assertEqual(page["total_pages"], 1)

    def test_empty_set(self):
        page = paginate([], 1, 20)
        self.assertEqual(page["items"], [])
        self.assertEqual(page["total_pages"], 0)
        self.assertFalse(page["has_next"])

    def test_invalid_page_numbers_mean_first_page(self):
        for raw in (None, "", "abc", "0", "-3", 0):
            self.assertEqual(parse_page(raw), 1, msg=f"raw={raw!r}")
        self.assertEqual(paginate(list(range(5)), "nope", 2)["items"], [0, 1])

    def test_exact_multiple(self):
        page = paginate(list(range(24)), 2, 12)
        self.assertEqual(page["total_pages"], 2)
        self.assertEqual(page["items"], list(range(12, 24)))
        self.assertFalse(page["has_next"])

    def test_meta_omits_items(self):
        meta = pagination_meta(paginate(list(range(3)), 1, 2))
        self.assertNotIn("items", meta)
        self.assertEqual(meta["per_page"], 2)
