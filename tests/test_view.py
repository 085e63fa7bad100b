import unittest

from sheet_profiler.table import Table
from sheet_profiler.view import (
    Page,
    SearchDebouncer,
    SortSpec,
    ViewQuery,
    build_view,
    filter_rows,
    paginate,
    sort_rows,
)


def sample() -> Table:
    return Table.from_records(
        [
            {"name": "Ada", "score": 10, "city": "London"},
            {"name": "grace", "score": "", "city": "Arlington"},
            {"name": "Linus", "score": 2, "city": "Helsinki"},
            {"name": "Ken", "score": "n/a", "city": "New Jersey"},
            {"name": "Barbara", "score": 2, "city": "Boston"},
        ]
    )


def names(rows) -> list:
    return [row.get("name") for row in rows]


class FilterTests(unittest.TestCase):
    def test_case_insensitive_substring_over_any_field(self):
        self.assertEqual(names(filter_rows(sample().rows, "LON")), ["Ada"])
        self.assertEqual(names(filter_rows(sample().rows, "grace")), ["grace"])
        self.assertEqual(names(filter_rows(sample().rows, "10")), ["Ada"])

    def test_empty_term_is_identity(self):
        self.assertEqual(names(filter_rows(sample().rows, "")), names(sample().rows))


class SortTests(unittest.TestCase):
    def test_numbers_before_text_and_empty_last(self):
        rows = sort_rows(sample().rows, SortSpec("score"))
        self.assertEqual(names(rows), ["Linus", "Barbara", "Ada", "Ken", "grace"])

    def test_descending_keeps_empty_last_and_is_stable(self):
        rows = sort_rows(sample().rows, SortSpec("score", "desc"))
        self.assertEqual(names(rows), ["Ken", "Ada", "Linus", "Barbara", "grace"])

    def test_no_sort_is_input_order(self):
        self.assertEqual(names(sort_rows(sample().rows, None)), names(sample().rows))

    def test_toggle(self):
        spec = SortSpec("score")
        self.assertEqual(spec.toggled("score"), SortSpec("score", "desc"))
        self.assertEqual(spec.toggled("score").toggled("score"), SortSpec("score", "asc"))
        self.assertEqual(SortSpec("score", "desc").toggled("name"), SortSpec("name", "asc"))

    def test_bad_direction(self):
        with self.assertRaises(ValueError):
            SortSpec("score", "up")


class PaginationTests(unittest.TestCase):
    def test_pages_are_fifty_rows(self):
        table = Table.from_records([{"n": i} for i in range(120)])
        page = paginate(list(table.rows), 3)
        self.assertIsInstance(page, Page)
        self.assertEqual((page.page, page.total_pages, page.total_rows), (3, 3, 120))
        self.assertEqual(len(page.rows), 20)
        self.assertEqual(page.rows[0].get("n"), 100)
        self.assertEqual(page.first_row_number, 101)

    def test_page_is_clamped(self):
        rows = list(Table.from_records([{"n": i} for i in range(10)]).rows)
        self.assertEqual(paginate(rows, 99, 4).page, 3)
        self.assertEqual(paginate(rows, 0, 4).page, 1)
        empty = paginate([], 5)
        self.assertEqual((empty.page, empty.total_pages, empty.rows), (1, 0, []))

    def test_build_view_runs_filter_sort_paginate(self):
        query = ViewQuery(search="o", sort=SortSpec("name"), page=1, page_size=2)
        page = build_view(sample(), query)
        self.assertEqual(page.total_rows, 3)
        self.assertEqual(names(page.rows), ["Ada", "Barbara"])


class DebouncerTests(unittest.TestCase):
    def test_commits_after_quiet_window(self):
        now = [0.0]
        debouncer = SearchDebouncer(delay=0.3, clock=lambda: now[0])
        debouncer.update("a")
        now[0] = 0.1
        debouncer.update("ab")
        now[0] = 0.3
        self.assertEqual(debouncer.poll(), "")
        self.assertTrue(debouncer.is_pending)
        now[0] = 0.5
        self.assertEqual(debouncer.poll(), "ab")
        self.assertFalse(debouncer.is_pending)

    def test_cancel_drops_pending_term(self):
        now = [0.0]
        debouncer = SearchDebouncer(clock=lambda: now[0])
        debouncer.update("x")
        debouncer.cancel()
        now[0] = 5.0
        self.assertEqual(debouncer.poll(), "")


if __name__ == "__main__":
    unittest.main()
