import unittest

from sheet_profiler.dedupe import WHOLE_ROW, resolve_duplicates, scan_duplicates
from sheet_profiler.table import Row, Table


def people() -> Table:
    return Table.from_records(
        [
            {"id": "1", "name": "Ada", "team": "core"},
            {"id": "2", "name": "Grace", "team": "core"},
            {"id": "1", "name": "Ada", "team": "core"},
            {"id": "3", "name": "Linus", "team": "infra"},
            {"id": "2", "name": "Grace H", "team": "core"},
        ]
    )


class ScanTests(unittest.TestCase):
    def test_whole_row_and_column_keys(self):
        table = people()
        self.assertEqual(scan_duplicates(table, WHOLE_ROW), 1)
        self.assertEqual(scan_duplicates(table, "id"), 2)
        self.assertEqual(scan_duplicates(table, "team"), 3)

    def test_missing_none_and_blank_are_one_empty(self):
        table = Table(
            ("a", "b"),
            (
                Row(0, {"a": "x"}),
                Row(1, {"a": "x", "b": None}),
                Row(2, {"a": "x", "b": ""}),
            ),
        )
        self.assertEqual(scan_duplicates(table), 2)

    def test_column_key_compares_stringified_values(self):
        table = Table.from_records([{"id": 1}, {"id": "1"}, {"id": 1.0}])
        self.assertEqual(scan_duplicates(table, "id"), 2)

    def test_whole_row_keeps_number_and_text_apart(self):
        table = Table.from_records([{"id": 1}, {"id": "1"}])
        self.assertEqual(scan_duplicates(table), 0)


class ResolveTests(unittest.TestCase):
    def test_keep_first(self):
        resolved = resolve_duplicates(people(), "id", "first")
        self.assertEqual(resolved.column_values("name"), ["Ada", "Grace", "Linus"])
        self.assertEqual([row.row_id for row in resolved.rows], [0, 1, 3])

    def test_keep_last_preserves_relative_order(self):
        resolved = resolve_duplicates(people(), "id", "last")
        self.assertEqual([row.row_id for row in resolved.rows], [2, 3, 4])
        self.assertEqual(resolved.column_values("name"), ["Ada", "Linus", "Grace H"])

    def test_resolved_table_has_no_duplicates_and_expected_size(self):
        table = people()
        for key in (WHOLE_ROW, "id", "team"):
            for strategy in ("first", "last"):
                with self.subTest(key=key, strategy=strategy):
                    resolved = resolve_duplicates(table, key, strategy)
                    self.assertEqual(scan_duplicates(resolved, key), 0)
                    self.assertEqual(len(resolved), len(table) - scan_duplicates(table, key))

    def test_unknown_strategy(self):
        with self.assertRaises(ValueError):
            resolve_duplicates(people(), "id", "middle")


if __name__ == "__main__":
    unittest.main()
