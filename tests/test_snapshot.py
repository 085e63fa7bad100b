import json
import unittest

from sheet_profiler.snapshot import deserialize, serialize
from sheet_profiler.table import Row, Table


class SnapshotTests(unittest.TestCase):
    def test_round_trip_keeps_columns_rows_and_kinds(self):
        table = Table(
            ("name", "score", "note"),
            (
                Row(0, {"name": "Ada", "score": 10, "note": None}),
                Row(1, {"name": "Grace", "score": 2.5}),
            ),
        )
        restored = deserialize(serialize(table))
        self.assertEqual(restored.columns, table.columns)
        self.assertEqual(restored.records(), table.records())

    def test_empty_table_keeps_columns(self):
        restored = deserialize(serialize(Table.empty(["a", "b"])))
        self.assertEqual(restored.columns, ("a", "b"))
        self.assertEqual(len(restored), 0)

    def test_payload_carries_contract(self):
        payload = json.loads(serialize(Table.empty()))
        self.assertEqual(payload["contract"]["name"], "sheet_profiler.snapshot")

    def test_bare_array_is_accepted(self):
        restored = deserialize('[{"a": "x"}, {"b": 1}]')
        self.assertEqual(restored.columns, ("a", "b"))
        self.assertEqual(len(restored), 2)

    def test_corrupt_input_yields_empty_table(self):
        for blob in [None, "", "{oops", "42", '{"rows": []}', '[1, 2]', '[{"a": {"nested": 1}}]',
                     '{"contract": {"name": "other"}, "columns": [], "rows": []}',
                     "[" * 100000 + "]" * 100000]:
            with self.subTest(blob=blob):
                restored = deserialize(blob)
                self.assertEqual(restored.columns, ())
                self.assertEqual(len(restored), 0)


if __name__ == "__main__":
    unittest.main()
