import unittest

import numpy as np
import pandas as pd

from sheet_profiler.table import Row, Table


class TableTests(unittest.TestCase):
    def test_from_records_assigns_ids_and_union_columns(self):
        table = Table.from_records([{"a": 1}, {"b": "x", "a": 2}])
        self.assertEqual(table.columns, ("a", "b"))
        self.assertEqual([row.row_id for row in table.rows], [0, 1])
        self.assertEqual(table.next_row_id, 2)

    def test_rows_are_values(self):
        row = Row(0, {"a": "x"})
        updated = row.with_values({"a": "y"})
        self.assertEqual(row.get("a"), "x")
        self.assertEqual(updated.get("a"), "y")
        self.assertIsNone(row.get("missing"))

    def test_lookup_by_row_id(self):
        table = Table.from_records([{"a": "x"}, {"a": "y"}])
        reordered = table.with_rows(reversed(table.rows))
        self.assertEqual(reordered.position_of(0), 1)
        self.assertEqual(reordered.row_by_id(1).get("a"), "y")
        self.assertIsNone(reordered.row_by_id(5))

    def test_next_row_id_never_goes_backwards(self):
        table = Table(("a",), (Row(7, {"a": "x"}),))
        self.assertEqual(table.next_row_id, 8)

    def test_equality_ignores_next_row_id(self):
        rows = (Row(0, {"a": "x"}),)
        self.assertEqual(Table(("a",), rows, 1), Table(("a",), rows, 10))

    def test_dataframe_bridge_maps_nan_to_empty(self):
        df = pd.DataFrame({"a": ["x", np.nan], "b": [1, 2]})
        table = Table.from_dataframe(df)
        self.assertEqual(table.columns, ("a", "b"))
        self.assertIsNone(table.rows[1].get("a"))
        self.assertEqual(table.rows[0].get("b"), 1)
        back = table.to_dataframe()
        self.assertEqual(list(back.columns), ["a", "b"])
        self.assertEqual(back["a"].tolist()[0], "x")


if __name__ == "__main__":
    unittest.main()
