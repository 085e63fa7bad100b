import unittest
from datetime import date

from sheet_profiler.column_detector import scan_for_date_columns
from sheet_profiler.dates import (
    TARGET_LAYOUTS,
    DateLayout,
    apply_date_normalization,
    apply_format,
    parse_candidate,
    resolve_layout,
    resolve_target_layout,
)
from sheet_profiler.table import Table


class ParseCandidateTests(unittest.TestCase):
    def test_layouts_are_tried_in_order(self):
        cases = [
            ("2023-01-05", date(2023, 1, 5), DateLayout.ISO),
            ("01/02/2023", date(2023, 2, 1), DateLayout.DAY_FIRST_SLASH),
            ("12/31/2023", date(2023, 12, 31), DateLayout.MONTH_FIRST_SLASH),
            ("31-12-2023", date(2023, 12, 31), DateLayout.DAY_FIRST_HYPHEN),
            ("31.12.2023", date(2023, 12, 31), DateLayout.DAY_FIRST_DOT),
            ("2023/12/31", date(2023, 12, 31), DateLayout.YEAR_FIRST_SLASH),
            ("Dec 31, 2023", date(2023, 12, 31), DateLayout.VERBOSE),
            ("dec 31, 2023", date(2023, 12, 31), DateLayout.VERBOSE),
            ("1/2/2023", date(2023, 2, 1), DateLayout.DAY_FIRST_SLASH),
            (" 2023-01-05 ", date(2023, 1, 5), DateLayout.ISO),
        ]
        for text, expected, layout in cases:
            with self.subTest(text=text):
                parsed = parse_candidate(text)
                self.assertIsNotNone(parsed)
                self.assertEqual(parsed.value, expected)
                self.assertIs(parsed.layout, layout)

    def test_year_bounds_are_exclusive(self):
        self.assertIsNone(parse_candidate("1900-06-01"))
        self.assertIsNone(parse_candidate("2100-01-01"))
        self.assertIsNotNone(parse_candidate("1901-01-01"))
        self.assertIsNotNone(parse_candidate("2099-12-31"))

    def test_rejections(self):
        for value in ["", None, "   ", "20230105", "42", "2023-02-30", "not a date", "Foo 01, 2023", "05/01/23", 20230105,
                      "\u0662\u0660\u0662\u0663-\u0660\u0661-\u0660\u0665"]:
            with self.subTest(value=value):
                self.assertIsNone(parse_candidate(value))


class ApplyFormatTests(unittest.TestCase):
    def test_zero_padded_targets(self):
        value = date(2023, 1, 5)
        expected = {
            DateLayout.ISO: "2023-01-05",
            DateLayout.MONTH_FIRST_SLASH: "01/05/2023",
            DateLayout.DAY_FIRST_SLASH: "05/01/2023",
            DateLayout.DAY_FIRST_HYPHEN: "05-01-2023",
            DateLayout.VERBOSE: "Jan 05, 2023",
        }
        for layout, text in expected.items():
            with self.subTest(layout=layout):
                self.assertEqual(apply_format(value, layout), text)

    def test_every_target_parses_back(self):
        value = date(2023, 12, 31)
        for layout in TARGET_LAYOUTS:
            with self.subTest(layout=layout):
                self.assertEqual(parse_candidate(apply_format(value, layout)).value, value)

    def test_padded_input_reformats_to_itself_in_its_own_layout(self):
        cases = [
            ("2023-01-05", DateLayout.ISO),
            ("05/01/2023", DateLayout.DAY_FIRST_SLASH),
            ("12/31/2023", DateLayout.MONTH_FIRST_SLASH),
            ("05-01-2023", DateLayout.DAY_FIRST_HYPHEN),
            ("05.01.2023", DateLayout.DAY_FIRST_DOT),
            ("2023/01/05", DateLayout.YEAR_FIRST_SLASH),
            ("Jan 05, 2023", DateLayout.VERBOSE),
        ]
        for text, layout in cases:
            with self.subTest(text=text):
                parsed = parse_candidate(text)
                self.assertIs(parsed.layout, layout)
                self.assertEqual(apply_format(parsed.value, parsed.layout), text)

    def test_layout_names_resolve(self):
        self.assertIs(resolve_layout("iso"), DateLayout.ISO)
        self.assertIs(resolve_layout("MM/dd/yyyy"), DateLayout.MONTH_FIRST_SLASH)
        with self.assertRaises(ValueError):
            resolve_layout("yyyy.MM.dd")

    def test_only_target_layouts_are_accepted_for_output(self):
        self.assertIs(resolve_target_layout("verbose"), DateLayout.VERBOSE)
        for layout in [DateLayout.DAY_FIRST_DOT, "yyyy/MM/dd"]:
            with self.subTest(layout=layout):
                with self.assertRaisesRegex(ValueError, "not an output date layout"):
                    resolve_target_layout(layout)
        with self.assertRaises(ValueError):
            apply_date_normalization(Table.from_records([{"d": "2023-01-05"}]), ["d"], "dd.MM.yyyy")


class NormalizationTests(unittest.TestCase):
    def setUp(self):
        self.table = Table.from_records(
            [
                {"joined": "2023-01-05", "name": "Ada"},
                {"joined": "05/01/2023", "name": "Grace"},
                {"joined": "junk", "name": "Linus"},
                {"joined": "", "name": "Ken"},
            ]
        )

    def test_counts_and_passthrough(self):
        result = apply_date_normalization(self.table, ["joined"], DateLayout.ISO)
        self.assertEqual(result.table.column_values("joined"), ["2023-01-05", "2023-01-05", "junk", ""])
        self.assertEqual((result.changed, result.parsed, result.unparsed), (1, 2, 1))
        self.assertEqual(self.table.column_values("joined")[1], "05/01/2023")

    def test_unknown_columns_are_ignored(self):
        result = apply_date_normalization(self.table, ["missing"], DateLayout.ISO)
        self.assertEqual(result.table.rows, self.table.rows)
        self.assertEqual(result.changed, 0)

    def test_scan_offers_date_and_mixed_columns(self):
        table = Table.from_records(
            [
                {"a": "2023-01-05", "b": "x", "c": "2023-01-05"},
                {"a": "2023-01-06", "b": "y", "c": "2023-01-06"},
            ]
        )
        self.assertEqual(scan_for_date_columns(table), ["a", "c"])


if __name__ == "__main__":
    unittest.main()
