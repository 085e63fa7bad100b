import unittest

from sheet_profiler.table import Table
from sheet_profiler.validation import (
    ValidationConfig,
    invalid_rows_table,
    looks_like_email,
    validate_table,
)


def contacts() -> Table:
    return Table.from_records(
        [
            {"id": "1", "email": "ada@example.com"},
            {"id": "2", "email": "grace@example"},
            {"id": "1", "email": "bad email@example.com"},
            {"id": "3", "email": ""},
            {"id": "", "email": "ken@example.org"},
            {"id": "", "email": "linus@example.org"},
        ]
    )


class ValidationTests(unittest.TestCase):
    def test_both_checks_in_scan_order(self):
        config = ValidationConfig(True, "id", True, "email")
        issues = validate_table(contacts(), config)
        self.assertEqual(
            [(issue.row_number, issue.reason) for issue in issues],
            [
                (2, "Invalid Email: grace@example"),
                (3, "Duplicate ID: 1"),
                (3, "Invalid Email: bad email@example.com"),
                (6, "Duplicate ID: "),
            ],
        )

    def test_checks_need_enable_flag_and_column(self):
        self.assertEqual(validate_table(contacts(), ValidationConfig(True, "", True, "")), [])
        self.assertEqual(validate_table(contacts(), ValidationConfig(False, "id", False, "email")), [])

    def test_duplicate_ids_compare_raw_values(self):
        table = Table.from_records([{"id": 1}, {"id": "1"}, {"id": 1}])
        issues = validate_table(table, ValidationConfig(check_unique_id=True, id_column="id"))
        self.assertEqual([issue.row_number for issue in issues], [3])

    def test_email_pattern(self):
        self.assertTrue(looks_like_email("a@b.co"))
        for value in ["a@b", "a b@c.d", "@b.co", "a@@b.co"]:
            with self.subTest(value=value):
                self.assertFalse(looks_like_email(value))

    def test_invalid_rows_table_has_one_row_per_issue(self):
        table = contacts()
        issues = validate_table(table, ValidationConfig(True, "id", True, "email"))
        offending = invalid_rows_table(table, issues)
        self.assertEqual(offending.columns, table.columns)
        self.assertEqual(len(offending), 4)
        self.assertEqual(offending.rows[1].values, offending.rows[2].values)
        self.assertEqual([row.row_id for row in offending.rows], [0, 1, 2, 3])
        self.assertEqual(offending.position_of(2), 2)

    def test_issue_to_dict(self):
        issues = validate_table(contacts(), ValidationConfig(check_email=True, email_column="email"))
        self.assertEqual(
            issues[0].to_dict(),
            {"row": 2, "reason": "Invalid Email: grace@example", "data": {"id": "2", "email": "grace@example"}},
        )


if __name__ == "__main__":
    unittest.main()
