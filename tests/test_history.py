import unittest
from datetime import datetime, timedelta, timezone

from sheet_profiler.history import History
from sheet_profiler.table import Table


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


def numbered(n: int) -> Table:
    return Table.from_records([{"n": str(i)} for i in range(n)])


class HistoryTests(unittest.TestCase):
    def test_keeps_only_the_newest_five(self):
        history = History()
        tables = [numbered(i) for i in range(7)]
        for table in tables:
            history.push(table)
        self.assertEqual(len(history), 5)
        self.assertEqual([entry.table for entry in history.entries], tables[2:])

    def test_undo_pops_latest_then_returns_none(self):
        history = History()
        first, second = numbered(1), numbered(2)
        history.push(first)
        history.push(second)
        self.assertIs(history.undo().table, second)
        self.assertIs(history.undo().table, first)
        self.assertIsNone(history.undo())
        self.assertFalse(history)

    def test_timestamps_come_from_the_clock(self):
        history = History(clock=FakeClock())
        a = history.push(numbered(1))
        b = history.push(numbered(1))
        self.assertLess(a.timestamp, b.timestamp)

    def test_limit_must_be_positive(self):
        with self.assertRaises(ValueError):
            History(limit=0)

    def test_clear(self):
        history = History()
        history.push(numbered(1))
        history.clear()
        self.assertEqual(len(history), 0)


if __name__ == "__main__":
    unittest.main()
