# test_commit_history.py
import unittest
from datetime import datetime, timezone

from commit_history import (
    DEFAULT_SENTINEL,
    aggregate_unique_files,
    group_rows_by_commit,
    parse_commit_date,
)
from models import CommitFileRow


def _row(hash, date, file, label="Application", message=None, author="dev"):
    return CommitFileRow(
        hash=hash,
        message=message or f"msg {hash}",
        author=author,
        date=date,
        file=file,
        file_type="SQL File (.sql)",
        repository_label=label,
    )


class TestParseCommitDate(unittest.TestCase):

    def test_iso_strict(self):
        parsed = parse_commit_date("2024-01-15T10:30:00+01:00")
        self.assertEqual(parsed, datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc))

    def test_git_iso_with_blank_before_offset(self):
        self.assertEqual(
            parse_commit_date("2024-01-15 10:30:00 +0100"),
            parse_commit_date("2024-01-15T10:30:00+01:00"),
        )

    def test_naive_means_utc(self):
        self.assertEqual(
            parse_commit_date("2024-01-01"), datetime(2024, 1, 1, tzinfo=timezone.utc)
        )
        self.assertEqual(
            parse_commit_date("2024-02-01T08:00:00Z"),
            datetime(2024, 2, 1, 8, tzinfo=timezone.utc),
        )

    def test_unparseable(self):
        self.assertIsNone(parse_commit_date(""))
        self.assertIsNone(parse_commit_date("   "))
        self.assertIsNone(parse_commit_date("last tuesday"))


class TestGroupRowsByCommit(unittest.TestCase):

    def test_end_to_end_grouping(self):
        rows = [
            _row("h1", "2024-01-01", "x.sql"),
            _row("h1", "2024-01-01", "y.sql"),
            _row("h2", "2024-02-01", "x.sql"),
        ]
        commits = group_rows_by_commit(rows)
        self.assertEqual([c.hash for c in commits], ["h1", "h2"])
        self.assertEqual(commits[0].files, ["x.sql", "y.sql"])
        self.assertEqual(commits[1].files, ["x.sql"])
        self.assertEqual(commits[0].message, "msg h1")
        self.assertEqual(commits[0].repository_label, "Application")

    def test_sentinel_keeps_commit_without_files(self):
        rows = [_row("h1", "2024-01-01", DEFAULT_SENTINEL), _row("h2", "2024-01-02", "a.vb")]
        commits = group_rows_by_commit(rows)
        self.assertEqual([c.hash for c in commits], ["h1", "h2"])
        self.assertEqual(commits[0].files, [])

    def test_interleaved_rows_keep_first_seen_order(self):
        rows = [
            _row("h2", "2024-01-02", "a"),
            _row("h1", "2024-01-01", "b"),
            _row("h2", "2024-01-02", "c"),
        ]
        commits = group_rows_by_commit(rows)
        self.assertEqual([c.hash for c in commits], ["h2", "h1"])
        self.assertEqual(commits[0].files, ["a", "c"])

    def test_empty(self):
        self.assertEqual(group_rows_by_commit([]), [])


class TestAggregateUniqueFiles(unittest.TestCase):

    def test_end_to_end_aggregation(self):
        rows = [
            _row("h1", "2024-01-01", "x.sql"),
            _row("h1", "2024-01-01", "y.sql"),
            _row("h2", "2024-02-01", "x.sql"),
        ]
        records = {r.file: r for r in aggregate_unique_files(rows)}
        self.assertEqual(set(records), {"x.sql", "y.sql"})

        x = records["x.sql"]
        self.assertEqual(x.commit_count, 2)
        self.assertEqual(x.last_commit_hash, "h2")
        self.assertEqual(x.last_commit_message, "msg h2")
        self.assertEqual(x.last_commit_date, "2024-02-01")
        self.assertEqual(x.first_commit_date, "2024-01-01")

        self.assertEqual(records["y.sql"].commit_count, 1)

    def test_row_order_does_not_change_bounds(self):
        rows = [
            _row("h3", "2024-03-01", "x.sql"),
            _row("h1", "2024-01-01", "x.sql"),
            _row("h2", "2024-02-01", "x.sql"),
        ]
        (record,) = aggregate_unique_files(rows)
        self.assertEqual(record.last_commit_hash, "h3")
        self.assertEqual(record.first_commit_date, "2024-01-01")
        self.assertEqual(record.commit_count, 3)

    def test_same_file_in_two_repositories_is_two_records(self):
        rows = [
            _row("h1", "2024-01-01", "shared.sql", label="Database"),
            _row("h2", "2024-01-02", "shared.sql", label="Application"),
        ]
        records = aggregate_unique_files(rows)
        self.assertEqual(
            [(r.repository_label, r.file) for r in records],
            [("Application", "shared.sql"), ("Database", "shared.sql")],
        )

    def test_sentinel_rows_are_excluded(self):
        rows = [_row("h1", "2024-01-01", DEFAULT_SENTINEL), _row("h2", "2024-01-02", "")]
        self.assertEqual(aggregate_unique_files(rows), [])

    def test_unparseable_dates_never_win(self):
        rows = [
            _row("bad", "not a date", "x.sql"),
            _row("good", "2024-01-05T00:00:00Z", "x.sql"),
            _row("worse", "??", "x.sql"),
        ]
        (record,) = aggregate_unique_files(rows)
        self.assertEqual(record.last_commit_hash, "good")
        self.assertEqual(record.first_commit_date, "2024-01-05T00:00:00Z")
        self.assertEqual(record.commit_count, 3)

    def test_mixed_offsets_compare_by_instant(self):
        rows = [
            _row("early", "2024-01-01T10:00:00+02:00", "x.sql"),
            _row("late", "2024-01-01 09:30:00 +0000", "x.sql"),
        ]
        (record,) = aggregate_unique_files(rows)
        self.assertEqual(record.last_commit_hash, "late")
        self.assertEqual(record.first_commit_date, "2024-01-01T10:00:00+02:00")

    def test_bounds_invariant(self):
        rows = [
            _row(f"h{i}", f"2024-0{1 + i % 9}-1{i % 10}T00:00:00Z", f"f{i % 3}.sql")
            for i in range(30)
        ]
        for record in aggregate_unique_files(rows):
            self.assertLessEqual(
                parse_commit_date(record.first_commit_date),
                parse_commit_date(record.last_commit_date),
            )
            expected = sum(1 for r in rows if r.file == record.file)
            self.assertEqual(record.commit_count, expected)


if __name__ == "__main__":
    unittest.main()
