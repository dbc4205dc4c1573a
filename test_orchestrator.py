# test_orchestrator.py
import re
import unittest
from typing import Dict, List
from unittest import mock

from config import GlobalConfig
from context import RunContext
from data_sources.base import CommitSource, CommitSourceError
from models import CommitInfo
from orchestrator import SyncOrchestrator
from sheets.base import CommitSheetStore, SheetsError

_RANGE = re.compile(r"^'?(?P<title>.+?)'?!(?P<cells>.+)$")


class FakeSheetStore(CommitSheetStore):
    """内存中的表格，只支持本项目用到的 A1 区域写法"""

    def __init__(self):
        self.sheets: Dict[str, List[List[str]]] = {}
        self.colors = []
        self.fail_colors = False

    @property
    def name(self):
        return "Fake"

    @staticmethod
    def _split(cell_range):
        match = _RANGE.match(cell_range)
        title = match.group("title").replace("''", "'")
        start = re.match(r"[A-Z]+(\d*)", match.group("cells")).group(1)
        return title, int(start) if start else 1

    def ensure_sheet(self, title):
        if title in self.sheets:
            return False
        self.sheets[title] = []
        return True

    def get_sheet_id(self, title):
        return list(self.sheets).index(title) if title in self.sheets else None

    def read_values(self, cell_range):
        title, start = self._split(cell_range)
        rows = self.sheets.get(title, [])[start - 1:]
        # Sheets API 会省略末尾的空行
        while rows and not any(rows[-1]):
            rows = rows[:-1]
        return [list(row) for row in rows]

    def append_values(self, cell_range, rows):
        title, _ = self._split(cell_range)
        self.sheets.setdefault(title, []).extend(list(row) for row in rows)

    def update_values(self, cell_range, rows):
        title, start = self._split(cell_range)
        sheet = self.sheets.setdefault(title, [])
        while len(sheet) < start - 1 + len(rows):
            sheet.append([])
        for offset, row in enumerate(rows):
            sheet[start - 1 + offset] = list(row)

    def clear_values(self, cell_range):
        title, _ = self._split(cell_range)
        self.sheets[title] = []

    def apply_background_color(self, sheet_id, start_row, end_row, column_count, rgb):
        if self.fail_colors:
            raise SheetsError("quota", code=429)
        self.colors.append((sheet_id, start_row, end_row, column_count, rgb))

    def describe(self):
        return {"id": "fake", "title": "Fake", "sheets": list(self.sheets), "url": "#"}


class FakeCommitSource(CommitSource):

    def __init__(self, commits: List[CommitInfo], broken=()):
        self.commits = {c.hash: c for c in commits}
        self.order = [c.hash for c in commits]
        self.broken = set(broken)

    @property
    def name(self):
        return "FakeSource"

    def validate(self):
        return True

    def get_commit(self, commit_id):
        if commit_id in self.broken or commit_id not in self.commits:
            raise CommitSourceError(f"no commit {commit_id}")
        return self.commits[commit_id]

    def get_recent_commit_ids(self, count):
        return self.order[:count]


def _commit(hash, files, date="2024-01-01T00:00:00Z"):
    return CommitInfo(hash=hash, message=f"msg {hash}", author="dev", date=date, files=files)


def _context(color=None, repository_type="app"):
    return RunContext(
        repo_path="/tmp/repo",
        project_data_path="/tmp/data",
        source="local",
        repository_type=repository_type,
        color=color,
        no_browser=True,
        global_config=GlobalConfig(),
    )


class TestSyncOrchestrator(unittest.TestCase):

    def setUp(self):
        self.store = FakeSheetStore()
        # 新提交在前
        self.source = FakeCommitSource(
            [
                _commit("c3", ["db/x.sql"], "2024-03-01T00:00:00Z"),
                _commit("c2", [], "2024-02-01T00:00:00Z"),
                _commit("c1", ["db/x.sql", "db/y.sql"], "2024-01-01T00:00:00Z"),
            ]
        )
        self.orchestrator = SyncOrchestrator(_context(), self.store, self.source)

    def _commits_sheet(self):
        return self.store.sheets["Commits"]

    def test_initialize_sheet_writes_headers_once(self):
        self.assertTrue(self.orchestrator.initialize_sheet())
        self.assertEqual(self._commits_sheet(), [GlobalConfig.COMMITS_HEADERS])
        self.assertFalse(self.orchestrator.initialize_sheet())
        self.assertEqual(len(self._commits_sheet()), 1)

    def test_add_commit_appends_rows(self):
        self.orchestrator.initialize_sheet()
        written = self.orchestrator.add_commit(_commit("h1", ["a.vb", "b.sql"]))
        self.assertEqual(written, 2)
        rows = self._commits_sheet()[1:]
        self.assertEqual([row[4] for row in rows], ["a.vb", "b.sql"])
        self.assertEqual([row[6] for row in rows], ["Application", "Application"])
        # 默认白色不着色
        self.assertEqual(self.store.colors, [])

    def test_add_commit_colors_new_rows(self):
        self.orchestrator.initialize_sheet()
        self.orchestrator.add_commit(_commit("h1", ["a"]))
        self.orchestrator.add_commit(_commit("h2", ["b", "c"]), repository_type="bd", color="#FF0000")
        self.assertEqual(len(self.store.colors), 1)
        sheet_id, start, end, columns, rgb = self.store.colors[0]
        self.assertEqual((start, end, columns), (2, 4, 8))
        self.assertEqual(rgb, {"red": 1.0, "green": 0.0, "blue": 0.0})
        self.assertEqual(self._commits_sheet()[2][6], "Database")

    def test_add_commit_to_empty_sheet_starts_after_header_row(self):
        self.orchestrator.add_commit(_commit("h1", ["a"]), color="#00FF00")
        self.assertEqual(self.store.colors[0][1:3], (1, 2))

    def test_context_color_is_used_by_default(self):
        orchestrator = SyncOrchestrator(_context(color="#123456"), self.store, self.source)
        orchestrator.initialize_sheet()
        orchestrator.add_commit(_commit("h1", ["a"]))
        self.assertEqual(len(self.store.colors), 1)

    def test_color_failure_is_only_a_warning(self):
        self.store.fail_colors = True
        self.orchestrator.initialize_sheet()
        written = self.orchestrator.add_commit(_commit("h1", ["a"]), color="#FF0000")
        self.assertEqual(written, 1)
        self.assertEqual(len(self._commits_sheet()), 2)

    def test_sync_commit_and_last_commit(self):
        self.orchestrator.initialize_sheet()
        self.assertEqual(self.orchestrator.sync_commit("c1").hash, "c1")
        self.assertEqual(self.orchestrator.sync_last_commit().hash, "c3")
        self.assertEqual([row[0] for row in self._commits_sheet()[1:]], ["c1", "c1", "c3"])

    def test_sync_commit_unknown_id(self):
        with self.assertRaises(CommitSourceError):
            self.orchestrator.sync_commit("nope")

    def test_get_recent_commits(self):
        commits = self.orchestrator.get_recent_commits(2)
        self.assertEqual([c.hash for c in commits], ["c3", "c2"])

    def test_sync_recent_commits_skips_existing(self):
        self.orchestrator.initialize_sheet()
        self.orchestrator.sync_commit("c1")

        summary = self.orchestrator.sync_recent_commits(3)
        self.assertEqual(summary.skipped, ["c1"])
        # 旧的先写
        self.assertEqual(summary.synced, ["c2", "c3"])
        self.assertEqual(summary.failed, {})
        self.assertEqual(summary.total, 3)

        hashes = [row[0] for row in self._commits_sheet()[1:]]
        self.assertEqual(hashes, ["c1", "c1", "c2", "c3"])

        again = self.orchestrator.sync_recent_commits(3)
        self.assertEqual(again.synced, [])
        self.assertEqual(len(again.skipped), 3)

    def test_sync_recent_commits_records_failures_and_continues(self):
        self.source.broken = {"c2"}
        self.orchestrator.initialize_sheet()
        summary = self.orchestrator.sync_recent_commits(3)
        self.assertEqual(summary.synced, ["c1", "c3"])
        self.assertIn("c2", summary.failed)

    def test_list_synced_commits(self):
        self.orchestrator.initialize_sheet()
        self.orchestrator.sync_recent_commits(3)
        commits = self.orchestrator.list_synced_commits()
        self.assertEqual([c.hash for c in commits], ["c1", "c2", "c3"])
        self.assertEqual(commits[0].files, ["db/x.sql", "db/y.sql"])
        self.assertEqual(commits[1].files, [])

    def test_create_unique_files_sheet(self):
        self.orchestrator.initialize_sheet()
        self.orchestrator.sync_recent_commits(3)

        records = self.orchestrator.create_unique_files_sheet()
        by_file = {r.file: r for r in records}
        self.assertEqual(by_file["db/x.sql"].commit_count, 2)
        self.assertEqual(by_file["db/x.sql"].last_commit_hash, "c3")
        self.assertEqual(by_file["db/x.sql"].first_commit_date, "2024-01-01T00:00:00Z")
        self.assertEqual(by_file["db/y.sql"].commit_count, 1)

        sheet = self.store.sheets["Unique Files"]
        self.assertEqual(sheet[0], GlobalConfig.UNIQUE_FILES_HEADERS)
        self.assertEqual(len(sheet), 3)

        # 重建时先清空旧内容
        self.store.sheets["Unique Files"].append(["stale"])
        self.orchestrator.create_unique_files_sheet()
        self.assertEqual(len(self.store.sheets["Unique Files"]), 3)

    def test_create_unique_files_sheet_without_data(self):
        records = self.orchestrator.create_unique_files_sheet()
        self.assertEqual(records, [])
        self.assertEqual(self.store.sheets["Unique Files"], [GlobalConfig.UNIQUE_FILES_HEADERS])

    def test_test_connection(self):
        self.assertEqual(self.orchestrator.test_connection()["title"], "Fake")

    def test_commit_and_sync(self):
        working_copy = mock.Mock()
        working_copy.commit.return_value = _commit("new", ["src/a.vb"])
        self.orchestrator.initialize_sheet()

        commit = self.orchestrator.commit_and_sync(working_copy, "msg", ["src/a.vb"])
        working_copy.stage.assert_called_once_with(["src/a.vb"])
        working_copy.commit.assert_called_once_with("msg")
        self.assertEqual(commit.hash, "new")
        self.assertEqual(self._commits_sheet()[1][0], "new")

    def test_commit_and_sync_without_files_skips_staging(self):
        working_copy = mock.Mock()
        working_copy.commit.return_value = _commit("new", [])
        self.orchestrator.commit_and_sync(working_copy, "msg")
        working_copy.stage.assert_not_called()

    def test_store_is_created_lazily(self):
        with mock.patch("orchestrator.get_spreadsheet_store", return_value=self.store) as factory:
            orchestrator = SyncOrchestrator(_context(), commit_source=self.source)
            orchestrator.get_recent_commits(1)
            factory.assert_not_called()
            orchestrator.test_connection()
            factory.assert_called_once()

    def test_invalid_source_from_factory_is_rejected(self):
        source = mock.Mock()
        source.validate.return_value = False
        with mock.patch("orchestrator.get_commit_source", return_value=source):
            orchestrator = SyncOrchestrator(_context(), self.store)
            with self.assertRaises(CommitSourceError):
                orchestrator.sync_last_commit()
            # 只写表格的操作不需要数据源
            orchestrator.initialize_sheet()


if __name__ == "__main__":
    unittest.main()
