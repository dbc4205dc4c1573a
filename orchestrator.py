# orchestrator.py
"""
[V1.0] 同步业务编排器
- 提交数据源 (local / azure / github) -> 电子表格存储
- [V1.1] 批量同步最近提交，已存在的提交自动跳过
- [V1.2] 唯一文件表 (按文件聚合提交历史)
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from context import RunContext
from models import CommitInfo, UniqueFileRecord
from commit_history import aggregate_unique_files, group_rows_by_commit
from data_sources.base import CommitSource, CommitSourceError
from data_sources.factory import get_commit_source
from sheets.base import CommitSheetStore, SheetsError
from sheets import layout
from sheets.factory import get_spreadsheet_store
from working_copy import WorkingCopyService

logger = logging.getLogger(__name__)


@dataclass
class SyncSummary:
    """批量同步结果"""

    synced: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.synced) + len(self.skipped) + len(self.failed)


class SyncOrchestrator:
    """
    负责把提交写入电子表格，以及从表格读回历史。
    store 和 commit_source 可由调用方注入，未注入时在首次使用时通过工厂创建。
    """

    def __init__(
        self,
        context: RunContext,
        store: Optional[CommitSheetStore] = None,
        commit_source: Optional[CommitSource] = None,
    ):
        self.context = context
        self.global_config = context.global_config
        self._store = store
        self._commit_source = commit_source
        logger.info("✅ SyncOrchestrator 已初始化")

    @property
    def store(self) -> CommitSheetStore:
        # 只读取提交的命令不需要表格凭证
        if self._store is None:
            self._store = get_spreadsheet_store(self.global_config)
        return self._store

    @property
    def commit_source(self) -> CommitSource:
        # 只操作表格的命令不需要数据源
        if self._commit_source is None:
            source = get_commit_source(self.context)
            if not source.validate():
                raise CommitSourceError(f"数据源验证失败: {source.name}")
            self._commit_source = source
        return self._commit_source

    def _commits_range(self, cells: str) -> str:
        return layout.sheet_range(self.global_config.COMMITS_SHEET, cells)

    # --- 表格初始化 ---

    def initialize_sheet(self) -> bool:
        """确保 Commits 表存在，第一行为空时写入表头"""
        title = self.global_config.COMMITS_SHEET
        if self.store.ensure_sheet(title):
            logger.info(f'✅ [Sheets] 已创建工作表 "{title}"')

        first_row = self.store.read_values(self._commits_range("A1:H1"))
        if first_row and any(cell for cell in first_row[0]):
            logger.info("ℹ️ [Sheets] 表头已存在，跳过")
            return False

        self.store.update_values(
            self._commits_range("A1:H1"), [list(self.global_config.COMMITS_HEADERS)]
        )
        logger.info("✅ [Sheets] 表头已写入")
        return True

    # --- 写入 ---

    def add_commit(
        self,
        commit: CommitInfo,
        repository_type: Optional[str] = None,
        color: Optional[str] = None,
    ) -> int:
        """追加一个提交的所有行，返回写入的行数"""
        repository_type = repository_type or self.context.repository_type
        color = color or self.context.color or self.global_config.DEFAULT_ROW_COLOR

        existing = self.store.read_values(self._commits_range("A:A"))
        start_row = max(len(existing), 1)

        rows = layout.build_commit_rows(commit, repository_type, self.global_config)
        self.store.append_values(self._commits_range("A:H"), rows)
        logger.info(
            f"✅ [Sheets] 提交 {commit.short_hash} 已写入 {len(rows)} 行 "
            f"({self.global_config.repository_label(repository_type)})"
        )

        if color.strip().upper() != self.global_config.DEFAULT_ROW_COLOR:
            self._color_rows(start_row, start_row + len(rows), color)
        return len(rows)

    def _color_rows(self, start_row: int, end_row: int, color: str):
        try:
            sheet_id = self.store.get_sheet_id(self.global_config.COMMITS_SHEET)
            if sheet_id is None:
                logger.warning("⚠️ [Sheets] 找不到 Commits 表，跳过着色")
                return
            rgb = layout.hex_to_rgb(color, self.global_config.FALLBACK_ROW_RGB)
            self.store.apply_background_color(
                sheet_id, start_row, end_row, layout.COMMITS_COLUMN_COUNT, rgb
            )
        except SheetsError as e:
            logger.warning(f"⚠️ [Sheets] 行着色失败 (数据已写入): {e}")

    def sync_commit(self, commit_id: str) -> CommitInfo:
        commit = self.commit_source.get_commit(commit_id)
        self.add_commit(commit)
        return commit

    def sync_last_commit(self) -> CommitInfo:
        commit = self.commit_source.get_last_commit()
        self.add_commit(commit)
        return commit

    def get_recent_commits(self, count: Optional[int] = None) -> List[CommitInfo]:
        count = count or self.global_config.DEFAULT_RECENT_COUNT
        ids = self.commit_source.get_recent_commit_ids(count)
        return [self.commit_source.get_commit(commit_id) for commit_id in ids]

    def _synced_hashes(self) -> set:
        values = self.store.read_values(self._commits_range("A2:A"))
        return {row[0] for row in values if row and row[0]}

    def sync_recent_commits(self, count: Optional[int] = None) -> SyncSummary:
        """
        同步最近的 count 个提交。
        表格中已存在的提交跳过；单个提交失败只记录，不中断批次。
        """
        count = count or self.global_config.DEFAULT_RECENT_COUNT
        summary = SyncSummary()
        ids = self.commit_source.get_recent_commit_ids(count)
        already_synced = self._synced_hashes()

        # 旧的先写，保持表格中的时间顺序
        for commit_id in reversed(ids):
            if commit_id in already_synced:
                summary.skipped.append(commit_id)
                continue
            try:
                commit = self.commit_source.get_commit(commit_id)
                self.add_commit(commit)
                summary.synced.append(commit_id)
            except (CommitSourceError, SheetsError) as e:
                logger.error(f"❌ 同步提交 {commit_id[:7]} 失败: {e}")
                summary.failed[commit_id] = str(e)

        logger.info(
            f"📊 同步完成: 新增 {len(summary.synced)}, 跳过 {len(summary.skipped)}, "
            f"失败 {len(summary.failed)}"
        )
        return summary

    # --- 读取 ---

    def _read_rows(self):
        values = self.store.read_values(self._commits_range("A2:H"))
        return layout.rows_from_values(
            values, default_label=self.global_config.repository_label("app")
        )

    def list_synced_commits(self) -> List[CommitInfo]:
        commits = group_rows_by_commit(
            self._read_rows(), self.global_config.NO_FILES_SENTINEL
        )
        logger.info(f"📊 [Sheets] 表格中共有 {len(commits)} 个提交")
        return commits

    def create_unique_files_sheet(self) -> List[UniqueFileRecord]:
        """重建 "Unique Files" 表，返回写入的记录"""
        records = aggregate_unique_files(
            self._read_rows(), self.global_config.NO_FILES_SENTINEL
        )
        title = self.global_config.UNIQUE_FILES_SHEET
        if not self.store.ensure_sheet(title):
            self.store.clear_values(layout.sheet_range(title, "A:I"))

        values = layout.unique_file_values(
            records, self.global_config.UNIQUE_FILES_HEADERS
        )
        self.store.update_values(layout.sheet_range(title, "A1"), values)
        if not records:
            logger.info(f'ℹ️ [Sheets] 没有文件数据，"{title}" 只写入了表头')
        else:
            logger.info(f'✅ [Sheets] "{title}" 已写入 {len(records)} 个文件')
        return records

    def test_connection(self) -> Dict[str, Any]:
        info = self.store.describe()
        logger.info(f"✅ [Sheets] 已连接: {info.get('title')}")
        return info

    # --- 本地工作区 ---

    def commit_and_sync(
        self,
        working_copy: WorkingCopyService,
        message: str,
        files: Optional[List[str]] = None,
    ) -> CommitInfo:
        """暂存 (可选) -> 提交 -> 写入表格"""
        if files:
            working_copy.stage(files)
        commit = working_copy.commit(message)
        self.add_commit(commit)
        return commit
