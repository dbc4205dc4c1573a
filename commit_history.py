# commit_history.py
"""
[V1.0] 提交历史聚合
表格中的数据是 "一行一个 (提交, 文件)"，这里负责两种还原方式:
- 按提交分组: 用于列出已同步的提交
- 按文件分组: 用于生成 "唯一文件" 报告
"""
import logging
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from dateutil import parser as date_parser

from models import CommitFileRow, CommitInfo, UniqueFileRecord

logger = logging.getLogger(__name__)

DEFAULT_SENTINEL = "(no files)"

# git --date=iso 输出为 "2024-01-15 10:30:00 +0100"，偏移量前的空格需要去掉
_OFFSET_GAP = re.compile(r"\s+(?=[+-]\d{2}:?\d{2}$)")


def parse_commit_date(value: str) -> Optional[datetime]:
    """
    按 ISO-8601 解析提交日期。无时区的时间视为 UTC；无法解析时返回 None。
    """
    if not value or not value.strip():
        return None
    text = _OFFSET_GAP.sub("", value.strip())
    try:
        parsed = date_parser.isoparse(text)
    except (ValueError, TypeError, OverflowError):
        logger.warning(f"⚠️ 无法解析提交日期: '{value}'")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _is_later(candidate: Optional[datetime], current: Optional[datetime]) -> bool:
    # 可解析的日期总是优先于无法解析的日期；相等时保留先出现的
    if candidate is None:
        return False
    if current is None:
        return True
    return candidate > current


def _is_earlier(candidate: Optional[datetime], current: Optional[datetime]) -> bool:
    if candidate is None:
        return False
    if current is None:
        return True
    return candidate < current


def is_real_file(file: str, sentinel: str = DEFAULT_SENTINEL) -> bool:
    return bool(file) and file != sentinel


def group_rows_by_commit(
    rows: List[CommitFileRow], sentinel: str = DEFAULT_SENTINEL
) -> List[CommitInfo]:
    """
    按 hash 分组，还原提交列表 (保持首次出现的顺序)。
    占位行只保留提交本身，不会出现在 files 中。
    """
    commits: Dict[str, CommitInfo] = {}
    for row in rows:
        commit = commits.get(row.hash)
        if commit is None:
            commit = CommitInfo(
                hash=row.hash,
                message=row.message,
                author=row.author,
                date=row.date,
                files=[],
                repository_label=row.repository_label,
            )
            commits[row.hash] = commit
        if is_real_file(row.file, sentinel):
            commit.files.append(row.file)
    return list(commits.values())


class _FileHistory:
    """单个 (file, repository_label) 的累计状态"""

    def __init__(self, row: CommitFileRow, parsed_date: Optional[datetime]):
        self.file = row.file
        self.file_type = row.file_type
        self.repository_label = row.repository_label
        self.last_row = row
        self.last_date = parsed_date
        self.first_commit_date = row.date
        self.first_date = parsed_date
        self.commit_count = 1

    def add(self, row: CommitFileRow, parsed_date: Optional[datetime]):
        self.commit_count += 1
        if _is_later(parsed_date, self.last_date):
            self.last_row = row
            self.last_date = parsed_date
        if _is_earlier(parsed_date, self.first_date):
            self.first_commit_date = row.date
            self.first_date = parsed_date

    def to_record(self) -> UniqueFileRecord:
        return UniqueFileRecord(
            file=self.file,
            file_type=self.file_type,
            repository_label=self.repository_label,
            last_commit_hash=self.last_row.hash,
            last_commit_message=self.last_row.message,
            last_commit_author=self.last_row.author,
            last_commit_date=self.last_row.date,
            first_commit_date=self.first_commit_date,
            commit_count=self.commit_count,
        )


def aggregate_unique_files(
    rows: List[CommitFileRow], sentinel: str = DEFAULT_SENTINEL
) -> List[UniqueFileRecord]:
    """
    按 (file, repository_label) 去重，统计触及次数、最早和最近一次修改。
    结果按仓库、文件名排序。
    """
    histories: Dict[Tuple[str, str], _FileHistory] = {}
    for row in rows:
        if not is_real_file(row.file, sentinel):
            continue
        key = (row.file, row.repository_label)
        parsed_date = parse_commit_date(row.date)
        history = histories.get(key)
        if history is None:
            histories[key] = _FileHistory(row, parsed_date)
        else:
            history.add(row, parsed_date)

    records = [history.to_record() for history in histories.values()]
    records.sort(key=lambda record: (record.repository_label, record.file))
    logger.info(f"📊 从 {len(rows)} 行中聚合出 {len(records)} 个唯一文件")
    return records
