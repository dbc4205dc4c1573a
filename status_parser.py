# status_parser.py
"""
[V1.0] git status --porcelain 解析器
把每一行 "XY path" 转换为 ChangeRecord，并为每个文件查询 numstat 行数统计。
"""
import logging
import concurrent.futures
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Tuple

from models import ChangeRecord

logger = logging.getLogger(__name__)

# (file, staged) -> (additions, deletions)
DiffStatLookup = Callable[[str, bool], Optional[Tuple[int, int]]]

UNTRACKED_MARK = "?"
BLANK_MARK = " "
RENAME_ARROW = " -> "


@dataclass
class StatusLine:
    """单行状态解析的中间结果 (尚未查询行数统计)"""

    index_status: str
    worktree_status: str
    file: str
    is_staged: bool
    is_untracked: bool
    has_working_changes: bool

    @property
    def status(self) -> str:
        # 同时存在暂存区和工作区变更时，以暂存区状态为准
        return self.index_status if self.is_staged else self.worktree_status

    @property
    def diff_mode(self) -> Optional[bool]:
        """需要查询的 diff 类型: True=--cached, False=工作区, None=不查询"""
        if self.is_staged:
            return True
        if self.has_working_changes and not self.is_untracked:
            return False
        return None


_C_ESCAPES = {
    "a": 0x07, "b": 0x08, "t": 0x09, "n": 0x0A,
    "v": 0x0B, "f": 0x0C, "r": 0x0D, '"': 0x22, "\\": 0x5C,
}


def unquote_path(path: str) -> str:
    """
    还原 git 输出中被 C 风格引号包裹的路径，例如 "a b.txt" 或 "\\346\\226\\207.md"。
    八进制转义是 UTF-8 字节，需要先收集再统一解码。
    """
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path
    inner = path[1:-1]
    data = bytearray()
    i = 0
    while i < len(inner):
        char = inner[i]
        if char != "\\" or i + 1 >= len(inner):
            data.extend(char.encode("utf-8"))
            i += 1
            continue
        nxt = inner[i + 1]
        octal = inner[i + 1:i + 4]
        if len(octal) == 3 and all(c in "01234567" for c in octal):
            data.append(int(octal, 8))
            i += 4
        elif nxt in _C_ESCAPES:
            data.append(_C_ESCAPES[nxt])
            i += 2
        else:
            data.extend(nxt.encode("utf-8"))
            i += 2
    return data.decode("utf-8", errors="replace")


def _extract_path(line: str, index_status: str) -> str:
    # 标准格式 "XY path"；部分工具输出缺少分隔空格，即 "XYpath"
    if line[2] == BLANK_MARK:
        file = line[3:].strip()
    else:
        file = line[2:].strip()

    # 重命名/复制: "R  old -> new"，报告新路径
    if index_status in ("R", "C") and RENAME_ARROW in file:
        file = file.split(RENAME_ARROW, 1)[1].strip()
    return unquote_path(file)


def split_status_line(line: str) -> Optional[StatusLine]:
    """解析单行状态，格式异常或没有可报告的变更时返回 None"""
    if not line or len(line) < 3:
        return None

    index_status = line[0]
    worktree_status = line[1]

    is_untracked = index_status == UNTRACKED_MARK and worktree_status == UNTRACKED_MARK
    is_staged = not is_untracked and index_status not in (BLANK_MARK, UNTRACKED_MARK)
    has_working_changes = worktree_status not in (BLANK_MARK, UNTRACKED_MARK)

    file = _extract_path(line, index_status)
    if not file:
        return None

    if not (is_staged or has_working_changes or is_untracked):
        return None

    return StatusLine(
        index_status=index_status,
        worktree_status=worktree_status,
        file=file,
        is_staged=is_staged,
        is_untracked=is_untracked,
        has_working_changes=has_working_changes,
    )


def _lookup_counts(
    parsed: StatusLine, diff_stat_lookup: Optional[DiffStatLookup]
) -> Tuple[Optional[int], Optional[int]]:
    if diff_stat_lookup is None or parsed.diff_mode is None:
        return None, None
    try:
        counts = diff_stat_lookup(parsed.file, parsed.diff_mode)
    except Exception as e:
        logger.warning(f"⚠️ 获取 {parsed.file} 的行数统计失败，已忽略: {e}")
        return None, None
    if counts is None:
        return None, None
    return counts


def _to_record(parsed: StatusLine) -> ChangeRecord:
    return ChangeRecord(
        status=parsed.status,
        file=parsed.file,
        is_staged=parsed.is_staged,
        is_untracked=parsed.is_untracked,
    )


def parse_status_line(
    line: str, diff_stat_lookup: Optional[DiffStatLookup] = None
) -> Optional[ChangeRecord]:
    """解析单行 porcelain 输出为 ChangeRecord"""
    parsed = split_status_line(line)
    if parsed is None:
        return None
    additions, deletions = _lookup_counts(parsed, diff_stat_lookup)
    return replace(_to_record(parsed), additions=additions, deletions=deletions)


def parse_status_output(
    output: str,
    diff_stat_lookup: Optional[DiffStatLookup] = None,
    max_workers: int = 8,
) -> List[ChangeRecord]:
    """
    解析完整的 git status --porcelain 输出。
    行数统计按文件并发查询，单个文件查询失败只会使其统计缺失，不影响整批结果。
    """
    if not output:
        return []

    # 不能对整段输出做 strip()，首行的前导空格是工作区状态位
    parsed_lines = [
        parsed
        for parsed in (split_status_line(line) for line in output.splitlines())
        if parsed is not None
    ]
    if not parsed_lines:
        return []

    if diff_stat_lookup is None:
        return [_to_record(parsed) for parsed in parsed_lines]

    workers = max(1, min(max_workers, len(parsed_lines)))
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        counts = list(
            executor.map(lambda p: _lookup_counts(p, diff_stat_lookup), parsed_lines)
        )

    records = [
        replace(_to_record(parsed), additions=additions, deletions=deletions)
        for parsed, (additions, deletions) in zip(parsed_lines, counts)
    ]
    logger.info(f"✅ 解析到 {len(records)} 个变更文件")
    return records
