"""
[V1.0] 表格行格式
Commits 表的列顺序: 提交哈希, 信息, 作者, 提交日期, 文件路径, 文件类型, 仓库, 登记时间
"""
import os
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional

from config import GlobalConfig
from models import CommitFileRow, CommitInfo, UniqueFileRecord

COMMITS_COLUMN_COUNT = 8
UNIQUE_FILES_COLUMN_COUNT = 9

# 数据库仓库中有专门名称的扩展名
DATABASE_FILE_TYPES: Dict[str, str] = {
    "pkb": "Package Body (.pkb)",
    "pks": "Package Specification (.pks)",
    "prc": "Stored Procedure (.prc)",
    "fnc": "Function (.fnc)",
    "trg": "Trigger (.trg)",
    "vw": "View (.vw)",
}

APPLICATION_FILE_TYPES: Dict[str, str] = {
    "sql": "SQL File (.sql)",
    "aspx": "ASPX Page (.aspx)",
    "resx": "Resource Sheet (.resx)",
    "vbproj": "VB Project (.vbproj)",
    "dll": "Component (DLL) (.dll)",
    "rpt": "Report (RPT) (.rpt)",
    "vb": "Class (.vb)",
}

_HEX_COLOR = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)


def sheet_range(title: str, cells: str) -> str:
    """拼接 A1 区域，名称包含空格等字符时加引号"""
    if re.fullmatch(r"[A-Za-z0-9_]+", title):
        return f"{title}!{cells}"
    escaped = title.replace("'", "''")
    return f"'{escaped}'!{cells}"


def file_extension(path: str) -> str:
    name = os.path.basename(path.replace("\\", "/"))
    if "." not in name.strip("."):
        return ""
    return name.rsplit(".", 1)[1].lower()


def classify_file_type(path: str, repository_type: str = "app") -> str:
    """根据扩展名和仓库类型确定文件类型标签"""
    extension = file_extension(path)
    normalized = "/" + path.lower().replace("\\", "/").lstrip("/")

    if repository_type == "bd":
        if extension == "sql":
            if "/datamanipulation/" in normalized:
                return "DML (Data Manipulation Language)"
            if "/datadefinition/" in normalized:
                return "DDL (Data Definition Language)"
            return "SQL File (.sql)"
        if extension in DATABASE_FILE_TYPES:
            return DATABASE_FILE_TYPES[extension]
        return f"Database - Other (.{extension})" if extension else "Database - Other (no extension)"

    if extension in APPLICATION_FILE_TYPES:
        return APPLICATION_FILE_TYPES[extension]
    return f"App - Other (.{extension})" if extension else "App - Other (no extension)"


def build_commit_rows(
    commit: CommitInfo,
    repository_type: str,
    global_config: GlobalConfig,
    registered_at: Optional[str] = None,
) -> List[List[str]]:
    """
    把一个提交展开为多行 (每个文件一行)。
    没有修改任何文件的提交写一行占位，保证每个提交至少占一行。
    """
    label = global_config.repository_label(repository_type)
    timestamp = registered_at or datetime.now(timezone.utc).isoformat()
    prefix = [commit.hash, commit.message, commit.author, commit.date]

    if not commit.files:
        return [
            prefix
            + [global_config.NO_FILES_SENTINEL, global_config.NO_FILES_TYPE, label, timestamp]
        ]
    return [
        prefix + [file, classify_file_type(file, repository_type), label, timestamp]
        for file in commit.files
    ]


def rows_from_values(
    values: List[List[str]], default_label: str = "Application"
) -> List[CommitFileRow]:
    """把表格读回的原始行转换为 CommitFileRow (不含表头)，短行用空字符串补齐"""
    rows = []
    for raw in values:
        cells = [str(cell) if cell is not None else "" for cell in raw]
        cells += [""] * (COMMITS_COLUMN_COUNT - len(cells))
        rows.append(
            CommitFileRow(
                hash=cells[0],
                message=cells[1],
                author=cells[2],
                date=cells[3],
                file=cells[4],
                file_type=cells[5],
                repository_label=cells[6] or default_label,
            )
        )
    return rows


def unique_file_values(
    records: List[UniqueFileRecord], headers: List[str]
) -> List[List[str]]:
    """生成 "唯一文件" 表的全部内容 (含表头)"""
    values = [list(headers)]
    for record in records:
        values.append(
            [
                record.file,
                record.file_type,
                record.repository_label,
                record.last_commit_hash,
                record.last_commit_message,
                record.last_commit_author,
                record.last_commit_date,
                record.first_commit_date,
                str(record.commit_count),
            ]
        )
    return values


def hex_to_rgb(color: str, fallback: Dict[str, float]) -> Dict[str, float]:
    """把 #RRGGBB 转换为 Sheets API 使用的 0~1 浮点颜色"""
    match = _HEX_COLOR.match((color or "").strip())
    if not match:
        return dict(fallback)
    red, green, blue = (int(part, 16) / 255 for part in match.groups())
    return {"red": red, "green": green, "blue": blue}
