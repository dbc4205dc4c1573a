# models.py
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class ChangeRecord:
    """工作区中单个文件的变更状态 (来自 git status --porcelain)"""

    status: str
    file: str
    additions: Optional[int] = None
    deletions: Optional[int] = None
    is_staged: bool = False
    is_untracked: bool = False

    @property
    def has_counts(self) -> bool:
        return self.additions is not None or self.deletions is not None


@dataclass
class FileTreeNode:
    """变更文件树节点。目录节点的 path 是其所有子节点 path 的前缀。"""

    name: str
    path: str
    is_directory: bool
    children: List["FileTreeNode"] = field(default_factory=list)
    change: Optional[ChangeRecord] = None


@dataclass
class CommitInfo:
    """单个提交的元数据，files 为该提交修改的文件列表"""

    hash: str
    message: str
    author: str
    date: str
    files: List[str] = field(default_factory=list)
    repository_label: Optional[str] = None
    # 远程数据源提供的变更类型 (path -> add/edit/delete)
    change_types: Dict[str, str] = field(default_factory=dict)

    @property
    def short_hash(self) -> str:
        return self.hash[:7]


@dataclass
class CommitFileRow:
    """表格中的一行：一个 (提交, 文件) 对"""

    hash: str
    message: str
    author: str
    date: str
    file: str
    file_type: str
    repository_label: str


@dataclass
class UniqueFileRecord:
    """按 (file, repository_label) 聚合后的文件历史"""

    file: str
    file_type: str
    repository_label: str
    last_commit_hash: str
    last_commit_message: str
    last_commit_author: str
    last_commit_date: str
    first_commit_date: str
    commit_count: int
