# working_copy.py
"""
[V1.0] 本地工作区服务
负责分析工作区变更 (status + numstat + 文件树)，以及 add / commit / push 操作。
"""
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import git_utils
from file_tree import build_file_tree, count_changes_in_tree
from models import ChangeRecord, CommitInfo, FileTreeNode
from status_parser import parse_status_output

logger = logging.getLogger(__name__)


@dataclass
class StatusSnapshot:
    """一次工作区分析的结果"""

    repo_path: str
    branch: str
    changes: List[ChangeRecord] = field(default_factory=list)
    tree: List[FileTreeNode] = field(default_factory=list)

    @property
    def modified(self) -> List[ChangeRecord]:
        return [c for c in self.changes if c.status == "M"]

    @property
    def added(self) -> List[ChangeRecord]:
        return [c for c in self.changes if c.status == "A" or c.is_untracked]

    @property
    def deleted(self) -> List[ChangeRecord]:
        return [c for c in self.changes if c.status == "D"]

    @property
    def staged(self) -> List[ChangeRecord]:
        return [c for c in self.changes if c.is_staged]

    @property
    def is_clean(self) -> bool:
        return not self.changes

    @property
    def total_changes(self) -> int:
        return sum(count_changes_in_tree(node) for node in self.tree)


class WorkingCopyService:
    """对单个本地仓库执行 git 操作"""

    def __init__(self, repo_path: str, max_workers: int = 8):
        self.repo_path = repo_path
        self.max_workers = max_workers

    def validate(self) -> bool:
        if not os.path.exists(self.repo_path):
            logger.error(f"❌ 路径不存在: {self.repo_path}")
            return False
        if not git_utils.is_git_repository(self.repo_path):
            logger.error(f"❌ 指定路径不是 Git 仓库: {self.repo_path}")
            return False
        return True

    def current_branch(self) -> str:
        return git_utils.get_current_branch(self.repo_path)

    def _diff_stat(self, file: str, staged: bool) -> Optional[Tuple[int, int]]:
        return git_utils.get_file_numstat(self.repo_path, file, staged)

    def analyze(self) -> StatusSnapshot:
        """读取 git status，解析变更并构建文件树"""
        branch = self.current_branch()
        status_output = git_utils.get_status_output(self.repo_path)
        changes = parse_status_output(
            status_output, self._diff_stat, max_workers=self.max_workers
        )
        tree = build_file_tree(changes)
        logger.info(
            f"📊 分支 '{branch or '(detached)'}' 共有 {len(changes)} 个变更文件"
        )
        return StatusSnapshot(
            repo_path=self.repo_path, branch=branch, changes=changes, tree=tree
        )

    def stage(self, files: List[str]) -> int:
        if not files:
            logger.info("ℹ️ 没有选择文件，跳过暂存")
            return 0
        logger.info(f"➕ 正在暂存 {len(files)} 个文件")
        git_utils.add_files(self.repo_path, files)
        return len(files)

    def commit(self, message: str) -> CommitInfo:
        """提交暂存区，返回新提交的信息"""
        if not message or not message.strip():
            raise ValueError("提交信息不能为空")
        if not git_utils.get_staged_files(self.repo_path):
            raise git_utils.GitCommandError(
                ["git", "commit"], "暂存区没有文件，无法提交"
            )
        git_utils.commit(self.repo_path, message.strip())
        commit_info = git_utils.get_commit_info(self.repo_path, "HEAD")
        if commit_info is None:
            raise git_utils.GitCommandError(["git", "log", "-1"], "无法读取新提交")
        logger.info(f"✅ 已提交 {commit_info.short_hash}: {commit_info.message}")
        return commit_info

    def push(self) -> str:
        branch = self.current_branch()
        if not branch:
            raise git_utils.GitCommandError(["git", "push"], "当前不在任何分支上")
        git_utils.push(self.repo_path, branch)
        logger.info(f"✅ 已推送到 origin/{branch}")
        return branch
