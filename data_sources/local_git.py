import logging
import os
from typing import List

from .base import CommitSource, CommitSourceError
from models import CommitInfo
from context import RunContext
import git_utils

logger = logging.getLogger(__name__)


class LocalGitCommitSource(CommitSource):
    """
    [V1.0] 本地 Git 数据源实现。
    通过调用 git 命令行工具读取本地仓库的提交。
    """

    def __init__(self, context: RunContext):
        self.context = context

    @property
    def name(self) -> str:
        return f"Local Git ({self.context.repo_path})"

    def validate(self) -> bool:
        if not os.path.exists(self.context.repo_path):
            logger.error(f"❌ 路径不存在: {self.context.repo_path}")
            return False
        if not git_utils.is_git_repository(self.context.repo_path):
            logger.error(f"❌ 指定路径不是 Git 仓库: {self.context.repo_path}")
            return False
        return True

    def get_commit(self, commit_id: str) -> CommitInfo:
        commit = git_utils.get_commit_info(self.context.repo_path, commit_id)
        if commit is None:
            raise CommitSourceError(f"无法获取提交 {commit_id} 的信息")
        return commit

    def get_last_commit(self) -> CommitInfo:
        return self.get_commit("HEAD")

    def get_recent_commit_ids(self, count: int) -> List[str]:
        return git_utils.get_recent_commit_hashes(self.context.repo_path, count)
