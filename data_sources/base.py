from abc import ABC, abstractmethod
from typing import List
from models import CommitInfo


class CommitSourceError(Exception):
    """无法从数据源获取提交信息"""


class CommitSource(ABC):
    """
    [V1.0] 提交数据源抽象基类
    定义了获取提交元数据的标准接口，屏蔽了底层是本地 Git 还是远程 API 的差异。
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """数据源名称 (日志显示用)"""
        pass

    @abstractmethod
    def validate(self) -> bool:
        """
        验证数据源是否可用。
        例如：本地路径是否为 Git 仓库，或者远程配置是否完整。
        """
        pass

    @abstractmethod
    def get_commit(self, commit_id: str) -> CommitInfo:
        """
        获取单个提交的元数据和修改文件列表。
        获取失败时抛出 CommitSourceError。
        """
        pass

    @abstractmethod
    def get_recent_commit_ids(self, count: int) -> List[str]:
        """返回最新的 count 个提交 ID (新的在前)"""
        pass

    def get_last_commit(self) -> CommitInfo:
        ids = self.get_recent_commit_ids(1)
        if not ids:
            raise CommitSourceError(f"{self.name} 中没有任何提交")
        return self.get_commit(ids[0])
