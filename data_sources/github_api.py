import logging
from urllib.parse import urlparse
from typing import List, Optional

from github import Github, GithubException
from github.Repository import Repository

from .base import CommitSource, CommitSourceError
from models import CommitInfo
from context import RunContext

logger = logging.getLogger(__name__)


def parse_repo_name(url: str) -> Optional[str]:
    """从 URL 中解析 owner/repo"""
    # 支持 owner/repo、https://github.com/owner/repo 和 git@github.com:owner/repo.git
    if not url:
        return None
    if url.startswith("git@"):
        if ":" not in url:
            return None
        path = url.split(":", 1)[1]
    elif url.startswith(("http://", "https://")):
        path = urlparse(url).path
    else:
        path = url
    path = path.strip("/")
    if path.endswith(".git"):
        path = path[:-4]
    return path if path.count("/") == 1 else None


class GitHubCommitSource(CommitSource):
    """
    [V1.1] GitHub 远程数据源实现
    使用 PyGithub 直接访问远程仓库，无需本地 git clone。
    """

    def __init__(self, context: RunContext, client: Optional[Github] = None):
        self.context = context
        self.global_config = context.global_config
        self.repo: Optional[Repository] = None

        # 仓库地址: 优先使用远程 URL 形式的 repo_path，其次是 .env 中按类型配置的仓库
        repo_path = context.repo_path or ""
        if repo_path.startswith(("http://", "https://", "git@")):
            self.repo_ref = repo_path
        else:
            self.repo_ref = self.global_config.github_repository(context.repository_type)

        if client is not None:
            self.client = client
        elif self.global_config.GITHUB_TOKEN:
            self.client = Github(self.global_config.GITHUB_TOKEN)
        else:
            logger.warning(
                "⚠️ 未配置 GITHUB_TOKEN，API 请求可能会受到严格限制 (60次/小时)。建议在 .env 中配置。"
            )
            self.client = Github()  # 匿名访问

    @property
    def name(self) -> str:
        return f"GitHub ({self.repo_ref or '未配置'})"

    def _ensure_repo(self) -> Repository:
        if self.repo is not None:
            return self.repo
        repo_name = parse_repo_name(self.repo_ref)
        if not repo_name:
            raise CommitSourceError(f"无法从地址解析仓库名称: {self.repo_ref!r}")
        try:
            logger.info(f"🌐 [GitHub] 正在连接: {repo_name} ...")
            self.repo = self.client.get_repo(repo_name)
        except GithubException as e:
            message = e.data.get("message", "") if isinstance(e.data, dict) else ""
            raise CommitSourceError(f"无法访问 GitHub 仓库: {e.status} {message}") from e
        return self.repo

    def validate(self) -> bool:
        try:
            repo = self._ensure_repo()
        except CommitSourceError as e:
            logger.error(f"❌ [GitHub] {e}")
            return False
        logger.info(f"✅ [GitHub] 成功连接远程仓库: {repo.full_name}")
        return True

    def get_commit(self, commit_id: str) -> CommitInfo:
        repo = self._ensure_repo()
        try:
            # 这里会消耗 1 次 API 请求
            c = repo.get_commit(commit_id.strip())
        except GithubException as e:
            raise CommitSourceError(f"获取提交 {commit_id} 失败: {e.status}") from e

        change_types = {f.filename: f.status for f in c.files}
        author = c.commit.author
        return CommitInfo(
            hash=c.sha,
            message=c.commit.message.split("\n")[0].strip(),  # 只取首行
            author=author.name if author else "",
            date=author.date.isoformat() if author and author.date else "",
            files=list(change_types.keys()),
            change_types=change_types,
        )

    def get_recent_commit_ids(self, count: int) -> List[str]:
        repo = self._ensure_repo()
        limit = max(1, min(count, self.global_config.REMOTE_MAX_COMMITS))
        ids = []
        try:
            # 注意：GitHub API 是分页的，迭代会自动翻页
            for c in repo.get_commits():
                if len(ids) >= limit:
                    break
                ids.append(c.sha)
        except GithubException as e:
            raise CommitSourceError(f"获取提交列表失败: {e.status}") from e
        return ids
