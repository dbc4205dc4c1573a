import logging
from context import RunContext
from .base import CommitSource
from .local_git import LocalGitCommitSource
from .azure_devops import AzureDevOpsCommitSource
from .github_api import GitHubCommitSource

logger = logging.getLogger(__name__)

SOURCES = {
    "local": LocalGitCommitSource,
    "azure": AzureDevOpsCommitSource,
    "github": GitHubCommitSource,
}


def is_remote_url(path: str) -> bool:
    return (path or "").lower().startswith(("http://", "https://", "git@"))


def get_commit_source(context: RunContext) -> CommitSource:
    """
    [V1.1] 数据源工厂
    - 显式指定的 source 优先
    - 否则远程 URL 使用 GitHub API，本地路径使用 Local Git
    """
    source = context.source
    if not source:
        source = "github" if is_remote_url(context.repo_path) else "local"

    if source not in SOURCES:
        raise ValueError(f"未知的数据源: {source} (可用: {', '.join(SOURCES)})")

    data_source = SOURCES[source](context)
    logger.info(f"🔌 [Factory] 初始化数据源: {data_source.name}")
    return data_source
