import logging
from typing import List, Dict, Any, Optional

import requests

from .base import CommitSource, CommitSourceError
from models import CommitInfo
from context import RunContext

logger = logging.getLogger(__name__)


class AzureDevOpsCommitSource(CommitSource):
    """
    [V1.1] Azure DevOps 远程数据源实现
    通过 Git REST API 直接读取远程仓库的提交，无需本地 clone。
    认证方式: Personal Access Token (Basic Auth，用户名留空)。
    """

    def __init__(self, context: RunContext, session: Optional[requests.Session] = None):
        self.context = context
        self.global_config = context.global_config
        self.repository = self.global_config.azure_repository(context.repository_type)

        self.session = session or requests.Session()
        self.session.auth = ("", self.global_config.AZURE_DEVOPS_PAT)
        self.session.headers.update({"Accept": "application/json"})
        self.timeout = 15

    @property
    def name(self) -> str:
        return f"Azure DevOps ({self.repository or '未配置'})"

    def _repository_url(self) -> str:
        cfg = self.global_config
        return (
            f"{cfg.AZURE_DEVOPS_BASE_URL}/{cfg.AZURE_DEVOPS_ORGANIZATION}/"
            f"{cfg.AZURE_DEVOPS_PROJECT}/_apis/git/repositories/{self.repository}"
        )

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """发送 GET 请求并返回 JSON，HTTP 或网络错误统一转换为 CommitSourceError"""
        query = {"api-version": self.global_config.AZURE_DEVOPS_API_VERSION}
        if params:
            query.update(params)
        url = f"{self._repository_url()}{path}"
        try:
            resp = self.session.get(url, params=query, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"❌ [Azure] 网络错误: {e}")
            raise CommitSourceError(f"Azure DevOps 请求失败: {e}") from e

        if resp.status_code != 200:
            logger.error(f"❌ [Azure] {url} 返回 {resp.status_code}: {resp.text[:200]}")
            raise CommitSourceError(
                f"Azure DevOps 返回 HTTP {resp.status_code} ({path or '/'})"
            )
        return resp.json()

    def validate(self) -> bool:
        if not self.global_config.is_azure_configured(self.context.repository_type):
            logger.error(
                "❌ [Azure] 配置不完整，请在 .env 中设置 AZURE_DEVOPS_ORGANIZATION、"
                "AZURE_DEVOPS_PROJECT、AZURE_DEVOPS_PAT 以及对应类型的仓库名。"
            )
            return False
        try:
            data = self._get("")
            logger.info(f"✅ [Azure] 成功连接远程仓库: {data.get('name', self.repository)}")
            return True
        except CommitSourceError:
            return False

    @staticmethod
    def _parse_changes(data: Dict[str, Any]) -> Dict[str, str]:
        changes: Dict[str, str] = {}
        for change in data.get("changes", []):
            item = change.get("item", {})
            if item.get("isFolder") or item.get("gitObjectType") == "tree":
                continue
            path = (item.get("path") or "").lstrip("/")
            if path:
                changes[path] = change.get("changeType", "")
        return changes

    def get_commit(self, commit_id: str) -> CommitInfo:
        commit_id = commit_id.strip()
        logger.info(f"🌐 [Azure] 正在获取提交 {commit_id} ...")
        data = self._get(f"/commits/{commit_id}")
        changes = self._parse_changes(self._get(f"/commits/{commit_id}/changes"))

        author = data.get("author") or {}
        comment = data.get("comment") or ""
        return CommitInfo(
            hash=data.get("commitId", commit_id),
            message=comment.split("\n")[0].strip(),
            author=author.get("name", ""),
            date=author.get("date", ""),
            files=list(changes.keys()),
            change_types=changes,
        )

    def get_recent_commit_ids(self, count: int) -> List[str]:
        top = max(1, min(count, self.global_config.REMOTE_MAX_COMMITS))
        data = self._get("/commits", params={"searchCriteria.$top": top})
        return [c["commitId"] for c in data.get("value", []) if c.get("commitId")]
