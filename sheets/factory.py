import logging
from typing import List, Tuple

from config import GlobalConfig
from .base import CommitSheetStore, SheetsError
from .google_sheets import GoogleSheetsStore

logger = logging.getLogger(__name__)

REQUIRED_ENV_VARS = [
    "GOOGLE_SHEETS_SPREADSHEET_ID",
    "GOOGLE_SHEETS_CLIENT_EMAIL",
    "GOOGLE_SHEETS_PRIVATE_KEY",
]


def get_spreadsheet_store(global_config: GlobalConfig) -> CommitSheetStore:
    """
    工厂方法：创建电子表格存储。
    缺少环境变量时抛出 ValueError。
    """
    if not global_config.is_sheets_configured():
        raise ValueError(
            "缺少 Google Sheets 环境变量，请在 .env 中配置: " + ", ".join(REQUIRED_ENV_VARS)
        )
    store = GoogleSheetsStore(global_config)
    logger.info(f"🔌 已初始化存储: {store.name}")
    return store


def describe_sheets_error(error: Exception, global_config: GlobalConfig) -> Tuple[str, List[str]]:
    """把连接失败转换为 (说明, 建议列表)"""
    code = getattr(error, "code", None) if isinstance(error, SheetsError) else None
    message = str(error)

    if code == 404:
        return "找不到 Google Sheets 表格", [
            "确认 GOOGLE_SHEETS_SPREADSHEET_ID 是否正确",
            "确认表格没有被删除",
            "确认你有访问该表格的权限",
        ]
    if code == 403:
        return "没有访问该表格的权限", [
            f"把表格共享给: {global_config.GOOGLE_SHEETS_CLIENT_EMAIL or '(service account 邮箱)'}",
            "共享时授予 \"编辑者\" 权限",
            "确认凭证是否正确",
        ]
    if "DECODER" in message or "私钥" in message:
        return "私钥格式错误", [
            "检查 GOOGLE_SHEETS_PRIVATE_KEY 的格式",
            "换行应写成字面量 \\n，而不是真正的换行",
            "在 Google Cloud Console 中重新生成凭证",
        ]
    if "环境变量" in message:
        return "缺少环境变量", [f"配置 {name}" for name in REQUIRED_ENV_VARS]
    return message or "未知错误", []
