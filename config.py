# config.py
"""
[V1.0] 全局配置
[V1.2] 新增 Azure DevOps / GitHub 远程数据源配置
"""
import os
from typing import Optional
from dotenv import load_dotenv


# --- 脚本基础路径 ---
SCRIPT_BASE_PATH = os.path.abspath(os.path.dirname(__file__))
env_path = os.path.join(SCRIPT_BASE_PATH, ".env")
if os.path.exists(env_path):
    load_dotenv(env_path)
    print(f"✅ 已从脚本目录加载 .env: {env_path}")
else:
    load_dotenv()
    print("⚠️ 未在脚本目录找到 .env，尝试从 CWD 加载。")


class GlobalConfig:
    """
    Git Sheet 同步工具的全局应用配置。
    """

    # --- 路径配置 ---
    SCRIPT_BASE_PATH: str = SCRIPT_BASE_PATH
    DATA_ROOT_DIR_NAME: str = "data"
    OUTPUT_FILENAME_PREFIX = "GitStatus"

    # --- 日志 ---
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # --- 仓库类型 (表格中的 "Repository" 列) ---
    REPOSITORY_TYPES: dict[str, str] = {
        "app": "Application",
        "bd": "Database",
    }
    DEFAULT_REPOSITORY_TYPE: str = "app"

    # --- 工作区分析 ---
    # 并发执行 git diff --numstat 的线程数
    DIFF_STAT_WORKERS: int = 8

    # =================================================================
    # --- Google Sheets 配置 ---
    # =================================================================
    GOOGLE_SHEETS_SPREADSHEET_ID: str = os.getenv("GOOGLE_SHEETS_SPREADSHEET_ID", "")
    GOOGLE_SHEETS_CLIENT_EMAIL: str = os.getenv("GOOGLE_SHEETS_CLIENT_EMAIL", "")
    GOOGLE_SHEETS_PRIVATE_KEY: str = os.getenv("GOOGLE_SHEETS_PRIVATE_KEY", "")
    GOOGLE_SHEETS_SCOPES: list[str] = ["https://www.googleapis.com/auth/spreadsheets"]
    GOOGLE_TOKEN_URI: str = "https://oauth2.googleapis.com/token"
    GOOGLE_SHEETS_API_BASE: str = "https://sheets.googleapis.com/v4/spreadsheets"

    # 工作表名称与表头 (列顺序即存储格式，不要随意调整)
    COMMITS_SHEET: str = "Commits"
    UNIQUE_FILES_SHEET: str = "Unique Files"
    COMMITS_HEADERS: list[str] = [
        "Commit Hash",
        "Message",
        "Author",
        "Commit Date",
        "Changed File",
        "File Type",
        "Repository",
        "Registered At",
    ]
    UNIQUE_FILES_HEADERS: list[str] = [
        "File",
        "File Type",
        "Repository",
        "Last Commit Hash",
        "Last Commit Message",
        "Last Commit Author",
        "Last Modified",
        "First Modified",
        "Commits Touching File",
    ]

    # 提交未修改任何文件时写入的占位值
    NO_FILES_SENTINEL: str = "(no files)"
    NO_FILES_TYPE: str = "N/A"

    # --- 行颜色 ---
    DEFAULT_ROW_COLOR: str = "#FFFFFF"
    FALLBACK_ROW_RGB: dict[str, float] = {"red": 0.3, "green": 0.8, "blue": 0.77}

    # =================================================================
    # --- 远程仓库配置 ---
    # =================================================================
    DEFAULT_RECENT_COUNT: int = 10
    REMOTE_MAX_COMMITS: int = 100

    # 1. Azure DevOps
    AZURE_DEVOPS_BASE_URL: str = "https://dev.azure.com"
    AZURE_DEVOPS_API_VERSION: str = "7.0"
    AZURE_DEVOPS_ORGANIZATION: str = os.getenv("AZURE_DEVOPS_ORGANIZATION", "")
    AZURE_DEVOPS_PROJECT: str = os.getenv("AZURE_DEVOPS_PROJECT", "")
    AZURE_DEVOPS_PAT: str = os.getenv("AZURE_DEVOPS_PAT", "")
    AZURE_DEVOPS_REPOSITORY_APP: str = os.getenv("AZURE_DEVOPS_REPOSITORY_APP", "")
    AZURE_DEVOPS_REPOSITORY_BD: str = os.getenv("AZURE_DEVOPS_REPOSITORY_BD", "")

    # 2. GitHub (匿名访问有 60 次/小时的限制)
    GITHUB_TOKEN: str = os.getenv("GITHUB_TOKEN", "")
    GITHUB_REPOSITORY_APP: str = os.getenv("GITHUB_REPOSITORY_APP", "")
    GITHUB_REPOSITORY_BD: str = os.getenv("GITHUB_REPOSITORY_BD", "")

    def repository_label(self, repository_type: Optional[str]) -> str:
        """把仓库类型 (app/bd) 转换为表格中显示的名称"""
        key = repository_type or self.DEFAULT_REPOSITORY_TYPE
        return self.REPOSITORY_TYPES.get(key, self.REPOSITORY_TYPES["app"])

    def is_sheets_configured(self) -> bool:
        return bool(
            self.GOOGLE_SHEETS_SPREADSHEET_ID
            and self.GOOGLE_SHEETS_CLIENT_EMAIL
            and self.GOOGLE_SHEETS_PRIVATE_KEY
        )

    def get_sheets_url(self) -> str:
        if not self.GOOGLE_SHEETS_SPREADSHEET_ID:
            return "#"
        return f"https://docs.google.com/spreadsheets/d/{self.GOOGLE_SHEETS_SPREADSHEET_ID}/edit"

    def azure_repository(self, repository_type: Optional[str]) -> str:
        if (repository_type or self.DEFAULT_REPOSITORY_TYPE) == "bd":
            return self.AZURE_DEVOPS_REPOSITORY_BD
        return self.AZURE_DEVOPS_REPOSITORY_APP

    def is_azure_configured(self, repository_type: Optional[str] = None) -> bool:
        return bool(
            self.AZURE_DEVOPS_ORGANIZATION
            and self.AZURE_DEVOPS_PROJECT
            and self.AZURE_DEVOPS_PAT
            and self.azure_repository(repository_type)
        )

    def get_azure_commit_url(self, repository_type: Optional[str], commit_id: str) -> str:
        """Azure DevOps 网页上查看单个提交的地址，未配置时返回 '#'"""
        repository = self.azure_repository(repository_type)
        if not (self.AZURE_DEVOPS_ORGANIZATION and self.AZURE_DEVOPS_PROJECT and repository):
            return "#"
        return (
            f"{self.AZURE_DEVOPS_BASE_URL}/{self.AZURE_DEVOPS_ORGANIZATION}/"
            f"{self.AZURE_DEVOPS_PROJECT}/_git/{repository}/commit/{commit_id}"
        )

    def github_repository(self, repository_type: Optional[str]) -> str:
        if (repository_type or self.DEFAULT_REPOSITORY_TYPE) == "bd":
            return self.GITHUB_REPOSITORY_BD
        return self.GITHUB_REPOSITORY_APP
