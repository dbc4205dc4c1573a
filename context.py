# context.py
"""
[V1.0] 运行时配置的数据模型
"""
from dataclasses import dataclass
from typing import Optional
from config import GlobalConfig


@dataclass
class RunContext:
    """
    封装一次运行所需的所有配置和状态。
    这是从 CLI 传递到 Orchestrator / 数据源的唯一对象。
    """

    # --- 核心路径 ---
    repo_path: str
    project_data_path: str

    # --- 同步参数 ---
    # 提交数据来源: local / azure / github (None 表示按 repo_path 自动判断)
    source: Optional[str]
    repository_type: str
    color: Optional[str]

    # --- 标志 ---
    no_browser: bool

    # --- 全局配置 ---
    global_config: GlobalConfig

    @property
    def repository_label(self) -> str:
        return self.global_config.repository_label(self.repository_type)
