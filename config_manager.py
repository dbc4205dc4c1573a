# config_manager.py
"""
[V1.0] 配置管理器
- 负责处理全局项目别名 (projects.json)
- 负责处理项目级默认配置 (config.json): 数据源、仓库类型、行颜色、同步数量
- 包含一个交互式向导 (run_interactive_config_wizard)
"""

import os
import json
import logging
from typing import Dict, Any, Optional

from config import GlobalConfig

logger = logging.getLogger(__name__)

PROJECTS_JSON_FILE = "projects.json"
CONFIG_JSON_FILE = "config.json"

SOURCE_CHOICES = ("local", "azure", "github")


def load_project_aliases(data_root_path: str) -> Dict[str, str]:
    """加载全局别名文件 (data/projects.json)"""
    aliases_path = os.path.join(data_root_path, PROJECTS_JSON_FILE)
    if not os.path.exists(aliases_path):
        return {}
    try:
        with open(aliases_path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"❌ 加载别名文件 {aliases_path} 失败: {e}")
        return {}


def save_project_aliases(data_root_path: str, aliases: Dict[str, str]):
    """保存全局别名文件 (data/projects.json)"""
    aliases_path = os.path.join(data_root_path, PROJECTS_JSON_FILE)
    try:
        os.makedirs(data_root_path, exist_ok=True)
        with open(aliases_path, "w", encoding="utf-8") as f:
            json.dump(aliases, f, indent=4)
    except OSError as e:
        logger.error(f"❌ 保存别名文件 {aliases_path} 失败: {e}")


def get_path_from_alias(data_root_path: str, alias: str) -> Optional[str]:
    """通过别名获取仓库的绝对路径"""
    aliases = load_project_aliases(data_root_path)
    return aliases.get(alias)


def load_project_config(project_data_path: str) -> Dict[str, Any]:
    """加载特定项目的配置文件 (data/<Project>/config.json)"""
    config_path = os.path.join(project_data_path, CONFIG_JSON_FILE)
    if not os.path.exists(config_path):
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"❌ 加载项目配置 {config_path} 失败: {e}")
        return {}


def save_project_config(project_data_path: str, config_data: Dict[str, Any]):
    """保存特定项目的配置文件 (data/<Project>/config.json)"""
    config_path = os.path.join(project_data_path, CONFIG_JSON_FILE)
    try:
        os.makedirs(project_data_path, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(config_data, f, indent=4)
    except OSError as e:
        logger.error(f"❌ 保存项目配置 {config_path} 失败: {e}")


def get_project_data_path(data_root_path: str, repo_path: str) -> str:
    """根据仓库路径 (或远程 URL) 获取其数据存储路径"""
    trimmed = repo_path.rstrip("/\\")
    if trimmed.startswith(("http://", "https://", "git@")):
        project_name = trimmed.replace(":", "/").split("/")[-1]
        if project_name.endswith(".git"):
            project_name = project_name[:-4]
    else:
        project_name = os.path.basename(os.path.abspath(trimmed))
    if not project_name or project_name == ".":
        project_name = "current_dir_project"
    return os.path.join(data_root_path, project_name)


def _input_with_default(prompt: str, default: str) -> str:
    """获取带默认值的用户输入"""
    return input(f"{prompt} [{default}]: ") or default


def _input_choice(prompt: str, choices, default: str) -> str:
    while True:
        value = _input_with_default(f"{prompt} ({'/'.join(choices)})", default)
        if value in choices:
            return value
        print(f"  ⚠️ 无效的选项: {value}")


def _input_int(prompt: str, default: int) -> int:
    while True:
        value = _input_with_default(prompt, str(default))
        try:
            number = int(value)
        except ValueError:
            print(f"  ⚠️ 请输入数字: {value}")
            continue
        if number > 0:
            return number
        print("  ⚠️ 数量必须大于 0")


def run_interactive_config_wizard(
    data_root_path: str, repo_path: str, global_config: GlobalConfig
):
    """运行交互式配置向导"""
    logger.info("--- 🚀 欢迎使用 GitSheet 配置向导 ---")
    repo_path_abs = os.path.abspath(repo_path)
    if not os.path.isdir(repo_path_abs):
        logger.error(f"路径 {repo_path_abs} 不是一个有效的目录。")
        return

    project_data_path = get_project_data_path(data_root_path, repo_path_abs)
    project_name_default = os.path.basename(project_data_path)

    logger.info(f"  [目标仓库]: {repo_path_abs}")
    logger.info(f"  [数据目录]: {project_data_path}")

    # 1. 加载现有配置
    aliases = load_project_aliases(data_root_path)
    current_config = load_project_config(project_data_path)

    # 2. 配置别名 (Alias)
    print("\n--- 1. 项目别名配置 ---")
    current_alias = next(
        (alias for alias, path in aliases.items() if path == repo_path_abs),
        project_name_default,
    )
    alias = _input_with_default("  设置一个简短的别名 (用于 -p ...)", current_alias)
    aliases[alias] = repo_path_abs
    save_project_aliases(data_root_path, aliases)
    logger.info(f"✅ 别名 '{alias}' 已保存至 {PROJECTS_JSON_FILE}")

    # 3. 配置项目默认值 (Config)
    print("\n--- 2. 项目默认值配置 ---")
    print("  (提示：保留默认值或直接按 Enter 键跳过)")
    config_data = {
        "default_source": _input_choice(
            "  默认提交数据源",
            SOURCE_CHOICES,
            current_config.get("default_source", "local"),
        ),
        "default_repository_type": _input_choice(
            "  默认仓库类型",
            tuple(global_config.REPOSITORY_TYPES),
            current_config.get(
                "default_repository_type", global_config.DEFAULT_REPOSITORY_TYPE
            ),
        ),
        "default_color": _input_with_default(
            "  默认行颜色 (#RRGGBB)",
            current_config.get("default_color", global_config.DEFAULT_ROW_COLOR),
        ),
        "default_count": _input_int(
            "  批量同步的默认提交数",
            current_config.get("default_count", global_config.DEFAULT_RECENT_COUNT),
        ),
    }

    save_project_config(project_data_path, config_data)
    logger.info(f"✅ 项目配置已保存至 {project_data_path}/{CONFIG_JSON_FILE}")

    print("\n--- ✅ 配置完成！ ---")
    print(f"  现在你可以使用 'python GitSheet.py status -p {alias}' 来查看工作区。")
