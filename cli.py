"""
[V1.0] 命令行界面 (Interface) 层
- 解析参数，合并项目配置，组装 RunContext
- 每个 action 对应一个处理函数
"""
import argparse
import logging
import sys
import os
from typing import Any, Callable, Dict, List, Optional

import config_manager
import report_builder
import utils
from config import GlobalConfig
from context import RunContext
from data_sources.base import CommitSourceError
from git_utils import GitCommandError
from orchestrator import SyncOrchestrator
from sheets.base import SheetsError
from sheets.factory import describe_sheets_error
from working_copy import WorkingCopyService

logger = logging.getLogger(__name__)

ACTIONS = [
    "status",
    "add",
    "commit",
    "push",
    "initialize-sheets",
    "sync-last-commit",
    "sync-commit",
    "get-recent-commits",
    "sync-recent-commits",
    "get-sheets-commits",
    "create-unique-files-sheet",
    "test-sheets",
]


def setup_parser() -> argparse.ArgumentParser:
    """负责所有 argparse 的定义。"""
    parser = argparse.ArgumentParser(
        description="Git 工作区管理与 Google Sheets 提交同步工具",
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument(
        "action",
        nargs="?",
        choices=ACTIONS,
        default="status",
        help="要执行的操作 (默认: status)",
    )
    parser.add_argument(
        "--configure",
        action="store_true",
        help="运行交互式配置向导。\n   (需要 -r 指定要配置的仓库路径)",
    )

    # --- 目标仓库 ---
    parser.add_argument(
        "-p",
        "--project",
        type=str,
        help="使用已配置的项目别名。\n   (与 -r 互斥)",
    )
    parser.add_argument(
        "-r",
        "--repo-path",
        type=str,
        default=None,
        help="Git 仓库根目录 (或 GitHub URL)。\n   (默认: 当前目录)",
    )

    # --- 同步参数 (覆盖项目配置) ---
    parser.add_argument(
        "--source",
        type=str,
        choices=config_manager.SOURCE_CHOICES,
        default=None,
        help="提交数据源。\n(默认: 项目 config.json，或按 repo 路径自动判断)",
    )
    parser.add_argument(
        "--repository-type",
        type=str,
        choices=list(GlobalConfig.REPOSITORY_TYPES),
        default=None,
        help="仓库类型: app = Application, bd = Database",
    )
    parser.add_argument("--commit-id", type=str, help="sync-commit 使用的提交 ID")
    parser.add_argument(
        "-n", "--count", type=int, default=None, help="最近提交的数量 (默认: 10)"
    )
    parser.add_argument(
        "--color", type=str, default=None, help="写入行的背景色 (#RRGGBB)"
    )

    # --- 工作区操作 ---
    parser.add_argument(
        "-f",
        "--file",
        dest="files",
        action="append",
        default=[],
        help="要暂存的文件 (可重复)",
    )
    parser.add_argument("-m", "--message", type=str, help="提交信息")
    parser.add_argument(
        "--sync", action="store_true", help="commit 后立即写入 Google Sheets"
    )

    # --- 标志 (Flags) ---
    parser.add_argument(
        "--no-browser", action="store_true", help="不自动在浏览器中打开状态报告"
    )

    return parser


def resolve_repository(args, data_root_path: str):
    """确定 repo 路径，返回 (repo_path, project_data_path, project_config)"""
    if args.project and args.repo_path:
        raise ValueError("不能同时使用 -p (别名) 和 -r (路径)。请只选其一。")

    if args.project:
        repo_path = config_manager.get_path_from_alias(data_root_path, args.project)
        if not repo_path:
            raise ValueError(
                f"别名 '{args.project}' 未在 projects.json 中找到，请先使用 --configure -r ... 配置。"
            )
        logger.info(f"ℹ️ 使用别名 '{args.project}' (路径: {repo_path})")
    elif args.repo_path and args.repo_path.startswith(("http://", "https://", "git@")):
        # 远程 URL 保持原样
        repo_path = args.repo_path
        logger.info(f"ℹ️ 检测到远程仓库 URL: {repo_path}")
    else:
        repo_path = os.path.abspath(args.repo_path or os.getcwd())
        logger.info(f"ℹ️ 使用路径 {repo_path}")

    project_data_path = config_manager.get_project_data_path(data_root_path, repo_path)
    project_config = config_manager.load_project_config(project_data_path)
    return repo_path, project_data_path, project_config


def build_context(
    args,
    repo_path: str,
    project_data_path: str,
    project_config: Dict[str, Any],
    global_config: GlobalConfig,
) -> RunContext:
    """命令行参数 > 项目配置 > 全局默认值"""
    return RunContext(
        repo_path=repo_path,
        project_data_path=project_data_path,
        source=args.source or project_config.get("default_source"),
        repository_type=args.repository_type
        or project_config.get("default_repository_type")
        or global_config.DEFAULT_REPOSITORY_TYPE,
        color=args.color or project_config.get("default_color"),
        no_browser=args.no_browser,
        global_config=global_config,
    )


def resolve_count(args, project_config: Dict[str, Any], global_config: GlobalConfig) -> int:
    count = args.count
    if count is None:
        count = project_config.get("default_count")
    if count is None:
        count = global_config.DEFAULT_RECENT_COUNT
    if count <= 0:
        raise ValueError(f"提交数量必须大于 0: {count}")
    return count


# -------------------------------------------------------------------
# Action 处理函数
# -------------------------------------------------------------------


def _working_copy(context: RunContext) -> WorkingCopyService:
    service = WorkingCopyService(
        context.repo_path, max_workers=context.global_config.DIFF_STAT_WORKERS
    )
    if not service.validate():
        raise ValueError(f"无法操作仓库: {context.repo_path}")
    return service


def action_status(context: RunContext, args, orchestrator: SyncOrchestrator):
    snapshot = _working_copy(context).analyze()
    print(f"\n🌿 分支: {snapshot.branch or '(detached)'}")
    print(report_builder.generate_text_tree(snapshot.tree))
    if snapshot.is_clean:
        return
    print(
        f"\n修改 {len(snapshot.modified)} | 新增 {len(snapshot.added)} | "
        f"删除 {len(snapshot.deleted)} | 已暂存 {len(snapshot.staged)}"
    )

    html_content = report_builder.generate_status_html(snapshot, context.global_config)
    html_path = report_builder.save_html_report(html_content, context)
    if html_path and not context.no_browser:
        utils.open_report_in_browser(html_path)


def action_add(context: RunContext, args, orchestrator: SyncOrchestrator):
    if not args.files:
        raise ValueError("add 需要至少一个 -f/--file")
    count = _working_copy(context).stage(args.files)
    logger.info(f"✅ 已暂存 {count} 个文件")


def action_commit(context: RunContext, args, orchestrator: SyncOrchestrator):
    if not args.message:
        raise ValueError("commit 需要 -m/--message")
    working_copy = _working_copy(context)
    if args.sync:
        commit = orchestrator.commit_and_sync(working_copy, args.message, args.files)
        logger.info(f"✅ 提交 {commit.short_hash} 已同步到 Google Sheets")
        return
    working_copy.stage(args.files)
    working_copy.commit(args.message)


def action_push(context: RunContext, args, orchestrator: SyncOrchestrator):
    _working_copy(context).push()


def action_initialize_sheets(context: RunContext, args, orchestrator: SyncOrchestrator):
    orchestrator.initialize_sheet()
    logger.info(f"🔗 {context.global_config.get_sheets_url()}")


def _print_synced_commit(context: RunContext, commit):
    print(report_builder.generate_commits_text([commit]))
    if context.source == "azure":
        url = context.global_config.get_azure_commit_url(context.repository_type, commit.hash)
        print(f"🔗 {url}")


def action_sync_last_commit(context: RunContext, args, orchestrator: SyncOrchestrator):
    _print_synced_commit(context, orchestrator.sync_last_commit())


def action_sync_commit(context: RunContext, args, orchestrator: SyncOrchestrator):
    if not args.commit_id:
        raise ValueError("sync-commit 需要 --commit-id")
    _print_synced_commit(context, orchestrator.sync_commit(args.commit_id))


def action_get_recent_commits(context: RunContext, args, orchestrator: SyncOrchestrator):
    commits = orchestrator.get_recent_commits(args.count)
    print(report_builder.generate_commits_text(commits))


def action_sync_recent_commits(context: RunContext, args, orchestrator: SyncOrchestrator):
    summary = orchestrator.sync_recent_commits(args.count)
    for commit_id, error in summary.failed.items():
        print(f"  ❌ {commit_id[:7]}: {error}")
    if summary.failed:
        raise CommitSourceError(f"{len(summary.failed)} 个提交同步失败")


def action_get_sheets_commits(context: RunContext, args, orchestrator: SyncOrchestrator):
    commits = orchestrator.list_synced_commits()
    print(report_builder.generate_commits_text(commits))


def action_create_unique_files_sheet(context: RunContext, args, orchestrator: SyncOrchestrator):
    records = orchestrator.create_unique_files_sheet()
    print(report_builder.generate_unique_files_text(records))


def action_test_sheets(context: RunContext, args, orchestrator: SyncOrchestrator):
    info = orchestrator.test_connection()
    print(f"\n✅ 标题: {info.get('title')}")
    print(f"   工作表: {', '.join(info.get('sheets') or [])}")
    print(f"   地址: {info.get('url')}")


ACTION_HANDLERS: Dict[str, Callable[[RunContext, Any, SyncOrchestrator], None]] = {
    "status": action_status,
    "add": action_add,
    "commit": action_commit,
    "push": action_push,
    "initialize-sheets": action_initialize_sheets,
    "sync-last-commit": action_sync_last_commit,
    "sync-commit": action_sync_commit,
    "get-recent-commits": action_get_recent_commits,
    "sync-recent-commits": action_sync_recent_commits,
    "get-sheets-commits": action_get_sheets_commits,
    "create-unique-files-sheet": action_create_unique_files_sheet,
    "test-sheets": action_test_sheets,
}


def _report_failure(error: Exception, global_config: GlobalConfig):
    logger.error(f"❌ {error}")
    if isinstance(error, (SheetsError, ValueError)):
        explanation, suggestions = describe_sheets_error(error, global_config)
        if suggestions:
            logger.error(f"   {explanation}")
            for suggestion in suggestions:
                logger.error(f"   - {suggestion}")


def run_cli(argv: Optional[List[str]] = None):
    """主入口点。"""
    # 通过 console script 启动时 GitSheet.py 没有机会先配置日志
    utils.setup_logging()

    # 1. 解析 Args
    parser = setup_parser()
    args = parser.parse_args(argv)

    # 2. 加载 GlobalConfig 和 Data Root
    global_config = GlobalConfig()
    data_root_path = os.path.join(
        global_config.SCRIPT_BASE_PATH, global_config.DATA_ROOT_DIR_NAME
    )
    os.makedirs(data_root_path, exist_ok=True)

    # 3. 处理特殊模式：--configure
    if args.configure:
        if not args.repo_path:
            logger.error("❌ --configure 标志需要 -r / --repo-path 指定目标仓库路径。")
            sys.exit(1)
        logger.info(f"⚙️ 启动交互式配置向导: {args.repo_path}")
        config_manager.run_interactive_config_wizard(
            data_root_path, os.path.abspath(args.repo_path), global_config
        )
        sys.exit(0)

    try:
        # 4. 确定路径并加载项目配置
        repo_path, project_data_path, project_config = resolve_repository(
            args, data_root_path
        )
        os.makedirs(project_data_path, exist_ok=True)

        # 5. 组装 RunContext
        run_context = build_context(
            args, repo_path, project_data_path, project_config, global_config
        )
        args.count = resolve_count(args, project_config, global_config)

        logger.info("=" * 50)
        logger.info("🚀 GitSheet 启动...")
        logger.info(f"   [操作]: {args.action}")
        logger.info(f"   [目标仓库]: {repo_path}")
        logger.info(f"   [仓库类型]: {run_context.repository_label}")
        logger.info(f"   [数据源]: {run_context.source or '自动'}")
        logger.info("=" * 50)

        # 6. 执行 action
        orchestrator = SyncOrchestrator(run_context)
        ACTION_HANDLERS[args.action](run_context, args, orchestrator)
    except (GitCommandError, CommitSourceError, SheetsError, ValueError) as e:
        _report_failure(e, global_config)
        sys.exit(1)

    logger.info(f"✅ {args.action} 完成。")
