# report_builder.py
"""
[V1.0] 报告生成器
- 终端文本: 变更树、提交列表、唯一文件列表
- HTML: Jinja2 模板渲染工作区状态页
"""
import logging
import os
from datetime import datetime
from typing import List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import GlobalConfig
from context import RunContext
from file_tree import count_changes_in_tree, walk_tree
from models import ChangeRecord, CommitInfo, FileTreeNode, UniqueFileRecord
from working_copy import StatusSnapshot

logger = logging.getLogger(__name__)


def format_counts(change: ChangeRecord) -> str:
    if not change.has_counts:
        return ""
    return f"+{change.additions or 0} -{change.deletions or 0}"


def _format_node(node: FileTreeNode) -> str:
    if node.is_directory:
        label = f"📁 {node.name}/ ({count_changes_in_tree(node)})"
        # 同一路径既是文件又是目录时，目录行后附带该路径自身的变更
        if node.change is None:
            return label
        return f"{label} {_format_change(node.change)}"
    return _format_change(node.change, node.name)


def _format_change(change: ChangeRecord, name: str = "") -> str:
    staged = " [staged]" if change.is_staged else ""
    counts = format_counts(change)
    suffix = f"  {counts}" if counts else ""
    head = f"[{change.status}] {name}" if name else f"[{change.status}]"
    return f"{head}{staged}{suffix}"


def generate_text_tree(tree: List[FileTreeNode]) -> str:
    """把变更树渲染为缩进文本"""
    if not tree:
        return "✨ 工作区干净，没有变更"
    return "\n".join(
        f"{'  ' * depth}{_format_node(node)}" for depth, node in walk_tree(tree)
    )


def generate_commits_text(commits: List[CommitInfo]) -> str:
    if not commits:
        return "⚠️  未找到提交记录"
    lines = [
        f" {'提交':<8} | {'日期':<25} | {'作者':<20} | 信息",
        "-" * 80,
    ]
    for commit in commits:
        lines.append(
            f" {commit.short_hash:<8} | {commit.date:<25} | {commit.author:<20} | {commit.message}"
        )
        for file in commit.files:
            lines.append(f"{'':>12}└─ {file}")
    lines.append("-" * 80)
    lines.append(f"共 {len(commits)} 个提交")
    return "\n".join(lines)


def generate_unique_files_text(records: List[UniqueFileRecord]) -> str:
    if not records:
        return "⚠️  没有文件记录"
    lines = [
        f" {'次数':<4} | {'仓库':<12} | {'最近修改':<25} | 文件",
        "-" * 80,
    ]
    for record in records:
        lines.append(
            f" {record.commit_count:<4} | {record.repository_label:<12} | "
            f"{record.last_commit_date:<25} | {record.file}"
        )
    lines.append("-" * 80)
    lines.append(f"共 {len(records)} 个文件")
    return "\n".join(lines)


def _get_css_styles(global_config: GlobalConfig) -> str:
    """读取 CSS 文件内容"""
    css_path = os.path.join(global_config.SCRIPT_BASE_PATH, "templates", "styles.css")
    try:
        with open(css_path, "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        logger.error(f"❌ CSS 模板文件未找到: {css_path}")
        return "/* CSS 模板文件未找到 */"


def generate_status_html(snapshot: StatusSnapshot, global_config: GlobalConfig) -> str:
    """使用 Jinja2 模板渲染工作区状态页"""
    templates_dir = os.path.join(global_config.SCRIPT_BASE_PATH, "templates")
    env = Environment(
        loader=FileSystemLoader(templates_dir),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    env.filters["counts"] = format_counts

    template_context = {
        "title": f"Git 工作区状态 - {os.path.basename(os.path.abspath(snapshot.repo_path))}",
        "generation_time": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        "css_content": _get_css_styles(global_config),
        "snapshot": snapshot,
        "tree_rows": [
            {
                "depth": depth,
                "node": node,
                "count": count_changes_in_tree(node) if node.is_directory else 0,
            }
            for depth, node in walk_tree(snapshot.tree)
        ],
        "groups": [
            ("已修改", snapshot.modified),
            ("新增", snapshot.added),
            ("已删除", snapshot.deleted),
            ("已暂存", snapshot.staged),
        ],
        "sheets_url": global_config.get_sheets_url(),
    }

    template_name = "status.html.j2"
    template = env.get_template(template_name)
    logger.info(f"🎨 正在渲染 Jinja2 模板: {template_name}")
    return template.render(**template_context)


def save_html_report(html_content: str, context: RunContext) -> Optional[str]:
    """保存HTML报告到项目数据目录"""
    filename = f"{context.global_config.OUTPUT_FILENAME_PREFIX}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.html"
    full_path = os.path.join(context.project_data_path, filename)

    try:
        with open(full_path, "w", encoding="utf-8") as f:
            f.write(html_content)
        logger.info(f"✅ HTML报告已保存: {full_path}")
        return full_path
    except OSError as e:
        logger.error(f"❌ 保存HTML报告失败 ({full_path}): {e}")
        return None
