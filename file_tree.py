# file_tree.py
"""
[V1.0] 变更文件树
把扁平的 ChangeRecord 列表还原为目录层级，供终端和 HTML 报告展示。
"""
import logging
from typing import Dict, Iterator, List, Tuple

from models import ChangeRecord, FileTreeNode

logger = logging.getLogger(__name__)


def split_path(file: str) -> List[str]:
    """统一路径分隔符并拆分，丢弃空段 (例如 'a//b' 或前导 '/')"""
    if not file:
        return []
    return [segment for segment in file.replace("\\", "/").split("/") if segment]


def _sort_nodes(nodes: List[FileTreeNode]):
    # 目录在前，然后按名称排序 (区分大小写)
    nodes.sort(key=lambda node: (not node.is_directory, node.name))
    for node in nodes:
        if node.children:
            _sort_nodes(node.children)


def build_file_tree(changes: List[ChangeRecord]) -> List[FileTreeNode]:
    """
    根据变更记录构建文件树 (森林)。
    节点以累积路径为键，因此输入顺序不影响结果结构。
    某个路径既是一条记录的文件名、又是另一条记录的中间目录时，合并为同一个节点:
    保留其子节点，同时携带该记录的变更。
    """
    roots: List[FileTreeNode] = []
    nodes_by_path: Dict[str, FileTreeNode] = {}

    for change in changes or []:
        segments = split_path(change.file)
        if not segments:
            continue

        parent = None
        current_path = ""
        for index, segment in enumerate(segments):
            current_path = f"{current_path}/{segment}" if current_path else segment
            is_last = index == len(segments) - 1

            node = nodes_by_path.get(current_path)
            if node is None:
                node = FileTreeNode(
                    name=segment,
                    path=current_path,
                    is_directory=not is_last,
                )
                nodes_by_path[current_path] = node
                if parent is None:
                    roots.append(node)
                else:
                    parent.children.append(node)
                    parent.is_directory = True

            if is_last:
                node.change = change
            else:
                node.is_directory = True
            parent = node

    _sort_nodes(roots)
    return roots


def count_changes_in_tree(node: FileTreeNode) -> int:
    """统计节点自身及其所有后代中携带变更的节点数量 (用于目录徽标)"""
    own = 1 if node.change is not None else 0
    return own + sum(count_changes_in_tree(child) for child in node.children)


def walk_tree(
    nodes: List[FileTreeNode], depth: int = 0
) -> Iterator[Tuple[int, FileTreeNode]]:
    """深度优先遍历，产出 (深度, 节点)"""
    for node in nodes:
        yield depth, node
        if node.children:
            yield from walk_tree(node.children, depth + 1)
