# git_utils.py
import subprocess
import logging
from typing import Optional, List, Tuple

from models import CommitInfo
from status_parser import unquote_path

logger = logging.getLogger(__name__)

# 字段分隔符 (ASCII Unit Separator)，避免提交信息中的 '|' 破坏解析
FIELD_SEPARATOR = "\x1f"
COMMIT_INFO_FORMAT = f"%H{FIELD_SEPARATOR}%s{FIELD_SEPARATOR}%an{FIELD_SEPARATOR}%ad"


class GitCommandError(RuntimeError):
    """Git 命令执行失败 (仅在 check=True 时抛出)"""

    def __init__(self, command: List[str], stderr: str = ""):
        self.command = command
        self.stderr = stderr.strip()
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(f"Git 命令失败 ({' '.join(command)}){detail}")


def run_git_command(
    args: List[str],
    repo_path: str,
    context: str = "执行Git命令",
    check: bool = False,
    timeout: int = 30,
) -> Optional[str]:
    """
    统一的Git命令执行函数
    - 在 repo_path 下执行 git <args>
    - check=False 时失败返回 None；check=True 时抛出 GitCommandError
    - 返回原始 stdout (不做 strip，porcelain 输出的前导空格有意义)
    """
    # 关闭路径转义，中文等非 ASCII 文件名按原样输出
    command = ["git", "-c", "core.quotePath=false"] + list(args)
    try:
        logger.debug(f"在 {repo_path} 中执行命令: {' '.join(command)}")
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            encoding="utf-8",
            timeout=timeout,
            cwd=repo_path,
        )
    except subprocess.TimeoutExpired:
        logger.error(f"{context}超时")
        if check:
            raise GitCommandError(command, "timeout")
        return None
    except OSError as e:
        logger.error(f"{context}出错: {e}")
        if check:
            raise GitCommandError(command, str(e)) from e
        return None

    if result.returncode != 0:
        logger.error(f"{context}失败: {result.stderr.strip()}")
        if check:
            raise GitCommandError(command, result.stderr)
        return None
    logger.debug(f"{context}成功，输出 {len(result.stdout.splitlines())} 行")
    return result.stdout


def is_git_repository(repo_path: str) -> bool:
    """检查指定路径是否为Git仓库"""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--is-inside-work-tree"],
            capture_output=True,
            text=True,
            cwd=repo_path,
        )
        return result.returncode == 0 and result.stdout.strip() == "true"
    except OSError:
        return False


def split_lines(output: Optional[str]) -> List[str]:
    """把命令输出拆成非空行列表"""
    if not output:
        return []
    return [line.strip() for line in output.splitlines() if line.strip()]


def get_current_branch(repo_path: str) -> str:
    output = run_git_command(["branch", "--show-current"], repo_path, "获取当前分支")
    return output.strip() if output else ""


def get_status_output(repo_path: str) -> str:
    output = run_git_command(["status", "--porcelain"], repo_path, "获取工作区状态")
    return output or ""


def parse_numstat_output(output: Optional[str]) -> Tuple[int, int]:
    """
    解析 git diff --numstat 的第一行: "added<TAB>deleted<TAB>path"
    二进制文件显示为 '-'，按 0 处理；空输出表示没有差异。
    """
    lines = split_lines(output)
    if not lines:
        return 0, 0
    parts = lines[0].split("\t")
    additions = int(parts[0]) if parts[0].isdigit() else 0
    deletions = int(parts[1]) if len(parts) > 1 and parts[1].isdigit() else 0
    return additions, deletions


def get_file_numstat(repo_path: str, file: str, staged: bool) -> Tuple[int, int]:
    """获取单个文件的新增/删除行数，命令失败时抛出 GitCommandError"""
    args = ["diff", "--cached", "--numstat", "--", file] if staged else [
        "diff",
        "--numstat",
        "--",
        file,
    ]
    output = run_git_command(args, repo_path, f"获取 {file} 的行数统计", check=True)
    return parse_numstat_output(output)


def get_staged_files(repo_path: str) -> List[str]:
    output = run_git_command(["diff", "--cached", "--name-only"], repo_path, "获取暂存文件")
    return split_lines(output)


def add_files(repo_path: str, files: List[str]):
    """逐个把文件加入暂存区"""
    for file in files:
        run_git_command(["add", "--", file], repo_path, f"暂存 {file}", check=True)


def commit(repo_path: str, message: str):
    run_git_command(["commit", "-m", message], repo_path, "提交", check=True)


def push(repo_path: str, branch: str):
    run_git_command(["push", "origin", branch], repo_path, f"推送到 {branch}", check=True)


def parse_commit_info(log_output: str, files_output: Optional[str]) -> Optional[CommitInfo]:
    """解析 git log -1 --pretty=format:COMMIT_INFO_FORMAT 的输出"""
    if not log_output or not log_output.strip():
        return None
    parts = log_output.strip().split(FIELD_SEPARATOR)
    if len(parts) < 4:
        logger.warning(f"提交格式异常: {log_output!r}")
        return None
    return CommitInfo(
        hash=parts[0].strip(),
        message=parts[1].strip(),
        author=parts[2].strip(),
        date=parts[3].strip(),
        files=[unquote_path(line) for line in split_lines(files_output)],
    )


def get_commit_info(repo_path: str, ref: str = "HEAD") -> Optional[CommitInfo]:
    """获取指定提交 (默认 HEAD) 的元数据和修改文件列表"""
    log_output = run_git_command(
        ["log", "-1", f"--pretty=format:{COMMIT_INFO_FORMAT}", "--date=iso-strict", ref, "--"],
        repo_path,
        f"获取提交 {ref}",
    )
    if log_output is None:
        return None
    files_output = run_git_command(
        ["diff-tree", "--root", "--no-commit-id", "--name-only", "-r", ref],
        repo_path,
        f"获取提交 {ref} 的文件列表",
    )
    return parse_commit_info(log_output, files_output)


def get_recent_commit_hashes(repo_path: str, count: int) -> List[str]:
    output = run_git_command(
        ["log", "-n", str(count), "--pretty=format:%H"], repo_path, "获取最近提交"
    )
    return split_lines(output)
