from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class SheetsError(Exception):
    """电子表格 API 调用失败，code 为 HTTP 状态码 (未知时为 None)"""

    def __init__(self, message: str, code: Optional[int] = None):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}" if code else message)


class CommitSheetStore(ABC):
    """
    [V1.0] 电子表格存储抽象基类
    只追加的行存储，行的列顺序由 sheets.layout 定义。
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """存储后端名称 (日志显示用)"""
        pass

    @abstractmethod
    def ensure_sheet(self, title: str) -> bool:
        """确保工作表存在，新建时返回 True"""
        pass

    @abstractmethod
    def get_sheet_id(self, title: str) -> Optional[int]:
        pass

    @abstractmethod
    def read_values(self, cell_range: str) -> List[List[str]]:
        """读取区域内的所有行，空区域返回 []"""
        pass

    @abstractmethod
    def append_values(self, cell_range: str, rows: List[List[str]]):
        pass

    @abstractmethod
    def update_values(self, cell_range: str, rows: List[List[str]]):
        pass

    @abstractmethod
    def clear_values(self, cell_range: str):
        pass

    @abstractmethod
    def apply_background_color(
        self,
        sheet_id: int,
        start_row: int,
        end_row: int,
        column_count: int,
        rgb: Dict[str, float],
    ):
        """给 [start_row, end_row) 行 (0 起始) 的前 column_count 列设置背景色"""
        pass

    @abstractmethod
    def describe(self) -> Dict[str, Any]:
        """返回表格的基本信息 (id, title, sheets, url)"""
        pass
