# utils.py
import logging
from typing import Optional
import sys
import os
import subprocess

from config import GlobalConfig


# 将日志配置移到这里，作为一个可被调用的函数
def setup_logging(level: Optional[str] = None):
    """配置全局日志"""
    level_name = (level or GlobalConfig.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def open_report_in_browser(filename: str):
    """在浏览器中打开报告"""
    logger = logging.getLogger(__name__)
    try:
        if os.name == "nt":  # Windows
            os.startfile(filename)
        elif sys.platform == "darwin":
            subprocess.run(["open", filename], check=False)
        else:
            subprocess.run(["xdg-open", filename], check=False)
        logger.info(f"🌐 已在浏览器中打开报告: {filename}")
    except Exception as e:
        logger.warning(f"无法自动打开报告，请手动打开: {filename}, 错误: {e}")
