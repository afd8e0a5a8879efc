# config.py
"""
[V5.0] 全局配置
- 进程级常量 (路径、格式、git 超时)
- 通过 .env 覆盖字体目录与默认配置文件路径
"""
import logging
import os
from datetime import date
from dotenv import load_dotenv

from models import DATE_FORMAT as _DATE_FORMAT

logger = logging.getLogger(__name__)


# --- 脚本基础路径 ---
SCRIPT_BASE_PATH = os.path.abspath(os.path.dirname(__file__))
env_path = os.path.join(SCRIPT_BASE_PATH, ".env")
if os.path.exists(env_path):
    load_dotenv(env_path)
    logger.debug(f"✅ 已从脚本目录加载 .env: {env_path}")
else:
    load_dotenv()


class GlobalConfig:
    """
    (V5.0) Git 报告的全局应用配置。
    """

    # --- 路径配置 ---
    SCRIPT_BASE_PATH: str = SCRIPT_BASE_PATH
    FONT_DIR: str = os.getenv(
        "GIT_REPORT_FONT_DIR", os.path.join(SCRIPT_BASE_PATH, "fonts")
    )
    DEFAULT_CONFIG_PATH: str = os.getenv("GIT_REPORT_CONFIG", "")

    # 内置字体无法显示 Latin-1 以外的字符时，自动查找的 Unicode 字体族
    UNICODE_FONT_FAMILY: str = os.getenv("GIT_REPORT_UNICODE_FONT", "DejaVuSans")
    SYSTEM_FONT_DIRS = [
        "/usr/share/fonts/truetype/dejavu",
        "/usr/share/fonts/dejavu",
        "/usr/share/fonts/TTF",
        "/usr/local/share/fonts",
        "/Library/Fonts",
        os.path.join(os.environ.get("WINDIR", "C:\\Windows"), "Fonts"),
    ]

    # --- 格式 ---
    DATE_FORMAT: str = _DATE_FORMAT
    TIMESTAMP_FORMAT: str = "%Y-%m-%d %H:%M:%S"
    SHORT_SHA_LENGTH: int = 8

    # --- 文件名 ---
    OUTPUT_FILENAME_PREFIX: str = "report"

    # --- Git 命令 ---
    GIT_TIMEOUT: int = int(os.getenv("GIT_REPORT_GIT_TIMEOUT", "30"))
    # git log 输出的字段/记录分隔符 (ASCII US / RS)
    GIT_FIELD_SEP: str = "\x1f"
    GIT_RECORD_SEP: str = "\x1e"
    GIT_LOG_FORMAT: str = "%H%x1f%an%x1f%ae%x1f%aI%x1f%B%x1e"

    def default_output_path(self, today=None) -> str:
        """默认输出文件名: report_YYYY-MM-DD.pdf"""
        today = today or date.today()
        return f"{self.OUTPUT_FILENAME_PREFIX}_{today.strftime(self.DATE_FORMAT)}.pdf"

    def font_search_dirs(self) -> list:
        """字体查找顺序: FONT_DIR 优先，其次是常见的系统字体目录"""
        return [self.FONT_DIR] + list(self.SYSTEM_FONT_DIRS)
