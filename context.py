# context.py
"""
[V5.0] 运行时配置的数据模型
"""
from dataclasses import dataclass
from typing import Optional

from config import GlobalConfig
from models import DateRange


@dataclass(frozen=True)
class RunContext:
    """
    (V5.0) 封装一次运行所需的所有参数。
    由 CLI 构造一次后传给 Orchestrator，运行期间不可修改。
    """

    # --- 核心路径 ---
    repo_path: str
    output_path: str
    config_path: Optional[str]

    # --- 筛选参数 ---
    date_range: DateRange
    author_email: Optional[str]
    branch: Optional[str]

    # --- 标志 ---
    first_parent: bool
    allow_empty: bool
    dry_run: bool

    # --- 全局配置 ---
    global_config: GlobalConfig
