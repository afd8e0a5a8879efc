# cli.py
"""
[V5.0] 命令行界面 (Interface) 层
- 解析参数、校验日期 (在访问仓库之前)
- 组装不可变的 RunContext 并交给 Orchestrator
"""
import argparse
import logging
import os
from typing import List, Optional

import config_manager
from config import GlobalConfig
from context import RunContext
from models import DateRange, GitReportError
from orchestrator import ReportOrchestrator

logger = logging.getLogger(__name__)


def setup_parser() -> argparse.ArgumentParser:
    """
    (V5.0) 负责所有 argparse 的定义。
    """
    parser = argparse.ArgumentParser(
        prog="git-report-generator",
        description="Generate PDF reports of Git commits for a specified author and time period.",
        formatter_class=argparse.RawTextHelpFormatter,
        epilog=(
            "Example usage:\n"
            "  git-report-generator --repo /path/to/repo --from 2024-01-01 --to 2024-01-31\n"
            "  git-report-generator -f 2024-01-01 -t 2024-01-31 --author john@example.com"
        ),
    )

    parser.add_argument(
        "--init-config",
        metavar="PATH",
        default=None,
        help="将默认配置写入 PATH 后退出 (可在此基础上修改)。",
    )

    parser.add_argument(
        "-r",
        "--repo",
        type=str,
        default=".",
        help="Git 仓库路径 (默认: 当前目录)",
    )
    parser.add_argument(
        "-f",
        "--from",
        dest="date_from",
        type=str,
        help="起始日期 (YYYY-MM-DD，必填)",
    )
    parser.add_argument(
        "-t",
        "--to",
        dest="date_to",
        type=str,
        help="结束日期 (YYYY-MM-DD，必填，包含当天)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="输出 PDF 路径 (默认: report_YYYY-MM-DD.pdf)",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=None,
        help="配置文件路径 (JSON)。\n(默认: 环境变量 GIT_REPORT_CONFIG 或内置默认配置)",
    )
    parser.add_argument(
        "-a",
        "--author",
        type=str,
        default=None,
        help="按作者邮箱筛选提交 (默认: git config user.email)",
    )
    parser.add_argument(
        "-b",
        "--branch",
        type=str,
        default=None,
        help="要分析的分支 (默认: 当前分支)",
    )

    # --- 标志 (Flags) ---
    parser.add_argument(
        "--first-parent", action="store_true", help="只沿第一父提交遍历历史"
    )
    parser.add_argument(
        "--allow-empty",
        action="store_true",
        help="没有匹配的提交时仍生成报告 (默认: 跳过生成)",
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="只在终端输出文本报告，不生成 PDF"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="输出调试日志")

    return parser


def build_context(args: argparse.Namespace, global_config: GlobalConfig) -> RunContext:
    """
    校验参数并组装 RunContext。
    日期在这里完成解析与校验，失败时抛出 InputValidationError，此时尚未访问仓库。
    """
    date_range = DateRange.parse(args.date_from, args.date_to)

    return RunContext(
        repo_path=os.path.abspath(args.repo),
        output_path=args.output or global_config.default_output_path(),
        config_path=args.config,
        date_range=date_range,
        author_email=args.author,
        branch=args.branch,
        first_parent=args.first_parent,
        allow_empty=args.allow_empty,
        dry_run=args.dry_run,
        global_config=global_config,
    )


def run_cli(argv: Optional[List[str]] = None) -> int:
    """
    (V5.0) 主入口点，返回进程退出码。
    所有可预期的错误在这里统一输出一行信息，不重试。
    """
    parser = setup_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    global_config = GlobalConfig()

    try:
        # 特殊模式：--init-config
        if args.init_config:
            config_manager.save_config(config_manager.default_config(), args.init_config)
            return 0

        if not args.date_from or not args.date_to:
            parser.error("the following arguments are required: -f/--from, -t/--to")

        run_context = build_context(args, global_config)
        result = ReportOrchestrator(run_context).run()
    except GitReportError as e:
        logger.error(f"❌ {e}")
        return 1

    logger.debug(f"运行结果: {result}")
    return 0
