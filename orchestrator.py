# orchestrator.py
"""
[V5.0] 业务逻辑编排器
- 加载配置 -> 打开数据源 -> 确定作者/分支 -> 筛选提交 -> 渲染 PDF
- 单线程、线性执行，任何一步失败都直接向上抛出，不重试
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from context import RunContext
from config_manager import load_config
from commit_selector import select_commits
from data_sources.base import DataSource
from data_sources.factory import get_data_source
from models import ReportData
from pdf_converter import PDFGenerator
import report_builder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunResult:
    """一次运行的结果；未生成文件时 output_path 为 None"""

    output_path: Optional[str]
    commit_count: int
    author_email: str
    branch: str


class ReportOrchestrator:
    """
    (V5.0) 负责执行报告生成的核心业务流程。
    """

    def __init__(self, context: RunContext, source: Optional[DataSource] = None):
        self.context = context
        self.global_config = context.global_config
        self._source = source

    def run(self) -> RunResult:
        """
        (V5.0) 执行核心业务流程。
        """
        ctx = self.context

        # --- 1. 配置 (在访问仓库之前完成校验) ---
        report_config = load_config(ctx.config_path or self.global_config.DEFAULT_CONFIG_PATH)

        # --- 2. 数据源 ---
        source = self._source or get_data_source(ctx)
        with source:
            source.validate()

            author_email = ctx.author_email or source.user_email()
            branch = ctx.branch or source.current_branch()

            logger.info("=" * 50)
            logger.info("🚀 Git Report Generator 启动...")
            logger.info(f"   [目标仓库]: {source.repository_path}")
            logger.info(f"   [分支]: {branch}")
            logger.info(f"   [作者]: {author_email}")
            logger.info(f"   [时间范围]: {ctx.date_range.describe()}")
            logger.info("=" * 50)

            # --- 3. 筛选提交 ---
            commits = select_commits(
                source,
                branch,
                ctx.date_range,
                author_email,
                first_parent=ctx.first_parent,
                sha_length=self.global_config.SHORT_SHA_LENGTH,
            )

            report_data = ReportData(
                config=report_config,
                repository_name=source.repository_name,
                repository_path=source.repository_path,
                branch_name=branch,
                author_email=author_email,
                date_range=ctx.date_range,
                commits=commits,
                generated_at=datetime.now(),
            )

        if not commits and not ctx.allow_empty:
            logger.info(
                f"ℹ️ No commits found for author {author_email} between "
                f"{ctx.date_range.describe()} on branch {branch}"
            )
            return RunResult(None, 0, author_email, branch)

        # --- 4. 预览模式：只输出文本报告 ---
        if ctx.dry_run:
            logger.info("🧪 预览模式，不生成 PDF:\n" + report_builder.generate_text_report(report_data))
            return RunResult(None, len(commits), author_email, branch)

        # --- 5. 渲染 ---
        output_path = ctx.output_path or self.global_config.default_output_path()
        PDFGenerator(self.global_config).generate(report_data, output_path)

        logger.info(f"✅ Report generated successfully: {output_path}")
        logger.info(
            f"📊 Found {len(commits)} commits for {author_email} in {ctx.date_range.describe()}"
        )
        return RunResult(output_path, len(commits), author_email, branch)
