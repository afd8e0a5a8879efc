# report_builder.py
"""
[V5.0] 报告内容构建器
负责准备数据上下文：页眉模板展开 (Jinja2)、提交表格行、汇总信息。
PDF 排版由 pdf_converter 负责。
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Tuple

from jinja2 import Environment, TemplateError, Undefined

from config import GlobalConfig
from models import Commit, RenderError, ReportData

logger = logging.getLogger(__name__)

# 模板中可用的占位符
PLACEHOLDER_KEYS = (
    "executor_name",
    "executor_email",
    "recipient_name",
    "location",
    "repository_name",
    "repository_path",
    "branch_name",
    "date_from",
    "date_to",
)

NO_COMMITS_TEXT = "No commits in the selected period."


@dataclass(frozen=True)
class HeaderText:
    """展开后的页眉三段：日期/地点行、标题行、正文"""

    date_line: str
    title: str
    body: str


# 用户模板可能有意省略某些键：未定义的占位符一律渲染为空字符串
_env = Environment(undefined=Undefined, autoescape=False, keep_trailing_newline=False)


def build_template_context(data: ReportData) -> Dict[str, Any]:
    header = data.config.header
    fmt = GlobalConfig.DATE_FORMAT
    return {
        "executor_name": header.executor_name,
        "executor_email": header.executor_email,
        "recipient_name": header.recipient_name,
        "location": header.location,
        "repository_name": data.repository_name,
        "repository_path": data.repository_path,
        "branch_name": data.branch_name,
        "date_from": data.date_range.date_from.strftime(fmt),
        "date_to": data.date_range.date_to.strftime(fmt),
    }


def split_header_template(template: str) -> Tuple[str, str, str]:
    """将模板拆分为 第一行 (日期/地点)、第二行 (标题)、其余 (正文)"""
    lines = (template or "").split("\n")
    if len(lines) < 2:
        raise RenderError("页眉模板格式无效: 至少需要两行 (日期行 + 标题行)")
    return lines[0], lines[1], "\n".join(lines[2:])


def expand_template(segment: str, context: Dict[str, Any], name: str) -> str:
    try:
        return _env.from_string(segment).render(**context)
    except TemplateError as e:
        raise RenderError(f"无法解析页眉模板 ({name}): {e}") from e


def render_header(data: ReportData) -> HeaderText:
    """三段分别独立展开"""
    date_line, title_line, body = split_header_template(data.config.header.template)
    context = build_template_context(data)

    header = HeaderText(
        date_line=expand_template(date_line, context, "date"),
        title=expand_template(title_line, context, "title"),
        body=expand_template(body, context, "body"),
    )
    logger.debug(f"页眉日期行: {header.date_line}")
    logger.debug(f"页眉标题行: {header.title}")
    logger.debug(f"页眉正文: {header.body}")
    return header


def build_table_rows(commits: List[Commit]) -> List[Tuple[str, str, str, str]]:
    """提交表格的行：(日期, 短 SHA, 标题, 描述)"""
    fmt = GlobalConfig.DATE_FORMAT
    return [(c.date.strftime(fmt), c.sha, c.title, c.description) for c in commits]


def build_summary_lines(data: ReportData) -> List[str]:
    return [
        f"Total commits: {data.total_commits}",
        f"Author: {data.author_email}",
        f"Period: {data.date_range.describe()}",
    ]


def generation_timestamp(data: ReportData) -> str:
    generated_at = data.generated_at or datetime.now()
    return f"Report generated: {generated_at.strftime(GlobalConfig.TIMESTAMP_FORMAT)}"


def generate_text_report(data: ReportData) -> str:
    """
    生成纯文本格式的报告 (用于 --dry-run 的终端输出)。
    """
    header = render_header(data)
    lines = [
        "=" * 80,
        header.date_line,
        header.title.center(80).rstrip(),
        "=" * 80,
    ]
    if header.body.strip():
        lines += [header.body, ""]

    if not data.commits:
        lines.append(NO_COMMITS_TEXT)
    else:
        lines.append(f" {'Date':<10} | {'SHA':<8} | Description")
        lines.append("-" * 80)
        for date_str, sha, title, description in build_table_rows(data.commits):
            lines.append(f" {date_str:<10} | {sha:<8} | {title}")
            if description:
                lines.append(f" {'':<10} | {'':<8} | {description}")
        lines.append("-" * 80)

    lines.append("")
    lines.append("Summary:")
    lines += [f"  {line}" for line in build_summary_lines(data)]
    lines.append(generation_timestamp(data))
    lines.append("=" * 80)
    return "\n".join(lines)
