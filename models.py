# models.py
"""
[V5.0] 报告生成器的数据模型
- Commit / RawCommit: 提交记录
- DateRange: 日期范围 (包含 to 当天整天)
- ReportData: 一次渲染所需的全部数据
- GitReportError 及其子类: 统一的错误分类
"""
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from config_manager import ReportConfig


# -------------------------------------------------------------------
# 错误分类
# -------------------------------------------------------------------
class GitReportError(Exception):
    """所有可预期错误的基类，由 CLI 顶层统一捕获并输出一行错误信息。"""


class InputValidationError(GitReportError):
    """(a) 输入校验错误：日期格式错误、日期范围颠倒。"""


class RepositoryError(GitReportError):
    """(b) 仓库访问错误：不是 Git 仓库、git 命令失败。"""


class BranchNotFoundError(RepositoryError):
    """分支引用无法解析。"""


class MissingGitConfigError(RepositoryError):
    """git config 中缺少必要的值 (如 user.email)。"""


class ConfigError(GitReportError):
    """配置文件缺失、无法解析或校验未通过。"""


class RenderError(GitReportError):
    """(c) 渲染错误：模板、字体、文件写入失败。"""


# -------------------------------------------------------------------
# 提交记录
# -------------------------------------------------------------------
@dataclass(frozen=True)
class RawCommit:
    """数据源返回的原始提交 (完整 SHA + 原始提交信息)"""

    sha: str
    author_name: str
    author_email: str
    author_date: datetime
    message: str


@dataclass(frozen=True)
class Commit:
    """筛选后的提交记录，创建后不再修改"""

    sha: str
    date: datetime
    author: str
    author_email: str
    title: str
    description: str


# -------------------------------------------------------------------
# 日期范围
# -------------------------------------------------------------------
DATE_FORMAT = "%Y-%m-%d"
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _as_utc(ts: datetime) -> datetime:
    # 无时区的时间戳按 UTC 处理
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass(frozen=True)
class DateRange:
    """
    包含下界、包含上界当天整天的日期范围。
    比较时使用 [start, end)，其中 end 为 date_to 次日 00:00 (UTC)。
    """

    date_from: date
    date_to: date

    def __post_init__(self):
        if self.date_from > self.date_to:
            raise InputValidationError(
                f"起始日期 {self.date_from:%Y-%m-%d} 不能晚于结束日期 {self.date_to:%Y-%m-%d}"
            )

    @classmethod
    def parse(cls, date_from: str, date_to: str) -> "DateRange":
        return cls(
            parse_date(date_from, "from"),
            parse_date(date_to, "to"),
        )

    @property
    def start(self) -> datetime:
        return datetime.combine(self.date_from, time.min, tzinfo=timezone.utc)

    @property
    def end(self) -> datetime:
        return datetime.combine(
            self.date_to + timedelta(days=1), time.min, tzinfo=timezone.utc
        )

    def contains(self, ts: datetime) -> bool:
        return self.start <= _as_utc(ts) < self.end

    def describe(self) -> str:
        return f"{self.date_from.strftime(DATE_FORMAT)} - {self.date_to.strftime(DATE_FORMAT)}"


def parse_date(value: str, label: str = "date") -> date:
    """解析 YYYY-MM-DD 格式的日期，失败时抛出 InputValidationError"""
    if not _DATE_PATTERN.match(value or ""):
        raise InputValidationError(
            f"无效的 {label} 日期 '{value}'，请使用 YYYY-MM-DD 格式"
        )
    try:
        return datetime.strptime(value or "", DATE_FORMAT).date()
    except ValueError as e:
        raise InputValidationError(
            f"无效的 {label} 日期 '{value}'，请使用 YYYY-MM-DD 格式: {e}"
        ) from e


# -------------------------------------------------------------------
# 报告数据
# -------------------------------------------------------------------
@dataclass
class ReportData:
    """一次报告渲染所需的全部数据，构造一次、渲染一次后丢弃"""

    config: "ReportConfig"
    repository_name: str
    repository_path: str
    branch_name: str
    author_email: str
    date_range: DateRange
    commits: List[Commit] = field(default_factory=list)
    generated_at: Optional[datetime] = None

    @property
    def total_commits(self) -> int:
        return len(self.commits)
