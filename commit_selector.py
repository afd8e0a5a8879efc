# commit_selector.py
"""
[V5.0] Commit Selector
按分支、日期范围、作者邮箱筛选提交，并按作者时间倒序 (最新在前) 排列。
"""
import logging
from typing import List, Tuple

from config import GlobalConfig
from data_sources.base import DataSource
from models import Commit, DateRange, RawCommit

logger = logging.getLogger(__name__)


def parse_commit_message(message: str) -> Tuple[str, str]:
    """
    将提交信息拆分为标题和描述。
    - 标题：第一个非空行
    - 描述：其余非空行去除首尾空白后以单个空格连接
    """
    lines = [line.strip() for line in (message or "").splitlines()]
    lines = [line for line in lines if line]
    if not lines:
        return "", ""
    return lines[0], " ".join(lines[1:])


def matches(raw: RawCommit, date_range: DateRange, author_email: str) -> bool:
    """作者时间落在范围内，且作者邮箱 (忽略大小写) 匹配"""
    if not date_range.contains(raw.author_date):
        return False
    return raw.author_email.strip().casefold() == author_email.strip().casefold()


def to_commit(raw: RawCommit, sha_length: int = GlobalConfig.SHORT_SHA_LENGTH) -> Commit:
    title, description = parse_commit_message(raw.message)
    return Commit(
        sha=raw.sha[:sha_length],
        date=raw.author_date,
        author=raw.author_name,
        author_email=raw.author_email,
        title=title,
        description=description,
    )


def select_commits(
    source: DataSource,
    branch_name: str,
    date_range: DateRange,
    author_email: str,
    first_parent: bool = False,
    sha_length: int = GlobalConfig.SHORT_SHA_LENGTH,
) -> List[Commit]:
    """
    遍历 branch_name 可达的提交历史并筛选。
    数据源的错误 (分支不存在、日志读取失败) 原样向上抛出。
    """
    start = source.resolve_branch(branch_name)
    logger.info(f"🔍 分支 {branch_name} -> {start[:sha_length]}，开始遍历提交历史")

    selected: List[Commit] = []
    scanned = 0
    for raw in source.iter_log(start, first_parent=first_parent):
        scanned += 1
        if matches(raw, date_range, author_email):
            selected.append(to_commit(raw, sha_length))

    # 不依赖日志自身的顺序，显式稳定排序
    selected.sort(key=lambda c: c.date, reverse=True)

    logger.info(
        f"✅ 共扫描 {scanned} 个提交，匹配 {len(selected)} 个 "
        f"(作者: {author_email}, 范围: {date_range.describe()})"
    )
    return selected
