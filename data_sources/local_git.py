# data_sources/local_git.py
import logging
import os
from typing import Iterator, Optional

from .base import DataSource
from models import (
    BranchNotFoundError,
    MissingGitConfigError,
    RawCommit,
    RepositoryError,
)
from config import GlobalConfig
import git_utils

logger = logging.getLogger(__name__)


class LocalGitDataSource(DataSource):
    """
    [V5.0] 本地 Git 数据源实现。
    通过调用 git 命令行工具只读地访问本地仓库。
    """

    def __init__(self, repo_path: str, global_config: Optional[GlobalConfig] = None):
        self._repo_path = os.path.abspath(repo_path)
        self.global_config = global_config or GlobalConfig()
        self._closed = False

    @property
    def repository_name(self) -> str:
        return os.path.basename(self._repo_path.rstrip(os.sep)) or self._repo_path

    @property
    def repository_path(self) -> str:
        return self._repo_path

    def validate(self) -> None:
        if not os.path.isdir(self._repo_path):
            raise RepositoryError(f"路径不存在或不是目录: {self._repo_path}")
        if not git_utils.is_git_repository(self._repo_path):
            raise RepositoryError(f"指定路径不是 Git 仓库: {self._repo_path}")
        logger.info(f"✅ [DataSource] 已打开仓库: {self._repo_path}")

    def current_branch(self) -> str:
        output = git_utils.try_git_command(
            ["symbolic-ref", "--quiet", "--short", "HEAD"],
            self._repo_path,
            "获取当前分支",
            timeout=self.global_config.GIT_TIMEOUT,
        )
        if not output or not output.strip():
            raise RepositoryError(
                "无法确定当前分支 (HEAD 处于分离状态?)，请使用 --branch 指定分支"
            )
        return output.strip()

    def user_email(self) -> str:
        output = git_utils.try_git_command(
            ["config", "--get", "user.email"],
            self._repo_path,
            "读取 user.email",
            timeout=self.global_config.GIT_TIMEOUT,
        )
        email = (output or "").strip()
        if not email:
            raise MissingGitConfigError(
                "git 配置中未设置 user.email，请使用 --author 指定作者邮箱"
            )
        return email

    def resolve_branch(self, branch_name: str) -> str:
        output = git_utils.try_git_command(
            ["rev-parse", "--verify", "--quiet", f"refs/heads/{branch_name}^{{commit}}"],
            self._repo_path,
            f"解析分支 {branch_name}",
            timeout=self.global_config.GIT_TIMEOUT,
        )
        if not output or not output.strip():
            raise BranchNotFoundError(f"分支不存在: {branch_name}")
        return output.strip()

    def iter_log(self, start: str, first_parent: bool = False) -> Iterator[RawCommit]:
        if self._closed:
            raise RepositoryError(f"数据源已关闭: {self._repo_path}")
        cfg = self.global_config
        args = ["log", f"--format={cfg.GIT_LOG_FORMAT}"]
        if first_parent:
            args.append("--first-parent")
        args += [start, "--"]
        for record in git_utils.iter_git_records(
            args, self._repo_path, record_sep=cfg.GIT_RECORD_SEP
        ):
            raw = git_utils.parse_log_record(record, field_sep=cfg.GIT_FIELD_SEP)
            if raw is not None:
                yield raw

    def close(self) -> None:
        self._closed = True
