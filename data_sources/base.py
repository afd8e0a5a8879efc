# data_sources/base.py
from abc import ABC, abstractmethod
from typing import Iterator

from models import RawCommit


class DataSource(ABC):
    """
    [V5.0] 仓库数据源抽象基类 (只读)
    定义了读取仓库元数据和提交历史的标准接口，Commit Selector 只依赖此接口。
    支持 with 语句，保证任何退出路径上都会调用 close()。
    """

    @property
    @abstractmethod
    def repository_name(self) -> str:
        """仓库名称 (用于报告页眉)"""

    @property
    @abstractmethod
    def repository_path(self) -> str:
        """仓库的绝对路径"""

    @abstractmethod
    def validate(self) -> None:
        """
        验证数据源是否可用，不可用时抛出 RepositoryError。
        """

    @abstractmethod
    def current_branch(self) -> str:
        """当前检出的分支名称"""

    @abstractmethod
    def user_email(self) -> str:
        """仓库配置中的 user.email，未配置时抛出 MissingGitConfigError"""

    @abstractmethod
    def resolve_branch(self, branch_name: str) -> str:
        """
        将分支名解析为提交 ID。
        分支不存在时抛出 BranchNotFoundError。
        """

    @abstractmethod
    def iter_log(self, start: str, first_parent: bool = False) -> Iterator[RawCommit]:
        """
        从 start 开始遍历可达的提交历史，顺序由底层日志决定 (通常为时间倒序)。
        """

    def close(self) -> None:
        """释放数据源持有的资源"""

    def __enter__(self) -> "DataSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
