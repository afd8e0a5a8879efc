# data_sources/factory.py
import logging
from context import RunContext
from models import RepositoryError
from .base import DataSource
from .local_git import LocalGitDataSource

logger = logging.getLogger(__name__)


def get_data_source(context: RunContext) -> DataSource:
    """
    [V5.0] 数据源工厂
    仅支持本地仓库路径；远程 URL 不在支持范围内 (无网络访问)。
    """
    path = context.repo_path.lower()

    if path.startswith(("http://", "https://", "git@")):
        raise RepositoryError(f"不支持远程仓库，请提供本地路径: {context.repo_path}")

    logger.info("🔌 [Factory] 初始化数据源: Local Git")
    return LocalGitDataSource(context.repo_path, context.global_config)
