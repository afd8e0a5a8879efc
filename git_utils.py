# git_utils.py
import logging
import subprocess
import tempfile
from datetime import datetime
from typing import Iterator, List, Optional

from models import RawCommit, RepositoryError

logger = logging.getLogger(__name__)


def _run(
    args: List[str], repo_path: str, context: str, timeout: Optional[int]
) -> subprocess.CompletedProcess:
    cmd = ["git", *args]
    logger.debug(f"在 {repo_path} 中执行命令: {' '.join(cmd)}")
    try:
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            cwd=repo_path,
        )
    except subprocess.TimeoutExpired as e:
        raise RepositoryError(f"{context}超时 ({timeout}s)") from e
    except OSError as e:
        raise RepositoryError(
            f"{context}失败: 未找到 git 可执行文件或目录 {repo_path}"
        ) from e


def run_git_command(
    args: List[str],
    repo_path: str,
    context: str = "执行Git命令",
    timeout: Optional[int] = 30,
) -> str:
    """
    (V5.0) 统一的Git命令执行函数
    - 使用参数列表，不经过 shell
    - 失败时抛出 RepositoryError (附带 stderr)，不再返回 None
    """
    result = _run(args, repo_path, context, timeout)
    if result.returncode != 0:
        raise RepositoryError(f"{context}失败: {result.stderr.strip()}")
    return result.stdout


def try_git_command(
    args: List[str],
    repo_path: str,
    context: str = "执行Git命令",
    timeout: Optional[int] = 30,
) -> Optional[str]:
    """执行 git 命令，非零退出码时返回 None (用于“值可能不存在”的查询)"""
    result = _run(args, repo_path, context, timeout)
    if result.returncode != 0:
        return None
    return result.stdout


def is_git_repository(repo_path: str) -> bool:
    """检查指定路径是否为Git仓库工作区"""
    output = try_git_command(["rev-parse", "--is-inside-work-tree"], repo_path)
    return output is not None and output.strip() == "true"


def iter_git_records(
    args: List[str],
    repo_path: str,
    record_sep: str = "\x1e",
    context: str = "读取Git日志",
    chunk_size: int = 8192,
) -> Iterator[str]:
    """
    (V5.0) 以流的方式执行 git 命令，并按记录分隔符逐条产出。
    - stderr 写入临时文件，避免管道写满导致死锁
    - 无论正常结束、异常还是调用方提前停止迭代，进程都会被回收
    """
    cmd = ["git", *args]
    logger.debug(f"在 {repo_path} 中执行流式命令: {' '.join(cmd)}")
    with tempfile.TemporaryFile() as stderr_file:
        try:
            proc = subprocess.Popen(
                cmd,
                cwd=repo_path,
                stdout=subprocess.PIPE,
                stderr=stderr_file,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise RepositoryError(f"{context}失败: 未找到 git 可执行文件或目录 {repo_path}") from e

        with proc:
            finished = False
            try:
                buffer = ""
                for chunk in iter(lambda: proc.stdout.read(chunk_size), ""):
                    buffer += chunk
                    *records, buffer = buffer.split(record_sep)
                    for record in records:
                        yield record
                if buffer.strip():
                    yield buffer
                finished = True
            finally:
                if not finished and proc.poll() is None:
                    proc.kill()

            returncode = proc.wait()

        if returncode != 0:
            stderr_file.seek(0)
            stderr = stderr_file.read().decode("utf-8", errors="replace").strip()
            raise RepositoryError(f"{context}失败 (exit {returncode}): {stderr}")


def parse_log_record(record: str, field_sep: str = "\x1f") -> Optional[RawCommit]:
    """
    解析一条 git log 记录 (格式: %H %an %ae %aI %B，以字段分隔符分隔)
    返回 RawCommit，空记录返回 None。
    """
    # tformat 会在每条记录后追加换行，落在下一条记录开头
    record = record.lstrip("\r\n")
    if not record.strip():
        return None
    parts = record.split(field_sep, 4)
    if len(parts) != 5:
        raise RepositoryError(f"Git 日志记录格式异常: {record[:80]!r}")
    sha, author_name, author_email, author_date, message = parts
    try:
        when = datetime.fromisoformat(author_date.strip().replace("Z", "+00:00"))
    except ValueError as e:
        raise RepositoryError(f"无法解析提交 {sha[:8]} 的作者时间: {author_date!r}") from e
    return RawCommit(
        sha=sha.strip(),
        author_name=author_name,
        author_email=author_email,
        author_date=when,
        message=message,
    )
