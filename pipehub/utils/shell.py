"""外部命令执行 — git 子进程的统一入口

GitClient 只依赖 CommandExecutor 协议，测试可整体替换执行器而无需 patch subprocess。
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Protocol

from pipehub.utils.logger import redact

logger = logging.getLogger(__name__)

TIMEOUT_RETURNCODE = 124
NOT_FOUND_RETURNCODE = 127


@dataclass
class CommandResult:
    """命令执行结果"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


class CommandExecutor(Protocol):
    """命令执行器协议"""

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
        binary: bool = False,
    ) -> CommandResult:
        """执行命令并返回结果，命令失败不抛异常"""
        ...


class LocalExecutor:
    """本地子进程执行器

    binary=True 时 stdout 以 latin-1 解码，调用方可用 encode("latin-1") 无损还原字节
    （git cat-file 读取任意文件内容）。超时与可执行文件缺失分别按返回码 124 / 127 报告。
    """

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
        binary: bool = False,
    ) -> CommandResult:
        logger.debug("exec: %s (cwd=%s)", redact(" ".join(cmd)), cwd)
        try:
            r = subprocess.run(
                cmd, capture_output=True, cwd=cwd, env=env, check=False, timeout=timeout,
            )
        except FileNotFoundError as e:
            return CommandResult(NOT_FOUND_RETURNCODE, "", str(e))
        except subprocess.TimeoutExpired:
            logger.warning("命令超时 (%ss): %s", timeout, redact(" ".join(cmd[:3])))
            return CommandResult(TIMEOUT_RETURNCODE, "", f"timed out after {timeout}s")
        return CommandResult(
            returncode=r.returncode,
            stdout=r.stdout.decode("latin-1" if binary else "utf-8", errors="replace"),
            stderr=r.stderr.decode("utf-8", errors="replace"),
        )


_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    """当前默认执行器"""
    return _default_executor


def set_executor(executor: CommandExecutor) -> None:
    """替换默认执行器"""
    global _default_executor  # noqa: PLW0603
    _default_executor = executor
