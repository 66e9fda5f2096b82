"""git 命令行客户端 — VcsClient 协议的默认实现

所有命令经 CommandExecutor 执行，测试可整体替换执行器。
凭据仅以 http.extraHeader 形式随单条命令传递，不写入仓库配置。
"""

from __future__ import annotations

import base64
import logging
import os
import re
from pathlib import Path

from pipehub.core.exceptions import GitCommandError
from pipehub.core.models import Credentials, GitRef
from pipehub.utils.shell import CommandExecutor, CommandResult, get_executor

logger = logging.getLogger(__name__)

_SUBMODULE_PATH_RE = re.compile(r"Submodule path '([^']+)'")


def _auth_args(credentials: Credentials | None) -> list[str]:
    if credentials is None:
        return []
    token = base64.b64encode(
        f"{credentials.user}:{credentials.password}".encode()
    ).decode("ascii")
    return ["-c", f"http.extraHeader=Authorization: Basic {token}"]


class GitClient:
    """基于 git 可执行文件的版本控制客户端"""

    def __init__(self, executor: CommandExecutor | None = None, git_bin: str = "git") -> None:
        self._executor = executor
        self.git_bin = git_bin

    @property
    def executor(self) -> CommandExecutor:
        return self._executor or get_executor()

    def run_git(
        self,
        args: list[str],
        *,
        cwd: Path | str = ".",
        credentials: Credentials | None = None,
        raise_on_error: bool = True,
        binary: bool = False,
    ) -> CommandResult:
        """执行 git 命令，raise_on_error=True 时失败抛 GitCommandError"""
        cmd = [self.git_bin, *_auth_args(credentials), *args]
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        r = self.executor.execute(cmd, cwd=str(cwd), env=env, binary=binary)
        if raise_on_error and not r.success:
            # 命令行中可能含凭据头，记录时只保留 git 子命令部分
            raise GitCommandError([self.git_bin, *args], r.returncode, r.stderr)
        return r

    # ---- clone / fetch ----

    def clone(
        self,
        url: str,
        dest: Path,
        *,
        mirror: bool = False,
        depth: int | None = None,
        branch: str | None = None,
        recurse_submodules: bool = False,
        no_checkout: bool = False,
        credentials: Credentials | None = None,
    ) -> None:
        args = ["clone", "--quiet"]
        if mirror:
            args.append("--mirror")
        if depth:
            args += ["--depth", str(depth)]
        if branch:
            args += ["--branch", branch]
        if recurse_submodules:
            args.append("--recurse-submodules")
        if no_checkout:
            args.append("--no-checkout")
        args += ["--", url, str(dest)]
        dest.parent.mkdir(parents=True, exist_ok=True)
        self.run_git(args, cwd=dest.parent, credentials=credentials)

    def fetch(
        self,
        repo: Path,
        *,
        refspec: str | None = None,
        depth: int | None = None,
        credentials: Credentials | None = None,
    ) -> None:
        args = ["fetch", "--quiet", "origin"]
        if depth:
            args[2:2] = ["--depth", str(depth)]
        if refspec:
            args.append(refspec)
        self.run_git(args, cwd=repo, credentials=credentials)

    # ---- 引用解析 ----

    def resolve(self, repo: Path, rev: str) -> str | None:
        r = self.run_git(
            ["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"],
            cwd=repo, raise_on_error=False,
        )
        if not r.success:
            return None
        return r.stdout.strip() or None

    def checkout(self, repo: Path, rev: str) -> None:
        self.run_git(["checkout", "--quiet", rev], cwd=repo)

    def ls_remote(
        self,
        url: str,
        *,
        heads: bool = False,
        tags: bool = False,
        credentials: Credentials | None = None,
    ) -> dict[str, str]:
        args = ["ls-remote"]
        if heads:
            args.append("--heads")
        if tags:
            args.append("--tags")
        args += ["--", url]
        r = self.run_git(args, credentials=credentials)
        refs: dict[str, str] = {}
        peeled: dict[str, str] = {}
        for line in r.stdout.splitlines():
            sha, _, name = line.strip().partition("\t")
            if not sha or not name:
                continue
            if name.endswith("^{}"):
                peeled[name[: -len("^{}")]] = sha
            else:
                refs[name] = sha
        # annotated tag 取其指向的 commit
        refs.update({k: v for k, v in peeled.items() if k in refs})
        return refs

    def list_refs(self, repo: Path, prefix: str) -> list[GitRef]:
        r = self.run_git(
            ["for-each-ref", "--format=%(refname)%09%(objectname)%09%(*objectname)", prefix],
            cwd=repo,
        )
        result: list[GitRef] = []
        for line in r.stdout.splitlines():
            parts = line.split("\t")
            if len(parts) < 2 or not parts[0]:
                continue
            peeled = parts[2].strip() if len(parts) > 2 else ""
            result.append(GitRef(name=parts[0], object_id=parts[1], peeled_id=peeled or None))
        return result

    def symbolic_head(self, repo: Path) -> str | None:
        r = self.run_git(["symbolic-ref", "-q", "HEAD"], cwd=repo, raise_on_error=False)
        if not r.success:
            return None
        return r.stdout.strip() or None

    def head_commit(self, repo: Path) -> str | None:
        return self.resolve(repo, "HEAD")

    def tag_for_commit(self, repo: Path, commit_id: str) -> str | None:
        r = self.run_git(
            ["describe", "--tags", "--exact-match", commit_id],
            cwd=repo, raise_on_error=False,
        )
        if not r.success:
            return None
        return r.stdout.strip() or None

    def remote_url(self, repo: Path, remote: str = "origin") -> str | None:
        r = self.run_git(
            ["config", "--get", f"remote.{remote}.url"], cwd=repo, raise_on_error=False,
        )
        if not r.success:
            return None
        return r.stdout.strip() or None

    # ---- submodule ----

    def submodule_init(self, repo: Path, paths: list[str]) -> None:
        self.run_git(["submodule", "--quiet", "init", "--", *paths], cwd=repo)

    def submodule_update(
        self,
        repo: Path,
        paths: list[str],
        *,
        recursive: bool = False,
        credentials: Credentials | None = None,
    ) -> list[str]:
        args = ["submodule", "update"]
        if recursive:
            args += ["--recursive", "--merge"]
        args += ["--", *paths]
        r = self.run_git(args, cwd=repo, credentials=credentials)
        return _SUBMODULE_PATH_RE.findall(r.stdout)

    # ---- 工作区 / 文件 ----

    def show_file(self, repo: Path, rev: str, path: str) -> bytes:
        objname = f"{rev}:{path}"
        exists = self.run_git(["cat-file", "-e", objname], cwd=repo, raise_on_error=False)
        if not exists.success:
            raise FileNotFoundError(f"{path} 在 {repo}@{rev} 中不存在")
        r = self.run_git(["cat-file", "-p", objname], cwd=repo, binary=True)
        return r.stdout.encode("latin-1")

    def is_clean(self, repo: Path) -> bool:
        r = self.run_git(["status", "--porcelain"], cwd=repo, raise_on_error=False)
        if not r.success:
            logger.debug("无法获取仓库状态，视为干净: %s", repo)
            return True
        return not r.stdout.strip()
