"""领域协议定义

集中定义 scm 各组件依赖的外部能力契约（Protocol），
实现依赖倒置 — 镜像缓存、工作目录、版本解析只依赖抽象而非 git 可执行文件。

使用 typing.Protocol 而非 ABC，测试时可注入内存实现而无需继承。
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from pipehub.core.models import Credentials, GitRef


class VcsClient(Protocol):
    """版本控制客户端协议

    覆盖 clone / fetch / 引用解析 / checkout / 远程引用列表 /
    本地分支与 tag 枚举 / submodule / 单文件读取。
    所有调用均为同步阻塞，无内部超时。
    """

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
        """克隆仓库到 dest（mirror=True 时为只含历史的镜像）"""
        ...

    def fetch(
        self,
        repo: Path,
        *,
        refspec: str | None = None,
        depth: int | None = None,
        credentials: Credentials | None = None,
    ) -> None:
        """从 origin 拉取更新"""
        ...

    def resolve(self, repo: Path, rev: str) -> str | None:
        """将引用解析为完整 commit id，解析失败返回 None"""
        ...

    def checkout(self, repo: Path, rev: str) -> None:
        """检出指定 commit / 引用"""
        ...

    def ls_remote(
        self,
        url: str,
        *,
        heads: bool = False,
        tags: bool = False,
        credentials: Credentials | None = None,
    ) -> dict[str, str]:
        """列出远程引用，返回 {完整引用名: commit id}"""
        ...

    def list_refs(self, repo: Path, prefix: str) -> list[GitRef]:
        """枚举本地引用（refs/heads/、refs/tags/ 等）"""
        ...

    def symbolic_head(self, repo: Path) -> str | None:
        """HEAD 为符号引用时返回目标引用名，分离头指针返回 None"""
        ...

    def head_commit(self, repo: Path) -> str | None:
        """当前 HEAD 指向的 commit id"""
        ...

    def tag_for_commit(self, repo: Path, commit_id: str) -> str | None:
        """恰好指向该 commit 的 tag 名"""
        ...

    def remote_url(self, repo: Path, remote: str = "origin") -> str | None:
        """读取仓库配置中的远程地址"""
        ...

    def submodule_init(self, repo: Path, paths: list[str]) -> None:
        ...

    def submodule_update(
        self,
        repo: Path,
        paths: list[str],
        *,
        recursive: bool = False,
        credentials: Credentials | None = None,
    ) -> list[str]:
        """更新 submodule，返回已更新的路径"""
        ...

    def show_file(self, repo: Path, rev: str, path: str) -> bytes:
        """读取某版本下单个文件的内容，文件不存在抛 FileNotFoundError"""
        ...

    def is_clean(self, repo: Path) -> bool:
        """工作区、索引与 HEAD 无差异"""
        ...
