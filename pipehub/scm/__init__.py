"""流水线项目源码管理

- resolver.py: 项目名称解析
- mirror.py: 共享历史镜像缓存
- worktree.py: 按 commit 物化的工作目录
- revision.py: 版本查询与远程状态比对
- asset_manager.py: 上述组件的门面
- git.py: git 命令行客户端
- providers/: 托管平台适配器与注册表
"""

from __future__ import annotations

from pipehub.scm.asset_manager import AssetManager
from pipehub.scm.git import GitClient
from pipehub.scm.git_url import GitUrl
from pipehub.scm.mirror import BareRepositoryCache
from pipehub.scm.resolver import NameResolver
from pipehub.scm.revision import RevisionResolver, StatusReporter
from pipehub.scm.worktree import WorktreeManager

__all__ = [
    "AssetManager",
    "BareRepositoryCache",
    "GitClient",
    "GitUrl",
    "NameResolver",
    "RevisionResolver",
    "StatusReporter",
    "WorktreeManager",
]
