"""共享测试夹具

FakeGit 是 VcsClient 的内存实现:
  - 远程仓库保存在内存中（FakeRemote），按 URL / 路径索引
  - 本地仓库（镜像、工作目录）的状态写在目录内的 .fakegit 文件中，
    目录被 rename 后状态随之移动
"""

from __future__ import annotations

import hashlib
import json
import os
from pathlib import Path
from typing import Any

import pytest

from pipehub.core.exceptions import GitCommandError
from pipehub.core.models import GitRef
from pipehub.scm.providers.config import ProviderRegistry

STATE_FILE = ".fakegit"


class FakeRemote:
    """内存中的远程仓库"""

    def __init__(self, default_branch: str = "master") -> None:
        self.commits: dict[str, dict[str, str]] = {}
        self.refs: dict[str, str] = {}
        self.head = f"refs/heads/{default_branch}"

    def commit(self, files: dict[str, str], branch: str = "master") -> str:
        seed = json.dumps([files, branch, len(self.commits)], sort_keys=True)
        sha = hashlib.sha1(seed.encode()).hexdigest()
        self.commits[sha] = dict(files)
        self.refs[f"refs/heads/{branch}"] = sha
        return sha

    def tag(self, name: str, sha: str) -> None:
        self.refs[f"refs/tags/{name}"] = sha

    def state(self) -> dict[str, Any]:
        return {"commits": self.commits, "refs": self.refs, "head": self.head}


def _key(url: str | Path) -> str:
    s = str(url)
    if s.startswith("file:"):
        s = "/" + s[len("file:"):].lstrip("/")
    elif "://" in s:
        return s
    return os.path.realpath(s)


def _resolve_in(state: dict[str, Any], rev: str) -> str | None:
    refs = state["refs"]
    if rev == "HEAD":
        return state.get("detached") or refs.get(state["head"])
    for name in (rev, f"refs/heads/{rev}", f"refs/tags/{rev}"):
        if name in refs:
            return refs[name]
    return rev if rev in state["commits"] else None


class FakeGit:
    """VcsClient 的内存实现，记录所有调用"""

    def __init__(self) -> None:
        self.remotes: dict[str, FakeRemote] = {}
        self.calls: list[tuple[Any, ...]] = []

    # ---- 夹具辅助 ----

    def add_remote(self, url: str | Path, default_branch: str = "master") -> FakeRemote:
        remote = FakeRemote(default_branch)
        self.remotes[_key(url)] = remote
        return remote

    def seed_mirror(self, path: Path, origin: str, remote: FakeRemote | None = None) -> None:
        """直接在磁盘上构造一个镜像"""
        path.mkdir(parents=True, exist_ok=True)
        state = remote.state() if remote else {"commits": {}, "refs": {}, "head": "refs/heads/master"}
        self._save(path, {**json.loads(json.dumps(state)), "origin": origin, "detached": None})

    def count(self, op: str) -> int:
        return sum(1 for c in self.calls if c[0] == op)

    # ---- 内部 ----

    @staticmethod
    def _load(repo: Path) -> dict[str, Any]:
        f = Path(repo) / STATE_FILE
        if not f.exists():
            raise GitCommandError(["git", "-C", str(repo)], 128, "not a git repository")
        return json.loads(f.read_text(encoding="utf-8"))

    @staticmethod
    def _save(repo: Path, state: dict[str, Any]) -> None:
        (Path(repo) / STATE_FILE).write_text(json.dumps(state), encoding="utf-8")

    def _source(self, url: str | Path) -> dict[str, Any]:
        key = _key(url)
        if key in self.remotes:
            return json.loads(json.dumps(self.remotes[key].state()))
        if (Path(key) / STATE_FILE).exists():
            return self._load(Path(key))
        raise GitCommandError(["git", "ls-remote", str(url)], 128, "repository not found")

    @staticmethod
    def _write_tree(repo: Path, state: dict[str, Any], sha: str) -> None:
        for rel, content in state["commits"][sha].items():
            target = Path(repo) / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")

    # ---- VcsClient ----

    def clone(self, url, dest, *, mirror=False, depth=None, branch=None,
              recurse_submodules=False, no_checkout=False, credentials=None) -> None:
        self.calls.append(("clone", url, Path(dest), {
            "mirror": mirror, "depth": depth, "branch": branch,
            "recurse_submodules": recurse_submodules, "no_checkout": no_checkout,
            "credentials": credentials,
        }))
        src = self._source(url)
        Path(dest).mkdir(parents=True, exist_ok=True)
        state = {
            "commits": src["commits"], "refs": src["refs"], "head": src["head"],
            "origin": url, "detached": None,
        }
        if branch:
            if f"refs/heads/{branch}" in state["refs"]:
                state["head"] = f"refs/heads/{branch}"
            else:
                state["detached"] = _resolve_in(state, branch)
        self._save(dest, state)
        if not mirror and not no_checkout:
            sha = _resolve_in(state, "HEAD")
            if sha:
                self._write_tree(dest, state, sha)

    def fetch(self, repo, *, refspec=None, depth=None, credentials=None) -> None:
        self.calls.append(("fetch", Path(repo), refspec, depth))
        state = self._load(repo)
        src = self._source(state["origin"])
        state["commits"].update(src["commits"])
        state["refs"].update(src["refs"])
        self._save(repo, state)

    def resolve(self, repo, rev):
        return _resolve_in(self._load(repo), rev)

    def checkout(self, repo, rev) -> None:
        self.calls.append(("checkout", Path(repo), rev))
        state = self._load(repo)
        sha = _resolve_in(state, rev)
        if sha is None:
            raise GitCommandError(["git", "checkout", rev], 1, f"pathspec '{rev}' did not match")
        state["detached"] = sha
        self._save(repo, state)
        self._write_tree(repo, state, sha)

    def ls_remote(self, url, *, heads=False, tags=False, credentials=None) -> dict[str, str]:
        self.calls.append(("ls_remote", url, heads, tags))
        refs = self._source(url)["refs"]
        prefixes = tuple(p for p, on in (("refs/heads/", heads), ("refs/tags/", tags)) if on)
        return {k: v for k, v in refs.items() if not prefixes or k.startswith(prefixes)}

    def list_refs(self, repo, prefix) -> list[GitRef]:
        refs = self._load(repo)["refs"]
        return [GitRef(name=k, object_id=v) for k, v in sorted(refs.items()) if k.startswith(prefix)]

    def symbolic_head(self, repo):
        state = self._load(repo)
        return None if state.get("detached") else state["head"]

    def head_commit(self, repo):
        return _resolve_in(self._load(repo), "HEAD")

    def tag_for_commit(self, repo, commit_id):
        refs = self._load(repo)["refs"]
        for name, sha in sorted(refs.items()):
            if name.startswith("refs/tags/") and sha == commit_id:
                return name[len("refs/tags/"):]
        return None

    def remote_url(self, repo, remote="origin"):
        try:
            return self._load(repo).get("origin")
        except GitCommandError:
            return None

    def submodule_init(self, repo, paths) -> None:
        self.calls.append(("submodule_init", Path(repo), list(paths)))

    def submodule_update(self, repo, paths, *, recursive=False, credentials=None) -> list[str]:
        self.calls.append(("submodule_update", Path(repo), list(paths), recursive))
        return list(paths)

    def show_file(self, repo, rev, path) -> bytes:
        state = self._source(repo)
        sha = _resolve_in(state, rev)
        files = state["commits"].get(sha or "", {})
        if path not in files:
            raise FileNotFoundError(path)
        return files[path].encode("utf-8")

    def is_clean(self, repo) -> bool:
        return True


# =========================================================================
# 夹具
# =========================================================================


HELLO_MANIFEST = """\
manifest:
  name: hello
  description: hello world pipeline
  homePage: https://example.com/hello
  mainScript: main.nf
  defaultBranch: master
"""


@pytest.fixture()
def fake_git() -> FakeGit:
    return FakeGit()


@pytest.fixture()
def repos_dir(tmp_path: Path) -> Path:
    d = tmp_path / "repos"
    d.mkdir()
    return d


@pytest.fixture()
def assets_root(tmp_path: Path) -> Path:
    d = tmp_path / "assets"
    d.mkdir()
    return d


@pytest.fixture()
def local_registry(repos_dir: Path) -> ProviderRegistry:
    """内置平台 + 名为 local 的本地目录平台"""
    return ProviderRegistry.from_dict(
        {"providers": {"local": {"platform": "file", "path": str(repos_dir)}}}
    )


@pytest.fixture()
def hello_remote(fake_git: FakeGit, repos_dir: Path) -> FakeRemote:
    """local/hello: master 两个提交，dev 分支，v1.0 tag"""
    (repos_dir / "hello").mkdir()
    remote = fake_git.add_remote(repos_dir / "hello")
    first = remote.commit({"main.nf": "println 'v1'", "pipehub.yml": HELLO_MANIFEST})
    remote.tag("v1.0", first)
    remote.commit({"main.nf": "println 'v2'", "pipehub.yml": HELLO_MANIFEST})
    remote.commit({"main.nf": "println 'dev'", "pipehub.yml": HELLO_MANIFEST}, branch="dev")
    return remote


@pytest.fixture()
def service_config(tmp_path: Path, assets_root: Path, repos_dir: Path):
    """指向临时缓存目录的配置，默认平台为本地目录平台 local"""
    from pipehub.core.config import Config

    scm = tmp_path / "scm.yml"
    scm.write_text(
        f"providers:\n  local:\n    platform: file\n    path: {repos_dir}\n",
        encoding="utf-8",
    )
    return Config(assets_root=str(assets_root), scm_file=str(scm), default_hub="local")


@pytest.fixture()
def container(service_config, fake_git, monkeypatch: pytest.MonkeyPatch):
    """全局服务容器，git 替换为内存实现"""
    import pipehub.core.config as cfgmod
    from pipehub.services.container import get_container, reset_container

    monkeypatch.setattr(cfgmod, "_current", service_config)
    reset_container()
    c = get_container()
    c._instances["vcs"] = fake_git
    yield c
    reset_container()
