"""GitClient 命令构造测试（执行器替换为录制器）"""

from __future__ import annotations

import base64
from pathlib import Path

import pytest

from pipehub.core.exceptions import GitCommandError
from pipehub.core.models import Credentials
from pipehub.scm.git import GitClient
from pipehub.utils.shell import CommandResult


class RecordingExecutor:
    """按子命令返回预置结果"""

    def __init__(self, outputs: dict[str, CommandResult] | None = None) -> None:
        self.outputs = outputs or {}
        self.calls: list[dict] = []

    def execute(self, cmd, *, cwd=".", env=None, timeout=None, binary=False):
        self.calls.append({"cmd": cmd, "cwd": cwd, "env": env, "binary": binary})
        args = [a for a in cmd[1:] if not a.startswith("http.extraHeader") and a != "-c"]
        for key, result in self.outputs.items():
            if " ".join(args).startswith(key):
                return result
        return CommandResult(0, "", "")


def _ok(stdout: str = "") -> CommandResult:
    return CommandResult(0, stdout, "")


def _fail(stderr: str = "fatal") -> CommandResult:
    return CommandResult(128, "", stderr)


class TestRunGit:
    def test_prompt_disabled(self) -> None:
        ex = RecordingExecutor()
        GitClient(ex).run_git(["status"])
        assert ex.calls[0]["env"]["GIT_TERMINAL_PROMPT"] == "0"

    def test_credentials_as_extra_header(self) -> None:
        ex = RecordingExecutor()
        GitClient(ex).fetch(Path("/repo"), credentials=Credentials("me", "pw"))
        cmd = ex.calls[0]["cmd"]
        token = base64.b64encode(b"me:pw").decode()
        assert cmd[:3] == ["git", "-c", f"http.extraHeader=Authorization: Basic {token}"]
        assert cmd[3:] == ["fetch", "--quiet", "origin"]

    def test_error_hides_credentials(self) -> None:
        ex = RecordingExecutor({"fetch": _fail("denied")})
        with pytest.raises(GitCommandError, match="denied") as exc:
            GitClient(ex).fetch(Path("/repo"), credentials=Credentials("me", "pw"))
        assert "extraHeader" not in str(exc.value)
        assert exc.value.returncode == 128


class TestCommands:
    def test_mirror_clone(self, tmp_path: Path) -> None:
        ex = RecordingExecutor()
        dest = tmp_path / "org" / "repo"
        GitClient(ex).clone("https://github.com/org/repo.git", dest, mirror=True)
        assert ex.calls[0]["cmd"] == [
            "git", "clone", "--quiet", "--mirror", "--", "https://github.com/org/repo.git", str(dest),
        ]
        assert dest.parent.is_dir()

    def test_shallow_branch_clone(self, tmp_path: Path) -> None:
        ex = RecordingExecutor()
        GitClient(ex).clone("u", tmp_path / "d", depth=1, branch="dev", recurse_submodules=True)
        cmd = ex.calls[0]["cmd"]
        assert cmd[3:9] == ["--depth", "1", "--branch", "dev", "--recurse-submodules", "--"]

    def test_fetch_depth_refspec(self) -> None:
        ex = RecordingExecutor()
        GitClient(ex).fetch(Path("/r"), refspec="abc", depth=2)
        assert ex.calls[0]["cmd"] == ["git", "fetch", "--quiet", "--depth", "2", "origin", "abc"]

    def test_resolve(self) -> None:
        ex = RecordingExecutor({"rev-parse": _ok("abc123\n")})
        assert GitClient(ex).resolve(Path("/r"), "v1.0") == "abc123"
        assert ex.calls[0]["cmd"][-1] == "v1.0^{commit}"

    def test_resolve_missing(self) -> None:
        ex = RecordingExecutor({"rev-parse": _fail()})
        assert GitClient(ex).resolve(Path("/r"), "nope") is None

    def test_ls_remote_prefers_peeled(self) -> None:
        out = (
            "aaa\trefs/heads/master\n"
            "ttt\trefs/tags/v1\n"
            "ccc\trefs/tags/v1^{}\n"
        )
        ex = RecordingExecutor({"ls-remote": _ok(out)})
        refs = GitClient(ex).ls_remote("u", tags=True)
        assert refs == {"refs/heads/master": "aaa", "refs/tags/v1": "ccc"}
        assert "--tags" in ex.calls[0]["cmd"]

    def test_list_refs(self) -> None:
        out = "refs/tags/v1\tttt\tccc\nrefs/tags/v2\tddd\t\n"
        ex = RecordingExecutor({"for-each-ref": _ok(out)})
        refs = GitClient(ex).list_refs(Path("/r"), "refs/tags")
        assert [(r.name, r.commit_id) for r in refs] == [("refs/tags/v1", "ccc"), ("refs/tags/v2", "ddd")]

    def test_symbolic_head_detached(self) -> None:
        ex = RecordingExecutor({"symbolic-ref": _fail("")})
        assert GitClient(ex).symbolic_head(Path("/r")) is None

    def test_tag_for_commit(self) -> None:
        ex = RecordingExecutor({"describe": _ok("v1.0\n")})
        assert GitClient(ex).tag_for_commit(Path("/r"), "abc") == "v1.0"

    def test_remote_url(self) -> None:
        ex = RecordingExecutor({"config --get remote.origin.url": _ok("git@github.com:a/b.git\n")})
        assert GitClient(ex).remote_url(Path("/r")) == "git@github.com:a/b.git"

    def test_submodule_update_recursive(self) -> None:
        ex = RecordingExecutor({"submodule update": _ok("Submodule path 'mods/a': checked out 'x'\n")})
        updated = GitClient(ex).submodule_update(Path("/r"), ["mods/a"], recursive=True)
        assert updated == ["mods/a"]
        assert ex.calls[0]["cmd"] == [
            "git", "submodule", "update", "--recursive", "--merge", "--", "mods/a",
        ]

    def test_show_file(self) -> None:
        ex = RecordingExecutor({"cat-file -p": _ok("\xe4\xb8\xad")})
        assert GitClient(ex).show_file(Path("/r"), "HEAD", "main.nf") == "中".encode()
        assert ex.calls[1]["binary"] is True

    def test_show_file_missing(self) -> None:
        ex = RecordingExecutor({"cat-file -e": _fail()})
        with pytest.raises(FileNotFoundError):
            GitClient(ex).show_file(Path("/r"), "HEAD", "none.nf")

    def test_is_clean(self) -> None:
        assert GitClient(RecordingExecutor({"status": _ok("")})).is_clean(Path("/r"))
        assert not GitClient(RecordingExecutor({"status": _ok(" M main.nf\n")})).is_clean(Path("/r"))
