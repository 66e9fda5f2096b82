"""Web API 端点测试"""

from __future__ import annotations

import base64

import pytest

from pipehub import __version__
from pipehub.web.app import app


@pytest.fixture()
def client(container, hello_remote):
    """Flask 测试客户端，缓存目录与 git 均为临时实现"""
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


class TestGlobalErrorHandlers:
    def test_index(self, client) -> None:
        data = client.get("/").get_json()
        assert data == {"service": "pipehub", "version": __version__}

    def test_404_returns_json(self, client) -> None:
        resp = client.get("/api/nonexistent")
        assert resp.status_code == 404
        assert "error" in resp.get_json()

    def test_405_returns_json(self, client) -> None:
        resp = client.delete("/api/projects")
        assert resp.status_code == 405
        assert "error" in resp.get_json()

    def test_unexpected_error_returns_500(self, client, container, monkeypatch: pytest.MonkeyPatch) -> None:
        def boom() -> list:
            raise RuntimeError("boom")

        monkeypatch.setattr(container.projects, "list_projects", boom)
        resp = client.get("/api/projects")
        assert resp.status_code == 500
        assert resp.get_json()["error"] == "服务器内部错误"


class TestProjects:
    def test_empty_cache(self, client) -> None:
        resp = client.get("/api/projects")
        assert resp.status_code == 200
        assert resp.get_json() == {"projects": []}

    def test_pull_and_list(self, client, hello_remote) -> None:
        resp = client.post("/api/projects/pull", json={"project": "local/hello"})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["status"] == "downloaded from local mirror"
        assert data["commit"] == hello_remote.refs["refs/heads/master"]
        assert client.get("/api/projects").get_json() == {"projects": ["local/hello"]}

    def test_pull_revision(self, client, hello_remote) -> None:
        resp = client.post("/api/projects/pull", json={"project": "local/hello", "revision": "v1.0", "depth": 1})
        assert resp.get_json()["commit"] == hello_remote.refs["refs/tags/v1.0"]

    def test_pull_requires_project(self, client) -> None:
        resp = client.post("/api/projects/pull", json={})
        assert resp.status_code == 400
        assert "project" in resp.get_json()["error"]

    @pytest.mark.parametrize("depth", [0, -1, "3"])
    def test_pull_rejects_bad_depth(self, client, depth) -> None:
        resp = client.post("/api/projects/pull", json={"project": "local/hello", "depth": depth})
        assert resp.status_code == 400

    def test_invalid_name(self, client) -> None:
        resp = client.post("/api/projects/pull", json={"project": "../hello"})
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "INVALID_PROJECT_NAME"

    def test_unknown_hub_suggestions(self, client) -> None:
        resp = client.post("/api/projects/pull", json={"project": "local/hello", "hub": "gitlub"})
        assert resp.status_code == 400
        data = resp.get_json()
        assert data["code"] == "UNKNOWN_PROVIDER"
        assert "gitlab" in data["suggestions"]

    def test_ambiguous_candidates(self, client, assets_root) -> None:
        (assets_root / "a" / "hello").mkdir(parents=True)
        (assets_root / "b" / "hello").mkdir(parents=True)
        resp = client.post("/api/projects/pull", json={"project": "hello"})
        assert resp.status_code == 400
        assert resp.get_json()["candidates"] == ["a/hello", "b/hello"]

    def test_revisions(self, client, hello_remote) -> None:
        client.post("/api/projects/pull", json={"project": "local/hello"})
        data = client.get("/api/projects/local/hello/revisions").get_json()
        assert data == {
            "project": "local/hello",
            "revisions": [f"local/hello:{hello_remote.refs['refs/heads/master']}"],
        }

    def test_info(self, client) -> None:
        client.post("/api/projects/pull", json={"project": "local/hello"})
        data = client.get("/api/projects/local/hello/info?level=1&check_updates=1").get_json()
        assert data["project"] == "local/hello"
        assert data["main_script"] == "main.nf"
        assert data["refs"]["default"] == "master"
        assert len(data["revisions"]) == 3

    def test_dashboard(self, client) -> None:
        client.post("/api/projects/pull", json={"project": "local/hello"})
        data = client.get("/api/projects/dashboard").get_json()
        assert data == {"projects": [{"project": "local/hello", "revisions": 1}]}


class TestCredentials:
    @pytest.fixture()
    def seen(self, container, monkeypatch: pytest.MonkeyPatch) -> dict:
        calls: dict = {}

        def revisions(name: str, **kwargs) -> list:
            calls.update(kwargs)
            return []

        monkeypatch.setattr(container.projects, "revisions", revisions)
        return calls

    def test_query_string_credentials_ignored(self, client, seen) -> None:
        client.get("/api/projects/local/hello/revisions?hub=local&user=me&password=secret")
        assert seen == {"hub": "local", "user": None, "password": None}

    def test_basic_authorization_header(self, client, seen) -> None:
        token = base64.b64encode(b"me:secret").decode()
        client.get("/api/projects/local/hello/revisions", headers={"Authorization": f"Basic {token}"})
        assert seen == {"hub": None, "user": "me", "password": "secret"}
