"""GitLab 平台适配器（REST API v4）

项目路径需整体 URL 编码（org%2Frepo）；读取文件必须指定 ref，
未指定版本时使用项目默认分支。
"""

from __future__ import annotations

from urllib.parse import quote

from pipehub.core.models import RemoteRef
from pipehub.scm.providers.base import RepositoryProvider


class GitlabRepositoryProvider(RepositoryProvider):

    @property
    def endpoint_url(self) -> str:
        return f"{self.config.endpoint}/api/v4/projects/{quote(self.project, safe='')}"

    def auth_headers(self) -> dict[str, str]:
        if self.config.token and not self.config.password:
            return {"PRIVATE-TOKEN": self.config.token}
        return super().auth_headers()

    def default_branch(self) -> str:
        return self._get_json(self.endpoint_url).get("default_branch") or "master"

    def read_bytes(self, path: str) -> bytes:
        ref = self.revision or self.default_branch()
        url = (
            f"{self.endpoint_url}/repository/files/{quote(path.lstrip('/'), safe='')}"
            f"?ref={quote(ref, safe='')}"
        )
        return self._decode_content(self._get_json(url), path)

    def list_branches(self) -> list[RemoteRef]:
        return self._refs(f"{self.endpoint_url}/repository/branches?per_page=100")

    def list_tags(self) -> list[RemoteRef]:
        return self._refs(f"{self.endpoint_url}/repository/tags?per_page=100")

    def _refs(self, url: str) -> list[RemoteRef]:
        return [
            RemoteRef(name=it["name"], commit_id=it["commit"]["id"])
            for it in self._get_json(url)
        ]
