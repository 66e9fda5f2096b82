"""GitHub 平台适配器（REST API v3）"""

from __future__ import annotations

from urllib.parse import quote

from pipehub.core.models import RemoteRef
from pipehub.scm.providers.base import RepositoryProvider


class GithubRepositoryProvider(RepositoryProvider):

    @property
    def endpoint_url(self) -> str:
        return f"{self.config.endpoint}/repos/{self.project}"

    def read_bytes(self, path: str) -> bytes:
        url = f"{self.endpoint_url}/contents/{quote(path.lstrip('/'))}"
        if self.revision:
            url += f"?ref={quote(self.revision, safe='')}"
        return self._decode_content(self._get_json(url), path)

    def list_branches(self) -> list[RemoteRef]:
        return self._refs(f"{self.endpoint_url}/branches?per_page=100")

    def list_tags(self) -> list[RemoteRef]:
        return self._refs(f"{self.endpoint_url}/tags?per_page=100")

    def _refs(self, url: str) -> list[RemoteRef]:
        return [
            RemoteRef(name=it["name"], commit_id=it["commit"]["sha"])
            for it in self._get_json(url)
        ]
