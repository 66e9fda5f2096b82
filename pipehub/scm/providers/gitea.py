"""Gitea 平台适配器"""

from __future__ import annotations

from urllib.parse import quote

from pipehub.core.models import RemoteRef
from pipehub.scm.providers.base import RepositoryProvider


class GiteaRepositoryProvider(RepositoryProvider):

    @property
    def endpoint_url(self) -> str:
        return f"{self.config.endpoint}/repos/{self.project}"

    def read_bytes(self, path: str) -> bytes:
        url = f"{self.endpoint_url}/raw/{quote(path.lstrip('/'))}"
        if self.revision:
            url += f"?ref={quote(self.revision, safe='')}"
        return self._get(url)

    def list_branches(self) -> list[RemoteRef]:
        return [
            RemoteRef(name=it["name"], commit_id=it["commit"]["id"])
            for it in self._get_json(f"{self.endpoint_url}/branches")
        ]

    def list_tags(self) -> list[RemoteRef]:
        return [
            RemoteRef(name=it["name"], commit_id=it["commit"]["sha"])
            for it in self._get_json(f"{self.endpoint_url}/tags")
        ]
