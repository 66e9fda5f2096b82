"""Bitbucket Cloud 平台适配器（API 2.0）"""

from __future__ import annotations

from urllib.parse import quote

from pipehub.core.models import RemoteRef
from pipehub.scm.providers.base import RepositoryProvider


class BitbucketRepositoryProvider(RepositoryProvider):

    @property
    def endpoint_url(self) -> str:
        return f"{self.config.endpoint}/2.0/repositories/{self.project}"

    def auth_headers(self) -> dict[str, str]:
        if self.config.token and not self.config.password:
            return {"Authorization": f"Bearer {self.config.token}"}
        return super().auth_headers()

    def main_branch(self) -> str:
        info = self._get_json(self.endpoint_url)
        return (info.get("mainbranch") or {}).get("name") or "master"

    def read_bytes(self, path: str) -> bytes:
        ref = self.revision or self.main_branch()
        url = f"{self.endpoint_url}/src/{quote(ref, safe='')}/{quote(path.lstrip('/'))}"
        return self._get(url)

    def list_branches(self) -> list[RemoteRef]:
        return self._refs(f"{self.endpoint_url}/refs/branches?pagelen=100")

    def list_tags(self) -> list[RemoteRef]:
        return self._refs(f"{self.endpoint_url}/refs/tags?pagelen=100")

    def _refs(self, url: str) -> list[RemoteRef]:
        return [
            RemoteRef(name=it["name"], commit_id=it["target"]["hash"])
            for it in self._get_json(url).get("values", [])
        ]
