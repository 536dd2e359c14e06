from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

import requests

JSON_HEADERS: Mapping[str, str] = {"Content-Type": "application/json"}


@dataclass(frozen=True)
class ApiClient:
    """
    Immutable client configuration for one upstream API.

    Built once at startup and owned by a single source; the underlying
    `requests.Session` is reused for the process lifetime.
    """

    base_url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout: float = 10.0
    session: requests.Session = field(default_factory=requests.Session, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", str(self.base_url).rstrip("/"))
        object.__setattr__(self, "headers", dict(self.headers))
        if self.timeout <= 0:
            raise ValueError(f"timeout must be > 0s, got {self.timeout}")

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def get_json(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """GET `path`, raise on non-2xx, and return the decoded JSON body."""
        merged_params = dict(params or {})
        merged_headers = {**self.headers, **(headers or {})}
        r = self.session.get(
            self.url(path),
            params=merged_params,
            headers=merged_headers,
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json()

    def close(self) -> None:
        self.session.close()


def bearer_headers(api_key: str) -> dict[str, str]:
    return {**JSON_HEADERS, "Authorization": f"Bearer {api_key}"}
