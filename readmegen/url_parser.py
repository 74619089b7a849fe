"""
Tolerant GitHub repository URL parsing.

Accepted forms (owner and name are the first two path segments):
  https://github.com/owner/repo
  https://github.com/owner/repo/
  https://github.com/owner/repo/tree/main/src   (extra path ignored)
  github.com/owner/repo                         (scheme optional)

Anything else raises InvalidReference.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from readmegen.errors import InvalidReference

_GITHUB_URL_RE = re.compile(
    r"github\.com/"
    r"(?P<owner>[^/?#\s]+)/"
    r"(?P<name>[^/?#\s]+)"
    r"(?:[/?#]|$)"
)


@dataclass(frozen=True)
class RepositoryReference:
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


def parse_repository_url(url: str | None) -> RepositoryReference:
    """Return the (owner, name) reference encoded in a GitHub URL.

    Raises ``InvalidReference`` when no ``github.com/<owner>/<name>``
    segment can be found.
    """
    if not url or not url.strip():
        raise InvalidReference("Invalid GitHub URL: URL must not be empty.")

    url = url.strip()
    match = _GITHUB_URL_RE.search(url)
    if not match:
        raise InvalidReference(
            f"Invalid GitHub URL: '{url}'. "
            "Expected format: https://github.com/owner/repo"
        )

    return RepositoryReference(owner=match.group("owner"), name=match.group("name"))
