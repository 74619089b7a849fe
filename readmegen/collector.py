"""
Repository collector.

Resolves a GitHub URL, fetches the repository metadata and probes a fixed
allow-list of candidate files. Candidate lookups are fanned out
concurrently; a missing or unreadable file only shrinks the result map.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from readmegen.github_client import FetchStatus, FileFetchResult, GitHubClient
from readmegen.logging_config import repository_ctx
from readmegen.url_parser import RepositoryReference, parse_repository_url

logger = logging.getLogger("readmegen.collector")


# Manifests, common entry points, build/config files and the license.
# The order is the order file sections appear in the prompt.
CANDIDATE_FILES = [
    "package.json", "index.js", "index.ts", "index.html", "README.md",
    "main.js", "main.ts", "app.js", "server.js",
    "src/index.js", "src/index.ts", "src/main.js", "src/main.ts",
    "pom.xml", "build.gradle", "setup.py", "requirements.txt",
    "Dockerfile", "Makefile", "LICENSE",
]


@dataclass
class CollectedRepository:
    reference: RepositoryReference
    metadata: dict[str, Any]
    files: dict[str, str] = field(default_factory=dict)


def assemble_file_map(results: list[FileFetchResult]) -> dict[str, str]:
    """Collapse per-path results into path → text, keeping only found files."""
    files: dict[str, str] = {}
    for result in results:
        if result.status is FetchStatus.FOUND and result.content is not None:
            files[result.path] = result.content
        elif result.status is FetchStatus.ERROR:
            logger.warning("Skipping %s: %s", result.path, result.error)
    return files


async def collect(
    github: GitHubClient,
    repository_url: str,
    candidates: list[str] | None = None,
) -> CollectedRepository:
    """Fetch metadata and candidate file contents for ``repository_url``.

    Raises ``InvalidReference`` for an unparsable URL, ``NotFound`` when
    the repository does not exist and ``ProviderError`` when the metadata
    fetch fails. Candidate lookups never raise.
    """
    ref = parse_repository_url(repository_url)
    repository_ctx.set(ref.full_name)
    metadata = await github.fetch_repo(ref)

    paths = CANDIDATE_FILES if candidates is None else candidates
    results = await asyncio.gather(*(github.fetch_file(ref, p) for p in paths))
    files = assemble_file_map(list(results))

    logger.info(
        "Collected %s: %d/%d candidate files present",
        ref.full_name, len(files), len(paths),
    )
    return CollectedRepository(reference=ref, metadata=metadata, files=files)
