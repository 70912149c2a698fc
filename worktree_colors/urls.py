"""Remote URL canonicalization."""

from __future__ import annotations

import re

_SCP_PATTERN = re.compile(r"^[^@/\s]+@([^:/]+):(.+)$")
_SCHEME_PATTERN = re.compile(r"^(?:https?|git)://")


def normalize_git_url(url: str) -> str:
    """Reduce a remote URL to a scheme, case and suffix independent identifier.

    >>> normalize_git_url("git@github.com:User/Repo.git")
    'github.com/user/repo'
    >>> normalize_git_url("https://github.com/user/repo/")
    'github.com/user/repo'
    """

    normalized = url.strip()
    match = _SCP_PATTERN.match(normalized)
    if match:
        normalized = f"{match.group(1)}/{match.group(2)}"
    normalized = _SCHEME_PATTERN.sub("", normalized)
    if normalized.endswith(".git"):
        normalized = normalized[: -len(".git")]
    normalized = normalized.rstrip("/")
    return normalized.lower()


__all__ = ["normalize_git_url"]
