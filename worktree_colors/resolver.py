"""Resolve a RepoContext from a workspace path."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Iterable

from .exceptions import MalformedGitFileError
from .git import GitCliMetadataProvider, RepoMetadataProvider
from .models import RepoContext
from .urls import normalize_git_url

logger = logging.getLogger(__name__)

_GITDIR_PATTERN = re.compile(r"^gitdir:\s*(.+)$", re.MULTILINE)
_WORKTREE_GITDIR_PATTERN = re.compile(r"^(.+)/\.git/worktrees/.+$")


def parse_git_file(content: str) -> str:
    """Return the target of the `gitdir:` line of a `.git` file."""

    match = _GITDIR_PATTERN.search(content)
    target = match.group(1).strip() if match else ""
    if not target:
        raise MalformedGitFileError("`.git` file has no gitdir: line")
    return target


def main_repo_from_gitdir(git_dir: Path | str) -> Path | None:
    """Map `<main>/.git/worktrees/<name>` back to `<main>`."""

    match = _WORKTREE_GITDIR_PATTERN.match(normalize_worktree_path(git_dir))
    if not match:
        return None
    return Path(match.group(1))


def normalize_worktree_path(path: Path | str) -> str:
    """Absolute, separator-normalized form used for ordering worktrees."""

    return os.path.abspath(os.fspath(path)).replace("\\", "/")


def worktree_rank(worktree_paths: Iterable[Path | str], top_level: Path | str | None) -> int:
    """Rank of `top_level` among the sorted worktree paths, defaulting to 0."""

    ordered = sorted(normalize_worktree_path(path) for path in worktree_paths)
    if not ordered or top_level is None:
        return 0
    try:
        return ordered.index(normalize_worktree_path(top_level))
    except ValueError:
        # worktree added or removed since the list was taken
        return 0


class GitContextResolver:
    """Builds a fresh RepoContext on every call; nothing is cached."""

    def __init__(self, provider: RepoMetadataProvider | None = None):
        self.provider = provider or GitCliMetadataProvider()

    async def resolve(self, path: Path | str) -> RepoContext | None:
        path = Path(path)
        git_entry = path / ".git"
        main_repo_path: Path | None = None
        if git_entry.is_file():
            try:
                target = parse_git_file(git_entry.read_text(encoding="utf-8"))
            except (MalformedGitFileError, OSError, UnicodeDecodeError) as exc:
                logger.debug("Ignoring %s: %s", git_entry, exc)
                return None
            git_metadata_path = Path(os.path.normpath(os.path.join(os.path.abspath(path), target)))
            is_worktree = True
            main_repo_path = main_repo_from_gitdir(git_metadata_path)
        elif git_entry.is_dir():
            git_metadata_path = git_entry
            is_worktree = False
        else:
            logger.debug("No .git entry under %s", path)
            return None

        remote = await self.provider.remote_url(path)
        top_level = await self.provider.top_level(path)
        if remote:
            repo_identifier = normalize_git_url(remote)
        else:
            repo_identifier = (top_level or path.absolute()).name

        worktrees = await self.provider.worktree_list(path)
        index = worktree_rank((entry.path for entry in worktrees), top_level)

        return RepoContext(
            repo_identifier=repo_identifier,
            is_worktree=is_worktree,
            main_repo_path=main_repo_path,
            git_metadata_path=git_metadata_path,
            worktree_index=index,
        )

    async def resolve_for_file(self, path: Path | str) -> RepoContext | None:
        """Resolve the working tree that contains `path` (a file or directory)."""

        path = Path(path)
        if path.is_dir():
            directory = path
        elif path.exists():
            directory = path.parent
        else:
            return None
        top_level = await self.provider.top_level(directory)
        if top_level is None:
            return None
        return await self.resolve(top_level)


__all__ = [
    "GitContextResolver",
    "parse_git_file",
    "main_repo_from_gitdir",
    "normalize_worktree_path",
    "worktree_rank",
]
