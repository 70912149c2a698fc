"""Thin async wrappers around git CLI commands."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Protocol

from .exceptions import GitCommandError
from .models import WorktreeEntry

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class GitResult:
    stdout: str
    stderr: str


async def run_git(
    args: Iterable[str],
    *,
    cwd: Path,
    timeout: float = DEFAULT_TIMEOUT,
) -> GitResult:
    """Execute a git command, raising GitCommandError on any failure."""

    cmd = ["git", *args]
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=str(cwd),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        # missing git binary or missing cwd
        raise GitCommandError(cmd, 127, str(exc)) from exc
    except OSError as exc:
        raise GitCommandError(cmd, 126, str(exc)) from exc

    try:
        out, err = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        proc.kill()
        await proc.wait()
        raise GitCommandError(cmd, -1, timed_out=True) from exc

    stdout = out.decode("utf-8", errors="replace") if out else ""
    stderr = err.decode("utf-8", errors="replace") if err else ""
    if proc.returncode != 0:
        raise GitCommandError(cmd, proc.returncode, stderr)
    return GitResult(stdout=stdout, stderr=stderr)


def parse_worktree_porcelain(output: str) -> list[WorktreeEntry]:
    """Parse `git worktree list --porcelain` output into entries."""

    items: list[dict] = []
    current: dict | None = None
    for raw_line in output.splitlines():
        line = raw_line.rstrip("\r")
        if not line.strip():
            continue
        key, _, value = line.partition(" ")
        if key == "worktree":
            if current:
                items.append(current)
            current = {"path": Path(value)}
        elif not current:
            continue
        elif key == "branch":
            branch = value.strip()
            if branch.startswith("refs/heads/"):
                branch = branch.split("/", 2)[-1]
            current["branch"] = branch
        elif key == "HEAD":
            current["head"] = value.strip()
        elif key == "bare":
            current["is_bare"] = True
        elif key == "locked":
            current["is_locked"] = True
        elif key == "prunable":
            current["is_prunable"] = True
        elif key == "detached":
            current["branch"] = None
    if current:
        items.append(current)
    return [WorktreeEntry(**item) for item in items]


class RepoMetadataProvider(Protocol):
    """Source of repository metadata; every lookup returns None/empty on failure."""

    async def remote_url(self, path: Path) -> str | None: ...

    async def top_level(self, path: Path) -> Path | None: ...

    async def worktree_list(self, path: Path) -> list[WorktreeEntry]: ...


class GitCliMetadataProvider:
    """RepoMetadataProvider backed by the git executable."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, remote: str = "origin"):
        self.timeout = timeout
        self.remote = remote

    async def remote_url(self, path: Path) -> str | None:
        stdout = await self._query(["config", "--get", f"remote.{self.remote}.url"], path)
        if stdout is None:
            return None
        return stdout.strip() or None

    async def top_level(self, path: Path) -> Path | None:
        stdout = await self._query(["rev-parse", "--show-toplevel"], path)
        if stdout is None or not stdout.strip():
            return None
        return Path(stdout.strip())

    async def worktree_list(self, path: Path) -> list[WorktreeEntry]:
        stdout = await self._query(["worktree", "list", "--porcelain"], path)
        if stdout is None:
            return []
        return parse_worktree_porcelain(stdout)

    async def _query(self, args: list[str], path: Path) -> str | None:
        try:
            result = await run_git(args, cwd=path, timeout=self.timeout)
        except GitCommandError as exc:
            logger.debug("%s in %s: %s", exc, path, exc.stderr.strip() or exc.returncode)
            return None
        return result.stdout


__all__ = [
    "DEFAULT_TIMEOUT",
    "GitResult",
    "run_git",
    "parse_worktree_porcelain",
    "RepoMetadataProvider",
    "GitCliMetadataProvider",
]
