"""Custom exception hierarchy for worktree-colors."""

from __future__ import annotations


class WorktreeColorsError(Exception):
    """Base error for all custom exceptions."""


class GitCommandError(WorktreeColorsError):
    """Raised when a git invocation fails, times out or git is missing."""

    def __init__(
        self,
        command: list[str],
        returncode: int,
        stderr: str | None = None,
        *,
        timed_out: bool = False,
    ):
        message = "Git command failed"
        if command:
            message = f"Git command failed: {' '.join(command)}"
        if timed_out:
            message = f"{message} (timed out)"
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr or ""
        self.timed_out = timed_out


class NotAGitRepositoryError(WorktreeColorsError):
    """Raised when a path is not inside a git working tree."""


class MalformedGitFileError(WorktreeColorsError):
    """Raised when a `.git` file lacks a parseable `gitdir:` line."""


class SettingsFileError(WorktreeColorsError):
    """Raised when a settings file cannot be read or is not a JSON object."""


class SettingsValidationError(WorktreeColorsError):
    """Raised when a worktreeColors setting has the wrong type or range."""


class ConfigurationWriteError(WorktreeColorsError):
    """Raised when the settings store rejects an update."""


class ValidationError(WorktreeColorsError):
    """Raised when user input is invalid."""
