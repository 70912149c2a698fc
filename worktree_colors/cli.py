"""Typer-based CLI for worktree-colors."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import signal
from pathlib import Path
from typing import Any, Awaitable, Coroutine, Optional, TypeVar

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import build_store, git_timeout, load_color_settings, poll_interval
from .colors import derive_color
from .exceptions import (
    NotAGitRepositoryError,
    SettingsFileError,
    SettingsValidationError,
    WorktreeColorsError,
)
from .git import GitCliMetadataProvider
from .interactive import confirm, is_interactive
from .models import ColorSettings, RepoContext
from .resolver import GitContextResolver
from .workspace import ColorSession, load_workspace

app = typer.Typer(help="Color editor workspaces by git repository and worktree")
console = Console()
logger = logging.getLogger(__name__)

T = TypeVar("T")


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose)],
    )


@app.callback()
def main(
    ctx: typer.Context,
    workspace: Path = typer.Option(
        Path("."),
        "--workspace",
        "-w",
        help="Workspace folder or .code-workspace file.",
    ),
    user_settings: Optional[Path] = typer.Option(
        None,
        "--user-settings",
        help="User settings file supplying global values (defaults to $WORKTREE_COLORS_USER_SETTINGS).",
        dir_okay=False,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show additional debug information."),
) -> None:
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["workspace"] = workspace
    ctx.obj["user_settings"] = user_settings
    ctx.obj["verbose"] = verbose


@app.command(help="Apply the worktree color to the workspace settings")
def apply(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Override existing color customizations."),
) -> None:
    session = _build_session(ctx)
    outcome = _run(session.apply_worktree_colors(force=force))
    if outcome.blocked_by_existing and is_interactive():
        if confirm("Existing color customizations found. Override them?", default=False):
            outcome = _run(session.apply_worktree_colors(force=True))
    console.print(outcome.message)


@app.command(help="Remove the managed colors from the workspace settings")
def reset(ctx: typer.Context) -> None:
    session = _build_session(ctx)
    _run(session.reset_colors())
    console.print("Worktree colors have been reset")


@app.command(help="Show repository, worktree and color details for the workspace")
def info(ctx: typer.Context) -> None:
    session = _build_session(ctx)
    details = _run(session.describe())
    table = Table(show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    if details.context is None:
        table.add_row("Repository", "(not a git repository)")
    else:
        table.add_row("Repository", details.context.repo_identifier)
        table.add_row("Is Worktree", str(details.context.is_worktree))
        table.add_row("Worktree Index", str(details.context.worktree_index))
        if details.context.main_repo_path is not None:
            table.add_row("Main Repository", str(details.context.main_repo_path))
    if details.color is not None:
        table.add_row("Generated Color", f"[on {details.color.base}]   [/] {details.color.base}")
    table.add_row("Has Existing Colors", str(details.has_existing_colors))
    table.add_row("Workspace Keys", ", ".join(details.workspace_keys) or "(none)")
    table.add_row("Global Keys", ", ".join(details.global_keys) or "(none)")
    console.print(table)
    console.print(details.verdict, markup=False)


@app.command(help="Print the color derived for a path without touching any settings")
def color(
    ctx: typer.Context,
    path: Path = typer.Argument(Path("."), help="File or directory inside a git working tree."),
    as_json: bool = typer.Option(False, "--json", help="Output JSON for scripting."),
) -> None:
    settings = _workspace_color_settings(ctx)
    context = _run(_resolve_required(_build_resolver(), path))
    derived = derive_color(context.repo_identifier, context.worktree_index, settings)
    if as_json:
        data: dict[str, Any] = {
            "repository": context.repo_identifier,
            "isWorktree": context.is_worktree,
            "worktreeIndex": context.worktree_index,
            "color": derived.base,
            "foreground": derived.foreground,
            "colorCustomizations": derived.customizations,
        }
        typer.echo(json.dumps(data, indent=2))
        return
    console.print(f"{context.repo_identifier} [{context.worktree_index}] {derived.base}", markup=False)


@app.command(help="Keep colors applied while running and restore them on exit")
def session(
    ctx: typer.Context,
    interval: Optional[float] = typer.Option(
        None,
        "--interval",
        min=0.1,
        help="Seconds between settings checks (defaults to $WORKTREE_COLORS_POLL_INTERVAL or 1).",
    ),
) -> None:
    color_session = _build_session(ctx)
    if interval is None:
        try:
            interval = poll_interval()
        except WorktreeColorsError as err:
            _fail(str(err))
    _run(run_session(color_session, interval))


async def run_session(session: ColorSession, interval: float, stop: asyncio.Event | None = None) -> None:
    """Apply on start, re-trigger on worktreeColors changes, restore on exit."""

    stop = stop or asyncio.Event()
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        # not available on Windows event loops; Ctrl+C still cancels the run there
        with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
            loop.add_signal_handler(sig, stop.set)
            installed.append(sig)

    last = _settings_fingerprint(session)
    try:
        if last is not None and last[0].enabled:
            await _trigger(session.apply_worktree_colors())
        while not stop.is_set():
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(stop.wait(), timeout=interval)
            if stop.is_set():
                break
            current = _settings_fingerprint(session)
            if current is None or current == last:
                continue
            last = current
            await _trigger(session.settings_changed())
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
        was_applied = session.overlay.applied
        await session.shutdown()
        if was_applied:
            console.print("Restored workspace colors")


async def _trigger(awaitable: Awaitable[Any]) -> None:
    try:
        outcome = await awaitable
    except WorktreeColorsError as err:
        logger.error("%s", err)
        return
    console.print(outcome.message)


def _settings_fingerprint(session: ColorSession) -> tuple[Any, Any] | None:
    try:
        return session.workspace_settings(), session.color_settings()
    except (SettingsFileError, SettingsValidationError) as err:
        logger.warning("Ignoring settings: %s", err)
        return None


def _build_resolver() -> GitContextResolver:
    try:
        return GitContextResolver(GitCliMetadataProvider(timeout=git_timeout()))
    except WorktreeColorsError as err:
        _fail(str(err))


def _build_session(ctx: typer.Context) -> ColorSession:
    try:
        workspace = load_workspace(ctx.obj["workspace"])
        store = build_store(workspace, ctx.obj.get("user_settings"))
        return ColorSession(workspace, store, _build_resolver())
    except WorktreeColorsError as err:
        _fail(str(err))


def _workspace_color_settings(ctx: typer.Context) -> ColorSettings:
    """Settings of the selected workspace, or the defaults when there is none."""

    if not Path(ctx.obj["workspace"]).expanduser().exists():
        return ColorSettings()
    session = _build_session(ctx)
    try:
        return load_color_settings(session.settings_section)
    except WorktreeColorsError as err:
        _fail(str(err))


async def _resolve_required(resolver: GitContextResolver, path: Path) -> RepoContext:
    context = await resolver.resolve_for_file(path)
    if context is None:
        raise NotAGitRepositoryError(f"Not inside a git working tree: {path}")
    return context


def _run(coro: Coroutine[Any, Any, T]) -> T:
    try:
        return asyncio.run(coro)
    except WorktreeColorsError as err:
        _fail(str(err))


def _fail(message: str, code: int = 1) -> None:
    typer.secho(message, err=True, fg=typer.colors.RED)
    raise typer.Exit(code)


if __name__ == "__main__":
    app()
