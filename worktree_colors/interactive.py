"""Interactive prompt helpers built on InquirerPy."""

from __future__ import annotations

import sys

from InquirerPy import inquirer


def is_interactive() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


def confirm(message: str, default: bool = False) -> bool:
    if not is_interactive():
        return default
    return bool(inquirer.confirm(message=message, default=default).execute())
