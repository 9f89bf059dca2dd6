"""
Helper functions for CLI output.
"""
import json
from datetime import datetime
from typing import Any, Optional

import click
from rich.console import Console
from rich.syntax import Syntax

console = Console()


def display_diff(diff_text: str, line_numbers: bool = False, out: Optional[Console] = None):
    """
    Display unified diff text with syntax highlighting.

    Args:
        diff_text: Unified diff
        line_numbers: Whether to show line numbers
        out: Console to print to
    """
    syntax = Syntax(diff_text, "diff", line_numbers=line_numbers, theme="monokai")
    (out or console).print(syntax)


def print_json(data: Any):
    """Print JSON to stdout without rich markup, for piping."""
    click.echo(json.dumps(data, indent=2, default=str))


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string
    """
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size_bytes < 1024.0:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} TB"


def format_timestamp(epoch: Optional[float]) -> str:
    """Local date-time for a Unix timestamp, or "-"."""
    if epoch is None:
        return "-"
    return datetime.fromtimestamp(epoch).strftime('%Y-%m-%d %H:%M:%S')
