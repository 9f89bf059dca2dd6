"""
Command-line interface for GitXab.
"""
import functools
import logging
import os
import sys
from datetime import datetime

import click
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from gitxab import __version__
from gitxab.adapters import AdapterFactory
from gitxab.auth import CredentialResolver, detect_backend, get_git_remote_url
from gitxab.cache import ResponseCache
from gitxab.config import BACKEND_NAMES, get_settings
from gitxab.core.exceptions import (
    AccessPermissionError,
    BackendAPIError,
    GitXabError,
    NoCredentialError,
    NotFoundError,
    RateLimitError,
    UnauthorizedError,
)
from gitxab.core.models import CommentTarget
from gitxab.utils import get_logger, LoggerSetup
from gitxab.utils.cli_helpers import display_diff, format_file_size, format_timestamp, print_json

console = Console()
logger = get_logger(__name__)


class CliContext:
    """Options shared by every command."""

    def __init__(self, backend=None, token=None, base_url=None, json_output=False):
        self.backend = backend
        self.token = token
        self.base_url = base_url
        self.json_output = json_output
        self._adapter = None

    def adapter(self):
        """Create the adapter on first use."""
        if self._adapter is None:
            self._adapter = AdapterFactory.create_adapter(
                self.backend,
                token=self.token,
                base_url=self.base_url,
                remote_url=get_git_remote_url(),
            )
        return self._adapter


pass_cli = click.make_pass_decorator(CliContext)


def handle_errors(func):
    """Turn library errors into a red message and exit status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except NoCredentialError as e:
            rprint(f"[red]❌ {e.message}[/red]")
            sys.exit(1)
        except NotFoundError as e:
            rprint(f"[red]❌ Not found: {e.message}[/red]")
            sys.exit(1)
        except UnauthorizedError as e:
            rprint(f"[red]❌ Authentication failed: {e.message}[/red]")
            rprint("[yellow]Check that your token is valid and not expired[/yellow]")
            sys.exit(1)
        except AccessPermissionError as e:
            rprint(f"[red]❌ Permission denied: {e.message}[/red]")
            sys.exit(1)
        except RateLimitError as e:
            rprint(f"[red]❌ Rate limit exceeded: {e.message}[/red]")
            if e.reset_at:
                rprint(f"[yellow]Resets at {format_timestamp(e.reset_at)}[/yellow]")
            sys.exit(1)
        except BackendAPIError as e:
            rprint(f"[red]❌ API error ({e.status_code}): {e.message}[/red]")
            sys.exit(1)
        except GitXabError as e:
            rprint(f"[red]❌ Error: {e.message}[/red]")
            sys.exit(1)
        except ValueError as e:
            rprint(f"[red]❌ Error: {e}[/red]")
            sys.exit(1)

    return wrapper


def _state_style(state: str) -> str:
    return {"open": "green", "closed": "red", "merged": "magenta"}.get(state, "white")


@click.group()
@click.version_option(version=__version__)
@click.option('--backend', '-b', type=click.Choice(list(BACKEND_NAMES)),
              help='Backend to use (detected when omitted)')
@click.option('--token', help='Access token (resolved from env/config when omitted)')
@click.option('--base-url', help='API base URL override')
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.option('--json', 'json_output', is_flag=True, help='Print results as JSON')
@click.pass_context
def main(ctx, backend, token, base_url, debug, json_output):
    """GitXab: one client for GitHub and GitLab."""
    if debug:
        LoggerSetup.set_console_level(logging.DEBUG)
    ctx.obj = CliContext(backend, token, base_url, json_output)


@main.command()
@pass_cli
@handle_errors
def detect(cli):
    """Show which backend, token source and base URL would be used."""
    settings = get_settings()
    remote_url = get_git_remote_url()
    backend = detect_backend(
        explicit=cli.backend,
        configured_default=settings.default_backend,
        remote_url=remote_url,
        fallback=settings.fallback_backend,
        providers_config=settings.providers,
    )
    credential = CredentialResolver(settings.providers).find(backend)
    base_url = AdapterFactory._resolve_base_url(backend, cli.base_url, settings, os.environ)

    result = {
        'backend': backend.value,
        'remote_url': remote_url,
        'token_source': credential.source if credential else None,
        'base_url': base_url,
    }
    if cli.json_output:
        print_json(result)
        return

    token_line = (
        f"[green]{credential.source}[/green]" if credential
        else "[red]not found[/red]"
    )
    rprint(Panel(
        f"[cyan]Backend:[/cyan] {backend.value}\n"
        f"[cyan]Remote:[/cyan] {remote_url or '-'}\n"
        f"[cyan]Token:[/cyan] {token_line}\n"
        f"[cyan]Base URL:[/cyan] {base_url}",
        title="Detection",
        border_style="blue"
    ))


@main.command()
@click.option(
    "--config",
    "-c",
    help="Path to configuration file",
    type=click.Path(exists=True)
)
@click.option(
    "--validate",
    "-v",
    is_flag=True,
    help="Validate configuration"
)
def config(config: str, validate: bool):
    """Show and validate configuration."""
    try:
        settings = get_settings(config, reload=config is not None)
    except Exception as e:
        rprint(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if validate:
        errors = settings.validate()
        if errors:
            rprint("[red]❌ Configuration validation failed:[/red]")
            for error in errors:
                rprint(f"  • {error}")
            sys.exit(1)
        rprint("[green]✅ Configuration is valid![/green]")
        return

    rprint(Panel.fit(
        "[bold blue]GitXab Configuration[/bold blue]",
        border_style="blue"
    ))

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Setting", style="cyan", width=40)
    table.add_column("Value", style="green")

    def add_section(section_name: str, section_data):
        if not isinstance(section_data, dict):
            table.add_row(section_name, str(section_data))
            return
        for key, value in section_data.items():
            if isinstance(value, dict):
                add_section(f"{section_name}.{key}", value)
            else:
                table.add_row(f"{section_name}.{key}", str(value))

    for section_name, section_data in settings.to_dict().items():
        add_section(section_name, section_data)

    console.print(table)


@main.command()
@click.option('--query', '-q', help='Search text')
@click.option('--page', default=1, show_default=True, help='Page number')
@pass_cli
@handle_errors
def repos(cli, query, page):
    """List repositories you can access."""
    repositories = cli.adapter().list_repositories(query=query, page=page)
    if cli.json_output:
        print_json([r.to_dict() for r in repositories])
        return

    table = Table(title=f"Repositories (page {page})", header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Visibility")
    table.add_column("Default branch")
    table.add_column("Stars", justify="right")
    for repo in repositories:
        table.add_row(
            str(repo.id), repo.full_name, repo.visibility or "-",
            repo.default_branch, str(repo.stars or 0)
        )
    console.print(table)


@main.command()
@click.argument('repo_id')
@pass_cli
@handle_errors
def repo(cli, repo_id):
    """Show one repository (owner/name on GitHub, project id on GitLab)."""
    repository = cli.adapter().get_repository(repo_id)
    if cli.json_output:
        print_json(repository.to_dict())
        return

    rprint(Panel(
        f"[bold]{repository.full_name}[/bold]\n\n"
        f"{repository.description or '[dim]No description[/dim]'}\n\n"
        f"[cyan]ID:[/cyan] {repository.id}\n"
        f"[cyan]URL:[/cyan] {repository.url}\n"
        f"[cyan]Default branch:[/cyan] {repository.default_branch}\n"
        f"[cyan]Visibility:[/cyan] {repository.visibility or '-'}\n"
        f"[cyan]Stars / forks:[/cyan] {repository.stars or 0} / {repository.forks or 0}",
        title=repository.backend.value,
        border_style="blue"
    ))


@main.command()
@click.argument('repo_id')
@click.option('--state', '-s', default='open', show_default=True,
              type=click.Choice(['open', 'closed', 'all']))
@click.option('--page', default=1, show_default=True, help='Page number')
@pass_cli
@handle_errors
def issues(cli, repo_id, state, page):
    """List issues of a repository."""
    results = cli.adapter().list_issues(repo_id, state=state, page=page)
    if cli.json_output:
        print_json([i.to_dict() for i in results])
        return

    table = Table(title=f"{state.capitalize()} issues in {repo_id}", header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column("Title", style="cyan")
    table.add_column("State")
    table.add_column("Author")
    table.add_column("Labels")
    for issue in results:
        style = _state_style(issue.state.value)
        table.add_row(
            str(issue.number), issue.title, f"[{style}]{issue.state.value}[/{style}]",
            issue.author.username, ", ".join(issue.labels)
        )
    console.print(table)


@main.command()
@click.argument('repo_id')
@click.argument('number', type=int)
@pass_cli
@handle_errors
def issue(cli, repo_id, number):
    """Show one issue."""
    result = cli.adapter().get_issue(repo_id, number)
    if cli.json_output:
        print_json(result.to_dict())
        return

    style = _state_style(result.state.value)
    rprint(Panel(
        f"[bold]#{result.number} {result.title}[/bold] [{style}]({result.state.value})[/{style}]\n"
        f"[dim]by {result.author.username} on {result.created_at or '-'}[/dim]\n\n"
        f"{result.body or '[dim]No description[/dim]'}\n\n"
        f"[cyan]Labels:[/cyan] {', '.join(result.labels) or '-'}\n"
        f"[cyan]Assignees:[/cyan] {', '.join(a.username for a in result.assignees) or '-'}",
        border_style=style
    ))


@main.command()
@click.argument('repo_id')
@click.option('--state', '-s', default='open', show_default=True,
              type=click.Choice(['open', 'closed', 'merged', 'all']))
@click.option('--page', default=1, show_default=True, help='Page number')
@pass_cli
@handle_errors
def prs(cli, repo_id, state, page):
    """List pull (merge) requests of a repository."""
    results = cli.adapter().list_pull_requests(repo_id, state=state, page=page)
    if cli.json_output:
        print_json([pr.to_dict() for pr in results])
        return

    table = Table(title=f"{state.capitalize()} pull requests in {repo_id}", header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column("Title", style="cyan")
    table.add_column("State")
    table.add_column("Branches")
    table.add_column("Author")
    for pr in results:
        style = _state_style(pr.state.value)
        title = f"{pr.title} [dim](draft)[/dim]" if pr.draft else pr.title
        table.add_row(
            str(pr.number), title, f"[{style}]{pr.state.value}[/{style}]",
            f"{pr.source_branch} → {pr.target_branch}", pr.author.username
        )
    console.print(table)


@main.command()
@click.argument('repo_id')
@click.argument('number', type=int)
@pass_cli
@handle_errors
def pr(cli, repo_id, number):
    """Show one pull (merge) request."""
    result = cli.adapter().get_pull_request(repo_id, number)
    if cli.json_output:
        print_json(result.to_dict())
        return

    style = _state_style(result.state.value)
    merged_line = f"\n[cyan]Merged at:[/cyan] {result.merged_at}" if result.merged_at else ""
    rprint(Panel(
        f"[bold]#{result.number} {result.title}[/bold] [{style}]({result.state.value})[/{style}]\n"
        f"[dim]by {result.author.username}, {result.source_branch} → {result.target_branch}[/dim]\n\n"
        f"{result.body or '[dim]No description[/dim]'}\n\n"
        f"[cyan]Draft:[/cyan] {'yes' if result.draft else 'no'}\n"
        f"[cyan]Labels:[/cyan] {', '.join(result.labels) or '-'}"
        f"{merged_line}",
        border_style=style
    ))


@main.command()
@click.argument('repo_id')
@click.argument('number', type=int)
@click.option('--target', '-t', default='issue', show_default=True,
              type=click.Choice([t.value for t in CommentTarget]))
@click.option('--page', default=1, show_default=True, help='Page number')
@pass_cli
@handle_errors
def comments(cli, repo_id, number, target, page):
    """List comments on an issue or pull request."""
    results = cli.adapter().list_comments(
        repo_id, number, target=CommentTarget(target), page=page
    )
    if cli.json_output:
        print_json([c.to_dict() for c in results])
        return

    if not results:
        rprint("[yellow]No comments[/yellow]")
        return
    for comment in results:
        rprint(Panel(
            comment.body or "[dim](empty)[/dim]",
            title=f"{comment.author.username} · {comment.created_at or '-'}",
            title_align="left",
            border_style="blue"
        ))


@main.command()
@click.argument('repo_id')
@pass_cli
@handle_errors
def branches(cli, repo_id):
    """List branches, marking the default one."""
    results = cli.adapter().list_branches(repo_id)
    if cli.json_output:
        print_json([b.to_dict() for b in results])
        return

    table = Table(title=f"Branches of {repo_id}", header_style="bold magenta")
    table.add_column("Name", style="cyan")
    table.add_column("Default")
    table.add_column("Protected")
    table.add_column("Commit", style="dim")
    for branch in results:
        table.add_row(
            branch.name,
            "[green]✓[/green]" if branch.default else "",
            "🔒" if branch.protected else "",
            (branch.commit_sha or "")[:10]
        )
    console.print(table)


@main.command()
@click.argument('repo_id')
@click.argument('number', type=int)
@click.option('--stat', is_flag=True, help='Only show per-file counts')
@pass_cli
@handle_errors
def diff(cli, repo_id, number, stat):
    """Show the diff of a pull (merge) request."""
    result = cli.adapter().get_pull_request_diff(repo_id, number)
    if cli.json_output:
        print_json(result.to_dict())
        return

    for file_diff in result.files:
        if file_diff.is_new:
            label = "[green]added[/green]"
        elif file_diff.is_deleted:
            label = "[red]deleted[/red]"
        elif file_diff.is_renamed:
            label = f"[yellow]renamed from {file_diff.old_path}[/yellow]"
        else:
            label = "modified"
        rprint(
            f"[bold]{file_diff.new_path}[/bold] {label} "
            f"[green]+{file_diff.additions}[/green] [red]-{file_diff.deletions}[/red]"
        )
        if not stat and file_diff.diff:
            display_diff(file_diff.diff, out=console)

    rprint(
        f"\n{len(result.files)} files changed, "
        f"[green]+{result.total_additions}[/green] [red]-{result.total_deletions}[/red]"
    )


@main.command('rate-limit')
@pass_cli
@handle_errors
def rate_limit(cli):
    """Check API rate limit status."""
    adapter = cli.adapter()
    # Counters arrive with responses, so make one cheap call first.
    adapter.get_authenticated_user()
    rate_info = adapter.get_rate_limit()

    if cli.json_output:
        print_json(rate_info.to_dict() if rate_info else None)
        return

    if rate_info is None or rate_info.limit is None or rate_info.remaining is None:
        rprint("[yellow]The backend did not report rate limit headers[/yellow]")
        return

    core_percent = (rate_info.remaining / rate_info.limit * 100) if rate_info.limit > 0 else 0

    if rate_info.remaining > rate_info.limit * 0.5:
        color = "green"
        status = "✓ Good"
    elif rate_info.remaining > rate_info.limit * 0.2:
        color = "yellow"
        status = "⚠ Moderate"
    else:
        color = "red"
        status = "⚠ Low"

    reset_line = "-"
    if rate_info.reset_at:
        minutes_until_reset = int((rate_info.reset_at - datetime.now().timestamp()) / 60)
        reset_line = f"{format_timestamp(rate_info.reset_at)} (in {max(0, minutes_until_reset)} minutes)"

    info_text = f"""[bold]{adapter.BACKEND.value} API Rate Limit[/bold]

[cyan]Status:[/cyan] [{color}]{status}[/{color}]
[cyan]Remaining:[/cyan] [{color}]{rate_info.remaining:,}[/{color}] / {rate_info.limit:,} ({core_percent:.1f}%)
[cyan]Used:[/cyan] {rate_info.limit - rate_info.remaining:,}
[cyan]Resets:[/cyan] {reset_line}
"""

    rprint(Panel(info_text, border_style=color, title="📊 Rate Limit Status"))

    if rate_info.remaining < 100:
        rprint("\n[yellow]⚠ Warning: Low on API requests! Consider waiting for reset.[/yellow]")


@main.group()
def cache():
    """Manage the response cache."""
    pass


def _open_cache():
    settings = get_settings()
    if not settings.cache.file:
        rprint("[yellow]No cache file configured (cache.file); the cache lives in memory only[/yellow]")
        sys.exit(1)
    return ResponseCache(settings.cache.file)


@cache.command()
def stats():
    """Show cache statistics."""
    response_cache = _open_cache()
    stats = response_cache.get_cache_stats()

    rprint(Panel.fit(
        "[bold blue]📊 Cache Statistics[/bold blue]",
        border_style="blue"
    ))

    rprint(f"\n[cyan]File:[/cyan] {stats['file']}")
    rprint(f"[cyan]Total Entries:[/cyan] {stats['total_entries']}")
    rprint(f"[cyan]With ETag:[/cyan] {stats['entries_with_etag']}")
    rprint(f"[cyan]Oldest:[/cyan] {format_timestamp(stats['oldest_entry'])}")
    rprint(f"[cyan]Newest:[/cyan] {format_timestamp(stats['newest_entry'])}")
    if 'file_size_bytes' in stats:
        rprint(f"[cyan]Size:[/cyan] {format_file_size(stats['file_size_bytes'])}")


@cache.command()
@click.confirmation_option(prompt='Are you sure you want to clear all cache?')
def clear():
    """Clear all cache entries."""
    response_cache = _open_cache()
    response_cache.clear_cache()
    rprint("[green]✓ Cache cleared[/green]")


if __name__ == '__main__':
    main()
