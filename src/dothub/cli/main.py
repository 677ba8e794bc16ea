import logging
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from ..config import GH_TOKEN_HELP_URL, Settings, load_settings, set_config_value
from ..domain.errors import FetchError, ParseError, StoreError
from ..github.client import GitHubClient
from ..registry.http import HttpRegistryClient
from ..services.catalog import CatalogService
from ..services.popularity import PopularityService
from ..store.local import LocalStore, derive_repo_name
from ..ui.progress import ProgressManager
from ..ui.table import build_catalog_table

app = typer.Typer(help="Manage dotfile repos and links")
console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)


def configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )

def get_settings() -> Settings:
    return load_settings()

def get_store(settings: Settings) -> LocalStore:
    return LocalStore(settings.store_dir, settings.config_dir)

def get_catalog_service(settings: Settings, token: Optional[str]) -> CatalogService:
    registry_client = HttpRegistryClient(settings)
    github_client = GitHubClient(settings, token=token)
    popularity_service = PopularityService(settings, github_client)
    progress_manager = ProgressManager(err_console)
    return CatalogService(settings, registry_client, popularity_service, get_store(settings), progress_manager)


def show_hub(types: List[str], url: Optional[str]):
    """fetch the hub file and print the stars-ranked catalog."""
    settings = get_settings()
    token = settings.github_token()
    service = get_catalog_service(settings, token)

    try:
        report = service.build(types, url=url, credential=token)
    except FetchError as e:
        logger.debug(f"hub fetch failed: {e}")
        err_console.print("[red]Failed to fetch the hub file. Please ensure you have internet connection.[/red]")
        raise typer.Exit(code=1)
    except ParseError as e:
        err_console.print(f"[red]Error parsing hub file:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(build_catalog_table(report.rows))
    if report.credential_missing:
        console.print(
            f"[yellow]To improve performance, please set your {settings.token_env_var} environment variable.\n"
            f"Learn more: {GH_TOKEN_HELP_URL}[/yellow]"
        )
    if report.bulk_failed:
        console.print(
            f"[yellow]{settings.token_env_var} detected but GitHub GraphQL failed; falling back to REST.\n"
            f"Learn more: {GH_TOKEN_HELP_URL}[/yellow]"
        )
    console.print("Run dothub --help to see more options, or dothub hub TYPES to filter by type.")


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    url: Optional[str] = typer.Option(None, "--url", help="Override URL of the hub YAML file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """manage dotfile repos and links. with no command, show the hub catalog."""
    configure_logging(verbose)
    ctx.obj = {"url": url}
    if ctx.invoked_subcommand is None:
        show_hub([], url)

@app.command()
def hub(
    ctx: typer.Context,
    types: Optional[List[str]] = typer.Argument(None, help="Types to include (e.g. nvim tmux or nvim,tmux)"),
    url: Optional[str] = typer.Option(None, "--url", help="Override URL of the hub YAML file"),
):
    """
    show hub repositories ranked by GitHub stars.
    """
    parent_url = (ctx.obj or {}).get("url")
    show_hub(types or [], url or parent_url)

@app.command()
def install(repo: str = typer.Argument(..., help="Git repository URL, e.g. https://github.com/owner/nvim-config")):
    """clone a git repository into the dothub store."""
    store = get_store(get_settings())
    try:
        dest = store.install(repo)
    except StoreError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    if dest is None:
        console.print(f"[yellow]Repo already exists: {store.path_for(derive_repo_name(repo))}[/yellow]")
    else:
        console.print(f"[green]Installed {dest.name}[/green]")

@app.command()
def link(
    name: str = typer.Argument(..., help="Repository name stored under dothub"),
    target: str = typer.Argument(..., help="Target directory name under ~/.config (e.g. nvim)"),
):
    """replace ~/.config/<target> with a symlink to a stored repo."""
    store = get_store(get_settings())
    try:
        created = store.link(name, target)
    except StoreError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)
    console.print(f"[green]Linked {store.path_for(name)} -> {created}[/green]")

@app.command()
def update():
    """pull latest changes for all stored repos."""
    store = get_store(get_settings())
    try:
        summary = store.update()
    except StoreError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    for path in summary.failed:
        err_console.print(f"[red]git pull failed in {path}[/red]")
    console.print(f"Updated {summary.updated} repositories (skipped {summary.skipped}).")

@app.command()
def active():
    """list active links in ~/.config that point into dothub."""
    store = get_store(get_settings())
    links = store.active()
    if not links:
        console.print("No active dothub links in ~/.config.")
        return
    for found in links:
        console.print(f"{found.name} -> {found.target}")

@app.command(name="list")
def list_repos():
    """list repositories installed in the dothub store."""
    store = get_store(get_settings())
    try:
        repos = store.list_repos()
    except StoreError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    if not repos:
        console.print(f"No repositories installed in {store.store_dir}.")
        return
    for name in repos:
        console.print(name)

@app.command()
def config(
    key: str = typer.Argument(..., help="DOTHUB_HUB_URL, DOTHUB_STORE_DIR or DOTHUB_CONFIG_DIR"),
    value: str = typer.Argument(...),
):
    """persist a setting in ~/.dothub/config."""
    try:
        set_config_value(key, value)
    except (ValueError, RuntimeError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓ {key} set[/green]")

if __name__ == "__main__":
    app()
