"""CLI entrypoints for the presentplus server."""

import logging
import shutil
import socket
import webbrowser
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from .config import Config, load_config
from .server import bound_address, create_dispatcher, make_request_handler, serve as serve_http
from .staging import reset_directory
from .templates import TemplateError
from .themes import ThemeResolver

console = Console()
app = typer.Typer(help="Serve slide decks and articles with resolvable themes.")

ConfigPathOption = Annotated[
    str | None,
    typer.Option("--config", "-c", help="Path to configuration file (default: ~/.ppconfig)."),
]
BaseOption = Annotated[
    Path | None,
    typer.Option("--base", help="Base path for templates and static resources."),
]
RepoOption = Annotated[
    Path | None,
    typer.Option("--repo", help="Path of the shared theme repository."),
]


@app.command()
def serve(
    content_dir: Annotated[
        Path,
        typer.Argument(help="Directory tree of .slide and .article documents to serve."),
    ] = Path("."),
    config_path: ConfigPathOption = None,
    http: Annotated[
        str | None,
        typer.Option("--http", help="HTTP service address (e.g. '127.0.0.1:4999')."),
    ] = None,
    orighost: Annotated[
        str | None,
        typer.Option("--orighost", help="Host component of the web origin URL (e.g. 'localhost')."),
    ] = None,
    base: BaseOption = None,
    theme: Annotated[
        str | None,
        typer.Option("--theme", help="Default theme applied when no custom styles are defined."),
    ] = None,
    repo: RepoOption = None,
    open_browser: Annotated[
        bool,
        typer.Option(
            "--open-browser/--no-open-browser",
            help="Open the served tree in a browser after starting.",
        ),
    ] = False,
) -> None:
    """Serve documents, directory listings, and theme assets over HTTP."""
    _configure_logging()
    config = _apply_overrides(_load(config_path), http=http, orighost=orighost, base=base, theme=theme, repo=repo)

    if not content_dir.is_dir():
        console.print(f"[bold red]Content directory not found[/]: {content_dir}")
        raise typer.Exit(code=1)

    try:
        host, port = config.split_address()
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    if config.uses_default_base:
        try:
            reset_directory(config.staging_root)
        except OSError as exc:
            console.print(f"[bold red]Couldn't reset staging directory[/] '{config.staging_root}': {exc}")
            raise typer.Exit(code=1) from exc

    try:
        dispatcher = create_dispatcher(config, content_dir)
    except TemplateError as exc:
        console.print(f"[bold red]Failed to parse templates[/]: {exc}")
        raise typer.Exit(code=1) from exc

    handler = make_request_handler(dispatcher, base_dir=config.base_dir)
    try:
        with serve_http(host, port, handler) as server:
            origin = origin_url(config, *bound_address(server))
            console.print(f"[bold green]Serving[/]: {dispatcher.content_root} (press Ctrl+C to stop)")
            console.print(f"Open your web browser and visit {origin}")
            if open_browser:
                webbrowser.open(origin)
            try:
                server.serve_forever()
            except KeyboardInterrupt:
                console.print("\n[bold yellow]Stopping server...[/]")
    except OSError as exc:
        console.print(f"[bold red]Failed to start server[/]: {exc}")
        raise typer.Exit(code=1) from exc


@app.command()
def resolve(
    name: Annotated[str, typer.Argument(help="Theme name to look up.")],
    start: Annotated[
        Path,
        typer.Option("--from", help="Directory the ancestor search starts from."),
    ] = Path("."),
    config_path: ConfigPathOption = None,
    base: BaseOption = None,
    repo: RepoOption = None,
) -> None:
    """Show which folder a theme name resolves to."""
    config = _apply_overrides(_load(config_path), base=base, repo=repo)
    resolver = ThemeResolver(builtin_dir=config.builtin_themes_dir, repo_dir=config.theme_repo)
    theme_dir = resolver.resolve(start, name)
    if theme_dir is not None:
        console.print(f"[bold green]Theme '{name}'[/]: {theme_dir}")
        return

    console.print(f"[bold red]Theme '{name}' not found[/]; searched:")
    for location in resolver.candidates(start):
        console.print(f"- {location}")
    raise typer.Exit(code=1)


@app.command()
def clean(
    config_path: ConfigPathOption = None,
    base: BaseOption = None,
) -> None:
    """Remove staged theme assets."""
    config = _apply_overrides(_load(config_path), base=base)
    staging_root = config.staging_root
    if not staging_root.exists():
        console.print(f"[bold yellow]Skipping[/]: staging directory ({staging_root}) not found")
        return
    shutil.rmtree(staging_root, ignore_errors=True)
    console.print(f"[bold green]Clean complete[/]: removed {staging_root}.")


def origin_url(config: Config, bound_host: str, bound_port: int) -> str:
    """Public URL announced at startup."""
    if config.orighost:
        host = config.orighost
    elif bound_host in {"0.0.0.0", "::", ""}:
        host = socket.gethostname()
    else:
        requested_host, requested_port = config.split_address()
        host = requested_host or bound_host
        if requested_port != 0:
            bound_port = requested_port
    if ":" in host:
        host = f"[{host}]"
    return f"http://{host}:{bound_port}"


def _apply_overrides(config: Config, **overrides: object) -> Config:
    update = {key: value for key, value in overrides.items() if value is not None}
    updated = Config.model_validate({**config.model_dump(), **update}) if update else config
    if updated.repo is not None and not updated.repo.is_dir():
        raise typer.BadParameter(f"Repo directory '{updated.repo}' does not exist")
    return updated


def _load(path: str | None) -> Config:
    try:
        config = load_config(path)
    except FileNotFoundError as exc:
        raise typer.BadParameter(f"Config file not found: {path}") from exc
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except OSError as exc:
        console.print(f"[bold red]Unable to read config file[/]: {exc}")
        raise typer.Exit(code=1) from exc
    return config


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
