"""CLI entry point for docsbuild."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich import print as rprint
from rich.logging import RichHandler
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from docsbuild.collector import DocumentRegistry, FileCollector
from docsbuild.config import BuildConfig, OutputFormat, load_config, load_config_source
from docsbuild.config.loader import CONFIG_FILENAME, DEFAULT_CONFIG_TEMPLATE
from docsbuild.converter import BuildReport, ConversionStatus
from docsbuild.errors import DocsBuildError
from docsbuild.pipeline import ALL_FORMATS, build as run_build

app = typer.Typer(
    name="docsbuild",
    help="Convert markdown documentation into HTML, e-book and PDF documents.",
)

config_app = typer.Typer(help="Manage docsbuild configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: BuildConfig | None = None
_config_path: Path | None = None

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def _get_config() -> BuildConfig:
    if _config is None:
        return load_config()
    return _config


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=_LOG_LEVELS[level],
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to docsbuild.yaml")
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
) -> None:
    """Global options."""
    global _config, _config_path
    try:
        _config, _config_path = load_config_source(config)
    except (FileNotFoundError, ValueError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    _setup_logging("debug" if verbose else _config.log_level)


def _display_documents(registry: DocumentRegistry, cfg: BuildConfig) -> None:
    table = Table(title=f"Documents ({len(registry)})")
    table.add_column("Id", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Formats", style="yellow")
    for doc in registry:
        formats = cfg.formats_for(doc.type)
        if formats is None:
            fmt_str = "[red]unknown type[/red]"
        else:
            fmt_str = ", ".join(f.value for f in ALL_FORMATS if f in formats)
        table.add_row(doc.id, doc.type, fmt_str)
    rprint(table)


_STATUS_STYLE = {
    ConversionStatus.succeeded: "[green]ok[/green]",
    ConversionStatus.failed: "[red]failed[/red]",
    ConversionStatus.skipped: "[yellow]skipped[/yellow]",
}


def _display_report(report: BuildReport) -> None:
    table = Table(title=f"Conversions ({len(report.results)})")
    table.add_column("Document", style="cyan")
    table.add_column("Format")
    table.add_column("Status", justify="center")
    table.add_column("Message", style="dim", overflow="fold")
    for r in report.results:
        first_line = r.message.splitlines()[0] if r.message else ""
        table.add_row(r.doc_id, r.format.value, _STATUS_STYLE[r.status], first_line)
    rprint(table)

    border = "green" if report.ok else "red"
    rprint(Panel(
        f"[dim]Succeeded:[/dim] {len(report.succeeded)}\n"
        f"[dim]Failed:[/dim]    {len(report.failed)}\n"
        f"[dim]Skipped:[/dim]   {len(report.skipped)}",
        title="Build Complete" if report.ok else "Build Failed",
        border_style=border,
    ))


def _run(formats: list[OutputFormat]) -> None:
    cfg = _get_config()
    try:
        report = run_build(cfg, formats)
    except (OSError, ValueError, DocsBuildError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    _display_report(report)
    if not report.ok:
        raise typer.Exit(1)


@app.command()
def build(
    formats: Annotated[
        list[OutputFormat] | None,
        typer.Option("--format", "-f", help="Output format to build (repeatable)"),
    ] = None,
) -> None:
    """Generate HTML, e-book and PDF documents from the markdown docs."""
    _run(formats or list(ALL_FORMATS))


@app.command()
def html() -> None:
    """Generate HTML docs."""
    _run([OutputFormat.html])


@app.command()
def ebook() -> None:
    """Generate EPUB and MOBI e-books."""
    _run([OutputFormat.ebook])


@app.command()
def pdf() -> None:
    """Generate PDF docs from freshly generated HTML."""
    _run([OutputFormat.pdf])


@app.command()
def collect() -> None:
    """Copy docs and resources to the staging dir, resolving @tokens@."""
    cfg = _get_config()
    try:
        registry = FileCollector(cfg).collect()
    except (OSError, ValueError, DocsBuildError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    _display_documents(registry, cfg)
    rprint(f"\n[green]Staged:[/green] {cfg.paths.staging_dir}")


@app.command()
def documents() -> None:
    """List the docs and their types without copying anything."""
    cfg = _get_config()
    try:
        registry = FileCollector(cfg).scan()
    except (OSError, ValueError, DocsBuildError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    if not len(registry):
        rprint(f"[yellow]No markdown docs found in {cfg.paths.docs_dir}.[/yellow]")
        raise typer.Exit(0)
    _display_documents(registry, cfg)


# ---------------------------------------------------------------------------
# config subcommands
# ---------------------------------------------------------------------------


@config_app.command("init")
def config_init(
    path: Annotated[
        str, typer.Option("--path", "-p", help="Where to write the config file")
    ] = CONFIG_FILENAME,
    force: Annotated[bool, typer.Option("--force", help="Overwrite existing file")] = False,
) -> None:
    """Write a default docsbuild.yaml."""
    dest = Path(path)
    if dest.exists() and not force:
        rprint(f"[yellow]{dest} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    dest.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    rprint(f"[green]Created[/green] {dest}")


@config_app.command("show")
def config_show() -> None:
    """Print the effective configuration as YAML."""
    import yaml

    cfg = _get_config()
    data = cfg.model_dump(mode="json")
    data["conversions"] = {
        k: sorted(v) for k, v in data["conversions"].items()
    }
    source = _config_path or "built-in defaults"
    rprint(f"[dim]# source: {source}[/dim]")
    rprint(Syntax(yaml.safe_dump(data, sort_keys=False), "yaml", theme="monokai"))


if __name__ == "__main__":
    app()
