"""CLI commands for articlepipe using Typer and Rich.

Commands:
- submit: Create an article and process it in-process
- status: Show detailed article information
- list: List articles in a table
"""

import asyncio
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from articlepipe.db import async_session, init_database, shutdown
from articlepipe.orchestrator.state import FAILED, PROCESSING, QUEUED, READY
from articlepipe.services.errors import ArticleNotFound
from articlepipe.services.job_store import ArticleStore
from articlepipe.services.registry import build_processor, close_processor

app = typer.Typer(name="articlepipe", help="Turn articles into summaries, audio and video")
console = Console()

_FORMATS = ("text", "audio", "video")
_LENGTHS = ("s", "m", "l")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show pipeline logs")):
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def submit(
    url: str = typer.Argument(..., help="Link to the article"),
    format: str = typer.Option("text", "--format", "-f", help="text, audio or video"),
    length: str = typer.Option("m", "--length", "-l", help="s (~1 min), m (~5 min) or l (full)"),
    language: Optional[str] = typer.Option(None, "--language", help="Summary language"),
    style: Optional[str] = typer.Option(None, "--style", "-s", help="summarize, explain, simplify, detailed, bullet or story"),
):
    """Submit an article and run the whole pipeline for it."""
    if format not in _FORMATS:
        console.print(f"[red]Error:[/red] Invalid format: {format}")
        console.print(f"Allowed: {', '.join(_FORMATS)}")
        raise typer.Exit(code=1)
    if length not in _LENGTHS:
        console.print(f"[red]Error:[/red] Invalid length: {length}")
        console.print(f"Allowed: {', '.join(_LENGTHS)}")
        raise typer.Exit(code=1)

    asyncio.run(_submit_async(url, format, length, language, style))


async def _submit_async(
    url: str, format: str, length: str, language: Optional[str], style: Optional[str],
):
    """Async implementation of submit command."""
    await init_database()
    store = ArticleStore(async_session)
    processor = build_processor(store)

    try:
        article = await store.create_article(
            url=url, format=format, length=length, language=language, style=style,
        )
        console.print(f"[green]Created article:[/green] {article.id}")
        console.print()

        try:
            with console.status("[bold green]Processing article..."):
                await processor.process(article.id)
        except KeyboardInterrupt:
            console.print()
            console.print("[yellow]Processing interrupted.[/yellow]")
            raise typer.Exit(code=130)

        article = await store.get_article(article.id)
    finally:
        await close_processor(processor)
        await shutdown()

    if article.status == READY:
        console.print(f"[green]✓[/green] Article ready: {article.title}")
        if article.audio_file_path:
            console.print(f"[green]Audio:[/green] {article.audio_file_path}")
        if article.video_file_path:
            console.print(f"[green]Video:[/green] {article.video_file_path}")
        console.print()
        console.print(article.summary or "")
    else:
        console.print(f"[red]✗ Processing failed:[/red] {article.error_message}")
        raise typer.Exit(code=1)


@app.command()
def status(
    article_id: int = typer.Argument(..., help="Article ID"),
):
    """Show detailed article status and information."""
    asyncio.run(_status_async(article_id))


async def _status_async(article_id: int):
    """Async implementation of status command."""
    await init_database()
    store = ArticleStore(async_session)

    try:
        article = await store.get_article(article_id)
    except ArticleNotFound:
        console.print(f"[red]Error:[/red] Article not found: {article_id}")
        raise typer.Exit(code=1)
    finally:
        await shutdown()

    status_color = _get_status_color(article.status)
    url_display = article.url if len(article.url) <= 80 else article.url[:77] + "..."

    info_lines = [
        f"[bold]ID:[/bold] {article.id}",
        f"[bold]URL:[/bold] {url_display}",
        f"[bold]Status:[/bold] [{status_color}]{article.status}[/{status_color}]",
        f"[bold]Format:[/bold] {article.format}",
        f"[bold]Length:[/bold] {article.length}",
        f"[bold]Created:[/bold] {article.created_at.strftime('%Y-%m-%d %H:%M:%S')}",
        f"[bold]Updated:[/bold] {article.updated_at.strftime('%Y-%m-%d %H:%M:%S')}",
    ]
    if article.language:
        info_lines.append(f"[bold]Language:[/bold] {article.language}")
    if article.style:
        info_lines.append(f"[bold]Style:[/bold] {article.style}")
    if article.title:
        info_lines.append(f"[bold]Title:[/bold] {article.title}")
    if article.thumbnail_path:
        info_lines.append(f"[bold]Thumbnail:[/bold] {article.thumbnail_path}")
    if article.audio_file_path:
        info_lines.append(f"[bold]Audio:[/bold] [green]{article.audio_file_path}[/green]")
    if article.video_file_path:
        info_lines.append(
            f"[bold]Video:[/bold] [green]{article.video_file_path}[/green] ({article.duration_seconds}s)"
        )
    if article.status == FAILED and article.error_message:
        info_lines.append(f"[bold]Error:[/bold] [red]{article.error_message}[/red]")

    console.print(Panel(
        "\n".join(info_lines),
        title="[bold]Article Status[/bold]",
        border_style="blue",
    ))


@app.command(name="list")
def list_articles(
    limit: int = typer.Option(50, "--limit", "-n", help="Maximum number of articles"),
):
    """List articles, newest first."""
    asyncio.run(_list_async(limit))


async def _list_async(limit: int):
    """Async implementation of list command."""
    await init_database()
    store = ArticleStore(async_session)
    try:
        articles = await store.list_articles(limit=limit)
    finally:
        await shutdown()

    if not articles:
        console.print("[yellow]No articles found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Format")
    table.add_column("Status")
    table.add_column("Created")

    for article in articles:
        title = article.title or article.url
        title_display = title if len(title) <= 50 else title[:47] + "..."
        status_color = _get_status_color(article.status)
        table.add_row(
            str(article.id),
            title_display,
            article.format,
            f"[{status_color}]{article.status}[/{status_color}]",
            article.created_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


def _get_status_color(status: str) -> str:
    """Get Rich color for an article status."""
    if status == READY:
        return "green"
    elif status == FAILED:
        return "red"
    elif status == PROCESSING:
        return "yellow"
    elif status == QUEUED:
        return "dim"
    else:
        return "white"
