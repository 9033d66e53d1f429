"""CLI commands for scenescribe using Typer and Rich.

Implements the CLI commands:
- create: Ingest a URL or text and segment it into topics
- status: Show project details and per-topic progress
- list: List all projects in a table
- scripts: Generate scripts for enabled topics
- videos: Generate videos for enabled topics
- merge: Fold one topic into another
- toggle: Enable or disable a topic

The CLI always persists to the SQL store, since every command runs in a
fresh process.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from scenescribe.config import Settings, settings
from scenescribe.errors import ScenescribeError
from scenescribe.orchestrator.pipeline import ProjectOrchestrator
from scenescribe.schemas.project import Project, ProjectConfig, TopicMerge

app = typer.Typer(name="scenescribe", help="Turn articles and notes into multi-topic explainer videos")
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _cli_settings() -> Settings:
    return settings.model_copy(
        update={"storage": settings.storage.model_copy(update={"backend": "sql"})}
    )


@asynccontextmanager
async def _orchestrator():
    orchestrator = ProjectOrchestrator.from_settings(_cli_settings())
    await orchestrator.startup()
    try:
        yield orchestrator
    finally:
        await orchestrator.shutdown()


def _run(coro) -> None:
    """Run a command coroutine, turning domain errors into exit code 1."""
    try:
        asyncio.run(coro)
    except ScenescribeError as e:
        console.print(f"[red]Error:[/red] {str(e)}")
        raise typer.Exit(code=1)


@app.command()
def create(
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Article URL to ingest"),
    text: Optional[str] = typer.Option(None, "--text", help="Raw text to ingest"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read raw text from a file"),
    platform: str = typer.Option("youtube", "--platform", "-p", help="youtube, tiktok or generic"),
    aspect_ratio: str = typer.Option("16:9", "--aspect-ratio", "-a", help="Video aspect ratio"),
    tone: str = typer.Option("educational", "--tone", help="educational, casual, serious or playful"),
    style: str = typer.Option("semi-abstract", "--style", "-s", help="realistic, semi-abstract or diagram-heavy"),
    duration: int = typer.Option(60, "--duration", "-d", help="Target duration per topic in seconds"),
):
    """Create a project from a URL or pasted text and segment it into topics."""
    sources = [s for s in (url, text, file) if s is not None]
    if len(sources) != 1:
        console.print("[red]Error:[/red] Provide exactly one of --url, --text or --file")
        raise typer.Exit(code=1)

    if file is not None:
        if not file.is_file():
            console.print(f"[red]Error:[/red] File not found: {file}")
            raise typer.Exit(code=1)
        text = file.read_text(encoding="utf-8")

    try:
        config = ProjectConfig(
            platform=platform,
            aspect_ratio=aspect_ratio,
            tone=tone,
            style=style,
            target_duration_seconds=duration,
        )
    except ValueError as e:
        console.print(f"[red]Error:[/red] Invalid config: {e}")
        raise typer.Exit(code=1)

    _run(_create_async(url, text, config))


async def _create_async(url: Optional[str], text: Optional[str], config: ProjectConfig):
    """Async implementation of create command."""
    async with _orchestrator() as orchestrator:
        with console.status("[bold green]Ingesting and segmenting..."):
            project = await orchestrator.create_project(
                "url" if url else "text",
                url=url,
                raw_text=text,
                config=config,
            )
    console.print(f"[green]Created project:[/green] {project.id}")
    _print_topics(project)


@app.command()
def status(
    project_id: str = typer.Argument(..., help="Project ID"),
):
    """Show detailed project status and information."""
    _run(_status_async(project_id))


async def _status_async(project_id: str):
    """Async implementation of status command."""
    async with _orchestrator() as orchestrator:
        project = await orchestrator.get_project(project_id)

    status_color = _get_status_color(project.status)
    source = project.url or (project.raw_text or "")
    source_display = source if len(source) <= 80 else source[:77] + "..."

    info_lines = [
        f"[bold]ID:[/bold] {project.id}",
        f"[bold]Source:[/bold] {source_display}",
        f"[bold]Status:[/bold] [{status_color}]{project.status}[/{status_color}]",
        f"[bold]Platform:[/bold] {project.config.platform}",
        f"[bold]Aspect Ratio:[/bold] {project.config.aspect_ratio}",
        f"[bold]Tone / Style:[/bold] {project.config.tone} / {project.config.style}",
        f"[bold]Target Duration:[/bold] {project.config.target_duration_seconds}s",
        f"[bold]Created:[/bold] {project.created_at.strftime('%Y-%m-%d %H:%M:%S')}",
        f"[bold]Updated:[/bold] {project.updated_at.strftime('%Y-%m-%d %H:%M:%S')}",
    ]
    if project.summary:
        info_lines.append(f"[bold]Summary:[/bold] {project.summary}")
    if project.status == "failed" and project.error:
        info_lines.append(f"[bold]Error:[/bold] [red]{project.error}[/red]")

    console.print(Panel(
        "\n".join(info_lines),
        title="[bold]Project Status[/bold]",
        border_style="blue",
    ))
    _print_topics(project)


@app.command(name="list")
def list_projects():
    """List all projects."""
    _run(_list_async())


async def _list_async():
    """Async implementation of list command."""
    async with _orchestrator() as orchestrator:
        projects = await orchestrator.list_projects()

    if not projects:
        console.print("[yellow]No projects found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("ID", style="dim")
    table.add_column("Source")
    table.add_column("Topics", justify="right")
    table.add_column("Status")
    table.add_column("Created")

    for project in projects:
        source = project.url or (project.raw_text or "")
        source_display = source if len(source) <= 50 else source[:47] + "..."
        status_color = _get_status_color(project.status)
        table.add_row(
            project.id,
            source_display,
            str(len(project.topics)),
            f"[{status_color}]{project.status}[/{status_color}]",
            project.created_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


@app.command()
def scripts(
    project_id: str = typer.Argument(..., help="Project ID"),
    topic: Optional[list[str]] = typer.Option(None, "--topic", "-t", help="Restrict to topic id (repeatable)"),
):
    """Generate narration and scenes for enabled topics."""
    _run(_scripts_async(project_id, topic or None))


async def _scripts_async(project_id: str, topic_ids: Optional[list[str]]):
    """Async implementation of scripts command."""
    async with _orchestrator() as orchestrator:
        with console.status("[bold green]Writing scripts..."):
            project = await orchestrator.generate_scripts(project_id, topic_ids)
    console.print("[green]✓[/green] Scripts ready")
    _print_topics(project)


@app.command()
def videos(
    project_id: str = typer.Argument(..., help="Project ID"),
    topic: Optional[list[str]] = typer.Option(None, "--topic", "-t", help="Restrict to topic id (repeatable)"),
):
    """Generate videos for enabled topics and wait for every job to finish."""
    _run(_videos_async(project_id, topic or None))


async def _videos_async(project_id: str, topic_ids: Optional[list[str]]):
    """Async implementation of videos command."""
    async with _orchestrator() as orchestrator:
        with console.status("[bold green]Rendering videos..."):
            project = await orchestrator.generate_videos(project_id, topic_ids)
    status_color = _get_status_color(project.status)
    console.print(f"Project status: [{status_color}]{project.status}[/{status_color}]")
    _print_topics(project)


@app.command()
def merge(
    project_id: str = typer.Argument(..., help="Project ID"),
    from_id: str = typer.Argument(..., help="Topic to fold away"),
    into_id: str = typer.Argument(..., help="Topic that absorbs it"),
):
    """Merge one topic into another."""
    _run(_merge_async(project_id, from_id, into_id))


async def _merge_async(project_id: str, from_id: str, into_id: str):
    """Async implementation of merge command."""
    async with _orchestrator() as orchestrator:
        project = await orchestrator.edit_topics(
            project_id, merge=TopicMerge(from_id=from_id, into_id=into_id)
        )
    _print_topics(project)


@app.command()
def toggle(
    project_id: str = typer.Argument(..., help="Project ID"),
    topic_id: str = typer.Argument(..., help="Topic ID"),
    enable: bool = typer.Option(..., "--enable/--disable", help="Enable or disable the topic"),
):
    """Enable or disable a topic for generation."""
    _run(_toggle_async(project_id, topic_id, enable))


async def _toggle_async(project_id: str, topic_id: str, enable: bool):
    """Async implementation of toggle command."""
    async with _orchestrator() as orchestrator:
        project = await orchestrator.set_topic_enabled(project_id, topic_id, enable)
    _print_topics(project)


def _print_topics(project: Project) -> None:
    if not project.topics:
        console.print("[yellow]No topics[/yellow]")
        return

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("#", justify="right")
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Enabled")
    table.add_column("Script")
    table.add_column("Video")
    table.add_column("Media")

    for topic in project.topics:
        script_color = _get_status_color(topic.script_status)
        video_color = _get_status_color(topic.video_status)
        media = topic.media.video_url if topic.media and topic.media.video_url else ""
        if topic.video_status == "failed" and topic.video_error:
            media = f"[red]{topic.video_error}[/red]"
        table.add_row(
            str(topic.order),
            topic.id,
            topic.title,
            "yes" if topic.enabled else "[dim]no[/dim]",
            f"[{script_color}]{topic.script_status}[/{script_color}]",
            f"[{video_color}]{topic.video_status}[/{video_color}]",
            media,
        )

    console.print(table)


def _get_status_color(status: str) -> str:
    """Get Rich color for a project or topic status.

    Color coding:
    - completed / ready: green
    - failed: red
    - in-progress states: yellow
    - created / pending: dim
    """
    if status in ("completed", "ready"):
        return "green"
    elif status == "failed":
        return "red"
    elif status in ["structured", "scripts_ready", "videos_generating", "generating", "assembling"]:
        return "yellow"
    elif status in ("created", "pending"):
        return "dim"
    else:
        return "white"
