"""NKV CLI - Main entry point.

Provides the `nkv` command-line interface.

Usage:
    nkv init-db
    nkv ingest article.txt --title "ITER update" --public
    nkv research "tokamak confinement" --draft
    nkv sweep --every 21600
"""

import asyncio
from contextlib import asynccontextmanager
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Optional
from uuid import UUID

import typer

from nkv_common import (
    configure_logging,
    get_logger,
    get_settings,
    get_task_runner,
)
from nkv_contracts import RequesterContext, SourceType, SweepResult
from nkv_storage import DatabaseConfig, close_connection_pool, get_connection_pool

from nkv_cli.formatters import (
    format_research_json,
    format_research_markdown,
    format_signals,
    format_sources_table,
    format_sweep,
    format_vault_matches,
)

logger = get_logger(__name__)


class OutputFormat(str, Enum):
    """Output format options."""

    markdown = "markdown"
    json = "json"


app = typer.Typer(
    name="nkv",
    help="Knowledge vault, pulse harvesting and tiered research.",
    add_completion=False,
)
sources_app = typer.Typer(help="Inspect and purge vault sources.")
app.add_typer(sources_app, name="sources")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    """Configure logging for every command."""
    settings = get_settings()
    configure_logging(
        level="DEBUG" if verbose else settings.log_level,
        json_output=settings.log_format == "json",
    )


@asynccontextmanager
async def database():
    """Open the pool; on exit drain detached work and close it."""
    await get_connection_pool(DatabaseConfig.from_settings())
    try:
        yield
    finally:
        await get_task_runner().drain(timeout=30.0)
        await close_connection_pool()


def _gateway():
    from nkv_extraction import get_llm_client
    from nkv_refinery import IngestionGateway, get_embedding_client

    return IngestionGateway(llm=get_llm_client(), embedder=get_embedding_client())


def _harvester():
    from arxiv_client import client_factory
    from nkv_pulse import Harvester
    from nkv_refinery import get_embedding_client

    return Harvester(
        catalog_factory=client_factory(base_url=get_settings().arxiv_base_url),
        embedder=get_embedding_client(),
    )


async def run_sweeps(
    sweep: Callable[[], Awaitable[SweepResult]],
    every: Optional[float],
    times: int,
    on_result: Callable[[SweepResult], None],
) -> int:
    """Run sweeps once, or every `every` seconds until `times` runs (0 = forever).

    A failed sweep is logged and the schedule continues.

    Returns:
        Number of sweeps that completed
    """
    completed = 0
    run = 0
    while True:
        run += 1
        try:
            on_result(await sweep())
            completed += 1
        except Exception as e:
            logger.error("scheduled_sweep_failed", run=run, error=str(e))
            if every is None:
                raise

        if every is None or (times and run >= times):
            return completed
        await asyncio.sleep(every)


@app.command("init-db")
def init_db():
    """Create extensions, tables and indexes (idempotent)."""

    async def init():
        from nkv_storage import apply_schema

        async with database():
            await apply_schema()

    try:
        asyncio.run(init())
        typer.echo("Schema applied.")
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def ingest(
    path: Path = typer.Argument(..., help="Text file to ingest ('-' for stdin)"),
    title: str = typer.Option(..., "--title", "-t", help="Source title"),
    url: Optional[str] = typer.Option(None, "--url", help="Canonical URL"),
    source_type: SourceType = typer.Option(SourceType.ADMIN, "--source-type", "-s"),
    public: bool = typer.Option(False, "--public/--private", help="Visible to every user"),
):
    """Distill a text file into the vault (identical text is a no-op)."""
    if str(path) == "-":
        text = typer.get_text_stream("stdin").read()
    else:
        text = path.read_text(encoding="utf-8")

    async def run():
        async with database():
            return await _gateway().ingest(
                title=title, text=text, url=url, source_type=source_type, is_public=public
            )

    try:
        result = asyncio.run(run())
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if result.duplicate:
        typer.echo(f"Already in vault: {result.source_id}")
    else:
        typer.echo(f"Ingested {result.source_id} ({result.facts_count} facts)")


@app.command()
def sweep(
    every: Optional[float] = typer.Option(
        None, "--every", help="Repeat every N seconds until interrupted"
    ),
    times: int = typer.Option(0, "--times", help="Stop after N sweeps (0 = no limit)"),
):
    """Harvest one random arXiv category into staging."""

    async def run():
        async with database():
            harvester = _harvester()
            return await run_sweeps(
                harvester.sweep, every, times, lambda r: typer.echo(format_sweep(r))
            )

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        typer.echo("Stopped.")
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def research(
    topic: str = typer.Argument(..., help="Subject to research"),
    select: list[str] = typer.Option(
        [], "--select", help="Staging item id picked explicitly (repeatable)"
    ),
    draft: bool = typer.Option(False, "--draft", help="Record results on a new draft"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Requesting user id"),
    format: OutputFormat = typer.Option(OutputFormat.markdown, "--format", "-f"),
):
    """Gather sources for a topic: vault, staging, then web if needed."""
    try:
        selection_ids = [UUID(s) for s in select] or None
    except ValueError as e:
        typer.echo(f"Error: invalid staging id: {e}", err=True)
        raise typer.Exit(1)

    async def run():
        from nkv_research import ResearchOrchestrator, get_handoff, get_web_search
        from nkv_storage import DraftStore

        async with database():
            draft_id = None
            if draft:
                draft_id = (await DraftStore.create(topic, user_id=user)).id
            gateway = _gateway()
            orchestrator = ResearchOrchestrator(
                embedder=gateway.embedder,
                gateway=gateway,
                web_search=get_web_search(),
                handoff=get_handoff(),
            )
            return await orchestrator.research(
                topic,
                RequesterContext(draft_id=draft_id, user_id=user),
                selection_ids=selection_ids,
            )

    try:
        result = asyncio.run(run())
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if format == OutputFormat.json:
        typer.echo(format_research_json(result))
    else:
        typer.echo(format_research_markdown(result))


@app.command()
def search(
    query: str = typer.Argument(..., help="Topic or question"),
    threshold: float = typer.Option(0.5, "--threshold", min=0.0, max=1.0),
    limit: int = typer.Option(10, "--limit", "-l", min=1),
):
    """Show which vault facts a topic would retrieve."""

    async def run():
        from nkv_refinery import get_embedding_client
        from nkv_research import search_vault

        async with database():
            return await search_vault(get_embedding_client(), query, threshold, limit)

    try:
        matches = asyncio.run(run())
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not matches:
        typer.echo(f"No vault facts above {threshold:.2f} for: {query}")
        return
    typer.echo(format_vault_matches(matches))


@app.command()
def signals(user_id: str = typer.Argument(..., help="User id")):
    """Personalized pulse signals (trending items without DNA)."""

    async def run():
        from nkv_pulse import PersonalizationMatcher

        async with database():
            return await PersonalizationMatcher().match_signals(user_id)

    try:
        result = asyncio.run(run())
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not result.signals:
        typer.echo("No signals yet. Run `nkv sweep` to harvest.")
        return
    typer.echo(format_signals(result))


@app.command()
def dna(
    user_id: str = typer.Argument(..., help="User id"),
    profile: str = typer.Argument(..., help="Free-text description of interests"),
    expertise: int = typer.Option(5, "--expertise", "-e", min=1, max=10),
    exclude: list[str] = typer.Option([], "--exclude", "-x", help="Noise keyword (repeatable)"),
):
    """Set a user's interest DNA from profile text (replaces the previous one)."""

    async def run():
        from nkv_extraction import get_llm_client
        from nkv_pulse import DNASynthesizer
        from nkv_refinery import get_embedding_client

        async with database():
            synthesizer = DNASynthesizer(llm=get_llm_client(), embedder=get_embedding_client())
            return await synthesizer.update_dna(
                user_id, profile, expertise_level=expertise, negative_interests=exclude
            )

    try:
        result = asyncio.run(run())
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"DNA updated for {result.user_id}")
    typer.echo(f"Refined profile: {result.refined_profile}")


@sources_app.callback(invoke_without_command=True)
def sources(ctx: typer.Context):
    """Inspect and purge vault sources (lists them when no subcommand is given)."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(sources_list, limit=50, offset=0)


@sources_app.command("list")
def sources_list(
    limit: int = typer.Option(50, "--limit", "-l", min=1),
    offset: int = typer.Option(0, "--offset", min=0),
):
    """List vault sources, newest first."""

    async def run():
        from nkv_storage import SourceStore

        async with database():
            return await SourceStore.list_with_counts(limit=limit, offset=offset)

    try:
        summaries = asyncio.run(run())
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not summaries:
        typer.echo("No sources in vault.")
        return
    typer.echo(f"Found {len(summaries)} sources:\n")
    typer.echo(format_sources_table(summaries))


@sources_app.command("delete")
def sources_delete(
    source_id: str = typer.Argument(..., help="Source id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Purge a source and its facts."""
    try:
        parsed = UUID(source_id)
    except ValueError:
        typer.echo(f"Error: not a valid id: {source_id}", err=True)
        raise typer.Exit(1)

    if not yes:
        typer.confirm(f"Delete source {parsed} and all its facts?", abort=True)

    async def run():
        from nkv_storage import SourceStore

        async with database():
            return await SourceStore.delete(parsed)

    try:
        deleted = asyncio.run(run())
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not deleted:
        typer.echo(f"Source {parsed} not found.", err=True)
        raise typer.Exit(1)
    typer.echo(f"Deleted {parsed}.")


if __name__ == "__main__":
    app()
