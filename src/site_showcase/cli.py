"""Command-line interface for the Site Showcase service.

Entry point: `showcase` command (defined in pyproject.toml).
"""

import json
import logging

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from site_showcase.config import Config

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _site_service(config: Config):
    """Build a SiteService wired to a background embedding scheduler."""
    from site_showcase.catalog.service import SiteService
    from site_showcase.catalog.store import CatalogStore
    from site_showcase.embeddings.embed import OllamaEmbedder
    from site_showcase.embeddings.sync import EmbeddingScheduler, SiteEmbedder
    from site_showcase.embeddings.vector_index import VectorIndex

    store = CatalogStore(config)
    index = VectorIndex(config)
    scheduler = EmbeddingScheduler(
        SiteEmbedder(OllamaEmbedder(config), index, store),
        max_workers=config.embedding_workers,
    )
    return SiteService(store, scheduler), scheduler, index


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Site Showcase catalog and search."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config"] = Config()


@main.command()
@click.option("--vector/--no-vector", default=True, help="Also create the Neo4j vector index.")
@click.pass_context
def init(ctx: click.Context, vector: bool) -> None:
    """Create the catalog tables and the vector index.

    Idempotent, safe to run repeatedly.
    """
    from site_showcase.catalog.store import CatalogStore
    from site_showcase.embeddings.vector_index import VectorIndex

    config = ctx.obj["config"]

    CatalogStore(config).init_schema()
    console.print(f"[green]Catalog ready:[/green] {config.catalog_db_path}")

    if vector:
        index = VectorIndex(config)
        try:
            created = index.ensure_index()
        finally:
            index.close()
        state = "created" if created else "already exists"
        console.print(f"[green]Vector index {config.vector_index_name}:[/green] {state}")


@main.command()
@click.option("--name", required=True, help="Site name.")
@click.option("--url", required=True, help="Site URL.")
@click.option("--category", required=True, help="Category id (e.g. saas, portfolio).")
@click.option("--short-description", default="", help="One-line tagline.")
@click.option("--description", default="", help="Long description.")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable).")
@click.pass_context
def submit(
    ctx: click.Context,
    name: str,
    url: str,
    category: str,
    short_description: str,
    description: str,
    tags: tuple[str, ...],
) -> None:
    """Submit a site for review (status: pending)."""
    from site_showcase.catalog.store import CatalogError

    config = ctx.obj["config"]
    service, scheduler, index = _site_service(config)
    try:
        entry = service.submit(
            {
                "name": name,
                "url": url,
                "category": category,
                "short_description": short_description,
                "description": description,
                "tags": list(tags),
            }
        )
    except CatalogError as e:
        console.print(f"[red]Error: {e}[/red]")
        return
    finally:
        # Let the background embedding finish before the process exits.
        scheduler.shutdown(wait=True)
        index.close()

    console.print(f"[green]Submitted for review:[/green] {entry.id}")


def _moderate(ctx: click.Context, site_id: str, action: str) -> None:
    from site_showcase.catalog.store import SiteNotFoundError

    service, scheduler, index = _site_service(ctx.obj["config"])
    try:
        getattr(service, action)(site_id)
    except SiteNotFoundError:
        console.print(f"[red]Site not found: {site_id}[/red]")
        return
    finally:
        scheduler.shutdown(wait=True)
        index.close()
    console.print(f"[green]{action}:[/green] {site_id}")


@main.command()
@click.argument("site_id")
@click.pass_context
def approve(ctx: click.Context, site_id: str) -> None:
    """Approve a pending site."""
    _moderate(ctx, site_id, "approve")


@main.command()
@click.argument("site_id")
@click.pass_context
def reject(ctx: click.Context, site_id: str) -> None:
    """Reject a pending site."""
    _moderate(ctx, site_id, "reject")


@main.command()
@click.argument("site_id")
@click.pass_context
def delete(ctx: click.Context, site_id: str) -> None:
    """Delete a site and its embedding."""
    _moderate(ctx, site_id, "delete")


@main.command()
@click.pass_context
def pending(ctx: click.Context) -> None:
    """List the moderation queue."""
    from site_showcase.catalog.service import SiteService
    from site_showcase.catalog.store import CatalogStore

    entries = SiteService(CatalogStore(ctx.obj["config"])).pending()
    if not entries:
        console.print("[dim]No pending sites.[/dim]")
        return

    table = Table(title=f"Pending sites ({len(entries)})")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("URL")
    table.add_column("Category")
    for e in entries:
        table.add_row(e.id, e.name, e.url, e.category)
    console.print(table)


@main.command()
@click.option(
    "--status",
    "statuses",
    type=click.Choice(["approved", "pending", "rejected"]),
    multiple=True,
    default=("approved",),
    help="Which sites to embed (default: approved).",
)
@click.option("--batch-size", type=int, default=None, help="Texts per embed() call.")
@click.pass_context
def backfill(ctx: click.Context, statuses: tuple[str, ...], batch_size: int | None) -> None:
    """Generate embeddings for existing sites.

    Re-embeds every matching site and overwrites its vector. Safe to
    run repeatedly.
    """
    from site_showcase.catalog.models import ModerationStatus
    from site_showcase.catalog.store import CatalogStore
    from site_showcase.embeddings.embed import OllamaEmbedder
    from site_showcase.embeddings.sync import SiteEmbedder
    from site_showcase.embeddings.vector_index import VectorIndex

    config = ctx.obj["config"]
    index = VectorIndex(config)
    embedder = SiteEmbedder(OllamaEmbedder(config), index, CatalogStore(config))

    console.print(f"[cyan]Backfilling embeddings for: {', '.join(statuses)}[/cyan]")
    try:
        stats = embedder.backfill(
            statuses=tuple(ModerationStatus(s) for s in statuses),
            batch_size=batch_size or config.backfill_batch_size,
        )
    finally:
        index.close()

    console.print("\n[green]Backfill complete:[/green]")
    console.print(f"  Total:    {stats['total']}")
    console.print(f"  Embedded: {stats['embedded']}")
    console.print(f"  Failed:   {stats['failed']}")

    if stats["errors"]:
        console.print("\n[yellow]Failed sites:[/yellow]")
        for err in stats["errors"][:20]:
            console.print(f"  - {err['id']} ({err['name']}): {err['error']}")
        if len(stats["errors"]) > 20:
            console.print(f"  ... and {len(stats['errors']) - 20} more")


def _print_results(sites: list[dict], title: str) -> None:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Source")
    table.add_column("Score", justify="right")
    table.add_column("URL")
    for i, site in enumerate(sites, 1):
        score = f"{site['score']:.3f}" if "score" in site else "-"
        table.add_row(str(i), site["name"], site["source"], score, site["url"])
    console.print(table)


@main.command()
@click.argument("query")
@click.option("--limit", "-n", type=int, default=None, help="Maximum results after merging.")
@click.option("--isolate", is_flag=True, help="Degrade to one path if the other fails.")
@click.option("--json", "as_json", is_flag=True, help="Print the raw response body.")
@click.pass_context
def search(ctx: click.Context, query: str, limit: int | None, isolate: bool, as_json: bool) -> None:
    """Hybrid search over approved sites."""
    from site_showcase.api.handlers import handle_search
    from site_showcase.search.hybrid_search import HybridSearcher

    config = ctx.obj["config"]
    if isolate:
        config.isolate_failures = True

    searcher = HybridSearcher(config)
    try:
        params = {"q": query, "limit": limit}
        status, body = handle_search(params, searcher)
    finally:
        searcher.close()

    if as_json:
        click.echo(json.dumps(body, indent=2))
    elif status != 200:
        console.print(f"[red]{body['error']}: {body.get('details', '')}[/red]")
    elif not body["sites"]:
        console.print("[yellow]No results.[/yellow]")
    else:
        _print_results(body["sites"], f"Results for {query!r} ({body['count']})")

    if status != 200:
        ctx.exit(1)


@main.command()
@click.argument("site_id")
@click.option("--limit", "-n", type=int, default=None, help="Number of similar sites.")
@click.option("--json", "as_json", is_flag=True, help="Print the raw response body.")
@click.pass_context
def similar(ctx: click.Context, site_id: str, limit: int | None, as_json: bool) -> None:
    """Find sites similar to SITE_ID."""
    from site_showcase.api.handlers import handle_similar
    from site_showcase.search.hybrid_search import HybridSearcher

    searcher = HybridSearcher(ctx.obj["config"])
    try:
        status, body = handle_similar(site_id, searcher, limit)
    finally:
        searcher.close()

    if as_json:
        click.echo(json.dumps(body, indent=2))
    elif status != 200:
        console.print(f"[red]{body['error']}: {body.get('details', '')}[/red]")
    elif not body["sites"]:
        console.print("[yellow]No similar sites.[/yellow]")
    else:
        _print_results(body["sites"], f"Similar to {site_id}")

    if status != 200:
        ctx.exit(1)


if __name__ == "__main__":
    main()
