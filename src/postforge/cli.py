"""CLI entry point for the postforge finalization tools."""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from postforge.errors import PostforgeError

console = Console()


@click.group()
@click.version_option(version="0.1.0")
def main() -> None:
    """Finalize, score and publish AI-drafted content."""
    from postforge.config import get_settings

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


# ---------------------------------------------------------------------------
# finalize — create a document from a finished draft
# ---------------------------------------------------------------------------


@main.command()
@click.option("--file", "-f", "file_path", type=click.Path(exists=True), required=True,
              help="Markdown draft; the first line is taken as the title")
@click.option("--slug", "-s", required=True, help="URL slug (must be unique and URL-safe)")
@click.option("--owner", "-o", default=None, help="Owner id (defaults to settings)")
@click.option(
    "--status",
    type=click.Choice(["draft", "published"]),
    default="draft",
    help="Initial status",
)
@click.option("--category", "-c", default="", help="Category label")
@click.option("--description", "-d", default="", help="Meta description")
def finalize(
    file_path: str,
    slug: str,
    owner: str | None,
    status: str,
    category: str,
    description: str,
) -> None:
    """Save a finished draft as a content document."""
    from postforge.config import get_settings
    from postforge.lifecycle.manager import PublicationManager
    from postforge.storage.models import DocumentStatus
    from postforge.storage.repository import DocumentStore

    settings = get_settings()
    manager = PublicationManager(DocumentStore(settings.db_path),
                                 url_prefix=settings.live_url_prefix)

    text = Path(file_path).read_text()
    lines = text.strip().split("\n")
    title = lines[0].lstrip("# ").strip() if lines else slug
    body = "\n".join(lines[1:]).strip()

    document = manager.finalize(
        owner_id=owner or settings.default_owner,
        slug=slug,
        title=title,
        body=body,
        status=DocumentStatus(status),
        meta_description=description,
        category=category,
    )
    console.print(
        Panel(
            f"[bold]{document.title}",
            subtitle=f"{document.id} | {document.status}"
            + (f" | {document.live_url}" if document.live_url else ""),
        )
    )


# ---------------------------------------------------------------------------
# list — show documents
# ---------------------------------------------------------------------------


@main.command(name="list")
@click.option("--owner", "-o", default=None, help="Only this owner's documents")
@click.option("--status", type=click.Choice(["draft", "published"]), default=None)
def list_documents(owner: str | None, status: str | None) -> None:
    """List stored documents."""
    from postforge.config import get_settings
    from postforge.storage.repository import DocumentStore

    settings = get_settings()
    documents = DocumentStore(settings.db_path).list(owner_id=owner, status=status)
    if not documents:
        console.print("[yellow]No documents found.[/yellow]")
        return

    table = Table(title="Documents")
    table.add_column("ID", width=20)
    table.add_column("Title", width=40)
    table.add_column("Status", width=10)
    table.add_column("Score", width=6, justify="right")
    table.add_column("Live URL", width=30)
    for d in documents:
        scores = d.get_scores()
        table.add_row(
            d.id,
            d.title[:40],
            d.status,
            str(scores.overall) if scores else "-",
            d.live_url or "",
        )
    console.print(table)


# ---------------------------------------------------------------------------
# score — live scores for an edited version
# ---------------------------------------------------------------------------


@main.command()
@click.argument("document_id")
@click.option("--edited", "-e", type=click.Path(exists=True), default=None,
              help="Edited markdown to rescore against the stored baseline")
@click.option("--save", is_flag=True, help="Store the edited text as the document body")
@click.option("--show-flags", is_flag=True, help="Print the text with flagged passages marked")
def score(document_id: str, edited: str | None, save: bool, show_flags: bool) -> None:
    """Show live quality scores without calling the grader."""
    from postforge.config import get_settings
    from postforge.scoring.session import ScoringSession
    from postforge.storage.repository import DocumentStore

    settings = get_settings()
    store = DocumentStore(settings.db_path)

    try:
        with ScoringSession.open(store, document_id) as session:
            if edited:
                session.edit(Path(edited).read_text())
            _print_scores(session)
            if show_flags:
                console.print(Markdown(session.highlighted))
            if save:
                session.save()
                console.print("[green]Edited text saved.[/green]")
    except PostforgeError as e:
        _fail(e)


# ---------------------------------------------------------------------------
# grade — replace the baseline with a fresh external grade
# ---------------------------------------------------------------------------


@main.command()
@click.argument("document_id")
@click.option("--no-originality", is_flag=True, help="Skip the originality check")
def grade(document_id: str, no_originality: bool) -> None:
    """Grade a document with Claude and store the new baseline."""
    from postforge.config import get_settings
    from postforge.errors import UpstreamGradingError
    from postforge.llm.client import ClaudeClient
    from postforge.scoring.grader import QualityGrader
    from postforge.scoring.session import ScoringSession, grade_document
    from postforge.storage.repository import DocumentStore

    settings = get_settings()
    _check_api_key(settings)
    store = DocumentStore(settings.db_path)
    client = ClaudeClient(settings)
    grader = QualityGrader(client)

    try:
        with console.status("[bold green]Grading..."):
            grade_document(store, grader, document_id,
                           include_originality=not no_originality)
    except UpstreamGradingError as e:
        console.print(f"[bold red]Grading failed:[/bold red] {e}")
        console.print(
            "[dim]Previous scores were kept. Run the same command again to retry.[/dim]"
        )
        raise SystemExit(1)
    except PostforgeError as e:
        _fail(e)

    with ScoringSession.open(store, document_id) as session:
        _print_scores(session)
    console.print(f"\n[dim]Tokens: {client.usage_summary}[/dim]")


# ---------------------------------------------------------------------------
# schema — edit the JSON-LD graph
# ---------------------------------------------------------------------------


@main.command()
@click.argument("document_id")
@click.option("--article", "-a", "article_file", type=click.Path(exists=True), default=None,
              help="JSON file with the Article/BlogPosting node (empty file clears it)")
@click.option("--org", "-g", "org_file", type=click.Path(exists=True), default=None,
              help="JSON file with the site-level node(s) (empty file clears them)")
@click.option("--show", type=click.Choice(["page", "site", "all"]), default=None,
              help="Print the resulting JSON-LD")
def schema(
    document_id: str,
    article_file: str | None,
    org_file: str | None,
    show: str | None,
) -> None:
    """Replace the article and/or site halves of a document's structured data."""
    import json

    from postforge.config import get_settings
    from postforge.storage.repository import DocumentStore
    from postforge.structured_data.composer import SchemaComposer

    settings = get_settings()
    composer = SchemaComposer(DocumentStore(settings.db_path))

    article_json = Path(article_file).read_text() if article_file else None
    org_json = Path(org_file).read_text() if org_file else None

    try:
        graph = composer.patch(document_id, article_json=article_json, org_json=org_json)
        if show == "page":
            console.print_json(composer.page_schema(document_id))
        elif show == "site":
            console.print_json(composer.site_schema(document_id))
        elif show == "all":
            console.print_json(json.dumps(graph))
    except PostforgeError as e:
        _fail(e)

    if article_json is not None or org_json is not None:
        console.print(f"[green]Structured data updated ({len(graph['@graph'])} nodes).[/green]")


# ---------------------------------------------------------------------------
# publish — single or batch publication
# ---------------------------------------------------------------------------


@main.command()
@click.argument("document_ids", nargs=-1)
@click.option("--all-drafts", is_flag=True, help="Publish every draft of the owner")
@click.option("--owner", "-o", default=None, help="Owner for --all-drafts")
def publish(document_ids: tuple[str, ...], all_drafts: bool, owner: str | None) -> None:
    """Publish documents and assign their live URLs."""
    from postforge.config import get_settings
    from postforge.lifecycle.manager import PublicationManager
    from postforge.storage.repository import DocumentStore

    settings = get_settings()
    store = DocumentStore(settings.db_path)
    manager = PublicationManager(store, url_prefix=settings.live_url_prefix)

    if all_drafts:
        result = manager.publish_all_drafts(owner or settings.default_owner)
    elif document_ids:
        documents = []
        for document_id in document_ids:
            try:
                documents.append(store.get(document_id))
            except PostforgeError as e:
                console.print(f"  [red]Skipping:[/red] {e}")
        result = manager.publish_batch(documents)
    else:
        console.print("[yellow]Nothing to publish. Pass document ids or --all-drafts.[/yellow]")
        return

    if not result.documents:
        console.print("[yellow]No drafts to publish.[/yellow]")
        return

    console.rule("[bold] Publish complete [/bold]")
    for d in result.updated:
        console.print(f"  [green]Published:[/green] {d.title[:60]} -> {d.live_url}")
    if result.failures:
        console.print(f"  [red]Failed:[/red] {len(result.failures)}")
        for document_id, error in result.failures.items():
            console.print(f"    - {document_id}: {error}")
        raise SystemExit(1)


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------


@main.command()
@click.argument("document_id")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def delete(document_id: str, yes: bool) -> None:
    """Delete a document, draft or published."""
    from postforge.config import get_settings
    from postforge.lifecycle.manager import PublicationManager
    from postforge.storage.repository import DocumentStore

    settings = get_settings()
    manager = PublicationManager(DocumentStore(settings.db_path))

    if not yes and not Confirm.ask(f"Delete {document_id}?", default=False):
        return
    try:
        manager.delete(document_id)
    except PostforgeError as e:
        _fail(e)
    console.print(f"[green]Deleted {document_id}.[/green]")


# ---------------------------------------------------------------------------
# cta — remembered call-to-action text
# ---------------------------------------------------------------------------


@main.command()
@click.option("--owner", "-o", default=None, help="Owner id (defaults to settings)")
@click.option("--headline", default=None)
@click.option("--copy", "copy_text", default=None)
@click.option("--button", default=None)
@click.option("--link", default=None)
def cta(
    owner: str | None,
    headline: str | None,
    copy_text: str | None,
    button: str | None,
    link: str | None,
) -> None:
    """Show or update the call-to-action text reused for new posts."""
    from postforge.config import get_settings
    from postforge.lifecycle.manager import PublicationManager
    from postforge.storage.repository import DocumentStore

    settings = get_settings()
    manager = PublicationManager(DocumentStore(settings.db_path))
    owner_id = owner or settings.default_owner

    prefs = manager.load_cta(owner_id)
    if any(v is not None for v in (headline, copy_text, button, link)):
        prefs = manager.remember_cta(
            owner_id,
            headline=prefs.cta_headline if headline is None else headline,
            copy=prefs.cta_copy if copy_text is None else copy_text,
            button_text=prefs.cta_button_text if button is None else button,
            link=prefs.cta_link if link is None else link,
        )
        console.print("[green]Call-to-action saved.[/green]")

    console.print(f"  [bold]Headline:[/bold] {prefs.cta_headline}")
    console.print(f"  [bold]Copy:[/bold] {prefs.cta_copy}")
    console.print(f"  [bold]Button:[/bold] {prefs.cta_button_text}")
    console.print(f"  [bold]Link:[/bold] {prefs.cta_link}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _print_scores(session: object) -> None:
    """Render baseline vs. live scores and tips for a scoring session."""
    live = session.scores
    base = session.baseline

    table = Table(title="Quality Scores")
    table.add_column("Metric", width=18)
    table.add_column("Baseline", width=9, justify="right")
    table.add_column("Live", width=6, justify="right")
    table.add_row("Overall", str(base.overall), str(live.overall))
    table.add_row("Structure", str(base.content_structure), str(live.content_structure))
    table.add_row("Readability", str(base.readability), str(live.readability))
    console.print(table)

    if live.target_keywords:
        console.print(f"  Keywords: {', '.join(live.target_keywords)}")
    if session.report is not None:
        console.print(f"  Originality: {session.report.originality_score:.0f}%")
    if session.is_stale:
        console.print(
            f"  [yellow]{session.edits_since_baseline} edit(s) since last grade; "
            "live scores are estimates. Run 'postforge grade' to refresh.[/yellow]"
        )
    console.print()
    heading = "Actionable insights" if live.actionable_insights else "Tips"
    console.print(f"[bold]{heading}[/bold]")
    for tip in session.insights:
        console.print(f"  - {tip}")


def _check_api_key(settings: object) -> None:
    """Exit with a helpful message if the API key is not set."""
    if not getattr(settings, "anthropic_api_key", ""):
        console.print(
            "[bold red]Error:[/bold red] ANTHROPIC_API_KEY not set.\n"
            "Add it to your environment or .env file."
        )
        raise SystemExit(1)


def _fail(error: PostforgeError) -> None:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise SystemExit(1)
