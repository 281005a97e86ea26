import asyncio
import json
import logging
from pathlib import Path
from typing import Any, List, Optional

import typer
from pydantic import ValidationError
from rich import print
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from snipsearch.config import Settings
from snipsearch.core.cache import CacheManager
from snipsearch.core.history import SearchHistory
from snipsearch.core.schemas import Filter, SearchMode, Snippet, SortField, SortOrder, coerce_snippets
from snipsearch.core.search import SearchOrchestrator
from snipsearch.core.storage import SqlKeyValueStore
from snipsearch.db import create_session_factory

logger = logging.getLogger(__name__)

APP_HELP = """
snipsearch: search and rank a snippet collection from the command line.

Snippets are read from a JSON file holding either a list of snippet objects
or an object with a "snippets" list. Each snippet needs at least an id and a
title; language, code, description, tags, created_at, updated_at and
usage_count are used when present.

MODES:
- fuzzy:    weighted partial matching (default)
- exact:    literal substring match
- regex:    Python regular expression
- semantic: fuzzy search over the query plus built-in synonyms

FILTERS:
  Pass --filter field:operator:value, e.g. --filter language:equals:python
  or --filter usage_count:greaterThan:3. Values are parsed as JSON when
  possible, so lists and numbers work: --filter tags:in:'["vue","react"]'.

Completed queries are remembered in the local database
(SNIPSEARCH_DATABASE_URL) and feed `snipsearch suggest`.
"""

app = typer.Typer(name="snipsearch", help=APP_HELP, no_args_is_help=True)
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log search internals."),
):
    """
    Snippet Search: multi-mode snippet search engine.
    """
    settings = Settings()
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _load_snippets(path: Path) -> List[Snippet]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        print(f"[red]Error reading snippets from {path}: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    if isinstance(data, dict):
        data = data.get("snippets", [])
    if not isinstance(data, list):
        print(f"[red]Error: {path} does not contain a list of snippets[/red]")
        raise typer.Exit(code=1)
    try:
        snippets = coerce_snippets(data)
    except ValidationError as e:
        print(f"[red]Error: invalid snippet in {path}: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)
    logger.debug(f"Loaded {len(snippets)} snippets from {path}")
    return snippets


def _parse_filter(text: str, filter_id: int) -> Filter:
    field, sep, rest = text.partition(":")
    operator, _, raw_value = rest.partition(":")
    if not sep or not field or not operator:
        raise typer.BadParameter(f"Filter '{text}' must look like field:operator[:value]")

    value: Any = raw_value
    if raw_value:
        try:
            value = json.loads(raw_value)
        except json.JSONDecodeError:
            value = raw_value
    return Filter(id=filter_id, field=field, operator=operator, value=value)


def _history(settings: Settings) -> SearchHistory:
    settings.ensure_db_dir()
    store = SqlKeyValueStore(create_session_factory(settings.database_url))
    return SearchHistory(store=store, max_size=settings.history_size)


@app.command()
def search(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file with snippets"),
    query: str = typer.Argument("", help="Search query"),
    mode: SearchMode = typer.Option(SearchMode.FUZZY, "--mode", "-m", help="Matching mode"),
    sort: SortField = typer.Option(SortField.RELEVANCE, "--sort", "-s", help="Sort key"),
    order: SortOrder = typer.Option(SortOrder.DESC, "--order", "-o", help="Sort direction"),
    filters: Optional[List[str]] = typer.Option(None, "--filter", "-f", help="field:operator:value clause (repeatable)"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum results"),
    threshold: Optional[float] = typer.Option(None, "--threshold", help="Fuzzy acceptance threshold (0-1)"),
    case_sensitive: bool = typer.Option(False, "--case-sensitive", help="Case-sensitive exact/regex matching"),
    whole_word: bool = typer.Option(False, "--whole-word", help="Exact mode matches whole words only"),
    no_history: bool = typer.Option(False, "--no-history", help="Do not record this query"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Search a snippet file and print ranked results.
    """
    settings = Settings()
    snippets = _load_snippets(file)
    parsed_filters = [_parse_filter(text, i) for i, text in enumerate(filters or [], start=1)]

    config = settings.search_config(
        max_results=limit,
        fuzzy_threshold=threshold,
        enable_history=not no_history,
    )
    history = None if no_history else _history(settings)
    cache = CacheManager(
        max_size=settings.cache_max_size,
        default_ttl=settings.cache_ttl_ms,
        cleanup_interval=settings.cache_cleanup_interval_ms,
    )

    async def run_search():
        async with SearchOrchestrator(snippets, config=config, cache=cache, history=history) as orchestrator:
            orchestrator.set_mode(mode)
            orchestrator.set_sort_by(sort, order)
            orchestrator.update_search_options(case_sensitive=case_sensitive, whole_word=whole_word)
            for clause in parsed_filters:
                orchestrator.add_filter(clause.field, clause.operator, clause.value)
            orchestrator.set_query(query)
            results = await orchestrator.search()
            return results, orchestrator.stats

    results, stats = asyncio.run(run_search())

    if json_output:
        payload = {
            "query": query,
            "mode": mode.value,
            "count": len(results),
            "search_time_ms": stats.search_time if stats else 0,
            "results": [r.model_dump(mode="json") for r in results],
        }
        # Raw JSON, never rich markup
        typer.echo(json.dumps(payload, indent=2))
        return

    if not results:
        print("[yellow]No matches found.[/yellow]")
        return

    table = Table(title=f"{len(results)} result(s) for '{escape(query)}' ({mode.value})")
    table.add_column("Score", justify="right")
    table.add_column("Title", style="bold")
    table.add_column("Language")
    table.add_column("Tags")
    table.add_column("Matched")
    for item in results:
        score_color = "green" if item.search_score > 0.8 else "yellow"
        table.add_row(
            f"[{score_color}]{item.search_score:.2f}[/{score_color}]",
            escape(item.title),
            escape(item.language),
            escape(", ".join(item.tags)),
            ", ".join(item.matched_fields),
        )
    console.print(table)
    if stats:
        console.print(f"[dim]{stats.search_time:.1f} ms[/dim]")


@app.command()
def suggest(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file with snippets"),
    prefix: str = typer.Argument(..., help="Partial query"),
):
    """
    Autocomplete a partial query from history, titles and tags.
    """
    settings = Settings()
    orchestrator = SearchOrchestrator(
        _load_snippets(file),
        config=settings.search_config(),
        history=_history(settings),
    )
    suggestions = orchestrator.get_suggestions(prefix)
    if not suggestions:
        print("[yellow]No suggestions.[/yellow]")
        return
    for suggestion in suggestions:
        print(escape(suggestion))


@app.command()
def history(
    clear: bool = typer.Option(False, "--clear", help="Forget all recorded queries"),
):
    """
    Show (or clear) recently searched queries.
    """
    settings = Settings()
    search_history = _history(settings)

    if clear:
        search_history.clear()
        print("[green]Search history cleared.[/green]")
        return

    queries = search_history.items()
    if not queries:
        print("[yellow]No search history.[/yellow]")
        return
    for index, query in enumerate(queries, start=1):
        print(f"{index:>3}. {escape(query)}")


if __name__ == "__main__":
    app()
