import asyncio
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import typer

from .api.error_handling import TableQueryError
from .core.dependencies import DependencyContainer
from .data.models import RemoteSource, Source, StaticSource
from .data.pagination import PaginationOptions, plan, plan_for_result
from .data.parsing import format_for_path, parse_body

app = typer.Typer(
    name="tablequery",
    help="Query, filter and paginate JSON/CSV table sources.",
    add_completion=False,
)


def _parse_filters(pairs: Optional[List[str]]) -> Dict[str, str]:
    filters = {}
    for pair in pairs or []:
        column, sep, value = pair.partition("=")
        if not sep or not column:
            raise typer.BadParameter(f"Filters must look like column=value, got '{pair}'")
        filters[column.strip()] = value
    return filters


def _resolve_source(source: str) -> Source:
    """Treat http(s) URLs as remote sources and anything else as a local file."""
    if source.startswith(("http://", "https://")):
        return RemoteSource(source)
    path = Path(source)
    if not path.is_file():
        raise typer.BadParameter(f"'{source}' is neither an http(s) URL nor a readable file")
    parsed = parse_body(path.read_bytes(), format_for_path(path))
    return StaticSource(parsed.records, parsed.columns)


@app.command()
def query(
    source: str = typer.Argument(..., help="http(s) URL or path to a local .json/.csv file."),
    page: Optional[int] = typer.Option(None, "--page", "-p", help="Page to show (default 1)."),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Records per page (default 10)."),
    filters: Optional[List[str]] = typer.Option(
        None, "--filter", "-f", help="Case-insensitive substring filter, column=value. Repeatable."
    ),
    paginate: bool = typer.Option(True, "--paginate/--no-paginate", help="Cut the result to one page."),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
    retries: int = typer.Option(1, "--retries", min=1, help="Total fetch attempts for remote sources."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log fetch activity."),
):
    """
    Fetch a source, apply column filters and print one page of records.
    """
    container = DependencyContainer(
        max_tries=retries,
        log_level=logging.INFO if verbose else logging.WARNING,
        console_output=verbose,
    )
    try:
        resolved = _resolve_source(source)
        params = {"page": page, "limit": limit, **_parse_filters(filters)}
        binding = container.bind(resolved, paginate=paginate)
        result = asyncio.run(binding.query(params))
    except TableQueryError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, default=str))
        return

    if result.results:
        typer.echo(result.to_dataframe().to_string(index=False))
    else:
        typer.echo("No matching records.")

    if result.paginated:
        typer.echo(
            f"Showing {len(result.results)} of {result.total_results} results "
            f"(page {result.page} of {max(result.total_pages, 1)})"
        )
        pager = plan_for_result(result)
        if len(pager):
            typer.echo(" ".join(_button_label(token) for token in pager))
    else:
        typer.echo(f"{result.total_results} results")


def _button_label(token) -> str:
    return f"[{token.label}]" if token.active else token.label


@app.command()
def pages(
    current: int = typer.Argument(..., help="Current page."),
    total: int = typer.Argument(..., help="Total number of pages."),
    on_each_side: int = typer.Option(1, "--on-each-side", min=0, help="Pages shown around the current page."),
    on_ends: int = typer.Option(1, "--on-ends", min=0, help="Pages shown at each end of the range."),
    ellipsis: bool = typer.Option(True, "--ellipsis/--no-ellipsis"),
    first_last: bool = typer.Option(True, "--first-last/--no-first-last"),
    prev_next: bool = typer.Option(True, "--prev-next/--no-prev-next"),
    as_json: bool = typer.Option(False, "--json", help="Print tokens as JSON."),
):
    """
    Print the pager buttons for a page out of a page count.
    """
    options = PaginationOptions(
        on_each_side=on_each_side,
        on_ends=on_ends,
        ellipsis=ellipsis,
        first_last_buttons=first_last,
        prev_next_buttons=prev_next,
    )
    pager = plan(current, total, options)

    if as_json:
        tokens = [{"kind": t.kind.value, "page": t.page, "active": t.active} for t in pager]
        typer.echo(json.dumps(tokens))
        return

    if not len(pager):
        typer.echo("No pager needed.")
        return
    typer.echo(" ".join(_button_label(token) for token in pager))


def main():
    app()


if __name__ == "__main__":
    main()
