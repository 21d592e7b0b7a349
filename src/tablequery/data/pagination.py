"""Pager button planning.

Given the current page and the page count, ``plan`` produces the ordered
tokens a pager renders:

    First, Prev, <lead pages>, ..., <window>, ..., <trail pages>, Next, Last

The window holds ``on_each_side`` pages around the current page. The lead
and trail hold up to ``on_ends`` pages at each end of the range. A hidden
run of exactly one page is shown as that page's number; a longer run is
collapsed into a single ellipsis when ellipses are enabled.
"""

import math
from dataclasses import dataclass, fields
from typing import Any, List, Mapping, Optional

from .models import PagePlan, PageToken, QueryResult, TokenKind

_CAMEL_CASE_KEYS = {
    "onEachSide": "on_each_side",
    "onEnds": "on_ends",
    "firstLastButtons": "first_last_buttons",
    "prevNextButtons": "prev_next_buttons",
}


@dataclass(frozen=True)
class PaginationOptions:
    """Display preferences for the pager."""

    on_each_side: int = 1
    on_ends: int = 1
    ellipsis: bool = True
    first_last_buttons: bool = True
    prev_next_buttons: bool = True

    def __post_init__(self):
        for name in ("on_each_side", "on_ends"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {value!r}")

    @classmethod
    def from_mapping(cls, options: Optional[Mapping[str, Any]] = None) -> "PaginationOptions":
        """Build options from snake_case or camelCase keys.

        Missing or ``None`` values fall back to the defaults; an explicit
        ``0`` or ``False`` is kept.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in (options or {}).items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown pagination option: {key}")
            if value is not None:
                kwargs[name] = value
        return cls(**kwargs)


def total_pages_for(total_results: int, limit: int) -> int:
    """Number of pages needed to show ``total_results`` at ``limit`` per page."""
    if limit < 1:
        raise ValueError(f"limit must be a positive integer, got {limit!r}")
    return math.ceil(max(total_results, 0) / limit)


def _page_tokens(first: int, last: int, current: int) -> List[PageToken]:
    return [PageToken(TokenKind.PAGE, page, page == current) for page in range(first, last + 1)]


def _gap_tokens(first: int, last: int, ellipsis: bool) -> List[PageToken]:
    """Tokens standing in for the hidden pages ``first..last``."""
    hidden = last - first + 1
    if hidden <= 0:
        return []
    if hidden == 1:
        return [PageToken(TokenKind.PAGE, first)]
    if ellipsis:
        return [PageToken(TokenKind.ELLIPSIS)]
    return []


def plan(current_page: int, total_pages: int, options: Optional[PaginationOptions] = None) -> PagePlan:
    """Plan the pager tokens for ``current_page`` out of ``total_pages``.

    A single page (or none) needs no pager and yields an empty plan. The
    current page is clamped into ``1..total_pages``.
    """
    options = options or PaginationOptions()
    if total_pages <= 1:
        return PagePlan()

    current = min(max(current_page, 1), total_pages)
    start = max(1, current - options.on_each_side)
    end = min(total_pages, current + options.on_each_side)
    lead_end = min(options.on_ends, start - 1)
    trail_start = max(total_pages - options.on_ends + 1, end + 1)

    tokens: List[PageToken] = []
    if current > 1:
        if options.first_last_buttons:
            tokens.append(PageToken(TokenKind.FIRST, 1))
        if options.prev_next_buttons:
            tokens.append(PageToken(TokenKind.PREV, current - 1))

    tokens += _page_tokens(1, lead_end, current)
    tokens += _gap_tokens(lead_end + 1, start - 1, options.ellipsis)
    tokens += _page_tokens(start, end, current)
    tokens += _gap_tokens(end + 1, trail_start - 1, options.ellipsis)
    tokens += _page_tokens(trail_start, total_pages, current)

    if current < total_pages:
        if options.prev_next_buttons:
            tokens.append(PageToken(TokenKind.NEXT, current + 1))
        if options.first_last_buttons:
            tokens.append(PageToken(TokenKind.LAST, total_pages))

    return PagePlan(tuple(tokens))


def plan_for_result(result: QueryResult, options: Optional[PaginationOptions] = None) -> PagePlan:
    """Plan the pager for the page a query result was cut from."""
    return plan(result.page, result.total_pages, options)
