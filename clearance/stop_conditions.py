from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

STAGNATION_LIMIT = 2


class StopReason(str, Enum):
    RUNNING = "RUNNING"
    CAPPED = "CAPPED"
    # show-more variant
    NO_MORE_CONTROL = "NO_MORE_CONTROL"
    CLICK_LIMIT = "CLICK_LIMIT"
    STAGNANT = "STAGNANT"
    # paged variant
    PAGE_LIMIT = "PAGE_LIMIT"
    EMPTY_PAGE = "EMPTY_PAGE"
    FETCH_FAILED = "FETCH_FAILED"

    @property
    def terminal(self) -> bool:
        return self is not StopReason.RUNNING


@dataclass(frozen=True)
class ClickLoopState:
    clicks: int = 0
    stagnant: int = 0
    reason: StopReason = StopReason.RUNNING


def before_click(
    state: ClickLoopState,
    *,
    size: int,
    max_items: int,
    has_control: bool,
    max_clicks: int,
) -> ClickLoopState:
    if size >= max_items:
        return replace(state, reason=StopReason.CAPPED)
    if not has_control:
        return replace(state, reason=StopReason.NO_MORE_CONTROL)
    if state.clicks >= max_clicks:
        return replace(state, reason=StopReason.CLICK_LIMIT)
    return state


def after_click(
    state: ClickLoopState,
    *,
    added: int,
    size_before: int,
    size_after: int,
    stagnation_limit: int = STAGNATION_LIMIT,
) -> ClickLoopState:
    clicks = state.clicks + 1
    if added == 0 and size_after == size_before:
        stagnant = state.stagnant + 1
        reason = StopReason.STAGNANT if stagnant >= stagnation_limit else StopReason.RUNNING
        return ClickLoopState(clicks=clicks, stagnant=stagnant, reason=reason)
    return ClickLoopState(clicks=clicks, stagnant=0, reason=StopReason.RUNNING)


@dataclass(frozen=True)
class PageLoopState:
    page: int = 0
    reason: StopReason = StopReason.RUNNING

    @property
    def next_page(self) -> int:
        return self.page + 1


def before_page(
    state: PageLoopState,
    *,
    size: int,
    max_items: int,
    max_pages: int,
) -> PageLoopState:
    if size >= max_items:
        return replace(state, reason=StopReason.CAPPED)
    if state.page >= max_pages:
        return replace(state, reason=StopReason.PAGE_LIMIT)
    return state


def after_page(
    state: PageLoopState,
    *,
    content_found: bool,
    product_count: int,
) -> PageLoopState:
    page = state.next_page
    if not content_found:
        return PageLoopState(page=page, reason=StopReason.FETCH_FAILED)
    if product_count == 0:
        return PageLoopState(page=page, reason=StopReason.EMPTY_PAGE)
    return PageLoopState(page=page, reason=StopReason.RUNNING)
