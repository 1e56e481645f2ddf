from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

import requests

from .extract import extract_products, extract_products_from_links
from .fetch import build_session, fetch_with_retry
from .models import Product
from .pipeline import Acquirer
from .stop_conditions import PageLoopState, StopReason, after_page, before_page

logger = logging.getLogger(__name__)

# fetcher(url, max_attempts, session=...) -> body or None
Fetcher = Callable[..., "str | None"]


def with_page_number(url: str, page_number: int, param: str = "page") -> str:
    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    query[param] = [str(page_number)]
    updated_query = urlencode(query, doseq=True)
    return urlunparse(parsed._replace(query=updated_query))


class PagedAcquirer(Acquirer):
    def __init__(
        self,
        url: str,
        *,
        max_items: int,
        max_pages: int,
        max_attempts: int = 3,
        page_delay_seconds: float = 1.5,
        page_param: str = "page",
        fetcher: Fetcher | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.url = url
        self.max_items = max_items
        self.max_pages = max_pages
        self.max_attempts = max_attempts
        self.page_delay_seconds = page_delay_seconds
        self.page_param = page_param
        self.fetcher = fetcher or fetch_with_retry
        self.sleep = sleep
        self.session: requests.Session | None = None
        self.state = PageLoopState()

    @property
    def stop_reason(self) -> StopReason:
        return self.state.reason

    @stop_reason.setter
    def stop_reason(self, reason: StopReason) -> None:
        self.state = PageLoopState(page=self.state.page, reason=reason)

    def close(self) -> None:
        if self.session is not None:
            self.session.close()
            self.session = None

    async def next_batch(self, size: int) -> list[Product] | None:
        self.state = before_page(self.state, size=size, max_items=self.max_items, max_pages=self.max_pages)
        if self.state.reason is StopReason.CAPPED:
            logger.info("Reached MAX_ITEMS limit (%s). Stopping pagination.", self.max_items)
            return None
        if self.state.reason is StopReason.PAGE_LIMIT:
            logger.info("Reached MAX_PAGES limit (%s). Stopping pagination.", self.max_pages)
            return None

        page_number = self.state.next_page
        if page_number > 1 and self.page_delay_seconds > 0:
            await self.sleep(self.page_delay_seconds)

        if self.session is None:
            self.session = build_session()
        page_url = with_page_number(self.url, page_number, self.page_param)
        logger.info("Fetching page %s/%s: %s", page_number, self.max_pages, page_url)
        html = await asyncio.to_thread(self.fetcher, page_url, self.max_attempts, session=self.session)

        products: list[Product] = []
        if html is not None:
            products = extract_products(html, page_url)
            if not products:
                logger.info("No product tiles on page %s, trying link-based extraction.", page_number)
                products = extract_products_from_links(html, page_url)

        self.state = after_page(self.state, content_found=html is not None, product_count=len(products))
        if self.state.reason is StopReason.FETCH_FAILED:
            logger.error("Failed to fetch page %s. Stopping pagination.", page_number)
            return None
        if self.state.reason is StopReason.EMPTY_PAGE:
            logger.info("Page %s returned no products. Stopping pagination.", page_number)
            return None
        return products
