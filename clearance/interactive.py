from __future__ import annotations

import logging

from playwright.async_api import Error as PlaywrightError

from .extract import PRODUCT_TILE_SELECTOR, extract_products
from .models import BASE_URL, Product
from .pipeline import Acquirer
from .stop_conditions import STAGNATION_LIMIT, ClickLoopState, StopReason, after_click, before_click

logger = logging.getLogger(__name__)

SHOW_MORE_SELECTOR = (
    'button:has-text("Show more"), button:has-text("Show More"), '
    'button:has-text("Voir plus"), button:has-text("Voir Plus"), '
    'a:has-text("Show more"), a:has-text("Show More"), '
    'a:has-text("Voir plus"), a:has-text("Voir Plus")'
)
COOKIE_BUTTON_SELECTOR = (
    'button:has-text("Accept"), button:has-text("Accepter"), '
    "button:has-text(\"J'accepte\"), a:has-text(\"Accept\"), a:has-text(\"Accepter\")"
)

FIRST_TILE_TIMEOUT_MS = 20000
CLICK_TIMEOUT_MS = 10000
GROWTH_TIMEOUT_MS = 10000
POST_CLICK_DELAY_MS = 300
SETTLE_DELAY_MS = 1000

_GROWTH_SCRIPT = "([previous, selector]) => document.querySelectorAll(selector).length > previous"

# Cloudflare interstitial text; matched against the lowercased title and body preview.
RATE_LIMIT_MARKERS = ("error 1015", "rate limited")
CHALLENGE_MARKERS = ("just a moment", "security verification", "cloudflare")


class RateLimitError(RuntimeError):
    pass


class BotChallengeError(RuntimeError):
    pass


async def check_page_access(page, response, headless: bool) -> None:
    status = response.status if response else None
    title = (await page.title()).strip().lower()
    body_preview = (await page.locator("body").inner_text())[:1000].lower()
    landing_text = f"{title}\n{body_preview}"

    if status == 429 or any(marker in landing_text for marker in RATE_LIMIT_MARKERS):
        raise RateLimitError(f"Rate limit detected while loading {page.url} (HTTP {status}).")

    if status == 403 or any(marker in landing_text for marker in CHALLENGE_MARKERS):
        if headless:
            raise BotChallengeError(
                "Catalog page returned a bot challenge. Re-run with --headed to complete verification manually."
            )
        logger.warning("Bot challenge detected on %s; continuing in headed mode.", page.url)


async def accept_cookies_if_present(page) -> None:
    buttons = page.locator(COOKIE_BUTTON_SELECTOR)
    if await buttons.count() == 0:
        return
    try:
        await buttons.first.click(timeout=5000)
        await page.wait_for_timeout(500)
        logger.info("Accepted cookie banner")
    except PlaywrightError as exc:
        logger.warning("Cookie banner click failed or not present: %s", exc)


async def open_catalog(page, url: str, headless: bool = True) -> None:
    response = await page.goto(url, wait_until="networkidle")
    await check_page_access(page, response, headless)
    await accept_cookies_if_present(page)


async def find_show_more_button(page):
    locator = page.locator(SHOW_MORE_SELECTOR)
    count = await locator.count()
    for index in range(count):
        button = locator.nth(index)
        try:
            if await button.is_visible():
                return button
        except PlaywrightError:
            continue
    return None


async def click_and_wait_for_growth(
    page,
    button,
    previous_count: int,
    *,
    growth_timeout_ms: int = GROWTH_TIMEOUT_MS,
    settle_delay_ms: int = SETTLE_DELAY_MS,
) -> bool:
    try:
        await button.click(timeout=CLICK_TIMEOUT_MS)
        await page.wait_for_timeout(POST_CLICK_DELAY_MS)
    except PlaywrightError as exc:
        logger.warning("Clicking \"Show more\" failed: %s", exc)
        return False

    try:
        await page.wait_for_function(
            _GROWTH_SCRIPT,
            arg=[previous_count, PRODUCT_TILE_SELECTOR],
            timeout=growth_timeout_ms,
        )
        return True
    except PlaywrightError:
        # The grid can lag behind the DOM check; give it one more beat.
        await page.wait_for_timeout(settle_delay_ms)
        return False


class ShowMoreAcquirer(Acquirer):
    def __init__(
        self,
        page,
        *,
        max_items: int,
        max_clicks: int,
        base_url: str = BASE_URL,
        growth_timeout_ms: int = GROWTH_TIMEOUT_MS,
        settle_delay_ms: int = SETTLE_DELAY_MS,
        first_tile_timeout_ms: int = FIRST_TILE_TIMEOUT_MS,
    ) -> None:
        self.page = page
        self.max_items = max_items
        self.max_clicks = max_clicks
        self.base_url = base_url
        self.growth_timeout_ms = growth_timeout_ms
        self.settle_delay_ms = settle_delay_ms
        self.first_tile_timeout_ms = first_tile_timeout_ms
        self.state = ClickLoopState()
        self._started = False
        self._after_click = False

    @property
    def stop_reason(self) -> StopReason:
        return self.state.reason

    @stop_reason.setter
    def stop_reason(self, reason: StopReason) -> None:
        self.state = ClickLoopState(clicks=self.state.clicks, stagnant=self.state.stagnant, reason=reason)

    async def _extract(self) -> list[Product]:
        html = await self.page.content()
        return extract_products(html, self.base_url)

    async def next_batch(self, size: int) -> list[Product] | None:
        if not self._started:
            # A timeout here means the catalog never rendered; let it propagate.
            await self.page.wait_for_selector(PRODUCT_TILE_SELECTOR, timeout=self.first_tile_timeout_ms)
            self._started = True
            self._after_click = False
            return await self._extract()

        button = await find_show_more_button(self.page)
        self.state = before_click(
            self.state,
            size=size,
            max_items=self.max_items,
            has_control=button is not None,
            max_clicks=self.max_clicks,
        )
        if self.state.reason is StopReason.CAPPED:
            logger.info("Reached MAX_ITEMS limit (%s). Stopping pagination.", self.max_items)
            return None
        if self.state.reason is StopReason.NO_MORE_CONTROL:
            logger.info('No more "Show more" button found. Stopping pagination.')
            return None
        if self.state.reason is StopReason.CLICK_LIMIT:
            logger.info("Reached MAX_CLICKS limit (%s). Stopping pagination.", self.max_clicks)
            return None

        logger.info(
            'Clicking "Show more" button (click %s/%s). Current products: %s.',
            self.state.clicks + 1,
            self.max_clicks,
            size,
        )
        tile_count = await self.page.locator(PRODUCT_TILE_SELECTOR).count()
        await click_and_wait_for_growth(
            self.page,
            button,
            tile_count,
            growth_timeout_ms=self.growth_timeout_ms,
            settle_delay_ms=self.settle_delay_ms,
        )
        self._after_click = True
        return await self._extract()

    def record_batch(self, added: int, size_before: int, size_after: int) -> None:
        if not self._after_click:
            return
        self.state = after_click(self.state, added=added, size_before=size_before, size_after=size_after)
        if self.state.stagnant:
            logger.info(
                "No new products after click. Stagnant attempts: %s/%s.", self.state.stagnant, STAGNATION_LIMIT
            )
        if self.state.reason is StopReason.STAGNANT:
            logger.info("Stopping pagination after %s attempts without growth.", STAGNATION_LIMIT)
