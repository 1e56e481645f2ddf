from __future__ import annotations

from playwright.async_api import Error as PlaywrightError

from clearance.extract import PRODUCT_TILE_SELECTOR
from clearance.interactive import SHOW_MORE_SELECTOR


def tile_html(slug: str, name: str | None = None, price: str = "$80.00", was: str | None = "$100.00") -> str:
    name_html = f'<a class="pdp-link" href="/en-CA/clearance/{slug}.html">{name or slug}</a>'
    was_html = f'<span class="product-price__was">{was}</span>' if was else ""
    return (
        '<div class="product-tile">'
        f'<a href="/en-CA/clearance/{slug}.html"><img data-src="/img/{slug}.jpg" alt="{slug}"></a>'
        '<div class="product-brand">Brand</div>'
        f'<div class="product-name">{name_html}</div>'
        f'<span class="product-price__value">{price}</span>{was_html}'
        "</div>"
    )


def listing_html(slugs: list[str]) -> str:
    tiles = "".join(tile_html(slug) for slug in slugs)
    return f"<html><body><main class='product-grid'>{tiles}</main></body></html>"


def link_for(slug: str) -> str:
    return f"https://www.sportinglife.ca/en-CA/clearance/{slug}.html"


class FakeLocator:
    def __init__(self, page: "FakeShowMorePage", selector: str) -> None:
        self.page = page
        self.selector = selector

    async def count(self) -> int:
        if self.selector == SHOW_MORE_SELECTOR:
            return 1 if self.page.button_available() else 0
        if self.selector == PRODUCT_TILE_SELECTOR:
            return len(self.page.visible_slugs())
        return 0

    def nth(self, index: int) -> "FakeLocator":
        return self

    @property
    def first(self) -> "FakeLocator":
        return self

    async def is_visible(self) -> bool:
        return self.page.button_visible

    async def click(self, timeout: int | None = None) -> None:
        if self.page.click_error:
            raise PlaywrightError("Timeout 10000ms exceeded while clicking")
        self.page.clicks += 1
        self.page.revealed = min(self.page.revealed + 1, len(self.page.batches))

    async def inner_text(self) -> str:
        return ""


class FakeShowMorePage:
    """Grid that reveals one more batch of tiles per "Show more" click.

    Every render contains all revealed tiles, so earlier products show up
    again in each later snapshot.
    """

    def __init__(
        self,
        batches: list[list[str]],
        *,
        keep_button: bool = False,
        button_visible: bool = True,
        click_error: bool = False,
    ) -> None:
        self.batches = batches
        self.revealed = 1
        self.keep_button = keep_button
        self.button_visible = button_visible
        self.click_error = click_error
        self.clicks = 0
        self.waits: list[int] = []
        self.url = "https://www.sportinglife.ca/en-CA/clearance/"

    def visible_slugs(self) -> list[str]:
        slugs: list[str] = []
        for batch in self.batches[: self.revealed]:
            slugs.extend(batch)
        return slugs

    def button_available(self) -> bool:
        return self.keep_button or self.revealed < len(self.batches)

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    async def wait_for_selector(self, selector: str, timeout: int | None = None) -> None:
        if not self.visible_slugs():
            raise PlaywrightError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    async def wait_for_timeout(self, timeout: int) -> None:
        self.waits.append(timeout)

    async def wait_for_function(self, expression: str, arg=None, timeout: int | None = None) -> None:
        previous, _selector = arg
        if len(self.visible_slugs()) <= previous:
            raise PlaywrightError(f"Timeout {timeout}ms exceeded")

    async def content(self) -> str:
        return listing_html(self.visible_slugs())
