"""Listing markup extraction.

Both acquisition strategies hand page HTML to this module, so the show-more
browser run and the raw page fetch share one set of selectors.
"""

from __future__ import annotations

import re
from typing import Iterable

from bs4 import BeautifulSoup
from bs4.element import Tag

from .models import BASE_URL, Product, build_product

PRODUCT_TILE_SELECTOR = ".product-tile, .product-grid__item, article.product, li.grid-tile, .product-card"
NAME_SELECTOR = ".product-name a, .product-name, .product-card__name, .product-tile__name, .pdp-link"
BRAND_SELECTOR = ".product-brand, .brand, .product-tile__brand, .product-card__brand"
PRICE_SELECTOR = (
    ".product-sales-price, .price-sales .value, .sales .value, "
    ".product-price__value, .product-price .price-sales"
)
ORIGINAL_PRICE_SELECTOR = (
    ".product-standard-price .value, .strike-through .value, "
    ".product-price .price-standard, .product-price__was"
)
IMAGE_ATTRIBUTES = ("data-src", "src", "data-original")

# Sporting Life product pages end in "<slug>-<id>.html"; "/p/" and "/product/" cover other storefronts.
PRODUCT_LINK_PATTERN = re.compile(r"(/[^/?#]+-\d+\.html|/p/|/products?/)", re.IGNORECASE)


def _text(node: Tag | None) -> str | None:
    if node is None:
        return None
    text = node.get_text(" ", strip=True)
    return text or None


def _image_url(node: Tag) -> str | None:
    image = node.select_one("img")
    if image is None:
        return None
    for attribute in IMAGE_ATTRIBUTES:
        value = image.get(attribute)
        if value:
            return value
    return None


def _tile_href(tile: Tag) -> str | None:
    anchor = tile.select_one("a[href]")
    if anchor is not None:
        return anchor.get("href")
    pdp_link = tile.select_one(".pdp-link[href]")
    if pdp_link is not None:
        return pdp_link.get("href")
    return tile.get("data-pdp-url")


def _parse(html: str | BeautifulSoup) -> BeautifulSoup:
    if isinstance(html, BeautifulSoup):
        return html
    return BeautifulSoup(html or "", "html.parser")


def extract_products(html: str | BeautifulSoup, base_url: str = BASE_URL) -> list[Product]:
    soup = _parse(html)
    products: list[Product] = []
    seen_tiles: set[int] = set()

    for tile in soup.select(PRODUCT_TILE_SELECTOR):
        # Nested tile markup (".product-grid__item .product-tile") matches twice.
        if any(id(parent) in seen_tiles for parent in tile.parents):
            continue
        seen_tiles.add(id(tile))

        product = build_product(
            name=_text(tile.select_one(NAME_SELECTOR)),
            href=_tile_href(tile),
            brand=_text(tile.select_one(BRAND_SELECTOR)),
            price_text=_text(tile.select_one(PRICE_SELECTOR)) or tile.get("data-price"),
            original_price_text=_text(tile.select_one(ORIGINAL_PRICE_SELECTOR)),
            image=_image_url(tile),
            base_url=base_url,
        )
        if product is not None:
            products.append(product)

    return products


def _product_anchors(soup: BeautifulSoup) -> Iterable[Tag]:
    for anchor in soup.select("a[href]"):
        href = anchor.get("href") or ""
        if PRODUCT_LINK_PATTERN.search(href):
            yield anchor


def extract_products_from_links(html: str | BeautifulSoup, base_url: str = BASE_URL) -> list[Product]:
    """Looser fallback: any anchor that points at a product page."""
    soup = _parse(html)
    products: list[Product] = []
    seen: set[str] = set()

    for anchor in _product_anchors(soup):
        image = anchor.select_one("img")
        name = _text(anchor) or anchor.get("title") or (image.get("alt") if image is not None else None)
        product = build_product(
            name=name,
            href=anchor.get("href"),
            image=_image_url(anchor),
            base_url=base_url,
        )
        if product is None or product.link in seen:
            continue
        seen.add(product.link)
        products.append(product)

    return products
