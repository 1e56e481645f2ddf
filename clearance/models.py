from __future__ import annotations

import math
import re
from dataclasses import dataclass
from urllib.parse import urljoin, urlparse

BASE_URL = "https://www.sportinglife.ca"

_PRICE_CHARS = re.compile(r"[^0-9.,-]")


@dataclass
class Product:
    name: str
    brand: str | None
    price: float | None
    original_price: float | None
    discount: int | None
    image: str | None
    link: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "brand": self.brand,
            "price": self.price,
            "originalPrice": self.original_price,
            "discount": self.discount,
            "image": self.image,
            "link": self.link,
        }


def parse_price(value: str | None) -> float | None:
    if not value:
        return None
    cleaned = _PRICE_CHARS.sub("", value).replace(",", "")
    if not cleaned:
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def compute_discount(price: float | None, original_price: float | None) -> int | None:
    if price is None or original_price is None:
        return None
    if original_price <= price:
        return None
    ratio = (original_price - price) / original_price * 100
    # half-up, not banker's rounding
    return int(math.floor(ratio + 0.5))


def normalize_link(href: str | None, base_url: str = BASE_URL) -> str:
    href = (href or "").strip()
    if not href or href.startswith(("#", "javascript:", "mailto:")):
        return ""
    absolute = urljoin(base_url, href)
    parsed = urlparse(absolute)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return ""
    return absolute


def _clean_text(value: str | None) -> str:
    return " ".join((value or "").split())


def build_product(
    *,
    name: str | None,
    href: str | None,
    brand: str | None = None,
    price_text: str | None = None,
    original_price_text: str | None = None,
    image: str | None = None,
    base_url: str = BASE_URL,
) -> Product | None:
    link = normalize_link(href, base_url)
    if not link:
        return None

    price = parse_price(price_text)
    original_price = parse_price(original_price_text)
    return Product(
        name=_clean_text(name) or link,
        brand=_clean_text(brand) or None,
        price=price,
        original_price=original_price,
        discount=compute_discount(price, original_price),
        image=urljoin(base_url, image.strip()) if image and image.strip() else None,
        link=link,
    )
