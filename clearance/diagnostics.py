from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from .extract import PRODUCT_TILE_SELECTOR

logger = logging.getLogger(__name__)

DEBUG_HTML_NAME = "sportinglife_page.html"
DEBUG_SCREENSHOT_NAME = "sportinglife.png"

PROBE_SELECTORS = (
    PRODUCT_TILE_SELECTOR,
    '[data-testid*="product"]',
    ".product-card",
    '[class*="product"]',
    "article",
    'button:has-text("Show more"), button:has-text("Voir plus")',
)


async def probe_selectors(page) -> dict[str, int]:
    counts: dict[str, int] = {}
    for selector in PROBE_SELECTORS:
        try:
            counts[selector] = await page.locator(selector).count()
        except Exception as exc:
            logger.warning("Selector probe failed for %r: %s", selector, exc)
    return counts


async def save_debug_artifacts(page, debug_dir: Path) -> list[Path]:
    saved: list[Path] = []

    try:
        html = await page.content()
        html_path = debug_dir / DEBUG_HTML_NAME
        html_path.parent.mkdir(parents=True, exist_ok=True)
        html_path.write_text(html, encoding="utf-8")
        logger.info("Saved debug HTML to %s", html_path)
        saved.append(html_path)
    except Exception as exc:
        logger.warning("Failed to save debug HTML: %s", exc)

    try:
        screenshot_path = debug_dir / DEBUG_SCREENSHOT_NAME
        screenshot_path.parent.mkdir(parents=True, exist_ok=True)
        await page.screenshot(path=str(screenshot_path), full_page=True)
        logger.info("Saved debug screenshot to %s", screenshot_path)
        saved.append(screenshot_path)
    except Exception as exc:
        logger.warning("Failed to save debug screenshot: %s", exc)

    for selector, count in (await probe_selectors(page)).items():
        logger.info("Selector probe %r: %s", selector, count)

    return saved


@asynccontextmanager
async def capture_on_failure(page, debug_dir: Path, enabled: bool = True):
    """Save page diagnostics if the body raises, then re-raise the original error."""
    try:
        yield
    except Exception:
        if enabled and page is not None:
            try:
                await save_debug_artifacts(page, debug_dir)
            except Exception as exc:
                logger.warning("Diagnostic capture failed: %s", exc)
        raise
