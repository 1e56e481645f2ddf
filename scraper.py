from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

from playwright.async_api import async_playwright

from clearance.accumulator import ProductAccumulator
from clearance.config import MODES, ScrapeConfig
from clearance.diagnostics import capture_on_failure
from clearance.interactive import ShowMoreAcquirer, open_catalog
from clearance.paged import PagedAcquirer
from clearance.pipeline import CollectResult, collect_products
from clearance.storage import load_stores, shard_stores, write_outputs

logger = logging.getLogger("scraper")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


async def run_show_more(config: ScrapeConfig) -> CollectResult:
    async with async_playwright() as playwright:
        try:
            browser = await playwright.chromium.launch(headless=config.headless)
        except Exception as exc:
            raise RuntimeError(
                "Playwright browser binaries are not installed. Run: python -m playwright install chromium"
            ) from exc
        page = await browser.new_page(viewport={"width": 1280, "height": 720})
        try:
            async with capture_on_failure(page, config.debug_dir, enabled=config.save_debug):
                await open_catalog(page, config.url, headless=config.headless)
                acquirer = ShowMoreAcquirer(page, max_items=config.max_items, max_clicks=config.max_clicks)
                return await collect_products(acquirer, ProductAccumulator(config.max_items))
        finally:
            await browser.close()


async def run_paged(config: ScrapeConfig) -> CollectResult:
    acquirer = PagedAcquirer(
        config.url,
        max_items=config.max_items,
        max_pages=config.max_pages,
        max_attempts=config.max_fetch_attempts,
        page_delay_seconds=config.page_delay_seconds,
        page_param=config.page_param,
    )
    return await collect_products(acquirer, ProductAccumulator(config.max_items))


async def scrape_clearance(config: ScrapeConfig) -> CollectResult:
    stores = load_stores(config.stores_file)
    selected = shard_stores(stores, config.shard_index, config.total_shards)
    logger.info(
        "Total stores: %s. Shard %s/%s handles %s stores.",
        len(stores),
        config.shard_index,
        config.total_shards,
        len(selected),
    )

    if config.mode == "paged":
        result = await run_paged(config)
    else:
        result = await run_show_more(config)
    logger.info(
        "Collected %s products in %s batches. Stop reason: %s.",
        len(result.products),
        result.batches,
        result.stop_reason.value,
    )

    write_outputs(
        result.products,
        selected,
        source=config.source,
        updated_at=datetime.now(timezone.utc).isoformat(),
        output_dir=config.output_dir,
    )
    return result


def parse_args(argv: list[str] | None = None, base: ScrapeConfig | None = None) -> ScrapeConfig:
    base = base or ScrapeConfig.from_env()
    parser = argparse.ArgumentParser(description="Scrape a clearance catalog and write per-store product files")
    parser.add_argument("--mode", choices=MODES, default=base.mode, help="Acquisition strategy")
    parser.add_argument("--url", default=base.url, help="Clearance catalog URL")
    parser.add_argument("--max-items", type=int, default=base.max_items, help="Maximum products to keep")
    parser.add_argument(
        "--max-clicks",
        type=int,
        default=base.max_clicks,
        help='Maximum "Show more" clicks (show-more mode)',
    )
    parser.add_argument("--max-pages", type=int, default=base.max_pages, help="Maximum pages to fetch (paged mode)")
    parser.add_argument(
        "--max-fetch-attempts",
        type=int,
        default=base.max_fetch_attempts,
        help="Attempts per page before the run stops (paged mode)",
    )
    parser.add_argument(
        "--page-delay-seconds",
        type=float,
        default=base.page_delay_seconds,
        help="Delay between page requests (paged mode)",
    )
    parser.add_argument(
        "--page-param",
        default=base.page_param,
        help="Query parameter carrying the page number (paged mode)",
    )
    parser.add_argument("--shard-index", type=int, default=base.shard_index, help="1-based shard to process")
    parser.add_argument("--total-shards", type=int, default=base.total_shards, help="Number of store shards")
    parser.add_argument(
        "--save-debug",
        action=argparse.BooleanOptionalAction,
        default=base.save_debug,
        help="Save page HTML and a screenshot when the browser run fails",
    )
    parser.add_argument("--stores-file", type=Path, default=base.stores_file, help="Store list JSON")
    parser.add_argument("--output-dir", type=Path, default=base.output_dir, help="Directory for product JSON files")
    parser.add_argument("--debug-dir", type=Path, default=base.debug_dir, help="Directory for debug artifacts")
    parser.add_argument("--source", default=base.source, help="Source label written to every output file")
    parser.add_argument("--log-level", default=base.log_level, help="Logging level")
    parser.add_argument("--headed", action="store_true", help="Run browser in headed mode")
    args = parser.parse_args(argv)

    # CLI values go through the same fallback rules as the environment.
    overrides = ScrapeConfig.from_env(
        {
            "SCRAPE_MODE": args.mode,
            "MAX_ITEMS": str(args.max_items),
            "MAX_CLICKS": str(args.max_clicks),
            "MAX_PAGES": str(args.max_pages),
            "MAX_FETCH_ATTEMPTS": str(args.max_fetch_attempts),
            "PAGE_DELAY_SECONDS": str(args.page_delay_seconds),
            "SHARD_INDEX": str(args.shard_index),
            "TOTAL_SHARDS": str(args.total_shards),
        }
    )
    return replace(
        base,
        mode=overrides.mode,
        url=args.url,
        max_items=overrides.max_items,
        max_clicks=overrides.max_clicks,
        max_pages=overrides.max_pages,
        max_fetch_attempts=overrides.max_fetch_attempts,
        page_delay_seconds=overrides.page_delay_seconds,
        page_param=args.page_param,
        shard_index=overrides.shard_index,
        total_shards=overrides.total_shards,
        save_debug=args.save_debug,
        stores_file=args.stores_file,
        output_dir=args.output_dir,
        debug_dir=args.debug_dir,
        source=args.source,
        log_level=args.log_level.upper(),
        headless=not args.headed,
    )


def main(argv: list[str] | None = None) -> int:
    config = parse_args(argv)
    configure_logging(config.log_level)
    try:
        asyncio.run(scrape_clearance(config))
    except Exception:
        logger.exception("Scraper failed")
        return 1
    logger.info("Scraping complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
