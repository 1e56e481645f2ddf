from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

CLEARANCE_URL = "https://www.sportinglife.ca/en-CA/clearance/"
SOURCE = "sportinglife-clearance"
MODES = ("show-more", "paged")

_FALSE_VALUES = {"0", "false", "no", "off"}


def parse_limit(value: object, fallback: int) -> int:
    """Positive integer from ``value``, or ``fallback`` for anything else."""
    if value is None or isinstance(value, bool):
        return fallback
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return fallback
    return parsed if parsed > 0 else fallback


def parse_delay(value: object, fallback: float) -> float:
    if value is None:
        return fallback
    try:
        parsed = float(str(value).strip())
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(parsed) or parsed < 0:
        return fallback
    return parsed


def parse_flag(value: object, fallback: bool) -> bool:
    if value is None:
        return fallback
    text = str(value).strip().lower()
    if not text:
        return fallback
    return text not in _FALSE_VALUES


@dataclass(frozen=True)
class ScrapeConfig:
    mode: str = "show-more"
    url: str = CLEARANCE_URL
    max_items: int = 3000
    max_clicks: int = 40
    max_pages: int = 50
    max_fetch_attempts: int = 3
    page_delay_seconds: float = 1.5
    page_param: str = "page"
    shard_index: int = 1
    total_shards: int = 1
    save_debug: bool = True
    stores_file: Path = Path("data/sportinglife_stores.json")
    output_dir: Path = Path("public/sportinglife")
    debug_dir: Path = Path("outputs/debug")
    source: str = SOURCE
    log_level: str = "INFO"
    headless: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ScrapeConfig":
        env = os.environ if environ is None else environ
        defaults = cls()
        mode = (env.get("SCRAPE_MODE") or defaults.mode).strip().lower()
        return cls(
            mode=mode if mode in MODES else defaults.mode,
            url=env.get("CLEARANCE_URL") or defaults.url,
            max_items=parse_limit(env.get("MAX_ITEMS"), defaults.max_items),
            max_clicks=parse_limit(env.get("MAX_CLICKS"), defaults.max_clicks),
            max_pages=parse_limit(env.get("MAX_PAGES"), defaults.max_pages),
            max_fetch_attempts=parse_limit(env.get("MAX_FETCH_ATTEMPTS"), defaults.max_fetch_attempts),
            page_delay_seconds=parse_delay(env.get("PAGE_DELAY_SECONDS"), defaults.page_delay_seconds),
            page_param=env.get("PAGE_PARAM") or defaults.page_param,
            shard_index=parse_limit(env.get("SHARD_INDEX"), defaults.shard_index),
            total_shards=parse_limit(env.get("TOTAL_SHARDS"), defaults.total_shards),
            save_debug=parse_flag(env.get("SAVE_DEBUG"), defaults.save_debug),
            stores_file=Path(env.get("STORES_FILE") or defaults.stores_file),
            output_dir=Path(env.get("OUTPUT_DIR") or defaults.output_dir),
            debug_dir=Path(env.get("DEBUG_DIR") or defaults.debug_dir),
            source=env.get("SOURCE_LABEL") or defaults.source,
            log_level=(env.get("LOG_LEVEL") or defaults.log_level).upper(),
        )
