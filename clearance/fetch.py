from __future__ import annotations

import logging
import time
from typing import Callable

import requests

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30
RETRY_DELAY_SECONDS = 1.0
HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-CA,en;q=0.9,fr-CA;q=0.8",
}


def build_session() -> requests.Session:
    session = requests.Session()
    session.headers.update(HEADERS)
    return session


def fetch_with_retry(
    url: str,
    max_attempts: int = 3,
    *,
    session: requests.Session | None = None,
    timeout: float = REQUEST_TIMEOUT,
    retry_delay: float = RETRY_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> str | None:
    """Return the body of ``url``, or ``None`` once every attempt has failed.

    Non-2xx responses, timeouts and connection errors all count as a failed
    attempt. This function never raises for those; the caller decides what
    a missing page means.
    """
    session = session or build_session()
    attempts = max(1, int(max_attempts))

    for attempt in range(1, attempts + 1):
        try:
            response = session.get(url, timeout=timeout)
            response.raise_for_status()
            return response.text
        except requests.RequestException as exc:
            if attempt >= attempts:
                logger.error("Giving up on %s after %s attempts: %s", url, attempts, exc)
                break
            logger.warning(
                "Fetch attempt %s/%s failed for %s: %s. Retrying in %.1fs.",
                attempt,
                attempts,
                url,
                exc,
                retry_delay,
            )
            sleep(retry_delay)

    return None
