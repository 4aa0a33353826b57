"""
app/services/source_collector.py

Fan-out/join over independent backend fetchers.

Every fetcher runs to completion; one failure never cancels or hides the
others.  Exceptions raised by a fetcher are converted into failed
``SourceResult`` values so the statistics engine can treat them as empty.
"""

from __future__ import annotations

import concurrent.futures
import logging
from typing import Any, Callable, Mapping

from stats.records import SourceResult

logger = logging.getLogger(__name__)

Fetcher = Callable[[], SourceResult[Any]]


def _run_fetcher(name: str, fetcher: Fetcher) -> SourceResult[Any]:
    try:
        result = fetcher()
    except Exception as exc:  # noqa: BLE001
        logger.warning("Source fetch raised source=%s error=%s", name, exc)
        return SourceResult.failure(f"{type(exc).__name__}: {exc}")

    if not isinstance(result, SourceResult):
        logger.warning("Source fetch returned %s source=%s", type(result).__name__, name)
        return SourceResult.failure(f"unexpected result type {type(result).__name__}")
    return result


def collect_sources(
    fetchers: Mapping[str, Fetcher],
    *,
    max_workers: int = 8,
) -> dict[str, SourceResult[Any]]:
    """
    Run *fetchers* concurrently and wait for all of them.

    Returns one result per fetcher name, in the order of *fetchers*.
    """

    if not fetchers:
        return {}

    workers = max(1, min(max_workers, len(fetchers)))
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {name: pool.submit(_run_fetcher, name, fetcher) for name, fetcher in fetchers.items()}
        results = {name: future.result() for name, future in futures.items()}

    failed = [name for name, result in results.items() if not result.ok]
    logger.info(
        "Collected sources total=%d failed=%d names=%s",
        len(results),
        len(failed),
        failed,
    )
    return results
