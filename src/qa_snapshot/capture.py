"""Asynchronous capture loop used by the CLI entry point."""

from __future__ import annotations

import asyncio
import logging
import traceback
from pathlib import Path
from typing import Iterable

from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from qa_snapshot.adapter import SnapshotAdapter
from qa_snapshot.config import FAILED_URLS_PATH, SNAPSHOT_DIR, ensure_data_directories, get_config
from qa_snapshot.loggers import FailureLogger, Logger, SnapshotLogger

logger = logging.getLogger(__name__)

BROWSER_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-infobars",
    "--window-size=1920,1080",
    "--no-sandbox",
    "--ignore-certificate-errors",
]

CONTEXT_OPTIONS = {
    "viewport": {"width": 1920, "height": 1080},
    "ignore_https_errors": True,
    "service_workers": "block",
}

BODY_VISIBLE_JS = """
() => {
    const b = document.body;
    const s = b && getComputedStyle(b);
    return s && s.visibility !== 'hidden' && s.display !== 'none';
}
"""

# Computed styles and boxes must not depend on how far an animation has run.
FREEZE_MOTION_CSS = "*, *::before, *::after { transition: none !important; animation: none !important; }"


def unique_urls(urls: Iterable[str]) -> list[str]:
    deduped: list[str] = []
    seen: set[str] = set()
    for candidate in urls:
        trimmed = candidate.strip()
        if not trimmed or trimmed in seen:
            continue
        seen.add(trimmed)
        deduped.append(trimmed)
    return deduped


async def process_page_with_context(context, url: str, environment: str, loggers: dict[str, Logger]) -> bool:
    page = await context.new_page()
    try:
        for page_logger in loggers.values():
            await page_logger.init_on_page(page, url)

        await page.goto(url, wait_until="domcontentloaded", timeout=60_000)
        await page.wait_for_selector("body", state="attached", timeout=45_000)
        await page.wait_for_function(BODY_VISIBLE_JS, timeout=15_000)
        await page.add_style_tag(content=FREEZE_MOTION_CSS)

        for name, page_logger in loggers.items():
            if name != "failure":
                await page_logger.log(page, url, environment)
        return True
    except PlaywrightTimeoutError as exc:
        if "failure" in loggers:
            await loggers["failure"].log(
                page,
                url,
                environment,
                error=f"Timeout waiting for page readiness: {exc}",
            )
    except Exception as exc:
        logger.debug("Capture of %s failed", url, exc_info=True)
        if "failure" not in loggers:
            raise
        await loggers["failure"].log(page, url, environment, error=exc, stack_trace=traceback.format_exc())
    finally:
        await page.close()
    return False


async def run_capture(
    urls: Iterable[str],
    *,
    environment: str = "control",
    output_dir: str | Path = SNAPSHOT_DIR,
    failures_path: str | Path = FAILED_URLS_PATH,
    batch_size: int = 5,
    headless: bool = True,
) -> int:
    """Capture every URL and write snapshots below ``output_dir``; returns failures."""

    ensure_data_directories()
    targets = unique_urls(urls)
    if not targets:
        print("No URLs given; nothing to capture.")
        return 0

    adapter = SnapshotAdapter(get_config())
    loggers: dict[str, Logger] = {
        "snapshot": SnapshotLogger(adapter, Path(output_dir)),
        "failure": FailureLogger(Path(failures_path)),
    }

    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=headless, args=BROWSER_ARGS)
        context = await browser.new_context(**CONTEXT_OPTIONS)
        try:
            for index in range(0, len(targets), batch_size):
                batch = targets[index : index + batch_size]
                await asyncio.gather(
                    *(process_page_with_context(context, url, environment, loggers) for url in batch)
                )
                print(f"Completed batch {index // batch_size + 1}")
        finally:
            await context.close()
            await browser.close()

    for page_logger in loggers.values():
        page_logger.write_logs()

    return loggers["failure"].get_failure_count()  # type: ignore[attr-defined]


def capture_urls(urls: Iterable[str], **kwargs) -> int:
    return asyncio.run(run_capture(urls, **kwargs))


__all__ = ["run_capture", "capture_urls", "process_page_with_context", "unique_urls"]
