import json
from pathlib import Path
from typing import Any

from .logger import Logger
from qa_snapshot.config import FAILED_URLS_PATH
from qa_snapshot.exceptions import StructuralIntegrityError

FailureKey = tuple[str, str]


class FailureLogger(Logger):
    """Collect pages whose snapshot failed and merge them into ``failed_urls.json``.

    Failures are keyed by (url, environment). A newer failure for a pair
    already in the file replaces the stored entry in place.
    """

    def __init__(self, output_path: Path = FAILED_URLS_PATH) -> None:
        super().__init__()
        self.output_path = Path(output_path)
        self.failures: dict[FailureKey, dict[str, Any]] = {}

    @property
    def failed_urls(self) -> list[dict[str, Any]]:
        return list(self.failures.values())

    async def init_on_page(self, page, url) -> None:  # pragma: no cover - interface hook
        return None

    async def log(self, page, url, environment, error=None, stack_trace=None) -> None:
        if not error:
            return
        self.failures[(url, environment)] = {
            "url": url,
            "environment": environment,
            "error_type": type(error).__name__ if isinstance(error, BaseException) else None,
            "structural": isinstance(error, StructuralIntegrityError),
            "error": str(error),
            "stack_trace": stack_trace,
        }
        print(f"Failed to capture {url} ({environment}): {error}")

    def _read_existing(self) -> dict[FailureKey, dict[str, Any]]:
        try:
            entries = json.loads(self.output_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        return {(entry.get("url"), entry.get("environment")): entry for entry in entries}

    def write_logs(self) -> None:
        merged = self._read_existing()
        merged.update(self.failures)

        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_text(json.dumps(list(merged.values()), indent=2), encoding="utf-8")
        print(f"Failed URLs saved to {self.output_path} ({len(self.failures)} from this run, {len(merged)} total)")

    def get_failure_count(self) -> int:
        return len(self.failures)
