import json
import re
from pathlib import Path

from .logger import Logger
from qa_snapshot.adapter import SnapshotAdapter
from qa_snapshot.config import SNAPSHOT_DIR
from qa_snapshot.models import RootElement

_UNSAFE = re.compile(r"[^A-Za-z0-9_-]+")


def safe_name(url: str) -> str:
    """File name for a URL: scheme dropped, everything else flattened to underscores."""
    location = url.split("//", 1)[-1]
    name = _UNSAFE.sub("_", location).strip("_")
    return name or "index"


class SnapshotLogger(Logger):
    """Capture each page and write ``<environment>/<name>.json`` plus ``.png``."""

    def __init__(self, adapter: SnapshotAdapter | None = None, output_dir: Path = SNAPSHOT_DIR):
        super().__init__()
        self.adapter = adapter or SnapshotAdapter()
        self.output_dir = Path(output_dir)
        self.snapshot_count = 0

    async def init_on_page(self, page, url):
        pass

    async def log(self, page, url, environment):
        roots = await self.adapter.fork().capture(page)
        target_dir = self.output_dir / environment
        target_dir.mkdir(parents=True, exist_ok=True)
        for position, root in enumerate(roots):
            name = safe_name(url) if position == 0 else f"{safe_name(url)}_{position}"
            self.write_snapshot(root, target_dir / f"{name}.json")
        self.snapshot_count += len(roots)
        print(f"Snapshot captured for {url} ({environment})")

    def write_snapshot(self, root: RootElement, json_path: Path) -> Path:
        json_path.write_text(json.dumps(root.to_dict(), indent=2, sort_keys=True), encoding="utf-8")
        if root.screenshot is not None:
            json_path.with_suffix(".png").write_bytes(root.screenshot.png)
        return json_path

    def write_logs(self):
        print(f"Total snapshots captured: {self.snapshot_count}")

    def get_snapshot_count(self):
        return self.snapshot_count
