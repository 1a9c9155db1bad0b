from __future__ import annotations

import logging
from importlib import resources
from typing import Any, Mapping

from qa_snapshot.config import SnapshotConfig
from qa_snapshot.exceptions import ResourceError, StructuralIntegrityError

logger = logging.getLogger(__name__)

QUERY_SCRIPT = "get_all_elements_by_path.js"


def load_query_script(name: str = QUERY_SCRIPT) -> str:
    try:
        return resources.files("qa_snapshot.resources").joinpath(name).read_text(encoding="utf-8")
    except OSError as exc:
        raise ResourceError(f"Exception reading '{name}': {exc}") from exc


class ElementQuery:
    """Runs the element query script in a page or frame."""

    def __init__(self, config: SnapshotConfig, script: str | None = None) -> None:
        self.config = config
        self.script = script if script is not None else load_query_script()

    def arguments(self, scope: Any = None) -> dict[str, Any]:
        return {
            "cssAttributes": list(self.config.css_attributes),
            "htmlAttributes": list(self.config.html_attributes),
            "scope": scope,
        }

    async def run(self, context, scope=None) -> dict[str, dict[str, Any]]:
        """Return the flat ``path -> attributes`` map for ``context``.

        ``context`` is a Playwright Page or Frame; ``scope`` an optional
        ElementHandle restricting the query to that element's subtree.
        """

        result = await context.evaluate(self.script, self.arguments(scope))
        if not isinstance(result, Mapping):
            raise StructuralIntegrityError(
                f"Element query returned {type(result).__name__} instead of a path mapping"
            )
        flat_map: dict[str, dict[str, Any]] = {}
        for path, record in result.items():
            if not isinstance(path, str) or not isinstance(record, Mapping):
                raise StructuralIntegrityError(f"Element query returned an invalid entry for {path!r}")
            flat_map[path] = dict(record)
        logger.debug("Element query returned %d elements", len(flat_map))
        return flat_map
