"""Turn the flat ``path -> attributes`` query result into an element tree."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from qa_snapshot.defaults import DefaultValueFinder
from qa_snapshot.exceptions import StructuralIntegrityError
from qa_snapshot.ids import RetestIdProvider
from qa_snapshot.models import Element, RootElement, Screenshot
from qa_snapshot.paths import PathIndex

logger = logging.getLogger(__name__)


def _join(prefix: str, path: str) -> str:
    if not prefix:
        return path
    return prefix.rstrip("/") + "/" + path.lstrip("/")


class PeerConverter:
    def __init__(self, default_finder: DefaultValueFinder, id_provider: RetestIdProvider) -> None:
        self.default_finder = default_finder
        self.id_provider = id_provider

    def convert(self, flat_map: Mapping[str, Mapping[str, Any]], path_prefix: str = "") -> RootElement:
        """Build the tree for one document.

        Raises StructuralIntegrityError if the map is not a consistent tree;
        no partial tree is ever returned.
        """

        index = PathIndex.build(flat_map)
        root_path = index.root()
        tag, attributes = self._describe(index, root_path)
        root = RootElement(
            retest_id=self.id_provider.assign([(tag, attributes)])[0],
            tag=tag,
            path=_join(path_prefix, root_path),
            attributes=attributes,
        )

        # Explicit stack: documents can nest deeper than the interpreter's recursion limit.
        pending: list[tuple[Element, str]] = [(root, root_path)]
        while pending:
            parent, path = pending.pop()
            child_paths = index.children_of(path)
            parent.children = self._children(index, child_paths, path_prefix)
            pending.extend(zip(parent.children, child_paths))

        logger.debug("Converted %d elements below %s", len(index), root.path)
        return root

    def _describe(self, index: PathIndex, path: str) -> tuple[str, dict[str, Any]]:
        record = index.record(path)
        raw_tag = record.get("tag")
        if isinstance(raw_tag, str) and raw_tag.strip():
            tag = raw_tag.strip().lower()
        else:
            tag = index.step(path).tag
            if not tag:
                raise StructuralIntegrityError(f"Element {path!r} has no tag")
        attributes = {name.lower(): value for name, value in record.items() if name != "tag"}
        return tag, self.default_finder.strip_defaults(tag, attributes)

    def _children(self, index: PathIndex, child_paths: list[str], path_prefix: str) -> list[Element]:
        """One sibling group, ids assigned together; grandchildren are filled in by ``convert``."""
        described = [self._describe(index, child_path) for child_path in child_paths]
        ids = self.id_provider.assign(described)
        return [
            Element(retest_id=retest_id, tag=tag, path=_join(path_prefix, child_path), attributes=attributes)
            for child_path, (tag, attributes), retest_id in zip(child_paths, described, ids)
        ]


def assemble(tree: Element, url: str | None, title: str | None, screenshot: Screenshot | None) -> RootElement:
    return RootElement(
        retest_id=tree.retest_id,
        tag=tree.tag,
        path=tree.path,
        attributes=tree.attributes,
        children=tree.children,
        url=url,
        title=title,
        screenshot=screenshot,
    )
