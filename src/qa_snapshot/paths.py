"""Parse element paths and index a flat ``path -> record`` map as a tree."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping

from qa_snapshot.exceptions import StructuralIntegrityError

_STEP_PATTERN = re.compile(r"^(?:(?P<tag>[A-Za-z][\w:.-]*)\[(?P<index>\d+)\]|(?P<bare>\d+))$")


@dataclass(frozen=True, slots=True)
class PathStep:
    tag: str | None
    index: int

    def sort_key(self) -> tuple[int, str]:
        return (self.index, self.tag or "")


def _split(path: str) -> list[str]:
    stripped = path.strip().strip("/")
    if not stripped:
        return []
    return stripped.split("/")


def parse_path(path: str) -> tuple[PathStep, ...]:
    """Split ``/html[1]/body[1]/div[3]`` (or ``/0/0/1``) into steps."""

    raw_steps = _split(path)
    if not raw_steps:
        raise StructuralIntegrityError(f"Empty element path: {path!r}")

    steps: list[PathStep] = []
    for raw in raw_steps:
        match = _STEP_PATTERN.match(raw.strip())
        if match is None:
            raise StructuralIntegrityError(f"Malformed step {raw!r} in element path {path!r}")
        if match.group("bare") is not None:
            steps.append(PathStep(None, int(match.group("bare"))))
        else:
            steps.append(PathStep(match.group("tag").lower(), int(match.group("index"))))
    return tuple(steps)


def _normalize(path: str) -> str:
    return "/" + "/".join(step.strip() for step in _split(path))


def parent_path(path: str) -> str | None:
    steps = _split(path)
    if len(steps) <= 1:
        return None
    return "/" + "/".join(step.strip() for step in steps[:-1])


def to_xpath(path: str) -> str:
    """Render a path as a tag-agnostic XPath, e.g. ``/*[1]/*[2]/*[3]``.

    Bare numeric steps are zero-based and are shifted to XPath's one-based
    positions.
    """

    parts = []
    for step in parse_path(path):
        position = step.index if step.tag is not None else step.index + 1
        parts.append(f"*[{position}]")
    return "/" + "/".join(parts)


class PathIndex:
    """Parent/child relations of a flat path map, computed once.

    Every non-root path must have its direct parent in the map; a missing
    intermediate level is reported as a StructuralIntegrityError instead of
    attaching the orphan to a more distant ancestor.
    """

    def __init__(self, records: Mapping[str, Mapping[str, Any]], root: str, children: dict[str, list[str]]) -> None:
        self._records = records
        self._root = root
        self._children = children

    @classmethod
    def build(cls, flat_map: Mapping[str, Mapping[str, Any]]) -> "PathIndex":
        if not flat_map:
            raise StructuralIntegrityError("Element query returned no elements")

        by_normalized: dict[str, str] = {}
        parsed: dict[str, tuple[PathStep, ...]] = {}
        for path in flat_map:
            if not isinstance(path, str):
                raise StructuralIntegrityError(f"Element path must be a string, got {type(path).__name__}")
            normalized = _normalize(path)
            if normalized in by_normalized:
                raise StructuralIntegrityError(
                    f"Element paths {by_normalized[normalized]!r} and {path!r} denote the same element"
                )
            by_normalized[normalized] = path
            parsed[path] = parse_path(path)

        min_depth = min(len(steps) for steps in parsed.values())
        roots = sorted(path for path, steps in parsed.items() if len(steps) == min_depth)
        if len(roots) > 1:
            raise StructuralIntegrityError(f"Expected exactly one root element, found {len(roots)}: {roots[:5]}")
        root = roots[0]

        children: dict[str, list[str]] = {path: [] for path in flat_map}
        for path in flat_map:
            if path == root:
                continue
            parent_key = parent_path(path)
            parent = by_normalized.get(parent_key) if parent_key is not None else None
            if parent is None:
                raise StructuralIntegrityError(
                    f"Element {path!r} has no parent in the query result (missing {parent_key!r})"
                )
            children[parent].append(path)

        for siblings in children.values():
            siblings.sort(key=lambda p: (parsed[p][-1].sort_key(), p))

        return cls(flat_map, root, children)

    def root(self) -> str:
        return self._root

    def children_of(self, path: str) -> list[str]:
        try:
            return list(self._children[path])
        except KeyError:
            raise StructuralIntegrityError(f"Unknown element path {path!r}") from None

    def record(self, path: str) -> Mapping[str, Any]:
        try:
            record = self._records[path]
        except KeyError:
            raise StructuralIntegrityError(f"No element record for path {path!r}") from None
        if not isinstance(record, Mapping):
            raise StructuralIntegrityError(f"Element record for {path!r} is not a mapping")
        return record

    def step(self, path: str) -> PathStep:
        return parse_path(path)[-1]

    def __contains__(self, path: object) -> bool:
        return path in self._records

    def __len__(self) -> int:
        return len(self._records)
