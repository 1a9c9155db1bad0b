from __future__ import annotations

from typing import Any, Mapping

ALL_TAGS = "all"

# Never filtered: they describe what and where the element is.
IDENTIFYING_ATTRIBUTES = frozenset({"tag", "x", "y", "width", "height"})


def normalize_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


class DefaultValueFinder:
    """Decide whether an attribute value is the browser default for a tag."""

    def __init__(self, rules: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._rules = rules or {}

    def _defaults_for(self, tag: str, name: str) -> Any:
        tag_rules = self._rules.get(tag.lower())
        if tag_rules is not None and name in tag_rules:
            return tag_rules[name]
        return self._rules.get(ALL_TAGS, {}).get(name)

    def is_default(self, tag: str, name: str, value: Any) -> bool:
        if name in IDENTIFYING_ATTRIBUTES:
            return False
        if value is None:
            return True
        if isinstance(value, str) and not value.strip():
            return True

        configured = self._defaults_for(tag, name.lower())
        if configured is None:
            return False
        if not isinstance(configured, (list, tuple)):
            configured = [configured]
        normalized = normalize_value(value)
        return any(normalize_value(candidate) == normalized for candidate in configured)

    def strip_defaults(self, tag: str, attributes: Mapping[str, Any]) -> dict[str, Any]:
        return {
            name: value
            for name, value in attributes.items()
            if not self.is_default(tag, name, value)
        }
