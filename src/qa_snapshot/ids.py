import hashlib
import re
from typing import Any, Mapping, Sequence

from qa_snapshot.defaults import normalize_value

SLUG_SOURCES = ("id", "name", "text", "class")
MAX_SLUG_LENGTH = 20
HASH_LENGTH = 8

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def _slug(attributes: Mapping[str, Any]) -> str:
    for name in SLUG_SOURCES:
        value = attributes.get(name)
        if value is None or isinstance(value, bool):
            continue
        slug = _NON_ALNUM.sub("-", str(value).lower()).strip("-")
        if slug:
            return slug[:MAX_SLUG_LENGTH].rstrip("-")
    return ""


class RetestIdProvider:
    """Derive readable, reproducible element ids from identity-relevant attributes.

    The id depends on the tag and the values of ``identity_attributes`` only,
    so it survives sibling insertions and moves elsewhere on the page.
    """

    def __init__(self, identity_attributes: Sequence[str]) -> None:
        self.identity_attributes = frozenset(name.lower() for name in identity_attributes)

    def id_for(self, tag: str, attributes: Mapping[str, Any]) -> str:
        relevant = {
            name: normalize_value(value)
            for name, value in attributes.items()
            if name in self.identity_attributes
        }
        canonical = "\n".join([tag] + [f"{name}={relevant[name]}" for name in sorted(relevant)])
        digest = hashlib.sha256(canonical.encode()).hexdigest()[:HASH_LENGTH]
        slug = _slug({name: attributes.get(name) for name in SLUG_SOURCES if name in relevant})
        if slug:
            return f"{tag}-{slug}-{digest}"
        return f"{tag}-{digest}"

    def assign(self, candidates: Sequence[tuple[str, Mapping[str, Any]]]) -> list[str]:
        """Ids for one group of siblings, given as ``(tag, attributes)`` in sibling order.

        Siblings that would share an id are told apart by their order among
        the colliding siblings: the first keeps the id, later ones get ``-2``,
        ``-3`` and so on.
        """

        seen: dict[str, int] = {}
        taken: set[str] = set()
        ids: list[str] = []
        for tag, attributes in candidates:
            base = self.id_for(tag, attributes)
            count = seen.get(base, 0) + 1
            seen[base] = count
            candidate = base if count == 1 else f"{base}-{count}"
            while candidate in taken:
                count += 1
                seen[base] = count
                candidate = f"{base}-{count}"
            taken.add(candidate)
            ids.append(candidate)
        return ids
