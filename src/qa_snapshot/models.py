from __future__ import annotations

from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, Iterator

import imagehash
from PIL import Image


@dataclass
class Screenshot:
    """PNG bitmap of one top-level document plus its perceptual hash."""

    png: bytes = field(repr=False)
    width: int
    height: int
    average_hash: str

    @classmethod
    def from_png(cls, data: bytes) -> "Screenshot":
        with Image.open(BytesIO(data)) as img:
            img.load()
            width, height = img.size
            average_hash = str(imagehash.average_hash(img.convert("L")))
        return cls(png=data, width=width, height=height, average_hash=average_hash)

    def image(self) -> Image.Image:
        return Image.open(BytesIO(self.png))

    def to_dict(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "average_hash": self.average_hash,
        }


@dataclass
class Element:
    retest_id: str
    tag: str
    path: str
    attributes: dict[str, Any] = field(default_factory=dict)
    children: list["Element"] = field(default_factory=list)

    def iter_elements(self) -> Iterator["Element"]:
        """Depth-first, parents before children."""
        stack: list[Element] = [self]
        while stack:
            element = stack.pop()
            yield element
            stack.extend(reversed(element.children))

    def find(self, path: str) -> "Element | None":
        for element in self.iter_elements():
            if element.path == path:
                return element
        return None

    def _fields(self) -> dict[str, Any]:
        return {
            "retest_id": self.retest_id,
            "tag": self.tag,
            "path": self.path,
            "attributes": {name: self.attributes[name] for name in sorted(self.attributes)},
            "children": [],
        }

    def to_dict(self) -> dict[str, Any]:
        data = self._fields()
        stack = [(child, data["children"]) for child in reversed(self.children)]
        while stack:
            element, siblings = stack.pop()
            entry = element._fields()
            siblings.append(entry)
            stack.extend((child, entry["children"]) for child in reversed(element.children))
        return data


@dataclass
class RootElement(Element):
    """Top-level element of one document.

    Frame documents are spliced into their host as RootElements without
    page metadata; only the outermost document carries url, title and
    screenshot.
    """

    url: str | None = None
    title: str | None = None
    screenshot: Screenshot | None = None

    def _fields(self) -> dict[str, Any]:
        data = super()._fields()
        if self.url is not None or self.title is not None or self.screenshot is not None:
            data["url"] = self.url
            data["title"] = self.title
            data["screenshot"] = self.screenshot.to_dict() if self.screenshot else None
        return data


# One RootElement per top-level document a capture returns.
Snapshot = list[RootElement]
