"""Capture the documents of iframe/frame elements and splice them into the tree."""

from __future__ import annotations

import logging
from typing import Sequence

from playwright.async_api import Error as PlaywrightError

from qa_snapshot.converter import PeerConverter
from qa_snapshot.exceptions import FrameUnavailableError, StructuralIntegrityError
from qa_snapshot.models import Element, RootElement
from qa_snapshot.paths import to_xpath
from qa_snapshot.query import ElementQuery

logger = logging.getLogger(__name__)


def _local_path(path: str, prefix: str) -> str:
    if prefix and path.startswith(prefix):
        return path[len(prefix.rstrip("/")):]
    return path


class FrameConverter:
    def __init__(self, query: ElementQuery, converter: PeerConverter, frame_tags: Sequence[str]) -> None:
        self.query = query
        self.converter = converter
        self.frame_tags = frozenset(tag.lower() for tag in frame_tags)

    def frame_hosts(self, root: Element) -> list[Element]:
        """Frame elements of one document, depth-first in tree order."""
        return [element for element in root.iter_elements() if element.tag in self.frame_tags]

    async def add_children_from_frames(self, context, root: Element, local_prefix: str = "") -> int:
        """Attach each frame host's document as its child; returns frames attached.

        ``context`` is the Page or Frame ``root`` was captured from and
        ``local_prefix`` the part of the tree's paths that does not exist in
        that context (the enclosing host's path for nested documents).
        """

        attached = 0
        for host in self.frame_hosts(root):
            try:
                frame = await self._content_frame(context, _local_path(host.path, local_prefix))
                frame_root = await self._convert_frame(frame, host.path)
            except (FrameUnavailableError, StructuralIntegrityError, PlaywrightError) as exc:
                logger.warning("Skipping frame at %s: %s", host.path, exc)
                continue

            host.children.append(frame_root)
            attached += 1
            attached += await self.add_children_from_frames(frame, frame_root, host.path)
        return attached

    async def _content_frame(self, context, local_path: str):
        handle = await context.query_selector(f"xpath={to_xpath(local_path)}")
        if handle is None:
            raise FrameUnavailableError(f"Frame element {local_path} is no longer attached")
        frame = await handle.content_frame()
        if frame is None:
            raise FrameUnavailableError(f"Element {local_path} has no content frame")
        return frame

    async def _convert_frame(self, frame, host_path: str) -> RootElement:
        flat_map = await self.query.run(frame)
        frame_root = self.converter.convert(flat_map, path_prefix=host_path)
        logger.info("Captured frame %s below %s", getattr(frame, "url", "?"), host_path)
        return frame_root
