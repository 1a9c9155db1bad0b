"""Entry point: capture a Playwright page, element or locator as RootElements."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal, Mapping

from playwright.async_api import ElementHandle, Locator, Page

from qa_snapshot.config import SnapshotConfig, get_config
from qa_snapshot.converter import PeerConverter, assemble
from qa_snapshot.defaults import DefaultValueFinder
from qa_snapshot.exceptions import FrameUnavailableError, UnsupportedTargetError
from qa_snapshot.frames import FrameConverter
from qa_snapshot.ids import RetestIdProvider
from qa_snapshot.models import RootElement, Screenshot, Snapshot
from qa_snapshot.query import ElementQuery
from qa_snapshot.screenshot import shoot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptureTarget:
    kind: Literal["page", "element", "locator"]
    target: Any


def resolve_target(obj: object) -> CaptureTarget:
    if isinstance(obj, Page):
        return CaptureTarget("page", obj)
    if isinstance(obj, ElementHandle):
        return CaptureTarget("element", obj)
    if isinstance(obj, Locator):
        return CaptureTarget("locator", obj)
    raise UnsupportedTargetError(obj)


class SnapshotAdapter:
    """Capture pages into element trees with stable retest ids."""

    def __init__(
        self,
        config: SnapshotConfig | None = None,
        *,
        query: ElementQuery | None = None,
        id_provider: RetestIdProvider | None = None,
    ) -> None:
        self.config = config or get_config()
        self.default_finder = DefaultValueFinder(self.config.default_rules)
        self.id_provider = id_provider or RetestIdProvider(self.config.identity_attributes)
        self.query = query or ElementQuery(self.config)
        self.converter = PeerConverter(self.default_finder, self.id_provider)
        self.frame_converter = FrameConverter(self.query, self.converter, self.config.frame_tags)
        self.last_captured: RootElement | None = None

    def fork(self) -> "SnapshotAdapter":
        """Adapter sharing this configuration but with its own ``last_captured``.

        Pages captured concurrently each get a fork so results never cross.
        """
        return SnapshotAdapter(self.config, query=self.query, id_provider=self.id_provider)

    def can_capture(self, obj: object) -> bool:
        try:
            resolve_target(obj)
        except UnsupportedTargetError:
            return False
        return True

    async def capture(self, obj: object) -> Snapshot:
        target = resolve_target(obj)
        if target.kind == "page":
            return await self.capture_page(target.target)
        if target.kind == "element":
            return await self.capture_element(target.target)
        handle = await target.target.element_handle()
        return await self.capture_element(handle)

    async def capture_page(self, page: Page) -> Snapshot:
        logger.info("Retrieving attributes for each element of %s", page.url)
        return [await self._capture(page, page, None)]

    async def capture_element(self, element: ElementHandle) -> Snapshot:
        logger.info("Retrieving attributes for element %s", element)
        frame = await element.owner_frame()
        if frame is None:
            raise FrameUnavailableError(f"Element {element} is not attached to a frame")
        return [await self._capture(frame, frame.page, element)]

    def convert(
        self,
        flat_map: Mapping[str, Mapping[str, Any]],
        url: str | None,
        title: str | None,
        screenshot: Screenshot | None,
    ) -> RootElement:
        logger.info("Checking website %s with %d elements", url, len(flat_map))
        return assemble(self.converter.convert(flat_map), url, title, screenshot)

    async def _capture(self, context, page: Page, scope: ElementHandle | None) -> RootElement:
        flat_map = await self.query.run(context, scope)
        tree = self.converter.convert(flat_map)
        frames = await self.frame_converter.add_children_from_frames(context, tree)
        if frames:
            logger.info("Attached %d frame documents", frames)

        screenshot = await shoot(page, full_page=self.config.screenshot_full_page)
        root = assemble(tree, page.url, await page.title(), screenshot)
        self.last_captured = root
        return root
