import asyncio
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

PROJECT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from qa_snapshot.config import SnapshotConfig  # noqa: E402
from qa_snapshot.converter import PeerConverter  # noqa: E402
from qa_snapshot.defaults import DefaultValueFinder  # noqa: E402
from qa_snapshot.frames import FrameConverter  # noqa: E402
from qa_snapshot.ids import RetestIdProvider  # noqa: E402
from qa_snapshot.query import ElementQuery  # noqa: E402

PAGE_MAP = {
    "/html[1]": {"tag": "html"},
    "/html[1]/body[1]": {"tag": "body"},
    "/html[1]/body[1]/iframe[1]": {"tag": "iframe", "src": "/a.html"},
    "/html[1]/body[1]/p[2]": {"tag": "p", "text": "between"},
    "/html[1]/body[1]/iframe[3]": {"tag": "iframe", "src": "/b.html"},
}

FRAME_MAP = {
    "/html[1]": {"tag": "html"},
    "/html[1]/body[1]": {"tag": "body"},
    "/html[1]/body[1]/h1[1]": {"tag": "h1", "text": "Inside"},
}


def make_frame(flat_map, children=None):
    """Fake Playwright frame: evaluate() answers the element query,
    query_selector() resolves xpaths to handles of child frames."""
    frame = MagicMock()
    frame.url = "https://example.com/frame"
    frame.evaluate = AsyncMock(return_value=flat_map)
    handles = {}
    for xpath, child in (children or {}).items():
        handle = MagicMock()
        if isinstance(child, Exception):
            handle.content_frame = AsyncMock(side_effect=child)
        else:
            handle.content_frame = AsyncMock(return_value=child)
        handles[f"xpath={xpath}"] = handle
    frame.query_selector = AsyncMock(side_effect=lambda selector: handles.get(selector))
    return frame


@pytest.fixture
def config():
    return SnapshotConfig(identity_attributes=("id", "class", "text", "src"), frame_tags=("iframe", "frame"))


@pytest.fixture
def frame_converter(config):
    converter = PeerConverter(DefaultValueFinder(), RetestIdProvider(config.identity_attributes))
    query = ElementQuery(config, script="() => ({})")
    return FrameConverter(query, converter, config.frame_tags)


def convert_page(frame_converter, flat_map=PAGE_MAP):
    return frame_converter.converter.convert(flat_map)


def test_frame_documents_are_attached_in_tree_order(frame_converter):
    first = make_frame(FRAME_MAP)
    second = make_frame({"/html[1]": {"tag": "html", "id": "second"}})
    page = make_frame(PAGE_MAP, {"/*[1]/*[1]/*[1]": first, "/*[1]/*[1]/*[3]": second})
    root = convert_page(frame_converter)

    attached = asyncio.run(frame_converter.add_children_from_frames(page, root))

    assert attached == 2
    host = root.find("/html[1]/body[1]/iframe[1]")
    assert [child.path for child in host.children] == ["/html[1]/body[1]/iframe[1]/html[1]"]
    frame_root = host.children[0]
    assert frame_root.url is None and frame_root.screenshot is None
    assert frame_root.find("/html[1]/body[1]/iframe[1]/html[1]/body[1]/h1[1]").attributes == {"text": "Inside"}
    assert root.find("/html[1]/body[1]/iframe[3]").children[0].attributes == {"id": "second"}


def test_frame_query_uses_same_attribute_set(frame_converter):
    frame = make_frame(FRAME_MAP)
    page = make_frame(PAGE_MAP, {"/*[1]/*[1]/*[1]": frame})
    root = convert_page(frame_converter)

    asyncio.run(frame_converter.add_children_from_frames(page, root))

    script, arguments = frame.evaluate.call_args[0]
    assert script == "() => ({})"
    assert arguments == frame_converter.query.arguments(None)


def test_unavailable_frame_is_skipped(frame_converter):
    second = make_frame(FRAME_MAP)
    page = make_frame(
        PAGE_MAP,
        {"/*[1]/*[1]/*[1]": PlaywrightError("Frame was detached"), "/*[1]/*[1]/*[3]": second},
    )
    root = convert_page(frame_converter)
    untouched = convert_page(frame_converter).to_dict()

    attached = asyncio.run(frame_converter.add_children_from_frames(page, root))

    assert attached == 1
    assert root.find("/html[1]/body[1]/iframe[1]").children == []
    assert len(root.find("/html[1]/body[1]/iframe[3]").children) == 1
    assert root.find("/html[1]/body[1]/p[2]").to_dict() == untouched["children"][0]["children"][1]


def test_missing_handle_or_content_frame_is_skipped(frame_converter):
    page = make_frame(PAGE_MAP, {"/*[1]/*[1]/*[3]": None})
    root = convert_page(frame_converter)

    attached = asyncio.run(frame_converter.add_children_from_frames(page, root))

    assert attached == 0
    assert all(not host.children for host in frame_converter.frame_hosts(root))


def test_inconsistent_frame_document_is_contained(frame_converter):
    broken = make_frame({"/html[1]": {"tag": "html"}, "/html[1]/body[1]/div[1]": {"tag": "div"}})
    page = make_frame(PAGE_MAP, {"/*[1]/*[1]/*[1]": broken})
    root = convert_page(frame_converter)

    attached = asyncio.run(frame_converter.add_children_from_frames(page, root))

    assert attached == 0
    assert root.find("/html[1]/body[1]/iframe[1]").children == []


def test_nested_frames_are_resolved_inside_their_own_document(frame_converter):
    inner = make_frame(FRAME_MAP)
    outer = make_frame(
        {
            "/html[1]": {"tag": "html"},
            "/html[1]/body[1]": {"tag": "body"},
            "/html[1]/body[1]/iframe[1]": {"tag": "iframe", "src": "/inner.html"},
        },
        {"/*[1]/*[1]/*[1]": inner},
    )
    page = make_frame(
        {"/html[1]": {"tag": "html"}, "/html[1]/body[1]": {"tag": "body"}, "/html[1]/body[1]/frame[1]": {"tag": "frame"}},
        {"/*[1]/*[1]/*[1]": outer},
    )
    root = convert_page(frame_converter, page.evaluate.return_value)

    attached = asyncio.run(frame_converter.add_children_from_frames(page, root))

    assert attached == 2
    outer.query_selector.assert_awaited_once_with("xpath=/*[1]/*[1]/*[1]")
    nested_host = root.find("/html[1]/body[1]/frame[1]/html[1]/body[1]/iframe[1]")
    assert nested_host is not None
    assert nested_host.children[0].path == "/html[1]/body[1]/frame[1]/html[1]/body[1]/iframe[1]/html[1]"


def test_frame_whose_query_fails_is_skipped_and_siblings_attach(frame_converter):
    destroyed = make_frame(FRAME_MAP)
    destroyed.evaluate = AsyncMock(
        side_effect=PlaywrightError("Execution context was destroyed, most likely because of a navigation")
    )
    second = make_frame(FRAME_MAP)
    page = make_frame(PAGE_MAP, {"/*[1]/*[1]/*[1]": destroyed, "/*[1]/*[1]/*[3]": second})
    root = convert_page(frame_converter)

    attached = asyncio.run(frame_converter.add_children_from_frames(page, root))

    assert attached == 1
    destroyed.evaluate.assert_awaited_once()
    assert root.find("/html[1]/body[1]/iframe[1]").children == []
    assert root.find("/html[1]/body[1]/iframe[3]/html[1]/body[1]/h1[1]").attributes == {"text": "Inside"}
