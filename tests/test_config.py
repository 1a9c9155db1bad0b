import sys
from pathlib import Path

import pytest

PROJECT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from qa_snapshot.config import ATTRIBUTES_FILE_ENV, DEFAULTS_FILE_ENV, load_config  # noqa: E402
from qa_snapshot.exceptions import ConfigurationError  # noqa: E402


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    monkeypatch.delenv(ATTRIBUTES_FILE_ENV, raising=False)
    monkeypatch.delenv(DEFAULTS_FILE_ENV, raising=False)


def test_bundled_configuration():
    config = load_config()
    assert "color" in config.css_attributes
    assert "class" in config.html_attributes
    assert "id" in config.identity_attributes
    assert "x" not in config.identity_attributes
    assert config.frame_tags == ("iframe", "frame")
    assert config.default_rules["a"]["cursor"] == "pointer"
    assert config.screenshot_full_page is True


def test_default_rules_are_read_only():
    config = load_config()
    with pytest.raises(TypeError):
        config.default_rules["all"]["color"] = "red"  # type: ignore[index]


def test_explicit_files(tmp_path):
    attributes = tmp_path / "attributes.yaml"
    attributes.write_text(
        "css_attributes: [Color, color, display]\n"
        "identity_attributes: id\n"
        "screenshot_full_page: false\n",
        encoding="utf-8",
    )
    defaults = tmp_path / "defaults.yaml"
    defaults.write_text("DIV:\n  Display: block\nspan:\n", encoding="utf-8")

    config = load_config(attributes, defaults)

    assert config.css_attributes == ("color", "display")
    assert config.identity_attributes == ("id",)
    assert config.html_attributes == ()
    assert config.frame_tags == ("iframe", "frame")
    assert dict(config.default_rules) == {"div": {"display": "block"}}
    assert config.screenshot_full_page is False


def test_environment_override(tmp_path, monkeypatch):
    attributes = tmp_path / "custom.yaml"
    attributes.write_text("css_attributes: [opacity]\nframe_tags: [iframe]\n", encoding="utf-8")
    monkeypatch.setenv(ATTRIBUTES_FILE_ENV, str(attributes))

    config = load_config()

    assert config.css_attributes == ("opacity",)
    assert config.frame_tags == ("iframe",)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="Unable to read"):
        load_config(tmp_path / "nope.yaml")


@pytest.mark.parametrize(
    "content",
    [
        "css_attributes: [color\n",
        "- just\n- a list\n",
        "css_attributes: {color: red}\n",
        "css_attributes: [color, 3]\n",
        "screenshot_full_page: sometimes\n",
    ],
)
def test_invalid_attribute_files(tmp_path, content):
    path = tmp_path / "attributes.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(path)


def test_invalid_default_rules(tmp_path):
    path = tmp_path / "defaults.yaml"
    path.write_text("div: block\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="div"):
        load_config(defaults_path=path)
