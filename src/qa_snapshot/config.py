import os
from dataclasses import dataclass, field
from functools import lru_cache
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from qa_snapshot.exceptions import ConfigurationError


REPO_ROOT = Path(__file__).resolve().parents[2]

load_dotenv(REPO_ROOT / ".env")

OUTPUT_DIR = Path(os.getenv("QA_SNAPSHOT_OUTPUT_DIR") or REPO_ROOT / "output")
SNAPSHOT_DIR = OUTPUT_DIR / "snapshots"
FAILED_URLS_PATH = OUTPUT_DIR / "failed_urls.json"

ATTRIBUTES_FILE_ENV = "QA_SNAPSHOT_ATTRIBUTES_FILE"
DEFAULTS_FILE_ENV = "QA_SNAPSHOT_DEFAULTS_FILE"

DEFAULT_FRAME_TAGS = ("iframe", "frame")


@dataclass(frozen=True)
class SnapshotConfig:
    """Attribute sets and default-value rules shared by every capture."""

    css_attributes: tuple[str, ...] = ()
    html_attributes: tuple[str, ...] = ()
    identity_attributes: tuple[str, ...] = ()
    frame_tags: tuple[str, ...] = DEFAULT_FRAME_TAGS
    default_rules: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    screenshot_full_page: bool = True


def ensure_data_directories() -> None:
    """Ensure on-disk directories required by loggers exist."""

    for path in (OUTPUT_DIR, SNAPSHOT_DIR):
        path.mkdir(parents=True, exist_ok=True)


def _read_yaml(path: Path | None, bundled_name: str) -> dict[str, Any]:
    try:
        if path is None:
            text = resources.files("qa_snapshot.resources").joinpath(bundled_name).read_text(encoding="utf-8")
            source = f"bundled {bundled_name}"
        else:
            text = Path(path).read_text(encoding="utf-8")
            source = str(path)
    except OSError as exc:
        raise ConfigurationError(f"Unable to read configuration {path or bundled_name}: {exc}") from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {source}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a mapping at the top of {source}, got {type(data).__name__}")
    return data


def _string_tuple(data: Mapping[str, Any], key: str, default: tuple[str, ...] = ()) -> tuple[str, ...]:
    raw = data.get(key)
    if raw is None:
        return default
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        raise ConfigurationError(f"'{key}' must be a list of names")

    names: list[str] = []
    seen: set[str] = set()
    for item in raw:
        if not isinstance(item, str) or not item.strip():
            raise ConfigurationError(f"'{key}' contains an invalid entry: {item!r}")
        name = item.strip().lower()
        if name in seen:
            continue
        seen.add(name)
        names.append(name)
    return tuple(names)


def _default_rules(data: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    rules: dict[str, dict[str, Any]] = {}
    for tag, values in data.items():
        if values is None:
            continue
        if not isinstance(values, dict):
            raise ConfigurationError(f"Default values for '{tag}' must be a mapping")
        rules[str(tag).strip().lower()] = {str(name).strip().lower(): value for name, value in values.items()}
    return rules


def _resolve(explicit: str | Path | None, env_name: str) -> Path | None:
    if explicit:
        return Path(explicit)
    from_env = os.getenv(env_name)
    if from_env:
        return Path(from_env)
    return None


def load_config(
    attributes_path: str | Path | None = None,
    defaults_path: str | Path | None = None,
) -> SnapshotConfig:
    """Load attribute and default-value configuration from YAML.

    Falls back to the environment variables, then to the files bundled in
    ``qa_snapshot/resources``.
    """

    attributes = _read_yaml(_resolve(attributes_path, ATTRIBUTES_FILE_ENV), "attributes.yaml")
    defaults = _read_yaml(_resolve(defaults_path, DEFAULTS_FILE_ENV), "defaults.yaml")

    full_page = attributes.get("screenshot_full_page", True)
    if not isinstance(full_page, bool):
        raise ConfigurationError("'screenshot_full_page' must be true or false")

    return SnapshotConfig(
        css_attributes=_string_tuple(attributes, "css_attributes"),
        html_attributes=_string_tuple(attributes, "html_attributes"),
        identity_attributes=_string_tuple(attributes, "identity_attributes"),
        frame_tags=_string_tuple(attributes, "frame_tags", DEFAULT_FRAME_TAGS),
        default_rules=MappingProxyType(
            {tag: MappingProxyType(values) for tag, values in _default_rules(defaults).items()}
        ),
        screenshot_full_page=full_page,
    )


@lru_cache(maxsize=1)
def get_config() -> SnapshotConfig:
    return load_config()
