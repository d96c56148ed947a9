"""Saving and loading timelines.

A timeline is written as the plain tree produced by Timeline.to_dict(). The
file extension picks the format: .yaml/.yml for YAML, .json for JSON.
"""
import json
from pathlib import Path
from typing import Any, Union

import yaml

from ..core.engine.timeline import Timeline

YAML_SUFFIXES = (".yaml", ".yml")
JSON_SUFFIXES = (".json",)

FORMAT_VERSION = 1


def _file_format(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix in YAML_SUFFIXES:
        return "yaml"
    if suffix in JSON_SUFFIXES:
        return "json"
    raise ValueError(f"Unsupported timeline file type: {path.suffix or '(none)'}")


def dump_timeline(timeline: Timeline, fmt: str = "yaml") -> str:
    """Serialize a timeline to YAML or JSON text."""
    data: dict[str, Any] = {"format_version": FORMAT_VERSION, "timeline": timeline.to_dict()}
    if fmt == "json":
        return json.dumps(data, indent=2)
    if fmt == "yaml":
        return yaml.safe_dump(data, sort_keys=False)
    raise ValueError(f"Unknown timeline format: {fmt}")


def parse_timeline(text: str, fmt: str = "yaml") -> Timeline:
    """Parse YAML or JSON text produced by dump_timeline.

    Raises:
        ValueError: If the text is not a valid timeline document
    """
    try:
        data = json.loads(text) if fmt == "json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValueError(f"Failed to parse timeline: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Timeline document must be a mapping")
    # Bare timeline trees are accepted as well as the versioned wrapper
    tree = data.get("timeline", data)
    if not isinstance(tree, dict):
        raise ValueError("Timeline document must contain a mapping")
    try:
        return Timeline.from_dict(tree)
    except (KeyError, TypeError) as e:
        raise ValueError(f"Invalid timeline data: {e}") from e


def save_timeline(timeline: Timeline, path: Union[str, Path]) -> Path:
    """Write a timeline to disk, choosing the format from the extension.

    Returns:
        The path written
    """
    path = Path(path)
    text = dump_timeline(timeline, _file_format(path))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def load_timeline(path: Union[str, Path]) -> Timeline:
    """Read a timeline written by save_timeline.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file type is unsupported or the content is invalid
    """
    path = Path(path)
    fmt = _file_format(path)
    text = path.read_text(encoding="utf-8")
    return parse_timeline(text, fmt)
