"""YAML documents on disk: reading, rendering and crash-safe writing.

The polylines writer must never leave a half-written file where a reader
could pick it up, so writes go to a temporary file in the target directory
and are moved into place with os.replace() once flushed to disk.

Rendering keeps document key order and writes each [x, y] point inline,
so a polylines.v1 file has one vertex per line.

Usage:
    from bezier_flatten.utils import fs

    fs.atomic_yaml_dump(result.to_yaml_dict(), "outputs/polylines.yaml")
    data = fs.load_yaml("configs/subdivider.v1.yaml")
"""

import os
import tempfile
from pathlib import Path
from typing import Any, Union

import yaml


def dump_yaml_str(data: Any) -> str:
    """Render data as block YAML with innermost lists (points) in flow style."""
    return yaml.safe_dump(data, default_flow_style=None, sort_keys=False, allow_unicode=True)


def atomic_write_text(path: Union[str, Path], text: str) -> None:
    """Replace ``path`` with ``text`` (UTF-8) in a single rename.

    Missing parent directories are created. On failure the temporary file
    is removed and RuntimeError is raised from the underlying OSError.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except OSError as e:
        Path(tmp_name).unlink(missing_ok=True)
        raise RuntimeError(f"Failed to write {path} atomically: {e}") from e


def atomic_yaml_dump(data: Any, path: Union[str, Path]) -> None:
    """Write data as a YAML document via atomic_write_text()."""
    atomic_write_text(path, dump_yaml_str(data))


def load_yaml(path: Union[str, Path]) -> Any:
    """Parse a YAML file with safe_load.

    Raises FileNotFoundError if missing and yaml.YAMLError if malformed;
    an empty file gives None.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"YAML file not found: {path}")
    with path.open('r', encoding='utf-8') as f:
        return yaml.safe_load(f)
