# flowbuilder/visual/files.py
"""Saving and loading flow project files."""

import asyncio
import json
import time
from pathlib import Path
from typing import Any, Optional, Union


def export_filename(prefix: str = "flow", timestamp_ms: Optional[int] = None) -> str:
    """File name for a manual download: ``<prefix>-<epoch millis>.json``."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{prefix}-{timestamp_ms}.json"


def write_json(data: Any, directory: Union[str, Path], prefix: str = "flow") -> Path:
    """Write data as indented JSON into a new timestamped file."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    path = directory / export_filename(prefix)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


async def read_json_file(path: Union[str, Path]) -> Any:
    """Read and parse a JSON file without blocking the event loop."""
    path = Path(path)
    loop = asyncio.get_running_loop()
    content = await loop.run_in_executor(None, path.read_text, "utf-8")
    return json.loads(content)
