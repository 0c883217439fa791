"""Local block-device discovery from a partitions-style text file."""

from __future__ import annotations

import re
from pathlib import Path


def device_pattern(prefix: str) -> re.Pattern[str]:
    """Match lines ending in whitespace + ``prefix`` + ASCII word characters.

    The capture group includes the prefix itself, so ``xvdb`` is captured
    whole for prefix ``xvd``.
    """
    return re.compile(rf"^.+?\s({re.escape(prefix)}\w+)$", re.ASCII)


def list_local_devices(path: str | Path, prefix: str) -> list[str]:
    """Return ``/dev/<name>`` for each line of ``path`` naming a device with ``prefix``.

    Raises ``OSError`` if the file cannot be read.
    """
    text = Path(path).read_text()
    rx = device_pattern(prefix)
    devices: list[str] = []
    for line in text.splitlines():
        m = rx.match(line)
        if m:
            devices.append(f"/dev/{m.group(1)}")
    return devices
