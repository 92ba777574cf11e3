"""
The device firmware prints one reading per line as plain decimal ASCII,
e.g. ``"512.00\\r\\n"``. Nothing else is framed: no header, no checksum.

:class:`LineAssembler` turns arbitrary read chunks into complete lines and
:func:`parse_reading` validates one line.
"""

from __future__ import annotations

import re
from typing import List, Optional

# Sign, digits with an optional decimal point, optional exponent. Rejects
# nan/inf and underscore separators that float() would otherwise accept.
_DECIMAL_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def parse_reading(line: str) -> Optional[float]:
    """Return the value on ``line`` or ``None`` when it is not a decimal number."""
    text = line.strip()
    if not _DECIMAL_RE.fullmatch(text):
        return None
    return float(text)


class LineAssembler:
    """Accumulate raw bytes and yield newline-terminated lines."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding
        self._pending = bytearray()

    def feed(self, data: bytes) -> List[str]:
        """Add ``data`` and return every line completed by it (without ``\\n``)."""
        if not data:
            return []
        self._pending.extend(data)
        lines: List[str] = []
        while True:
            idx = self._pending.find(b"\n")
            if idx < 0:
                break
            raw = bytes(self._pending[:idx])
            del self._pending[: idx + 1]
            lines.append(raw.decode(self._encoding, errors="replace"))
        return lines

    @property
    def pending(self) -> bytes:
        """Bytes received after the last newline."""
        return bytes(self._pending)

    def reset(self) -> None:
        self._pending.clear()
