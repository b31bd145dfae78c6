from __future__ import annotations

from dataclasses import dataclass, field

MIN_BARCODE_LENGTH = 4
ENTER_KEYS = {"Enter", "\n", "\r"}


@dataclass
class BarcodeScanBuffer:
    """Tell a hardware scanner apart from a person typing.

    Scanners emit keys faster than ``max_interval_ms`` apart and finish with
    Enter. A slower key starts a new buffer, so manual typing never reaches
    the threshold.
    """

    max_interval_ms: float = 50
    _buffer: list[str] = field(default_factory=list)
    _last_key_at: float | None = None

    def feed(self, key: str, at_ms: float) -> str | None:
        previous = self._last_key_at
        self._last_key_at = at_ms
        if key in ENTER_KEYS:
            code = "".join(self._buffer)
            self._buffer = []
            return code if len(code) >= MIN_BARCODE_LENGTH else None
        if len(key) != 1:
            return None
        if previous is not None and at_ms - previous < self.max_interval_ms:
            self._buffer.append(key)
        else:
            self._buffer = [key]
        return None

    def reset(self) -> None:
        self._buffer = []
        self._last_key_at = None
