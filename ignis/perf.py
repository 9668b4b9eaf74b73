"""Server timing entries for the Server-Timing header."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True)
class Timing:
    """One metric of a Server-Timing header."""

    name: str
    desc: str = ""
    dur: timedelta = timedelta(0)

    def _milliseconds(self) -> int:
        micro = (self.dur.days * 86_400 + self.dur.seconds) * 1_000_000 + self.dur.microseconds
        sign = -1 if micro < 0 else 1
        return sign * (abs(micro) // 1000)

    def __str__(self) -> str:
        text = f"{self.name};dur={self._milliseconds()}"
        if self.desc:
            text += f';desc="{self.desc}"'
        return text