"""Fresh variable names for generated code."""

from __future__ import annotations

from collections import Counter

from .config import DERIV_PREFIX, TEMP_NAME


def dprefix(name: object) -> str:
    """Name of the derivative accumulator for `name`."""
    return f"{DERIV_PREFIX}{name}"


class NameCounter:
    """Per-radix counters handing out `radix1`, `radix2`, ...

    One instance belongs to one compilation; `reset()` starts numbering over
    so names stay short and deterministic within a run.
    """

    def __init__(self) -> None:
        self._counts: Counter[str] = Counter()

    def new(self, radix: str = TEMP_NAME) -> str:
        self._counts[radix] += 1
        return f"{radix}{self._counts[radix]}"

    def reset(self) -> None:
        self._counts.clear()

    def count(self, radix: str = TEMP_NAME) -> int:
        return self._counts[radix]
