"""Environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass

_DEFAULT_NON_FOLDABLE = ("zeros", "ones", "vcat")

TEMP_NAME = os.environ.get("REVDIFF_JAX_TEMP_NAME", "_tmp")
DERIV_PREFIX = os.environ.get("REVDIFF_JAX_DERIV_PREFIX", "d")


def _parse_name_list(raw: str) -> frozenset[str]:
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class FoldPolicy:
    """Constant-folding policy.

    - `non_foldable`: call names that keep their call shape even when every
      operand is a constant (allocation-like constructors later rules match on).
    """

    non_foldable: frozenset[str] = frozenset(_DEFAULT_NON_FOLDABLE)

    @classmethod
    def from_env(cls) -> "FoldPolicy":
        raw = os.environ.get("REVDIFF_JAX_NON_FOLDABLE")
        if raw is None:
            return cls()
        return cls(non_foldable=_parse_name_list(raw))

    def allows(self, name: object) -> bool:
        return name not in self.non_foldable
