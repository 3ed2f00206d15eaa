"""Structured error types for graph construction, rewriting and evaluation."""

from __future__ import annotations


class GraphError(Exception):
    """Base class for structured revdiff-jax errors."""


class CycleError(GraphError):
    """Scheduling found nodes that can never become ready."""

    def __init__(self, unplaced: tuple[int, ...]) -> None:
        self.unplaced = unplaced
        super().__init__(f"probable cycle in graph among nodes {list(unplaced)}")


class GraphIntegrityError(GraphError):
    """A node reference points outside its graph, or a rewrite precondition is broken."""


class ResolutionError(GraphError):
    """Base class for failures of dynamic operation or name resolution."""


class UnresolvedOperationError(ResolutionError):
    """No implementation is registered or reachable for an operation name."""

    def __init__(self, name: str, arg_types: tuple[type, ...] = ()) -> None:
        self.name = name
        self.arg_types = arg_types
        types = ", ".join(t.__name__ for t in arg_types)
        super().__init__(f"cannot resolve operation {name!r} for argument types ({types})")


class UnresolvedNameError(ResolutionError):
    """An external reference is neither bound nor ambient."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"undefined external name {name!r}")


class UnmappedSymbolWarning(UserWarning):
    """A spliced graph kept an external reference the rename map did not bind."""
