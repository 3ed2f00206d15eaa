"""revdiff-jax public API."""

from .config import FoldPolicy
from .errors import (
    CycleError,
    GraphError,
    GraphIntegrityError,
    ResolutionError,
    UnmappedSymbolWarning,
    UnresolvedNameError,
    UnresolvedOperationError,
)
from .graph import UNSET, ExGraph, ExNode, LoopPayload, NodeKind, add_node, ancestors, dependencies
from .naming import NameCounter, dprefix
from .render import to_dot
from .symbols import collect_symbols, substitute_symbols
from .syntax import Expr, ExH, Symbol, ex, is_dot, is_ref, is_symbol, sym, to_expr, to_variant

try:
    from .operations import OperationRegistry, default_registry
    from .passes import add_graph, calc, evalconstants, evalsort, fusenodes, optimize, prune, splitnary
except ModuleNotFoundError as exc:
    if exc.name and exc.name.startswith("jax"):
        _jax_import_error = exc

        def _requires_jax(name: str):
            def missing(*_args, **_kwargs):
                raise ModuleNotFoundError(
                    f"jax is required for {name}(). Install runtime deps first."
                ) from _jax_import_error

            missing.__name__ = name
            return missing

        OperationRegistry = _requires_jax("OperationRegistry")
        default_registry = _requires_jax("default_registry")
        add_graph = _requires_jax("add_graph")
        calc = _requires_jax("calc")
        evalconstants = _requires_jax("evalconstants")
        evalsort = _requires_jax("evalsort")
        fusenodes = _requires_jax("fusenodes")
        optimize = _requires_jax("optimize")
        prune = _requires_jax("prune")
        splitnary = _requires_jax("splitnary")
    else:
        raise

__all__ = [
    "Expr",
    "ExH",
    "Symbol",
    "ex",
    "sym",
    "to_variant",
    "to_expr",
    "is_symbol",
    "is_dot",
    "is_ref",
    "collect_symbols",
    "substitute_symbols",
    "NameCounter",
    "dprefix",
    "NodeKind",
    "ExNode",
    "ExGraph",
    "LoopPayload",
    "UNSET",
    "add_node",
    "ancestors",
    "dependencies",
    "OperationRegistry",
    "default_registry",
    "splitnary",
    "fusenodes",
    "evalconstants",
    "prune",
    "evalsort",
    "calc",
    "add_graph",
    "optimize",
    "to_dot",
    "FoldPolicy",
    "GraphError",
    "CycleError",
    "GraphIntegrityError",
    "ResolutionError",
    "UnresolvedOperationError",
    "UnresolvedNameError",
    "UnmappedSymbolWarning",
]
