"""Free-identifier collection and substitution over syntax fragments."""

from __future__ import annotations

from collections.abc import Mapping

from .syntax import ExCall, ExComp, ExDot, Expr, ExH, ExRef, Symbol, to_variant

_RANGE_PLACEHOLDERS = frozenset({":", "end"})
_COMPARISON_OPERATORS = frozenset({"<", ">", "<=", ">=", "==", "!=", ".<", ".>", ".<=", ".>=", ".=="})


def _union_over(items) -> frozenset[str]:
    found: set[str] = set()
    for item in items:
        found |= collect_symbols(item)
    return frozenset(found)


def collect_symbols(fragment: object) -> frozenset[str]:
    """Names of the variables a fragment reads or writes.

    Operator names in call position, field names, range placeholders inside
    indexing and comparison operators are not variables and are left out.
    """
    if isinstance(fragment, Symbol):
        return frozenset({fragment.name})

    if isinstance(fragment, (list, tuple)):
        return _union_over(fragment)

    if isinstance(fragment, Expr):
        return collect_symbols(to_variant(fragment))

    if isinstance(fragment, ExCall):
        return _union_over(fragment.args[1:])

    if isinstance(fragment, ExRef):
        return _union_over(fragment.args) - _RANGE_PLACEHOLDERS

    if isinstance(fragment, ExDot):
        return collect_symbols(fragment.args[0]) if fragment.args else frozenset()

    if isinstance(fragment, ExComp):
        return _union_over(fragment.args) - _COMPARISON_OPERATORS

    if isinstance(fragment, ExH):
        return _union_over(fragment.args)

    return frozenset()


def _is_protected(fragment: object, protected: frozenset[str]) -> bool:
    return isinstance(fragment, Symbol) and fragment.name in protected


def _substitute_all(items, mapping: Mapping[str, str], *, protected: frozenset[str] = frozenset()) -> tuple:
    return tuple(item if _is_protected(item, protected) else substitute_symbols(item, mapping) for item in items)


def substitute_symbols(fragment: object, mapping: Mapping[str, str]):
    """Rename free identifiers of `fragment` through `mapping`.

    Identifiers missing from `mapping` are kept. The result has the same shape
    as the input; the positions skipped by `collect_symbols` are never renamed.
    """
    if isinstance(fragment, Symbol):
        renamed = mapping.get(fragment.name)
        return fragment if renamed is None else Symbol(name=renamed)

    if isinstance(fragment, list):
        return [substitute_symbols(item, mapping) for item in fragment]

    if isinstance(fragment, tuple):
        return tuple(substitute_symbols(item, mapping) for item in fragment)

    if isinstance(fragment, Expr):
        variant = to_variant(fragment)

        if isinstance(variant, ExCall):
            if not variant.args:
                return fragment
            return Expr(head=fragment.head, args=(variant.args[0],) + _substitute_all(variant.args[1:], mapping))

        if isinstance(variant, ExDot):
            if not variant.args:
                return fragment
            return Expr(head=fragment.head, args=(substitute_symbols(variant.args[0], mapping),) + variant.args[1:])

        if isinstance(variant, ExRef):
            return Expr(head=fragment.head, args=_substitute_all(variant.args, mapping, protected=_RANGE_PLACEHOLDERS))

        if isinstance(variant, ExComp):
            return Expr(head=fragment.head, args=_substitute_all(variant.args, mapping, protected=_COMPARISON_OPERATORS))

        return Expr(head=fragment.head, args=_substitute_all(variant.args, mapping))

    return fragment
