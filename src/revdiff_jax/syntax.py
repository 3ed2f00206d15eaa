"""Raw syntax fragments and their head-tagged variants."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class Symbol:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Expr:
    """Untagged syntax node: a head and its argument tuple."""

    head: str
    args: tuple = ()


def ex(head: str, *args) -> Expr:
    return Expr(head=head, args=tuple(args))


def sym(name: str) -> Symbol:
    return Symbol(name=name)


@dataclass(frozen=True)
class ExH:
    """Syntax node tagged by its head.

    Subclasses exist for the heads analyses dispatch on; any other head is
    carried by `ExH` itself. `args` is the original argument tuple.
    """

    head: str
    args: tuple
    HEAD: ClassVar[str | None] = None


@dataclass(frozen=True)
class ExEqual(ExH):
    HEAD: ClassVar[str] = "="


@dataclass(frozen=True)
class ExDColon(ExH):
    HEAD: ClassVar[str] = "::"


@dataclass(frozen=True)
class ExPEqual(ExH):
    HEAD: ClassVar[str] = "+="


@dataclass(frozen=True)
class ExMEqual(ExH):
    HEAD: ClassVar[str] = "-="


@dataclass(frozen=True)
class ExTEqual(ExH):
    HEAD: ClassVar[str] = "*="


@dataclass(frozen=True)
class ExTrans(ExH):
    HEAD: ClassVar[str] = "'"


@dataclass(frozen=True)
class ExCall(ExH):
    HEAD: ClassVar[str] = "call"


@dataclass(frozen=True)
class ExBlock(ExH):
    HEAD: ClassVar[str] = "block"


@dataclass(frozen=True)
class ExLine(ExH):
    HEAD: ClassVar[str] = "line"


@dataclass(frozen=True)
class ExVcat(ExH):
    HEAD: ClassVar[str] = "vcat"


@dataclass(frozen=True)
class ExFor(ExH):
    HEAD: ClassVar[str] = "for"


@dataclass(frozen=True)
class ExRef(ExH):
    HEAD: ClassVar[str] = "ref"


@dataclass(frozen=True)
class ExIf(ExH):
    HEAD: ClassVar[str] = "if"


@dataclass(frozen=True)
class ExComp(ExH):
    HEAD: ClassVar[str] = "comparison"


@dataclass(frozen=True)
class ExDot(ExH):
    HEAD: ClassVar[str] = "."


_VARIANTS: dict[str, type[ExH]] = {
    cls.HEAD: cls
    for cls in (
        ExEqual,
        ExDColon,
        ExPEqual,
        ExMEqual,
        ExTEqual,
        ExTrans,
        ExCall,
        ExBlock,
        ExLine,
        ExVcat,
        ExFor,
        ExRef,
        ExIf,
        ExComp,
        ExDot,
    )
}


def to_variant(expr: Expr) -> ExH:
    cls = _VARIANTS.get(expr.head, ExH)
    return cls(head=expr.head, args=expr.args)


def to_expr(variant: ExH) -> Expr:
    return Expr(head=variant.head, args=variant.args)


def is_symbol(fragment: object) -> bool:
    return isinstance(fragment, Symbol)


def is_dot(fragment: object) -> bool:
    """`base.field` where `base` is a plain identifier."""
    return isinstance(fragment, Expr) and fragment.head == "." and bool(fragment.args) and is_symbol(fragment.args[0])


def is_ref(fragment: object) -> bool:
    """`base[...]` where `base` is a plain identifier."""
    return isinstance(fragment, Expr) and fragment.head == "ref" and bool(fragment.args) and is_symbol(fragment.args[0])
