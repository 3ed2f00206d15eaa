"""Dynamic operation and name resolution backed by `jax.numpy`."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from functools import reduce
from types import ModuleType

import jax.numpy as jnp

from .errors import UnresolvedNameError, UnresolvedOperationError


@dataclass(frozen=True)
class _Overload:
    impl: Callable
    types: tuple[type, ...] | None = None

    def accepts(self, args: Sequence[object]) -> bool:
        if self.types is None:
            return True
        if len(self.types) != len(args):
            return False
        return all(isinstance(arg, typ) for arg, typ in zip(args, self.types, strict=True))


class OperationRegistry:
    """Maps operation names (and operand types) to implementations.

    Lookup order for `resolve`: typed overloads in registration order, then the
    untyped overload, then an attribute of the fallback module. Ambient names
    (`lookup`) come from `define` first, then the fallback module.
    """

    def __init__(self, *, fallback: ModuleType | None = jnp) -> None:
        self._overloads: dict[str, list[_Overload]] = {}
        self._names: dict[str, object] = {}
        self.fallback = fallback

    def register(self, name: str, impl: Callable, *, types: tuple[type, ...] | None = None) -> None:
        overload = _Overload(impl=impl, types=None if types is None else tuple(types))
        entries = self._overloads.setdefault(name, [])
        if overload.types is None:
            entries[:] = [entry for entry in entries if entry.types is not None]
        entries.append(overload)

    def define(self, name: str, value: object) -> None:
        self._names[name] = value

    def __contains__(self, name: object) -> bool:
        return name in self._overloads or name in self._names

    def _fallback_attr(self, name: str):
        if self.fallback is None or not name.isidentifier():
            return None
        return getattr(self.fallback, name, None)

    def resolve(self, name: object, args: Sequence[object]) -> Callable:
        key = str(name)
        entries = self._overloads.get(key, ())
        for entry in entries:
            if entry.types is not None and entry.accepts(args):
                return entry.impl
        for entry in entries:
            if entry.types is None:
                return entry.impl
        impl = self._fallback_attr(key)
        if callable(impl):
            return impl
        raise UnresolvedOperationError(key, tuple(type(arg) for arg in args))

    def call(self, name: object, args: Sequence[object]) -> object:
        return self.resolve(name, args)(*args)

    def lookup(self, name: str) -> object:
        if name in self._names:
            return self._names[name]
        value = self._fallback_attr(name)
        if value is None:
            raise UnresolvedNameError(name)
        return value


def _as_array(value):
    if isinstance(value, jnp.ndarray):
        return value
    return jnp.asarray(value)


def _nary(binary: Callable, *, unary: Callable | None = None) -> Callable:
    def apply(*args):
        if not args:
            raise TypeError("operation needs at least one operand")
        if len(args) == 1:
            return _as_array(args[0]) if unary is None else unary(args[0])
        return reduce(binary, args)

    return apply


def _minus(*args):
    if len(args) == 1:
        return jnp.negative(args[0])
    if len(args) == 2:
        return jnp.subtract(args[0], args[1])
    raise TypeError(f"'-' takes one or two operands, got {len(args)}")


def _filled(fill: Callable, like: Callable) -> Callable:
    def build(*dims):
        # 0-d arrays are dimensions; only arrays of rank >= 1 take the *_like path
        if len(dims) == 1 and jnp.ndim(dims[0]) > 0:
            return like(_as_array(dims[0]))
        return fill(tuple(int(d) for d in dims))

    return build


def _vcat(*args):
    return jnp.concatenate([jnp.atleast_1d(_as_array(arg)) for arg in args])


def default_registry() -> OperationRegistry:
    registry = OperationRegistry()
    registry.register("+", _nary(jnp.add))
    registry.register("-", _minus)
    registry.register("*", lambda w, x: w + x, types=(str, str))
    registry.register("*", _nary(jnp.multiply))
    registry.register("/", jnp.divide)
    registry.register("^", lambda w, x: w * x, types=(str, int))
    registry.register("^", jnp.power)
    registry.register(".*", jnp.multiply)
    registry.register("./", jnp.divide)
    registry.register(".^", jnp.power)
    registry.register("sum", _nary(jnp.add, unary=jnp.sum))
    registry.register("min", _nary(jnp.minimum, unary=jnp.min))
    registry.register("max", _nary(jnp.maximum, unary=jnp.max))
    registry.register("<", jnp.less)
    registry.register(">", jnp.greater)
    registry.register("<=", jnp.less_equal)
    registry.register(">=", jnp.greater_equal)
    registry.register("==", jnp.equal)
    registry.register("!=", jnp.not_equal)
    registry.register("zeros", _filled(jnp.zeros, jnp.zeros_like))
    registry.register("ones", _filled(jnp.ones, jnp.ones_like))
    registry.register("vcat", _vcat)
    registry.register("'", jnp.transpose)
    registry.define("pi", jnp.pi)
    registry.define("e", jnp.e)
    registry.define("inf", jnp.inf)
    registry.define("nan", jnp.nan)
    return registry
