from __future__ import annotations

import unittest

from revdiff_jax.symbols import collect_symbols, substitute_symbols
from revdiff_jax.syntax import (
    ExCall,
    ExComp,
    ExDot,
    ExFor,
    ExH,
    ExPEqual,
    ExRef,
    ExTrans,
    Expr,
    ex,
    is_dot,
    is_ref,
    is_symbol,
    sym,
    to_expr,
    to_variant,
)


def _sample_fragments() -> list[object]:
    return [
        ex("call", sym("f"), sym("x"), ex("call", sym("g"), sym("y"), 2)),
        ex("ref", sym("A"), sym(":"), sym("end"), sym("i")),
        ex(".", sym("obj"), sym("field")),
        ex("comparison", sym("a"), sym("<"), sym("b"), sym("<="), sym("c")),
        ex(
            "block",
            ex("line", 3),
            ex("=", sym("y"), ex("call", sym("*"), sym("x"), 2.5)),
            ex("+=", sym("acc"), ex("'", sym("M"))),
        ),
        ex(
            "for",
            ex("=", sym("i"), ex("call", sym(":"), 1, sym("n"))),
            ex("block", ex("-=", sym("s"), ex("ref", sym("v"), sym("i")))),
        ),
        ex("if", ex("comparison", sym("p"), sym("=="), 0), ex("vcat", sym("q"), sym("r"))),
        [sym("u"), (sym("w"), 1)],
    ]


class SyntaxVariantTests(unittest.TestCase):
    def test_variants_follow_head(self) -> None:
        cases = [
            (ex("call", sym("+"), sym("a")), ExCall),
            (ex("ref", sym("a"), 1), ExRef),
            (ex(".", sym("a"), sym("b")), ExDot),
            (ex("comparison", sym("a"), sym(">"), sym("b")), ExComp),
            (ex("for", sym("r"), sym("body")), ExFor),
            (ex("+=", sym("a"), 1), ExPEqual),
            (ex("'", sym("a")), ExTrans),
        ]
        for fragment, expected in cases:
            with self.subTest(head=fragment.head):
                variant = to_variant(fragment)
                self.assertIs(type(variant), expected)
                self.assertEqual(variant.args, fragment.args)

    def test_unknown_head_uses_generic_variant(self) -> None:
        variant = to_variant(ex("macrocall", sym("m"), sym("x")))
        self.assertIs(type(variant), ExH)
        self.assertEqual(variant.head, "macrocall")

    def test_round_trip_keeps_fragment(self) -> None:
        for fragment in _sample_fragments():
            if isinstance(fragment, Expr):
                with self.subTest(head=fragment.head):
                    self.assertEqual(to_expr(to_variant(fragment)), fragment)

    def test_shape_predicates(self) -> None:
        self.assertTrue(is_symbol(sym("x")))
        self.assertFalse(is_symbol("x"))
        self.assertTrue(is_dot(ex(".", sym("a"), sym("b"))))
        self.assertFalse(is_dot(ex(".", ex("call", sym("f")), sym("b"))))
        self.assertTrue(is_ref(ex("ref", sym("a"), 1)))
        self.assertFalse(is_ref(ex("ref", ex("ref", sym("a"), 1), 2)))
        self.assertFalse(is_ref(sym("a")))


class CollectSymbolsTests(unittest.TestCase):
    def test_base_cases(self) -> None:
        self.assertEqual(collect_symbols(sym("x")), {"x"})
        self.assertEqual(collect_symbols(3), frozenset())
        self.assertEqual(collect_symbols("text"), frozenset())
        self.assertEqual(collect_symbols(None), frozenset())
        self.assertEqual(collect_symbols([sym("a"), (sym("b"), 2)]), {"a", "b"})

    def test_call_skips_operation_name(self) -> None:
        fragment = ex("call", sym("f"), sym("x"), ex("call", sym("g"), sym("y"), 2))
        self.assertEqual(collect_symbols(fragment), {"x", "y"})

    def test_ref_drops_range_placeholders(self) -> None:
        fragment = ex("ref", sym("A"), sym(":"), sym("end"), sym("i"))
        self.assertEqual(collect_symbols(fragment), {"A", "i"})

    def test_dot_returns_only_base(self) -> None:
        self.assertEqual(collect_symbols(ex(".", sym("obj"), sym("field"))), {"obj"})

    def test_comparison_drops_operators(self) -> None:
        fragment = ex("comparison", sym("a"), sym("<"), sym("b"), sym(".>="), sym("c"))
        self.assertEqual(collect_symbols(fragment), {"a", "b", "c"})

    def test_statements_collect_targets_and_sources(self) -> None:
        fragment = ex(
            "block",
            ex("line", 3),
            ex("=", sym("y"), ex("call", sym("*"), sym("x"), 2.5)),
            ex("+=", sym("acc"), ex("'", sym("M"))),
        )
        self.assertEqual(collect_symbols(fragment), {"y", "x", "acc", "M"})

    def test_unlisted_form_falls_back_to_argument_recursion(self) -> None:
        # Coverage gap: heads without a dedicated variant are treated as plain
        # argument lists, so a binding form like `let` reports its bound name.
        fragment = ex("let", ex("=", sym("t"), 1), sym("t"))
        self.assertEqual(collect_symbols(fragment), {"t"})


class SubstituteSymbolsTests(unittest.TestCase):
    def test_renames_free_identifiers(self) -> None:
        fragment = ex("=", sym("y"), ex("call", sym("f"), sym("x"), sym("z")))
        renamed = substitute_symbols(fragment, {"x": "u", "y": "v", "f": "F"})
        self.assertEqual(renamed, ex("=", sym("v"), ex("call", sym("f"), sym("u"), sym("z"))))

    def test_field_names_are_not_renamed(self) -> None:
        renamed = substitute_symbols(ex(".", sym("obj"), sym("field")), {"obj": "o2", "field": "bad"})
        self.assertEqual(renamed, ex(".", sym("o2"), sym("field")))

    def test_range_placeholders_and_comparison_operators_are_kept(self) -> None:
        ref = substitute_symbols(ex("ref", sym("A"), sym(":"), sym("i")), {":": "bad", "i": "j"})
        self.assertEqual(ref, ex("ref", sym("A"), sym(":"), sym("j")))
        comp = substitute_symbols(ex("comparison", sym("a"), sym("<"), sym("b")), {"<": "bad", "a": "x"})
        self.assertEqual(comp, ex("comparison", sym("x"), sym("<"), sym("b")))

    def test_preserves_container_types_and_literals(self) -> None:
        renamed = substitute_symbols([sym("a"), (sym("b"), 2), "a"], {"a": "c", "b": "d"})
        self.assertEqual(renamed, [sym("c"), (sym("d"), 2), "a"])

    def test_renaming_is_complete(self) -> None:
        for fragment in _sample_fragments():
            found = collect_symbols(fragment)
            mapping = {name: f"{name}_r" for name in sorted(found)[::2]}
            with self.subTest(fragment=fragment):
                expected = {mapping.get(name, name) for name in found}
                self.assertEqual(collect_symbols(substitute_symbols(fragment, mapping)), expected)


if __name__ == "__main__":
    unittest.main()
