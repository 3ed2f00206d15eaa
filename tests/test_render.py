from __future__ import annotations

import unittest

from revdiff_jax.graph import ExGraph, LoopPayload, NodeKind
from revdiff_jax.render import to_dot


class DotRenderTests(unittest.TestCase):
    def test_plain_graph(self) -> None:
        g = ExGraph()
        x = g.add_node(NodeKind.EXTERNAL, "x")
        c = g.add_node(NodeKind.CONSTANT, 2)
        prod = g.add_node(NodeKind.CALL, "*", [x, c])
        g.exitnodes["out"] = prod.id

        dot = to_dot(g)

        self.assertTrue(dot.startswith("digraph gp {"))
        self.assertTrue(dot.rstrip().endswith("}"))
        self.assertIn('n1 [label="x", shape=circle, style=filled, fillcolor=orange];', dot)
        self.assertIn('n2 [label="2", shape=square, style=filled, fillcolor=lightgreen];', dot)
        self.assertIn('n3 [label="*", shape=box, style=filled, fillcolor=lightblue];', dot)
        self.assertIn("n1 -> n3;", dot)
        self.assertIn("n2 -> n3;", dot)
        self.assertIn('[label="out", shape=note', dot)
        self.assertIn("n3 -> x4 [style=dotted];", dot)

    def test_loops_render_as_clusters_with_dotted_inmap_edges(self) -> None:
        host = ExGraph()
        a = host.add_node(NodeKind.EXTERNAL, "a")
        body = ExGraph()
        inner = body.add_node(NodeKind.EXTERNAL, "a")
        step = body.add_node(NodeKind.CALL, "sin", [inner])
        nested_body = ExGraph()
        nested_body.add_node(NodeKind.WITHIN)
        body.add_node(NodeKind.FOR, LoopPayload(var="j", body=nested_body))
        host.add_node(NodeKind.FOR, LoopPayload(var="i", body=body, inmap={inner.id: a.id}))

        dot = to_dot(host)

        self.assertIn("subgraph cluster_2 {", dot)
        self.assertIn('label="for i"; color=pink;', dot)
        self.assertIn("subgraph cluster_4 {", dot)
        self.assertIn('label="for j"; color=pink;', dot)
        self.assertIn('[label="in", shape=box3d', dot)
        self.assertIn("n1 -> n3 [style=dotted];", dot)
        self.assertEqual(dot.count('label="a"'), 1)
        self.assertEqual(step.parents, (inner.id,))


if __name__ == "__main__":
    unittest.main()
