"""Graphviz DOT rendering of graphs, for debugging."""

from __future__ import annotations

from itertools import count

from .graph import ExGraph, ExNode, NodeKind

_STYLES: dict[NodeKind, tuple[str, str]] = {
    NodeKind.CONSTANT: ("square", "lightgreen"),
    NodeKind.EXTERNAL: ("circle", "orange"),
    NodeKind.CALL: ("box", "lightblue"),
    NodeKind.COMP: ("box", "lightblue"),
    NodeKind.REF: ("rarrow", "lightblue"),
    NodeKind.DOT: ("rarrow", "lightblue"),
    NodeKind.SUBREF: ("larrow", "lightblue"),
    NodeKind.SUBDOT: ("larrow", "lightblue"),
    NodeKind.ALLOC: ("parallelogram", "lightblue"),
    NodeKind.WITHIN: ("box3d", "pink"),
}


def _quote(text: object) -> str:
    return '"' + str(text).replace("\\", "\\\\").replace('"', '\\"') + '"'


def _node_statement(name: str, node: ExNode) -> str:
    shape, color = _STYLES[node.kind]
    label = "in" if node.kind is NodeKind.WITHIN else node.main
    return f"{name} [label={_quote(label)}, shape={shape}, style=filled, fillcolor={color}];"


class _DotWriter:
    def __init__(self) -> None:
        self.lines: list[str] = []
        self.names: dict[tuple[int, int], str] = {}
        self._ids = count(1)

    def _key(self, graph: ExGraph, node_id: int) -> tuple[int, int]:
        return (id(graph), node_id)

    def declare(self, graph: ExGraph, indent: str, bound: frozenset[int] = frozenset()) -> None:
        for node in graph:
            if node.kind is NodeKind.FOR:
                payload = node.main
                cluster = f"cluster_{next(self._ids)}"
                self.names[self._key(graph, node.id)] = cluster
                self.lines.append(f"{indent}subgraph {cluster} {{")
                self.lines.append(f"{indent}  label={_quote('for ' + str(payload.var))}; color=pink;")
                self.declare(payload.body, indent + "  ", frozenset(payload.inmap))
                self.lines.append(f"{indent}}}")
                continue
            if node.id in bound:
                continue
            name = f"n{next(self._ids)}"
            self.names[self._key(graph, node.id)] = name
            self.lines.append(indent + _node_statement(name, node))

    def connect(self, graph: ExGraph, indent: str, outer: ExGraph | None = None, inmap: dict[int, int] | None = None) -> None:
        inmap = {} if inmap is None else inmap
        for node in graph:
            if node.kind is NodeKind.FOR:
                self.connect(node.main.body, indent, graph, node.main.inmap)
                continue
            if node.id in inmap:
                continue
            target = self.names[self._key(graph, node.id)]
            for pid in node.parents:
                if pid in inmap and outer is not None:
                    source = self.names.get(self._key(outer, inmap[pid]))
                    style = " [style=dotted]"
                else:
                    source = self.names.get(self._key(graph, pid))
                    style = ""
                if source is None or source.startswith("cluster_"):
                    continue
                self.lines.append(f"{indent}{source} -> {target}{style};")

    def exits(self, graph: ExGraph, indent: str) -> None:
        for exit_name, node_id in graph.exitnodes.items():
            source = self.names.get(self._key(graph, node_id))
            if source is None or source.startswith("cluster_"):
                continue
            note = f"x{next(self._ids)}"
            self.lines.append(f"{indent}{note} [label={_quote(exit_name)}, shape=note, style=filled, fillcolor=lightgrey];")
            self.lines.append(f"{indent}{source} -> {note} [style=dotted];")


def to_dot(graph: ExGraph, *, name: str = "gp") -> str:
    """Render `graph` as a DOT digraph.

    Loop bodies become nested clusters; their inmap bindings are drawn as
    dotted edges from the enclosing node, and each exit gets a note node.
    """
    writer = _DotWriter()
    writer.declare(graph, "  ")
    writer.connect(graph, "  ")
    writer.exits(graph, "  ")
    header = f"digraph {name} {{\n  layout=dot; labeldistance=5; scale=0.5;"
    return "\n".join([header, *writer.lines, "}"]) + "\n"
