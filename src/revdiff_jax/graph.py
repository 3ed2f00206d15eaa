"""Dataflow graph IR: kind-tagged nodes in an id-indexed arena."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum

from .errors import GraphIntegrityError

UNSET = float("nan")


class NodeKind(str, Enum):
    CONSTANT = "constant"
    EXTERNAL = "external"
    CALL = "call"
    COMP = "comp"
    REF = "ref"
    DOT = "dot"
    SUBREF = "subref"
    SUBDOT = "subdot"
    ALLOC = "alloc"
    FOR = "for"
    WITHIN = "within"


@dataclass(eq=False)
class ExNode:
    """Single graph node.

    `main` is the kind-specific payload (literal, external name, operation
    name, index, field name or `LoopPayload`); `parents` are ids of nodes in
    the same graph, in operand order; `val` caches the last computed value.
    """

    id: int
    kind: NodeKind
    main: object = None
    parents: tuple[int, ...] = ()
    val: object = UNSET

    def __str__(self) -> str:
        main = f"for {self.main.var}" if isinstance(self.main, LoopPayload) else repr(self.main)
        text = f"[{self.kind.value}] {main} ({self.val})"
        if self.parents:
            text += ", from = " + " / ".join(f"#{pid}" for pid in self.parents)
        return text


@dataclass(eq=False)
class LoopPayload:
    """Payload of a `for` node.

    `inmap` binds external node ids of `body` to the ids of the enclosing-graph
    nodes that supply their values.
    """

    var: str
    body: "ExGraph"
    inmap: dict[int, int] = field(default_factory=dict)


class ExGraph:
    """Ordered node arena plus the named exits of the computation.

    Node ids are handed out by the graph and never reused, so an id stays a
    valid reference for as long as the node is in `nodes`. Iteration follows
    insertion order until `evalsort` establishes an evaluation order.
    """

    def __init__(self) -> None:
        self.nodes: dict[int, ExNode] = {}
        self.exitnodes: dict[str, int] = {}
        self._next_id = 0

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[ExNode]:
        return iter(list(self.nodes.values()))

    def __contains__(self, node: object) -> bool:
        if isinstance(node, ExNode):
            return self.nodes.get(node.id) is node
        return node in self.nodes

    def __getitem__(self, node_id: int) -> ExNode:
        return self.node(node_id)

    def __repr__(self) -> str:
        return f"ExGraph(nodes={len(self.nodes)}, exits={sorted(self.exitnodes)})"

    def node(self, node_id: int) -> ExNode:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise GraphIntegrityError(f"node #{node_id} is not in the graph") from None

    def add_node(self, kind: NodeKind | str, main: object = None, parents: Iterable[int | ExNode] = ()) -> ExNode:
        kind = NodeKind(kind)
        parent_ids = tuple(_node_id(p) for p in parents)
        for pid in parent_ids:
            if pid not in self.nodes:
                raise GraphIntegrityError(f"parent #{pid} of new {kind.value} node is not in the graph")
        node = ExNode(id=self._next_id, kind=kind, main=main, parents=parent_ids)
        self._next_id += 1
        self.nodes[node.id] = node
        return node

    def loops(self) -> list[ExNode]:
        return [node for node in self.nodes.values() if node.kind is NodeKind.FOR]

    def externals(self) -> dict[str, int]:
        """External name -> node id (first node wins for repeated names)."""
        found: dict[str, int] = {}
        for node in self.nodes.values():
            if node.kind is NodeKind.EXTERNAL:
                found.setdefault(str(node.main), node.id)
        return found

    def copy(self) -> "ExGraph":
        """Structural copy: new node objects, same ids, loop bodies copied too."""
        out = ExGraph()
        out._next_id = self._next_id
        out.exitnodes = dict(self.exitnodes)
        for node in self.nodes.values():
            main = node.main
            if isinstance(main, LoopPayload):
                main = LoopPayload(var=main.var, body=main.body.copy(), inmap=dict(main.inmap))
            out.nodes[node.id] = ExNode(id=node.id, kind=node.kind, main=main, parents=node.parents, val=node.val)
        return out

    @contextmanager
    def transaction(self):
        """Restore the graph to its entry state if the body raises."""
        snapshot = self.copy()
        try:
            yield self
        except BaseException:
            self.nodes = snapshot.nodes
            self.exitnodes = snapshot.exitnodes
            self._next_id = snapshot._next_id
            raise

    def reorder(self, order: Iterable[int]) -> None:
        order = list(order)
        if sorted(order) != sorted(self.nodes):
            raise GraphIntegrityError("reorder must be a permutation of the graph's node ids")
        self.nodes = {node_id: self.nodes[node_id] for node_id in order}

    def remove(self, node_ids: Iterable[int]) -> None:
        for node_id in node_ids:
            del self.nodes[node_id]

    def validate(self) -> None:
        """Raise `GraphIntegrityError` if any reference leaves the graph."""
        for node in self.nodes.values():
            for pid in node.parents:
                if pid not in self.nodes:
                    raise GraphIntegrityError(f"node #{node.id} has dangling parent #{pid}")
            if isinstance(node.main, LoopPayload):
                body = node.main.body
                for inner, outer in node.main.inmap.items():
                    if inner not in body.nodes:
                        raise GraphIntegrityError(f"loop #{node.id} maps missing body node #{inner}")
                    if outer not in self.nodes:
                        raise GraphIntegrityError(f"loop #{node.id} maps body node #{inner} to missing #{outer}")
                body.validate()
        for name, node_id in self.exitnodes.items():
            if node_id not in self.nodes:
                raise GraphIntegrityError(f"exit {name!r} points at missing node #{node_id}")


def _node_id(node: int | ExNode) -> int:
    return node.id if isinstance(node, ExNode) else int(node)


def add_node(graph: ExGraph, kind: NodeKind | str, main: object = None, *parents: int | ExNode) -> ExNode:
    return graph.add_node(kind, main, parents)


def dependencies(node: ExNode) -> tuple[int, ...]:
    """Ids a node needs before it can be evaluated.

    A loop also depends on the enclosing nodes its body reads through the inmap.
    """
    if isinstance(node.main, LoopPayload):
        extra = tuple(pid for pid in node.main.inmap.values() if pid not in node.parents)
        return node.parents + extra
    return node.parents


def ancestors(graph: ExGraph, start: int | ExNode | Iterable[int | ExNode]) -> set[int]:
    """Inclusive ancestor closure of `start` in `graph`."""
    if isinstance(start, (int, ExNode)):
        pending = [_node_id(start)]
    else:
        pending = [_node_id(item) for item in start]

    seen: set[int] = set()
    while pending:
        node_id = pending.pop()
        if node_id in seen:
            continue
        seen.add(node_id)
        pending.extend(dependencies(graph.node(node_id)))
    return seen
