"""In-place graph rewriting passes, the graph evaluator and graph splicing.

Every pass walks into the bodies of `for` nodes and applies itself there;
loop bodies are graphs in their own right with their own exit sets.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Mapping

from .config import FoldPolicy
from .errors import CycleError, GraphIntegrityError, UnmappedSymbolWarning
from .graph import ExGraph, ExNode, LoopPayload, NodeKind, ancestors, dependencies
from .operations import OperationRegistry, default_registry

logger = logging.getLogger(__name__)

_NARY_OPERATIONS = frozenset({"+", "*", "sum", "min", "max"})
_APPLY_KINDS = frozenset({NodeKind.CALL, NodeKind.COMP, NodeKind.ALLOC})


def _node_id(node: int | ExNode) -> int:
    return node.id if isinstance(node, ExNode) else int(node)


def _body(node: ExNode) -> ExGraph:
    payload = node.main
    if not isinstance(payload, LoopPayload):
        raise GraphIntegrityError(f"for node #{node.id} carries no loop payload")
    return payload.body


def splitnary(graph: ExGraph) -> int:
    """Rewrite n-ary `+ * sum min max` calls into right-nested binary calls.

    `f(a, b, c, d)` becomes `f(a, f(b, f(c, d)))`: the original node keeps its
    first operand and a new node takes the rest. Scans repeat until no call has
    more than two operands. Returns the number of splits, loop bodies included.
    """
    splits = 0
    changed = True
    while changed:
        changed = False
        for node in graph:
            if node.kind is NodeKind.CALL and node.main in _NARY_OPERATIONS and len(node.parents) > 2:
                rest = graph.add_node(NodeKind.CALL, node.main, node.parents[1:])
                node.parents = (node.parents[0], rest.id)
                splits += 1
                changed = True

    for loop in graph.loops():
        splits += splitnary(_body(loop))

    if splits:
        logger.debug("splitnary: %d split(s)", splits)
    return splits


def fusenodes(graph: ExGraph, keep: int | ExNode, remove: int | ExNode) -> None:
    """Merge `remove` into `keep` and delete `remove`.

    Parent lists, exit entries and loop inmaps that named `remove` name `keep`
    afterwards. The two nodes must be value-equivalent, and `keep` must not
    depend on `remove`.
    """
    keep_id = _node_id(keep)
    remove_id = _node_id(remove)
    if keep_id == remove_id:
        raise GraphIntegrityError(f"cannot fuse node #{keep_id} with itself")
    graph.node(remove_id)
    if remove_id in ancestors(graph, keep_id):
        raise GraphIntegrityError(f"node #{keep_id} depends on #{remove_id}; fusing would create a cycle")

    for node in graph.nodes.values():
        if node.id != remove_id and remove_id in node.parents:
            node.parents = tuple(keep_id if pid == remove_id else pid for pid in node.parents)

    for name, node_id in graph.exitnodes.items():
        if node_id == remove_id:
            graph.exitnodes[name] = keep_id

    for loop in graph.loops():
        inmap = loop.main.inmap
        for inner, outer in inmap.items():
            if outer == remove_id:
                inmap[inner] = keep_id

    del graph.nodes[remove_id]


def _referenced(graph: ExGraph) -> set[int]:
    used: set[int] = set(graph.exitnodes.values())
    for node in graph.nodes.values():
        used.update(dependencies(node))
    return used


def _is_foldable(graph: ExGraph, node: ExNode, policy: FoldPolicy) -> bool:
    if node.kind is not NodeKind.CALL or not node.parents or not policy.allows(node.main):
        return False
    return all(graph.node(pid).kind is NodeKind.CONSTANT for pid in node.parents)


def _fold_once(graph: ExGraph, registry: OperationRegistry, policy: FoldPolicy) -> bool:
    for node in graph:
        if not _is_foldable(graph, node, policy):
            continue
        operands = [graph.node(pid).main for pid in node.parents]
        value = registry.call(node.main, operands)
        literal = graph.add_node(NodeKind.CONSTANT, value)
        fusenodes(graph, literal, node)
        logger.debug("evalconstants: folded %r into constant #%d", node.main, literal.id)

        # operands only the folded call used are gone with it
        used = _referenced(graph)
        orphans = [pid for pid in dict.fromkeys(node.parents) if pid not in used]
        graph.remove(orphans)
        return True
    return False


def evalconstants(
    graph: ExGraph,
    registry: OperationRegistry | None = None,
    policy: FoldPolicy | None = None,
) -> int:
    """Fold calls whose operands are all constants, until nothing folds.

    Operation failures propagate and leave the graph as it was on entry.
    Returns the number of folds, loop bodies included.
    """
    registry = default_registry() if registry is None else registry
    policy = FoldPolicy.from_env() if policy is None else policy

    folds = 0
    with graph.transaction():
        while _fold_once(graph, registry, policy):
            folds += 1
        for loop in graph.loops():
            folds += evalconstants(_body(loop), registry, policy)
    return folds


def prune(graph: ExGraph) -> int:
    """Drop every node the exit nodes do not depend on.

    Loop bodies are pruned against their own exits first, and inmap entries
    for pruned body nodes are dropped. Returns the number of removed nodes.
    """
    removed = 0
    with graph.transaction():
        for loop in graph.loops():
            body = _body(loop)
            removed += prune(body)
            loop.main.inmap = {inner: outer for inner, outer in loop.main.inmap.items() if inner in body.nodes}

        live = ancestors(graph, graph.exitnodes.values())
        dead = [node_id for node_id in graph.nodes if node_id not in live]
        graph.remove(dead)
        removed += len(dead)

    if removed:
        logger.debug("prune: removed %d node(s)", removed)
    return removed


def _evaluation_order(graph: ExGraph) -> list[int]:
    for node in graph.nodes.values():
        for dep in dependencies(node):
            if dep not in graph.nodes:
                raise GraphIntegrityError(f"node #{node.id} depends on missing node #{dep}")

    order: list[int] = []
    remaining = list(graph.nodes)
    while remaining:
        pending = set(remaining)
        ready = [
            node_id
            for node_id in remaining
            if not any(dep in pending for dep in dependencies(graph.nodes[node_id]))
        ]
        if not ready:
            raise CycleError(tuple(remaining))
        order.extend(ready)
        placed = set(ready)
        remaining = [node_id for node_id in remaining if node_id not in placed]
    return order


def evalsort(graph: ExGraph) -> None:
    """Reorder nodes so every node follows the nodes it depends on.

    Raises `CycleError` when some nodes can never become ready; the node order
    is only replaced once a full order exists.
    """
    found: list[tuple[ExGraph, list[int]]] = []
    _collect_orders(graph, found)
    for target, order in found:
        target.reorder(order)


def _collect_orders(graph: ExGraph, found: list[tuple[ExGraph, list[int]]]) -> None:
    found.append((graph, _evaluation_order(graph)))
    for loop in graph.loops():
        _collect_orders(_body(loop), found)


def _evaluate(graph: ExGraph, node: ExNode, params: Mapping[str, object], registry: OperationRegistry) -> object:
    kind = node.kind

    if kind in _APPLY_KINDS:
        return registry.call(node.main, [graph.nodes[pid].val for pid in node.parents])

    if kind is NodeKind.EXTERNAL:
        name = str(node.main)
        if name in params:
            return params[name]
        return registry.lookup(name)

    if kind is NodeKind.CONSTANT:
        return node.main

    if kind is NodeKind.REF:
        return graph.nodes[node.parents[0]].val[node.main]

    if kind is NodeKind.DOT:
        return getattr(graph.nodes[node.parents[0]].val, str(node.main))

    if kind in (NodeKind.SUBREF, NodeKind.SUBDOT):
        return graph.nodes[node.parents[0]].val

    if kind is NodeKind.FOR:
        payload = node.main
        inner_params = dict(params)
        for inner, outer in payload.inmap.items():
            inner_params[str(payload.body.node(inner).main)] = graph.nodes[outer].val
        calc(payload.body, params=inner_params, registry=registry)
        return None

    if kind is NodeKind.WITHIN:
        return None

    raise GraphIntegrityError(f"unknown node kind {kind!r}")


def calc(
    graph: ExGraph,
    params: Mapping[str, object] | None = None,
    registry: OperationRegistry | None = None,
) -> dict[str, object]:
    """Evaluate every node into its `val` slot and return the exit values.

    `params` binds external names; unbound externals are looked up as ambient
    names in `registry`.
    """
    params = {} if params is None else params
    registry = default_registry() if registry is None else registry

    evalsort(graph)
    for node in graph:
        node.val = _evaluate(graph, node, params, registry)
    return {name: graph.nodes[node_id].val for name, node_id in graph.exitnodes.items()}


def add_graph(
    source: ExGraph,
    dest: ExGraph,
    rename_map: Mapping[str, int | ExNode],
) -> dict[int, int]:
    """Copy `source` into `dest` and return the source id -> dest id table.

    External nodes named in `rename_map` bind to the given `dest` node instead
    of being copied; other externals are copied and reported with
    `UnmappedSymbolWarning`. Loop bodies are copied and their inmaps follow
    the copied enclosing nodes.
    """
    evalsort(source)

    nmap: dict[int, int] = {}
    with dest.transaction():
        for node in source:
            if node.kind is NodeKind.EXTERNAL:
                name = str(node.main)
                if name in rename_map:
                    bound = rename_map[name]
                    if isinstance(bound, ExNode) and bound not in dest:
                        raise GraphIntegrityError(f"rename target for {name!r} is not a node of the destination graph")
                    target = _node_id(bound)
                    dest.node(target)
                    nmap[node.id] = target
                    continue
                warnings.warn(f"unmapped symbol in source graph {name!r}", UnmappedSymbolWarning, stacklevel=2)

            main = node.main
            if isinstance(main, LoopPayload):
                main = LoopPayload(
                    var=main.var,
                    body=main.body.copy(),
                    inmap={inner: nmap[outer] for inner, outer in main.inmap.items()},
                )
            copied = dest.add_node(node.kind, main, [nmap[pid] for pid in node.parents])
            nmap[node.id] = copied.id
    return nmap


def optimize(
    graph: ExGraph,
    *,
    registry: OperationRegistry | None = None,
    policy: FoldPolicy | None = None,
) -> ExGraph:
    """Run the normalization pipeline: split, fold constants, prune, sort."""
    splitnary(graph)
    evalconstants(graph, registry, policy)
    prune(graph)
    evalsort(graph)
    return graph
