"""Small CFG queries used while structuring."""

from __future__ import annotations

from typing import Iterable, Optional

from .hir import ControlFlowGraph, EdgeKind, HirFunc, TermReturn


def single_successor(cfg: ControlFlowGraph, node: int) -> Optional[int]:
    """Target of the first outgoing edge of `node`, if any."""
    edges = cfg.edges(node)
    return edges[0].target if edges else None


def branch_successors(cfg: ControlFlowGraph, node: int) -> tuple[Optional[int], Optional[int]]:
    """Classify the outgoing edges of `node` into (then, else) targets."""
    then_node = None
    else_node = None
    for edge in cfg.edges(node):
        if edge.kind in (EdgeKind.THEN, EdgeKind.LOOP_BACK):
            then_node = edge.target
        elif edge.kind in (EdgeKind.ELSE, EdgeKind.LOOP_EXIT):
            else_node = edge.target
        elif then_node is None:
            then_node = edge.target
        else:
            else_node = edge.target
    return then_node, else_node


def collect_reachable(cfg: ControlFlowGraph, start: int, stop: Optional[int]) -> set[int]:
    """Nodes reachable from `start` without entering `stop` or following back-edges."""
    seen: set[int] = set()
    stack = [start]
    while stack:
        node = stack.pop()
        if node == stop or node in seen:
            continue
        seen.add(node)
        stack.extend(e.target for e in cfg.edges(node) if e.kind is not EdgeKind.LOOP_BACK)
    return seen


def _has_forward_successors(cfg: ControlFlowGraph, node: int) -> bool:
    return any(e.kind is not EdgeKind.LOOP_BACK for e in cfg.edges(node))


def _is_valid_join_candidate(cfg: ControlFlowGraph, node: int) -> bool:
    # A terminal node is a join only if it has code to run after the merge.
    return _has_forward_successors(cfg, node) or bool(cfg[node].stmts)


def _is_sunk_return(cfg: ControlFlowGraph, node: int) -> bool:
    block = cfg[node]
    return (
        not block.stmts
        and isinstance(block.terminator, TermReturn)
        and not _has_forward_successors(cfg, node)
    )


def find_join_point(
    func: HirFunc,
    then_node: int,
    else_node: int,
    outer_stop: Optional[int],
    visited: Iterable[int],
) -> Optional[int]:
    """Find where the two branches of a conditional converge, by reachability."""
    cfg = func.cfg
    visited = set(visited)
    then_reachable = collect_reachable(cfg, then_node, outer_stop)
    else_reachable = collect_reachable(cfg, else_node, outer_stop)
    shared = sorted(then_reachable & else_reachable)

    common = [n for n in shared if _is_valid_join_candidate(cfg, n)]
    if else_node in then_reachable and _is_valid_join_candidate(cfg, else_node):
        common.append(else_node)
    if then_node in else_reachable and _is_valid_join_candidate(cfg, then_node):
        common.append(then_node)

    # A bare return that one branch flows into while the other branch is it.
    if not common:
        if (
            else_node in then_reachable
            and else_node not in visited
            and _is_sunk_return(cfg, else_node)
        ):
            common.append(else_node)
        if (
            then_node in else_reachable
            and then_node not in visited
            and _is_sunk_return(cfg, then_node)
        ):
            common.append(then_node)

    # Both branches jump to the same bare return block.
    if not common:
        common.extend(
            n
            for n in shared
            if n not in (then_node, else_node)
            and n not in visited
            and _is_sunk_return(cfg, n)
        )

    if not common:
        return None
    return min(common, key=lambda n: cfg[n].pc_range[0])


def negate_condition(func: HirFunc, condition: int) -> int:
    """Negate a condition using the arena's built-in negation."""
    return func.exprs.negate_condition(condition)