"""Post-dominator tree over the CFG, using the Cooper-Harvey-Kennedy iteration."""

from __future__ import annotations

from typing import Optional

from .hir import ControlFlowGraph, EdgeKind, TermReturn


class PostDomTree:
    """Map from node to its immediate post-dominator."""

    def __init__(self, ipdom: Optional[dict[int, int]] = None) -> None:
        self._ipdom = dict(ipdom or {})

    def ipdom(self, node: int) -> Optional[int]:
        """Immediate post-dominator of `node`, or None if it has none."""
        return self._ipdom.get(node)


def _is_exit(cfg: ControlFlowGraph, node: int) -> bool:
    if isinstance(cfg[node].terminator, TermReturn):
        return True
    return not any(e.kind is not EdgeKind.LOOP_BACK for e in cfg.edges(node))


def _reverse_postorder_on_reverse_cfg(cfg: ControlFlowGraph, exits: list[int]) -> list[int]:
    visited: set[int] = set()
    postorder: list[int] = []
    for exit_node in exits:
        if exit_node in visited:
            continue
        visited.add(exit_node)
        stack = [(exit_node, iter(cfg.incoming(exit_node)))]
        while stack:
            node, pending = stack[-1]
            for edge in pending:
                if edge.kind is EdgeKind.LOOP_BACK or edge.source in visited:
                    continue
                visited.add(edge.source)
                stack.append((edge.source, iter(cfg.incoming(edge.source))))
                break
            else:
                stack.pop()
                postorder.append(node)
    postorder.reverse()
    return postorder


def _intersect(dom: list, a: int, b: int) -> int:
    while a != b:
        while a > b:
            a = dom[a]
        while b > a:
            b = dom[b]
    return a


def compute_postdom_tree(cfg: ControlFlowGraph, entry: int) -> PostDomTree:
    """Compute immediate post-dominators; a virtual exit unifies all exit nodes."""
    nodes = list(cfg.node_indices())
    if not nodes:
        return PostDomTree()

    exit_nodes = [n for n in nodes if _is_exit(cfg, n)]
    if not exit_nodes:
        return PostDomTree()
    exit_set = set(exit_nodes)

    rpo_nodes = _reverse_postorder_on_reverse_cfg(cfg, exit_nodes)
    virtual_exit = 0
    total = len(rpo_nodes) + 1
    rpo_idx = {n: i + 1 for i, n in enumerate(rpo_nodes)}

    dom: list[Optional[int]] = [None] * total
    dom[virtual_exit] = virtual_exit
    for ex in exit_nodes:
        if ex in rpo_idx:
            dom[rpo_idx[ex]] = virtual_exit

    changed = True
    while changed:
        changed = False
        for rpo_i in range(1, total):
            node = rpo_nodes[rpo_i - 1]
            if node in exit_set:
                continue
            new_idom = None
            for edge in cfg.edges(node):
                if edge.kind is EdgeKind.LOOP_BACK:
                    continue
                succ_rpo = rpo_idx.get(edge.target)
                if succ_rpo is None or dom[succ_rpo] is None:
                    continue
                new_idom = succ_rpo if new_idom is None else _intersect(dom, new_idom, succ_rpo)
            if new_idom is not None and dom[rpo_i] != new_idom:
                dom[rpo_i] = new_idom
                changed = True

    result = {
        rpo_nodes[i - 1]: rpo_nodes[d - 1]
        for i, d in enumerate(dom)
        if i != 0 and d is not None and d != i and d != virtual_exit
    }
    return PostDomTree(result)