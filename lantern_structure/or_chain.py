"""Or-chain detection and small CFG helpers used when structuring branches."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .cfg_helpers import branch_successors, negate_condition, single_successor
from .hir import (
    Binary,
    BinOp,
    ElseIfClause,
    HirFunc,
    If,
    Return,
    TermBranch,
    TermJump,
    TermNone,
    TermReturn,
)
from .postdom import PostDomTree

_MAX_OR_CLAUSES = 20
_MAX_AND_LINKS = 10


@dataclass
class OrChainMatch:
    """A recognised or-chain: the combined condition and the regions left to structure.

    The caller structures `body_node` (and `else_node`, when present) up to
    `join`, emits `if condition then <body> [else <else>] end`, and continues
    from `join`.
    """

    condition: int
    body_node: int
    else_node: Optional[int]
    join: Optional[int]


def is_branch_block(func: HirFunc, node: int) -> bool:
    """True if the block ends in a conditional branch."""
    return isinstance(func.cfg[node].terminator, TermBranch)


def has_block_content(func: HirFunc, node: int) -> bool:
    """True if the block has statements or a terminator other than jump/none."""
    block = func.cfg[node]
    return bool(block.stmts) or not isinstance(block.terminator, (TermJump, TermNone))


def resolve_jump_target(func: HirFunc, start: int) -> int:
    """Follow empty unconditional-jump blocks from `start` to the effective target."""
    node = start
    seen: set[int] = set()
    while node not in seen:
        seen.add(node)
        block = func.cfg[node]
        if block.stmts or not isinstance(block.terminator, TermJump):
            return node
        succ = single_successor(func.cfg, node)
        if succ is None:
            return node
        node = succ
    return node


def jump_exit_target(func: HirFunc, node: int) -> Optional[int]:
    """Successor of a jump-terminated block, whether or not it has statements."""
    if isinstance(func.cfg[node].terminator, TermJump):
        return single_successor(func.cfg, node)
    return None


def clone_return_from_node(func: HirFunc, node: int) -> Optional[Return]:
    """A copy of the return of a block that holds nothing but a return."""
    block = func.cfg[node]
    if isinstance(block.terminator, TermReturn) and not block.stmts:
        return Return(list(block.terminator.values))
    return None


def count_incoming_from_branches(func: HirFunc, node: int) -> int:
    """Number of incoming edges whose source is a branch block."""
    return sum(1 for e in func.cfg.incoming(node) if is_branch_block(func, e.source))


def branch_chain_reaches(func: HirFunc, start: int, target: int, max_depth: int) -> bool:
    """True if a chain of branch blocks from `start` has an edge to `target`."""
    node = start
    for _ in range(max_depth):
        if not is_branch_block(func, node):
            return False
        then_n, else_n = branch_successors(func.cfg, node)
        if then_n is None or else_n is None:
            return False
        if target in (then_n, else_n):
            return True
        if is_branch_block(func, then_n):
            node = then_n
        elif is_branch_block(func, else_n):
            node = else_n
        else:
            return False
    return False


def find_or_chain_body(func: HirFunc, start: int) -> Optional[int]:
    """Find the body block shared by the clauses of an or-chain starting at `start`."""
    node = start
    for _ in range(_MAX_AND_LINKS):
        if not is_branch_block(func, node):
            return None
        then_n, else_n = branch_successors(func.cfg, node)
        if then_n is None or else_n is None:
            return None

        then_is_branch = is_branch_block(func, then_n)
        else_is_branch = is_branch_block(func, else_n)

        if not then_is_branch and not else_is_branch:
            then_content = has_block_content(func, then_n)
            else_content = has_block_content(func, else_n)
            if then_content and not else_content:
                return then_n
            if else_content and not then_content:
                return else_n
            if then_content and else_content:
                then_pc = func.cfg[then_n].pc_range[0]
                else_pc = func.cfg[else_n].pc_range[0]
                return then_n if then_pc < else_pc else else_n
            return None
        if not then_is_branch:
            return then_n
        if not else_is_branch:
            return else_n

        # Both sides branch: one may be the convergence target of the other's chain.
        else_in = count_incoming_from_branches(func, else_n)
        then_in = count_incoming_from_branches(func, then_n)
        if else_in > then_in and branch_chain_reaches(func, then_n, else_n, 5):
            return else_n
        if then_in > else_in and branch_chain_reaches(func, else_n, then_n, 5):
            return then_n
        node = then_n
    return None


_ABORT = object()

_Links = list[tuple[int, bool]]


def _walk_and_chain(
    func: HirFunc, start: int, body_node: int
) -> Union[None, object, tuple[_Links, int]]:
    """Walk one and-clause from `start`.

    Returns (links, skip_target) when the clause reaches the body, `_ABORT`
    when a branch lacks a successor, and None when the clause does not reach
    the body (so `start` is the continuation after the chain).
    """
    links: _Links = []
    chain_node = start
    skip: Optional[int] = None
    for _ in range(_MAX_AND_LINKS):
        if not is_branch_block(func, chain_node):
            break
        then_n, else_n = branch_successors(func.cfg, chain_node)
        if then_n is None or else_n is None:
            return _ABORT
        if then_n == body_node:
            links.append((chain_node, False))
            return links, skip if skip is not None else else_n
        if else_n == body_node:
            links.append((chain_node, True))
            return links, skip if skip is not None else then_n

        if is_branch_block(func, then_n):
            # Then-edge continues the and-chain, else-edge skips to the next clause.
            links.append((chain_node, False))
            if skip is None:
                skip = else_n
            chain_node = then_n
        elif is_branch_block(func, else_n):
            links.append((chain_node, True))
            if skip is None:
                skip = then_n
            chain_node = else_n
        else:
            return None
    return None


def _combine(func: HirFunc, op: BinOp, parts: list[int]) -> int:
    combined = parts[0]
    for part in parts[1:]:
        combined = func.exprs.alloc(Binary(op, combined, part))
    return combined


def try_or_chain(
    func: HirFunc,
    node: int,
    stop: Optional[int],
    loop_ctx: object,
    visited: set,
    result: list,
    pdom: PostDomTree,
) -> Optional[OrChainMatch]:
    """Detect an or-chain of branch blocks rooted at `node`.

    On a match, the clause blocks are marked visited, their statements are
    moved onto `result`, and the combined condition with the regions still to
    structure is returned. `stop` and `loop_ctx` describe the enclosing
    region; detection itself does not depend on them.
    """
    body_node = find_or_chain_body(func, node)
    if body_node is None:
        return None

    clauses: list[_Links] = []
    current = node
    join_node: Optional[int] = None

    for _ in range(_MAX_OR_CLAUSES):
        if not is_branch_block(func, current):
            if current != body_node:
                join_node = current
            break
        walked = _walk_and_chain(func, current, body_node)
        if walked is _ABORT:
            break
        if walked is None:
            join_node = current
            break
        links, skip = walked
        clauses.append(links)
        current = skip

    if len(clauses) < 2:
        return None

    # Every clause reaching the body on its else-edge is an and-guard chain.
    if all(links[-1][1] for links in clauses):
        return None

    clause_blocks = {block for links in clauses for block, _ in links}
    if any(e.source not in clause_blocks for e in func.cfg.incoming(body_node)):
        return None

    ipdom_join = pdom.ipdom(node)
    if join_node is None:
        join_node = ipdom_join if ipdom_join is not None else single_successor(func.cfg, body_node)

    if (
        join_node is not None
        and ipdom_join is not None
        and join_node != ipdom_join
        and has_block_content(func, join_node)
    ):
        else_node, true_join = join_node, ipdom_join
    else:
        else_node, true_join = None, join_node

    or_parts: list[int] = []
    all_blocks: list[int] = []
    for links in clauses:
        and_parts: list[int] = []
        for block, body_on_else in links:
            all_blocks.append(block)
            condition = func.cfg[block].terminator.condition
            and_parts.append(negate_condition(func, condition) if body_on_else else condition)
        or_parts.append(_combine(func, BinOp.AND, and_parts))
    combined = _combine(func, BinOp.OR, or_parts)

    visited.update(all_blocks)
    for block in all_blocks:
        taken = func.cfg[block].stmts
        func.cfg[block].stmts = []
        result.extend(taken)

    return OrChainMatch(condition=combined, body_node=body_node, else_node=else_node, join=true_join)


def extract_elseif_chain(else_stmts: list) -> tuple[list, Optional[list]]:
    """Turn an else body made of a single if into elseif clauses.

    Returns (elseif_clauses, final_else); final_else is None when there is no
    else body left.
    """
    if len(else_stmts) == 1 and isinstance(else_stmts[0], If):
        inner = else_stmts[0]
        clauses = [ElseIfClause(inner.condition, inner.then_body), *inner.elseif_clauses]
        return clauses, inner.else_body
    if not else_stmts:
        return [], None
    return [], list(else_stmts)