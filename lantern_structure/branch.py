"""Structuring of conditional branches into if statements."""

from __future__ import annotations

from typing import Optional

from .cfg_helpers import branch_successors, find_join_point, negate_condition, single_successor
from .guard import ends_with_exit, is_guard_clause
from .hir import Break, Continue, EdgeKind, HirFunc, If, Return, TermJump, TermNone, TermReturn
from .loops import LoopCtx
from .or_chain import (
    clone_return_from_node,
    extract_elseif_chain,
    jump_exit_target,
    resolve_jump_target,
    try_or_chain,
)
from .postdom import PostDomTree
from .region import structure_region

_MAX_ANNOTATION_DEPTH = 20


def branch_always_returns(func: HirFunc, start: int, stop: Optional[int]) -> bool:
    """True if every forward path from `start` ends in a return before reaching `stop`."""
    stack = [start]
    seen: set[int] = set()
    while stack:
        node = stack.pop()
        if node == stop:
            return False
        if node in seen:
            continue
        seen.add(node)
        terminator = func.cfg[node].terminator
        if isinstance(terminator, TermReturn):
            continue
        if isinstance(terminator, TermNone):
            return False
        forward = [e.target for e in func.cfg.edges(node) if e.kind is not EdgeKind.LOOP_BACK]
        if not forward:
            # Only back-edges leave this block: an endless loop, not a return.
            return False
        stack.extend(forward)
    return bool(seen)


def collect_return_stmts(
    func: HirFunc,
    start: int,
    stop: Optional[int],
    loop_ctx: Optional[LoopCtx],
    visited: set,
    pdom: PostDomTree,
) -> list:
    """Statements of a branch that always returns.

    Structures the region normally; if it was already consumed, follows
    unconditional jumps to the return block and copies its return.
    """
    stmts = structure_region(func, start, stop, loop_ctx, visited, pdom)
    if stmts:
        return stmts

    node: Optional[int] = start
    walked: set[int] = set()
    while node is not None and node not in walked:
        walked.add(node)
        terminator = func.cfg[node].terminator
        if isinstance(terminator, TermReturn):
            return [Return(list(terminator.values))]
        if not isinstance(terminator, TermJump):
            break
        node = single_successor(func.cfg, node)
    return []


def has_empty_else_annotation(func: HirFunc, start: int, join: Optional[int]) -> bool:
    """True if the then-region from `start` ends in the jump left by an empty `else`."""
    node = start
    depth = 0
    while depth <= _MAX_ANNOTATION_DEPTH:
        block = func.cfg[node]
        if block.has_empty_else_jump:
            if join is None:
                return True
            if any(e.target == join for e in func.cfg.edges(node)):
                return True
        if not isinstance(block.terminator, TermJump):
            return False
        succ = single_successor(func.cfg, node)
        if succ is None or succ == join:
            return False
        node = succ
        depth += 1
    return False


def _simple_if(condition: int, negated: bool, then_body: list, else_body: Optional[list] = None) -> If:
    return If(condition=condition, negated=negated, then_body=then_body, elseif_clauses=[], else_body=else_body)


def _structure_loop_exits(
    func: HirFunc,
    condition: int,
    negated: bool,
    then_n: int,
    else_n: int,
    stop: Optional[int],
    loop_ctx: LoopCtx,
    visited: set,
    result: list,
    pdom: PostDomTree,
) -> tuple[bool, Optional[int]]:
    """Handle branches that break out of or continue the enclosing loop.

    Returns (handled, next_node).
    """
    then_target = resolve_jump_target(func, then_n)
    else_target = resolve_jump_target(func, else_n)
    exit_node = loop_ctx.exit

    if then_target == exit_node and then_target not in visited:
        result.append(_simple_if(condition, negated, [Break()]))
        return True, else_n
    if then_target == loop_ctx.header:
        result.append(_simple_if(condition, negated, [Continue()]))
        return True, else_n

    # Then-branch runs statements and then leaves the loop.
    if exit_node is not None and then_target != exit_node:
        if jump_exit_target(func, then_n) == exit_node and exit_node not in visited:
            then_stmts = structure_region(func, then_n, exit_node, loop_ctx, visited, pdom)
            then_stmts.append(Break())
            result.append(_simple_if(condition, negated, then_stmts))
            return True, else_n

    if else_target == exit_node and else_target not in visited:
        if negated:
            then_stmts = structure_region(func, then_n, stop, loop_ctx, visited, pdom)
            result.append(_simple_if(condition, negated, then_stmts))
        else:
            guard = negate_condition(func, condition)
            result.append(_simple_if(guard, True, [Break()]))
            result.extend(structure_region(func, then_n, stop, loop_ctx, visited, pdom))
        return True, stop

    # Else-branch runs statements and then leaves the loop.
    if exit_node is not None and else_target != exit_node:
        if jump_exit_target(func, else_n) == exit_node and exit_node not in visited:
            then_stmts = structure_region(func, then_n, stop, loop_ctx, visited, pdom)
            else_stmts = structure_region(func, else_n, exit_node, loop_ctx, visited, pdom)
            else_stmts.append(Break())
            result.append(_simple_if(condition, negated, then_stmts, else_stmts))
            return True, stop

    if else_target == loop_ctx.header:
        has_empty_else = has_empty_else_annotation(func, then_n, else_target)
        if negated or has_empty_else:
            then_stmts = structure_region(func, then_n, stop, loop_ctx, visited, pdom)
            result.append(
                _simple_if(condition, negated, then_stmts, [] if has_empty_else else None)
            )
        else:
            guard = negate_condition(func, condition)
            result.append(_simple_if(guard, True, [Continue()]))
            result.extend(structure_region(func, then_n, stop, loop_ctx, visited, pdom))
        return True, stop

    return False, None


def _find_join(
    func: HirFunc,
    node: int,
    then_n: int,
    else_n: int,
    stop: Optional[int],
    loop_ctx: Optional[LoopCtx],
    visited: set,
    pdom: PostDomTree,
) -> Optional[int]:
    join = pdom.ipdom(node)
    # A post-dominator at the loop exit skips convergence inside the body.
    if join is not None and loop_ctx is not None and join == loop_ctx.exit:
        join = find_join_point(func, then_n, else_n, stop, visited)
    if join is None:
        join = find_join_point(func, then_n, else_n, stop, visited)
    return join


def structure_branch(
    func: HirFunc,
    node: int,
    condition: int,
    negated: bool,
    stop: Optional[int],
    loop_ctx: Optional[LoopCtx],
    visited: set,
    result: list,
    pdom: PostDomTree,
) -> Optional[int]:
    """Append the if statement for the branch block `node`; return the next node."""
    chain = try_or_chain(func, node, stop, loop_ctx, visited, result, pdom)
    if chain is not None:
        body = structure_region(func, chain.body_node, chain.join, loop_ctx, visited, pdom)
        else_stmts = None
        if chain.else_node is not None:
            else_stmts = structure_region(func, chain.else_node, chain.join, loop_ctx, visited, pdom)
        result.append(_simple_if(chain.condition, True, body, else_stmts))
        return chain.join

    then_n, else_n = branch_successors(func.cfg, node)
    if then_n is None:
        return None
    if else_n is None:
        then_stmts = structure_region(func, then_n, stop, loop_ctx, visited, pdom)
        result.append(_simple_if(condition, negated, then_stmts))
        return None

    if loop_ctx is not None:
        handled, nxt = _structure_loop_exits(
            func, condition, negated, then_n, else_n, stop, loop_ctx, visited, result, pdom
        )
        if handled:
            return nxt

    join = _find_join(func, node, then_n, else_n, stop, loop_ctx, visited, pdom)

    if join is not None:
        effective_join, then_returns, else_returns, join_from_cfg = join, False, False, True
    else:
        then_returns = branch_always_returns(func, then_n, stop)
        else_returns = branch_always_returns(func, else_n, stop)
        if then_returns and not else_returns:
            effective_join = else_n
        elif else_returns and not then_returns:
            effective_join = then_n
        else:
            effective_join = None
        join_from_cfg = False

    # Guard clause: one branch always returns, the other continues.
    if join is None and then_returns and not else_returns:
        then_stmts = collect_return_stmts(func, then_n, stop, loop_ctx, visited, pdom)
        if then_stmts:
            result.append(_simple_if(condition, negated, then_stmts))
            return else_n
    if join is None and else_returns and not then_returns:
        else_stmts = collect_return_stmts(func, else_n, stop, loop_ctx, visited, pdom)
        if else_stmts:
            then_stmts = structure_region(func, then_n, stop, loop_ctx, visited, pdom)
            result.append(_simple_if(condition, negated, then_stmts, else_stmts))
            return effective_join if effective_join is not None else stop

    branch_stop = effective_join if effective_join is not None else stop
    then_stmts = structure_region(func, then_n, branch_stop, loop_ctx, visited, pdom)
    else_stmts = structure_region(func, else_n, branch_stop, loop_ctx, visited, pdom)

    # A shared return block consumed by an earlier branch: copy its return.
    if not then_stmts:
        skip = (join_from_cfg and effective_join == then_n) or then_n == stop
        if not skip:
            ret = clone_return_from_node(func, then_n)
            if ret is not None:
                then_stmts = [ret]
    if not else_stmts:
        skip = (join_from_cfg and effective_join == else_n) or else_n == stop
        if not skip:
            ret = clone_return_from_node(func, else_n)
            if ret is not None:
                else_stmts = [ret]

    clauses, final_else = extract_elseif_chain(else_stmts)

    if not clauses and final_else is None:
        has_empty_else = has_empty_else_annotation(func, then_n, effective_join)
        result.append(_simple_if(condition, negated, then_stmts, [] if has_empty_else else None))
    elif not clauses:
        if not then_stmts:
            inverted = negate_condition(func, condition)
            result.append(_simple_if(inverted, True, final_else))
        elif is_guard_clause(then_stmts) and not ends_with_exit(final_else):
            result.append(_simple_if(condition, negated, then_stmts))
            result.extend(final_else)
        elif is_guard_clause(final_else) and not ends_with_exit(then_stmts):
            result.append(_simple_if(condition, negated, then_stmts))
            result.extend(final_else)
        else:
            result.append(_simple_if(condition, negated, then_stmts, final_else))
    else:
        result.append(
            If(
                condition=condition,
                negated=negated,
                then_body=then_stmts,
                elseif_clauses=clauses,
                else_body=final_else,
            )
        )

    return effective_join