"""Turning a function's CFG into a nested statement tree."""

from __future__ import annotations

from typing import Optional

from .guard import strip_trailing_returns
from .cfg_helpers import single_successor
from .hir import (
    Break,
    Continue,
    HirFunc,
    Return,
    TermBranch,
    TermForGenBack,
    TermForNumBack,
    TermForNumPrep,
    TermJump,
    TermNone,
    TermReturn,
)
from .loops import LoopCtx, structure_for_gen, structure_for_num, try_structure_while
from .postdom import PostDomTree, compute_postdom_tree


def structure_function(func: HirFunc) -> None:
    """Structure the whole CFG into the entry block's statement list.

    Afterwards the entry block holds the complete structured body, its
    terminator is cleared and `func.structured` is set.
    """
    entry = func.entry
    pdom = compute_postdom_tree(func.cfg, entry)
    stmts = structure_region(func, entry, None, None, set(), pdom)
    strip_trailing_returns(stmts)
    block = func.cfg[entry]
    block.stmts = stmts
    block.terminator = TermNone()
    func.structured = True


def structure_region(
    func: HirFunc,
    start: int,
    stop: Optional[int],
    loop_ctx: Optional[LoopCtx],
    visited: set,
    pdom: PostDomTree,
) -> list:
    """Structure the CFG from `start` up to, but not including, `stop`."""
    from .branch import structure_branch

    result: list = []
    current: Optional[int] = start

    while current is not None:
        node = current
        if node == stop or node in visited:
            break
        visited.add(node)

        loop = try_structure_while(func, node, stop, loop_ctx, visited, pdom)
        if loop is not None:
            result.extend(loop.stmts)
            current = loop.next
            continue

        block = func.cfg[node]
        result.extend(block.stmts)
        block.stmts = []
        terminator = block.terminator

        if isinstance(terminator, TermReturn):
            result.append(Return(list(terminator.values)))
            current = None
        elif isinstance(terminator, TermJump):
            succ = single_successor(func.cfg, node)
            current = succ
            # A jump to the region's stop is its natural end, not a continue.
            if succ is not None and loop_ctx is not None and succ != stop:
                if succ == loop_ctx.header:
                    result.append(Continue())
                    current = None
                elif succ == loop_ctx.exit:
                    result.append(Break())
                    current = None
        elif isinstance(terminator, TermBranch):
            current = structure_branch(
                func, node, terminator.condition, terminator.negated,
                stop, loop_ctx, visited, result, pdom,
            )
        elif isinstance(terminator, TermForNumPrep):
            current = structure_for_num(
                func, node, terminator.start, terminator.limit, terminator.step,
                terminator.loop_var_name, stop, visited, result, pdom,
            )
        elif isinstance(terminator, TermForGenBack):
            current = structure_for_gen(
                func, node, terminator.var_count, list(terminator.iterators),
                list(terminator.loop_var_names), visited, result, pdom,
            )
        elif isinstance(terminator, TermForNumBack):
            # Reached only through the numeric-for handler's own structuring.
            current = None
        else:
            current = None

    return result