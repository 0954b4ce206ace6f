"""Recovery of while, numeric-for and generic-for loops from the CFG."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from .cfg_helpers import branch_successors, negate_condition
from .hir import (
    Assign,
    ControlFlowGraph,
    EdgeKind,
    GenericFor,
    HirFunc,
    If,
    Literal,
    LocalTarget,
    MultiAssign,
    NumericFor,
    TermBranch,
    TermForGenBack,
    TermForNumBack,
    TermForNumPrep,
    Var,
    VarInfo,
    Break,
    While,
)
from .postdom import PostDomTree


@dataclass(frozen=True)
class LoopCtx:
    """The enclosing loop: its header (target of continue) and exit (target of break)."""

    header: int
    exit: Optional[int] = None


@dataclass
class LoopResult:
    """Statements produced for a loop and the node to continue from."""

    stmts: list = field(default_factory=list)
    next: Optional[int] = None


def has_back_edge_to(
    cfg: ControlFlowGraph,
    start: int,
    header: int,
    barrier: Optional[int],
    extra_barriers: Iterable[int],
) -> bool:
    """True if some node reachable from `start` has an edge straight to `header`.

    The search never enters `barrier` or any of `extra_barriers`, and ignores
    the loop-back edges of for-loop blocks.
    """
    blocked = set(extra_barriers)
    seen: set[int] = set()
    stack = [start]
    while stack:
        node = stack.pop()
        if node == header or node == barrier or node in blocked or node in seen:
            continue
        seen.add(node)
        is_for_block = isinstance(
            cfg[node].terminator, (TermForNumBack, TermForGenBack, TermForNumPrep)
        )
        for edge in cfg.edges(node):
            if is_for_block and edge.kind is EdgeKind.LOOP_BACK:
                continue
            if edge.target == header:
                return True
            stack.append(edge.target)
    return False


def try_structure_while(
    func: HirFunc,
    node: int,
    stop: Optional[int],
    outer_loop: Optional[LoopCtx],
    visited: set,
    pdom: PostDomTree,
) -> Optional[LoopResult]:
    """Structure `node` as a while-loop header if one of its branches loops back."""
    from .region import structure_region

    terminator = func.cfg[node].terminator
    if not isinstance(terminator, TermBranch):
        return None
    then_n, else_n = branch_successors(func.cfg, node)
    if then_n is None or else_n is None:
        return None

    barriers: list[int] = []
    if outer_loop is not None:
        barriers.append(outer_loop.header)
        if outer_loop.exit is not None:
            barriers.append(outer_loop.exit)

    if has_back_edge_to(func.cfg, then_n, node, stop, barriers):
        body_start, exit_node, loop_condition = then_n, else_n, terminator.condition
    elif has_back_edge_to(func.cfg, else_n, node, stop, barriers):
        body_start, exit_node = else_n, then_n
        loop_condition = negate_condition(func, terminator.condition)
    else:
        return None

    header_stmts = func.cfg[node].stmts
    func.cfg[node].stmts = []

    loop_ctx = LoopCtx(header=node, exit=exit_node)
    body = structure_region(func, body_start, node, loop_ctx, visited, pdom)

    if not header_stmts:
        return LoopResult([While(loop_condition, body)], exit_node)

    # Header statements recompute the condition each iteration, so they move
    # inside `while true do ... end` ahead of an explicit exit check.
    true_expr = func.exprs.alloc(Literal(True))
    exit_check = If(negate_condition(func, loop_condition), True, [Break()], [], None)
    loop_body = [*header_stmts, exit_check, *body]
    return LoopResult([While(true_expr, loop_body)], exit_node)


def _loop_edges(func: HirFunc, node: int) -> tuple[Optional[int], Optional[int]]:
    body_start = None
    exit_node = None
    for edge in func.cfg.edges(node):
        if edge.kind is EdgeKind.LOOP_BACK:
            body_start = edge.target
        elif edge.kind is EdgeKind.LOOP_EXIT:
            exit_node = edge.target
    return body_start, exit_node


def _find_for_back_block(func: HirFunc, body_start: int, header: int) -> Optional[int]:
    seen: set[int] = set()
    stack = [body_start]
    while stack:
        node = stack.pop()
        if node == header or node in seen:
            continue
        seen.add(node)
        if isinstance(func.cfg[node].terminator, TermForNumBack):
            return node
        stack.extend(e.target for e in func.cfg.edges(node))
    return None


def structure_for_num(
    func: HirFunc,
    node: int,
    start: int,
    limit: int,
    step: Optional[int],
    loop_var_name: Optional[str],
    stop: Optional[int],
    visited: set,
    result: list,
    pdom: PostDomTree,
) -> Optional[int]:
    """Append a numeric for-loop for the prep block `node`; return the exit node."""
    from .region import structure_region

    body_start, exit_node = _loop_edges(func, node)
    if body_start is None:
        return exit_node if exit_node is not None else stop

    back_block = _find_for_back_block(func, body_start, node)
    var = func.vars.alloc(VarInfo(name=loop_var_name, is_loop_var=True))
    loop_ctx = LoopCtx(header=back_block if back_block is not None else node, exit=exit_node)

    body = structure_region(func, body_start, back_block, loop_ctx, visited, pdom)
    if back_block is not None:
        visited.add(back_block)

    result.append(NumericFor(var=var, start=start, limit=limit, step=step, body=body))
    return exit_node


def _inline_for_gen_iterators(func: HirFunc, iterators: list, result: list) -> list:
    """Replace iterator temporaries with the expressions that define them.

    Removes the defining statements from the end of `result` when they match.
    """
    if not result or not iterators:
        return list(iterators)

    iter_vars = []
    for expr_id in iterators:
        expr = func.exprs.get(expr_id)
        if not isinstance(expr, Var):
            return list(iterators)
        iter_vars.append(expr.var)

    last = result[-1]
    if isinstance(last, MultiAssign) and len(last.targets) == len(iter_vars):
        if all(
            isinstance(t, LocalTarget) and t.var == v for t, v in zip(last.targets, iter_vars)
        ) and all(func.vars.get(v).name is None for v in iter_vars):
            result.pop()
            return list(last.values)

    if len(result) >= len(iter_vars):
        start = len(result) - len(iter_vars)
        values = []
        for stmt, var_id in zip(result[start:], iter_vars):
            if not (
                isinstance(stmt, Assign)
                and isinstance(stmt.target, LocalTarget)
                and stmt.target.var == var_id
                and func.vars.get(var_id).name is None
            ):
                break
            values.append(stmt.value)
        else:
            del result[start:]
            return values

    return list(iterators)


def structure_for_gen(
    func: HirFunc,
    node: int,
    var_count: int,
    iterators: list,
    loop_var_names: list,
    visited: set,
    result: list,
    pdom: PostDomTree,
) -> Optional[int]:
    """Append a generic for-loop for the back block `node`; return the exit node."""
    from .region import structure_region

    body_start, exit_node = _loop_edges(func, node)
    if body_start is None:
        return exit_node

    names = list(loop_var_names)
    loop_vars = [
        func.vars.alloc(
            VarInfo(name=names[i] if i < len(names) else None, is_loop_var=True)
        )
        for i in range(var_count)
    ]
    loop_ctx = LoopCtx(header=node, exit=exit_node)
    inlined = _inline_for_gen_iterators(func, list(iterators), result)

    body = structure_region(func, body_start, node, loop_ctx, visited, pdom)
    result.append(GenericFor(vars=loop_vars, iterators=inlined, body=body))
    return exit_node