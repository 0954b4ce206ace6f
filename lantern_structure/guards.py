"""Guard-clause rewrites applied after structuring.

Covers decomposing chains of guards, hoisting guards out of else bodies,
flipping a trailing elseif guard, merging consecutive loop guards and
absorbing a short tail behind a bare-return guard.
"""

from __future__ import annotations

from typing import Optional

from .conditions import negate_or_chain
from .guard import ends_with_exit
from .hir import (
    Binary,
    BinOp,
    Break,
    Continue,
    ElseIfClause,
    GenericFor,
    HirFunc,
    If,
    Literal,
    NumericFor,
    Repeat,
    Return,
    While,
)


def _is_bare_return(stmt: object) -> bool:
    return isinstance(stmt, Return) and not stmt.values


def is_short_guard(stmts: list) -> bool:
    """At most three statements ending with return or break."""
    return 0 < len(stmts) <= 3 and isinstance(stmts[-1], (Return, Break))


def _is_trivial_return(func: HirFunc, stmts: list) -> bool:
    """A lone `return` or `return nil`."""
    if len(stmts) != 1 or not isinstance(stmts[0], Return):
        return False
    values = stmts[0].values
    if not values:
        return True
    return len(values) == 1 and func.exprs.get(values[0]) == Literal(None)


def _is_linear_tail(stmts: list) -> bool:
    """No statement in the list branches or loops."""
    return not any(isinstance(s, (If, While, Repeat, NumericFor, GenericFor)) for s in stmts)


def _is_simple_if(stmt: object) -> bool:
    return isinstance(stmt, If) and not stmt.elseif_clauses and stmt.else_body is None


def decompose_guard_chain(stmt: object) -> Optional[list]:
    """Split an if/elseif chain made only of short guards into separate guards.

    `if A then return elseif B then return else <code> end` becomes
    `if A then return end; if B then return end; <code>`. Returns None when
    the pattern does not apply.
    """
    if not isinstance(stmt, If) or not stmt.elseif_clauses:
        return None
    else_body = stmt.else_body
    if else_body is None or ends_with_exit(else_body):
        return None
    if not is_short_guard(stmt.then_body):
        return None
    if not all(is_short_guard(c.body) for c in stmt.elseif_clauses):
        return None

    result: list = [If(stmt.condition, True, list(stmt.then_body), [], None)]
    result.extend(If(c.condition, True, list(c.body), [], None) for c in stmt.elseif_clauses)
    result.extend(else_body)
    return result


def hoist_else_guards(func: HirFunc, stmt: object) -> object:
    """Promote guard ifs leading an else body to elseif clauses.

    Applies when the then body is a short guard and there are no elseif
    clauses yet.
    """
    if not isinstance(stmt, If):
        return stmt
    if stmt.elseif_clauses or not is_short_guard(stmt.then_body) or stmt.else_body is None:
        return stmt

    else_stmts = stmt.else_body
    hoisted: list = []
    for inner in else_stmts:
        if _is_simple_if(inner) and is_short_guard(inner.then_body):
            hoisted.append(ElseIfClause(inner.condition, list(inner.then_body)))
        else:
            break

    if not hoisted:
        return stmt

    tail = list(else_stmts[len(hoisted):])
    return If(
        condition=stmt.condition,
        negated=stmt.negated,
        then_body=stmt.then_body,
        elseif_clauses=hoisted,
        else_body=tail or None,
    )


def flip_elseif_guard(func: HirFunc, stmt: object) -> object:
    """Flip the last elseif clause when it is a short guard.

    `if A then ... elseif B then return else <code> end` becomes
    `if A then ... elseif not B then <code> end`. A guard with content other
    than a bare return is kept as the else body.
    """
    if not isinstance(stmt, If) or stmt.else_body is None or not stmt.elseif_clauses:
        return stmt

    last = stmt.elseif_clauses[-1]
    can_flip = is_short_guard(last.body) and (
        not ends_with_exit(stmt.else_body) or _is_trivial_return(func, last.body)
    )
    if not can_flip:
        return stmt

    guard_stmts = last.body
    clauses = list(stmt.elseif_clauses[:-1])
    clauses.append(ElseIfClause(negate_or_chain(func, last.condition), stmt.else_body))

    if len(guard_stmts) == 1 and _is_bare_return(guard_stmts[0]):
        return If(stmt.condition, True, stmt.then_body, clauses, None)
    return If(stmt.condition, stmt.negated, stmt.then_body, clauses, guard_stmts)


def is_early_exit_guard(stmt: object) -> Optional[tuple[int, bool]]:
    """For `if c then continue end` or `if c then break end`, return (c, is_continue)."""
    if _is_simple_if(stmt) and len(stmt.then_body) == 1:
        only = stmt.then_body[0]
        if isinstance(only, Continue):
            return stmt.condition, True
        if isinstance(only, Break):
            return stmt.condition, False
    return None


def merge_consecutive_guards(func: HirFunc, stmts: list) -> list:
    """Merge adjacent continue (or break) guards into one `or`-joined guard."""
    if len(stmts) < 2:
        return list(stmts)

    result: list = []
    i = 0
    while i < len(stmts):
        guard = is_early_exit_guard(stmts[i])
        if guard is None:
            result.append(stmts[i])
            i += 1
            continue

        merged, is_continue = guard
        j = i + 1
        while j < len(stmts):
            following = is_early_exit_guard(stmts[j])
            if following is None or following[1] != is_continue:
                break
            merged = func.exprs.alloc(Binary(BinOp.OR, merged, following[0]))
            j += 1

        if j > i + 1:
            exit_stmt = Continue() if is_continue else Break()
            result.append(If(merged, True, [exit_stmt], [], None))
            i = j
        else:
            result.append(stmts[i])
            i += 1
    return result


def flip_guard_to_wrapper(func: HirFunc, stmts: list) -> list:
    """Leave continue guards as they are.

    Turning a guard into a wrapping block yields different jump opcodes, so
    the statements are returned unchanged.
    """
    return list(stmts)


def absorb_tail_into_else(func: HirFunc, stmts: list) -> list:
    """Turn `if c then return end; <linear tail>` into `if not c then <tail> end`.

    Only a bare return guard qualifies, and the tail must not end in an exit
    nor contain control flow. The last such guard in the list is used.
    """
    if len(stmts) < 2:
        return list(stmts)

    for i in range(len(stmts) - 2, -1, -1):
        candidate = stmts[i]
        if not (
            _is_simple_if(candidate)
            and len(candidate.then_body) == 1
            and _is_bare_return(candidate.then_body[0])
        ):
            continue
        tail = list(stmts[i + 1:])
        if tail and not ends_with_exit(tail) and _is_linear_tail(tail):
            inverted = negate_or_chain(func, candidate.condition)
            return list(stmts[:i]) + [If(inverted, True, tail, [], None)]
    return list(stmts)