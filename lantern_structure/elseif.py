"""Normalisation of inverted elseif chains.

Compiled elseif chains come out of structuring in inverted form:

    if A ~= X then
        if A ~= Y then <fallthrough> else <handler_Y> end
    else
        <handler_X>
    end

This pass rewrites them to

    if A == X then <handler_X>
    elseif A == Y then <handler_Y>
    else <fallthrough>
    end
"""

from __future__ import annotations

from .conditions import negate_condition
from .hir import Binary, ElseIfClause, HirFunc, If, Unary, UnOp


def _is_cleanly_negatable(func: HirFunc, condition: int) -> bool:
    """Negation removes a `not` or inverts a comparison, adding no wrapper."""
    expr = func.exprs.get(condition)
    if isinstance(expr, Unary):
        return expr.op is UnOp.NOT
    if isinstance(expr, Binary):
        return expr.op.is_comparison
    return False


def _can_invert_condition(func: HirFunc, condition: int, negated: bool) -> bool:
    # Guard form (negated=False) is always safe; wrapping form only if clean.
    return not negated or _is_cleanly_negatable(func, condition)


def _is_chain_link(then_body: list) -> bool:
    if len(then_body) != 1:
        return False
    inner = then_body[0]
    return isinstance(inner, If) and inner.else_body is not None and not inner.elseif_clauses


def normalize_inverted_elseif(func: HirFunc, stmt: object) -> object:
    """Rewrite an inverted `if` chain into an `if`/`elseif`/`else` chain."""
    return _normalize(func, stmt, in_chain=False)


def _normalize(func: HirFunc, stmt: object, in_chain: bool) -> object:
    if not isinstance(stmt, If):
        return stmt
    if stmt.elseif_clauses or stmt.else_body is None:
        return stmt

    condition = stmt.condition
    then_body = stmt.then_body
    else_body = stmt.else_body

    if not _is_chain_link(then_body):
        if in_chain and _can_invert_condition(func, condition, stmt.negated):
            # Leaf of an inverted chain: swap the bodies under the inverted condition.
            return If(
                condition=negate_condition(func, condition),
                negated=True,
                then_body=else_body,
                elseif_clauses=[],
                else_body=then_body,
            )
        return If(
            condition=condition,
            negated=stmt.negated,
            then_body=then_body,
            elseif_clauses=[],
            else_body=else_body,
        )

    if not _can_invert_condition(func, condition, stmt.negated):
        return If(
            condition=condition,
            negated=stmt.negated,
            then_body=then_body,
            elseif_clauses=[],
            else_body=else_body,
        )

    inverted = negate_condition(func, condition)
    inner = then_body[0]
    normalized = _normalize(
        func,
        If(
            condition=inner.condition,
            negated=inner.negated,
            then_body=inner.then_body,
            elseif_clauses=list(inner.elseif_clauses),
            else_body=inner.else_body,
        ),
        in_chain=True,
    )

    clauses = [ElseIfClause(normalized.condition, normalized.then_body)]
    clauses.extend(normalized.elseif_clauses)
    return If(
        condition=inverted,
        negated=True,
        then_body=else_body,
        elseif_clauses=clauses,
        else_body=normalized.else_body,
    )