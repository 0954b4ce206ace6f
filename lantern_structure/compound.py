"""Merging of nested single-branch ifs into `and`-chained conditions."""

from __future__ import annotations

from .conditions import negate_condition
from .hir import Binary, BinOp, HirFunc, If


def merge_compound_conditions(func: HirFunc, stmt: object) -> object:
    """Merge compound conditions into `and` chains.

    `if A then (empty) elseif B then ... end` becomes
    `if (not A) and B then ... end`, and
    `if A then if B then <body> end end` becomes `if A and B then <body> end`.
    """
    while isinstance(stmt, If):
        if not stmt.then_body and stmt.elseif_clauses and stmt.else_body is None:
            first = stmt.elseif_clauses[0]
            not_cond = negate_condition(func, stmt.condition)
            and_cond = func.exprs.alloc(Binary(BinOp.AND, not_cond, first.condition))
            stmt = If(and_cond, True, list(first.body), list(stmt.elseif_clauses[1:]), None)
            continue

        if (
            len(stmt.then_body) == 1
            and not stmt.elseif_clauses
            and stmt.else_body is None
            and isinstance(stmt.then_body[0], If)
            and not stmt.then_body[0].elseif_clauses
            and stmt.then_body[0].else_body is None
        ):
            inner = stmt.then_body[0]
            and_cond = func.exprs.alloc(Binary(BinOp.AND, stmt.condition, inner.condition))
            stmt = If(and_cond, True, inner.then_body, [], None)
            continue
        break
    return stmt