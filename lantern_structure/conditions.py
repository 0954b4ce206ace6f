"""Condition negation helpers shared across pattern passes."""

from __future__ import annotations

from .hir import Binary, BinOp, HirFunc


def negate_condition(func: HirFunc, condition: int) -> int:
    """Negate a condition using the arena's built-in negation."""
    return func.exprs.negate_condition(condition)


def flatten_or_chain(func: HirFunc, expr: int) -> list[int]:
    """Split a left-associative `or` chain into its terms, left to right."""
    terms: list[int] = []
    node = func.exprs.get(expr)
    while isinstance(node, Binary) and node.op is BinOp.OR:
        terms.append(node.right)
        expr = node.left
        node = func.exprs.get(expr)
    terms.append(expr)
    terms.reverse()
    return terms


def negate_or_chain(func: HirFunc, condition: int) -> int:
    """Negate a condition, applying De Morgan's law to `or` chains.

    `c1 or c2 or c3` becomes `(not c1) and (not c2) and (not c3)`.
    """
    terms = flatten_or_chain(func, condition)
    if len(terms) <= 1:
        return negate_condition(func, condition)
    result = negate_condition(func, terms[0])
    for term in terms[1:]:
        negated = negate_condition(func, term)
        result = func.exprs.alloc(Binary(BinOp.AND, result, negated))
    return result