"""Guard-clause predicates and trailing-return cleanup for structured output."""

from __future__ import annotations

from .hir import Break, If, Return


def _is_exit(stmt: object) -> bool:
    return isinstance(stmt, (Return, Break))


def _is_bare_return(stmt: object) -> bool:
    return isinstance(stmt, Return) and not stmt.values


def is_guard_clause(stmts: list) -> bool:
    """A short block (at most three statements) ending with return or break."""
    return 0 < len(stmts) <= 3 and _is_exit(stmts[-1])


def ends_with_exit(stmts: list) -> bool:
    """True if the statement list ends with return or break."""
    return bool(stmts) and _is_exit(stmts[-1])


def _branches(stmt: If):
    yield stmt.then_body
    for clause in stmt.elseif_clauses:
        yield clause.body
    if stmt.else_body is not None:
        yield stmt.else_body


def _has_non_bare_return(stmts: list) -> bool:
    if not stmts:
        return False
    last = stmts[-1]
    if isinstance(last, Return):
        return bool(last.values)
    if isinstance(last, If):
        return any(_has_non_bare_return(body) for body in _branches(last))
    return False


def _strip_trailing_return_if_not_sole(stmts: list) -> None:
    if len(stmts) > 1 and _is_bare_return(stmts[-1]):
        stmts.pop()
    if stmts and isinstance(stmts[-1], If):
        for body in _branches(stmts[-1]):
            _strip_trailing_return_if_not_sole(body)


def strip_trailing_returns(stmts: list) -> None:
    """Remove redundant trailing bare returns from a function body, in place.

    Branches of a final if statement lose their trailing bare return unless it
    is their only statement, and only when no branch returns a value.
    """
    if stmts and _is_bare_return(stmts[-1]):
        stmts.pop()
    if stmts and isinstance(stmts[-1], If):
        last = stmts[-1]
        if not any(_has_non_bare_return(body) for body in _branches(last)):
            for body in _branches(last):
                _strip_trailing_return_if_not_sole(body)