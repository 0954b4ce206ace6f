"""Clean-ups of temporaries and bare returns around return statements."""

from __future__ import annotations

from .hir import Assign, HirFunc, If, LocalTarget, MultiAssign, Return, Var


def _is_bare_return(stmt: object) -> bool:
    return isinstance(stmt, Return) and not stmt.values


def _branch_bodies(stmt: If):
    yield stmt.then_body
    for clause in stmt.elseif_clauses:
        yield clause.body
    if stmt.else_body is not None:
        yield stmt.else_body


def _var_of(func: HirFunc, expr_id: int):
    expr = func.exprs.get(expr_id)
    return expr.var if isinstance(expr, Var) else None


def inline_return_temps(func: HirFunc, stmts: list) -> list:
    """Inline temporaries that are only assigned and then returned.

    `a = e1; b = e2; return a, b` becomes `return e1, e2` when the
    temporaries are unnamed, and `a, b = call(); return a, b` becomes
    `return call()`.
    """
    stmts = list(stmts)
    if len(stmts) < 2:
        return stmts
    last = stmts[-1]
    if not isinstance(last, Return) or not last.values:
        return stmts

    ret_vals = last.values
    n = len(ret_vals)
    last_idx = len(stmts) - 1

    if len(stmts) >= n + 1:
        start = last_idx - n
        values = []
        for stmt, ret_val in zip(stmts[start:last_idx], ret_vals):
            if not (isinstance(stmt, Assign) and isinstance(stmt.target, LocalTarget)):
                break
            def_var = stmt.target.var
            # Named variables keep their assignment.
            if _var_of(func, ret_val) != def_var or func.vars.get(def_var).name is not None:
                break
            values.append(stmt.value)
        else:
            return stmts[:start] + [Return(values)]

    prev_idx = last_idx - 1
    prev = stmts[prev_idx]
    if isinstance(prev, MultiAssign) and len(prev.targets) == n and len(prev.values) == 1:
        if all(
            isinstance(target, LocalTarget) and target.var == _var_of(func, ret_val)
            for target, ret_val in zip(prev.targets, ret_vals)
        ):
            return stmts[:prev_idx] + [Return(list(prev.values))]

    return stmts


def _collapse_at(func: HirFunc, stmts: list, i: int):
    """The collapsed MultiAssign for the window at `i`, or None."""
    multi = stmts[i]
    n = len(multi.targets)
    temps = [
        t.var
        for t in multi.targets
        if isinstance(t, LocalTarget) and func.vars.get(t.var).name is None
    ]
    if len(temps) != n or i + n >= len(stmts):
        return None

    real_targets: list = [None] * n
    for stmt in stmts[i + 1 : i + 1 + n]:
        if not isinstance(stmt, Assign):
            return None
        used = _var_of(func, stmt.value)
        if used not in temps:
            return None
        pos = temps.index(used)
        if real_targets[pos] is not None:
            return None
        real_targets[pos] = stmt.target

    if any(t is None for t in real_targets):
        return None
    return MultiAssign(targets=real_targets, values=list(multi.values))


def collapse_multi_return_temps(func: HirFunc, stmts: list) -> list:
    """Fold `t1, t2 = call(); x = t1; y = t2` into `x, y = call()`.

    All temporaries must be unnamed and each must be used exactly once by
    the assignments that immediately follow, in any order.
    """
    stmts = list(stmts)
    i = 0
    while i < len(stmts):
        if isinstance(stmts[i], MultiAssign):
            collapsed = _collapse_at(func, stmts, i)
            if collapsed is not None:
                n = len(collapsed.targets)
                stmts[i : i + 1 + n] = [collapsed]
        i += 1
    return stmts


def _branch_has_value_return(stmts: list) -> bool:
    if not stmts:
        return False
    last = stmts[-1]
    if isinstance(last, Return):
        return bool(last.values)
    if isinstance(last, If):
        return any(_branch_has_value_return(body) for body in _branch_bodies(last))
    return False


def _strip_trailing_bare_return(stmts: list) -> None:
    if stmts and _is_bare_return(stmts[-1]):
        stmts.pop()
        return
    if stmts and isinstance(stmts[-1], If):
        for body in _branch_bodies(stmts[-1]):
            _strip_trailing_bare_return(body)


def strip_redundant_returns(stmts: list) -> None:
    """Remove redundant bare returns, in place.

    A final if whose else body is a lone bare return loses the else body
    (unless some branch returns a value), and when a bare return follows an
    if, the bare returns ending its branches are dropped.
    """
    if stmts and isinstance(stmts[-1], If):
        last = stmts[-1]
        else_body = last.else_body
        if (
            else_body is not None
            and len(else_body) == 1
            and _is_bare_return(else_body[0])
            and not _branch_has_value_return(last.then_body)
            and not any(_branch_has_value_return(c.body) for c in last.elseif_clauses)
        ):
            last.else_body = None

    if len(stmts) < 2:
        return
    if _is_bare_return(stmts[-1]) and isinstance(stmts[-2], If):
        for body in _branch_bodies(stmts[-2]):
            _strip_trailing_bare_return(body)