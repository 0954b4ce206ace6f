from lantern_structure.branch import (
    branch_always_returns,
    collect_return_stmts,
    has_empty_else_annotation,
    structure_branch,
)
from lantern_structure.hir import (
    BasicBlock,
    Break,
    Continue,
    EdgeKind,
    ExprStmt,
    Global,
    HirFunc,
    If,
    Return,
    TermBranch,
    TermJump,
    TermNone,
    TermReturn,
    Unary,
    UnOp,
)
from lantern_structure.loops import LoopCtx
from lantern_structure.postdom import compute_postdom_tree


def _func():
    func = HirFunc()
    cond = func.exprs.alloc(Global("c"))
    return func, cond


def _block(func, stmts=(), terminator=None, pc=0, empty_else=False):
    return func.cfg.add_block(
        BasicBlock(
            stmts=list(stmts),
            terminator=terminator if terminator is not None else TermNone(),
            pc_range=(pc, pc),
            has_empty_else_jump=empty_else,
        )
    )


def _stmt(func, name):
    return ExprStmt(func.exprs.alloc(Global(name)))


def test_branch_always_returns_true_for_return_block():
    func, _ = _func()
    node = _block(func, terminator=TermReturn())
    assert branch_always_returns(func, node, None) is True


def test_branch_always_returns_false_when_reaching_stop():
    func, _ = _func()
    a = _block(func, terminator=TermJump())
    b = _block(func, terminator=TermReturn())
    func.cfg.add_edge(a, b)
    assert branch_always_returns(func, a, b) is False
    assert branch_always_returns(func, a, None) is True


def test_branch_always_returns_false_for_dead_end():
    func, _ = _func()
    a = _block(func, terminator=TermJump())
    b = _block(func, terminator=TermNone())
    func.cfg.add_edge(a, b)
    assert branch_always_returns(func, a, None) is False


def test_has_empty_else_annotation():
    func, _ = _func()
    a = _block(func, terminator=TermJump(), empty_else=True)
    b = _block(func, terminator=TermReturn())
    func.cfg.add_edge(a, b)
    assert has_empty_else_annotation(func, a, b) is True
    assert has_empty_else_annotation(func, a, None) is True
    plain = _block(func, terminator=TermJump())
    func.cfg.add_edge(plain, b)
    assert has_empty_else_annotation(func, plain, b) is False


def test_collect_return_stmts_follows_consumed_chain():
    func, cond = _func()
    a = _block(func, terminator=TermJump())
    b = _block(func, terminator=TermReturn((cond,)))
    func.cfg.add_edge(a, b)
    pdom = compute_postdom_tree(func.cfg, a)
    visited = {a, b}
    stmts = collect_return_stmts(func, a, None, None, visited, pdom)
    assert stmts == [Return([cond])]


def test_simple_if_then_joins_at_return():
    func, cond = _func()
    s = _stmt(func, "a")
    head = _block(func, terminator=TermBranch(cond, True), pc=0)
    then_n = _block(func, [s], TermJump(), pc=1)
    join = _block(func, terminator=TermReturn(), pc=2)
    func.cfg.add_edge(head, then_n, EdgeKind.THEN)
    func.cfg.add_edge(head, join, EdgeKind.ELSE)
    func.cfg.add_edge(then_n, join)
    pdom = compute_postdom_tree(func.cfg, head)
    result = []
    nxt = structure_branch(func, head, cond, True, None, None, {head}, result, pdom)
    assert nxt == join
    assert result == [If(cond, True, [s], [], None)]


def test_if_else_with_join():
    func, cond = _func()
    a, b = _stmt(func, "a"), _stmt(func, "b")
    head = _block(func, terminator=TermBranch(cond, False), pc=0)
    t = _block(func, [a], TermJump(), pc=1)
    e = _block(func, [b], TermJump(), pc=2)
    join = _block(func, terminator=TermReturn(), pc=3)
    func.cfg.add_edge(head, t, EdgeKind.THEN)
    func.cfg.add_edge(head, e, EdgeKind.ELSE)
    func.cfg.add_edge(t, join)
    func.cfg.add_edge(e, join)
    pdom = compute_postdom_tree(func.cfg, head)
    result = []
    nxt = structure_branch(func, head, cond, False, None, None, {head}, result, pdom)
    assert nxt == join
    assert result == [If(cond, False, [a], [], [b])]


def test_empty_then_flips_condition():
    func, cond = _func()
    b = _stmt(func, "b")
    head = _block(func, terminator=TermBranch(cond, True), pc=0)
    e = _block(func, [b], TermJump(), pc=1)
    join = _block(func, terminator=TermReturn(), pc=2)
    func.cfg.add_edge(head, join, EdgeKind.THEN)
    func.cfg.add_edge(head, e, EdgeKind.ELSE)
    func.cfg.add_edge(e, join)
    pdom = compute_postdom_tree(func.cfg, head)
    result = []
    nxt = structure_branch(func, head, cond, True, None, None, {head}, result, pdom)
    assert nxt == join
    assert len(result) == 1
    stmt = result[0]
    assert func.exprs.get(stmt.condition) == Unary(UnOp.NOT, cond)
    assert stmt.then_body == [b]
    assert stmt.else_body is None


def test_guard_clause_when_then_returns():
    func, cond = _func()
    a = _stmt(func, "a")
    head = _block(func, terminator=TermBranch(cond, True), pc=0)
    t = _block(func, [a], TermReturn(), pc=1)
    e = _block(func, terminator=TermJump(), pc=2)
    tail = _block(func, terminator=TermNone(), pc=3)
    func.cfg.add_edge(head, t, EdgeKind.THEN)
    func.cfg.add_edge(head, e, EdgeKind.ELSE)
    func.cfg.add_edge(e, tail)
    pdom = compute_postdom_tree(func.cfg, head)
    result = []
    nxt = structure_branch(func, head, cond, True, None, None, {head}, result, pdom)
    assert nxt == e
    assert result == [If(cond, True, [a, Return([])], [], None)]


def test_break_when_then_targets_loop_exit():
    func, cond = _func()
    head = _block(func, terminator=TermBranch(cond, True), pc=0)
    exit_node = _block(func, terminator=TermReturn(), pc=1)
    other = _block(func, terminator=TermReturn(), pc=2)
    func.cfg.add_edge(head, exit_node, EdgeKind.THEN)
    func.cfg.add_edge(head, other, EdgeKind.ELSE)
    pdom = compute_postdom_tree(func.cfg, head)
    result = []
    ctx = LoopCtx(header=99, exit=exit_node)
    nxt = structure_branch(func, head, cond, True, None, ctx, {head}, result, pdom)
    assert nxt == other
    assert result == [If(cond, True, [Break()], [], None)]


def test_continue_when_then_targets_loop_header():
    func, cond = _func()
    head = _block(func, terminator=TermBranch(cond, False), pc=0)
    loop_head = _block(func, terminator=TermReturn(), pc=1)
    other = _block(func, terminator=TermReturn(), pc=2)
    func.cfg.add_edge(head, loop_head, EdgeKind.THEN)
    func.cfg.add_edge(head, other, EdgeKind.ELSE)
    pdom = compute_postdom_tree(func.cfg, head)
    result = []
    ctx = LoopCtx(header=loop_head, exit=None)
    nxt = structure_branch(func, head, cond, False, None, ctx, {head}, result, pdom)
    assert nxt == other
    assert result == [If(cond, False, [Continue()], [], None)]