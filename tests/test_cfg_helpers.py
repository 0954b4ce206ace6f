from lantern_structure.cfg_helpers import (
    branch_successors,
    collect_reachable,
    find_join_point,
    negate_condition,
    single_successor,
)
from lantern_structure.hir import (
    BasicBlock,
    Binary,
    BinOp,
    EdgeKind,
    ExprStmt,
    HirFunc,
    TermBranch,
    TermJump,
    TermReturn,
    Var,
)


def _diamond(join_stmts=()):
    func = HirFunc()
    cfg = func.cfg
    cond = func.exprs.alloc(Var(0))
    b0 = cfg.add_block(BasicBlock(terminator=TermBranch(cond, True), pc_range=(0, 1)))
    b1 = cfg.add_block(BasicBlock(terminator=TermJump(), pc_range=(2, 3)))
    b2 = cfg.add_block(BasicBlock(terminator=TermJump(), pc_range=(4, 5)))
    b3 = cfg.add_block(
        BasicBlock(stmts=list(join_stmts), terminator=TermReturn(()), pc_range=(6, 6))
    )
    cfg.add_edge(b0, b1, EdgeKind.THEN)
    cfg.add_edge(b0, b2, EdgeKind.ELSE)
    cfg.add_edge(b1, b3)
    cfg.add_edge(b2, b3)
    return func, (b0, b1, b2, b3)


def test_single_successor():
    func, (b0, b1, _, b3) = _diamond()
    assert single_successor(func.cfg, b1) == b3
    assert single_successor(func.cfg, b0) == b1
    assert single_successor(func.cfg, b3) is None


def test_branch_successors_then_else():
    func, (b0, b1, b2, _) = _diamond()
    assert branch_successors(func.cfg, b0) == (b1, b2)


def test_branch_successors_unconditional_order_and_loop_edges():
    func = HirFunc()
    cfg = func.cfg
    a, b, c = cfg.add_block(), cfg.add_block(), cfg.add_block()
    cfg.add_edge(a, b)
    cfg.add_edge(a, c)
    assert branch_successors(cfg, a) == (b, c)

    d = cfg.add_block()
    cfg.add_edge(d, c, EdgeKind.LOOP_EXIT)
    cfg.add_edge(d, b, EdgeKind.LOOP_BACK)
    assert branch_successors(cfg, d) == (b, c)


def test_collect_reachable_respects_stop_and_back_edges():
    func, (b0, b1, b2, b3) = _diamond()
    cfg = func.cfg
    assert collect_reachable(cfg, b0, None) == {b0, b1, b2, b3}
    assert collect_reachable(cfg, b0, b3) == {b0, b1, b2}
    cfg.add_edge(b3, b0, EdgeKind.LOOP_BACK)
    assert collect_reachable(cfg, b1, None) == {b1, b3}


def test_join_is_shared_sunk_return():
    func, (_, b1, b2, b3) = _diamond()
    assert find_join_point(func, b1, b2, None, set()) == b3


def test_sunk_return_ignored_when_visited():
    func, (_, b1, b2, b3) = _diamond()
    assert find_join_point(func, b1, b2, None, {b3}) is None


def test_join_with_statements_is_valid_candidate():
    func = HirFunc()
    stmt = ExprStmt(func.exprs.alloc(Var(1)))
    func, (_, b1, b2, b3) = _diamond([stmt])
    assert find_join_point(func, b1, b2, None, {b3}) == b3


def test_join_prefers_lowest_pc():
    func = HirFunc()
    cfg = func.cfg
    cond = func.exprs.alloc(Var(0))
    b0 = cfg.add_block(BasicBlock(terminator=TermBranch(cond), pc_range=(0, 0)))
    b1 = cfg.add_block(BasicBlock(terminator=TermJump(), pc_range=(1, 1)))
    b2 = cfg.add_block(BasicBlock(terminator=TermJump(), pc_range=(2, 2)))
    b3 = cfg.add_block(
        BasicBlock(stmts=[ExprStmt(cond)], terminator=TermReturn(()), pc_range=(3, 3))
    )
    cfg.add_edge(b0, b1, EdgeKind.THEN)
    cfg.add_edge(b0, b2, EdgeKind.ELSE)
    cfg.add_edge(b1, b2)
    cfg.add_edge(b2, b3)
    assert find_join_point(func, b1, b2, None, set()) == b2


def test_no_join_between_independent_returns():
    func = HirFunc()
    cfg = func.cfg
    cond = func.exprs.alloc(Var(0))
    b0 = cfg.add_block(BasicBlock(terminator=TermBranch(cond)))
    b1 = cfg.add_block(BasicBlock(terminator=TermReturn(())))
    b2 = cfg.add_block(BasicBlock(terminator=TermReturn(())))
    cfg.add_edge(b0, b1, EdgeKind.THEN)
    cfg.add_edge(b0, b2, EdgeKind.ELSE)
    assert find_join_point(func, b1, b2, None, set()) is None


def test_negate_condition_uses_arena():
    func = HirFunc()
    left = func.exprs.alloc(Var(1))
    right = func.exprs.alloc(Var(2))
    cmp_id = func.exprs.alloc(Binary(BinOp.COMPARE_EQ, left, right))
    neg = negate_condition(func, cmp_id)
    assert func.exprs.get(neg) == Binary(BinOp.COMPARE_NE, left, right)