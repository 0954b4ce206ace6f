from lantern_structure.hir import (
    BasicBlock,
    ControlFlowGraph,
    EdgeKind,
    TermBranch,
    TermJump,
    TermReturn,
)
from lantern_structure.postdom import PostDomTree, compute_postdom_tree


def _diamond():
    cfg = ControlFlowGraph()
    b0 = cfg.add_block(BasicBlock(terminator=TermBranch(0)))
    b1 = cfg.add_block(BasicBlock(terminator=TermJump()))
    b2 = cfg.add_block(BasicBlock(terminator=TermJump()))
    b3 = cfg.add_block(BasicBlock(terminator=TermReturn(())))
    cfg.add_edge(b0, b1, EdgeKind.THEN)
    cfg.add_edge(b0, b2, EdgeKind.ELSE)
    cfg.add_edge(b1, b3)
    cfg.add_edge(b2, b3)
    return cfg, (b0, b1, b2, b3)


def test_diamond_join_post_dominates_branch():
    cfg, (b0, b1, b2, b3) = _diamond()
    tree = compute_postdom_tree(cfg, b0)
    assert tree.ipdom(b0) == b3
    assert tree.ipdom(b1) == b3
    assert tree.ipdom(b2) == b3
    assert tree.ipdom(b3) is None


def test_linear_chain():
    cfg = ControlFlowGraph()
    a = cfg.add_block(BasicBlock(terminator=TermJump()))
    b = cfg.add_block(BasicBlock(terminator=TermJump()))
    c = cfg.add_block(BasicBlock(terminator=TermReturn(())))
    cfg.add_edge(a, b)
    cfg.add_edge(b, c)
    tree = compute_postdom_tree(cfg, a)
    assert tree.ipdom(a) == b
    assert tree.ipdom(b) == c


def test_independent_returns_have_no_join():
    cfg = ControlFlowGraph()
    b0 = cfg.add_block(BasicBlock(terminator=TermBranch(0)))
    b1 = cfg.add_block(BasicBlock(terminator=TermReturn(())))
    b2 = cfg.add_block(BasicBlock(terminator=TermReturn(())))
    cfg.add_edge(b0, b1, EdgeKind.THEN)
    cfg.add_edge(b0, b2, EdgeKind.ELSE)
    tree = compute_postdom_tree(cfg, b0)
    assert tree.ipdom(b0) is None


def test_empty_graph():
    tree = compute_postdom_tree(ControlFlowGraph(), 0)
    assert tree.ipdom(0) is None


def test_back_edge_source_is_treated_as_exit():
    cfg = ControlFlowGraph()
    pre = cfg.add_block(BasicBlock(terminator=TermJump()))
    header = cfg.add_block(BasicBlock(terminator=TermBranch(0)))
    body = cfg.add_block(BasicBlock(terminator=TermJump()))
    done = cfg.add_block(BasicBlock(terminator=TermReturn(())))
    cfg.add_edge(pre, header)
    cfg.add_edge(header, body, EdgeKind.THEN)
    cfg.add_edge(header, done, EdgeKind.ELSE)
    cfg.add_edge(body, header, EdgeKind.LOOP_BACK)
    tree = compute_postdom_tree(cfg, pre)
    assert tree.ipdom(header) is None
    assert tree.ipdom(pre) == header


def test_tree_lookup():
    tree = PostDomTree({1: 2})
    assert tree.ipdom(1) == 2
    assert tree.ipdom(2) is None