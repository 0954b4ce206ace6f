from lantern_structure.conditions import flatten_or_chain, negate_condition, negate_or_chain
from lantern_structure.hir import Binary, BinOp, HirFunc, Unary, UnOp, Var


def _vars(func, count):
    return [func.exprs.alloc(Var(i)) for i in range(count)]


def test_flatten_left_associative_chain():
    func = HirFunc()
    a, b, c = _vars(func, 3)
    ab = func.exprs.alloc(Binary(BinOp.OR, a, b))
    abc = func.exprs.alloc(Binary(BinOp.OR, ab, c))
    assert flatten_or_chain(func, abc) == [a, b, c]


def test_flatten_non_or_is_single_term():
    func = HirFunc()
    a, b = _vars(func, 2)
    conj = func.exprs.alloc(Binary(BinOp.AND, a, b))
    assert flatten_or_chain(func, conj) == [conj]


def test_flatten_keeps_right_nested_or_as_term():
    func = HirFunc()
    a, b, c = _vars(func, 3)
    bc = func.exprs.alloc(Binary(BinOp.OR, b, c))
    top = func.exprs.alloc(Binary(BinOp.OR, a, bc))
    assert flatten_or_chain(func, top) == [a, bc]


def test_negate_condition_wraps_plain_value():
    func = HirFunc()
    (a,) = _vars(func, 1)
    assert func.exprs.get(negate_condition(func, a)) == Unary(UnOp.NOT, a)


def test_negate_or_chain_single_term_matches_negate_condition():
    func = HirFunc()
    a, b = _vars(func, 2)
    cmp_id = func.exprs.alloc(Binary(BinOp.COMPARE_LT, a, b))
    result = negate_or_chain(func, cmp_id)
    assert func.exprs.get(result) == Binary(BinOp.COMPARE_GE, a, b)


def test_negate_or_chain_applies_de_morgan():
    func = HirFunc()
    a, b, c = _vars(func, 3)
    ab = func.exprs.alloc(Binary(BinOp.OR, a, b))
    abc = func.exprs.alloc(Binary(BinOp.OR, ab, c))
    result = func.exprs.get(negate_or_chain(func, abc))

    assert result.op is BinOp.AND
    assert func.exprs.get(result.right) == Unary(UnOp.NOT, c)
    left = func.exprs.get(result.left)
    assert left.op is BinOp.AND
    assert func.exprs.get(left.left) == Unary(UnOp.NOT, a)
    assert func.exprs.get(left.right) == Unary(UnOp.NOT, b)


def test_negate_or_chain_unwraps_not_terms():
    func = HirFunc()
    a, b = _vars(func, 2)
    not_a = func.exprs.alloc(Unary(UnOp.NOT, a))
    chain = func.exprs.alloc(Binary(BinOp.OR, not_a, b))
    result = func.exprs.get(negate_or_chain(func, chain))
    assert result.left == a
    assert func.exprs.get(result.right) == Unary(UnOp.NOT, b)