# lantern-structure

This package is the structuring stage of a Luau bytecode decompiler. It takes
a function's control-flow graph, whose basic blocks already hold high-level
statements and expressions, and turns it into nested statements. It recovers
`if`/`elseif`/`else`, `while`, numeric `for` and generic `for` loops, `break`
and `continue`, and `and`/`or` conditions. It also provides pattern passes
that tidy the structured statement lists.

## Installation

```
pip install .
```

The package depends only on the standard library.

## Modules

- `lantern_structure.hir` holds the intermediate representation:
  - expressions such as `Literal`, `Var`, `Global`, `Binary`, `Unary`, `Call`,
    `MethodCall`, `FieldAccess`, `Table` and `Closure`;
  - statements such as `If`, `ElseIfClause`, `While`, `Repeat`, `NumericFor`,
    `GenericFor`, `Return`, `Assign`, `MultiAssign`, `LocalDecl`, `Break` and
    `Continue`;
  - assignment targets such as `LocalTarget`, `FieldTarget` and
    `GlobalTarget`;
  - the arenas `ExprArena` and `VarArena`. `ExprArena.negate_condition`
    unwraps `not`, inverts comparisons, and otherwise wraps the expression in
    `not`;
  - `ControlFlowGraph`, `BasicBlock`, `Edge` and `EdgeKind`, with the block
    terminators `TermNone`, `TermReturn`, `TermJump`, `TermBranch`,
    `TermForNumPrep`, `TermForNumBack` and `TermForGenBack`;
  - `HirFunc`, which groups the graph, its entry block and both arenas.
- `lantern_structure.postdom` provides `compute_postdom_tree(cfg, entry)`. The
  tree it returns answers `PostDomTree.ipdom(node)`.
- `lantern_structure.region` provides `structure_function(func)`, which
  structures the whole graph, and `structure_region(...)`.
- `lantern_structure.branch`, `lantern_structure.loops` and
  `lantern_structure.or_chain` recover if statements, loops (`LoopCtx`,
  `LoopResult`) and or-chains (`try_or_chain`, `OrChainMatch`).
- `lantern_structure.cfg_helpers` and `lantern_structure.guard` hold small
  graph queries and guard-clause helpers.
- The pattern passes each work on one statement or on one statement list:
  - `elseif.normalize_inverted_elseif` rewrites inverted elseif chains;
  - `compound.merge_compound_conditions` merges nested ifs into `and`
    conditions;
  - `guards` provides `decompose_guard_chain`, `hoist_else_guards`,
    `flip_elseif_guard`, `merge_consecutive_guards`, `flip_guard_to_wrapper`
    and `absorb_tail_into_else`;
  - `returns` provides `inline_return_temps`, `collapse_multi_return_temps`
    and `strip_redundant_returns`;
  - `conditions` provides `negate_condition`, `negate_or_chain` and
    `flatten_or_chain`.

## Example

```python
from lantern_structure.hir import (
    HirFunc, BasicBlock, EdgeKind, TermBranch, TermJump, TermReturn,
    Global, ExprStmt, Call,
)
from lantern_structure.region import structure_function

func = HirFunc()
cond = func.exprs.alloc(Global("ready"))
call = func.exprs.alloc(Call(func=func.exprs.alloc(Global("go")), args=()))

entry = func.cfg.add_block(BasicBlock(terminator=TermBranch(condition=cond, negated=True)))
body = func.cfg.add_block(BasicBlock(stmts=[ExprStmt(call)], terminator=TermJump()))
done = func.cfg.add_block(BasicBlock(terminator=TermReturn(())))
func.cfg.add_edge(entry, body, EdgeKind.THEN)
func.cfg.add_edge(entry, done, EdgeKind.ELSE)
func.cfg.add_edge(body, done, EdgeKind.UNCONDITIONAL)
func.entry = entry

structure_function(func)
print(func.cfg[func.entry].stmts)   # [If(condition=0, negated=True, then_body=[ExprStmt(expr=2)], ...)]
```

When `structure_function` returns, the entry block holds the whole structured
body, its terminator is `TermNone`, and `func.structured` is `True`. Trailing
bare returns that the function does not need are dropped.

## What it does not do

The package has no command-line tool. It does not read bytecode or build the
control-flow graph; the caller supplies a filled-in `HirFunc`. It does not
print source code. The pattern passes are not chained together. The caller
applies the passes it wants, walking nested bodies itself.

## Tests

```
pip install .[test]
pytest
```