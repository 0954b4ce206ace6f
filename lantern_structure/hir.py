"""High-level IR consumed by the structurer: expressions, statements and the CFG."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, Optional, Union


class BinOp(Enum):
    """Binary operators."""

    ADD = auto()
    SUB = auto()
    MUL = auto()
    DIV = auto()
    FLOOR_DIV = auto()
    MOD = auto()
    POW = auto()
    CONCAT = auto()
    COMPARE_EQ = auto()
    COMPARE_NE = auto()
    COMPARE_LT = auto()
    COMPARE_LE = auto()
    COMPARE_GT = auto()
    COMPARE_GE = auto()
    AND = auto()
    OR = auto()

    @property
    def is_comparison(self) -> bool:
        return self in _INVERTED_COMPARISON


_INVERTED_COMPARISON = {
    BinOp.COMPARE_EQ: BinOp.COMPARE_NE,
    BinOp.COMPARE_NE: BinOp.COMPARE_EQ,
    BinOp.COMPARE_LT: BinOp.COMPARE_GE,
    BinOp.COMPARE_GE: BinOp.COMPARE_LT,
    BinOp.COMPARE_LE: BinOp.COMPARE_GT,
    BinOp.COMPARE_GT: BinOp.COMPARE_LE,
}


class UnOp(Enum):
    """Unary operators."""

    NOT = auto()
    MINUS = auto()
    LEN = auto()


# --- Expressions -----------------------------------------------------------
# Expressions refer to each other through integer ids into an ExprArena.


@dataclass(frozen=True)
class Literal:
    """A constant: None stands for nil; otherwise a bool, number or string."""

    value: object = None


@dataclass(frozen=True)
class Var:
    var: int


@dataclass(frozen=True)
class Global:
    name: str


@dataclass(frozen=True)
class Upvalue:
    index: int


@dataclass(frozen=True)
class VarArg:
    pass


@dataclass(frozen=True)
class Reg:
    reg: int


@dataclass(frozen=True)
class Binary:
    op: BinOp
    left: int
    right: int


@dataclass(frozen=True)
class Unary:
    op: UnOp
    operand: int


@dataclass(frozen=True)
class Call:
    func: int
    args: tuple[int, ...] = ()


@dataclass(frozen=True)
class MethodCall:
    object: int
    method: str
    args: tuple[int, ...] = ()


@dataclass(frozen=True)
class FieldAccess:
    table: int
    field: str


@dataclass(frozen=True)
class IndexAccess:
    table: int
    key: int


@dataclass(frozen=True)
class Table:
    array: tuple[int, ...] = ()
    hash: tuple[tuple[int, int], ...] = ()


@dataclass(frozen=True)
class Concat:
    parts: tuple[int, ...]


@dataclass(frozen=True)
class IfExpr:
    condition: int
    then_expr: int
    else_expr: int


@dataclass(frozen=True)
class Select:
    source: int
    index: int


@dataclass(frozen=True)
class Capture:
    """A closure capture; the source is a local variable or an upvalue."""

    source: Union[Var, Upvalue]


@dataclass(frozen=True)
class Closure:
    proto: int
    captures: tuple[Capture, ...] = ()


Expr = Union[
    Literal, Var, Global, Upvalue, VarArg, Reg, Binary, Unary, Call, MethodCall,
    FieldAccess, IndexAccess, Table, Concat, IfExpr, Select, Closure,
]


# --- Assignment targets ----------------------------------------------------


@dataclass(frozen=True)
class LocalTarget:
    var: int


@dataclass(frozen=True)
class FieldTarget:
    table: int
    field: str


@dataclass(frozen=True)
class IndexTarget:
    table: int
    key: int


@dataclass(frozen=True)
class GlobalTarget:
    name: str


@dataclass(frozen=True)
class UpvalueTarget:
    index: int


LValue = Union[LocalTarget, FieldTarget, IndexTarget, GlobalTarget, UpvalueTarget]


# --- Statements ------------------------------------------------------------


@dataclass
class ElseIfClause:
    condition: int
    body: list = field(default_factory=list)


@dataclass
class LocalDecl:
    var: int
    init: Optional[int] = None


@dataclass
class MultiLocalDecl:
    vars: list = field(default_factory=list)
    values: list = field(default_factory=list)


@dataclass
class Assign:
    target: LValue
    value: int


@dataclass
class MultiAssign:
    targets: list = field(default_factory=list)
    values: list = field(default_factory=list)


@dataclass
class CompoundAssign:
    op: BinOp
    target: LValue
    value: int


@dataclass
class ExprStmt:
    expr: int


@dataclass
class Return:
    values: list = field(default_factory=list)


@dataclass
class If:
    """An if statement; `negated` records the polarity of the original jump."""

    condition: int
    negated: bool = True
    then_body: list = field(default_factory=list)
    elseif_clauses: list = field(default_factory=list)
    else_body: Optional[list] = None


@dataclass
class While:
    condition: int
    body: list = field(default_factory=list)


@dataclass
class Repeat:
    body: list
    condition: int


@dataclass
class NumericFor:
    var: int
    start: int
    limit: int
    step: Optional[int] = None
    body: list = field(default_factory=list)


@dataclass
class GenericFor:
    vars: list = field(default_factory=list)
    iterators: list = field(default_factory=list)
    body: list = field(default_factory=list)


@dataclass
class FunctionDef:
    name: LValue
    func_expr: int


@dataclass
class LocalFunctionDef:
    var: int
    func_expr: int


@dataclass
class Break:
    pass


@dataclass
class Continue:
    pass


@dataclass
class CloseUpvals:
    from_reg: int


@dataclass
class RegAssign:
    reg: int
    value: int


Stmt = Union[
    LocalDecl, MultiLocalDecl, Assign, MultiAssign, CompoundAssign, ExprStmt,
    Return, If, While, Repeat, NumericFor, GenericFor, FunctionDef,
    LocalFunctionDef, Break, Continue, CloseUpvals, RegAssign,
]


# --- Control-flow graph ----------------------------------------------------


class EdgeKind(Enum):
    THEN = auto()
    ELSE = auto()
    UNCONDITIONAL = auto()
    LOOP_BACK = auto()
    LOOP_EXIT = auto()


@dataclass(frozen=True)
class Edge:
    source: int
    target: int
    kind: EdgeKind


@dataclass(frozen=True)
class TermNone:
    pass


@dataclass(frozen=True)
class TermReturn:
    values: tuple[int, ...] = ()


@dataclass(frozen=True)
class TermJump:
    pass


@dataclass(frozen=True)
class TermBranch:
    condition: int
    negated: bool = True


@dataclass(frozen=True)
class TermForNumPrep:
    base_reg: int
    start: int
    limit: int
    step: Optional[int] = None
    loop_var_name: Optional[str] = None


@dataclass(frozen=True)
class TermForNumBack:
    base_reg: int = 0


@dataclass(frozen=True)
class TermForGenBack:
    base_reg: int = 0
    var_count: int = 0
    iterators: tuple[int, ...] = ()
    loop_var_names: tuple[Optional[str], ...] = ()


Terminator = Union[
    TermNone, TermReturn, TermJump, TermBranch, TermForNumPrep, TermForNumBack, TermForGenBack
]


@dataclass
class BasicBlock:
    stmts: list = field(default_factory=list)
    terminator: Terminator = field(default_factory=TermNone)
    pc_range: tuple[int, int] = (0, 0)
    has_empty_else_jump: bool = False


class ControlFlowGraph:
    """Directed graph of basic blocks; edges are reported in insertion order."""

    def __init__(self) -> None:
        self._blocks: list[BasicBlock] = []
        self._outgoing: list[list[Edge]] = []
        self._incoming: list[list[Edge]] = []

    def add_block(self, block: Optional[BasicBlock] = None) -> int:
        self._blocks.append(block if block is not None else BasicBlock())
        self._outgoing.append([])
        self._incoming.append([])
        return len(self._blocks) - 1

    def _check(self, node: int) -> None:
        if not 0 <= node < len(self._blocks):
            raise KeyError(f"no block {node}")

    def add_edge(self, source: int, target: int, kind: EdgeKind = EdgeKind.UNCONDITIONAL) -> Edge:
        self._check(source)
        self._check(target)
        edge = Edge(source, target, kind)
        self._outgoing[source].append(edge)
        self._incoming[target].append(edge)
        return edge

    def edges(self, node: int) -> tuple[Edge, ...]:
        self._check(node)
        return tuple(self._outgoing[node])

    def incoming(self, node: int) -> tuple[Edge, ...]:
        self._check(node)
        return tuple(self._incoming[node])

    def node_indices(self) -> range:
        return range(len(self._blocks))

    def __getitem__(self, node: int) -> BasicBlock:
        self._check(node)
        return self._blocks[node]

    def __len__(self) -> int:
        return len(self._blocks)

    def __contains__(self, node: object) -> bool:
        return isinstance(node, int) and 0 <= node < len(self._blocks)


# --- Arenas ----------------------------------------------------------------


class ExprArena:
    """Stores expressions and hands out integer ids for them."""

    def __init__(self) -> None:
        self._exprs: list[Expr] = []

    def alloc(self, expr: Expr) -> int:
        self._exprs.append(expr)
        return len(self._exprs) - 1

    def get(self, expr_id: int) -> Expr:
        if not 0 <= expr_id < len(self._exprs):
            raise IndexError(f"no expression {expr_id}")
        return self._exprs[expr_id]

    def negate_condition(self, expr_id: int) -> int:
        """Return the id of the logical negation of an expression.

        `not x` unwraps to `x`, comparisons invert their operator, and
        anything else is wrapped in `not`.
        """
        expr = self.get(expr_id)
        if isinstance(expr, Unary) and expr.op is UnOp.NOT:
            return expr.operand
        if isinstance(expr, Binary) and expr.op.is_comparison:
            return self.alloc(Binary(_INVERTED_COMPARISON[expr.op], expr.left, expr.right))
        return self.alloc(Unary(UnOp.NOT, expr_id))

    def __len__(self) -> int:
        return len(self._exprs)

    def __iter__(self) -> Iterator[Expr]:
        return iter(self._exprs)


@dataclass
class VarInfo:
    name: Optional[str] = None
    is_loop_var: bool = False

    def is_temporary(self) -> bool:
        """A compiler temporary has no source name and is not a loop variable."""
        return self.name is None and not self.is_loop_var


class VarArena:
    """Stores variable information indexed by integer ids."""

    def __init__(self) -> None:
        self._vars: list[VarInfo] = []

    def alloc(self, info: Optional[VarInfo] = None) -> int:
        self._vars.append(info if info is not None else VarInfo())
        return len(self._vars) - 1

    def get(self, var_id: int) -> VarInfo:
        if not 0 <= var_id < len(self._vars):
            raise IndexError(f"no variable {var_id}")
        return self._vars[var_id]

    def __len__(self) -> int:
        return len(self._vars)


@dataclass
class HirFunc:
    cfg: ControlFlowGraph = field(default_factory=ControlFlowGraph)
    entry: int = 0
    exprs: ExprArena = field(default_factory=ExprArena)
    vars: VarArena = field(default_factory=VarArena)
    structured: bool = False