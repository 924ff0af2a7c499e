"""
Statement and expression tree handed over by the front end.

Nodes compare by identity: two ``Name("x")`` objects are two different
syntactic occurrences of ``x``, and the CFG builder keys its site map on
the node objects themselves.
"""
from dataclasses import dataclass, field
from typing import List, Optional


class Node:
    """Base class for every tree node"""

    def children(self):
        return []


class Expr(Node):
    pass


class Stmt(Node):
    pass


@dataclass(eq=False)
class Name(Expr):
    id: str


@dataclass(eq=False)
class Literal(Expr):
    value: object = None


@dataclass(eq=False)
class Call(Expr):
    func: str
    args: List[Expr] = field(default_factory=list)

    def children(self):
        return list(self.args)


@dataclass(eq=False)
class Unary(Expr):
    op: str
    operand: Expr

    def children(self):
        return [self.operand]


@dataclass(eq=False)
class Binary(Expr):
    op: str
    left: Expr
    right: Expr

    def children(self):
        return [self.left, self.right]


@dataclass(eq=False)
class Assign(Expr):
    target: Expr
    value: Expr
    op: str = "="

    def children(self):
        return [self.target, self.value]


@dataclass(eq=False)
class Member(Expr):
    base: Expr
    field: str

    def children(self):
        return [self.base]


@dataclass(eq=False)
class Index(Expr):
    base: Expr
    index: Expr

    def children(self):
        return [self.base, self.index]


@dataclass(eq=False)
class AddressOf(Expr):
    """``&operand``: creates an alias that outlives the expression"""
    operand: Expr

    def children(self):
        return [self.operand]


@dataclass(eq=False)
class Move(Expr):
    """Explicit move of ``operand``; the binding is consumed and rebound."""
    operand: Expr

    def children(self):
        return [self.operand]


@dataclass(eq=False)
class LogicalAnd(Expr):
    left: Expr
    right: Expr

    def children(self):
        return [self.left, self.right]


@dataclass(eq=False)
class LogicalOr(Expr):
    left: Expr
    right: Expr

    def children(self):
        return [self.left, self.right]


@dataclass(eq=False)
class Block(Stmt):
    body: List[Stmt] = field(default_factory=list)

    def children(self):
        return list(self.body)


@dataclass(eq=False)
class ExprStmt(Stmt):
    expr: Expr

    def children(self):
        return [self.expr]


@dataclass(eq=False)
class Decl(Stmt):
    name: str
    init: Optional[Expr] = None

    def children(self):
        return [self.init] if self.init is not None else []


@dataclass(eq=False)
class If(Stmt):
    cond: Expr
    then: Stmt
    orelse: Optional[Stmt] = None

    def children(self):
        out = [self.cond, self.then]
        if self.orelse is not None:
            out.append(self.orelse)
        return out


@dataclass(eq=False)
class While(Stmt):
    cond: Expr
    body: Stmt

    def children(self):
        return [self.cond, self.body]


@dataclass(eq=False)
class DoWhile(Stmt):
    body: Stmt
    cond: Expr

    def children(self):
        return [self.body, self.cond]


@dataclass(eq=False)
class For(Stmt):
    init: Optional[Node]
    cond: Optional[Expr]
    step: Optional[Expr]
    body: Stmt

    def children(self):
        return [c for c in (self.init, self.cond, self.step, self.body) if c is not None]


@dataclass(eq=False)
class Foreach(Stmt):
    var: str
    iterable: Expr
    body: Stmt

    def children(self):
        return [self.iterable, self.body]


@dataclass(eq=False)
class Case(Stmt):
    """One ``case``; an empty ``values`` list is the ``default`` label"""
    values: List[Expr] = field(default_factory=list)
    body: List[Stmt] = field(default_factory=list)

    @property
    def is_default(self):
        return not self.values

    def children(self):
        return list(self.values) + list(self.body)


@dataclass(eq=False)
class Switch(Stmt):
    subject: Expr
    cases: List[Case] = field(default_factory=list)

    def children(self):
        return [self.subject] + list(self.cases)


@dataclass(eq=False)
class Labeled(Stmt):
    label: str
    stmt: Optional[Stmt] = None

    def children(self):
        return [self.stmt] if self.stmt is not None else []


@dataclass(eq=False)
class Goto(Stmt):
    label: str


@dataclass(eq=False)
class Return(Stmt):
    value: Optional[Expr] = None

    def children(self):
        return [self.value] if self.value is not None else []


@dataclass(eq=False)
class Break(Stmt):
    pass


@dataclass(eq=False)
class Continue(Stmt):
    pass


@dataclass(eq=False)
class Function(Node):
    name: str
    params: List[str] = field(default_factory=list)
    body: Block = field(default_factory=Block)

    def children(self):
        return [self.body]


@dataclass(frozen=True)
class Binding:
    """A local or by-value parameter tracked by the analysis"""
    name: str
    is_parameter: bool = False


def as_binding(binding):
    if isinstance(binding, Binding):
        return binding
    return Binding(str(binding))
