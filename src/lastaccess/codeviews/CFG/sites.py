import enum
from dataclasses import dataclass, field
from typing import List, Optional

START = "start"
EXIT = "exit"


class SiteKind(enum.Enum):
    PLAIN = "plain"
    RETURN = "return"
    LOOP_HEADER = "loop-header"
    LOOP_BODY = "loop-body"
    LABEL = "label"
    GOTO = "goto"
    LOGICAL_AND = "logical-and"
    LOGICAL_OR = "logical-or"


@dataclass(eq=False)
class Site:
    """
    One syntactic occurrence that may access a binding.

    ``exprs`` are the short-circuit-free expression sub-trees evaluated at
    this site, in evaluation order. ``in_loop`` is True for sites that can
    run more than once because they sit in a loop header or body.
    """
    ordinal: int
    kind: SiteKind
    statement: object
    label: str = ""
    exprs: list = field(default_factory=list)
    in_loop: bool = False
    in_return: bool = False
    label_name: Optional[str] = None

    def __hash__(self):
        return self.ordinal

    def __repr__(self):
        return f"Site({self.ordinal}, {self.kind.value}, {self.label!r})"


@dataclass(frozen=True)
class GotoEdge:
    source: int
    target: int
    label: str

    @property
    def is_backward(self):
        return self.target <= self.source


class Region:
    pass


@dataclass(eq=False)
class Sequence(Region):
    items: list = field(default_factory=list)


@dataclass(eq=False)
class Branch(Region):
    """Mutually exclusive arms of an ``if``/``else`` or ``switch``"""
    statement: object
    arms: List[Sequence] = field(default_factory=list)


@dataclass(eq=False)
class Loop(Region):
    statement: object
    body: Sequence = field(default_factory=Sequence)


@dataclass(eq=False)
class ReturnExit(Region):
    """Marks the point where a ``return`` leaves the function"""
    statement: object
