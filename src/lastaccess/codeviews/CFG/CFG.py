import networkx as nx
from loguru import logger

from ...errors import MalformedInputError
from ...tree_parser import nodes as N
from ...utils import stmt_nodes
from .sites import (
    EXIT,
    START,
    Branch,
    GotoEdge,
    Loop,
    ReturnExit,
    Sequence,
    Site,
    SiteKind,
)


def relabel(frontier, label):
    out = []
    for node, _ in frontier:
        if (node, label) not in out:
            out.append((node, label))
    return out


class CFGGraph:
    """
    Flattens one function body into Sites and a successor graph.

    A frontier is a list of ``(node, edge_label)`` pairs: the dangling
    edges that attach to whatever site is created next. ``None`` as a
    label means the plain ``next_line`` edge.
    """

    def __init__(self, function, properties=None):
        if not isinstance(function, N.Function):
            self.fail(f"expected a Function node, got {type(function).__name__}", function)
        self.function = function
        self.properties = properties or {}

        self.sites = []
        self.labels = {}
        self.gotos = []
        self.node_sites = {}
        self.statement_sites = {}
        self.CFG_edge_list = []
        self.records = {
            "pending_gotos": [],
        }

        self._seq = None
        self._stmt = None
        self._stmt_kind = SiteKind.PLAIN
        self._frag = None
        self._in_loop = False
        self._in_return = False
        self._jump_targets = []

        self.region = self.build()
        self.graph = self.to_networkx()

    def fail(self, message, node=None):
        logger.error(message)
        raise MalformedInputError(message, node)

    def add_edge(self, src, dest, edge_type=None):
        """Add an edge to the CFG edge list with validation"""
        if src is None or dest is None:
            self.fail(f"Attempting to add edge with None: {src} -> {dest}")
        self.CFG_edge_list.append((src, dest, edge_type or "next_line"))

    def _connect(self, frontier, dest):
        for node, label in frontier:
            self.add_edge(node, dest, label)

    def new_site(self, kind, frontier, label=""):
        site = Site(
            ordinal=len(self.sites),
            kind=kind,
            statement=self._stmt,
            label=label,
            in_loop=self._in_loop,
            in_return=self._in_return,
        )
        self.sites.append(site)
        self.statement_sites.setdefault(self._stmt, []).append(site)
        self._seq.items.append(site)
        self._connect(frontier, site.ordinal)
        return site

    # ----- expressions -------------------------------------------------------

    def _attach(self, expr, site):
        site.exprs.append(expr)
        for node in stmt_nodes.walk_expr(expr):
            self.node_sites[node] = site

    def _fragment(self, frontier):
        """Site collecting the plain (non short-circuit) parts of a statement"""
        if self._frag is None:
            self._frag = self.new_site(self._stmt_kind, frontier, stmt_nodes.statement_label(self._stmt))
            return self._frag, [(self._frag.ordinal, None)]
        return self._frag, frontier

    def evaluate(self, expr, frontier):
        """Evaluate ``expr`` for its value, returns the frontier after it"""
        if not isinstance(expr, N.Expr):
            self.fail(f"expected an expression, got {type(expr).__name__}", expr)
        if not stmt_nodes.has_short_circuit(expr):
            site, frontier = self._fragment(frontier)
            self._attach(expr, site)
            return frontier
        if stmt_nodes.is_type(expr, "short_circuit"):
            true_exits, false_exits = self.branch_on(expr, frontier)
            return relabel(true_exits + false_exits, None)
        if isinstance(expr, (N.AddressOf, N.Move)):
            self.fail(f"short-circuit operand under {type(expr).__name__}", expr)
        for child in expr.children():
            frontier = self.evaluate(child, frontier)
        site, frontier = self._fragment(frontier)
        self.node_sites[expr] = site
        return frontier

    def _operand(self, kind, operand, frontier):
        if stmt_nodes.is_type(operand, "short_circuit"):
            return self.branch_on(operand, frontier)
        self._frag = self.new_site(kind, frontier, stmt_nodes.expr_to_text(operand))
        out = self.evaluate(operand, [(self._frag.ordinal, None)])
        self._frag = None
        return out, out

    def branch_on(self, expr, frontier):
        """
        Evaluate ``expr`` as a condition.
        Returns the frontiers taken when it is true and when it is false.
        """
        if isinstance(expr, N.LogicalAnd):
            lt, lf = self._operand(SiteKind.LOGICAL_AND, expr.left, frontier)
            rt, rf = self._operand(SiteKind.LOGICAL_AND, expr.right, relabel(lt, "pos_next"))
            return rt, relabel(lf, "neg_next") + rf
        if isinstance(expr, N.LogicalOr):
            lt, lf = self._operand(SiteKind.LOGICAL_OR, expr.left, frontier)
            rt, rf = self._operand(SiteKind.LOGICAL_OR, expr.right, relabel(lf, "neg_next"))
            return relabel(lt, "pos_next") + rt, rf
        out = self.evaluate(expr, frontier)
        return out, out

    # ----- statements --------------------------------------------------------

    def _begin(self, stmt, kind, frontier):
        """Create the head site of ``stmt``"""
        self._stmt = stmt
        self._stmt_kind = kind
        self._frag = self.new_site(kind, frontier, stmt_nodes.statement_label(stmt))
        self.node_sites[stmt] = self._frag
        return [(self._frag.ordinal, None)]

    def _end(self):
        self._frag = None

    def _plain_kind(self):
        return SiteKind.LOOP_BODY if self._in_loop else SiteKind.PLAIN

    def _enclosing(self, loops_only):
        for target in reversed(self._jump_targets):
            if not loops_only or target["kind"] == "loop":
                return target
        return None

    def visit(self, stmt, frontier):
        if not stmt_nodes.is_type(stmt, "node_list_type") or isinstance(stmt, N.Case):
            self.fail(f"unexpected statement {type(stmt).__name__}", stmt)

        if isinstance(stmt, N.Block):
            for child in stmt.body:
                frontier = self.visit(child, frontier)
            return frontier

        if stmt_nodes.is_type(stmt, "non_control_statement"):
            frontier = self._begin(stmt, self._plain_kind(), frontier)
            expr = stmt.expr if isinstance(stmt, N.ExprStmt) else stmt.init
            if expr is not None:
                frontier = self.evaluate(expr, frontier)
            self._end()
            return frontier

        if isinstance(stmt, N.If):
            return self.visit_if(stmt, frontier)
        if isinstance(stmt, N.Switch):
            return self.visit_switch(stmt, frontier)
        if stmt_nodes.is_type(stmt, "loop_control_statement"):
            return self.visit_loop(stmt, frontier)
        if isinstance(stmt, N.Labeled):
            return self.visit_label(stmt, frontier)
        if stmt_nodes.is_type(stmt, "jump_statement"):
            self.visit_jump(stmt, frontier)
            return []
        self.fail(f"unhandled statement {type(stmt).__name__}", stmt)

    def visit_if(self, stmt, frontier):
        frontier = self._begin(stmt, self._plain_kind(), frontier)
        true_exits, false_exits = self.branch_on(stmt.cond, frontier)
        self._end()

        branch = Branch(stmt)
        self._seq.items.append(branch)
        outer = self._seq

        self._seq = Sequence()
        branch.arms.append(self._seq)
        out = self.visit(stmt.then, relabel(true_exits, "pos_next"))

        self._seq = Sequence()
        branch.arms.append(self._seq)
        if stmt.orelse is not None:
            out = out + self.visit(stmt.orelse, relabel(false_exits, "neg_next"))
        else:
            out = out + relabel(false_exits, "neg_next")

        self._seq = outer
        return out

    def visit_switch(self, stmt, frontier):
        frontier = self._begin(stmt, self._plain_kind(), frontier)
        frontier = self.evaluate(stmt.subject, frontier)
        self._end()

        branch = Branch(stmt)
        self._seq.items.append(branch)
        outer = self._seq
        target = {"kind": "switch", "breaks": [], "continues": []}
        self._jump_targets.append(target)

        fallthrough = []
        has_default = False
        for case in stmt.cases:
            if not isinstance(case, N.Case):
                self.fail(f"switch arm must be a Case, got {type(case).__name__}", case)
            has_default = has_default or case.is_default
            # a case reached by fallthrough continues the previous arm
            if not fallthrough:
                self._seq = Sequence()
                branch.arms.append(self._seq)
            entry = relabel(frontier, "switch_case") + relabel(fallthrough, "next_line")
            for child in case.body:
                entry = self.visit(child, entry)
            fallthrough = entry

        out = fallthrough + target["breaks"]
        if not has_default:
            self._seq = Sequence()
            branch.arms.append(self._seq)
            out = out + relabel(frontier, "switch_exit")

        self._jump_targets.pop()
        self._seq = outer
        return out

    def visit_loop(self, stmt, frontier):
        if isinstance(stmt, N.For) and stmt.init is not None:
            if isinstance(stmt.init, N.Stmt):
                frontier = self.visit(stmt.init, frontier)
            else:
                # the initializer runs once, ahead of the loop
                frontier = self._begin(stmt, self._plain_kind(), frontier)
                self._frag.label = stmt_nodes.expr_to_text(stmt.init) + ";"
                frontier = self.evaluate(stmt.init, frontier)
                self._end()

        loop = Loop(stmt)
        self._seq.items.append(loop)
        outer, was_in_loop = self._seq, self._in_loop
        self._seq = loop.body
        self._in_loop = True
        target = {"kind": "loop", "breaks": [], "continues": []}
        self._jump_targets.append(target)

        if isinstance(stmt, N.DoWhile):
            out = self._do_while(stmt, frontier, target)
        else:
            out = self._pre_tested(stmt, frontier, target)

        self._jump_targets.pop()
        self._seq, self._in_loop = outer, was_in_loop
        return out + target["breaks"]

    def _header(self, stmt, expr, frontier):
        frontier = self._begin(stmt, SiteKind.LOOP_HEADER, frontier)
        head = self._frag
        if isinstance(stmt, N.Foreach):
            frontier = self.evaluate(expr, frontier)
            true_exits, false_exits = frontier, frontier
        elif expr is None:
            true_exits, false_exits = frontier, []
        else:
            true_exits, false_exits = self.branch_on(expr, frontier)
        self._end()
        return head, true_exits, false_exits

    def _pre_tested(self, stmt, frontier, target):
        cond = stmt.iterable if isinstance(stmt, N.Foreach) else stmt.cond
        head, true_exits, false_exits = self._header(stmt, cond, frontier)
        body_out = self.visit(stmt.body, relabel(true_exits, "pos_next"))
        back = body_out + relabel(target["continues"], "jump_next")

        if isinstance(stmt, N.For) and stmt.step is not None:
            self._stmt = stmt
            self._stmt_kind = SiteKind.LOOP_HEADER
            step = self.new_site(SiteKind.LOOP_HEADER, back, stmt_nodes.expr_to_text(stmt.step))
            self._frag = step
            back = self.evaluate(stmt.step, [(step.ordinal, None)])
            self._end()

        self._connect(relabel(back, "loop_control"), head.ordinal)
        return relabel(false_exits, "neg_next")

    def _do_while(self, stmt, frontier, target):
        first = len(self.sites)
        body_out = self.visit(stmt.body, frontier)
        head, true_exits, false_exits = self._header(
            stmt, stmt.cond, body_out + relabel(target["continues"], "jump_next")
        )
        entry = first if first < head.ordinal else head.ordinal
        self._connect(relabel(true_exits, "loop_control"), entry)
        return relabel(false_exits, "neg_next")

    def visit_label(self, stmt, frontier):
        if stmt.label in self.labels:
            self.fail(f"label {stmt.label!r} defined twice", stmt)
        frontier = self._begin(stmt, SiteKind.LABEL, frontier)
        self._frag.label_name = stmt.label
        self.labels[stmt.label] = self._frag
        self._end()
        if stmt.stmt is not None:
            frontier = self.visit(stmt.stmt, frontier)
        return frontier

    def visit_jump(self, stmt, frontier):
        if isinstance(stmt, N.Return):
            self._in_return = True
            frontier = self._begin(stmt, SiteKind.RETURN, frontier)
            if stmt.value is not None:
                frontier = self.evaluate(stmt.value, frontier)
            self._end()
            self._in_return = False
            self._seq.items.append(ReturnExit(stmt))
            if self.properties.get("exit_edges", True):
                self._connect(relabel(frontier, "return_exit"), EXIT)
            return

        if isinstance(stmt, N.Goto):
            self._begin(stmt, SiteKind.GOTO, frontier)
            self.records["pending_gotos"].append((self._frag, stmt.label))
            self._end()
            return

        loops_only = isinstance(stmt, N.Continue)
        target = self._enclosing(loops_only)
        if target is None:
            kind = "continue" if loops_only else "break"
            self.fail(f"{kind} outside of a loop or switch", stmt)
        frontier = self._begin(stmt, self._plain_kind(), frontier)
        self._end()
        key = "continues" if loops_only else "breaks"
        target[key].extend(relabel(frontier, "jump_next"))

    # ----- driver ------------------------------------------------------------

    def resolve_gotos(self):
        for site, label in self.records["pending_gotos"]:
            if label not in self.labels:
                self.fail(f"goto to undefined label {label!r}", site.statement)
            target = self.labels[label]
            self.add_edge(site.ordinal, target.ordinal, "jump_next")
            self.gotos.append(GotoEdge(site.ordinal, target.ordinal, label))

    def build(self):
        region = Sequence()
        self._seq = region
        self._stmt = self.function.body
        if not isinstance(self.function.body, N.Block):
            self.fail("function body must be a Block", self.function.body)
        out = self.visit(self.function.body, [(START, "next")])
        if self.properties.get("exit_edges", True):
            self._connect(out, EXIT)
        if not self.sites:
            self.add_edge(START, EXIT, "next")
        self.resolve_gotos()
        return region

    def to_networkx(self):
        graph = nx.MultiDiGraph()
        graph.add_node(START, label="start", kind="start")
        graph.add_node(EXIT, label="exit", kind="exit")
        for site in self.sites:
            graph.add_node(
                site.ordinal,
                label=site.label,
                kind=site.kind.value,
                in_loop=site.in_loop,
                in_return=site.in_return,
            )
        for src, dest, edge_type in self.CFG_edge_list:
            graph.add_edge(src, dest, label=edge_type)
        return graph

    def get_site(self, ordinal):
        return self.sites[ordinal]

    def sites_of(self, node):
        """All sites created for a statement, or the single owner of an expression"""
        if node in self.statement_sites:
            return list(self.statement_sites[node])
        if node in self.node_sites:
            return [self.node_sites[node]]
        return []
