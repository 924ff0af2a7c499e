from ..tree_parser import nodes as N

statement_types = {
    "node_list_type": [
        N.Block,
        N.ExprStmt,
        N.Decl,
        N.If,
        N.While,
        N.DoWhile,
        N.For,
        N.Foreach,
        N.Switch,
        N.Case,
        N.Labeled,
        N.Goto,
        N.Return,
        N.Break,
        N.Continue,
    ],
    "non_control_statement": [
        N.ExprStmt,
        N.Decl,
    ],
    "loop_control_statement": [
        N.While,
        N.DoWhile,
        N.For,
        N.Foreach,
    ],
    "jump_statement": [
        N.Return,
        N.Goto,
        N.Break,
        N.Continue,
    ],
    "short_circuit": [
        N.LogicalAnd,
        N.LogicalOr,
    ],
}

binary_labels = {
    N.LogicalAnd: "&&",
    N.LogicalOr: "||",
}


def is_type(node, key):
    return isinstance(node, tuple(statement_types[key]))


def has_short_circuit(expr):
    """True if ``&&`` or ``||`` occurs anywhere below ``expr``"""
    if expr is None:
        return False
    if is_type(expr, "short_circuit"):
        return True
    return any(has_short_circuit(child) for child in expr.children())


def walk_expr(expr):
    """Pre-order walk of an expression sub-tree"""
    stack = [expr]
    while stack:
        node = stack.pop()
        if node is None:
            continue
        yield node
        stack.extend(reversed(node.children()))


def base_name(expr):
    """Name at the root of an lvalue path: ``x``, ``x.f``, ``x[i]``"""
    while isinstance(expr, (N.Member, N.Index)):
        expr = expr.base
    if isinstance(expr, N.Name):
        return expr.id
    return None


def get_bindings(function):
    """
    Parameters first, then locals in declaration order.
    Locals are ``Decl`` names and ``foreach`` loop variables.
    """
    bindings = [N.Binding(p, is_parameter=True) for p in function.params]
    seen = set(function.params)

    def visit(node):
        if isinstance(node, N.Decl):
            name = node.name
        elif isinstance(node, N.Foreach):
            name = node.var
        else:
            name = None
        if name is not None and name not in seen:
            seen.add(name)
            bindings.append(N.Binding(name))
        for child in node.children():
            if isinstance(child, N.Stmt):
                visit(child)

    visit(function.body)
    return bindings


def expr_to_text(expr):
    """Compact source-like rendering used for graph labels"""
    if expr is None:
        return ""
    if isinstance(expr, N.Name):
        return expr.id
    if isinstance(expr, N.Literal):
        return repr(expr.value) if isinstance(expr.value, str) else str(expr.value)
    if isinstance(expr, N.Call):
        return expr.func + "(" + ", ".join(expr_to_text(a) for a in expr.args) + ")"
    if isinstance(expr, N.Unary):
        return expr.op + expr_to_text(expr.operand)
    if isinstance(expr, N.Binary):
        return expr_to_text(expr.left) + " " + expr.op + " " + expr_to_text(expr.right)
    if isinstance(expr, N.Assign):
        return expr_to_text(expr.target) + " " + expr.op + " " + expr_to_text(expr.value)
    if isinstance(expr, N.Member):
        return expr_to_text(expr.base) + "." + expr.field
    if isinstance(expr, N.Index):
        return expr_to_text(expr.base) + "[" + expr_to_text(expr.index) + "]"
    if isinstance(expr, N.AddressOf):
        return "&" + expr_to_text(expr.operand)
    if isinstance(expr, N.Move):
        return "move(" + expr_to_text(expr.operand) + ")"
    if is_type(expr, "short_circuit"):
        op = binary_labels[type(expr)]
        return "(" + expr_to_text(expr.left) + " " + op + " " + expr_to_text(expr.right) + ")"
    return type(expr).__name__


def statement_label(stmt):
    """Label for the head site of a statement, in the style ``if(c)`` / ``while(c)``"""
    if isinstance(stmt, N.ExprStmt):
        return expr_to_text(stmt.expr) + ";"
    if isinstance(stmt, N.Decl):
        if stmt.init is None:
            return "auto " + stmt.name + ";"
        return "auto " + stmt.name + " = " + expr_to_text(stmt.init) + ";"
    if isinstance(stmt, N.If):
        return "if(" + expr_to_text(stmt.cond) + ")"
    if isinstance(stmt, N.While):
        return "while(" + expr_to_text(stmt.cond) + ")"
    if isinstance(stmt, N.DoWhile):
        return "while(" + expr_to_text(stmt.cond) + ")"
    if isinstance(stmt, N.For):
        return "for(; " + expr_to_text(stmt.cond) + "; " + expr_to_text(stmt.step) + ")"
    if isinstance(stmt, N.Foreach):
        return "foreach(" + stmt.var + "; " + expr_to_text(stmt.iterable) + ")"
    if isinstance(stmt, N.Switch):
        return "switch(" + expr_to_text(stmt.subject) + ")"
    if isinstance(stmt, N.Labeled):
        return stmt.label + ":"
    if isinstance(stmt, N.Goto):
        return "goto " + stmt.label + ";"
    if isinstance(stmt, N.Return):
        if stmt.value is None:
            return "return;"
        return "return " + expr_to_text(stmt.value) + ";"
    if isinstance(stmt, N.Break):
        return "break;"
    if isinstance(stmt, N.Continue):
        return "continue;"
    return type(stmt).__name__
