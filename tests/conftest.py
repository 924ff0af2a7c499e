# tests/conftest.py
"""
Shared helpers for building statement trees by hand.

The trees mirror what a front end would hand over: every helper returns a
fresh node, so two calls to ``X()`` are two distinct occurrences of ``x``.
"""
import pytest

from lastaccess.codeviews.LastAccess.LastAccess_driver import LastAccessDriver
from lastaccess.tree_parser import nodes as N


def X(name="x"):
    return N.Name(name)


def call(func, *args):
    return N.Call(func, list(args))


def stmt(expr):
    return N.ExprStmt(expr)


def block(*body):
    return N.Block(list(body))


def fn(*body, params=("x",), name="foo"):
    return N.Function(name, list(params), block(*body))


def lit(value):
    return N.Literal(value)


def lt(left, right):
    return N.Binary("<", left, right)


def gt(left, right):
    return N.Binary(">", left, right)


@pytest.fixture
def analyze():
    """Build a driver over a function, optionally with extra properties."""
    def _analyze(function, properties=None):
        return LastAccessDriver(function, properties=properties)
    return _analyze


@pytest.fixture
def worked_example():
    """
    void foo(S x) {
        if (i) gun(x); else sun(x);
    L1: if (bun(x) < 0) goto L1;
        if (bun(x) > 5) goto L2;
        run(x);
    L2: return x;
    }
    """
    gun = stmt(call("gun", X()))
    sun = stmt(call("sun", X()))
    bun_lt = N.If(lt(call("bun", X()), lit(0)), N.Goto("L1"))
    bun_gt = N.If(gt(call("bun", X()), lit(5)), N.Goto("L2"))
    run = stmt(call("run", X()))
    ret = N.Return(X())
    function = fn(
        N.If(X("i"), gun, sun),
        N.Labeled("L1", bun_lt),
        bun_gt,
        run,
        N.Labeled("L2", ret),
    )
    sites = {
        "gun": gun,
        "sun": sun,
        "bun_lt": bun_lt,
        "bun_gt": bun_gt,
        "run": run,
        "ret": ret,
    }
    return function, sites
