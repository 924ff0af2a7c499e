# tests/test_escape_tracker.py
"""
Tests for address-of poisoning and its resets.
"""

from lastaccess.codeviews.CFG.CFG import CFGGraph
from lastaccess.codeviews.LastAccess.access_scanner import scan
from lastaccess.codeviews.LastAccess.escape_tracker import EscapeTracker, track
from lastaccess.tree_parser import nodes as N
from tests.conftest import X, call, fn, stmt


def take_address():
    return stmt(N.Assign(X("p"), N.AddressOf(X())))


class TestEscapeTracker:

    def test_no_address_taken(self):
        cfg = CFGGraph(fn(stmt(call("f", X())), N.Return(X())))
        tracker = EscapeTracker(scan(cfg, "x"))
        assert not tracker.escaped
        assert tracker.poisoned == frozenset()

    def test_poisoning_covers_the_site_and_everything_after(self):
        cfg = CFGGraph(fn(stmt(call("f", X())), take_address(), stmt(call("g")), N.Return(X())))
        tracker = EscapeTracker(scan(cfg, "x"))
        assert tracker.escaped
        assert tracker.poison_points == [1]
        assert tracker.poisoned == frozenset({1, 2, 3})
        assert not tracker.is_poisoned(0)

    def test_poisoning_is_monotonic(self):
        cfg = CFGGraph(fn(take_address(), take_address(), stmt(call("f", X()))))
        tracker = EscapeTracker(scan(cfg, "x"))
        assert tracker.poison_points == [0, 1]
        assert tracker.poisoned == frozenset({0, 1, 2})

    def test_move_clears_after_itself(self):
        cfg = CFGGraph(fn(take_address(), stmt(call("sink", N.Move(X()))), stmt(call("f", X()))))
        tracker = EscapeTracker(scan(cfg, "x"))
        assert tracker.reset_points == [1]
        assert tracker.poisoned == frozenset({0, 1})

    def test_address_taken_again_after_reset(self):
        cfg = CFGGraph(fn(
            take_address(),
            stmt(call("sink", N.Move(X()))),
            stmt(call("f", X())),
            take_address(),
            N.Return(X()),
        ))
        assert EscapeTracker(scan(cfg, "x")).poisoned == frozenset({0, 1, 3, 4})

    def test_extra_resets(self):
        cfg = CFGGraph(fn(take_address(), stmt(call("f")), stmt(call("g", X()))))
        tracker = EscapeTracker(scan(cfg, "x"), extra_resets=[1])
        assert tracker.poisoned == frozenset({0, 1})

    def test_reset_without_escape_is_recorded(self):
        cfg = CFGGraph(fn(stmt(call("sink", N.Move(X())))))
        tracker = EscapeTracker(scan(cfg, "x"))
        assert tracker.reset_points == [0]
        assert tracker.poisoned == frozenset()

    def test_track_helper(self):
        cfg = CFGGraph(fn(take_address(), N.Return(X())))
        assert track(cfg, "x") == frozenset({0, 1})
        assert track(cfg, "y") == frozenset()
