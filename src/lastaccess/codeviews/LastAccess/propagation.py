"""
Last-Access Propagation Engine.

Walks the region tree of one function in source order keeping a single
current candidate per binding. The state is one of

    NO_CANDIDATE        nothing provisionally last yet
    Candidate(site)     most recent access, cleared by any later access
    Frozen(site)        a ``return`` access; last on its own path, never cleared

Frozen entries are collected on the side, so the walk can carry on for
the paths that do not go through that ``return``.

Backward gotos are handled in a first pass: every site that lies between
a label and a later ``goto`` to it, and can reach that ``goto``, may run
again and is never a candidate. The second pass is the region walk.
"""
import time
from dataclasses import dataclass, field
from typing import Optional, Tuple

import networkx as nx
from loguru import logger

from ..CFG.sites import Branch, Loop, ReturnExit, Sequence, Site

debug = False


class _NoCandidate:
    def __repr__(self):
        return "NO_CANDIDATE"

    def __bool__(self):
        return False


NO_CANDIDATE = _NoCandidate()


@dataclass(frozen=True)
class Candidate:
    ordinal: int


@dataclass(frozen=True)
class Frozen:
    ordinal: int


@dataclass(frozen=True)
class LastAccessResult:
    binding: object
    final: Optional[int] = None
    frozen: Tuple[int, ...] = ()
    provisional: Tuple[int, ...] = ()
    excluded: frozenset = field(default_factory=frozenset)

    @property
    def last_access_sites(self):
        sites = set(self.frozen)
        if self.final is not None:
            sites.add(self.final)
        return frozenset(sites)


def goto_exclusions(cfg, reachability=True):
    """
    Sites that a backward goto can run again.
    Independent of the binding, so callers compute it once per CFG.
    """
    excluded = set()
    for edge in cfg.gotos:
        if not edge.is_backward:
            continue
        span = range(edge.target, edge.source + 1)
        if reachability:
            reaching = nx.ancestors(cfg.graph, edge.source)
            reaching.add(edge.source)
            excluded.update(o for o in span if o in reaching)
        else:
            excluded.update(span)
    return frozenset(excluded)


class PropagationEngine:
    def __init__(self, scan, goto_excluded=None, properties=None):
        self.scan = scan
        self.cfg = scan.cfg
        self.properties = properties or {}
        if goto_excluded is None:
            goto_excluded = goto_exclusions(self.cfg, self.properties.get("goto_reachability", True))
        self.goto_excluded = goto_excluded
        self.frozen = []
        self.provisional = []
        self.excluded = set()

    def run(self):
        start = time.time()
        current, _, _ = self.walk(self.cfg.region, NO_CANDIDATE)
        final = current.ordinal if isinstance(current, Candidate) else None
        if final is not None and self.reaches_access(final):
            final = None
        result = LastAccessResult(
            binding=self.scan.binding,
            final=final,
            frozen=tuple(f.ordinal for f in self.frozen if not self.reaches_access(f.ordinal)),
            provisional=tuple(self.provisional),
            excluded=frozenset(self.excluded),
        )
        if debug:
            logger.info("last-access sweep for {}: {:.3f}s", self.scan.binding.name, time.time() - start)
        return result

    def reaches_access(self, ordinal):
        """
        True if another access of the binding can run after ``ordinal``.
        Catches control transfers the region tree does not show, such as a
        goto from one branch arm into another.
        """
        later = [o for o in nx.descendants(self.cfg.graph, ordinal) if o != ordinal and self.scan.accesses(o)]
        if later:
            logger.debug(f"{self.scan.binding.name}: site {ordinal} dropped, reaches access at {sorted(later)}")
        return bool(later)

    def walk(self, seq, current):
        """Returns ``(current, touched, accessed)`` after ``seq``"""
        touched = accessed = False
        for item in seq.items:
            if isinstance(item, Site):
                current, t, a = self.visit_site(item, current)
            elif isinstance(item, Branch):
                current, t, a = self.merge(item, current)
            elif isinstance(item, Loop):
                current, t, a = self.walk(item.body, current)
            elif isinstance(item, ReturnExit):
                current = self.freeze(item, current)
                t = a = False
            elif isinstance(item, Sequence):
                current, t, a = self.walk(item, current)
            else:
                raise TypeError(f"unexpected region item {item!r}")
            touched = touched or t
            accessed = accessed or a
        return current, touched, accessed

    def visit_site(self, site, current):
        record = self.scan[site.ordinal]
        if not record.accesses:
            return current, False, False

        if record.is_return_access:
            # loop and goto exclusion do not apply: a return never runs twice
            self.provisional.append(site.ordinal)
            return Candidate(site.ordinal), True, False

        if site.in_loop or site.ordinal in self.goto_excluded:
            self.excluded.add(site.ordinal)
            if current:
                logger.debug(f"{self.scan.binding.name}: site {current.ordinal} cleared by excluded site {site.ordinal}")
            return NO_CANDIDATE, True, True

        self.provisional.append(site.ordinal)
        return Candidate(site.ordinal), True, True

    def freeze(self, exit_, current):
        if isinstance(current, Candidate) and self.cfg.get_site(current.ordinal).statement is exit_.statement:
            self.frozen.append(Frozen(current.ordinal))
            return NO_CANDIDATE
        return current

    def merge(self, branch, incoming):
        """
        Arms of a branch are mutually exclusive. If two or more of them
        access the binding outside a ``return``, none of those accesses
        dominates and no candidate survives the branch.
        """
        outcomes = [self.walk(arm, incoming) for arm in branch.arms]
        if not any(touched for _, touched, _ in outcomes):
            return incoming, False, False

        accessing = [current for current, _, accessed in outcomes if accessed]
        if len(accessing) == 1:
            current = accessing[0]
        else:
            current = NO_CANDIDATE
            if len(accessing) > 1:
                logger.debug(f"{self.scan.binding.name}: divergent branch, no candidate survives")
        return current, True, bool(accessing)


def propagate(scan, goto_excluded=None, properties=None):
    return PropagationEngine(scan, goto_excluded, properties).run()
