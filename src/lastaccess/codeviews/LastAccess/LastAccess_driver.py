import copy
import threading

from loguru import logger

from ...errors import UnknownSiteError
from ...tree_parser import nodes as N
from ...utils import postprocessor, stmt_nodes
from ..CFG.CFG_driver import CFGDriver
from ..CFG.sites import Site
from .access_scanner import AccessScan
from .escape_tracker import EscapeTracker
from .propagation import PropagationEngine, goto_exclusions

default_properties = {
    "CFG": {
        "exit_edges": True,
        "output_png": False,
    },
    "LastAccess": {
        "goto_reachability": True,
        "extra_resets": {},
    },
}


def with_defaults(properties):
    merged = copy.deepcopy(default_properties)
    for key, values in (properties or {}).items():
        merged.setdefault(key, {}).update(values)
    return merged


class LastAccessDriver:
    """
    Query interface over one function body.

    Each binding is scanned and swept once, on first use; later queries
    read the memoised result and never change it.
    """

    def __init__(
        self,
        function,
        output_file=None,
        graph_format="dot",
        properties=None,
    ):
        self.properties = with_defaults(properties)
        self.CFG_Results = CFGDriver(function, "", graph_format, self.properties["CFG"])
        self.CFG = self.CFG_Results.CFG
        self.function = function
        self._goto_excluded = None
        self._results = {}
        self._lock = threading.Lock()
        if output_file:
            postprocessor.write_graph(
                self.CFG_Results.graph, output_file, graph_format,
                output_png=self.properties["CFG"]["output_png"],
            )

    @property
    def goto_excluded(self):
        if self._goto_excluded is None:
            self._goto_excluded = goto_exclusions(
                self.CFG, self.properties["LastAccess"]["goto_reachability"]
            )
        return self._goto_excluded

    def bindings(self):
        return stmt_nodes.get_bindings(self.function)

    def _analysis(self, binding):
        binding = N.as_binding(binding)
        with self._lock:
            if binding.name not in self._results:
                scan = AccessScan(self.CFG, binding)
                resets = self.properties["LastAccess"]["extra_resets"].get(binding.name, ())
                escape = EscapeTracker(scan, resets)
                result = PropagationEngine(scan, self.goto_excluded, self.properties["LastAccess"]).run()
                if escape.escaped:
                    logger.debug(
                        f"{binding.name}: address taken at sites {escape.poison_points},"
                        f" reset at {escape.reset_points}"
                    )
                self._results[binding.name] = (scan, escape, result)
            return self._results[binding.name]

    def analyze(self, binding):
        return self._analysis(binding)[2]

    def scan(self, binding):
        return self._analysis(binding)[0]

    def escape(self, binding):
        return self._analysis(binding)[1]

    def resolve(self, site):
        """Ordinals named by ``site``: an ordinal, a Site, a statement or an expression node"""
        if isinstance(site, Site):
            site = site.ordinal
        if isinstance(site, int) and not isinstance(site, bool):
            if 0 <= site < len(self.CFG.sites):
                return [site]
            raise UnknownSiteError(site)
        if isinstance(site, N.Node):
            sites = self.CFG.sites_of(site)
            if sites:
                return [s.ordinal for s in sites]
        raise UnknownSiteError(site)

    def last_access_sites(self, binding):
        """Move-eligible sites: reported last accesses that are not escape-poisoned"""
        _, escape, result = self._analysis(binding)
        return sorted(o for o in result.last_access_sites if not escape.is_poisoned(o))

    def is_last_access(self, binding, site):
        ordinals = self.resolve(site)
        eligible = self.last_access_sites(binding)
        return any(o in eligible for o in ordinals)

    def to_networkx(self, binding):
        """Copy of the CFG annotated with the analysis of ``binding``"""
        scan, escape, result = self._analysis(binding)
        eligible = set(self.last_access_sites(binding))
        graph = copy.deepcopy(self.CFG.graph)
        for site in self.CFG.sites:
            record = scan[site.ordinal]
            graph.nodes[site.ordinal].update(
                accesses=record.accesses,
                address_of=record.address_of,
                poisoned=escape.is_poisoned(site.ordinal),
                candidate=site.ordinal in result.last_access_sites,
                last_access=site.ordinal in eligible,
            )
        return graph

    def report(self, bindings=None):
        """Plain-data summary, one entry per binding"""
        if bindings is None:
            bindings = self.bindings()
        out = {}
        for binding in bindings:
            binding = N.as_binding(binding)
            scan, escape, result = self._analysis(binding)
            out[binding.name] = {
                "accesses": scan.accessing_sites(),
                "poisoned": sorted(escape.poisoned),
                "last_access": [
                    {"site": o, "label": self.CFG.get_site(o).label}
                    for o in self.last_access_sites(binding)
                ],
            }
        return out
