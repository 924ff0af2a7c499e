from .codeviews.CFG.CFG import CFGGraph
from .codeviews.CFG.CFG_driver import CFGDriver
from .codeviews.CFG.sites import EXIT, START, GotoEdge, Site, SiteKind
from .codeviews.LastAccess.LastAccess_driver import LastAccessDriver
from .codeviews.LastAccess.access_scanner import scan
from .codeviews.LastAccess.escape_tracker import track
from .codeviews.LastAccess.propagation import LastAccessResult, propagate
from .errors import LastAccessError, MalformedInputError, UnknownSiteError
from .tree_parser.nodes import Binding

__version__ = "0.1.0"


def build(function, properties=None):
    """Build the CFG of one function body; ``properties`` as for ``analyze_function``"""
    return CFGGraph(function, (properties or {}).get("CFG"))


def analyze_function(function, properties=None):
    """Analysis over ``function``, ready for ``is_last_access`` queries"""
    return LastAccessDriver(function, properties=properties)
