import time

from loguru import logger

from .CFG import CFGGraph
from ...utils import postprocessor

debug = False


class CFGDriver:
    def __init__(
        self,
        function,
        output_file="",
        graph_format="dot",
        properties=None,
    ):
        self.function = function
        self.properties = properties or {}

        start = time.time()
        self.CFG = CFGGraph(self.function, self.properties)
        if debug:
            logger.info("CFG for {}: {} sites in {:.3f}s", function.name, len(self.CFG.sites), time.time() - start)

        self.sites = self.CFG.sites
        self.graph = self.CFG.graph
        if output_file:
            self.written = postprocessor.write_graph(
                self.graph, output_file, graph_format,
                output_png=self.properties.get("output_png", False),
            )

    def get_graph(self):
        return self.graph
