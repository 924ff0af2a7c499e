# tests/test_postprocessor.py
"""
Tests for graph export helpers.
"""

import json

import networkx as nx

from lastaccess.codeviews.CFG.CFG import CFGGraph
from lastaccess.tree_parser import nodes as N
from lastaccess.utils import postprocessor
from tests.conftest import X, call, fn, lit, stmt


def sample_graph():
    return CFGGraph(fn(stmt(call("f", X(), lit("a\"b"))), N.Return(X()))).graph


class TestPostprocessor:

    def test_networkx_to_json(self):
        data = postprocessor.networkx_to_json(sample_graph())
        ids = {node["id"] for node in data["nodes"]}
        assert {0, 1, "start", "exit"} <= ids
        assert any(link["label"] == "return_exit" for link in data["links"])

    def test_quoting_leaves_original_untouched(self):
        graph = sample_graph()
        quoted = postprocessor._quoted(graph)
        assert graph.nodes[0]["label"] == "f(x, 'a\"b');"
        assert quoted.nodes[0]["label"] == '"f(x, \'a\\"b\');"'

    def test_to_dot(self):
        dot = postprocessor.to_dot(sample_graph())
        assert len(dot.get_nodes()) >= 4

    def test_write_graph_all_formats(self, tmp_path):
        written = postprocessor.write_graph(sample_graph(), str(tmp_path / "out.png"), "all")
        assert set(written) == {"json", "dot"}
        assert json.loads((tmp_path / "out.json").read_text())["directed"]
        assert (tmp_path / "out.dot").read_text().startswith(("digraph", "strict digraph"))

    def test_plain_digraph_export(self, tmp_path):
        graph = nx.DiGraph()
        graph.add_edge("a", "b", label="next_line")
        postprocessor.write_to_dot(graph, str(tmp_path / "plain.dot"))
        assert "next_line" in (tmp_path / "plain.dot").read_text()
