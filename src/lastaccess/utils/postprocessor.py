import copy
import json
import os
from subprocess import check_call

import networkx as nx
from networkx.readwrite import json_graph


def networkx_to_json(graph):
    """Convert a networkx graph to a json object"""
    graph_json = json_graph.node_link_data(graph, edges="links")
    return graph_json


def write_networkx_to_json(graph, filename):
    """Convert a networkx graph to a json object and write it to ``filename``"""
    graph_json = networkx_to_json(graph)
    with open(filename, "w") as f:
        json.dump(graph_json, f, default=str)
    return graph_json


def to_dot(graph):
    return nx.nx_pydot.to_pydot(_quoted(graph))


def _quoted(og_graph):
    """Copy of ``og_graph`` whose labels survive the trip through DOT"""
    graph = copy.deepcopy(og_graph)
    for node in graph.nodes:
        if "label" in graph.nodes[node]:
            label = str(graph.nodes[node]["label"])
            label = label.replace("\\", "\\\\")
            label = label.replace('"', '\\"')
            label = label.replace("\n", " ").replace("\r", " ")
            graph.nodes[node]["label"] = f'"{label}"'
    for edge in graph.edges(keys=True) if graph.is_multigraph() else graph.edges:
        data = graph.edges[edge]
        if "label" in data:
            data["label"] = f'"{data["label"]}"'
    return graph


def write_to_dot(og_graph, filename, output_png=False):
    graph = _quoted(og_graph)
    nx.nx_pydot.write_dot(graph, filename)
    if output_png:
        check_call(
            ["dot", "-Tpng", filename, "-o", os.path.splitext(filename)[0] + ".png"]
        )


def write_graph(graph, output_file, graph_format="dot", output_png=False):
    """Write ``graph`` as JSON and/or DOT next to ``output_file``"""
    written = {}
    if graph_format in ("all", "json"):
        json_file = os.path.splitext(output_file)[0] + ".json"
        written["json"] = write_networkx_to_json(graph, json_file)
    if graph_format in ("all", "dot"):
        dot_file = os.path.splitext(output_file)[0] + ".dot"
        write_to_dot(graph, dot_file, output_png=output_png)
        written["dot"] = dot_file
    return written
