"""
Reads a function body serialised as JSON.

Every node is an object with a ``type`` key naming one of the classes in
:mod:`lastaccess.tree_parser.nodes`; the remaining keys are its fields::

    {"type": "Function", "name": "foo", "params": ["x"],
     "body": {"type": "Block", "body": [
         {"type": "Return", "value": {"type": "Name", "id": "x"}}]}}
"""
import dataclasses
import json

from loguru import logger

from ..errors import MalformedInputError
from . import nodes as N

node_classes = {
    cls.__name__: cls
    for cls in vars(N).values()
    if isinstance(cls, type) and issubclass(cls, N.Node) and dataclasses.is_dataclass(cls)
}


def _fail(message):
    logger.error(message)
    raise MalformedInputError(message)


def _convert(value, path):
    if isinstance(value, dict):
        return parse_node(value, path)
    if isinstance(value, list):
        return [_convert(v, f"{path}[{i}]") for i, v in enumerate(value)]
    return value


def parse_node(doc, path="$"):
    if not isinstance(doc, dict) or "type" not in doc:
        _fail(f"{path}: expected an object with a 'type' key")
    cls = node_classes.get(doc["type"])
    if cls is None:
        _fail(f"{path}: unknown node type {doc['type']!r}")

    kwargs = {}
    for f in dataclasses.fields(cls):
        if f.name in doc:
            kwargs[f.name] = _convert(doc[f.name], f"{path}.{f.name}")
        elif f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            _fail(f"{path}: {doc['type']} is missing field {f.name!r}")
    unknown = set(doc) - {"type"} - set(kwargs)
    if unknown:
        _fail(f"{path}: unknown fields {sorted(unknown)} for {doc['type']}")
    return cls(**kwargs)


def parse_function(doc):
    node = parse_node(doc)
    if not isinstance(node, N.Function):
        _fail(f"$: expected a Function, got {doc['type']}")
    return node


def loads(text):
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        _fail(f"invalid JSON: {e}")
    return parse_function(doc)


def load_function(path):
    with open(path, "r") as f:
        return loads(f.read())
