from pathlib import Path
from typing import Any, Dict
import json
import yaml
from .ir import Graph


def load_graph_data(path: Path) -> Dict[str, Any]:
    # YAML is a superset of JSON, one loader covers both
    data = yaml.safe_load(Path(path).read_text())
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping with 'nodes' and 'edges'")
    return data


def load_graph(path: Path) -> Graph:
    return Graph(**load_graph_data(path))


def save_graph(graph: Graph, path: Path):
    path = Path(path)
    data = graph.model_dump()
    if path.suffix == ".json":
        path.write_text(json.dumps(data, indent=2))
    else:
        path.write_text(yaml.safe_dump(data, sort_keys=False))
