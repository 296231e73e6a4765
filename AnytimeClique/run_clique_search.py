import json
import sys
from typing import List, Optional, TextIO

import bittensor as bt

from AnytimeClique.graph.dimacs import read_dimacs
from AnytimeClique.graph.model import AdjacencyListGraph
from AnytimeClique.graph.undirected import UndirectedGraph
from AnytimeClique.scoring.clique_validation import CliqueValidator
from AnytimeClique.stream.anytime import find_biggest_clique
from AnytimeClique.utils.config import SearchSettings, check_config, config


def load_graph(source: TextIO, input_format: str) -> UndirectedGraph:
    if input_format == "json":
        return AdjacencyListGraph.model_validate(json.load(source)).to_graph()
    return read_dimacs(source).to_graph()


def run(args: Optional[List[str]] = None, out: TextIO = sys.stdout) -> dict:
    """Reads a graph, streams each improvement as a JSON line and returns the summary."""
    cfg = config(args)
    check_config(cfg)
    bt.logging.set_config(config=cfg.logging)
    settings = SearchSettings.from_config(cfg)

    if cfg.input.path == "-":
        graph = load_graph(sys.stdin, cfg.input.format)
    else:
        with open(cfg.input.path, "r") as f:
            graph = load_graph(f, cfg.input.format)
    bt.logging.info(f"Loaded {graph} from {cfg.input.path}")

    stream = find_biggest_clique(graph, settings.algorithm, settings.timeout)
    for event in stream:
        print(event.model_dump_json(), file=out, flush=True)

    final = stream.result()
    clique = sorted(final.nodes) if final is not None else []
    summary = {
        "algorithm": str(settings.algorithm),
        "size": len(clique),
        "clique": clique,
        "valid": CliqueValidator(graph).is_clique(clique),
        "timed_out": stream.timed_out,
    }
    print(json.dumps(summary), file=out, flush=True)
    return summary


if __name__ == "__main__":
    run()
