"""
Command-line entry point.

    entity-graph stats DATASET
    entity-graph tools
    entity-graph run DATASET TOOL --params '{"sector": "rail"}'
    entity-graph layout DATASET --cluster-by sector
    entity-graph serve --dataset DATASET
"""

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from .config import GraphConfig
from .engine import EntityGraphEngine
from .errors import EntityGraphError
from .layout import ClusterBy

logger = logging.getLogger(__name__)


def _print(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _load(path: str, similarity: bool = False) -> EntityGraphEngine:
    engine = EntityGraphEngine(GraphConfig.from_env())
    report = engine.load_file(path, include_similarity=similarity)
    for collection, failures in report.failures.items():
        for failure in failures:
            logger.warning("%s: %s", collection, failure.error)
    return engine


def cmd_stats(args) -> int:
    engine = EntityGraphEngine(GraphConfig.from_env())
    report = engine.load_file(args.dataset, include_similarity=args.similarity)
    _print({"import": report.to_dict(), "registry": engine.registry.stats().to_dict()})
    return 0 if report.ok else 1


def cmd_tools(args) -> int:
    _print(EntityGraphEngine().describe_tools())
    return 0


def cmd_run(args) -> int:
    try:
        params = json.loads(args.params) if args.params else {}
    except json.JSONDecodeError as e:
        print(f"[!] --params is not valid JSON: {e}", file=sys.stderr)
        return 2
    engine = _load(args.dataset, args.similarity)
    _print(engine.execute_tool(args.tool, params))
    return 0


def cmd_layout(args) -> int:
    engine = _load(args.dataset)
    simulation = engine.build_layout(cluster_by=args.cluster_by, secondary_by=args.secondary_by)
    positions = simulation.run(args.ticks)
    _print({
        "ticks": simulation.tick_count,
        "alpha": positions.alpha,
        "clusters": [c.to_dict() for c in simulation.clusters()],
    })
    return 0


def cmd_serve(args) -> int:
    import uvicorn

    if args.dataset:
        os.environ["ENTITY_GRAPH_DATASET"] = args.dataset
    uvicorn.run("entity_graph.api.server:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="entity-graph",
        description="Universal entity graph: load, inspect, simulate and serve",
    )
    parser.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("stats", help="Load a dataset bundle and print import and registry stats")
    p.add_argument("dataset")
    p.add_argument("--similarity", action="store_true", help="Add computed similar_to edges")
    p.set_defaults(func=cmd_stats)

    p = sub.add_parser("tools", help="List scenario tool declarations")
    p.set_defaults(func=cmd_tools)

    p = sub.add_parser("run", help="Execute one scenario tool against a dataset")
    p.add_argument("dataset")
    p.add_argument("tool")
    p.add_argument("--params", default=None, help="Tool parameters as a JSON object")
    p.add_argument("--similarity", action="store_true", help="Add computed similar_to edges")
    p.set_defaults(func=cmd_run)

    choices = [c.value for c in ClusterBy]
    p = sub.add_parser("layout", help="Run a clustered layout and print cluster centroids")
    p.add_argument("dataset")
    p.add_argument("--cluster-by", default=ClusterBy.DOMAIN.value, choices=choices)
    p.add_argument("--secondary-by", default=None, choices=choices)
    p.add_argument("--ticks", type=int, default=None, help="Default: until settled")
    p.set_defaults(func=cmd_layout)

    p = sub.add_parser("serve", help="Serve the read-only HTTP API")
    p.add_argument("--dataset", default=None)
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.add_argument("--reload", action="store_true")
    p.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (EntityGraphError, OSError, ValueError) as e:
        print(f"[!] {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
