"""
Entity Graph: Read-Only API Server
==================================

HTTP view over one in-memory entity graph. Nothing here mutates the
registry; tool invocations are queries.

Endpoints:
- GET  /health                              -> Liveness + loaded counts
- GET  /api/v1/stats                        -> Registry statistics
- GET  /api/v1/entities/{id}                -> One entity (wire format)
- GET  /api/v1/entities/{id}/connections    -> Bounded BFS sub-graph
- GET  /api/v1/network                      -> Filtered network view
- GET  /api/v1/layout                       -> Settled clustered layout
- GET  /api/v1/tools                        -> Tool declarations
- POST /api/v1/tools/{name}                 -> Execute a scenario tool

Usage:
    ENTITY_GRAPH_DATASET=data/bundle.json uvicorn entity_graph.api.server:app --reload
"""
from contextlib import asynccontextmanager
import logging
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from ..config import GraphConfig
from ..contracts.base import Domain, EntityType
from ..contracts.entities import EntityFilter
from ..engine import EntityGraphEngine
from ..errors import EntityNotFoundError, InvalidToolParameters, UnknownToolError
from ..layout import PRIMARY, SECONDARY, ClusterBy

logger = logging.getLogger(__name__)

# =============================================================================
# INFRASTRUCTURE SETUP
# =============================================================================

# Global Engine Instance
engine_instance: Optional[EntityGraphEngine] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the dataset named by ENTITY_GRAPH_DATASET on startup."""
    global engine_instance

    config = GraphConfig.from_env()
    engine = EntityGraphEngine(config)
    if config.dataset_path:
        logger.info("Loading dataset from %s", config.dataset_path)
        report = engine.load_file(config.dataset_path)
        if not report.ok:
            logger.warning("Dataset loaded with %d record failures", report.failure_count)
    else:
        logger.warning("ENTITY_GRAPH_DATASET not set; serving an empty graph")
    engine_instance = engine

    yield

    logger.info("Shutting down entity graph")
    engine_instance = None


app = FastAPI(
    title="Entity Graph API",
    version="0.1.0",
    description="Read-only access to the universal entity graph",
    lifespan=lifespan,
)

# CORS (Allow Frontend)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST"],  # POST only for tool queries
    allow_headers=["*"],
)


def _engine() -> EntityGraphEngine:
    if engine_instance is None:
        raise HTTPException(status_code=503, detail="Engine not initialized")
    return engine_instance


def _enum_values(enum_cls, raw: Optional[List[str]], name: str):
    if not raw:
        return ()
    try:
        return tuple(enum_cls(v) for v in raw)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"Invalid {name}: {e}")


# =============================================================================
# ENDPOINTS
# =============================================================================

@app.get("/health")
async def health_check():
    """System status."""
    engine = _engine()
    return {"status": "online", "entities": len(engine.registry)}


@app.get("/api/v1/stats")
async def get_stats():
    return _engine().registry.stats().to_dict()


@app.get("/api/v1/entities/{entity_id}")
async def get_entity(entity_id: str):
    entity = _engine().registry.get_entity(entity_id)
    if entity is None:
        raise HTTPException(status_code=404, detail=f"Entity {entity_id} not found")
    return entity.to_wire()


@app.get("/api/v1/entities/{entity_id}/connections")
async def get_connections(
    entity_id: str,
    depth: int = Query(2, ge=0, le=6),
    bidirectional: bool = False,
):
    """
    Bounded breadth-first neighbourhood.
    Constraint: every returned node is at most ``depth`` hops away.
    """
    registry = _engine().registry
    if entity_id not in registry:
        raise HTTPException(status_code=404, detail=f"Entity {entity_id} not found")
    return registry.find_connections(entity_id, depth, bidirectional).to_dict()


def _filter_from_query(
    entity_type: Optional[List[str]],
    domain: Optional[List[str]],
    sector: Optional[List[str]],
    tag: Optional[List[str]],
    status: Optional[List[str]],
    trl_min: Optional[float],
    trl_max: Optional[float],
    q: Optional[str],
) -> EntityFilter:
    trl_range = None
    if trl_min is not None or trl_max is not None:
        trl_range = (trl_min if trl_min is not None else 1, trl_max if trl_max is not None else 9)
    return EntityFilter(
        entity_types=_enum_values(EntityType, entity_type, "entity_type"),
        domains=_enum_values(Domain, domain, "domain"),
        sectors=tuple(sector or ()),
        tags=tuple(tag or ()),
        trl_range=trl_range,
        status=tuple(status or ()),
        search_query=q or None,
    )


@app.get("/api/v1/network")
async def get_network(
    entity_type: Optional[List[str]] = Query(None),
    domain: Optional[List[str]] = Query(None),
    sector: Optional[List[str]] = Query(None),
    tag: Optional[List[str]] = Query(None),
    status: Optional[List[str]] = Query(None),
    trl_min: Optional[float] = Query(None, ge=1, le=9),
    trl_max: Optional[float] = Query(None, ge=1, le=9),
    q: Optional[str] = None,
):
    """Filtered nodes plus the edges whose endpoints both survive."""
    entity_filter = _filter_from_query(entity_type, domain, sector, tag, status, trl_min, trl_max, q)
    return _engine().network(entity_filter).to_dict()


@app.get("/api/v1/layout")
async def get_layout(
    cluster_by: ClusterBy = ClusterBy.DOMAIN,
    secondary_by: Optional[ClusterBy] = None,
    ticks: Optional[int] = Query(None, ge=0, le=2000),
    entity_type: Optional[List[str]] = Query(None),
    domain: Optional[List[str]] = Query(None),
):
    """
    Run a clustered layout offline and return positions, clusters and
    hulls. Interactive clients tick their own simulation instead.
    """
    entity_filter = _filter_from_query(entity_type, domain, None, None, None, None, None, None)
    simulation = _engine().build_layout(entity_filter, cluster_by, secondary_by)
    positions = simulation.run(ticks)
    level = SECONDARY if secondary_by is not None else PRIMARY
    return {
        "alpha": positions.alpha,
        "positions": {k: list(v) for k, v in positions.as_dict().items()},
        "clusters": [c.to_dict() for c in simulation.clusters(PRIMARY)],
        "hulls": [h.to_dict() for h in simulation.hulls(level)],
    }


@app.get("/api/v1/tools")
async def list_tools():
    return {"tools": _engine().describe_tools()}


@app.post("/api/v1/tools/{name}")
async def execute_tool(name: str, params: Optional[Dict[str, Any]] = Body(None)):
    """
    Execute one scenario tool.
    Errors: unknown tool or entity → 404, bad parameters → 422.
    """
    try:
        return _engine().execute_tool(name, params or {})
    except (UnknownToolError, EntityNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidToolParameters as e:
        raise HTTPException(
            status_code=422,
            detail={"message": str(e), "fields": [v.field for v in e.violations]},
        )
