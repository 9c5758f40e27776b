"""Distance-vector and link-state routing simulator.

The engine is a plain in-process library: a front-end drives it through
``RoutingEngine`` and renders the tables, event log and flood waves it exposes.
"""

from .engine import DISTANCE_VECTOR, LINK_STATE, RoutingEngine
from .errors import RoutesimError, StateImportError
from .graph import Graph, Position
from .scheduler import ManualScheduler, TkScheduler
from .settings import EngineSettings

__all__ = [
    "RoutingEngine",
    "DISTANCE_VECTOR",
    "LINK_STATE",
    "Graph",
    "Position",
    "ManualScheduler",
    "TkScheduler",
    "EngineSettings",
    "RoutesimError",
    "StateImportError",
]
