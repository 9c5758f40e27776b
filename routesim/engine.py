from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple, Union
import copy
import logging

from .distance_vector import DistanceVector, compute_routing_tables
from .events import EventLog
from .flooding import (
    LSP,
    FloodPlan,
    FloodSimulator,
    HopEvent,
    discovered_neighbors,
    plan_full_flood,
    plan_hello_flood,
    plan_hello_phase,
)
from .graph import Graph, LinkResult, Position, normalize_role
from .history import EngineState, HistoryManager
from .link_state import LinkStateAdvertisement, LinkStateEngine
from .persistence import dumps_state, export_state, parse_state
from .scheduler import ManualScheduler, Scheduler
from .settings import EngineSettings


log = logging.getLogger(__name__)

DISTANCE_VECTOR = "distance_vector"
LINK_STATE = "link_state"
PROTOCOLS = (DISTANCE_VECTOR, LINK_STATE)

PositionLike = Union[Position, Tuple[float, float], Dict[str, float], None]


def _check_protocol(protocol: str) -> str:
    protocol = (protocol or "").strip().lower().replace("-", "_")
    if protocol not in PROTOCOLS:
        raise ValueError(f"unknown routing protocol {protocol!r}; expected one of {PROTOCOLS}")
    return protocol


def _as_position(pos: PositionLike) -> Position:
    if pos is None:
        return Position()
    if isinstance(pos, Position):
        return pos
    if isinstance(pos, dict):
        return Position(x=float(pos.get("x", 0.0)), y=float(pos.get("y", 0.0)))
    x, y = pos
    return Position(x=float(x), y=float(y))


class RoutingEngine:
    """Owns the graph and everything derived from it.

    Every topology mutation recomputes the active protocol's tables, cancels
    any running flood and records a history snapshot. Queries return copies,
    so callers never observe a half-updated table set.
    """

    def __init__(
        self,
        protocol: str = DISTANCE_VECTOR,
        scheduler: Optional[Scheduler] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self.settings = settings or EngineSettings()
        self.protocol = _check_protocol(protocol)
        self.graph = Graph()
        self.events = EventLog(max_events=self.settings.event_log_limit)
        self.scheduler = scheduler or ManualScheduler()
        self.flood = FloodSimulator(self.scheduler, round_delay=self.settings.flood_round_delay_sec)
        self.link_state_engine = LinkStateEngine()

        self._routing_tables: Dict[str, Dict[str, Any]] = {}
        self._distance_vectors: Dict[str, DistanceVector] = {}
        # Learnt from the last completed hello phase.
        self._neighbors: Dict[str, Dict[str, int]] = {}

        self.history = HistoryManager(baseline=self._capture("initial"), max_snapshots=self.settings.max_history)

    # ───────────────────────────── Recompute ─────────────────────────────

    def recompute(self) -> None:
        if self.protocol == DISTANCE_VECTOR:
            tables, vectors = compute_routing_tables(self.graph)
            self._routing_tables, self._distance_vectors = tables, vectors
        else:
            _states, tables = self.link_state_engine.update_link_states(self.graph)
            self._routing_tables = tables

    def set_protocol(self, protocol: str) -> None:
        protocol = _check_protocol(protocol)
        if protocol == self.protocol:
            return
        self.flood.cancel()
        self.protocol = protocol
        self._distance_vectors = {}
        self.link_state_engine.reset()
        self.recompute()
        log.info("switched routing protocol to %s", protocol)

    def _topology_changed(self, action: str) -> None:
        self.flood.cancel()
        self._neighbors = {}
        self.recompute()
        self.history.record(action, self._capture(action))

    # ───────────────────────────── Nodes / Links ─────────────────────────────

    def add_node(self, role: str, position: PositionLike = None) -> str:
        role = normalize_role(role)
        pos = _as_position(position)
        uid = self.graph.add_node(role, pos)
        self.events.node_added(uid, pos.x, pos.y)
        self._topology_changed(f"add_{role}")
        return uid

    def move_node(self, uid: str, position: PositionLike) -> bool:
        pos = _as_position(position)
        if not self.graph.move_node(uid, pos):
            return False
        self.events.node_moved(uid, pos.x, pos.y)
        return True

    def remove_node(self, uid: str) -> bool:
        if not self.graph.has_node(uid):
            return False
        uid = self.graph.get(uid).uid
        self.graph.remove_node(uid)
        self.events.node_removed(uid)
        self._topology_changed(f"delete_{uid}")
        return True

    def add_or_update_link(self, a: str, b: str, weight: Optional[int] = None) -> LinkResult:
        if weight is None:
            weight = self.settings.default_link_weight
        result = self.graph.add_or_update_link(a, b, weight)
        if not result.changed:
            if result.status == "rejected":
                log.debug("link %s-%s rejected: %s", a, b, result.reason)
            return result
        link = result.link
        if result.status == "created":
            self.events.link_created(link.a, link.b, link.weight)
            self._topology_changed(f"link_add_{link.a}_{link.b}")
        else:
            self.events.link_updated(link.a, link.b, link.weight)
            self._topology_changed(f"link_update_{link.a}_{link.b}")
        return result

    def remove_link(self, a: str, b: str) -> bool:
        link = self.graph.remove_link(a, b)
        if link is None:
            return False
        self.events.link_removed(link.a, link.b)
        self._topology_changed(f"link_remove_{link.a}_{link.b}")
        return True

    # ───────────────────────────── Floods ─────────────────────────────

    def _log_hops(self, hops: List[HopEvent]) -> None:
        for ev in hops:
            self.events.packet_sent(ev.src, ev.dst, ev.packet_id, ev.kind)

    def start_hello_flood(self, origin: str) -> FloodPlan:
        plan = plan_hello_flood(self.graph, origin)
        self.flood.start(plan, on_hops=self._log_hops)
        return plan

    def start_lsp_flood(self, origin: str) -> FloodPlan:
        plan = plan_full_flood(self.graph, origin, kind=LSP)
        self.flood.start(plan, on_hops=self._log_hops)
        return plan

    def start_hello_phase(self) -> FloodPlan:
        """Every router greets its neighbours; neighbour tables fill in once delivered."""
        plan = plan_hello_phase(self.graph)
        self._neighbors = {}
        self.flood.start(plan, on_hops=self._log_hops, on_complete=self._hello_phase_done)
        return plan

    def _hello_phase_done(self, plan: FloodPlan) -> None:
        self._neighbors = discovered_neighbors(self.graph, plan)
        log.debug("hello phase complete: %d nodes know their neighbours", len(self._neighbors))

    def cancel_flood(self) -> None:
        self.flood.cancel()

    def is_flooding(self) -> bool:
        return self.flood.running

    def active_hops(self) -> List[HopEvent]:
        return list(self.flood.active_hops)

    # ───────────────────────────── History ─────────────────────────────

    def _capture(self, action: str) -> EngineState:
        return EngineState(
            nodes=self.graph.nodes,
            links=self.graph.links,
            counters=self.graph.counters(),
            routing_tables=self._routing_tables,
            distance_vectors=self._distance_vectors,
            link_states=self.link_state_engine.link_states,
            events=self.events.snapshot(),
            protocol=self.protocol,
            action=action,
        )

    def _restore(self, state: EngineState) -> None:
        self.flood.cancel()
        self._neighbors = {}
        self.graph.load(state.nodes, state.links, state.counters)
        self.events.restore(state.events)
        if state.protocol != self.protocol:
            # Snapshot was taken under the other protocol.
            self.link_state_engine.reset()
            self._distance_vectors = {}
            self.recompute()
        elif self.protocol == DISTANCE_VECTOR:
            self._routing_tables = state.routing_tables
            self._distance_vectors = state.distance_vectors
        else:
            self.link_state_engine.restore(state.link_states, state.routing_tables)
            self._routing_tables = state.routing_tables

    def undo(self) -> bool:
        state = self.history.undo()
        if state is None:
            return False
        self._restore(state)
        log.info("undo -> %s", state.action)
        return True

    def redo(self) -> bool:
        state = self.history.redo()
        if state is None:
            return False
        self._restore(state)
        log.info("redo -> %s", state.action)
        return True

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    def reset(self) -> None:
        self.flood.cancel()
        self.graph.clear()
        self.events.clear()
        self.link_state_engine.reset()
        self._routing_tables = {}
        self._distance_vectors = {}
        self._neighbors = {}
        self.history.clear()
        log.info("engine reset")

    # ───────────────────────────── Import / Export ─────────────────────────────

    def export_state(self) -> Dict[str, Any]:
        return export_state(self.graph, self.events.to_list())

    def export_json(self) -> str:
        return dumps_state(self.export_state())

    def import_state(self, payload: Any) -> None:
        """Load a persisted state; raises ``StateImportError`` and changes nothing on bad input."""
        loaded = parse_state(payload)

        self.flood.cancel()
        self._neighbors = {}
        self.graph.load(loaded.nodes, loaded.links, loaded.counters)
        self.events.restore(loaded.events)
        self.link_state_engine.reset()
        self._distance_vectors = {}
        self.recompute()
        self.history.clear(baseline=self._capture("import"))
        log.info("imported %d devices and %d links", len(self.graph.nodes), len(self.graph.links))

    # ───────────────────────────── Queries ─────────────────────────────

    def get_routing_tables(self) -> Dict[str, Dict[str, Any]]:
        return {uid: dict(table) for uid, table in self._routing_tables.items()}

    def routes_for(self, uid: str) -> Dict[str, Any]:
        return dict(self._routing_tables.get(uid, {}))

    def get_distance_vectors(self) -> Dict[str, DistanceVector]:
        return {uid: dict(dv) for uid, dv in self._distance_vectors.items()}

    def get_link_states(self) -> Dict[str, LinkStateAdvertisement]:
        return copy.deepcopy(self.link_state_engine.link_states)

    def get_event_log(self) -> List[Any]:
        return self.events.snapshot()

    def get_neighbors(self, uid: str) -> Dict[str, int]:
        return dict(self._neighbors.get(uid, {}))

    # ───────────────────────────── Text views ─────────────────────────────

    def show_routing_table(self, uid: str) -> str:
        table = self._routing_tables.get(uid)
        if table is None:
            return f"% {uid} has no routing table."
        proto = "distance vector" if self.protocol == DISTANCE_VECTOR else "link state"
        lines = [f"Routing table for {uid} ({proto})"]
        if self.protocol == DISTANCE_VECTOR:
            lines.append(f"{'Destination':<12} {'Next hop':<10} Cost")
            for dest in sorted(table):
                r = table[dest]
                lines.append(f"{dest:<12} {r.next_hop:<10} {r.cost}")
        else:
            lines.append(f"{'Destination':<12} {'Next hop':<10} {'Cost':<6} Path")
            for dest in sorted(table):
                r = table[dest]
                lines.append(f"{dest:<12} {r.next_hop:<10} {r.cost!s:<6} {' -> '.join(r.path)}")
        return "\n".join(lines)

    def show_link_state(self, uid: str) -> str:
        lsp = self.link_state_engine.link_states.get(uid)
        if lsp is None:
            return f"% No link state advertisement for {uid}."
        lines = [f"LSP {lsp.node_id} seq {lsp.sequence_number}"]
        for nb in sorted(lsp.neighbors):
            lines.append(f"  {nb:<10} cost {lsp.neighbors[nb]}")
        return "\n".join(lines)

    def format_event_log(self) -> str:
        return "\n".join(self.events.format_lines())
