"""Packet-wave planning and playback.

Planning is pure: a ``FloodPlan`` is computed from the adjacency view in one
go, so the same graph always yields the same schedule. Playback is done by
``FloodSimulator``, which emits one round per scheduler tick and can be
cancelled at any point.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set, Tuple
import logging

from .graph import Graph, link_key
from .scheduler import Scheduler


log = logging.getLogger(__name__)

HELLO = "hello"
LSP = "lsp"


@dataclass(frozen=True)
class HopEvent:
    src: str
    dst: str
    packet_id: int
    kind: str = LSP


@dataclass
class FloodPlan:
    origin: Optional[str]
    kind: str
    rounds: List[List[HopEvent]] = field(default_factory=list)

    @property
    def events(self) -> List[HopEvent]:
        return [ev for rnd in self.rounds for ev in rnd]

    def is_empty(self) -> bool:
        return not self.rounds


def plan_full_flood(graph: Graph, origin: str, kind: str = LSP) -> FloodPlan:
    """Breadth-first flood reaching every node once.

    Every unseen neighbour of the current frontier is notified in the same
    round; a node forwards only in the round after it first received.
    """
    adj = graph.adjacency()
    plan = FloodPlan(origin=origin, kind=kind)
    if origin not in adj:
        return plan

    visited: Set[str] = {origin}
    frontier = [origin]
    next_id = 0
    while frontier:
        next_frontier: List[str] = []
        hops: List[HopEvent] = []
        for u in frontier:
            for v, _w in adj[u]:
                if v in visited:
                    continue
                visited.add(v)
                hops.append(HopEvent(src=u, dst=v, packet_id=next_id, kind=kind))
                next_id += 1
                next_frontier.append(v)
        if hops:
            plan.rounds.append(hops)
        frontier = next_frontier
    return plan


def plan_hello_flood(graph: Graph, origin: str) -> FloodPlan:
    """Single round of hellos from ``origin`` to its direct neighbours."""
    adj = graph.adjacency()
    plan = FloodPlan(origin=origin, kind=HELLO)
    if origin not in adj:
        return plan

    seen: Set[Tuple[str, str]] = set()
    hops: List[HopEvent] = []
    for v, _w in adj[origin]:
        key = link_key(origin, v)
        if key in seen:
            continue
        seen.add(key)
        hops.append(HopEvent(src=origin, dst=v, packet_id=len(hops), kind=HELLO))
    if hops:
        plan.rounds.append(hops)
    return plan


def plan_hello_phase(graph: Graph) -> FloodPlan:
    """Every router greets its direct neighbours; one hello per link."""
    adj = graph.adjacency()
    plan = FloodPlan(origin=None, kind=HELLO)
    seen: Set[Tuple[str, str]] = set()
    hops: List[HopEvent] = []
    for r in graph.routers():
        for v, _w in adj[r]:
            key = link_key(r, v)
            if key in seen:
                continue
            seen.add(key)
            hops.append(HopEvent(src=r, dst=v, packet_id=len(hops), kind=HELLO))
    if hops:
        plan.rounds.append(hops)
    return plan


def discovered_neighbors(graph: Graph, plan: FloodPlan) -> Dict[str, Dict[str, int]]:
    """Neighbour tables learnt from a delivered hello plan (both ends learn)."""
    tables: Dict[str, Dict[str, int]] = {}
    for ev in plan.events:
        link = graph.link_between(ev.src, ev.dst)
        if link is None:
            continue
        tables.setdefault(ev.src, {})[ev.dst] = link.weight
        tables.setdefault(ev.dst, {})[ev.src] = link.weight
    return tables


class FloodSimulator:
    """Plays a ``FloodPlan`` back one round per ``round_delay`` seconds.

    Each ``start`` or ``cancel`` bumps the generation counter; a scheduled
    callback carrying an older generation does nothing when it fires.
    """

    def __init__(self, scheduler: Scheduler, round_delay: float = 1.2):
        self.scheduler = scheduler
        self.round_delay = round_delay
        self.generation = 0
        self.plan: Optional[FloodPlan] = None
        self.active_hops: List[HopEvent] = []
        self.rounds_emitted = 0
        self._job: Any = None
        self._on_hops: Optional[Callable[[List[HopEvent]], None]] = None
        self._on_complete: Optional[Callable[[FloodPlan], None]] = None

    @property
    def running(self) -> bool:
        return self.plan is not None

    def start(
        self,
        plan: FloodPlan,
        on_hops: Optional[Callable[[List[HopEvent]], None]] = None,
        on_complete: Optional[Callable[[FloodPlan], None]] = None,
    ) -> int:
        self.cancel()
        if plan.is_empty():
            log.debug("flood from %s has no hops; nothing to play", plan.origin)
            return self.generation

        self.plan = plan
        self.rounds_emitted = 0
        self._on_hops = on_hops
        self._on_complete = on_complete
        self._emit(self.generation, 0)
        return self.generation

    def cancel(self) -> None:
        self.generation += 1
        if self._job is not None:
            self.scheduler.cancel(self._job)
            self._job = None
        self.plan = None
        self.active_hops = []
        self._on_hops = None
        self._on_complete = None

    def _emit(self, generation: int, index: int) -> None:
        if generation != self.generation or self.plan is None:
            return
        self._job = None
        if index >= len(self.plan.rounds):
            self._finish()
            return

        hops = self.plan.rounds[index]
        self.active_hops = list(hops)
        self.rounds_emitted = index + 1
        log.debug("flood round %d from %s: %d hops", index, self.plan.origin, len(hops))
        if self._on_hops is not None:
            self._on_hops(list(hops))

        # The callback may have cancelled us.
        if generation != self.generation:
            return
        self._job = self.scheduler.call_later(self.round_delay, lambda: self._emit(generation, index + 1))

    def _finish(self) -> None:
        plan = self.plan
        on_complete = self._on_complete
        self.plan = None
        self.active_hops = []
        self._on_hops = None
        self._on_complete = None
        if on_complete is not None and plan is not None:
            on_complete(plan)
