from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple
import logging
import math
import time

from .graph import Graph


log = logging.getLogger(__name__)

INFINITY = math.inf


@dataclass(frozen=True)
class LinkStateRoute:
    next_hop: str
    cost: float
    path: Tuple[str, ...]


@dataclass
class LinkStateAdvertisement:
    """A router's own view of its direct links, as flooded in an LSP."""

    node_id: str
    neighbors: Dict[str, int] = field(default_factory=dict)  # neighbor -> cost
    sequence_number: int = 1
    timestamp: float = 0.0


LinkStateTable = Dict[str, LinkStateRoute]


def compute_shortest_paths(
    graph: Graph,
    source: str,
    adjacency: Optional[Dict[str, List[Tuple[str, int]]]] = None,
) -> LinkStateTable:
    """Dijkstra from ``source`` over every node of the graph.

    The minimum is picked by a linear scan in node insertion order, so equal
    distances resolve to the node that was placed first. Unreachable
    destinations are left out of the table.
    """
    adj = adjacency if adjacency is not None else graph.adjacency()
    if source not in adj:
        return {}

    distance: Dict[str, float] = {uid: INFINITY for uid in adj}
    previous: Dict[str, Optional[str]] = {uid: None for uid in adj}
    distance[source] = 0
    unvisited = dict.fromkeys(adj)

    while unvisited:
        current = None
        best = INFINITY
        for uid in unvisited:
            if distance[uid] < best:
                best = distance[uid]
                current = uid
        if current is None:
            break
        del unvisited[current]

        for nb, w in adj[current]:
            if nb not in unvisited:
                continue
            candidate = distance[current] + w
            if candidate < distance[nb]:
                distance[nb] = candidate
                previous[nb] = current

    table: LinkStateTable = {}
    for dest in adj:
        if distance[dest] == INFINITY:
            continue
        path: List[str] = []
        cur: Optional[str] = dest
        while cur is not None:
            path.append(cur)
            cur = previous[cur]
        path.reverse()
        next_hop = path[1] if len(path) > 1 else source
        table[dest] = LinkStateRoute(next_hop=next_hop, cost=distance[dest], path=tuple(path))
    return table


def compute_link_state_tables(graph: Graph) -> Dict[str, LinkStateTable]:
    adj = graph.adjacency()
    return {r: compute_shortest_paths(graph, r, adj) for r in graph.routers()}


class LinkStateEngine:
    """Keeps per-router LSPs and their sequence numbers across recomputations."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self.link_states: Dict[str, LinkStateAdvertisement] = {}
        self.routing_tables: Dict[str, LinkStateTable] = {}

    def update_link_states(
        self, graph: Graph
    ) -> Tuple[Dict[str, LinkStateAdvertisement], Dict[str, LinkStateTable]]:
        adj = graph.adjacency()
        now = self._clock()
        states: Dict[str, LinkStateAdvertisement] = {}
        for r in graph.routers():
            neighbors = {nb: w for nb, w in adj[r]}
            prev = self.link_states.get(r)
            if prev is None:
                states[r] = LinkStateAdvertisement(node_id=r, neighbors=neighbors, sequence_number=1, timestamp=now)
            elif prev.neighbors != neighbors:
                states[r] = LinkStateAdvertisement(
                    node_id=r,
                    neighbors=neighbors,
                    sequence_number=prev.sequence_number + 1,
                    timestamp=now,
                )
            else:
                states[r] = prev

        tables = {r: compute_shortest_paths(graph, r, adj) for r in graph.routers()}

        # Publish both together.
        self.link_states = states
        self.routing_tables = tables
        log.debug("link state recomputed for %d routers", len(states))
        return states, tables

    def restore(
        self,
        link_states: Dict[str, LinkStateAdvertisement],
        routing_tables: Dict[str, LinkStateTable],
    ) -> None:
        self.link_states = link_states
        self.routing_tables = routing_tables

    def reset(self) -> None:
        self.link_states = {}
        self.routing_tables = {}
