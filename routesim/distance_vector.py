from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple
import logging
import math

from .graph import Graph


log = logging.getLogger(__name__)

INFINITY = math.inf


@dataclass(frozen=True)
class Route:
    next_hop: str
    cost: float


DistanceVector = Dict[str, float]
RoutingTable = Dict[str, Route]


def _router_adjacency(graph: Graph, routers: List[str]) -> Dict[str, List[Tuple[str, int]]]:
    # Only router-router links carry distance-vector updates.
    members = set(routers)
    adj: Dict[str, List[Tuple[str, int]]] = {r: [] for r in routers}
    for l in graph.links.values():
        if l.a in members and l.b in members:
            adj[l.a].append((l.b, l.weight))
            adj[l.b].append((l.a, l.weight))
    return adj


def _initial_state(
    routers: List[str], adj: Dict[str, List[Tuple[str, int]]]
) -> Tuple[Dict[str, RoutingTable], Dict[str, DistanceVector]]:
    tables: Dict[str, RoutingTable] = {}
    vectors: Dict[str, DistanceVector] = {}
    for r in routers:
        dv: DistanceVector = {dest: INFINITY for dest in routers}
        dv[r] = 0
        table: RoutingTable = {r: Route(next_hop=r, cost=0)}
        for nb, w in adj[r]:
            dv[nb] = w
            table[nb] = Route(next_hop=nb, cost=w)
        vectors[r] = dv
        tables[r] = table
    return tables, vectors


def _relax_pass(
    order: List[str],
    adj: Dict[str, List[Tuple[str, int]]],
    tables: Dict[str, RoutingTable],
    vectors: Dict[str, DistanceVector],
) -> bool:
    changed = False
    for sender in order:
        advertised = vectors[sender]
        for receiver, w in adj[sender]:
            rv = vectors[receiver]
            for dest, cost in advertised.items():
                if dest == receiver:
                    continue
                candidate = w + cost
                if candidate < rv.get(dest, INFINITY):
                    rv[dest] = candidate
                    tables[receiver][dest] = Route(next_hop=sender, cost=candidate)
                    changed = True
    return changed


def compute_routing_tables(graph: Graph) -> Tuple[Dict[str, RoutingTable], Dict[str, DistanceVector]]:
    """Bellman-Ford over the router subgraph, iterated to a fixed point.

    Each pass lets every router (in lexical id order) advertise its vector to
    its router neighbours. Stops on the first pass without changes, or after
    one pass per router. Unreachable routers stay at INFINITY in the vectors
    and have no routing-table entry.
    """
    routers = graph.routers()
    order = sorted(routers)
    adj = _router_adjacency(graph, routers)
    tables, vectors = _initial_state(routers, adj)

    max_passes = len(routers)
    passes = 0
    changed = bool(routers)
    while changed and passes < max_passes:
        changed = _relax_pass(order, adj, tables, vectors)
        passes += 1

    if changed:
        log.warning(
            "distance vector did not converge after %d passes; publishing best-effort tables",
            passes,
        )
    else:
        log.debug("distance vector converged in %d passes over %d routers", passes, len(routers))

    return tables, vectors
