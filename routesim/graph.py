from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


ROUTER = "router"
ENDPOINT = "endpoint"
SWITCH = "switch"

ROLES = (ROUTER, ENDPOINT, SWITCH)

_ROLE_ALIASES = {
    "pc": ENDPOINT,
    "host": ENDPOINT,
    "sw": SWITCH,
}

ID_PREFIX = {ROUTER: "R", ENDPOINT: "P", SWITCH: "S"}
NAME_PREFIX = {ROUTER: "ROUTER", ENDPOINT: "PC", SWITCH: "SWITCH"}

# Persisted counter field per role.
COUNTER_FIELD = {ROUTER: "routerCount", ENDPOINT: "pcCount", SWITCH: "switchCount"}


def _norm_uid(uid: str) -> str:
    return (uid or "").strip()


def normalize_role(role: str) -> str:
    role = (role or ROUTER).strip().lower()
    role = _ROLE_ALIASES.get(role, role)
    if role not in ROLES:
        role = ROUTER
    return role


def link_key(a: str, b: str) -> Tuple[str, str]:
    # (A, B) and (B, A) name the same link.
    return tuple(sorted((a, b)))  # type: ignore[return-value]


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0


@dataclass
class Node:
    uid: str
    role: str  # router|endpoint|switch
    name: str
    position: Position = field(default_factory=Position)

    @property
    def is_router(self) -> bool:
        return self.role == ROUTER


@dataclass
class Link:
    a: str
    b: str
    weight: int = 1

    @property
    def key(self) -> Tuple[str, str]:
        return link_key(self.a, self.b)

    def touches(self, uid: str) -> bool:
        return uid in (self.a, self.b)


@dataclass(frozen=True)
class LinkResult:
    status: str  # created|updated|unchanged|rejected
    link: Optional[Link] = None
    reason: str = ""

    @property
    def changed(self) -> bool:
        return self.status in ("created", "updated")


class Graph:
    """Nodes and weighted undirected links.

    Node insertion order and link insertion order are preserved; the routing
    engines and the flood planner rely on that order for determinism.
    """

    def __init__(self):
        self.nodes: Dict[str, Node] = {}
        self.links: Dict[Tuple[str, str], Link] = {}
        self._counters: Dict[str, int] = {role: 0 for role in ROLES}

    # ───────────────────────────── Nodes ─────────────────────────────

    def add_node(self, role: str, position: Optional[Position] = None) -> str:
        role = normalize_role(role)
        # Skip numbers already taken, e.g. by an imported id.
        seq = self._counters[role] + 1
        while f"{ID_PREFIX[role]}{seq}" in self.nodes:
            seq += 1
        self._counters[role] = seq
        uid = f"{ID_PREFIX[role]}{seq}"
        self.nodes[uid] = Node(
            uid=uid,
            role=role,
            name=f"{NAME_PREFIX[role]}{seq}",
            position=position or Position(),
        )
        return uid

    def move_node(self, uid: str, position: Position) -> bool:
        node = self.nodes.get(_norm_uid(uid))
        if node is None:
            return False
        node.position = position
        return True

    def remove_node(self, uid: str) -> List[Link]:
        """Delete a node and every incident link; returns the removed links."""
        uid = _norm_uid(uid)
        if uid not in self.nodes:
            return []
        doomed = [l for l in self.links.values() if l.touches(uid)]
        for l in doomed:
            self.links.pop(l.key, None)
        self.nodes.pop(uid, None)
        return doomed

    def get(self, uid: str) -> Optional[Node]:
        return self.nodes.get(_norm_uid(uid))

    def has_node(self, uid: str) -> bool:
        return _norm_uid(uid) in self.nodes

    def is_router(self, uid: str) -> bool:
        node = self.nodes.get(uid)
        return node is not None and node.is_router

    def routers(self) -> List[str]:
        return [uid for uid, n in self.nodes.items() if n.is_router]

    # ───────────────────────────── Links ─────────────────────────────

    def add_or_update_link(self, a: str, b: str, weight: int = 1) -> LinkResult:
        a, b = _norm_uid(a), _norm_uid(b)
        if a not in self.nodes or b not in self.nodes:
            return LinkResult("rejected", reason="unknown node")
        if a == b:
            return LinkResult("rejected", reason="self link")
        if isinstance(weight, float) and weight.is_integer():
            weight = int(weight)
        if isinstance(weight, bool) or not isinstance(weight, int):
            return LinkResult("rejected", reason="weight must be an integer")
        if weight < 1:
            return LinkResult("rejected", reason="weight must be >= 1")

        existing = self.links.get(link_key(a, b))
        if existing is not None:
            if existing.weight == weight:
                return LinkResult("unchanged", link=existing)
            existing.weight = weight
            return LinkResult("updated", link=existing)

        link = Link(a=a, b=b, weight=weight)
        self.links[link.key] = link
        return LinkResult("created", link=link)

    def remove_link(self, a: str, b: str) -> Optional[Link]:
        return self.links.pop(link_key(_norm_uid(a), _norm_uid(b)), None)

    def link_between(self, a: str, b: str) -> Optional[Link]:
        return self.links.get(link_key(_norm_uid(a), _norm_uid(b)))

    def neighbors(self, uid: str) -> List[Tuple[str, int]]:
        return self.adjacency().get(_norm_uid(uid), [])

    # ───────────────────────────── Views ─────────────────────────────

    def adjacency(self) -> Dict[str, List[Tuple[str, int]]]:
        adj: Dict[str, List[Tuple[str, int]]] = {uid: [] for uid in self.nodes}
        for l in self.links.values():
            adj[l.a].append((l.b, l.weight))
            adj[l.b].append((l.a, l.weight))
        return adj

    def counters(self) -> Dict[str, int]:
        return dict(self._counters)

    def set_counters(self, counters: Dict[str, int]) -> None:
        for role in ROLES:
            self._counters[role] = int(counters.get(role, 0))

    def load(self, nodes: Dict[str, Node], links: Dict[Tuple[str, str], Link], counters: Dict[str, int]) -> None:
        """Replace the whole graph (import / undo)."""
        self.nodes = dict(nodes)
        self.links = dict(links)
        self.set_counters(counters)

    def clear(self) -> None:
        self.nodes.clear()
        self.links.clear()
        self._counters = {role: 0 for role in ROLES}
