from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Union
import uuid

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ─────────────────────────────────────────────────────────────────────────────
# Details payloads
# ─────────────────────────────────────────────────────────────────────────────

class Point(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0


class NodeDetails(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    node_id: str = Field(..., alias="nodeId")
    position: Optional[Point] = None


class LinkDetails(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # Older exports used fromNode/toNode.
    from_node: str = Field(..., alias="from", validation_alias=AliasChoices("from", "fromNode", "from_node"))
    to_node: str = Field(..., alias="to", validation_alias=AliasChoices("to", "toNode", "to_node"))
    weight: Optional[int] = None


class PacketDetails(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_node: str = Field(..., alias="from", validation_alias=AliasChoices("from", "fromNode", "from_node"))
    to_node: str = Field(..., alias="to", validation_alias=AliasChoices("to", "toNode", "to_node"))
    packet_id: int = Field(..., alias="packetId", validation_alias=AliasChoices("packetId", "packet_id"))
    packet_type: str = Field("hello", alias="packetType", validation_alias=AliasChoices("packetType", "packet_type"))


# ─────────────────────────────────────────────────────────────────────────────
# Event variants
# ─────────────────────────────────────────────────────────────────────────────

class _Event(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=_new_id)
    timestamp: datetime = Field(default_factory=_now)


class NodeAdded(_Event):
    type: Literal["node_added"] = "node_added"
    details: NodeDetails


class NodeMoved(_Event):
    type: Literal["node_moved"] = "node_moved"
    details: NodeDetails


class NodeRemoved(_Event):
    type: Literal["node_removed"] = "node_removed"
    details: NodeDetails


class LinkCreated(_Event):
    type: Literal["link_created"] = "link_created"
    details: LinkDetails


class LinkUpdated(_Event):
    type: Literal["link_updated"] = "link_updated"
    details: LinkDetails


class LinkRemoved(_Event):
    type: Literal["link_removed"] = "link_removed"
    details: LinkDetails


class PacketSent(_Event):
    type: Literal["packet_sent"] = "packet_sent"
    details: PacketDetails


NetworkEvent = Annotated[
    Union[NodeAdded, NodeMoved, NodeRemoved, LinkCreated, LinkUpdated, LinkRemoved, PacketSent],
    Field(discriminator="type"),
]

EVENT_TYPES = (
    "node_added",
    "node_moved",
    "node_removed",
    "link_created",
    "link_updated",
    "link_removed",
    "packet_sent",
)


def format_event(ev: Any) -> str:
    ts = ev.timestamp.astimezone().strftime("%H:%M:%S")
    d = ev.details
    if isinstance(ev, NodeAdded):
        pos = d.position or Point()
        return f"[{ts}] Node {d.node_id} added at position ({pos.x:g}, {pos.y:g})"
    if isinstance(ev, NodeMoved):
        pos = d.position or Point()
        return f"[{ts}] Node {d.node_id} moved to position ({pos.x:g}, {pos.y:g})"
    if isinstance(ev, NodeRemoved):
        return f"[{ts}] Node {d.node_id} removed"
    if isinstance(ev, LinkCreated):
        return f"[{ts}] Link created between {d.from_node} and {d.to_node} (weight {d.weight})"
    if isinstance(ev, LinkUpdated):
        return f"[{ts}] Link between {d.from_node} and {d.to_node} reweighted to {d.weight}"
    if isinstance(ev, LinkRemoved):
        return f"[{ts}] Link removed between {d.from_node} and {d.to_node}"
    if isinstance(ev, PacketSent):
        return f"[{ts}] {d.packet_type.upper()} packet {d.packet_id} sent from {d.from_node} to {d.to_node}"
    raise TypeError(f"unknown network event: {ev!r}")


class EventLog:
    """Append-only in-memory network event log.

    Past ``max_events`` the oldest entries are dropped; nothing is ever
    edited or reordered.
    """

    def __init__(self, max_events: int = 5000):
        self.max_events = max_events
        self.events: List[Any] = []

    def append(self, ev: Any) -> Any:
        self.events.append(ev)
        if len(self.events) > self.max_events:
            # keep the newest events
            self.events = self.events[-self.max_events :]
        return ev

    def node_added(self, node_id: str, x: float, y: float) -> NodeAdded:
        return self.append(NodeAdded(details=NodeDetails(node_id=node_id, position=Point(x=x, y=y))))

    def node_moved(self, node_id: str, x: float, y: float) -> NodeMoved:
        return self.append(NodeMoved(details=NodeDetails(node_id=node_id, position=Point(x=x, y=y))))

    def node_removed(self, node_id: str) -> NodeRemoved:
        return self.append(NodeRemoved(details=NodeDetails(node_id=node_id)))

    def link_created(self, a: str, b: str, weight: int) -> LinkCreated:
        return self.append(LinkCreated(details=LinkDetails(from_node=a, to_node=b, weight=weight)))

    def link_updated(self, a: str, b: str, weight: int) -> LinkUpdated:
        return self.append(LinkUpdated(details=LinkDetails(from_node=a, to_node=b, weight=weight)))

    def link_removed(self, a: str, b: str) -> LinkRemoved:
        return self.append(LinkRemoved(details=LinkDetails(from_node=a, to_node=b)))

    def packet_sent(self, a: str, b: str, packet_id: int, packet_type: str) -> PacketSent:
        return self.append(
            PacketSent(details=PacketDetails(from_node=a, to_node=b, packet_id=packet_id, packet_type=packet_type))
        )

    def clear(self) -> None:
        self.events.clear()

    def snapshot(self) -> List[Any]:
        # Events are frozen, a shallow copy of the list is enough.
        return list(self.events)

    def restore(self, events: Iterable[Any]) -> None:
        self.events = list(events)[-self.max_events :]

    def to_list(self) -> List[Dict[str, Any]]:
        return [ev.model_dump(mode="json", by_alias=True, exclude_none=True) for ev in self.events]

    def format_lines(self) -> List[str]:
        return [format_event(ev) for ev in self.events]
