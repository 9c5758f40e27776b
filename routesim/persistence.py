"""Import/export of the persisted network state.

Layout::

    {
      "devices": [{"id", "type", "name", "position": {"x", "y"}}],
      "links": [{"from", "to", "weight"}],
      "networkEvents": [...],
      "routerCount": int, "pcCount": int, "switchCount": int
    }

Routing data is never read back; the engine recomputes it after loading.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple
import json
import re

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .errors import StateImportError
from .events import NetworkEvent
from .graph import COUNTER_FIELD, ID_PREFIX, ROLES, Graph, Link, Node, Position, link_key, normalize_role


_ROLE_NAMES = set(ROLES) | {"pc", "host"}


class DevicePosition(BaseModel):
    x: float = Field(..., description="Canvas X coordinate")
    y: float = Field(..., description="Canvas Y coordinate")


class DeviceRecord(BaseModel):
    # UI-only attributes (icon, color, interfaces, ...) are tolerated and dropped.
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(..., min_length=1, validation_alias=AliasChoices("id", "instanceId"))
    type: str = Field(..., validation_alias=AliasChoices("type", "deviceType"))
    name: str = Field(..., min_length=1)
    position: DevicePosition


class LinkRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    from_node: str = Field(..., alias="from", min_length=1)
    to_node: str = Field(..., alias="to", min_length=1)
    weight: int = Field(1, description="Link cost, >= 1")


class NetworkStateRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    devices: List[DeviceRecord]
    links: List[LinkRecord]
    network_events: List[NetworkEvent] = Field(..., alias="networkEvents")
    router_count: int = Field(..., alias="routerCount", ge=0)
    pc_count: int = Field(0, alias="pcCount", ge=0)
    switch_count: int = Field(0, alias="switchCount", ge=0)


@dataclass
class LoadedState:
    nodes: Dict[str, Node]
    links: Dict[Tuple[str, str], Link]
    counters: Dict[str, int]
    events: List[Any]


def _format_validation_error(err: ValidationError) -> List[str]:
    problems: List[str] = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e.get("loc", ()))
        problems.append(f"{loc}: {e.get('msg')}" if loc else str(e.get("msg")))
    return problems


def _check_references(rec: NetworkStateRecord) -> List[str]:
    problems: List[str] = []
    ids = set()
    highest: Dict[str, int] = {role: 0 for role in ROLES}
    for i, d in enumerate(rec.devices):
        if d.type.lower() not in _ROLE_NAMES:
            problems.append(f"devices[{i}].type must be 'router', 'endpoint' or 'switch'.")
            continue
        if d.id in ids:
            problems.append(f"Duplicate device id: {d.id}")
        ids.add(d.id)
        role = normalize_role(d.type)
        for other in ROLES:
            m = re.fullmatch(re.escape(ID_PREFIX[other]) + r"(\d+)", d.id)
            if m is None:
                continue
            if other != role:
                # ids with another role's prefix collide with generated ids
                problems.append(f"devices[{i}].id '{d.id}' uses the {other} prefix but type is {role}.")
            else:
                highest[role] = max(highest[role], int(m.group(1)))

    seen = set()
    for i, l in enumerate(rec.links):
        if l.weight < 1:
            problems.append(f"links[{i}].weight must be >= 1.")
        if l.from_node == l.to_node:
            problems.append(f"links[{i}] connects {l.from_node} to itself.")
        for end in (l.from_node, l.to_node):
            if end not in ids:
                problems.append(f"links[{i}] references missing device '{end}'.")
        key = link_key(l.from_node, l.to_node)
        if key in seen:
            problems.append(f"Duplicate link between {key[0]} and {key[1]}.")
        seen.add(key)

    counts = {"router": rec.router_count, "endpoint": rec.pc_count, "switch": rec.switch_count}
    for role in ROLES:
        if counts[role] < highest[role]:
            problems.append(
                f"{COUNTER_FIELD[role]} is {counts[role]} but device {ID_PREFIX[role]}{highest[role]} exists."
            )
    return problems


def parse_state(payload: Any) -> LoadedState:
    """Validate ``payload`` (dict or JSON text) and build graph pieces from it.

    Raises ``StateImportError`` listing every problem; nothing is mutated.
    """
    if isinstance(payload, (str, bytes, bytearray)):
        try:
            payload = json.loads(payload)
        except ValueError as e:
            raise StateImportError([f"Invalid JSON: {e}"]) from e
    if not isinstance(payload, dict):
        raise StateImportError(["Top-level must be an object."])

    try:
        rec = NetworkStateRecord.model_validate(payload)
    except ValidationError as e:
        raise StateImportError(_format_validation_error(e)) from e

    problems = _check_references(rec)
    if problems:
        raise StateImportError(problems)

    nodes: Dict[str, Node] = {}
    for d in rec.devices:
        nodes[d.id] = Node(
            uid=d.id,
            role=normalize_role(d.type),
            name=d.name,
            position=Position(x=d.position.x, y=d.position.y),
        )
    links: Dict[Tuple[str, str], Link] = {}
    for l in rec.links:
        link = Link(a=l.from_node, b=l.to_node, weight=l.weight)
        links[link.key] = link

    counters = {"router": rec.router_count, "endpoint": rec.pc_count, "switch": rec.switch_count}
    return LoadedState(nodes=nodes, links=links, counters=counters, events=list(rec.network_events))


def export_state(graph: Graph, events: List[Dict[str, Any]]) -> Dict[str, Any]:
    counters = graph.counters()
    return {
        "devices": [
            {
                "id": n.uid,
                "type": n.role,
                "name": n.name,
                "position": {"x": n.position.x, "y": n.position.y},
            }
            for n in graph.nodes.values()
        ],
        "links": [{"from": l.a, "to": l.b, "weight": l.weight} for l in graph.links.values()],
        "networkEvents": events,
        "routerCount": counters["router"],
        "pcCount": counters["endpoint"],
        "switchCount": counters["switch"],
    }


def dumps_state(state: Dict[str, Any]) -> str:
    return json.dumps(state, indent=2)
