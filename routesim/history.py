from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple
import copy
import logging

from .graph import Link, Node


log = logging.getLogger(__name__)

# Only these action families produce snapshots; moves and recomputation do not.
TOPOLOGY_ACTION_PREFIXES = ("add_", "delete_", "link_")


def is_topology_action(action: str) -> bool:
    return (action or "").startswith(TOPOLOGY_ACTION_PREFIXES)


@dataclass
class EngineState:
    """Everything a snapshot restores."""

    nodes: Dict[str, Node] = field(default_factory=dict)
    links: Dict[Tuple[str, str], Link] = field(default_factory=dict)
    counters: Dict[str, int] = field(default_factory=dict)
    routing_tables: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    distance_vectors: Dict[str, Dict[str, float]] = field(default_factory=dict)
    link_states: Dict[str, Any] = field(default_factory=dict)
    events: List[Any] = field(default_factory=list)
    protocol: str = ""
    action: str = "initial"


class HistoryManager:
    """Linear undo/redo over snapshots of ``EngineState``.

    ``cursor`` indexes the snapshot currently shown; -1 means the baseline
    (the state before the first recorded action). Recording after an undo
    discards the redo branch.
    """

    def __init__(self, baseline: Optional[EngineState] = None, max_snapshots: int = 200):
        self.max_snapshots = max(1, int(max_snapshots))
        self.snapshots: List[EngineState] = []
        self.cursor = -1
        self._baseline = copy.deepcopy(baseline) if baseline is not None else EngineState()

    def record(self, action: str, state: EngineState) -> bool:
        if not is_topology_action(action):
            return False

        if self.cursor < len(self.snapshots) - 1:
            del self.snapshots[self.cursor + 1 :]

        self.snapshots.append(copy.deepcopy(replace(state, action=action)))
        if len(self.snapshots) > self.max_snapshots:
            # The dropped snapshot becomes the new baseline.
            self._baseline = self.snapshots.pop(0)
        self.cursor = len(self.snapshots) - 1
        log.debug("history: recorded %s (%d snapshots)", action, len(self.snapshots))
        return True

    def undo(self) -> Optional[EngineState]:
        if self.cursor >= 1:
            self.cursor -= 1
            return copy.deepcopy(self.snapshots[self.cursor])
        if self.cursor == 0:
            self.cursor = -1
            return copy.deepcopy(self._baseline)
        return None

    def redo(self) -> Optional[EngineState]:
        if self.cursor < len(self.snapshots) - 1:
            self.cursor += 1
            return copy.deepcopy(self.snapshots[self.cursor])
        return None

    def can_undo(self) -> bool:
        return self.cursor >= 0

    def can_redo(self) -> bool:
        return self.cursor < len(self.snapshots) - 1

    def labels(self) -> List[str]:
        return [s.action for s in self.snapshots]

    def clear(self, baseline: Optional[EngineState] = None) -> None:
        self.snapshots = []
        self.cursor = -1
        self._baseline = copy.deepcopy(baseline) if baseline is not None else EngineState()
