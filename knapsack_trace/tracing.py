"""Replayable trace of a DP fill.

One TraceStep is produced per evaluated cell, in row-major then
column-major (then secondary-column) order, so a consumer can animate the
fill by replaying the steps in sequence. The tree solver adds node-level
steps (one merge summary per child, one completion per node).
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


SKIP = "skip"
TAKE = "take"
ADD = "add"
MERGE = "merge"
DECISIONS = (SKIP, TAKE, ADD, MERGE)

WITHOUT = "without"
WITH = "with"
PARENT = "parent"


@dataclass(frozen=True)
class SourceCell:
    """A cell (or tree node) a step was derived from.

    Attributes:
        row: Table row, or node index for tree steps
        col: Capacity column; None marks a node reference
        role: "without" (skip branch), "with" (take branch) or "parent"
        vol: Secondary-capacity column (two-dimensional variant only)
    """
    row: int
    col: Optional[int]
    role: str
    vol: Optional[int] = None

    def to_dict(self):
        if self.col is None:
            return {"node": self.row, "type": self.role}
        out = {"r": self.row, "c": self.col}
        if self.vol is not None:
            out["v"] = self.vol
        out["type"] = self.role
        return out


@dataclass(frozen=True)
class TraceStep:
    """One evaluated cell (kind "cell") or one tree event (kind "node").

    Attributes:
        row: Prefix index (or node index for tree steps)
        col: Capacity column (best column for a tree completion, None for a merge)
        value: Resulting cell value
        decision: One of skip, take, add, merge
        sources: Cells the value was derived from
        vol: Secondary-capacity column (two-dimensional variant only)
        kind: "cell" for table steps, "node" for tree steps
        payload: Variant-specific extras (tryItems, vals, dpValues, ...)
    """
    row: int
    col: Optional[int]
    value: Any
    decision: str
    sources: Tuple[SourceCell, ...] = ()
    vol: Optional[int] = None
    kind: str = "cell"
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def key(self):
        return (self.row, self.col, self.vol)

    def to_dict(self):
        if self.kind == "node":
            out = {"node": self.row}
            out.update(self.payload)
            if self.col is not None:
                out["col"] = self.col
                out["val"] = self.value
                out["decision"] = self.decision
            if self.sources or self.payload.get("action") == "complete":
                out["highlight"] = [s.to_dict() for s in self.sources]
            return out
        out = {"row": self.row, "col": self.col}
        if self.vol is not None:
            out["vol"] = self.vol
        out.update(self.payload)
        out["val"] = self.value
        out["highlight"] = [s.to_dict() for s in self.sources]
        out["decision"] = self.decision
        return out


class TraceRecorder:
    """Collects TraceSteps for one solve call.

    The recorder refuses cell steps that arrive out of fill order, which
    keeps every strategy honest about the row-major contract.

    Args:
        keep_steps: When False only counters are kept (no step objects)
    """

    def __init__(self, keep_steps: bool = True):
        self.keep_steps = keep_steps
        self.steps: List[TraceStep] = []
        self.cells_evaluated = 0
        self.node_events = 0
        self.decisions = Counter()
        self._last_key = None

    def __len__(self):
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)

    def record(self, row, col, value, decision, sources=(), vol=None, **payload):
        """Record one evaluated DP cell.

        Raises:
            ValueError: If the decision tag is unknown or the cell is not
                strictly after the previously recorded one
        """
        if decision not in DECISIONS:
            raise ValueError(f"Unknown decision tag: {decision!r}")
        key = (row, col, -1 if vol is None else vol)
        if self._last_key is not None and key <= self._last_key:
            raise ValueError(f"Cell {key} recorded out of fill order (after {self._last_key})")
        self._last_key = key
        self.cells_evaluated += 1
        self.decisions[decision] += 1
        if self.keep_steps:
            self.steps.append(TraceStep(row, col, value, decision, tuple(sources), vol, "cell", payload))

    def record_merge(self, node, child, values):
        """Record the capacity array of `node` after merging `child` into it."""
        self.node_events += 1
        self.decisions[MERGE] += 1
        if self.keep_steps:
            payload = {"childNode": child, "action": "merge", "dpValues": list(values)}
            self.steps.append(TraceStep(node, None, None, MERGE, (), None, "node", payload))

    def record_completion(self, node, item, values, parent_node=None):
        """Record that `node`'s subtree array is final.

        The reported column is the smallest capacity reaching the best value
        of the array (scanning from the node's own weight upward).
        """
        self.node_events += 1
        best_col = item.weight if item.weight < len(values) else len(values) - 1
        for j in range(best_col, len(values)):
            if values[j] > values[best_col]:
                best_col = j
        best_val = values[best_col] if values else 0
        decision = TAKE if best_val > 0 else SKIP
        self.decisions[decision] += 1
        if self.keep_steps:
            payload = {"action": "complete", "w": item.weight, "v": item.value,
                       "dpValues": list(values)}
            sources = ()
            if parent_node is not None:
                payload["parentNode"] = parent_node
                sources = (SourceCell(parent_node, None, PARENT),)
            self.steps.append(TraceStep(node, best_col, best_val, decision, sources, None, "node", payload))

    def to_dicts(self):
        return [s.to_dict() for s in self.steps]
