"""Data structures for the knapsack trace solvers.

This module contains the core data classes used throughout the solvers:
- Variant: The ten supported knapsack families
- Item: One catalog entry (weight, value and a variant-specific attribute)
- ItemCatalog: Validated, immutable item list bound to one variant
- SplitItem: Pseudo-item produced by binary decomposition
- Package: Main item plus a subset of its attachments
- Group: Mutually exclusive item set, ordered by ascending group id
- TreeLayout: Roots and children lists of a parent-pointer forest
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from errors import (
    ContractViolation,
    CyclicDependencyError,
    InvalidCapacityError,
    InvalidCountError,
    InvalidDependencyError,
    InvalidTypeError,
    InvalidValueError,
    InvalidWeightError,
)


class Variant(str, Enum):
    """Knapsack families, keyed by the short name used on the command line."""
    ZERO_ONE = "01"
    COMPLETE = "complete"
    BOUNDED = "multiple"
    TWO_DIMENSIONAL = "2d"
    GROUPED = "group"
    DEPENDENCY = "depend"
    MIXED = "mixed"
    COUNTING = "count"
    KTH_BEST = "kth"
    TREE = "tree"

    @property
    def display_name(self):
        return _DISPLAY_NAMES[self]

    @property
    def attribute(self):
        """Name of the Item attribute this variant requires (None for plain w,v)."""
        return _ATTRIBUTES[self]


_DISPLAY_NAMES = {
    Variant.ZERO_ONE: "0/1 Knapsack",
    Variant.COMPLETE: "Complete Knapsack",
    Variant.BOUNDED: "Multiple Knapsack",
    Variant.TWO_DIMENSIONAL: "2D Cost",
    Variant.GROUPED: "Group Knapsack",
    Variant.DEPENDENCY: "Dependency Knapsack",
    Variant.MIXED: "Mixed Knapsack",
    Variant.COUNTING: "Solution Counting",
    Variant.KTH_BEST: "Kth Optimal",
    Variant.TREE: "Tree Knapsack",
}

_ATTRIBUTES = {
    Variant.ZERO_ONE: None,
    Variant.COMPLETE: None,
    Variant.BOUNDED: "count",
    Variant.TWO_DIMENSIONAL: "volume",
    Variant.GROUPED: "group",
    Variant.DEPENDENCY: "parent",
    Variant.MIXED: "item_type",
    Variant.COUNTING: None,
    Variant.KTH_BEST: None,
    Variant.TREE: "parent",
}

# Mixed-variant type tags
ONCE = 0
UNBOUNDED = 1
MULTIPLE = 2
TYPE_LABELS = {ONCE: "0/1", UNBOUNDED: "Complete", MULTIPLE: "Multiple"}


def validate_capacity(capacity, name="capacity"):
    """Check that a capacity bound is a non-negative integer.

    Args:
        capacity: Value to check
        name: Label used in the error message

    Returns:
        The capacity as int

    Raises:
        InvalidCapacityError: If capacity is negative or not an integer
    """
    if isinstance(capacity, bool) or not isinstance(capacity, int):
        raise InvalidCapacityError(f"{name} must be an integer, got {capacity!r}")
    if capacity < 0:
        raise InvalidCapacityError(f"{name} must be >= 0, got {capacity}")
    return capacity


# Numeric Item fields and the error raised when one is not an integer
_INT_FIELDS = (
    ("weight", InvalidWeightError),
    ("value", InvalidValueError),
    ("volume", InvalidWeightError),
    ("count", InvalidCountError),
    ("item_type", InvalidTypeError),
    ("group", ContractViolation),
    ("parent", InvalidDependencyError),
)


@dataclass(frozen=True)
class Item:
    """A selectable item.

    Only the attribute matching the catalog's variant is meaningful; the
    others stay None.

    Attributes:
        weight: Primary cost (strictly positive)
        value: Objective contribution (non-negative)
        volume: Secondary cost for the two-dimensional variant
        item_type: Mixed-variant tag (0 once, 1 unbounded, 2 multiple)
        group: Group id for the grouped variant
        parent: 1-based parent index for dependency/tree (0 = main/root)
        count: Multiplicity ceiling for the bounded variant (and optionally
            for type-2 mixed items)
    """
    weight: int
    value: int
    volume: Optional[int] = None
    item_type: Optional[int] = None
    group: Optional[int] = None
    parent: Optional[int] = None
    count: Optional[int] = None

    def __post_init__(self):
        for name, error in _INT_FIELDS:
            val = getattr(self, name)
            if val is None and name not in ("weight", "value"):
                continue
            if isinstance(val, bool) or not isinstance(val, int):
                raise error(f"Item {name} must be an integer, got {val!r}")
        if self.weight <= 0:
            raise InvalidWeightError(f"Item weight must be > 0, got {self.weight}")
        if self.value < 0:
            raise InvalidValueError(f"Item value must be >= 0, got {self.value}")
        if self.volume is not None and self.volume < 0:
            raise InvalidWeightError(f"Item secondary cost must be >= 0, got {self.volume}")
        if self.count is not None and self.count < 1:
            raise InvalidCountError(f"Item count must be >= 1, got {self.count}")
        if self.item_type is not None and self.item_type not in TYPE_LABELS:
            raise InvalidTypeError(f"Item type must be one of 0, 1, 2, got {self.item_type}")
        if self.parent is not None and self.parent < 0:
            raise InvalidDependencyError(f"Item parent must be >= 0, got {self.parent}")

    def to_dict(self):
        """Echo the item with the short keys of the JSON document."""
        out = {"w": self.weight}
        if self.volume is not None:
            out["m"] = self.volume
        out["v"] = self.value
        if self.count is not None:
            out["c"] = self.count
        if self.group is not None:
            out["g"] = self.group
        if self.parent is not None:
            out["p"] = self.parent
        if self.item_type is not None:
            out["t"] = self.item_type
        return out


@dataclass(frozen=True)
class SplitItem:
    """Pseudo-item standing for `multiplier` copies of one original item."""
    weight: int
    value: int
    original_index: int
    multiplier: int

    def to_dict(self):
        return {"w": self.weight, "v": self.value,
                "orig": self.original_index, "cnt": self.multiplier}


@dataclass(frozen=True)
class Package:
    """A main item bundled with a subset of its attachments.

    Attributes:
        weight: Sum of member weights
        value: Sum of member values
        main_index: 0-based catalog index of the main item
        items: Member indices, main first, attachments in input order
    """
    weight: int
    value: int
    main_index: int
    items: Tuple[int, ...]

    @property
    def desc(self):
        parts = [f"Main{self.main_index + 1}"]
        parts.extend(f"Attachment{idx + 1}" for idx in self.items[1:])
        return "+".join(parts)

    def to_dict(self):
        return {"w": self.weight, "v": self.value, "desc": self.desc,
                "items": list(self.items)}


@dataclass(frozen=True)
class Group:
    """Mutually exclusive item set; members keep catalog order."""
    group_id: int
    members: Tuple[int, ...]

    def to_dict(self):
        return {"id": self.group_id, "items": list(self.members)}


@dataclass(frozen=True)
class TreeLayout:
    """Forest built from parent pointers.

    Attributes:
        roots: Indices with parent 0, in input order
        children: children[u] lists the children of u in input order
    """
    roots: Tuple[int, ...]
    children: Tuple[Tuple[int, ...], ...]

    def to_dict(self):
        return {"roots": list(self.roots),
                "children": [list(c) for c in self.children]}


@dataclass(frozen=True)
class ItemCatalog:
    """Validated, immutable item list for one variant.

    Construction checks every invariant a solver relies on, so nothing has
    to be rediscovered mid-fill:
    - the variant attribute is present on every item
    - parent pointers are in range and acyclic (dependency/tree)
    - attachments hang directly off a main item (dependency)

    Attributes:
        variant: Knapsack family the items are meant for
        items: The items, in input order
    """
    variant: Variant
    items: Tuple[Item, ...]
    _groups: Tuple[Group, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "variant", Variant(self.variant))
        object.__setattr__(self, "items", tuple(self.items))
        attr = self.variant.attribute
        if attr is not None:
            for idx, it in enumerate(self.items):
                if getattr(it, attr) is None:
                    raise ContractViolation(
                        f"{self.variant.display_name}: item {idx + 1} is missing '{attr}'")
        if self.variant in (Variant.DEPENDENCY, Variant.TREE):
            self._check_parents()
        object.__setattr__(self, "_groups", self._build_groups())

    def __len__(self):
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    def _check_parents(self):
        n = len(self.items)
        for idx, it in enumerate(self.items):
            if it.parent > n:
                raise InvalidDependencyError(
                    f"Item {idx + 1} points to parent {it.parent}, but only {n} items exist")
        cycle = find_parent_cycle([it.parent for it in self.items])
        if cycle:
            raise CyclicDependencyError(cycle)
        if self.variant is Variant.DEPENDENCY:
            for idx, it in enumerate(self.items):
                if it.parent and self.items[it.parent - 1].parent != 0:
                    raise InvalidDependencyError(
                        f"Item {idx + 1} is attached to item {it.parent}, which is itself an attachment")

    def _build_groups(self):
        if self.variant is not Variant.GROUPED:
            return ()
        members: Dict[int, List[int]] = {}
        for idx, it in enumerate(self.items):
            members.setdefault(it.group, []).append(idx)
        # Ascending group id fixes row order for the fill, the trace and the backtrack
        return tuple(Group(gid, tuple(members[gid])) for gid in sorted(members))

    @property
    def groups(self):
        return self._groups

    def attachments(self):
        """Return [(main_index, [attachment indices])] for every main, in input order."""
        by_main: Dict[int, List[int]] = {}
        for idx, it in enumerate(self.items):
            if it.parent:
                by_main.setdefault(it.parent - 1, []).append(idx)
        return [(idx, by_main.get(idx, [])) for idx, it in enumerate(self.items) if it.parent == 0]

    def tree_layout(self):
        children: List[List[int]] = [[] for _ in self.items]
        roots = []
        for idx, it in enumerate(self.items):
            if it.parent == 0:
                roots.append(idx)
            else:
                children[it.parent - 1].append(idx)
        return TreeLayout(tuple(roots), tuple(tuple(c) for c in children))

    def to_dicts(self):
        return [it.to_dict() for it in self.items]


def find_parent_cycle(parents):
    """Find a cycle in 1-based parent pointers (0 = no parent).

    Args:
        parents: parents[i] is the 1-based parent of item i, or 0

    Returns:
        List of 0-based indices forming the cycle in pointer order, or []
    """
    UNVISITED, VISITING, DONE = 0, 1, 2
    state = [UNVISITED] * len(parents)
    for start in range(len(parents)):
        if state[start] != UNVISITED:
            continue
        path = []
        node = start
        while node is not None and state[node] == UNVISITED:
            state[node] = VISITING
            path.append(node)
            node = parents[node] - 1 if parents[node] else None
        if node is not None and state[node] == VISITING:
            return path[path.index(node):]
        for visited in path:
            state[visited] = DONE
    return []
