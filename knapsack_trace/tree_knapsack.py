"""Tree-structured (dependent) knapsack.

Items form a forest through 1-based parent pointers (0 = root). A node can
only be selected together with its parent, so the value of a subtree is
computed bottom-up:

1. node_table[u][j] = v_u for j >= w_u, 0 below (u itself is mandatory).
2. Each child c, in input order, is merged into node_table[u]:
       node_table[u][j] = max_{k in [0, j - w_u]} node_table[u][j - k] + node_table[c][k]
   for j from C down to w_u, so the update can run in place.
3. The roots are finally merged into a forest array with the same operation.

Each merge is quadratic in the capacity, O(n * C^2) overall. Bounding the
inner loop by the accumulated subtree weight would speed this up without
changing any result; it is not applied here.

The walk is an explicit-stack post-order (Unvisited -> Visiting -> Solved),
so the supported depth is limited by memory rather than by Python's
recursion limit. Cycles are rejected when the ItemCatalog is built.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from knapsack_dp import Fill, TransitionStrategy
from models import ItemCatalog, TreeLayout, Variant


# Node id used for the merge steps of the virtual forest root
FOREST = -1


class NodeState(Enum):
    UNVISITED = 0
    VISITING = 1
    SOLVED = 2


def merge_value_arrays(parent, child, floor=0):
    """Merge a child's capacity-indexed array into the parent's, in place.

    Args:
        parent: Parent array, updated in place
        child: Child array of the same length
        floor: Capacity reserved for the parent itself (its weight); columns
            below floor are left untouched

    Returns:
        splits where splits[j] is the capacity handed to the child at column
        j (0 when the child contributes nothing)
    """
    capacity = len(parent) - 1
    splits = [0] * (capacity + 1)
    for j in range(capacity, floor - 1, -1):
        for k in range(0, j - floor + 1):
            candidate = parent[j - k] + child[k]
            if candidate > parent[j]:
                parent[j] = candidate
                splits[j] = k
    return splits


def post_order(layout: TreeLayout):
    """Yield node indices so that every child precedes its parent.

    Roots are walked in input order, children in input order.
    """
    state = [NodeState.UNVISITED] * len(layout.children)
    for root in layout.roots:
        stack = [root]
        while stack:
            u = stack[-1]
            if state[u] is NodeState.UNVISITED:
                state[u] = NodeState.VISITING
                for c in reversed(layout.children[u]):
                    if state[c] is NodeState.UNVISITED:
                        stack.append(c)
            else:
                stack.pop()
                if state[u] is NodeState.VISITING:
                    state[u] = NodeState.SOLVED
                    yield u


@dataclass
class TreeFill(Fill):
    """Fill of the tree solver.

    table holds one capacity array per node (node_tables); the forest array
    merges all roots.

    Attributes:
        layout: Roots and children of the forest
        forest: Merged array of all roots
        child_splits: child_splits[u][n] = splits of u's n-th child merge
        root_splits: root_splits[n] = splits of the n-th root merge
    """
    layout: TreeLayout = None
    forest: List[int] = field(default_factory=list)
    child_splits: List[List[List[int]]] = field(default_factory=list)
    root_splits: List[List[int]] = field(default_factory=list)

    @property
    def final_value(self):
        return self.forest[self.capacity] if self.forest else 0


class TreeKnapsackSolver:
    """Post-order subtree solver producing one value array per node."""

    def __init__(self, catalog: ItemCatalog, capacity: int, recorder, logger):
        self.catalog = catalog
        self.capacity = capacity
        self.recorder = recorder
        self.logger = logger
        self.layout = catalog.tree_layout()

    def solve_node(self, u, node_tables, child_splits):
        item = self.catalog[u]
        values = [0] * (self.capacity + 1)
        for j in range(item.weight, self.capacity + 1):
            values[j] = item.value
        for c in self.layout.children[u]:
            child_splits[u].append(merge_value_arrays(values, node_tables[c], item.weight))
            self.recorder.record_merge(u, c, values)
            self.logger.log_merge(u, c, values[self.capacity])
        node_tables[u] = values
        parent = item.parent - 1 if item.parent else None
        self.recorder.record_completion(u, item, values, parent_node=parent)

    def solve(self) -> TreeFill:
        n = len(self.catalog)
        node_tables: List[List[int]] = [None] * n
        child_splits: List[List[List[int]]] = [[] for _ in range(n)]
        for u in post_order(self.layout):
            self.solve_node(u, node_tables, child_splits)

        forest = [0] * (self.capacity + 1)
        root_splits = []
        for r in self.layout.roots:
            root_splits.append(merge_value_arrays(forest, node_tables[r], 0))
            self.recorder.record_merge(FOREST, r, forest)
            self.logger.log_merge(FOREST, r, forest[self.capacity])

        return TreeFill(node_tables, self.recorder, list(self.catalog.items), self.capacity,
                        aux={"tree": self.layout.to_dict()}, layout=self.layout,
                        forest=forest, child_splits=child_splits, root_splits=root_splits)


class TreeStrategy(TransitionStrategy):
    variant = Variant.TREE

    def solve(self, catalog, capacity, recorder, logger, **options):
        return TreeKnapsackSolver(catalog, capacity, recorder, logger).solve()
