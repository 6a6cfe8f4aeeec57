"""Reconstruct one optimal selection from a completed fill.

Each walk starts at the terminal cell and follows the branch condition the
forward fill used: equal values mean the skip branch was taken. Every emitted
PathStep is one unit of selection (one repetition for complete items, one
split item or package for the reduced variants, one node for trees).
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from models import Variant


@dataclass(frozen=True)
class PathStep:
    """One unit of selection.

    Attributes:
        row: Table row (prefix index, group row, or node index for trees)
        col: Capacity column at which the selection was read
        item: Catalog index of the selected item (main item for packages)
        multiplier: Copies represented by this step (split items, mixed multiples)
        vol: Secondary-capacity column (two-dimensional variant only)
        group: Group id (grouped variant only)
        package: Package description (dependency variant only)
        members: Catalog indices in the package (dependency variant only)
        value: Subtree value at col (tree variant only)
    """
    row: int
    col: int
    item: int
    multiplier: int = 1
    vol: Optional[int] = None
    group: Optional[int] = None
    package: Optional[str] = None
    members: Optional[Tuple[int, ...]] = None
    value: Optional[int] = None

    def to_dict(self):
        if self.value is not None:
            return {"node": self.item, "c": self.col, "val": self.value}
        out = {"r": self.row, "c": self.col}
        if self.vol is not None:
            out["v"] = self.vol
        if self.package is not None:
            out["package"] = self.package
            out["items"] = list(self.members)
            return out
        out["item"] = self.item
        if self.group is not None:
            out["group"] = self.group
        if self.multiplier != 1:
            out["splitCnt"] = self.multiplier
        return out


def backtrack_zero_one(fill) -> List[PathStep]:
    """Walk a 0/1 table; also used for split items and packages.

    With fill.bases set (packages), a take jumps to the base row of the
    package block instead of the previous row.
    """
    table, rows = fill.table, fill.rows
    path = []
    j = fill.capacity
    i = len(rows)
    while i > 0 and j > 0:
        if table[i][j] != table[i - 1][j]:
            path.append(_step_for_row(i, j, rows[i - 1]))
            j -= rows[i - 1].weight
            i = fill.bases[i] if fill.bases is not None else i - 1
        else:
            i -= 1
    return path


def _step_for_row(i, j, row):
    if hasattr(row, "main_index"):
        return PathStep(i, j, row.main_index, package=row.desc, members=tuple(row.items))
    if hasattr(row, "original_index"):
        return PathStep(i, j, row.original_index, multiplier=row.multiplier)
    return PathStep(i, j, i - 1)


def backtrack_unbounded(fill) -> List[PathStep]:
    """Complete knapsack: a take keeps the row index, so items can recur."""
    table, rows = fill.table, fill.rows
    path = []
    j = fill.capacity
    i = len(rows)
    while i > 0 and j > 0:
        if table[i][j] != table[i - 1][j]:
            path.append(PathStep(i, j, i - 1))
            j -= rows[i - 1].weight
        else:
            i -= 1
    return path


def backtrack_two_dimensional(fill) -> List[PathStep]:
    table, rows = fill.table, fill.rows
    path = []
    j, k = fill.capacity, fill.capacity2
    for i in range(len(rows), 0, -1):
        if table[i][j][k] != table[i - 1][j][k]:
            path.append(PathStep(i, j, i - 1, vol=k))
            j -= rows[i - 1].weight
            k -= rows[i - 1].volume
    return path


def backtrack_grouped(fill) -> List[PathStep]:
    """Follow the member recorded per cell (-1 = nothing taken from the group)."""
    path = []
    j = fill.capacity
    groups = fill.rows
    for g in range(len(groups), 0, -1):
        idx = fill.choices[g][j]
        if idx >= 0:
            item = fill.catalog[idx]
            path.append(PathStep(g, j, idx, group=groups[g - 1].group_id))
            j -= item.weight
    return path


def backtrack_mixed(fill) -> List[PathStep]:
    """Follow the recorded source cell of every taken cell.

    A complete item's source lies on the same row, so it can be emitted
    repeatedly; a bounded-multiple item is emitted once with its copy count.
    """
    path = []
    i, j = len(fill.rows), fill.capacity
    while i > 0:
        choice = fill.choices[i][j]
        if choice is None:
            i -= 1
            continue
        src_row, src_col, copies = choice
        path.append(PathStep(i, j, i - 1, multiplier=copies))
        i, j = src_row, src_col
    return path


def backtrack_tree(fill) -> List[PathStep]:
    """Report every selected node, pre-order, with the capacity it received."""
    layout = fill.layout
    j = fill.capacity
    allocations = []
    for n in range(len(layout.roots) - 1, -1, -1):
        k = fill.root_splits[n][j]
        if k > 0:
            allocations.append((layout.roots[n], k))
        j -= k
    stack = allocations  # reversed root order, popped from the end
    path = []
    while stack:
        u, budget = stack.pop()
        path.append(PathStep(u, budget, u, value=fill.table[u][budget]))
        remaining = budget
        handed = []
        for n in range(len(layout.children[u]) - 1, -1, -1):
            k = fill.child_splits[u][n][remaining]
            if k > 0:
                handed.append((layout.children[u][n], k))
            remaining -= k
        stack.extend(handed)
    return path


def no_path(fill) -> List[PathStep]:
    """Counting and k-th best report no path."""
    return []


BACKTRACKERS = {
    Variant.ZERO_ONE: backtrack_zero_one,
    Variant.BOUNDED: backtrack_zero_one,
    Variant.DEPENDENCY: backtrack_zero_one,
    Variant.COMPLETE: backtrack_unbounded,
    Variant.TWO_DIMENSIONAL: backtrack_two_dimensional,
    Variant.GROUPED: backtrack_grouped,
    Variant.MIXED: backtrack_mixed,
    Variant.TREE: backtrack_tree,
    Variant.COUNTING: no_path,
    Variant.KTH_BEST: no_path,
}


def backtrack(variant, fill) -> List[PathStep]:
    return BACKTRACKERS[Variant(variant)](fill)
