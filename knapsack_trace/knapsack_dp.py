"""Dynamic programming fills for the table-based knapsack variants.

Every strategy follows the same contract: given a validated ItemCatalog and
the capacity bound(s), fill a fresh value table row by row, emit one
TraceStep per cell into a TraceRecorder, and return a Fill that the
backtracker can walk.

Table convention: table[i][j] is the best value using only the first i rows
(items, split items, packages or groups) within capacity j; table[0][*] = 0
(the counting variant starts from table[0][0] = 1 instead).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config import DEFAULT_CONFIG
from expanders import BoundedExpander, PackageExpander
from models import MULTIPLE, ONCE, TYPE_LABELS, UNBOUNDED, Variant
from tracing import ADD, SKIP, TAKE, WITH, WITHOUT, SourceCell, TraceRecorder


@dataclass
class Fill:
    """Result of a table fill.

    Attributes:
        table: The value table (two- or three-dimensional list)
        trace: Recorder holding one step per evaluated cell
        rows: What each table row stands for (items, split items, packages, groups)
        capacity: Primary capacity bound
        capacity2: Secondary capacity bound (two-dimensional variant only)
        choices: Per-cell decision record for variants whose backtrack needs
            more than a value comparison (grouped, mixed)
        bases: bases[i] is the row the take branch of row i reads from
        aux: Auxiliary structures echoed to the caller (splitItems, packages, groups)
        catalog: The ItemCatalog the fill was computed from
    """
    table: List[Any]
    trace: TraceRecorder
    rows: List[Any]
    capacity: int
    capacity2: Optional[int] = None
    choices: Optional[List[List[Any]]] = None
    bases: Optional[List[int]] = None
    aux: Dict[str, Any] = field(default_factory=dict)
    catalog: Any = None

    @property
    def final_value(self):
        last = self.table[len(self.rows)][self.capacity]
        return last[self.capacity2] if self.capacity2 is not None else last


def fill_zero_one(rows, capacity, recorder, logger, bases=None, payload=None):
    """Fill a 0/1 table over any rows carrying .weight and .value.

    Args:
        rows: Sequence of objects with weight and value
        capacity: Capacity bound
        recorder: TraceRecorder receiving one step per cell
        logger: SolveLogger (or NoOpLogger)
        bases: Optional list; the take branch of row i reads table[bases[i]]
            instead of table[i-1] (used to make packages of one main exclusive)
        payload: Optional callable row_index -> dict of extra step fields

    Returns:
        The filled table (len(rows)+1 rows of capacity+1 columns)
    """
    n = len(rows)
    table = [[0] * (capacity + 1) for _ in range(n + 1)]
    for i in range(1, n + 1):
        w = rows[i - 1].weight
        v = rows[i - 1].value
        base = i - 1 if bases is None else bases[i]
        extra = payload(i) if payload else {}
        for j in range(capacity + 1):
            # Option 1: don't take row i
            without = table[i - 1][j]
            sources = [SourceCell(i - 1, j, WITHOUT)]
            table[i][j] = without
            # Option 2: take row i if it fits
            if j >= w:
                table[i][j] = max(without, table[base][j - w] + v)
                sources.append(SourceCell(base, j - w, WITH))
            decision = SKIP if table[i][j] == table[i - 1][j] else TAKE
            recorder.record(i, j, table[i][j], decision, sources, **extra)
        logger.log_row(i, table[i])
    return table


class TransitionStrategy:
    """Base class: one subclass per variant, selected once per catalog."""

    variant: Variant = None

    def __init__(self, config=DEFAULT_CONFIG):
        self.config = config

    def solve(self, catalog, capacity, recorder, logger, **options) -> Fill:
        raise NotImplementedError


class ZeroOneStrategy(TransitionStrategy):
    """table[i][j] = max(table[i-1][j], table[i-1][j-w] + v)."""

    variant = Variant.ZERO_ONE

    def solve(self, catalog, capacity, recorder, logger, **options):
        rows = list(catalog.items)
        table = fill_zero_one(rows, capacity, recorder, logger)
        return Fill(table, recorder, rows, capacity)


class UnboundedStrategy(TransitionStrategy):
    """Complete knapsack: the take branch reads the current row.

    Columns are filled in increasing order because cell j depends on the
    already updated cell j-w of the same row.
    """

    variant = Variant.COMPLETE

    def solve(self, catalog, capacity, recorder, logger, **options):
        rows = list(catalog.items)
        n = len(rows)
        table = [[0] * (capacity + 1) for _ in range(n + 1)]
        for i in range(1, n + 1):
            w, v = rows[i - 1].weight, rows[i - 1].value
            for j in range(capacity + 1):
                without = table[i - 1][j]
                sources = [SourceCell(i - 1, j, WITHOUT)]
                if j < w:
                    table[i][j] = without
                else:
                    table[i][j] = max(without, table[i][j - w] + v)
                    sources.append(SourceCell(i, j - w, WITH))
                decision = SKIP if table[i][j] == without else TAKE
                recorder.record(i, j, table[i][j], decision, sources)
            logger.log_row(i, table[i])
        return Fill(table, recorder, rows, capacity)


class TwoDimensionalStrategy(TransitionStrategy):
    """0/1 knapsack with a weight bound and a secondary-resource bound."""

    variant = Variant.TWO_DIMENSIONAL

    def solve(self, catalog, capacity, recorder, logger, capacity2=0, **options):
        rows = list(catalog.items)
        n = len(rows)
        table = [[[0] * (capacity2 + 1) for _ in range(capacity + 1)] for _ in range(n + 1)]
        for i in range(1, n + 1):
            w, m, v = rows[i - 1].weight, rows[i - 1].volume, rows[i - 1].value
            for j in range(capacity + 1):
                for k in range(capacity2 + 1):
                    old = table[i - 1][j][k]
                    new = old
                    took = False
                    if j >= w and k >= m:
                        with_item = table[i - 1][j - w][k - m] + v
                        if with_item > new:
                            new = with_item
                            took = True
                    table[i][j][k] = new
                    sources = [SourceCell(i - 1, j, WITHOUT, k)]
                    if took:
                        sources.append(SourceCell(i - 1, j - w, WITH, k - m))
                    recorder.record(i, j, new, TAKE if took else SKIP, sources, vol=k)
            logger.log_row(i, [cell[capacity2] for cell in table[i]])
        return Fill(table, recorder, rows, capacity, capacity2=capacity2)


class GroupedStrategy(TransitionStrategy):
    """At most one pick per group; groups are processed by ascending id.

    Within a group, members are tried in catalog order and only a strictly
    better value replaces the current best, so ties go to the do-not-select
    case first and then to the first member reaching the maximum.
    """

    variant = Variant.GROUPED

    def solve(self, catalog, capacity, recorder, logger, **options):
        groups = list(catalog.groups)
        items = catalog.items
        table = [[0] * (capacity + 1) for _ in range(len(groups) + 1)]
        choices = [[-1] * (capacity + 1) for _ in range(len(groups) + 1)]
        for g, group in enumerate(groups):
            for j in range(capacity + 1):
                best = table[g][j]
                best_choice = -1
                tries = []
                for idx in group.members:
                    w, v = items[idx].weight, items[idx].value
                    attempt = {"itemIdx": idx, "w": w, "v": v}
                    if j >= w and table[g][j - w] + v > best:
                        best = table[g][j - w] + v
                        best_choice = idx
                        attempt.update(canTake=1, newVal=best)
                    else:
                        attempt.update(canTake=1 if j >= w else 0,
                                       newVal=table[g][j - w] + v if j >= w else 0)
                    tries.append(attempt)
                table[g + 1][j] = best
                choices[g + 1][j] = best_choice
                sources = [SourceCell(g, j, WITHOUT)]
                if best_choice >= 0:
                    sources.append(SourceCell(g, j - items[best_choice].weight, WITH))
                recorder.record(g + 1, j, best, TAKE if best_choice >= 0 else SKIP, sources,
                                groupId=group.group_id, tryItems=tries, bestChoice=best_choice)
            logger.log_row(g + 1, table[g + 1])
        return Fill(table, recorder, groups, capacity, choices=choices, catalog=catalog,
                    aux={"groups": [gr.to_dict() for gr in groups]})


class MixedStrategy(TransitionStrategy):
    """Per item, dispatch to the 0/1, complete or bounded-multiple rule.

    All three rules write into one shared table. choices[i][j] records
    (source_row, source_col, copies) of the winning take branch, or None
    when the cell inherits table[i-1][j].
    """

    variant = Variant.MIXED

    def copies_allowed(self, item):
        if item.item_type != MULTIPLE:
            return 1
        return item.count if item.count is not None else self.config.mixed_default_count

    def solve(self, catalog, capacity, recorder, logger, **options):
        rows = list(catalog.items)
        n = len(rows)
        table = [[0] * (capacity + 1) for _ in range(n + 1)]
        choices = [[None] * (capacity + 1) for _ in range(n + 1)]
        for i in range(1, n + 1):
            item = rows[i - 1]
            w, v, kind = item.weight, item.value, item.item_type
            limit = self.copies_allowed(item)
            for j in range(capacity + 1):
                best = table[i - 1][j]
                choice = None
                if kind == ONCE:
                    if j >= w and table[i - 1][j - w] + v > best:
                        best = table[i - 1][j - w] + v
                        choice = (i - 1, j - w, 1)
                elif kind == UNBOUNDED:
                    if j >= w and table[i][j - w] + v > best:
                        best = table[i][j - w] + v
                        choice = (i, j - w, 1)
                else:
                    k = 1
                    while k <= limit and k * w <= j:
                        if table[i - 1][j - k * w] + k * v > best:
                            best = table[i - 1][j - k * w] + k * v
                            choice = (i - 1, j - k * w, k)
                        k += 1
                table[i][j] = best
                choices[i][j] = choice
                sources = [SourceCell(i - 1, j, WITHOUT)]
                if choice is not None:
                    sources.append(SourceCell(choice[0], choice[1], WITH))
                recorder.record(i, j, best, TAKE if choice else SKIP, sources,
                                itemType=kind, typeStr=TYPE_LABELS[kind])
            logger.log_row(i, table[i])
        return Fill(table, recorder, rows, capacity, choices=choices)


class CountingStrategy(TransitionStrategy):
    """table[i][j] counts subsets of the first i items with weight exactly j.

    Both addends always contribute, so every step is tagged "add". The
    number of subsets with weight <= C is the cumulative sum of row n.
    """

    variant = Variant.COUNTING

    def solve(self, catalog, capacity, recorder, logger, **options):
        rows = list(catalog.items)
        n = len(rows)
        table = [[0] * (capacity + 1) for _ in range(n + 1)]
        table[0][0] = 1
        for i in range(1, n + 1):
            w = rows[i - 1].weight
            for j in range(capacity + 1):
                not_take = table[i - 1][j]
                take = table[i - 1][j - w] if j >= w else 0
                table[i][j] = not_take + take
                sources = [SourceCell(i - 1, j, WITHOUT)]
                if j >= w:
                    sources.append(SourceCell(i - 1, j - w, WITH))
                recorder.record(i, j, table[i][j], ADD, sources, notTake=not_take, take=take)
            logger.log_row(i, table[i])
        return Fill(table, recorder, rows, capacity)


class BoundedStrategy(TransitionStrategy):
    """Bounded-multiple knapsack reduced to 0/1 over binary-decomposed split items."""

    variant = Variant.BOUNDED

    def solve(self, catalog, capacity, recorder, logger, **options):
        split_items = BoundedExpander().expand(catalog)
        logger.log_expansion("split_items", len(catalog), len(split_items))
        table = fill_zero_one(split_items, capacity, recorder, logger,
                              payload=lambda i: {"origItem": split_items[i - 1].original_index})
        return Fill(table, recorder, split_items, capacity,
                    aux={"splitItems": [s.to_dict() for s in split_items]})


class DependencyStrategy(TransitionStrategy):
    """Dependency knapsack over enumerated packages.

    Packages of one main occupy consecutive rows. Their take branch reads the
    row just before that block, so at most one package per main is selected.
    """

    variant = Variant.DEPENDENCY

    def solve(self, catalog, capacity, recorder, logger, **options):
        packages = PackageExpander(self.config.max_attachments).expand(catalog)
        logger.log_expansion("packages", len(catalog), len(packages))
        bases = [0] * (len(packages) + 1)
        block_start = 0
        for i in range(1, len(packages) + 1):
            if i == 1 or packages[i - 1].main_index != packages[i - 2].main_index:
                block_start = i - 1
            bases[i] = block_start
        table = fill_zero_one(packages, capacity, recorder, logger, bases=bases,
                              payload=lambda i: {"package": packages[i - 1].desc})
        return Fill(table, recorder, packages, capacity, bases=bases,
                    aux={"packages": [p.to_dict() for p in packages]})
