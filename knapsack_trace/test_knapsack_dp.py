"""
Test suite for the table-filling strategies against brute-force enumeration.

Every strategy is run on small random instances and compared with an
exhaustive search over all selections.
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

import random
from itertools import product

import pytest

from config import SolverConfig
from knapsack_dp import (
    BoundedStrategy,
    CountingStrategy,
    DependencyStrategy,
    GroupedStrategy,
    MixedStrategy,
    TwoDimensionalStrategy,
    UnboundedStrategy,
    ZeroOneStrategy,
)
from logger import NoOpLogger
from models import Item, ItemCatalog, Variant
from tracing import ADD, SKIP, TAKE, TraceRecorder


def run(strategy_cls, catalog, capacity, config=None, **options):
    strategy = strategy_cls(config) if config else strategy_cls()
    return strategy.solve(catalog, capacity, TraceRecorder(), NoOpLogger(), **options)


def brute_force_copies(items, capacity, limits, capacity2=None):
    """Best value over every copy vector x with 0 <= x[i] <= limits[i]."""
    best = 0
    for counts in product(*(range(lim + 1) for lim in limits)):
        weight = sum(c * it.weight for c, it in zip(counts, items))
        if weight > capacity:
            continue
        if capacity2 is not None and sum(c * it.volume for c, it in zip(counts, items)) > capacity2:
            continue
        best = max(best, sum(c * it.value for c, it in zip(counts, items)))
    return best


def random_items(rng, n, max_w=6, max_v=9, **attrs):
    return [Item(rng.randint(1, max_w), rng.randint(0, max_v),
                 **{k: (f(rng) if callable(f) else f) for k, f in attrs.items()})
            for _ in range(n)]


def test_zero_one_scenario():
    items = [Item(2, 3), Item(3, 4), Item(4, 5), Item(5, 6)]
    fill = run(ZeroOneStrategy, ItemCatalog(Variant.ZERO_ONE, items), 10)
    expected = brute_force_copies(items, 10, [1] * 4)
    print(f"0/1 optimum: {fill.final_value} (brute force {expected})")
    assert expected == 13
    assert fill.final_value == 13


def test_zero_one_random_and_order_invariant():
    rng = random.Random(7)
    for _ in range(30):
        items = random_items(rng, rng.randint(1, 7))
        cap = rng.randint(0, 20)
        fill = run(ZeroOneStrategy, ItemCatalog(Variant.ZERO_ONE, items), cap)
        assert fill.final_value == brute_force_copies(items, cap, [1] * len(items))

        shuffled = items[:]
        rng.shuffle(shuffled)
        fill2 = run(ZeroOneStrategy, ItemCatalog(Variant.ZERO_ONE, shuffled), cap)
        assert fill2.final_value == fill.final_value


def test_zero_one_trace_order_and_sources():
    items = [Item(2, 3), Item(3, 4)]
    fill = run(ZeroOneStrategy, ItemCatalog(Variant.ZERO_ONE, items), 4)
    steps = fill.trace.steps
    assert len(steps) == 2 * 5
    assert [(s.row, s.col) for s in steps] == [(i, j) for i in (1, 2) for j in range(5)]
    # with-source only once the item fits
    assert len(steps[1].sources) == 1
    assert len(steps[2].sources) == 2
    assert steps[2].decision == TAKE
    assert steps[0].decision == SKIP
    # value of every step equals its table cell
    for s in steps:
        assert s.value == fill.table[s.row][s.col]


def test_unbounded_scenario_and_dominates_zero_one():
    items = [Item(2, 3)]
    fill = run(UnboundedStrategy, ItemCatalog(Variant.COMPLETE, items), 5)
    assert fill.final_value == 6

    rng = random.Random(11)
    for _ in range(25):
        items = random_items(rng, rng.randint(1, 4))
        cap = rng.randint(0, 15)
        unbounded = run(UnboundedStrategy, ItemCatalog(Variant.COMPLETE, items), cap).final_value
        zero_one = run(ZeroOneStrategy, ItemCatalog(Variant.ZERO_ONE, items), cap).final_value
        limits = [cap // it.weight for it in items]
        assert unbounded == brute_force_copies(items, cap, limits)
        assert unbounded >= zero_one


def test_bounded_matches_naive_copy_enumeration():
    """Binary decomposition equals enumerating 0..C copies for every C <= 50."""
    for count in range(1, 51):
        items = [Item(3, 5, count=count), Item(4, 7, count=2)]
        cap = 3 * count + 5
        fill = run(BoundedStrategy, ItemCatalog(Variant.BOUNDED, items), cap)
        assert fill.final_value == brute_force_copies(items, cap, [count, 2]), f"count={count}"


def test_bounded_random():
    rng = random.Random(3)
    for _ in range(25):
        items = random_items(rng, rng.randint(1, 4), count=lambda r: r.randint(1, 5))
        cap = rng.randint(0, 25)
        fill = run(BoundedStrategy, ItemCatalog(Variant.BOUNDED, items), cap)
        assert fill.final_value == brute_force_copies(items, cap, [it.count for it in items])
        assert "splitItems" in fill.aux
        assert all(s.payload["origItem"] == fill.rows[s.row - 1].original_index for s in fill.trace.steps)


def test_two_dimensional_random():
    rng = random.Random(5)
    for _ in range(20):
        items = random_items(rng, rng.randint(1, 5), volume=lambda r: r.randint(0, 5))
        cap, cap2 = rng.randint(0, 12), rng.randint(0, 10)
        fill = run(TwoDimensionalStrategy, ItemCatalog(Variant.TWO_DIMENSIONAL, items), cap, capacity2=cap2)
        assert fill.final_value == brute_force_copies(items, cap, [1] * len(items), capacity2=cap2)
        assert len(fill.trace.steps) == len(items) * (cap + 1) * (cap2 + 1)


def test_two_dimensional_with_source_only_when_taken():
    items = [Item(1, 5, volume=1)]
    fill = run(TwoDimensionalStrategy, ItemCatalog(Variant.TWO_DIMENSIONAL, items), 1, capacity2=1)
    by_key = {(s.col, s.vol): s for s in fill.trace.steps}
    assert by_key[(1, 1)].decision == TAKE
    assert len(by_key[(1, 1)].sources) == 2
    assert by_key[(1, 0)].decision == SKIP
    assert len(by_key[(1, 0)].sources) == 1


def brute_force_grouped(items, capacity):
    groups = {}
    for idx, it in enumerate(items):
        groups.setdefault(it.group, []).append(idx)
    best = 0
    for picks in product(*([None] + members for members in groups.values())):
        chosen = [p for p in picks if p is not None]
        if sum(items[p].weight for p in chosen) <= capacity:
            best = max(best, sum(items[p].value for p in chosen))
    return best


def test_grouped_random():
    rng = random.Random(13)
    for _ in range(25):
        items = random_items(rng, rng.randint(1, 7), group=lambda r: r.randint(1, 3))
        cap = rng.randint(0, 15)
        cat = ItemCatalog(Variant.GROUPED, items)
        fill = run(GroupedStrategy, cat, cap)
        assert fill.final_value == brute_force_grouped(items, cap)
        assert len(fill.table) == len(cat.groups) + 1


def test_grouped_payload():
    items = [Item(2, 3, group=2), Item(1, 4, group=2), Item(3, 9, group=1)]
    fill = run(GroupedStrategy, ItemCatalog(Variant.GROUPED, items), 3)
    first_row = [s for s in fill.trace.steps if s.row == 1]
    assert all(s.payload["groupId"] == 1 for s in first_row)
    last = fill.trace.steps[-1]
    assert last.payload["groupId"] == 2
    assert [t["itemIdx"] for t in last.payload["tryItems"]] == [0, 1]
    # group 1 at cap 3 holds 9; neither member of group 2 still fits with it
    assert last.value == 9
    assert last.payload["bestChoice"] == -1
    assert fill.aux["groups"] == [{"id": 1, "items": [2]}, {"id": 2, "items": [0, 1]}]


def test_mixed_random():
    rng = random.Random(17)
    for _ in range(30):
        items = random_items(rng, rng.randint(1, 4), item_type=lambda r: r.randint(0, 2))
        items = [Item(it.weight, it.value, item_type=it.item_type,
                      count=rng.randint(1, 3) if it.item_type == 2 and rng.random() < 0.5 else None)
                 for it in items]
        cap = rng.randint(0, 15)
        fill = run(MixedStrategy, ItemCatalog(Variant.MIXED, items), cap)
        limits = []
        for it in items:
            if it.item_type == 0:
                limits.append(1)
            elif it.item_type == 1:
                limits.append(cap // it.weight)
            else:
                limits.append(it.count if it.count is not None else 3)
        assert fill.final_value == brute_force_copies(items, cap, limits)


def test_mixed_default_count_from_config():
    items = [Item(1, 10, item_type=2)]
    default = run(MixedStrategy, ItemCatalog(Variant.MIXED, items), 10)
    assert default.final_value == 30
    wider = run(MixedStrategy, ItemCatalog(Variant.MIXED, items), 10,
                config=SolverConfig(mixed_default_count=5))
    assert wider.final_value == 50
    assert default.trace.steps[-1].payload["typeStr"] == "Multiple"


def test_counting_scenario_and_invariants():
    items = [Item(1, 0), Item(3, 0)]
    fill = run(CountingStrategy, ItemCatalog(Variant.COUNTING, items), 4)
    assert fill.table[2][4] == 1
    assert fill.table[2][0] == 1
    assert all(s.decision == ADD for s in fill.trace.steps)

    rng = random.Random(19)
    for _ in range(20):
        items = random_items(rng, rng.randint(0, 6))
        cap = rng.randint(0, 12)
        fill = run(CountingStrategy, ItemCatalog(Variant.COUNTING, items), cap)
        n = len(items)
        assert fill.table[n][0] == 1
        for j in range(cap + 1):
            exact = sum(1 for mask in product((0, 1), repeat=n)
                        if sum(m * it.weight for m, it in zip(mask, items)) == j)
            assert fill.table[n][j] == exact


def brute_force_dependency(items, capacity):
    n = len(items)
    best = 0
    for mask in product((0, 1), repeat=n):
        chosen = [i for i in range(n) if mask[i]]
        if any(items[i].parent and not mask[items[i].parent - 1] for i in chosen):
            continue
        if sum(items[i].weight for i in chosen) <= capacity:
            best = max(best, sum(items[i].value for i in chosen))
    return best


def test_dependency_packages_are_exclusive():
    # two cheap packages of one main would beat the true optimum if both could be taken
    items = [Item(2, 10, parent=0), Item(1, 1, parent=1)]
    fill = run(DependencyStrategy, ItemCatalog(Variant.DEPENDENCY, items), 10)
    assert fill.final_value == 11
    assert fill.bases == [0, 0, 0]


def test_dependency_random():
    rng = random.Random(23)
    for _ in range(30):
        n = rng.randint(1, 6)
        items = []
        mains = []
        for idx in range(n):
            if not mains or rng.random() < 0.4:
                items.append(Item(rng.randint(1, 5), rng.randint(0, 9), parent=0))
                mains.append(idx + 1)
            else:
                items.append(Item(rng.randint(1, 5), rng.randint(0, 9), parent=rng.choice(mains)))
        cap = rng.randint(0, 15)
        fill = run(DependencyStrategy, ItemCatalog(Variant.DEPENDENCY, items), cap)
        assert fill.final_value == brute_force_dependency(items, cap)


def test_strategies_are_deterministic():
    items = [Item(2, 3, group=1), Item(3, 4, group=2), Item(1, 2, group=1)]
    cat = ItemCatalog(Variant.GROUPED, items)
    a = run(GroupedStrategy, cat, 5)
    b = run(GroupedStrategy, cat, 5)
    assert a.table == b.table
    assert a.trace.to_dicts() == b.trace.to_dicts()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
