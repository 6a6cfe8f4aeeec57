"""Single entry point for every knapsack variant.

solve() validates the bounds, picks the strategy registered for the
catalog's variant, runs the fill with a fresh TraceRecorder, backtracks one
optimal selection and packs everything into a SolveResult.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from backtrack import PathStep, backtrack
from config import DEFAULT_CONFIG, SolverConfig
from errors import ContractViolation
from expanders import PackageExpander
from knapsack_dp import (
    BoundedStrategy,
    CountingStrategy,
    DependencyStrategy,
    Fill,
    GroupedStrategy,
    MixedStrategy,
    TwoDimensionalStrategy,
    UnboundedStrategy,
    ZeroOneStrategy,
)
from logger import NoOpLogger, create_logger
from models import Item, ItemCatalog, Variant, validate_capacity
from topk import KthBestStrategy, best_value, kth_value
from tracing import TraceRecorder
from tree_knapsack import TreeStrategy


STRATEGIES = {
    Variant.ZERO_ONE: ZeroOneStrategy,
    Variant.COMPLETE: UnboundedStrategy,
    Variant.BOUNDED: BoundedStrategy,
    Variant.TWO_DIMENSIONAL: TwoDimensionalStrategy,
    Variant.GROUPED: GroupedStrategy,
    Variant.DEPENDENCY: DependencyStrategy,
    Variant.MIXED: MixedStrategy,
    Variant.COUNTING: CountingStrategy,
    Variant.KTH_BEST: KthBestStrategy,
    Variant.TREE: TreeStrategy,
}


@dataclass
class SolveResult:
    """Everything one solve call produces.

    Attributes:
        catalog: The solved ItemCatalog (echoed as "items")
        capacity: Primary capacity bound
        fill: Table, trace and auxiliary structures of the fill
        path: Backtracked selection (empty for counting and k-th best)
        max_value: Optimal value (subset count for the counting variant)
        capacity2: Secondary bound (two-dimensional variant)
        k: Requested K (k-th best variant)
        top_k: Top-K values at the terminal cell (k-th best variant)
        kth_value: K-th value, 0 if fewer than K selections exist
    """
    catalog: ItemCatalog
    capacity: int
    fill: Fill
    path: List[PathStep]
    max_value: int
    capacity2: Optional[int] = None
    k: Optional[int] = None
    top_k: Optional[List[int]] = None
    kth_value: Optional[int] = None
    metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def variant(self):
        return self.catalog.variant

    @property
    def table(self):
        return self.fill.table

    @property
    def steps(self):
        return self.fill.trace.steps

    def to_dict(self):
        """Build the JSON document emitted by the command-line tools."""
        out = {"code": 200, "type": self.variant.display_name, "capacity": self.capacity}
        if self.capacity2 is not None:
            out["capacity2"] = self.capacity2
        if self.k is not None:
            out["k"] = self.k
        out["items"] = self.catalog.to_dicts()
        out.update(self.fill.aux)
        out["steps"] = self.fill.trace.to_dicts()
        out["path"] = [p.to_dict() for p in self.path]
        if self.top_k is not None:
            out["topK"] = list(self.top_k)
        out["max_value"] = self.max_value
        if self.kth_value is not None:
            out["kth_value"] = self.kth_value
        return out


def _make_logger(config: SolverConfig, logger):
    if logger is not None:
        return logger
    if config.enable_logging:
        return create_logger(instance_name=config.instance_name, log_dir=config.log_dir)
    return NoOpLogger()


def solve(catalog: ItemCatalog, capacity: int, capacity2: Optional[int] = None,
          k: Optional[int] = None, config: SolverConfig = DEFAULT_CONFIG,
          logger=None) -> SolveResult:
    """Solve a knapsack instance and trace the DP fill.

    Args:
        catalog: Validated items for one variant
        capacity: Weight bound (>= 0)
        capacity2: Secondary bound, required for the two-dimensional variant
        k: Number of best values to track, required for the k-th best variant
        config: Solver configuration
        logger: Optional SolveLogger; created from config when None

    Returns:
        SolveResult with table, trace, path and optimal value

    Raises:
        InvalidCapacityError: If a capacity bound is negative or missing
        ContractViolation: If K is missing or not positive for k-th best
        AttachmentLimitError: If a dependency main has too many attachments
    """
    variant = catalog.variant
    capacity = validate_capacity(capacity)
    options = {}
    if variant is Variant.TWO_DIMENSIONAL:
        options["capacity2"] = validate_capacity(capacity2, "capacity2")
    if variant is Variant.KTH_BEST:
        if isinstance(k, bool) or not isinstance(k, int) or k < 1:
            raise ContractViolation(f"K must be a positive integer, got {k!r}")
        options["k"] = k
    if variant is Variant.DEPENDENCY:
        PackageExpander(config.max_attachments).check_catalog(catalog)

    logger = _make_logger(config, logger)
    problem_data = {
        "variant": variant.value,
        "n_items": len(catalog),
        "capacity": capacity,
    }
    problem_data.update(options)
    logger.start_run(problem_data)

    recorder = TraceRecorder(keep_steps=config.record_trace)
    strategy = STRATEGIES[variant](config)
    fill = strategy.solve(catalog, capacity, recorder, logger, **options)
    if fill.catalog is None:
        fill.catalog = catalog
    path = backtrack(variant, fill)

    result = SolveResult(catalog, capacity, fill, path, 0,
                         capacity2=options.get("capacity2"), k=options.get("k"))
    if variant is Variant.KTH_BEST:
        result.top_k = list(fill.final_value)
        result.max_value = best_value(result.top_k)
        result.kth_value = kth_value(result.top_k, k)
    else:
        result.max_value = fill.final_value

    logger.info(f"Optimal value: {result.max_value} ({len(path)} path steps)")
    logger.end_run({"max_value": result.max_value, "path_length": len(path)}, recorder=recorder)
    result.metrics = logger.get_metrics()
    return result


def solve_items(variant, items, capacity, **kwargs) -> SolveResult:
    """Convenience wrapper: build the ItemCatalog from Items or (w, v, ...) tuples."""
    built = [it if isinstance(it, Item) else _item_from_tuple(Variant(variant), it) for it in items]
    return solve(ItemCatalog(Variant(variant), built), capacity, **kwargs)


def _item_from_tuple(variant, values):
    """Map a positional tuple to an Item using the variant's field order.

    Two-dimensional tuples are (weight, volume, value); all others are
    (weight, value[, attribute]).
    """
    if variant is Variant.TWO_DIMENSIONAL:
        w, m, v = values
        return Item(weight=w, value=v, volume=m)
    attr = variant.attribute
    if attr is None:
        w, v = values[:2]
        return Item(weight=w, value=v)
    w, v, a = values[:3]
    extra = {attr: a}
    if variant is Variant.MIXED and len(values) > 3:
        extra["count"] = values[3]
    return Item(weight=w, value=v, **extra)
