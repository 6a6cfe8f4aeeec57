"""K-th best knapsack: every cell keeps the K largest achievable totals.

Cell (i, j) holds a non-increasing list of at most K values, one entry per
selection of the first i items fitting in capacity j. Equal totals reached by
different selections are kept separately, so the K-th entry is the value of
the K-th best selection, not the K-th distinct value.
"""

from typing import List, Sequence

from errors import ContractViolation
from knapsack_dp import Fill, TransitionStrategy
from models import Variant
from tracing import MERGE, WITH, WITHOUT, SourceCell


def merge_top_k(a: Sequence[int], b: Sequence[int], k: int) -> List[int]:
    """Merge two non-increasing sequences and keep the first k values.

    On equal heads the element of `a` is consumed first; this only fixes the
    order of the output for a deterministic trace, the value multiset is the
    same either way.

    Args:
        a: Non-increasing values (the no-take branch)
        b: Non-increasing values (the take branch)
        k: Maximum length of the result

    Returns:
        Non-increasing list of length min(k, len(a) + len(b))
    """
    result = []
    i = j = 0
    while len(result) < k and (i < len(a) or j < len(b)):
        if i >= len(a):
            result.append(b[j])
            j += 1
        elif j >= len(b):
            result.append(a[i])
            i += 1
        elif a[i] >= b[j]:
            result.append(a[i])
            i += 1
        else:
            result.append(b[j])
            j += 1
    return result


def best_value(values):
    return values[0] if values else 0


def kth_value(values, k):
    """K-th entry, or 0 when fewer than k selections exist (lenient default)."""
    return values[k - 1] if len(values) >= k else 0


class KthBestStrategy(TransitionStrategy):
    """Top-K order-statistic fill.

    table[0][j] = [0] for every j: the empty selection fits any capacity.
    """

    variant = Variant.KTH_BEST

    def solve(self, catalog, capacity, recorder, logger, k=1, **options):
        if k < 1:
            raise ContractViolation(f"K must be a positive integer, got {k}")
        rows = list(catalog.items)
        n = len(rows)
        table = [[[0] for _ in range(capacity + 1)] for _ in range(n + 1)]
        for i in range(1, n + 1):
            w, v = rows[i - 1].weight, rows[i - 1].value
            for j in range(capacity + 1):
                not_take = table[i - 1][j]
                take = [val + v for val in table[i - 1][j - w]] if j >= w else []
                table[i][j] = merge_top_k(not_take, take, k)
                sources = [SourceCell(i - 1, j, WITHOUT)]
                if j >= w:
                    sources.append(SourceCell(i - 1, j - w, WITH))
                recorder.record(i, j, best_value(table[i][j]), MERGE, sources,
                                vals=list(table[i][j]))
            logger.log_row(i, [best_value(cell) for cell in table[i]])
        return Fill(table, recorder, rows, capacity)
