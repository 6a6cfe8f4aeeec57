"""Tabular views over a SolveResult.

Turns the trace and value table into pandas DataFrames so a fill can be
inspected, grouped and exported the same way run results are analysed:

    df = trace_to_frame(result)
    df.groupby('row')['decision'].value_counts()
"""

import numpy as np
import pandas as pd

from models import Variant


TRACE_COLUMNS = ['step', 'kind', 'row', 'col', 'vol', 'value', 'decision', 'n_sources']


def trace_to_frame(result) -> pd.DataFrame:
    """One row per TraceStep, in fill order.

    Payload keys (tryItems, vals, dpValues, ...) are kept as object columns.
    Tree node steps have `row` = node index.
    """
    records = []
    for idx, step in enumerate(result.steps):
        rec = {
            'step': idx,
            'kind': step.kind,
            'row': step.row,
            'col': step.col,
            'vol': step.vol,
            'value': step.value,
            'decision': step.decision,
            'n_sources': len(step.sources),
        }
        for key, val in step.payload.items():
            rec[key] = val
        records.append(rec)
    if not records:
        return pd.DataFrame(columns=TRACE_COLUMNS)
    return pd.DataFrame(records)


def table_to_array(result, vol=None) -> np.ndarray:
    """Value table as a 2-D integer array (rows x capacity columns).

    Args:
        result: SolveResult
        vol: Secondary column to slice for the two-dimensional variant
            (defaults to capacity2)

    Returns:
        numpy array; k-th best cells are reduced to their best value, tree
        tables hold one row per node
    """
    table = result.table
    if result.variant is Variant.TWO_DIMENSIONAL:
        vol = result.capacity2 if vol is None else vol
        rows = [[cell[vol] for cell in row] for row in table]
    elif result.variant is Variant.KTH_BEST:
        rows = [[cell[0] if cell else 0 for cell in row] for row in table]
    else:
        rows = table
    return np.asarray(rows, dtype=_table_dtype(rows)).reshape(len(rows), result.capacity + 1)


def _table_dtype(rows):
    """int64 unless a cell (e.g. a subset count) exceeds its range."""
    limits = np.iinfo(np.int64)
    for row in rows:
        if row and (max(row) > limits.max or min(row) < limits.min):
            return object
    return np.int64


def table_to_frame(result, vol=None) -> pd.DataFrame:
    """Value table as a DataFrame indexed by row, one column per capacity."""
    arr = table_to_array(result, vol=vol)
    df = pd.DataFrame(arr, columns=list(range(arr.shape[1])))
    df.index.name = 'node' if result.variant is Variant.TREE else 'row'
    df.columns.name = 'capacity'
    return df


def summarize_decisions(result) -> pd.DataFrame:
    """Count decisions per table row (cell steps only)."""
    df = trace_to_frame(result)
    cells = df[df['kind'] == 'cell'] if len(df) > 0 else df
    if len(cells) == 0:
        return pd.DataFrame()
    summary = cells.groupby('row')['decision'].value_counts().unstack(fill_value=0)
    summary.columns.name = None
    return summary


def export_trace_csv(result, path):
    """Write the trace frame to CSV (payload columns serialized as text)."""
    df = trace_to_frame(result)
    df.to_csv(path, index=False)
    return path
