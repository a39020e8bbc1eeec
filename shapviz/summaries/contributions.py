"""
Per-observation decompositions: baseline -> prediction (waterfall and force data).
"""

from __future__ import annotations

import numbers
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from ..config import LABEL_DIGITS, WATERFALL_MAX_DISPLAY
from ..core.container import Shapviz
from .importance import _check_max_display

# Label of the row holding the collapsed tail of small contributions
OTHER_CONTRIBUTIONS_LABEL = '{n} other features'

# Force summaries show fewer bars by default
FORCE_MAX_DISPLAY = 6


@dataclass(frozen=True)
class ContributionData:
    """Decomposition of one (or an average) prediction into SHAP contributions."""
    frame: pd.DataFrame
    baseline: float
    prediction: float


def format_value(value: Any, digits: int = LABEL_DIGITS) -> str:
    """Format a feature value for labels ('carat = 0.7')."""
    if isinstance(value, (bool, np.bool_)) or value is None:
        return str(value)
    if isinstance(value, numbers.Real):
        if np.isnan(value):
            return 'NA'
        return f"{value:.{digits}g}"
    return str(value)


def _aggregate_feature(column: pd.Series) -> Any:
    """Average numeric columns, keep a value shared by all rows, else NA."""
    if pd.api.types.is_numeric_dtype(column) and not pd.api.types.is_bool_dtype(column):
        return column.mean()
    unique = column.unique()
    return unique[0] if len(unique) == 1 else np.nan


def _row_contributions(sv: Shapviz, row_id: int | Sequence[int]) -> pd.DataFrame:
    """SHAP values and feature values of one row, or averaged over several rows."""
    rows = np.atleast_1d(np.arange(sv.n_rows)[row_id])
    if rows.size == 0:
        raise ValueError("row_id selects no rows")

    features = sv.features.iloc[rows]
    if rows.size == 1:
        feature_values = features.iloc[0].tolist()
    else:
        feature_values = [_aggregate_feature(features[name]) for name in sv.feature_names]

    return pd.DataFrame({
        'feature': list(sv.feature_names),
        'feature_value': pd.Series(feature_values, dtype=object),
        'shap_value': sv.values[rows].mean(axis=0),
    })


def _collapse_small(contributions: pd.DataFrame, max_display: int) -> pd.DataFrame:
    """
    Keep the max_display - 1 largest |SHAP| rows, sum the rest into one row.

    Returns rows sorted by |SHAP| descending; the collapsed row (if any) last.
    """
    contributions = contributions.assign(abs_shap=contributions['shap_value'].abs())
    contributions = contributions.sort_values('abs_shap', ascending=False, kind='stable')

    if len(contributions) > max_display:
        keep = contributions.head(max_display - 1)
        rest = contributions.iloc[max_display - 1:]
        label = OTHER_CONTRIBUTIONS_LABEL.format(n=len(rest))
        other = pd.DataFrame({
            'feature': [label],
            'feature_value': pd.Series([np.nan], dtype=object),
            'shap_value': [rest['shap_value'].sum()],
            'abs_shap': [abs(rest['shap_value'].sum())],
            'label': [label],
        })
        contributions = pd.concat([keep, other], ignore_index=True)

    return contributions.reset_index(drop=True)


def _add_labels(contributions: pd.DataFrame) -> pd.DataFrame:
    labels = [
        f"{name} = {format_value(value)}"
        for name, value in zip(contributions['feature'], contributions['feature_value'])
    ]
    return contributions.assign(label=labels)


def _stack(contributions: pd.DataFrame, baseline: float) -> pd.DataFrame:
    """Add start/end positions, accumulating from the baseline in row order."""
    end = baseline + contributions['shap_value'].cumsum()
    start = end - contributions['shap_value']
    columns = ['feature', 'feature_value', 'label', 'shap_value', 'start', 'end']
    return contributions.assign(start=start, end=end)[columns].reset_index(drop=True)


def waterfall_table(
    sv: Shapviz,
    row_id: int | Sequence[int] = 0,
    max_display: int = WATERFALL_MAX_DISPLAY
) -> ContributionData:
    """
    Waterfall decomposition of a prediction.

    Rows run from the baseline upwards: the collapsed tail first, then the
    features by increasing |SHAP|, so the last row ends at the prediction.

    Args:
        sv: Shapviz object
        row_id: Row position, or several positions to average over
        max_display: Maximum number of rows (the tail is collapsed into one)

    Returns:
        ContributionData with frame columns:
        feature, feature_value, label, shap_value, start, end
    """
    _check_max_display(max_display)
    contributions = _add_labels(_row_contributions(sv, row_id))
    contributions = _collapse_small(contributions, max_display).iloc[::-1]

    prediction = sv.baseline + float(contributions['shap_value'].sum())
    return ContributionData(
        frame=_stack(contributions, sv.baseline),
        baseline=sv.baseline,
        prediction=prediction,
    )


def force_table(
    sv: Shapviz,
    row_id: int | Sequence[int] = 0,
    max_display: int = FORCE_MAX_DISPLAY
) -> ContributionData:
    """
    Force decomposition of a prediction.

    Positive contributions come first, then negative ones, each by |SHAP|
    descending, accumulating from the baseline to the prediction.

    Args:
        sv: Shapviz object
        row_id: Row position, or several positions to average over
        max_display: Maximum number of rows (the tail is collapsed into one)

    Returns:
        ContributionData with the same frame layout as waterfall_table()
    """
    _check_max_display(max_display)
    contributions = _add_labels(_row_contributions(sv, row_id))
    contributions = _collapse_small(contributions, max_display)

    positive = contributions[contributions['shap_value'] >= 0]
    negative = contributions[contributions['shap_value'] < 0]
    contributions = pd.concat([positive, negative])

    prediction = sv.baseline + float(contributions['shap_value'].sum())
    return ContributionData(
        frame=_stack(contributions, sv.baseline),
        baseline=sv.baseline,
        prediction=prediction,
    )
