"""
Global feature importance data (bar and beeswarm summaries).
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from ..config import OTHER_FEATURES_LABEL, SHAP_MAX_DISPLAY
from ..core.container import Shapviz


def _check_max_display(max_display: int) -> None:
    if not isinstance(max_display, (int, np.integer)) or max_display < 1:
        raise ValueError(f"max_display must be a positive integer, got {max_display!r}")


def importance_table(
    sv: Shapviz,
    max_display: int = SHAP_MAX_DISPLAY,
    show_other: bool = True
) -> pd.DataFrame:
    """
    Rank features by mean absolute SHAP value.

    Args:
        sv: Shapviz object
        max_display: Number of features listed individually
        show_other: Add one row summing the importance of the remaining features

    Returns:
        DataFrame with columns: feature, mean_abs_shap, rank
        Sorted by mean_abs_shap descending; the aggregated row (if any) comes last
    """
    _check_max_display(max_display)

    importance_df = pd.DataFrame({
        'feature': list(sv.feature_names),
        'mean_abs_shap': np.abs(sv.values).mean(axis=0) if sv.n_rows else np.zeros(sv.n_features),
    })
    importance_df = importance_df.sort_values(
        'mean_abs_shap', ascending=False, kind='stable'
    ).reset_index(drop=True)

    if len(importance_df) > max_display:
        rest = importance_df.iloc[max_display:]
        importance_df = importance_df.head(max_display)
        if show_other:
            other = pd.DataFrame({
                'feature': [OTHER_FEATURES_LABEL.format(n=len(rest))],
                'mean_abs_shap': [rest['mean_abs_shap'].sum()],
            })
            importance_df = pd.concat([importance_df, other], ignore_index=True)

    importance_df['rank'] = range(1, len(importance_df) + 1)
    return importance_df


def _scale_for_color(column: pd.Series) -> pd.Series:
    """
    Map feature values to [0, 1] for coloring.

    Numeric columns are min-max scaled; other columns use their category
    codes. Constant columns map to 0.5, missing values stay NaN.
    """
    if pd.api.types.is_numeric_dtype(column) and not pd.api.types.is_bool_dtype(column):
        numeric = column.astype(float)
    else:
        codes = pd.Series(pd.Categorical(column).codes, index=column.index).astype(float)
        numeric = codes.where(codes >= 0)

    lo, hi = numeric.min(), numeric.max()
    if pd.isna(lo) or hi == lo:
        return numeric.where(numeric.isna(), 0.5)
    return (numeric - lo) / (hi - lo)


def beeswarm_table(sv: Shapviz, max_display: int = SHAP_MAX_DISPLAY) -> pd.DataFrame:
    """
    Long-format data for a beeswarm summary.

    Args:
        sv: Shapviz object
        max_display: Number of most important features to include

    Returns:
        DataFrame with columns: feature, row, shap_value, feature_value, color_value
        Features appear in importance order; feature is an ordered categorical
    """
    top = importance_table(sv, max_display=max_display, show_other=False)['feature'].tolist()
    features = sv.features

    parts = []
    for name in top:
        j = sv.feature_names.index(name)
        parts.append(pd.DataFrame({
            'feature': name,
            'row': np.arange(sv.n_rows),
            'shap_value': sv.values[:, j],
            'feature_value': features[name].to_numpy(dtype=object),
            'color_value': _scale_for_color(features[name]).to_numpy(),
        }))

    if not parts:
        return pd.DataFrame(columns=['feature', 'row', 'shap_value', 'feature_value', 'color_value'])

    beeswarm_df = pd.concat(parts, ignore_index=True)
    beeswarm_df['feature'] = pd.Categorical(beeswarm_df['feature'], categories=top, ordered=True)
    return beeswarm_df
