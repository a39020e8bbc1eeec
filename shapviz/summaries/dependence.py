"""
Dependence and interaction data.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from ..config import SHAP_MAX_DISPLAY
from ..core.container import Shapviz
from ..errors import FeatureNameError, MissingInteractionsError
from .importance import _check_max_display, importance_table


def _feature_index(sv: Shapviz, name: str) -> int:
    if name not in sv.feature_names:
        raise FeatureNameError(f"Unknown feature '{name}'. Available: {list(sv.feature_names)}")
    return sv.feature_names.index(name)


def _require_interactions(sv: Shapviz) -> np.ndarray:
    if not sv.has_interactions:
        raise MissingInteractionsError("No SHAP interaction values available")
    return sv.interactions


def dependence_table(
    sv: Shapviz,
    feature: str,
    color_feature: str | None = None,
    interactions: bool = False
) -> pd.DataFrame:
    """
    Feature values against their SHAP values.

    Args:
        sv: Shapviz object
        feature: Feature on the x axis
        color_feature: Optional feature used for coloring; may also be an extra
            feature-table column without SHAP values
        interactions: Use SHAP interaction values instead of SHAP values: the
            pure main effect without color_feature, otherwise the interaction
            between feature and color_feature (off-diagonal values doubled,
            since the interaction is split evenly between both features)

    Returns:
        DataFrame with columns feature_value, shap_value (and color_value)
    """
    j = _feature_index(sv, feature)

    if interactions:
        S_inter = _require_interactions(sv)
        if color_feature is None:
            shap_value = S_inter[:, j, j]
        else:
            k = _feature_index(sv, color_feature)
            shap_value = S_inter[:, j, k] * (1.0 if j == k else 2.0)
    else:
        shap_value = sv.values[:, j]

    dependence_df = pd.DataFrame({
        'feature_value': sv.features[feature].to_numpy(),
        'shap_value': np.array(shap_value),
    })

    if color_feature is not None:
        if color_feature in sv.feature_names:
            color = sv.features[color_feature]
        elif color_feature in sv.extra_features.columns:
            color = sv.extra_features[color_feature]
        else:
            raise FeatureNameError(f"Unknown color feature '{color_feature}'")
        dependence_df['color_value'] = color.to_numpy()

    return dependence_df


def dependence2d_table(
    sv: Shapviz,
    x: str,
    y: str,
    interactions: bool = False,
    add_mains: bool = True
) -> pd.DataFrame:
    """
    Two features against their combined SHAP values.

    Args:
        sv: Shapviz object
        x: First feature
        y: Second feature (different from x)
        interactions: Use twice the x-y interaction instead of the sum of SHAP values
        add_mains: With interactions, also add both main effects

    Returns:
        DataFrame with columns x_value, y_value, shap_value
    """
    if x == y:
        raise ValueError("dependence2d_table needs two different features")
    i = _feature_index(sv, x)
    j = _feature_index(sv, y)

    if interactions:
        S_inter = _require_interactions(sv)
        shap_value = 2.0 * S_inter[:, i, j]
        if add_mains:
            shap_value = shap_value + S_inter[:, i, i] + S_inter[:, j, j]
    else:
        shap_value = sv.values[:, i] + sv.values[:, j]

    features = sv.features
    return pd.DataFrame({
        'x_value': features[x].to_numpy(),
        'y_value': features[y].to_numpy(),
        'shap_value': np.array(shap_value),
    })


def interaction_table(sv: Shapviz, max_display: int = SHAP_MAX_DISPLAY) -> pd.DataFrame:
    """
    Mean absolute SHAP interaction values.

    Off-diagonal entries are doubled: each pairwise interaction is split into
    two symmetric halves in the interaction tensor.

    Args:
        sv: Shapviz object with interactions
        max_display: Number of most important features (by mean |SHAP|) to keep

    Returns:
        Square DataFrame indexed and labeled by feature, in importance order
    """
    _check_max_display(max_display)
    S_inter = _require_interactions(sv)

    mat = np.abs(S_inter).mean(axis=0)
    off_diag = ~np.eye(sv.n_features, dtype=bool)
    mat[off_diag] *= 2

    order = importance_table(sv, max_display=max_display, show_other=False)['feature'].tolist()
    idx = [sv.feature_names.index(name) for name in order]
    return pd.DataFrame(mat[np.ix_(idx, idx)], index=order, columns=order)
