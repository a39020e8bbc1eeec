"""
Adapter for SHAP values already available as a matrix.
"""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd
from numpy.typing import ArrayLike, NDArray

from .base import ShapInput


def from_matrix(
    values: pd.DataFrame | ArrayLike,
    features: pd.DataFrame | NDArray,
    baseline: float | None = 0.0,
    interactions: ArrayLike | None = None,
    feature_names: Sequence[str] | None = None,
    interaction_names: Sequence[str] | None = None,
) -> ShapInput:
    """
    Wrap a SHAP matrix and feature table.

    Args:
        values: DataFrame or 2D array of SHAP values
        features: Feature table
        baseline: Average prediction on the SHAP scale
        interactions: Optional (n, p, p) interaction values
        feature_names: Column names if values is a plain array
        interaction_names: Names of the interaction feature axes

    Returns:
        ShapInput of kind 'matrix'
    """
    return ShapInput(
        values=values,
        features=features,
        baseline=baseline,
        interactions=interactions,
        feature_names=feature_names,
        interaction_names=interaction_names,
        kind='matrix',
    )
