"""
Adapter for shap.Explanation objects.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd
import shap

from ..config import LOGGER_NAME
from ..errors import FeatureNameError, ShapeMismatchError, UnsupportedInputError
from .base import ShapInput, unique_baseline

logger = logging.getLogger(LOGGER_NAME)


def from_explanation(
    explanation: shap.Explanation,
    features: pd.DataFrame | np.ndarray | None = None,
) -> ShapInput:
    """
    Normalize a single-output shap.Explanation.

    Args:
        explanation: Explanation with 2D values (n_samples, n_features)
        features: Feature table to display; defaults to explanation.data

    Returns:
        ShapInput of kind 'explanation'

    Raises:
        UnsupportedInputError: If explanation is not a shap.Explanation
        ShapeMismatchError: If values are not 2D (split multi-output
            explanations with MultiShapviz.from_explanation)
        BaselineError: If base values differ between rows
    """
    if not isinstance(explanation, shap.Explanation):
        raise UnsupportedInputError(
            f"Expected shap.Explanation, got {type(explanation).__name__}"
        )

    values = np.asarray(explanation.values)
    if values.ndim != 2:
        raise ShapeMismatchError(
            f"Explanation values must be 2D, got shape {values.shape}. "
            "Use MultiShapviz.from_explanation() for multi-output explanations."
        )

    if features is None:
        features = explanation.data
    if features is None:
        raise FeatureNameError("Explanation has no data; pass features explicitly")
    if not isinstance(features, pd.DataFrame):
        features = np.asarray(features)

    names = explanation.feature_names
    if names is None and isinstance(features, pd.DataFrame) and features.shape[1] == values.shape[1]:
        logger.debug("Explanation has no feature names, using feature table columns")
        names = list(features.columns)
    if isinstance(names, str):
        names = [names]

    return ShapInput(
        values=values,
        features=features,
        baseline=unique_baseline(explanation.base_values),
        feature_names=None if names is None else list(names),
        kind='explanation',
    )
