"""
Canonical input tuple shared by all adapters.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from ..core.container import Shapviz, construct_shap_container
from ..errors import BaselineError

# Closed set of supported input kinds
InputKind = Literal['matrix', 'explanation', 'explainer_output', 'tree_model']
INPUT_KINDS: tuple[str, ...] = ('matrix', 'explanation', 'explainer_output', 'tree_model')


@dataclass(frozen=True)
class ShapInput:
    """
    Upstream output normalized to (values, features, baseline, interactions).

    Adapters only reshape; all validation happens in build().
    """
    values: pd.DataFrame | NDArray
    features: pd.DataFrame | NDArray
    baseline: float | None = 0.0
    interactions: NDArray | None = None
    feature_names: Sequence[str] | None = None
    interaction_names: Sequence[str] | None = None
    kind: str = 'matrix'

    def build(
        self,
        collapse: Mapping[str, str] | None = None,
        strict_features: bool = False
    ) -> Shapviz:
        """Validate into a Shapviz."""
        return construct_shap_container(
            self.values,
            self.features,
            baseline=self.baseline,
            interactions=self.interactions,
            collapse=collapse,
            feature_names=self.feature_names,
            interaction_names=self.interaction_names,
            strict_features=strict_features,
        )


def unique_baseline(base_values: Any) -> float | None:
    """
    Reduce per-row base values to one scalar.

    Explainers report the expected value per row; a Shapviz needs a single
    baseline, so all rows must agree.

    Returns:
        The common base value, or None if base_values is None

    Raises:
        BaselineError: If rows disagree
    """
    if base_values is None:
        return None

    arr = np.asarray(base_values, dtype=np.float64).reshape(-1)
    if arr.size == 0:
        raise BaselineError("Explanation has empty base values")

    unique = np.unique(arr)
    if unique.size > 1 and not np.allclose(unique, unique[0]):
        raise BaselineError(
            f"Baseline must be unique across rows, got {unique.size} distinct values"
        )
    return float(arr[0])
