"""
Operations combining or partitioning Shapviz containers.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Sequence

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike

from ..config import LOGGER_NAME
from ..errors import (
    BaselineError,
    FeatureNameError,
    InteractionShapeError,
    ShapeMismatchError,
)
from .container import Shapviz

logger = logging.getLogger(LOGGER_NAME)


def concat_shapviz(objects: Sequence[Shapviz]) -> Shapviz:
    """
    Stack Shapviz objects row-wise.

    All objects must share feature names (same order) and baseline, and
    either all or none must carry interaction values.

    Args:
        objects: Non-empty sequence of Shapviz objects

    Returns:
        New Shapviz with all rows, in input order
    """
    objects = list(objects)
    if not objects:
        raise ValueError("concat_shapviz needs at least one Shapviz object")

    first = objects[0]
    for i, sv in enumerate(objects[1:], start=1):
        if sv.feature_names != first.feature_names:
            raise FeatureNameError(
                f"Object {i} has features {list(sv.feature_names)}, "
                f"expected {list(first.feature_names)}"
            )
        if sv.baseline != first.baseline:
            raise BaselineError(
                f"Cannot combine baselines {first.baseline} and {sv.baseline} (object {i})"
            )
        if sv.has_interactions != first.has_interactions:
            raise InteractionShapeError(
                "Either all or none of the objects must carry SHAP interaction values"
            )

    interactions = None
    if first.has_interactions:
        interactions = np.concatenate([sv.interactions for sv in objects], axis=0)

    combined = Shapviz._trusted(
        values=np.concatenate([sv.values for sv in objects], axis=0),
        feature_names=first.feature_names,
        features=pd.concat([sv.features for sv in objects], ignore_index=True),
        extra_features=pd.concat([sv.extra_features for sv in objects], ignore_index=True),
        baseline=first.baseline,
        interactions=interactions,
    )
    logger.debug(f"Concatenated {len(objects)} Shapviz objects into {combined.n_rows} rows")
    return combined


def split_shapviz(sv: Shapviz, by: ArrayLike) -> dict[Hashable, Shapviz]:
    """
    Split a Shapviz object into one object per group.

    Args:
        sv: Shapviz object
        by: Group label per row (length n_rows); missing labels are dropped

    Returns:
        Dict mapping group label -> Shapviz, in sorted group order
    """
    groups = pd.Series(np.asarray(by))
    if len(groups) != sv.n_rows:
        raise ShapeMismatchError(
            f"Grouping vector has {len(groups)} entries, Shapviz has {sv.n_rows} rows"
        )

    return {
        label: sv.select_rows(part.index.to_numpy())
        for label, part in groups.groupby(groups, sort=True)
    }
