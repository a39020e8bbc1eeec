"""
Collapse expanded (e.g. one-hot encoded) SHAP columns into their parent feature.

SHAP values are additive, so the contribution of a categorical feature that
was expanded into dummy columns is the sum of its dummy contributions.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

import numpy as np
from numpy.typing import NDArray

from ..config import LOGGER_NAME
from ..errors import DuplicateFeatureNamesError, FeatureNameError

logger = logging.getLogger(LOGGER_NAME)


def collapse_groups(
    names: Sequence[str],
    collapse: Mapping[str, str] | None
) -> tuple[list[str], list[list[int]]]:
    """
    Resolve a collapse mapping into output names and column index groups.

    A parent column takes the position of its first child. Columns not named
    in the mapping pass through unchanged.

    Args:
        names: Column names of the SHAP matrix
        collapse: Mapping expanded column name -> parent feature name

    Returns:
        Tuple of (new_names, groups) where groups[j] lists the input column
        positions summed into new_names[j]

    Raises:
        FeatureNameError: If a mapping key is not a SHAP column or a parent is empty
        DuplicateFeatureNamesError: If a parent clashes with a column that is kept as-is
    """
    names = list(names)
    if not collapse:
        return names, [[i] for i in range(len(names))]

    unknown = [child for child in collapse if child not in names]
    if unknown:
        raise FeatureNameError(
            f"Cannot collapse columns not present in SHAP values: {unknown}"
        )

    for child, parent in collapse.items():
        if not isinstance(parent, str) or not parent:
            raise FeatureNameError(
                f"Collapse target for '{child}' must be a non-empty string, got {parent!r}"
            )

    kept = {name for name in names if name not in collapse}
    clashes = sorted(set(collapse.values()) & kept)
    if clashes:
        raise DuplicateFeatureNamesError(
            f"Collapse targets clash with existing SHAP columns: {clashes}"
        )

    new_names: list[str] = []
    groups: list[list[int]] = []
    position: dict[str, int] = {}

    for i, name in enumerate(names):
        target = collapse.get(name, name)
        if target in position:
            groups[position[target]].append(i)
        else:
            position[target] = len(new_names)
            new_names.append(target)
            groups.append([i])

    logger.debug(f"Collapsed {len(names)} SHAP columns into {len(new_names)}")
    return new_names, groups


def _fold(arr: NDArray, groups: list[list[int]], axis: int) -> NDArray:
    """Sum column groups of arr along axis."""
    return np.stack(
        [arr.take(idx, axis=axis).sum(axis=axis) for idx in groups],
        axis=axis
    )


def collapse_shap(
    values: NDArray,
    names: Sequence[str],
    collapse: Mapping[str, str] | None
) -> tuple[NDArray, list[str]]:
    """
    Sum SHAP columns that belong to the same parent feature.

    Args:
        values: SHAP values (n_samples, n_features)
        names: Column names of values
        collapse: Mapping expanded column name -> parent feature name

    Returns:
        Tuple of (collapsed values, collapsed names)

    Example:
        >>> S = np.array([[1.0, 2.0, 3.0]])
        >>> collapse_shap(S, ['color_a', 'color_b', 'carat'],
        ...               {'color_a': 'color', 'color_b': 'color'})
        (array([[3., 3.]]), ['color', 'carat'])
    """
    new_names, groups = collapse_groups(names, collapse)
    if not collapse:
        return values, new_names
    return _fold(values, groups, axis=1), new_names


def collapse_interactions(
    interactions: NDArray,
    names: Sequence[str],
    collapse: Mapping[str, str] | None
) -> tuple[NDArray, list[str]]:
    """
    Collapse SHAP interaction values on both feature axes.

    The interaction of two parents is the sum over all pairs of their
    children, so the result stays symmetric.

    Args:
        interactions: SHAP interaction values (n_samples, n_features, n_features)
        names: Names of the two feature axes
        collapse: Mapping expanded column name -> parent feature name

    Returns:
        Tuple of (collapsed interactions, collapsed names)
    """
    new_names, groups = collapse_groups(names, collapse)
    if not collapse:
        return interactions, new_names
    folded = _fold(interactions, groups, axis=1)
    return _fold(folded, groups, axis=2), new_names
