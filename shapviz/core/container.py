"""
Immutable SHAP container.

A Shapviz object bundles SHAP values, the feature table used to display
them, the baseline, and optional SHAP interaction values. Everything is
validated in one go: construction either returns a fully consistent
object or raises, so downstream code never sees a half-built container.
"""

from __future__ import annotations

import logging
import math
import numbers
from collections import Counter
from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray

from ..config import (
    INTERACTION_SYMMETRY_ATOL,
    INTERACTION_SYMMETRY_RTOL,
    LOGGER_NAME,
    log_execution_time,
)
from ..errors import (
    BaselineError,
    DuplicateFeatureNamesError,
    FeatureNameError,
    InteractionShapeError,
    NonNumericValuesError,
    ShapeMismatchError,
    UnsupportedInputError,
)
from .collapse import collapse_interactions, collapse_shap

logger = logging.getLogger(LOGGER_NAME)


# =============================================================================
# INPUT VALIDATION
# =============================================================================

def _is_numeric_dtype(dtype: Any) -> bool:
    """Numeric and not boolean (True/False are not attributions)."""
    return pd.api.types.is_numeric_dtype(dtype) and not pd.api.types.is_bool_dtype(dtype)


def _check_names(names: Sequence[Any], n_columns: int, what: str = "SHAP values") -> list[str]:
    """Validate that names are unique non-empty strings, one per column."""
    names = list(names)
    if len(names) != n_columns:
        raise ShapeMismatchError(
            f"{what} have {n_columns} columns but {len(names)} names were given"
        )

    bad = [name for name in names if not isinstance(name, str) or not name]
    if bad:
        raise FeatureNameError(
            f"{what} need non-empty string column names, got {bad[:5]}"
        )

    duplicates = sorted(name for name, count in Counter(names).items() if count > 1)
    if duplicates:
        raise DuplicateFeatureNamesError(
            f"{what} have duplicate column names: {duplicates}"
        )
    return names


def _to_float_array(raw: ArrayLike, what: str, shape_error: type[ShapeMismatchError]) -> NDArray:
    """
    Convert raw input to a float64 array.

    Object arrays are accepted when every entry is a real number.
    """
    try:
        arr = np.asarray(raw)
    except ValueError as e:
        raise shape_error(f"{what} must be a rectangular grid of numbers: {e}") from e

    if arr.dtype == object:
        if any(isinstance(v, (bool, np.bool_)) for v in arr.flat):
            raise NonNumericValuesError(f"{what} must be numeric, got boolean entries")
        try:
            return arr.astype(np.float64)
        except (TypeError, ValueError) as e:
            raise NonNumericValuesError(f"{what} must be numeric, got dtype object") from e

    if not _is_numeric_dtype(arr.dtype):
        raise NonNumericValuesError(f"{what} must be numeric, got dtype {arr.dtype}")
    return arr.astype(np.float64, copy=True)


def _as_value_matrix(
    values: pd.DataFrame | ArrayLike,
    feature_names: Sequence[str] | None
) -> tuple[NDArray, list[str]]:
    """
    Convert SHAP values to a float matrix plus column names.

    Args:
        values: DataFrame (names from columns) or 2D array
        feature_names: Column names for array input

    Returns:
        Tuple of (float64 array, names)
    """
    if isinstance(values, pd.DataFrame):
        names = list(values.columns)
        if feature_names is not None and list(feature_names) != names:
            raise FeatureNameError(
                "feature_names disagree with the columns of the SHAP DataFrame"
            )
        non_numeric = [col for col, dtype in values.dtypes.items() if not _is_numeric_dtype(dtype)]
        if non_numeric:
            raise NonNumericValuesError(
                f"SHAP values must be numeric; non-numeric columns: {non_numeric}"
            )
        names = _check_names(names, values.shape[1])
        return values.to_numpy(dtype=np.float64, copy=True), names

    if not isinstance(values, (np.ndarray, list, tuple)):
        raise UnsupportedInputError(
            f"SHAP values must be a pandas DataFrame or a 2D array, "
            f"got {type(values).__name__}"
        )

    arr = _to_float_array(values, "SHAP values", ShapeMismatchError)
    if arr.ndim != 2:
        raise ShapeMismatchError(f"SHAP values must be 2D, got shape {arr.shape}")
    if feature_names is None:
        raise FeatureNameError(
            "SHAP values without column names: pass a DataFrame or feature_names"
        )

    names = _check_names(feature_names, arr.shape[1])
    return arr, names


def _as_interaction_array(
    interactions: ArrayLike,
    n_rows: int,
    names: list[str],
    interaction_names: Sequence[str] | None
) -> NDArray:
    """
    Validate a SHAP interaction tensor and key its feature axes by name.

    Args:
        interactions: Array of shape (n_rows, n_features, n_features)
        n_rows: Expected number of rows
        names: SHAP column names the feature axes must match
        interaction_names: Names of the tensor's feature axes (default: names)

    Returns:
        float64 array ordered like names
    """
    arr = _to_float_array(interactions, "SHAP interaction values", InteractionShapeError)
    if arr.ndim != 3:
        raise InteractionShapeError(
            f"SHAP interaction values must be 3D, got shape {arr.shape}"
        )
    if arr.shape[0] != n_rows:
        raise InteractionShapeError(
            f"SHAP interaction values have {arr.shape[0]} rows, SHAP values have {n_rows}"
        )

    p = len(names)
    if arr.shape[1:] != (p, p):
        raise InteractionShapeError(
            f"SHAP interaction values must have shape ({n_rows}, {p}, {p}), "
            f"got {arr.shape}"
        )

    if interaction_names is not None:
        interaction_names = _check_names(interaction_names, p, what="SHAP interaction values")
        if set(interaction_names) != set(names):
            raise FeatureNameError(
                "SHAP interaction feature names must match SHAP value columns: "
                f"missing {sorted(set(names) - set(interaction_names))}, "
                f"unexpected {sorted(set(interaction_names) - set(names))}"
            )
        order = [interaction_names.index(name) for name in names]
        arr = arr[:, order][:, :, order]

    if not np.allclose(
        arr, arr.transpose(0, 2, 1),
        rtol=INTERACTION_SYMMETRY_RTOL,
        atol=INTERACTION_SYMMETRY_ATOL,
        equal_nan=True
    ):
        raise InteractionShapeError(
            "SHAP interaction values must be symmetric in their last two axes"
        )
    return arr


def _as_feature_frame(
    features: pd.DataFrame | NDArray,
    n_rows: int,
    names: list[str]
) -> pd.DataFrame:
    """
    Convert the feature table to a DataFrame with a fresh RangeIndex.

    A bare array carries no names, so it is labeled with the SHAP column names
    and must have exactly one column per SHAP column.
    """
    if isinstance(features, pd.DataFrame):
        frame = features.reset_index(drop=True)
    elif isinstance(features, np.ndarray):
        if features.ndim != 2:
            raise ShapeMismatchError(
                f"Feature matrix must be 2D, got shape {features.shape}"
            )
        if features.shape[1] != len(names):
            raise FeatureNameError(
                f"Feature matrix without column names must have one column per "
                f"SHAP feature ({len(names)}), got {features.shape[1]}"
            )
        frame = pd.DataFrame(features, columns=names)
    else:
        raise UnsupportedInputError(
            f"Features must be a pandas DataFrame or a 2D numpy array, "
            f"got {type(features).__name__}"
        )

    if len(frame) != n_rows:
        raise ShapeMismatchError(
            f"Feature table has {len(frame)} rows, SHAP values have {n_rows}"
        )

    duplicated = sorted(set(frame.columns[frame.columns.duplicated()]), key=str)
    if duplicated:
        raise DuplicateFeatureNamesError(
            f"Feature table has duplicate column names: {duplicated}"
        )

    missing = [name for name in names if name not in frame.columns]
    if missing:
        raise FeatureNameError(
            f"Feature table lacks columns present in SHAP values: {missing}"
        )
    return frame


def _as_baseline(baseline: Any) -> float:
    """Validate the baseline; None means 0."""
    if baseline is None:
        return 0.0

    if isinstance(baseline, np.ndarray):
        if baseline.size != 1:
            raise BaselineError(
                f"Baseline must be a scalar, got array of shape {baseline.shape}"
            )
        baseline = baseline.reshape(-1)[0]

    if isinstance(baseline, (bool, np.bool_)) or not isinstance(baseline, numbers.Real):
        raise BaselineError(f"Baseline must be a real number, got {baseline!r}")

    baseline = float(baseline)
    if not math.isfinite(baseline):
        raise BaselineError(f"Baseline must be finite, got {baseline}")
    return baseline


def _read_only(arr: NDArray | None) -> NDArray | None:
    if arr is not None:
        arr.flags.writeable = False
    return arr


def _read_only_view(arr: NDArray | None) -> NDArray | None:
    """View on a read-only array; numpy refuses to make it writeable again."""
    if arr is None:
        return None
    view = arr.view()
    view.flags.writeable = False
    return view


# =============================================================================
# CONTAINER
# =============================================================================

class Shapviz:
    """
    Validated, immutable SHAP container.

    Args:
        values: SHAP values as DataFrame (columns = feature names) or 2D array
        features: Feature table (DataFrame or 2D array), display only
        baseline: Average model output on the SHAP scale (default 0)
        interactions: Optional SHAP interaction values (n, p, p)
        collapse: Optional mapping expanded column -> parent feature; the
            expanded SHAP (and interaction) columns are summed into the parent
        feature_names: Column names when values is a plain array
        interaction_names: Names of the interaction axes (default: SHAP columns)
        strict_features: Reject feature-table columns absent from the SHAP values

    Raises:
        ShapeMismatchError: Row or column counts disagree
        FeatureNameError: Missing or unmatched names
        DuplicateFeatureNamesError: Duplicate names
        NonNumericValuesError: Non-numeric SHAP or interaction values
        InteractionShapeError: Interaction tensor malformed or asymmetric
        BaselineError: Baseline is not a finite scalar
        UnsupportedInputError: Inputs of unsupported type

    Example:
        >>> sv = Shapviz(
        ...     pd.DataFrame([[1, -1], [-1, 1]], columns=['x', 'y']),
        ...     pd.DataFrame({'x': ['a', 'b'], 'y': [100, 10]}),
        ...     baseline=4,
        ... )
        >>> sv.shape
        (2, 2)
    """

    __slots__ = (
        '_values',
        '_feature_names',
        '_features',
        '_extra_features',
        '_baseline',
        '_interactions',
    )

    def __init__(
        self,
        values: pd.DataFrame | ArrayLike,
        features: pd.DataFrame | NDArray,
        baseline: float | None = 0.0,
        interactions: ArrayLike | None = None,
        collapse: Mapping[str, str] | None = None,
        feature_names: Sequence[str] | None = None,
        interaction_names: Sequence[str] | None = None,
        strict_features: bool = False,
    ) -> None:
        S, names = _as_value_matrix(values, feature_names)
        n_rows = S.shape[0]

        S_inter = None
        if interactions is not None:
            S_inter = _as_interaction_array(interactions, n_rows, names, interaction_names)

        if collapse:
            input_names = names
            S, names = collapse_shap(S, input_names, collapse)
            if S_inter is not None:
                S_inter, _ = collapse_interactions(S_inter, input_names, collapse)

        frame = _as_feature_frame(features, n_rows, names)
        extra = frame.drop(columns=names)
        if strict_features and extra.shape[1] > 0:
            raise FeatureNameError(
                f"Feature table has columns without SHAP values: {list(extra.columns)}"
            )
        if extra.shape[1] > 0:
            logger.debug(f"Keeping extra feature columns for display only: {list(extra.columns)}")

        self._init_validated(
            values=S,
            feature_names=tuple(names),
            features=frame[names].copy(),
            extra_features=extra.copy(),
            baseline=_as_baseline(baseline),
            interactions=S_inter,
        )

    def _init_validated(
        self,
        values: NDArray,
        feature_names: tuple[str, ...],
        features: pd.DataFrame,
        extra_features: pd.DataFrame,
        baseline: float,
        interactions: NDArray | None,
    ) -> None:
        object.__setattr__(self, '_values', _read_only(values))
        object.__setattr__(self, '_feature_names', feature_names)
        object.__setattr__(self, '_features', features)
        object.__setattr__(self, '_extra_features', extra_features)
        object.__setattr__(self, '_baseline', baseline)
        object.__setattr__(self, '_interactions', _read_only(interactions))

    @classmethod
    def _trusted(
        cls,
        values: NDArray,
        feature_names: tuple[str, ...],
        features: pd.DataFrame,
        extra_features: pd.DataFrame,
        baseline: float,
        interactions: NDArray | None,
    ) -> "Shapviz":
        """Build from parts that already satisfy all invariants (internal)."""
        obj = cls.__new__(cls)
        obj._init_validated(
            values=np.array(values, dtype=np.float64, copy=True),
            feature_names=tuple(feature_names),
            features=features.reset_index(drop=True),
            extra_features=extra_features.reset_index(drop=True),
            baseline=float(baseline),
            interactions=None if interactions is None
            else np.array(interactions, dtype=np.float64, copy=True),
        )
        return obj

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __reduce__(self):
        return (
            _rebuild_shapviz,
            (
                np.array(self._values),
                self._feature_names,
                self._features,
                self._extra_features,
                self._baseline,
                None if self._interactions is None else np.array(self._interactions),
            ),
        )

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def values(self) -> NDArray:
        """SHAP values (n_rows, n_features), read-only."""
        return _read_only_view(self._values)

    @property
    def shap_frame(self) -> pd.DataFrame:
        """SHAP values as a DataFrame labeled with the feature names."""
        return pd.DataFrame(np.array(self._values), columns=list(self._feature_names))

    @property
    def feature_names(self) -> tuple[str, ...]:
        return self._feature_names

    @property
    def features(self) -> pd.DataFrame:
        """Feature table aligned to the SHAP columns (copy)."""
        return self._features.copy()

    @property
    def extra_features(self) -> pd.DataFrame:
        """Feature-table columns that have no SHAP values (copy, may be empty)."""
        return self._extra_features.copy()

    @property
    def baseline(self) -> float:
        return self._baseline

    @property
    def interactions(self) -> NDArray | None:
        """SHAP interaction values (n_rows, n_features, n_features) or None."""
        return _read_only_view(self._interactions)

    @property
    def has_interactions(self) -> bool:
        return self._interactions is not None

    @property
    def n_rows(self) -> int:
        return self._values.shape[0]

    @property
    def n_features(self) -> int:
        return self._values.shape[1]

    @property
    def shape(self) -> tuple[int, int]:
        return self.n_rows, self.n_features

    @property
    def predictions(self) -> NDArray:
        """Model output per row on the SHAP scale: baseline + row sum of SHAP values."""
        return self._baseline + self._values.sum(axis=1)

    def __len__(self) -> int:
        return self.n_rows

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(n_rows={self.n_rows}, n_features={self.n_features}, "
            f"baseline={self._baseline!r}, interactions={self.has_interactions})"
        )

    # -------------------------------------------------------------------------
    # Derived containers
    # -------------------------------------------------------------------------

    def select_rows(self, rows: int | slice | Sequence[int] | ArrayLike) -> "Shapviz":
        """
        Subset observations.

        Args:
            rows: Position, slice, sequence of positions, or boolean mask

        Returns:
            New Shapviz with the selected rows
        """
        positions = np.atleast_1d(np.arange(self.n_rows)[rows])
        return Shapviz._trusted(
            values=self._values[positions],
            feature_names=self._feature_names,
            features=self._features.iloc[positions],
            extra_features=self._extra_features.iloc[positions],
            baseline=self._baseline,
            interactions=None if self._interactions is None else self._interactions[positions],
        )

    def select_features(self, names: str | Sequence[str]) -> "Shapviz":
        """
        Subset features by name; interactions are subset on both feature axes.

        Args:
            names: Feature name or sequence of names, in the desired order

        Returns:
            New Shapviz with only the selected features
        """
        if isinstance(names, str):
            names = [names]
        names = list(names)

        missing = [name for name in names if name not in self._feature_names]
        if missing:
            raise FeatureNameError(f"Unknown features: {missing}")
        duplicates = sorted(name for name, count in Counter(names).items() if count > 1)
        if duplicates:
            raise DuplicateFeatureNamesError(f"Features selected twice: {duplicates}")

        idx = [self._feature_names.index(name) for name in names]
        S_inter = None
        if self._interactions is not None:
            S_inter = self._interactions[:, idx][:, :, idx]

        return Shapviz._trusted(
            values=self._values[:, idx],
            feature_names=tuple(names),
            features=self._features[names],
            extra_features=self._extra_features,
            baseline=self._baseline,
            interactions=S_inter,
        )

    def __getitem__(self, key: Any) -> "Shapviz":
        """sv[rows] or sv[rows, features]; use slice(None) / ':' for all."""
        if isinstance(key, tuple):
            if len(key) != 2:
                raise IndexError("Shapviz supports sv[rows] or sv[rows, features]")
            rows, cols = key
            out = self if _is_full_slice(rows) else self.select_rows(rows)
            return out if _is_full_slice(cols) else out.select_features(cols)
        return self.select_rows(key)

    def collapse(self, collapse: Mapping[str, str]) -> "Shapviz":
        """
        Collapse expanded SHAP columns into parent features.

        The parent columns must be available in the feature table, i.e. among
        the extra feature columns of this container.
        """
        table = pd.concat([self._features, self._extra_features], axis=1)
        return Shapviz(
            values=self.shap_frame,
            features=table,
            baseline=self._baseline,
            interactions=self._interactions,
            collapse=collapse,
        )


def _rebuild_shapviz(*parts: Any) -> Shapviz:
    """Unpickling hook."""
    return Shapviz._trusted(*parts)


def _is_full_slice(key: Any) -> bool:
    return isinstance(key, slice) and key == slice(None)


def construct_shap_container(
    values: pd.DataFrame | ArrayLike,
    features: pd.DataFrame | NDArray,
    baseline: float | None = 0.0,
    interactions: ArrayLike | None = None,
    collapse: Mapping[str, str] | None = None,
    feature_names: Sequence[str] | None = None,
    interaction_names: Sequence[str] | None = None,
    strict_features: bool = False,
) -> Shapviz:
    """
    Validate SHAP values, features, baseline and interactions into a Shapviz.

    Works the same for any upstream explanation method: only the shape and
    names of the inputs matter. See Shapviz for argument details.

    Returns:
        Validated, immutable Shapviz

    Example:
        >>> S = pd.DataFrame([[1, -1], [-1, 1]], columns=['x', 'y'])
        >>> X = pd.DataFrame({'x': ['a', 'b'], 'y': [100, 10]})
        >>> construct_shap_container(S, X, baseline=4)
        Shapviz(n_rows=2, n_features=2, baseline=4.0, interactions=False)
    """
    with log_execution_time(logger, "construct_shap_container") as metrics:
        sv = Shapviz(
            values,
            features,
            baseline=baseline,
            interactions=interactions,
            collapse=collapse,
            feature_names=feature_names,
            interaction_names=interaction_names,
            strict_features=strict_features,
        )
        metrics["n_rows"] = sv.n_rows
        metrics["n_features"] = sv.n_features
        metrics["interactions"] = sv.has_interactions
    return sv
