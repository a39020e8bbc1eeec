"""
Collections of Shapviz objects for multi-output models.

A classifier explained per class, or several models explained on the same
data, yields one Shapviz object per output. MultiShapviz keeps them together
under unique names.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from types import MappingProxyType

import numpy as np
import pandas as pd
import shap

from ..config import LOGGER_NAME
from ..errors import FeatureNameError, ShapeMismatchError, UnsupportedInputError
from .container import Shapviz

logger = logging.getLogger(LOGGER_NAME)


class MultiShapviz(Mapping):
    """
    Immutable, ordered mapping of output name -> Shapviz.

    Args:
        members: Mapping (or sequence of pairs) of name -> Shapviz

    Raises:
        ValueError: If empty
        FeatureNameError: If a name is not a non-empty string
        UnsupportedInputError: If a member is not a Shapviz
    """

    __slots__ = ('_members',)

    def __init__(self, members: Mapping[str, Shapviz] | Sequence[tuple[str, Shapviz]]) -> None:
        items = list(members.items()) if isinstance(members, Mapping) else list(members)
        if not items:
            raise ValueError("MultiShapviz needs at least one Shapviz object")

        checked: dict[str, Shapviz] = {}
        for name, sv in items:
            if not isinstance(name, str) or not name:
                raise FeatureNameError(f"Output names must be non-empty strings, got {name!r}")
            if name in checked:
                raise FeatureNameError(f"Duplicate output name: {name!r}")
            if not isinstance(sv, Shapviz):
                raise UnsupportedInputError(
                    f"Member {name!r} must be a Shapviz object, got {type(sv).__name__}"
                )
            checked[name] = sv

        object.__setattr__(self, '_members', MappingProxyType(checked))

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @classmethod
    def from_explanation(
        cls,
        explanation: shap.Explanation,
        features: pd.DataFrame | None = None,
        output_names: Sequence[str] | None = None,
    ) -> "MultiShapviz":
        """
        Split a multi-output shap.Explanation into one Shapviz per output.

        Args:
            explanation: Explanation with values of shape (n, p, k)
            features: Optional feature table (default: explanation.data)
            output_names: Names of the k outputs (default: explanation.output_names,
                else 'output_0', 'output_1', ...)

        Returns:
            MultiShapviz with k members
        """
        from ..adapters.explanation import from_explanation

        values = np.asarray(explanation.values)
        if values.ndim != 3:
            raise ShapeMismatchError(
                f"Multi-output explanation must have 3D values, got shape {values.shape}"
            )
        n_outputs = values.shape[2]

        if output_names is None:
            output_names = getattr(explanation, 'output_names', None)
        if output_names is None:
            output_names = [f"output_{k}" for k in range(n_outputs)]
        output_names = [str(name) for name in output_names]
        if len(output_names) != n_outputs:
            raise ShapeMismatchError(
                f"Got {len(output_names)} output names for {n_outputs} outputs"
            )

        members = {}
        for k, name in enumerate(output_names):
            shap_input = from_explanation(explanation[:, :, k], features=features)
            members[name] = shap_input.build()

        logger.debug(f"Split explanation into {n_outputs} outputs: {output_names}")
        return cls(members)

    def __getitem__(self, name: str) -> Shapviz:
        return self._members[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._members)

    def __len__(self) -> int:
        return len(self._members)

    def __reduce__(self):
        return (MultiShapviz, (dict(self._members),))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._members)})"

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._members)

    def importance(self) -> pd.DataFrame:
        """
        Mean absolute SHAP value per feature and output.

        Returns:
            DataFrame indexed by feature, one column per output, sorted by
            the row total (descending). Features missing in an output are 0.
        """
        columns = {
            name: pd.Series(np.abs(sv.values).mean(axis=0), index=list(sv.feature_names))
            for name, sv in self._members.items()
        }
        table = pd.DataFrame(columns).fillna(0.0)
        order = table.sum(axis=1).sort_values(ascending=False).index
        return table.loc[order]
