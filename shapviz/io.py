"""
Persistence of Shapviz and MultiShapviz objects.

Objects are stored with joblib. Loading re-runs the full construction
validation, so a tampered or outdated file fails loudly instead of
yielding an inconsistent container.
"""

from __future__ import annotations

import logging
from pathlib import Path

import joblib
import pandas as pd

from .config import LOGGER_NAME
from .core.container import Shapviz
from .core.multi import MultiShapviz
from .errors import UnsupportedInputError

logger = logging.getLogger(LOGGER_NAME)


def _revalidate(sv: Shapviz) -> Shapviz:
    """Rebuild a container through the validating constructor."""
    return Shapviz(
        values=sv.shap_frame,
        features=pd.concat([sv.features, sv.extra_features], axis=1),
        baseline=sv.baseline,
        interactions=sv.interactions,
    )


def save_shapviz(
    obj: Shapviz | MultiShapviz,
    path: str | Path,
    compress: int = 3
) -> Path:
    """
    Save a Shapviz or MultiShapviz object.

    Args:
        obj: Object to save
        path: Target file (parent directories are created)
        compress: joblib compression level (0-9)

    Returns:
        Path the object was written to
    """
    if not isinstance(obj, (Shapviz, MultiShapviz)):
        raise UnsupportedInputError(
            f"Can only save Shapviz or MultiShapviz objects, got {type(obj).__name__}"
        )

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    joblib.dump(obj, path, compress=compress)
    logger.info(f"Saved {type(obj).__name__} to {path}")
    return path


def load_shapviz(path: str | Path) -> Shapviz | MultiShapviz:
    """
    Load and re-validate a saved Shapviz or MultiShapviz object.

    Args:
        path: File written by save_shapviz()

    Returns:
        The loaded object

    Raises:
        FileNotFoundError: If path does not exist
        UnsupportedInputError: If the file holds another kind of object
        ShapvizError: If the stored container violates an invariant
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"No saved SHAP container at {path}")

    obj = joblib.load(path)

    if isinstance(obj, Shapviz):
        obj = _revalidate(obj)
    elif isinstance(obj, MultiShapviz):
        obj = MultiShapviz({name: _revalidate(sv) for name, sv in obj.items()})
    else:
        raise UnsupportedInputError(
            f"{path} holds a {type(obj).__name__}, not a Shapviz object"
        )

    logger.info(f"Loaded {type(obj).__name__} from {path}")
    return obj
