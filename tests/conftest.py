"""
Shared pytest fixtures for shapviz tests.

Provides small SHAP matrices, feature tables and fitted models reused
across test files.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest
from sklearn.ensemble import RandomForestClassifier, RandomForestRegressor

# Add project root to path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from shapviz.config import LOGGER_NAME, RANDOM_STATE


# =============================================================================
# LOGGING ISOLATION
# =============================================================================

@pytest.fixture(autouse=True)
def reset_shapviz_logger():
    """Drop handlers added by a test so file handlers do not leak between tests."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# =============================================================================
# MINIMAL EXAMPLE
# =============================================================================

@pytest.fixture
def S_xy() -> pd.DataFrame:
    """2x2 SHAP matrix with columns x, y."""
    return pd.DataFrame([[1, -1], [-1, 1]], columns=["x", "y"])


@pytest.fixture
def X_xy() -> pd.DataFrame:
    """Feature table matching S_xy (mixed types)."""
    return pd.DataFrame({"x": ["a", "b"], "y": [100, 10]})


# =============================================================================
# DIAMONDS-LIKE DATA (one-hot encoded color)
# =============================================================================

@pytest.fixture
def S_onehot() -> pd.DataFrame:
    """SHAP values for one-hot color columns plus carat (4 rows)."""
    return pd.DataFrame({
        "color_a": [0.5, -0.2, 0.0, 0.1],
        "color_b": [0.1, 0.3, -0.4, 0.0],
        "carat": [1.0, -1.0, 2.0, 0.5],
    })


@pytest.fixture
def X_onehot() -> pd.DataFrame:
    """Feature table holding the categorical parent 'color' and 'carat'."""
    return pd.DataFrame({
        "color": ["a", "b", "b", "a"],
        "carat": [0.3, 0.7, 1.5, 0.4],
    })


@pytest.fixture
def interactions_3() -> np.ndarray:
    """Symmetric interaction tensor of shape (2, 3, 3)."""
    rng = np.random.default_rng(RANDOM_STATE)
    A = rng.normal(size=(2, 3, 3))
    return (A + A.transpose(0, 2, 1)) / 2


@pytest.fixture
def S_3() -> pd.DataFrame:
    """2x3 SHAP matrix matching interactions_3 (row sums of the tensor)."""
    rng = np.random.default_rng(RANDOM_STATE)
    A = rng.normal(size=(2, 3, 3))
    A = (A + A.transpose(0, 2, 1)) / 2
    return pd.DataFrame(A.sum(axis=2), columns=["a", "b", "c"])


@pytest.fixture
def X_3() -> pd.DataFrame:
    """Feature table for S_3."""
    return pd.DataFrame({"a": [1.0, 2.0], "b": ["u", "v"], "c": [10, 20]})


@pytest.fixture
def sv_medium():
    """Shapviz with 50 rows, 6 features of decreasing importance."""
    from shapviz import construct_shap_container

    rng = np.random.default_rng(RANDOM_STATE)
    n = 50
    names = [f"f{i}" for i in range(6)]
    scales = 4.0 ** np.arange(5, -1, -1)
    S = rng.normal(size=(n, 6)) * scales
    X = pd.DataFrame(rng.normal(size=(n, 6)), columns=names)
    X["f5"] = rng.choice(["lo", "hi"], size=n)
    return construct_shap_container(pd.DataFrame(S, columns=names), X, baseline=2.5)


@pytest.fixture
def sv_interactions(S_3, X_3, interactions_3):
    """Shapviz with interaction values."""
    from shapviz import construct_shap_container

    return construct_shap_container(S_3, X_3, baseline=1.0, interactions=interactions_3)


# =============================================================================
# MODEL FIXTURES
# =============================================================================

@pytest.fixture
def regression_data() -> pd.DataFrame:
    """Numeric regression data (60 samples, 3 features)."""
    rng = np.random.default_rng(RANDOM_STATE)
    return pd.DataFrame(rng.normal(size=(60, 3)), columns=["carat", "depth", "table"])


@pytest.fixture
def fitted_rf_regressor(regression_data) -> RandomForestRegressor:
    """Small fitted RandomForestRegressor."""
    X = regression_data
    y = 2 * X["carat"] + X["depth"] * X["table"]
    model = RandomForestRegressor(n_estimators=10, max_depth=4, random_state=RANDOM_STATE)
    model.fit(X, y)
    return model


@pytest.fixture
def fitted_rf_classifier(regression_data) -> RandomForestClassifier:
    """Small fitted binary RandomForestClassifier."""
    X = regression_data
    y = (X["carat"] > 0).astype(int)
    model = RandomForestClassifier(n_estimators=10, max_depth=3, random_state=RANDOM_STATE)
    model.fit(X, y)
    return model
