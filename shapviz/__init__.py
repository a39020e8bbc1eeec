"""
shapviz - validated SHAP containers for visualization
"""

from . import config
from . import errors

# Subpackages
from . import core
from . import adapters
from . import summaries

# Standalone modules
from . import io

from .core import (
    Shapviz,
    MultiShapviz,
    construct_shap_container,
    collapse_shap,
    concat_shapviz,
    split_shapviz,
)
from .adapters import shapviz
from .io import save_shapviz, load_shapviz

__version__ = "0.1.0"

__all__ = [
    # Core
    'config',
    'errors',
    # Subpackages
    'core',
    'adapters',
    'summaries',
    # Standalone modules
    'io',
    # Main API
    'Shapviz',
    'MultiShapviz',
    'construct_shap_container',
    'collapse_shap',
    'concat_shapviz',
    'split_shapviz',
    'shapviz',
    'save_shapviz',
    'load_shapviz',
]
