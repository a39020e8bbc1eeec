"""
SHAP container and operations on it.
"""

from .container import Shapviz, construct_shap_container
from .collapse import collapse_shap, collapse_interactions, collapse_groups
from .ops import concat_shapviz, split_shapviz
from .multi import MultiShapviz

__all__ = [
    'Shapviz',
    'construct_shap_container',
    'collapse_shap',
    'collapse_interactions',
    'collapse_groups',
    'concat_shapviz',
    'split_shapviz',
    'MultiShapviz',
]
