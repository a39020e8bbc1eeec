"""
Input adapters normalizing upstream SHAP outputs.
"""

from .base import ShapInput, INPUT_KINDS, unique_baseline
from .matrix import from_matrix
from .explanation import from_explanation
from .explainer_output import from_explainer_output, is_explainer_output
from .tree import from_tree_model, is_tree_model
from .dispatch import shapviz, detect_input_kind, ADAPTERS

__all__ = [
    'ShapInput',
    'INPUT_KINDS',
    'unique_baseline',
    'from_matrix',
    'from_explanation',
    'from_explainer_output',
    'is_explainer_output',
    'from_tree_model',
    'is_tree_model',
    'shapviz',
    'detect_input_kind',
    'ADAPTERS',
]
