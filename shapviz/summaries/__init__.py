"""
Data behind the SHAP plot types (no rendering).
"""

from .importance import importance_table, beeswarm_table
from .contributions import ContributionData, waterfall_table, force_table, format_value
from .dependence import dependence_table, dependence2d_table, interaction_table

__all__ = [
    'importance_table',
    'beeswarm_table',
    'ContributionData',
    'waterfall_table',
    'force_table',
    'format_value',
    'dependence_table',
    'dependence2d_table',
    'interaction_table',
]
