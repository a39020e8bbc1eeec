"""
Exceptions raised while building SHAP containers.

Each failure class also derives from the builtin a caller would expect
(ValueError for bad content, TypeError for bad types), so code written
against plain ValueError/TypeError keeps working.
"""


class ShapvizError(Exception):
    """Base class for all shapviz errors."""


class ShapeMismatchError(ShapvizError, ValueError):
    """Row or column counts disagree between inputs."""


class FeatureNameError(ShapvizError, ValueError):
    """Feature names are missing, empty, or cannot be matched."""


class DuplicateFeatureNamesError(FeatureNameError):
    """Feature names are not unique."""


class NonNumericValuesError(ShapvizError, TypeError):
    """SHAP values contain non-numeric entries."""


class UnsupportedInputError(ShapvizError, TypeError):
    """Input object is of a type no adapter accepts."""


class InteractionShapeError(ShapeMismatchError):
    """Interaction tensor has the wrong dimensions or is not symmetric."""


class BaselineError(ShapvizError, ValueError):
    """Baseline is not a single finite numeric value."""


class MissingInteractionsError(ShapvizError, ValueError):
    """Operation needs SHAP interaction values the container does not have."""
