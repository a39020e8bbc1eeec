"""
Unit tests for the SHAP container constructor.
"""

import numpy as np
import pandas as pd
import pytest

from shapviz import Shapviz, construct_shap_container
from shapviz.errors import (
    BaselineError,
    DuplicateFeatureNamesError,
    FeatureNameError,
    InteractionShapeError,
    NonNumericValuesError,
    ShapeMismatchError,
    ShapvizError,
    UnsupportedInputError,
)


class TestConstructShapContainer:
    """Tests for successful construction."""

    def test_minimal_example(self, S_xy, X_xy):
        """Test the 2x2 example with baseline 4."""
        sv = construct_shap_container(S_xy, X_xy, baseline=4)

        assert sv.n_rows == 2
        assert sv.n_features == 2
        assert sv.baseline == 4.0
        assert sv.interactions is None
        assert not sv.has_interactions
        assert sv.feature_names == ("x", "y")

    def test_shape_matches_inputs(self):
        """Test that row/column counts equal the inputs' for random shapes."""
        rng = np.random.default_rng(0)
        for n, p in [(1, 1), (5, 3), (20, 7)]:
            names = [f"v{j}" for j in range(p)]
            S = pd.DataFrame(rng.normal(size=(n, p)), columns=names)
            X = pd.DataFrame(rng.normal(size=(n, p)), columns=names)

            sv = construct_shap_container(S, X)

            assert sv.shape == (n, p)
            assert len(sv) == n

    def test_baseline_defaults_to_zero(self, S_xy, X_xy):
        """Test that omitted baseline is 0."""
        sv = construct_shap_container(S_xy, X_xy)
        assert sv.baseline == 0.0

    def test_baseline_none_is_zero(self, S_xy, X_xy):
        """Test that baseline=None is treated as 0."""
        sv = construct_shap_container(S_xy, X_xy, baseline=None)
        assert sv.baseline == 0.0

    def test_baseline_stored_verbatim(self, S_xy, X_xy):
        """Test that 4.0 in gives 4.0 out."""
        sv = construct_shap_container(S_xy, X_xy, baseline=4.0)
        assert sv.baseline == 4.0

    def test_baseline_numpy_scalar(self, S_xy, X_xy):
        """Test that numpy scalars and size-1 arrays are accepted."""
        assert construct_shap_container(S_xy, X_xy, baseline=np.float32(1.5)).baseline == 1.5
        assert construct_shap_container(S_xy, X_xy, baseline=np.array([2.0])).baseline == 2.0

    def test_values_preserved(self, S_xy, X_xy):
        """Test that SHAP values are stored unchanged as floats."""
        sv = construct_shap_container(S_xy, X_xy)
        np.testing.assert_array_equal(sv.values, [[1.0, -1.0], [-1.0, 1.0]])
        assert sv.values.dtype == np.float64

    def test_numpy_values_with_feature_names(self, X_xy):
        """Test array input with explicit feature names."""
        sv = construct_shap_container(
            np.array([[1, -1], [-1, 1]]), X_xy, feature_names=["x", "y"]
        )
        assert sv.feature_names == ("x", "y")

    def test_list_values(self, X_xy):
        """Test nested-list input."""
        sv = construct_shap_container([[1, -1], [-1, 1]], X_xy, feature_names=["x", "y"])
        assert sv.shape == (2, 2)

    def test_features_aligned_by_name(self, S_xy):
        """Test that feature table columns are reordered to the SHAP column order."""
        X = pd.DataFrame({"y": [100, 10], "x": ["a", "b"]})
        sv = construct_shap_container(S_xy, X)

        assert list(sv.features.columns) == ["x", "y"]
        assert list(sv.features["x"]) == ["a", "b"]

    def test_features_index_reset(self, S_xy):
        """Test that a non-default feature index is replaced by row positions."""
        X = pd.DataFrame({"x": ["a", "b"], "y": [100, 10]}, index=[17, 3])
        sv = construct_shap_container(S_xy, X)
        assert list(sv.features.index) == [0, 1]

    def test_numpy_feature_matrix(self, S_xy):
        """Test that an unnamed feature matrix is labeled with the SHAP names."""
        sv = construct_shap_container(S_xy, np.array([[0.1, 100.0], [0.2, 10.0]]))
        assert list(sv.features.columns) == ["x", "y"]

    def test_predictions(self, S_xy, X_xy):
        """Test that predictions are baseline plus row sums."""
        sv = construct_shap_container(
            pd.DataFrame([[1.0, 2.0], [0.5, -3.0]], columns=["x", "y"]), X_xy, baseline=4
        )
        np.testing.assert_allclose(sv.predictions, [7.0, 1.5])

    def test_repr(self, S_xy, X_xy):
        """Test string representation."""
        sv = construct_shap_container(S_xy, X_xy, baseline=4)
        assert repr(sv) == "Shapviz(n_rows=2, n_features=2, baseline=4.0, interactions=False)"

    def test_shapviz_class_constructor_equivalent(self, S_xy, X_xy):
        """Test that Shapviz(...) validates the same way."""
        sv = Shapviz(S_xy, X_xy, baseline=4)
        assert sv.shape == (2, 2)


class TestConstructionFailures:
    """Tests for construction errors."""

    @pytest.mark.parametrize("n_features_rows", [1, 3, 10])
    def test_row_count_mismatch(self, S_xy, n_features_rows):
        """Test that any row count mismatch fails."""
        X = pd.DataFrame({"x": ["a"] * n_features_rows, "y": [1] * n_features_rows})
        with pytest.raises(ShapeMismatchError, match="rows"):
            construct_shap_container(S_xy, X)

    def test_duplicate_column_names(self, X_xy):
        """Test that duplicate SHAP column names fail."""
        S = pd.DataFrame([[1, 2], [3, 4]], columns=["x", "x"])
        with pytest.raises(DuplicateFeatureNamesError, match="duplicate"):
            construct_shap_container(S, X_xy)

    def test_duplicate_feature_names_argument(self, X_xy):
        """Test that duplicate names passed for array input fail."""
        with pytest.raises(DuplicateFeatureNamesError):
            construct_shap_container(np.zeros((2, 2)), X_xy, feature_names=["x", "x"])

    def test_missing_names_for_array(self, X_xy):
        """Test that an unnamed SHAP array fails."""
        with pytest.raises(FeatureNameError, match="column names"):
            construct_shap_container(np.zeros((2, 2)), X_xy)

    def test_empty_column_name(self, X_xy):
        """Test that an empty column name fails."""
        S = pd.DataFrame([[1, 2], [3, 4]], columns=["x", ""])
        with pytest.raises(FeatureNameError, match="non-empty"):
            construct_shap_container(S, X_xy)

    def test_default_integer_columns_rejected(self, X_xy):
        """Test that a DataFrame built without column names fails."""
        with pytest.raises(FeatureNameError):
            construct_shap_container(pd.DataFrame(np.zeros((2, 2))), X_xy)

    def test_non_numeric_dataframe(self, X_xy):
        """Test that string SHAP columns fail."""
        S = pd.DataFrame({"x": ["1", "2"], "y": [1.0, 2.0]})
        with pytest.raises(NonNumericValuesError, match="x"):
            construct_shap_container(S, X_xy)

    def test_non_numeric_array(self, X_xy):
        """Test that an object array fails."""
        S = np.array([[1, "a"], [2, "b"]], dtype=object)
        with pytest.raises(NonNumericValuesError):
            construct_shap_container(S, X_xy, feature_names=["x", "y"])

    def test_ragged_list(self, X_xy):
        """Test that rows of different length fail with a shape error."""
        with pytest.raises(ShapeMismatchError, match="rectangular"):
            construct_shap_container([[1.0, 2.0], [1.0]], X_xy, feature_names=["x", "y"])

    def test_object_array_of_numbers(self, X_xy):
        """Test that an object array holding only numbers is accepted."""
        S = np.array([[1.0, 2.0], [3.0, 4.0]], dtype=object)
        sv = construct_shap_container(S, X_xy, feature_names=["x", "y"])

        assert sv.values.dtype == np.float64
        np.testing.assert_array_equal(sv.values, [[1.0, 2.0], [3.0, 4.0]])

    def test_object_array_of_booleans(self, X_xy):
        """Test that booleans hidden in an object array fail."""
        S = np.array([[True, 1.0], [2.0, 3.0]], dtype=object)
        with pytest.raises(NonNumericValuesError):
            construct_shap_container(S, X_xy, feature_names=["x", "y"])

    def test_boolean_values_rejected(self, X_xy):
        """Test that boolean SHAP values fail."""
        S = pd.DataFrame({"x": [True, False], "y": [1.0, 2.0]})
        with pytest.raises(NonNumericValuesError):
            construct_shap_container(S, X_xy)

    def test_non_2d_values(self, X_xy):
        """Test that 1D and 3D arrays fail."""
        with pytest.raises(ShapeMismatchError, match="2D"):
            construct_shap_container(np.zeros(2), X_xy, feature_names=["x"])
        with pytest.raises(ShapeMismatchError, match="2D"):
            construct_shap_container(np.zeros((2, 2, 2)), X_xy, feature_names=["x", "y"])

    def test_feature_names_length_mismatch(self, X_xy):
        """Test that wrong number of names fails."""
        with pytest.raises(ShapeMismatchError):
            construct_shap_container(np.zeros((2, 2)), X_xy, feature_names=["x"])

    def test_features_missing_column(self, S_xy):
        """Test that feature table without a SHAP column fails."""
        X = pd.DataFrame({"x": ["a", "b"], "z": [1, 2]})
        with pytest.raises(FeatureNameError, match="y"):
            construct_shap_container(S_xy, X)

    def test_features_duplicate_columns(self, S_xy):
        """Test that duplicate feature table columns fail."""
        X = pd.DataFrame([[1, 2, 3], [4, 5, 6]], columns=["x", "y", "y"])
        with pytest.raises(DuplicateFeatureNamesError):
            construct_shap_container(S_xy, X)

    def test_unsupported_feature_type(self, S_xy):
        """Test that opaque feature handles are rejected."""
        with pytest.raises(UnsupportedInputError):
            construct_shap_container(S_xy, {"x": ["a", "b"], "y": [1, 2]})
        with pytest.raises(UnsupportedInputError):
            construct_shap_container(S_xy, iter([["a", 1], ["b", 2]]))

    def test_unsupported_value_type(self, X_xy):
        """Test that unsupported SHAP value containers are rejected."""
        with pytest.raises(UnsupportedInputError):
            construct_shap_container({"x": [1, 2]}, X_xy)

    def test_feature_matrix_width_mismatch(self, S_xy):
        """Test that an unnamed feature matrix of different width fails."""
        with pytest.raises(FeatureNameError):
            construct_shap_container(S_xy, np.zeros((2, 3)))

    @pytest.mark.parametrize("baseline", ["4", [1.0, 2.0], np.nan, np.inf, True])
    def test_invalid_baseline(self, S_xy, X_xy, baseline):
        """Test that non-scalar, non-numeric or non-finite baselines fail."""
        with pytest.raises(BaselineError):
            construct_shap_container(S_xy, X_xy, baseline=baseline)

    def test_errors_are_builtin_compatible(self, S_xy):
        """Test that errors can be caught as ValueError / ShapvizError."""
        X = pd.DataFrame({"x": ["a"], "y": [1]})
        with pytest.raises(ValueError):
            construct_shap_container(S_xy, X)
        with pytest.raises(ShapvizError):
            construct_shap_container(S_xy, X)


class TestExtraFeatureColumns:
    """Tests for feature table columns without SHAP values."""

    def test_extra_columns_kept_for_display(self, S_xy):
        """Test that extra columns are non-fatal and retained separately."""
        X = pd.DataFrame({"x": ["a", "b"], "y": [100, 10], "z": [True, False]})
        sv = construct_shap_container(S_xy, X)

        assert list(sv.features.columns) == ["x", "y"]
        assert list(sv.extra_features.columns) == ["z"]
        assert list(sv.extra_features["z"]) == [True, False]

    def test_no_extra_columns(self, S_xy, X_xy):
        """Test that extra_features is empty when the table matches exactly."""
        sv = construct_shap_container(S_xy, X_xy)
        assert sv.extra_features.shape == (2, 0)

    def test_strict_features_rejects_extra_columns(self, S_xy):
        """Test the strict contract."""
        X = pd.DataFrame({"x": ["a", "b"], "y": [100, 10], "z": [1, 2]})
        with pytest.raises(FeatureNameError, match="z"):
            construct_shap_container(S_xy, X, strict_features=True)


class TestInteractions:
    """Tests for interaction tensor validation."""

    def test_accepts_matching_shape(self, S_3, X_3, interactions_3):
        """Test that (2, 3, 3) is accepted for 2 rows and 3 features."""
        sv = construct_shap_container(S_3, X_3, interactions=interactions_3)

        assert sv.has_interactions
        assert sv.interactions.shape == (2, 3, 3)

    def test_rejects_non_square(self, S_3, X_3):
        """Test that (2, 2, 3) is rejected."""
        with pytest.raises(InteractionShapeError):
            construct_shap_container(S_3, X_3, interactions=np.zeros((2, 2, 3)))

    def test_rejects_wrong_row_count(self, S_3, X_3):
        """Test that a different number of rows is rejected."""
        with pytest.raises(InteractionShapeError, match="rows"):
            construct_shap_container(S_3, X_3, interactions=np.zeros((3, 3, 3)))

    def test_rejects_wrong_ndim(self, S_3, X_3):
        """Test that a 2D interaction array is rejected."""
        with pytest.raises(InteractionShapeError, match="3D"):
            construct_shap_container(S_3, X_3, interactions=np.zeros((2, 3)))

    def test_rejects_asymmetric(self, S_3, X_3):
        """Test that an asymmetric tensor is rejected."""
        inter = np.zeros((2, 3, 3))
        inter[0, 0, 1] = 1.0
        with pytest.raises(InteractionShapeError, match="symmetric"):
            construct_shap_container(S_3, X_3, interactions=inter)

    def test_rejects_non_numeric(self, S_3, X_3):
        """Test that a non-numeric tensor is rejected."""
        inter = np.full((2, 3, 3), "a", dtype=object)
        with pytest.raises(NonNumericValuesError):
            construct_shap_container(S_3, X_3, interactions=inter)

    def test_rejects_ragged(self, S_3, X_3):
        """Test that a ragged nested list is rejected."""
        inter = [[[0.0, 0.0, 0.0]] * 3, [[0.0, 0.0]] * 3]
        with pytest.raises(InteractionShapeError, match="rectangular"):
            construct_shap_container(S_3, X_3, interactions=inter)

    def test_interaction_is_shape_error(self, S_3, X_3):
        """Test that interaction errors are shape mismatch errors."""
        with pytest.raises(ShapeMismatchError):
            construct_shap_container(S_3, X_3, interactions=np.zeros((2, 2, 3)))

    def test_reordered_by_interaction_names(self, S_3, X_3, interactions_3):
        """Test that interaction axes are keyed by name, not position."""
        order = [2, 0, 1]
        shuffled = interactions_3[:, order][:, :, order]
        names = [["a", "b", "c"][i] for i in order]

        sv = construct_shap_container(
            S_3, X_3, interactions=shuffled, interaction_names=names
        )

        np.testing.assert_allclose(sv.interactions, interactions_3)

    def test_interaction_names_must_match(self, S_3, X_3, interactions_3):
        """Test that unknown interaction names fail."""
        with pytest.raises(FeatureNameError):
            construct_shap_container(
                S_3, X_3, interactions=interactions_3, interaction_names=["a", "b", "z"]
            )


class TestImmutability:
    """Tests that containers cannot be modified."""

    def test_attribute_assignment_fails(self, S_xy, X_xy):
        """Test that attributes cannot be set."""
        sv = construct_shap_container(S_xy, X_xy)
        with pytest.raises(AttributeError):
            sv.baseline = 5.0
        with pytest.raises(AttributeError):
            sv.new_attribute = 1

    def test_values_read_only(self, S_xy, X_xy):
        """Test that the SHAP array cannot be written."""
        sv = construct_shap_container(S_xy, X_xy)
        with pytest.raises(ValueError):
            sv.values[0, 0] = 10.0

    def test_writeable_flag_cannot_be_restored(self, S_xy, X_xy, sv_interactions):
        """Test that handed-out arrays cannot be made writeable again."""
        sv = construct_shap_container(S_xy, X_xy)

        with pytest.raises(ValueError):
            sv.values.flags.writeable = True
        with pytest.raises(ValueError):
            sv_interactions.interactions.flags.writeable = True
        assert sv.values[0, 0] == 1.0

    def test_interactions_read_only(self, sv_interactions):
        """Test that the interaction array cannot be written."""
        with pytest.raises(ValueError):
            sv_interactions.interactions[0, 0, 0] = 10.0

    def test_features_are_copies(self, S_xy, X_xy):
        """Test that modifying returned features does not affect the container."""
        sv = construct_shap_container(S_xy, X_xy)
        features = sv.features
        features.loc[0, "y"] = -1

        assert sv.features.loc[0, "y"] == 100

    def test_inputs_not_shared(self, X_xy):
        """Test that later changes to input arrays do not leak into the container."""
        S = np.array([[1.0, -1.0], [-1.0, 1.0]])
        sv = construct_shap_container(S, X_xy, feature_names=["x", "y"])
        S[0, 0] = 99.0

        assert sv.values[0, 0] == 1.0

    def test_input_arrays_stay_writeable(self, X_xy):
        """Test that construction does not freeze the caller's arrays."""
        S = np.array([[1.0, -1.0], [-1.0, 1.0]])
        construct_shap_container(S, X_xy, feature_names=["x", "y"])
        S[0, 0] = 2.0
