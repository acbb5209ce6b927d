# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Core Unit Tests

Unit testing for the model-facing components:
- Shape helpers
- OptionValue / OperatorOption
- GraphModel
- MergeDequantizeOperators
- TensorStore
- InputNormalization and input shape canonicalization
"""

import pytest
import numpy as np

from nnspect.core import (
    ActivationFunction,
    GraphModel,
    MergeDequantizeOperators,
    OperatorKind,
    OperatorOption,
    OptionName,
    OptionType,
    OptionValue,
    PaddingType,
    flat_size,
    last_dims,
    num_multi_dims,
)
from nnspect.errors import (
    ConfigurationError,
    StructuralPreconditionError,
    UnsupportedInputShapeError,
    ValidationError,
)
from nnspect.execution import (
    ColorOrder,
    InputNormalization,
    NormalizationRange,
    TensorStore,
    canonical_input_shape,
    resize_image,
)


class TestShapeHelpers:
    """Unit tests for shape helpers."""

    def test_flat_size(self):
        """Test element counts."""
        assert flat_size((1, 224, 224, 3)) == 150528
        assert flat_size((4, 0, 2)) == 0

    def test_flat_size_scalar(self):
        """Test an empty shape holds one element."""
        assert flat_size(()) == 1

    def test_num_multi_dims(self):
        """Test counting dimensions larger than 1."""
        assert num_multi_dims((1, 7, 7, 1)) == 2
        assert num_multi_dims((1, 1)) == 0

    def test_last_dims(self):
        """Test trailing dimensions."""
        assert last_dims((1, 4, 5, 3), 3) == (4, 5, 3)
        with pytest.raises(ValidationError):
            last_dims((4, 5), 3)


class TestOptionValue:
    """Unit tests for tagged option values."""

    def test_constructors(self):
        """Test each constructor tags its payload."""
        assert OptionValue.of_bool(True).type is OptionType.BOOL
        assert OptionValue.of_int(-3).value == -3
        assert OptionValue.of_uint(3).type is OptionType.UINT
        assert OptionValue.of_int_array([1, 2]).value == (1, 2)
        assert OptionValue.of_padding(PaddingType.VALID).value is PaddingType.VALID
        assert OptionValue.of_activation(ActivationFunction.RELU6).type is (
            OptionType.ACTIVATION_FUNCTION
        )

    def test_float_accepts_int(self):
        """Test an integral float payload is stored as float."""
        value = OptionValue.of_float(2)
        assert isinstance(value.value, float)

    @pytest.mark.parametrize(
        "option_type,payload",
        [
            (OptionType.INT, 1.5),
            (OptionType.INT, True),
            (OptionType.UINT, -1),
            (OptionType.BOOL, 1),
            (OptionType.INT_ARRAY, (1, "2")),
            (OptionType.PADDING_TYPE, "SAME"),
            (OptionType.ACTIVATION_FUNCTION, PaddingType.SAME),
        ],
    )
    def test_payload_must_match_type(self, option_type, payload):
        """Test mismatched payloads are rejected."""
        with pytest.raises(ValidationError):
            OptionValue(option_type, payload)

    def test_str(self):
        """Test display of option values."""
        assert str(OptionValue.of_bool(False)) == "false"
        assert str(OptionValue.of_int_array([1, 8])) == "{1, 8}"
        assert str(OptionValue.of_padding(PaddingType.SAME)) == "SAME"
        assert str(OperatorOption(OptionName.STRIDE_W, OptionValue.of_int(2))) == "stride_w=2"

    def test_immutable(self):
        """Test option values can't be changed."""
        value = OptionValue.of_int(1)
        with pytest.raises(AttributeError):
            value.value = 2


class TestGraphModel:
    """Unit tests for GraphModel."""

    def test_build(self):
        """Test declaring tensors and operators."""
        model = GraphModel(name="m")
        x = model.add_tensor("input", (1, 2, 2, 1))
        w = model.add_tensor("weights", (1, 1, 1, 1), data=[2.0], is_variable=False)
        y = model.add_tensor("out", (1, 2, 2, 1))
        oid = model.add_operator(OperatorKind.Softmax, [x, w], [y], [])
        model.set_inputs([x])
        model.set_outputs([y])

        assert oid == 0
        assert model.num_tensors() == 3
        assert model.num_operators() == 1
        assert model.num_inputs() == 1
        assert model.get_operator_io(0) == ([x, w], [y])
        assert model.get_operator_kind(0) is OperatorKind.Softmax
        assert model.get_tensor_name(w) == "weights"
        assert model.get_tensor_shape(x) == (1, 2, 2, 1)
        assert model.get_tensor_has_data(w)
        assert not model.get_tensor_has_data(x)
        assert not model.get_tensor_is_variable(w)

    def test_static_data_copied_read_only(self):
        """Test static data is stored as a read-only float32 copy."""
        source = np.array([[1.0, 2.0]], dtype=np.float64)
        model = GraphModel()
        t = model.add_tensor("w", (2,), data=source)

        data = model.get_tensor_data(t)
        assert data.dtype == np.float32
        assert data.shape == (2,)
        assert not data.flags.writeable
        source[0, 0] = 9.0
        assert data[0] == 1.0

    def test_data_size_mismatch(self):
        """Test static data must fill the shape."""
        with pytest.raises(ValidationError):
            GraphModel().add_tensor("w", (2, 2), data=[1.0, 2.0])

    def test_no_data(self):
        """Test reading data of a tensor without any."""
        model = GraphModel()
        t = model.add_tensor("x", (1,))
        with pytest.raises(StructuralPreconditionError):
            model.get_tensor_data(t)

    def test_options_fresh_list(self):
        """Test every call returns a new options list."""
        model = GraphModel()
        x = model.add_tensor("x", (1, 3))
        option = OperatorOption(OptionName.BETA, OptionValue.of_float(1.0))
        model.add_operator(OperatorKind.Softmax, [x], [x], [option])

        first = model.get_operator_options(0)
        first.clear()
        assert model.get_operator_options(0) == [option]

    def test_options_absent(self):
        """Test an operator without options table."""
        model = GraphModel()
        x = model.add_tensor("x", (1, 3))
        model.add_operator(OperatorKind.Reshape, [x], [x])
        assert model.get_operator_options(0) is None

    def test_duplicate_options(self):
        """Test duplicate option names are rejected."""
        model = GraphModel()
        x = model.add_tensor("x", (1, 3))
        option = OperatorOption(OptionName.BETA, OptionValue.of_float(1.0))
        with pytest.raises(ValidationError):
            model.add_operator(OperatorKind.Softmax, [x], [x], [option, option])

    def test_unknown_tensor_id(self):
        """Test operators can only reference declared tensors."""
        model = GraphModel()
        x = model.add_tensor("x", (1, 3))
        with pytest.raises(ValidationError):
            model.add_operator(OperatorKind.Softmax, [x], [5], [])
        with pytest.raises(ValidationError):
            model.set_inputs([1])


def quantized_model():
    model = GraphModel()
    x = model.add_tensor("input", (1, 2, 2, 1))
    wq = model.add_tensor("weights_q", (1, 1, 1, 1), data=[3.0])
    w = model.add_tensor("weights", (1, 1, 1, 1))
    y = model.add_tensor("out", (1, 2, 2, 1))
    model.add_operator(OperatorKind.Dequantize, [wq], [w], [])
    model.add_operator(OperatorKind.Conv2D, [x, w], [y], [])
    model.set_inputs([x])
    model.set_outputs([y])
    return model, (x, wq, w, y)


class TestMergeDequantizeOperators:
    """Unit tests for the merged-dequantize view."""

    def test_operators_hidden(self):
        """Test Dequantize operators disappear from the view."""
        model, (x, _, w, y) = quantized_model()
        view = MergeDequantizeOperators(model)

        assert view.num_operators() == 1
        assert view.get_operator_kind(0) is OperatorKind.Conv2D
        assert view.get_operator_io(0) == ([x, w], [y])
        assert view.get_inputs() == [x]
        assert view.num_tensors() == model.num_tensors()

    def test_output_becomes_static(self):
        """Test the Dequantize output reports the input's data."""
        model, (_, wq, w, _) = quantized_model()
        view = MergeDequantizeOperators(model)

        assert view.get_tensor_has_data(w)
        np.testing.assert_array_equal(view.get_tensor_data(w), model.get_tensor_data(wq))

    def test_input_hidden(self):
        """Test the Dequantize input can't be queried."""
        model, (_, wq, _, _) = quantized_model()
        view = MergeDequantizeOperators(model)

        with pytest.raises(StructuralPreconditionError):
            view.get_tensor_shape(wq)
        with pytest.raises(StructuralPreconditionError):
            view.get_tensor_data(wq)

    def test_inconsistent_dequantize(self):
        """Test a Dequantize reading computed data is rejected."""
        model = GraphModel()
        x = model.add_tensor("input", (1, 2))
        y = model.add_tensor("out", (1, 2))
        model.add_operator(OperatorKind.Dequantize, [x], [y], [])

        with pytest.raises(StructuralPreconditionError):
            MergeDequantizeOperators(model)

    def test_wrong_arity(self):
        """Test a Dequantize with two outputs is rejected."""
        model = GraphModel()
        a = model.add_tensor("a", (1,), data=[1.0])
        b = model.add_tensor("b", (1,))
        c = model.add_tensor("c", (1,))
        model.add_operator(OperatorKind.Dequantize, [a], [b, c], [])

        with pytest.raises(StructuralPreconditionError):
            MergeDequantizeOperators(model)


class TestTensorStore:
    """Unit tests for TensorStore."""

    def test_set_get(self):
        """Test storing and reading a buffer."""
        store = TensorStore(3)
        buffer = np.zeros(4, dtype=np.float32)
        store.set(1, buffer)

        assert len(store) == 3
        assert store.get(1) is buffer
        assert store.has(1)
        assert not store.has(0)
        assert store.computed_ids() == [1]

    def test_owned_becomes_read_only(self):
        """Test owned buffers are frozen and caller buffers aren't."""
        store = TensorStore(2)
        owned = np.zeros(2, dtype=np.float32)
        caller = np.zeros(2, dtype=np.float32)
        store.set(0, owned)
        store.set(1, caller, owned=False)

        assert not owned.flags.writeable
        assert caller.flags.writeable

    def test_no_overwrite_within_run(self):
        """Test an entry is written at most once per run."""
        store = TensorStore(1)
        store.set(0, np.zeros(1, dtype=np.float32))
        with pytest.raises(StructuralPreconditionError):
            store.set(0, np.ones(1, dtype=np.float32))

        store.begin_run()
        store.set(0, np.ones(1, dtype=np.float32))
        assert store.get(0)[0] == 1.0

    def test_alias(self):
        """Test aliasing shares the buffer object."""
        store = TensorStore(2)
        store.set(0, np.zeros(2, dtype=np.float32))
        store.alias(1, 0)

        assert store.shares_buffer(0, 1)

    def test_missing_and_out_of_range(self):
        """Test reading absent or unknown entries."""
        store = TensorStore(1)
        with pytest.raises(StructuralPreconditionError):
            store.get(0)
        with pytest.raises(StructuralPreconditionError):
            store.has(1)

    def test_clear(self):
        """Test clearing drops every value."""
        store = TensorStore(2)
        store.set(0, np.zeros(1, dtype=np.float32))
        store.clear()
        assert store.computed_ids() == []
        assert list(store) == [None, None]


class TestInputNormalization:
    """Unit tests for normalization configuration."""

    def test_default(self):
        """Test the default is 0..255 RGB."""
        normalization = InputNormalization.default()
        assert normalization.range is NormalizationRange.R_0_255
        assert normalization.color_order is ColorOrder.RGB
        assert normalization.is_default
        assert str(normalization) == "0..255/RGB"

    @pytest.mark.parametrize(
        "label,bounds",
        [
            ("0..1", (0.0, 1.0)),
            ("0..128", (0.0, 128.0)),
            ("0..8", (0.0, 8.0)),
            ("-1..1", (-1.0, 1.0)),
            ("ImageNet", None),
        ],
    )
    def test_from_labels(self, label, bounds):
        """Test parsing range labels."""
        normalization = InputNormalization.from_labels(label, "BGR")
        assert normalization.range.value == label
        assert normalization.range.bounds == bounds
        assert normalization.color_order is ColorOrder.BGR
        assert not normalization.is_default

    def test_unknown_labels(self):
        """Test unknown labels raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            InputNormalization.from_labels("0..2")
        with pytest.raises(ConfigurationError):
            InputNormalization.from_labels("0..1", "GBR")


class TestCanonicalInputShape:
    """Unit tests for input shape canonicalization."""

    @pytest.mark.parametrize(
        "shape,expected",
        [
            ((1, 224, 224, 3), (224, 224, 3)),
            ((1, 28, 28), (28, 28, 1)),
            ((32, 32, 3), (32, 32, 3)),
            ((32, 32, 1), (32, 32, 1)),
        ],
    )
    def test_supported(self, shape, expected):
        """Test image-like shapes."""
        assert canonical_input_shape(shape) == expected

    @pytest.mark.parametrize("shape", [(2, 8, 8, 3), (8, 8, 4), (64,), (1, 1, 8, 8, 3)])
    def test_unsupported(self, shape):
        """Test other shapes are designed failures."""
        with pytest.raises(UnsupportedInputShapeError):
            canonical_input_shape(shape)


class TestResizeImage:
    """Unit tests for bilinear resize."""

    def test_identity(self):
        """Test resizing to the same shape keeps values."""
        image = np.arange(12, dtype=np.float32)
        np.testing.assert_allclose(resize_image(image, (2, 2, 3), (2, 2, 3)), image)

    def test_downscale_averages(self):
        """Test halving with pixel centers averages 2x2 blocks."""
        image = np.array([0.0, 2.0, 4.0, 6.0], dtype=np.float32)
        np.testing.assert_allclose(resize_image(image, (2, 2, 1), (1, 1, 1)), [3.0])

    def test_gray_to_color(self):
        """Test a single channel is replicated."""
        image = np.array([1.0, 2.0], dtype=np.float32)
        out = resize_image(image, (1, 2, 1), (1, 2, 3))
        np.testing.assert_allclose(out, [1.0, 1.0, 1.0, 2.0, 2.0, 2.0])

    def test_unsupported_channels(self):
        """Test 4 channels can't become 3."""
        with pytest.raises(UnsupportedInputShapeError):
            resize_image(np.zeros(4, dtype=np.float32), (1, 1, 4), (1, 1, 3))
