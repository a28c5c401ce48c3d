# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Tests for bind() argument marshalling.

Validates:
- Input resolution from lists and dicts
- Gradient requirement codes for every accepted form
- Device group flattening
- Scratch buffer release on every exit path
"""

from collections import OrderedDict

import pytest

import mxbind
from mxbind.binding import (
    GRAD_REQ_MAP,
    GradReqForm,
    InputForm,
    ScratchBuffers,
    null_handles,
    resolve_grad_req,
    resolve_group2ctx,
    resolve_ndarray_inputs,
)
from mxbind.errors import (
    ArgumentCountError,
    ArgumentTypeError,
    InvalidGradReqError,
    MissingKeyError,
)


@pytest.fixture
def arrays():
    return {
        "a": mxbind.nd.ones((2,)),
        "b": mxbind.nd.zeros((2,)),
        "c": mxbind.nd.ones((3,)),
    }


class TestResolveNDArrayInputs:
    """Tests for resolve_ndarray_inputs."""

    def test_list_keeps_order(self, arrays):
        resolved = resolve_ndarray_inputs(
            "args", [arrays["a"], arrays["b"]], ["a", "b"], False
        )
        assert resolved.arrays == [arrays["a"], arrays["b"]]
        assert list(resolved.handles) == [
            arrays["a"].handle.value,
            arrays["b"].handle.value,
        ]

    def test_tuple_accepted(self, arrays):
        resolved = resolve_ndarray_inputs("args", (arrays["a"],), ["a"], False)
        assert len(resolved) == 1

    def test_list_length_mismatch(self, arrays):
        with pytest.raises(ArgumentCountError) as exc_info:
            resolve_ndarray_inputs("args", [arrays["a"]], ["a", "b"], False)
        assert "args" in str(exc_info.value)
        assert exc_info.value.expected == 2
        assert exc_info.value.received == 1

    def test_list_non_ndarray(self, arrays):
        with pytest.raises(ArgumentTypeError):
            resolve_ndarray_inputs("args", [arrays["a"], 1.0], ["a", "b"], False)

    def test_dict_reordered_to_names(self, arrays):
        mapping = OrderedDict([("c", arrays["c"]), ("a", arrays["a"]), ("b", arrays["b"])])
        resolved = resolve_ndarray_inputs("args", mapping, ["a", "b", "c"], False)
        assert resolved.arrays == [arrays["a"], arrays["b"], arrays["c"]]
        assert resolved.handles[0] == arrays["a"].handle.value
        assert resolved.handles[2] == arrays["c"].handle.value

    def test_dict_extra_keys_ignored(self, arrays):
        resolved = resolve_ndarray_inputs("args", arrays, ["b"], False)
        assert resolved.arrays == [arrays["b"]]

    def test_dict_missing_not_allowed(self, arrays):
        with pytest.raises(MissingKeyError) as exc_info:
            resolve_ndarray_inputs("aux_states", {"a": arrays["a"]}, ["a", "b"], False)
        assert exc_info.value.key == "b"
        assert "key `b` is missing in `aux_states`" in str(exc_info.value)

    def test_dict_missing_allowed(self, arrays):
        resolved = resolve_ndarray_inputs(
            "args_grad", {"b": arrays["b"]}, ["a", "b"], True
        )
        assert resolved.arrays == [None, arrays["b"]]
        assert resolved.handles[0] is None
        assert resolved.handles[1] == arrays["b"].handle.value

    def test_dict_non_ndarray(self):
        with pytest.raises(ArgumentTypeError):
            resolve_ndarray_inputs("args", {"a": [1, 2]}, ["a"], False)

    @pytest.mark.parametrize("value", [None, "a", 3, {"a"}])
    def test_neither_list_nor_dict(self, value):
        with pytest.raises(ArgumentTypeError):
            resolve_ndarray_inputs("args", value, ["a"], False)

    def test_empty_names(self):
        resolved = resolve_ndarray_inputs("aux_states", [], [], False)
        assert resolved.arrays == []
        assert len(resolved.handles) == 0

    def test_null_handles(self):
        resolved = null_handles(3)
        assert resolved.arrays == [None, None, None]
        assert list(resolved.handles) == [None, None, None]

    def test_forms(self):
        assert InputForm.SEQUENCE.value == "sequence"
        assert InputForm.MAPPING.value == "mapping"


class TestResolveGradReq:
    """Tests for resolve_grad_req."""

    names = ["a", "b", "c"]

    def test_map(self):
        assert GRAD_REQ_MAP == {"null": 0, "write": 1, "add": 3}

    def test_default_is_write(self):
        assert list(resolve_grad_req(None, self.names)) == [1, 1, 1]

    @pytest.mark.parametrize("label,code", [("null", 0), ("write", 1), ("add", 3)])
    def test_scalar_replicated(self, label, code):
        assert list(resolve_grad_req(label, self.names)) == [code] * 3

    def test_scalar_invalid(self):
        with pytest.raises(InvalidGradReqError) as exc_info:
            resolve_grad_req("overwrite", self.names)
        assert "grad_req must be in" in str(exc_info.value)

    def test_sequence(self):
        codes = resolve_grad_req(["add", "null", "write"], self.names)
        assert list(codes) == [3, 0, 1]

    def test_sequence_length_checked(self):
        with pytest.raises(ArgumentCountError) as exc_info:
            resolve_grad_req(["write"], self.names)
        assert exc_info.value.arg_key == "grad_req"

    def test_sequence_invalid_label(self):
        with pytest.raises(InvalidGradReqError):
            resolve_grad_req(["write", "bogus", "add"], self.names)

    def test_mapping_missing_names_get_null(self):
        codes = resolve_grad_req({"b": "add"}, self.names)
        assert list(codes) == [0, 3, 0]

    def test_mapping_invalid_label(self):
        with pytest.raises(InvalidGradReqError):
            resolve_grad_req({"a": 1}, self.names)

    @pytest.mark.parametrize("value", [1, 2.5, object()])
    def test_unknown_form(self, value):
        with pytest.raises(ArgumentTypeError) as exc_info:
            resolve_grad_req(value, self.names)
        assert "str, list, or dict" in str(exc_info.value)

    def test_empty_arguments(self):
        assert len(resolve_grad_req("write", [])) == 0

    def test_forms(self):
        assert {form.value for form in GradReqForm} == {
            "default",
            "scalar",
            "sequence",
            "mapping",
        }


class TestResolveGroup2Ctx:
    """Tests for resolve_group2ctx."""

    def test_none(self):
        groups = resolve_group2ctx(None)
        assert len(groups) == 0
        assert len(groups.dev_types) == 0
        assert len(groups.dev_ids) == 0

    def test_parallel_arrays(self):
        groups = resolve_group2ctx(
            OrderedDict([("dev1", mxbind.gpu(0)), ("dev2", mxbind.cpu(1))])
        )
        assert list(groups.keys) == [b"dev1", b"dev2"]
        assert list(groups.dev_types) == [2, 1]
        assert list(groups.dev_ids) == [0, 1]

    def test_not_a_mapping(self):
        with pytest.raises(ArgumentTypeError):
            resolve_group2ctx([("dev1", mxbind.gpu(0))])

    def test_value_not_context(self):
        with pytest.raises(ArgumentTypeError):
            resolve_group2ctx({"dev1": "gpu(0)"})


class TestScratchBuffers:
    """Tests for ScratchBuffers scoping."""

    def test_released_on_exit(self):
        with ScratchBuffers() as scratch:
            buf = scratch.hold(null_handles(2).handles)
            assert len(scratch) == 1
            assert buf is not None
        assert len(scratch) == 0

    def test_released_on_error(self):
        scratch = ScratchBuffers()
        with pytest.raises(RuntimeError):
            with scratch:
                scratch.hold(null_handles(2).handles)
                raise RuntimeError("native call failed")
        assert len(scratch) == 0
