"""
Tests for flag key splitting and evaluation context conversion.
"""

import datetime

from openfeature.evaluation_context import EvaluationContext
from openfeature.exception import InvalidContextError
from openfeature.exception import TargetingKeyMissingError
import pytest

from flipt_openfeature.internal.service import build_evaluation_request
from flipt_openfeature.internal.service import flatten_context
from flipt_openfeature.internal.service import split_flag_key


@pytest.mark.parametrize(
    "flag_key,expected",
    [
        ("flipt/boolean-match", ("flipt", "boolean-match")),
        ("boolean-match", ("default", "boolean-match")),
        ("a/b/c", ("a", "b/c")),
        ("/flag", ("default", "flag")),
        ("ns/", ("ns", "")),
        ("", ("default", "")),
    ],
)
def test_split_flag_key(flag_key, expected):
    assert split_flag_key(flag_key) == expected


class TestFlattenContext:
    def test_none(self):
        assert flatten_context(None) is None

    def test_targeting_key_and_attributes(self):
        ctx = EvaluationContext(targeting_key="user-1", attributes={"email": "a@b.c"})

        assert flatten_context(ctx) == {"targetingKey": "user-1", "email": "a@b.c"}

    def test_without_targeting_key(self):
        ctx = EvaluationContext(attributes={"email": "a@b.c"})

        assert flatten_context(ctx) == {"email": "a@b.c"}

    def test_mapping_is_copied(self):
        ctx = {"targetingKey": "user-1"}

        flattened = flatten_context(ctx)

        assert flattened == ctx
        assert flattened is not ctx


class TestBuildEvaluationRequest:
    def test_request_fields(self):
        req = build_evaluation_request("flipt", "flag", {"targetingKey": "user-1", "email": "a@b.c"})

        assert req.namespace_key == "flipt"
        assert req.flag_key == "flag"
        assert req.entity_id == "user-1"
        assert req.request_id == ""
        assert req.context == {"targetingKey": "user-1", "email": "a@b.c"}

    def test_request_id_is_moved_out_of_context(self):
        req = build_evaluation_request("default", "flag", {"targetingKey": "user-1", "requestID": "req-42"})

        assert req.request_id == "req-42"
        assert req.context == {"targetingKey": "user-1"}

    def test_missing_context(self):
        with pytest.raises(InvalidContextError):
            build_evaluation_request("default", "flag", None)

    @pytest.mark.parametrize("context", [{}, {"email": "a@b.c"}, {"targetingKey": ""}, {"targetingKey": None}])
    def test_missing_targeting_key(self, context):
        with pytest.raises(TargetingKeyMissingError) as exc_info:
            build_evaluation_request("default", "flag", context)

        assert exc_info.value.error_message == "targetingKey is missing"

    def test_values_are_stringified(self):
        context = {
            "targetingKey": 42,
            "beta": True,
            "legacy": False,
            "score": 1.5,
            "nothing": None,
            "created": datetime.datetime(2024, 1, 2, 3, 4, 5),
            "tags": ["a", "b"],
            "profile": {"b": 2, "a": 1},
        }

        req = build_evaluation_request("default", "flag", context)

        assert req.entity_id == "42"
        assert req.context == {
            "targetingKey": "42",
            "beta": "true",
            "legacy": "false",
            "score": "1.5",
            "nothing": "",
            "created": "2024-01-02T03:04:05",
            "tags": '["a", "b"]',
            "profile": '{"a": 1, "b": 2}',
        }

    def test_input_is_not_mutated(self):
        context = {"targetingKey": "user-1", "requestID": "req-42"}

        build_evaluation_request("default", "flag", context)

        assert context == {"targetingKey": "user-1", "requestID": "req-42"}
