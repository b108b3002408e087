"""Tests for merge patch semantics and MergeApplier."""

from __future__ import annotations

import pytest

from recordpatch.errors import ErrorKind, InvalidPatchResultError
from recordpatch.merge import MergeApplier, merge_patch, merge_patch_at


class TestMergePatch:
    # Examples from RFC 7396, Appendix A
    @pytest.mark.parametrize(
        "target,patch,expected",
        [
            ({"a": "b"}, {"a": "c"}, {"a": "c"}),
            ({"a": "b"}, {"b": "c"}, {"a": "b", "b": "c"}),
            ({"a": "b"}, {"a": None}, {}),
            ({"a": "b", "b": "c"}, {"a": None}, {"b": "c"}),
            ({"a": ["b"]}, {"a": "c"}, {"a": "c"}),
            ({"a": "c"}, {"a": ["b"]}, {"a": ["b"]}),
            ({"a": {"b": "c"}}, {"a": {"b": "d", "c": None}}, {"a": {"b": "d"}}),
            ({"a": [{"b": "c"}]}, {"a": [1]}, {"a": [1]}),
            (["a", "b"], ["c", "d"], ["c", "d"]),
            ({"a": "b"}, ["c"], ["c"]),
            ({"a": "foo"}, None, None),
            ({"a": "foo"}, "bar", "bar"),
            ({"e": None}, {"a": 1}, {"e": None, "a": 1}),
            ([1, 2], {"a": "b", "c": None}, {"a": "b"}),
            ({}, {"a": {"bb": {"ccc": None}}}, {"a": {"bb": {}}}),
        ],
    )
    def test_rfc_examples(self, target, patch, expected):
        assert merge_patch(target, patch) == expected

    def test_inputs_not_mutated(self):
        target = {"a": {"b": 1}}
        patch = {"a": {"c": [1, 2]}}
        result = merge_patch(target, patch)
        result["a"]["c"].append(3)
        assert target == {"a": {"b": 1}}
        assert patch == {"a": {"c": [1, 2]}}

    def test_at_path(self):
        doc = {"attributes": {"color": "red", "size": 3}}
        assert merge_patch_at(doc, "/attributes", {"color": None, "x": 1}) == {
            "attributes": {"size": 3, "x": 1}
        }

    def test_at_path_scalar_replaces(self):
        doc = {"attributes": {"color": "red"}}
        assert merge_patch_at(doc, "/attributes/color", "blue") == {
            "attributes": {"color": "blue"}
        }

    def test_at_path_null_deletes(self):
        doc = {"attributes": {"color": "red", "size": 3}}
        assert merge_patch_at(doc, "/attributes/color", None) == {"attributes": {"size": 3}}

    def test_at_missing_path_creates_objects(self):
        assert merge_patch_at({}, "/a/b", 1) == {"a": {"b": 1}}


class TestMergeApplier:
    def test_scenario_a(self, record, ts):
        merged = MergeApplier().apply(record, "/", {"b": 5, "c": 7}, 5, ts)
        assert merged.fields == {"a": 1, "b": 5, "c": 7}
        assert merged.revision == 5
        assert merged.modified == ts
        assert merged.created == record.created
        assert merged.id == "r1"

    def test_scenario_b(self, record, ts):
        merged = MergeApplier().apply(record, "/", {"b": 5}, 5, ts)
        assert merged.fields == {"a": 1, "b": 5}

    def test_original_record_untouched(self, record, ts):
        before = record.to_json()
        MergeApplier().apply(record, "/", {"a": None, "z": {"y": 1}}, 5, ts)
        assert record.to_json() == before

    def test_sub_path(self, nested_record, ts):
        merged = MergeApplier().apply(
            nested_record, "/features/lamp/properties", {"on": True, "level": None}, 2, ts
        )
        assert merged.fields["features"] == {"lamp": {"properties": {"on": True}}}
        assert merged.fields["attributes"] == nested_record.fields["attributes"]

    def test_array_replaces_wholesale(self, nested_record, ts):
        merged = MergeApplier().apply(nested_record, "/attributes/tags", ["z"], 2, ts)
        assert merged.fields["attributes"]["tags"] == ["z"]

    def test_payload_cannot_override_revision(self, record, ts):
        merged = MergeApplier().apply(record, "/", {"_revision": 100}, 5, ts)
        assert merged.revision == 5

    def test_idempotent(self, record, ts):
        applier = MergeApplier()
        first = applier.apply(record, "/", {"b": 5, "c": {"d": [1, 2]}}, 5, ts)
        second = applier.apply(record, "/", {"b": 5, "c": {"d": [1, 2]}}, 5, ts)
        assert first == second
        assert first.model_dump_json() == second.model_dump_json()

    @pytest.mark.parametrize(
        "path,payload,match",
        [
            ("/", None, "not an object"),
            ("/", 42, "not an object"),
            ("/", [1, 2], "not an object"),
            ("/", {"id": None}, "cannot be changed"),
            ("/", {"id": "other"}, "cannot be changed"),
            ("/id", "other", "cannot be changed"),
            ("/", {"_secret": 1}, "Unknown special fields"),
            ("/", {"_created": "not a date"}, "created"),
        ],
    )
    def test_invalid_results(self, record, ts, headers, path, payload, match):
        with pytest.raises(InvalidPatchResultError, match=match) as exc:
            MergeApplier().apply(record, path, payload, 5, ts, headers)
        assert exc.value.kind is ErrorKind.INVALID_PATCH_RESULT
        assert exc.value.headers == headers
        assert exc.value.__cause__ is not None

    def test_negative_revision_is_invalid(self, record, ts):
        with pytest.raises(InvalidPatchResultError):
            MergeApplier().apply(record, "/", {"b": 1}, -1, ts)
