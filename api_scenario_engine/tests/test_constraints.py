from __future__ import annotations

from pathlib import Path

import pytest

from api_scenario_engine.analysis.constraints import ConstraintExtractor, extract_constraints
from api_scenario_engine.analysis.errors import CircularReferenceError, InvalidReferenceError
from api_scenario_engine.analysis.ingest import load_raw_spec
from api_scenario_engine.analysis.model import Constraints
from api_scenario_engine.analysis.resolve import RefResolver

ROOT = Path(__file__).resolve().parent
SPECS = ROOT / "specs"


def _petstore() -> dict:
    return load_raw_spec(str(SPECS / "petstore.yaml"))


def test_property_reference_is_flattened() -> None:
    document = {"components": {"schemas": {"X": {"type": "string"}}}}
    schema = {"type": "object", "properties": {"p": {"$ref": "#/components/schemas/X"}}}
    constraints = extract_constraints(schema, document)
    assert constraints.type == "object"
    assert constraints.properties is not None
    assert constraints.properties["p"].type == "string"


def test_scalar_keywords_are_copied_verbatim() -> None:
    schema = {
        "type": "integer",
        "minimum": 1,
        "maximum": 10,
        "exclusiveMinimum": True,
        "exclusiveMaximum": 11,
        "multipleOf": 2,
        "enum": [2, 4],
        "description": "ignored",
    }
    constraints = extract_constraints(schema, {})
    assert constraints == Constraints(
        type="integer",
        minimum=1,
        maximum=10,
        exclusive_minimum=True,
        exclusive_maximum=11,
        multiple_of=2,
        enum=[2, 4],
    )


def test_missing_type_is_not_defaulted() -> None:
    constraints = extract_constraints({"minLength": 3}, {})
    assert constraints.type is None
    assert constraints.min_length == 3


def test_const_null_is_distinguished_from_absent() -> None:
    assert extract_constraints({"const": None}, {}).has_const is True
    assert extract_constraints({"type": "string"}, {}).has_const is False


def test_nested_objects_and_arrays() -> None:
    schema = {
        "type": "object",
        "properties": {
            "user": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "minLength": 3},
                    "address": {
                        "type": "object",
                        "properties": {"zip": {"type": "string", "pattern": "\\d{5}"}},
                    },
                },
            },
            "tags": {
                "type": "array",
                "items": {"type": "object", "properties": {"id": {"type": "integer"}}},
            },
        },
    }
    constraints = extract_constraints(schema, {})
    user = constraints.properties["user"]
    assert user.properties["name"].min_length == 3
    assert user.properties["address"].properties["zip"].pattern == "\\d{5}"
    tags = constraints.properties["tags"]
    assert tags.type == "array"
    assert tags.items.type == "object"
    assert tags.items.properties["id"].type == "integer"


def test_items_reference_is_flattened() -> None:
    document = _petstore()
    pet = extract_constraints({"$ref": "#/components/schemas/Pet"}, document)
    assert pet.required == ["id", "name"]
    assert pet.properties["name"].max_length == 64
    tags = pet.properties["tags"]
    assert tags.unique_items is True
    assert tags.min_items == 0
    assert tags.max_items == 5
    assert tags.items.type == "string"
    assert tags.items.not_ == Constraints(enum=[""])


def test_composition_members_are_flattened_in_order() -> None:
    document = _petstore()
    new_pet = extract_constraints({"$ref": "#/components/schemas/NewPet"}, document)
    assert new_pet.type is None
    assert new_pet.all_of is not None
    base, extra = new_pet.all_of
    assert base.required == ["name"]
    assert base.properties["name"].pattern == "^[A-Za-z ]+$"
    assert base.properties["kind"].const == "pet"
    assert extra.properties["age"].exclusive_maximum == 40

    problem = extract_constraints({"$ref": "#/components/schemas/Problem"}, document)
    assert [member.type for member in problem.properties["detail"].one_of] == ["string", "null"]


def test_any_of_is_flattened() -> None:
    document = {"components": {"schemas": {"S": {"type": "string"}}}}
    constraints = extract_constraints({"anyOf": [{"$ref": "#/components/schemas/S"}, {"type": "integer"}]}, document)
    assert [member.type for member in constraints.any_of] == ["string", "integer"]


def test_recursive_schema_is_reported_instead_of_expanding_forever() -> None:
    document = {
        "components": {
            "schemas": {
                "Node": {
                    "type": "object",
                    "properties": {"children": {"type": "array", "items": {"$ref": "#/components/schemas/Node"}}},
                }
            }
        }
    }
    with pytest.raises(CircularReferenceError) as excinfo:
        extract_constraints({"$ref": "#/components/schemas/Node"}, document)
    assert excinfo.value.circular_ref == "#/components/schemas/Node"


def test_repeated_non_recursive_reference_is_allowed() -> None:
    document = {"components": {"schemas": {"Name": {"type": "string"}}}}
    schema = {
        "type": "object",
        "properties": {
            "first": {"$ref": "#/components/schemas/Name"},
            "last": {"$ref": "#/components/schemas/Name"},
        },
    }
    constraints = extract_constraints(schema, document)
    assert constraints.properties["first"] == constraints.properties["last"]


def test_broken_property_reference_propagates() -> None:
    with pytest.raises(InvalidReferenceError):
        extract_constraints({"properties": {"p": {"$ref": "#/components/schemas/Nope"}}}, {})


def test_extractor_shares_resolver_cache() -> None:
    resolver = RefResolver()
    extractor = ConstraintExtractor(resolver)
    extractor.extract({"$ref": "#/components/schemas/Pet"}, _petstore())
    assert resolver.has_been_resolved("#/components/schemas/Pet")
    assert resolver.has_been_resolved("#/components/schemas/Tag")


def test_non_mapping_schema_yields_empty_constraints() -> None:
    assert extract_constraints(True, {}) == Constraints()
