"""
Schema Validation Tests
=======================

The validator must accept well-formed entities and relationships and,
for malformed ones, report EVERY violated field by dotted path without
raising.
"""

import pytest

from entity_graph.contracts.base import ErrorCode, SCHEMA_VERSION
from entity_graph.contracts.entities import Entity, TRLRange
from entity_graph.errors import AdapterValidationError
from entity_graph.validation import validate_entity, validate_relationship

from tests.fixtures import entity_data


def fields_of(result):
    return set(result.error.fields)


class TestValidateEntity:

    def test_minimal_entity_is_valid(self):
        result = validate_entity(entity_data("sh-1"))
        assert result.is_success
        assert isinstance(result.value, Entity)
        assert result.value.version == SCHEMA_VERSION

    def test_field_names_and_aliases_both_accepted(self):
        data = entity_data("sh-1")
        data["entity_type"] = data.pop("entityType")
        assert validate_entity(data).is_success

    def test_bare_and_range_trl(self):
        bare = validate_entity(entity_data("t-1", trl=5))
        ranged = validate_entity(entity_data("t-2", trl={"current": 5, "target": 8}))
        assert bare.value.trl_level == 5
        assert isinstance(ranged.value.metadata.trl, TRLRange)
        assert ranged.value.trl_level == 5

    def test_missing_id_reports_id(self):
        data = entity_data("x")
        del data["id"]
        result = validate_entity(data)
        assert result.is_failure
        assert result.error.code == ErrorCode.SCHEMA_VIOLATION
        assert "id" in fields_of(result)

    def test_blank_id_reports_id(self):
        result = validate_entity(entity_data("   "))
        assert "id" in fields_of(result)

    def test_out_of_range_trl_reports_metadata_trl(self):
        result = validate_entity(entity_data("t-1", trl=12))
        assert fields_of(result) == {"metadata.trl"}

    def test_malformed_trl_range_reports_nested_field(self):
        result = validate_entity(entity_data("t-1", trl={"current": 3, "min": 0}))
        assert "metadata.trl.min" in fields_of(result)

    def test_reversed_trl_range_reports_metadata_trl(self):
        result = validate_entity(entity_data("t-1", trl={"current": 5, "min": 8, "max": 2}))
        assert result.is_failure
        assert fields_of(result) == {"metadata.trl"}
        assert "exceeds max" in result.error.violations[0].message

    def test_non_numeric_trl_reports_metadata_trl(self):
        result = validate_entity(entity_data("t-1", trl="high"))
        assert fields_of(result) == {"metadata.trl"}

    def test_negative_funding_reports_amount(self):
        result = validate_entity(entity_data("f-1", funding={"amount": -5, "currency": "GBP"}))
        assert fields_of(result) == {"metadata.funding.amount"}

    def test_bad_coordinates_report_path(self):
        result = validate_entity(entity_data(
            "l-1", location={"country": "UK", "coordinates": {"lat": 100, "lng": 0}}
        ))
        assert fields_of(result) == {"metadata.location.coordinates.lat"}

    def test_every_violation_is_reported(self):
        data = entity_data("", trl=0, funding={"amount": -1})
        data["entityType"] = "spaceship"
        data["_version"] = "2.0"
        result = validate_entity(data)
        assert {"_version", "id", "entityType", "metadata.trl", "metadata.funding.amount"} <= fields_of(result)
        assert str(len(result.error.violations)) in result.error.message

    def test_non_mapping_is_unsupported_input(self):
        result = validate_entity(["not", "a", "record"])
        assert result.is_failure
        assert result.error.code == ErrorCode.UNSUPPORTED_INPUT
        assert fields_of(result) == {"<root>"}

    def test_revalidating_model_keeps_original(self):
        entity = Entity.model_validate(entity_data("sh-1")).model_copy(update={"original": {"raw": 1}})
        result = validate_entity(entity)
        assert result.is_success
        assert result.value.original == {"raw": 1}

    def test_original_is_never_serialized(self):
        entity = Entity.model_validate(dict(entity_data("sh-1"), _original={"raw": 1}))
        assert entity.original == {"raw": 1}
        assert "_original" not in entity.to_wire()

    def test_sector_accepts_string_or_list(self):
        assert validate_entity(entity_data("s-1", sector="rail")).value.sectors == ["rail"]
        assert validate_entity(entity_data("s-2", sector=["rail", "energy"])).value.sectors == ["rail", "energy"]


class TestValidateRelationship:

    def _edge(self, **overrides):
        data = {
            "id": "r-1",
            "source": "a",
            "target": "b",
            "sourceType": "stakeholder",
            "targetType": "project",
            "type": "funds",
            "strength": 0.4,
            "derivation": "explicit",
        }
        data.update(overrides)
        return data

    def test_valid_relationship(self):
        result = validate_relationship(self._edge())
        assert result.is_success
        assert result.value.strength == 0.4

    def test_strength_above_one_rejected(self):
        assert fields_of(validate_relationship(self._edge(strength=1.5))) == {"strength"}

    def test_unknown_derivation_rejected(self):
        assert fields_of(validate_relationship(self._edge(derivation="guessed"))) == {"derivation"}

    def test_extra_metadata_kept(self):
        result = validate_relationship(self._edge(metadata={"originalStrength": 12, "program": "ATI", "note": "x"}))
        meta = result.value.metadata
        assert meta.original_strength == 12
        assert meta.model_extra["note"] == "x"


class TestRaiseFor:

    def test_failure_escalates_with_source_id_and_fields(self):
        result = validate_entity(entity_data("t-1", trl=12))
        with pytest.raises(AdapterValidationError) as exc:
            result.error.raise_for("src-7", "technology")
        assert exc.value.source_id == "src-7"
        assert exc.value.fields == ("metadata.trl",)
        assert "src-7" in str(exc.value)
