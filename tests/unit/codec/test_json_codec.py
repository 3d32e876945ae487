"""Tests for JsonResourceCodec."""

import json

import pytest

from fhirstore.codec.json_codec import JsonResourceCodec
from fhirstore.exceptions import CodecError
from fhirstore.schemas.resource import Observation, Patient


@pytest.fixture
def codec() -> JsonResourceCodec:
    return JsonResourceCodec()


class TestEncode:
    def test_resource_type_first(self, codec, sample_patient):
        body = codec.encode(sample_patient)
        assert body.startswith('{"resourceType":"Patient"')

    def test_nulls_omitted(self, codec):
        body = json.loads(codec.encode(Patient(id="1")))
        assert body == {"resourceType": "Patient", "id": "1", "name": []}

    def test_compact(self, codec, sample_patient):
        assert ": " not in codec.encode(sample_patient)

    def test_dates_as_iso_strings(self, codec, sample_patient, sample_observation):
        assert json.loads(codec.encode(sample_patient))["birthDate"] == "1990-04-01"
        assert json.loads(codec.encode(sample_observation))["effectiveDateTime"].startswith(
            "2026-02-09T14:30:00"
        )

    def test_unicode_kept(self, codec):
        body = codec.encode(Patient(id="1", gender="é"))
        assert "é" in body

    def test_sort_keys(self, sample_patient):
        body = JsonResourceCodec(sort_keys=True).encode(sample_patient)
        keys = list(json.loads(body).keys())
        assert keys == sorted(keys)

    def test_non_resource_rejected(self, codec):
        with pytest.raises(CodecError):
            codec.encode({"resourceType": "Patient"})


class TestDecode:
    def test_decodes_into_shape(self, codec, sample_observation):
        body = codec.encode(sample_observation)
        result = codec.decode("Observation", body, Observation)
        assert isinstance(result, Observation)
        assert result == sample_observation

    def test_body_without_resource_type(self, codec):
        result = codec.decode("Patient", '{"id":"7","gender":"male"}', Patient)
        assert result.id == "7"
        assert result.gender == "male"

    def test_malformed_json(self, codec):
        with pytest.raises(CodecError) as exc_info:
            codec.decode("Patient", '{"id": ', Patient)
        assert exc_info.value.resource_type == "Patient"
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_non_object_body(self, codec):
        with pytest.raises(CodecError):
            codec.decode("Patient", "[1, 2, 3]", Patient)

    def test_mismatched_resource_type(self, codec):
        with pytest.raises(CodecError):
            codec.decode("Patient", '{"resourceType":"Observation","id":"1"}', Patient)

    def test_validation_failure(self, codec):
        with pytest.raises(CodecError):
            codec.decode("Patient", '{"resourceType":"Patient","name":"not-a-list"}', Patient)

    def test_blank_id_rejected(self, codec):
        with pytest.raises(CodecError):
            codec.decode("Patient", '{"resourceType":"Patient","id":"  "}', Patient)
