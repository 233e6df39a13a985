"""Tests for FactRecord, NormalizedReply and the camelCase record shape."""

import pytest
from pydantic import ValidationError

from bgv_system.data_management.schemas import (
    FACT_FIELDS,
    FactRecord,
    NormalizedReply,
    ResponseMethod,
    field_key,
)


class TestFactRecord:
    def test_all_fields_optional(self):
        record = FactRecord()
        assert record.is_empty()
        assert record.present_fields() == []

    def test_accepts_both_spellings(self):
        by_name = FactRecord(employee_name="Jane Doe")
        by_alias = FactRecord.model_validate({"employeeName": "Jane Doe"})
        assert by_name == by_alias

    def test_to_record_is_camel_case(self):
        record = FactRecord(employee_name="Jane Doe", eligible_for_rehire="Yes").to_record()
        assert record["employeeName"] == "Jane Doe"
        assert record["eligibleForRehire"] == "Yes"
        assert "employee_name" not in record

    def test_values_kept_verbatim(self):
        record = FactRecord(salary="  ₹10,00,000 ")
        assert record.salary == "  ₹10,00,000 "

    def test_blank_values_not_present(self):
        record = FactRecord(employee_name="   ", salary="12 LPA")
        assert record.present_fields() == ["salary"]

    def test_present_fields_in_declared_order(self):
        record = FactRecord(salary="12 LPA", employee_name="Jane Doe", designation="Analyst")
        assert record.present_fields() == ["employee_name", "designation", "salary"]

    def test_merged_with_layers_non_empty_values(self):
        base = FactRecord(employee_name="Jane Doe", salary="10 LPA")
        merged = base.merged_with(FactRecord(salary="12 LPA", designation=""))
        assert merged.salary == "12 LPA"
        assert merged.employee_name == "Jane Doe"
        assert merged.designation is None
        assert base.salary == "10 LPA"

    def test_field_key(self):
        assert [field_key(f) for f in FACT_FIELDS[:3]] == [
            "employeeName",
            "companyName",
            "designation",
        ]


class TestNormalizedReply:
    def test_response_method_required(self):
        with pytest.raises(ValidationError):
            NormalizedReply()

    def test_defaults(self):
        reply = NormalizedReply(response_method=ResponseMethod.UNSTRUCTURED)
        assert reply.facts.is_empty()
        assert reply.matched_fields == []
        assert reply.confidence == "none"

    def test_serialized_shape(self):
        reply = NormalizedReply(
            response_method=ResponseMethod.STRUCTURED_LINK,
            document_reference="1AbC",
            document_url="https://docs.google.com/spreadsheets/d/1AbC/edit",
        )
        record = reply.to_record()
        assert record["responseMethod"] == "STRUCTURED_LINK"
        assert record["documentReference"] == "1AbC"
