"""
Tests for saved search document validation
"""

import pytest

from query.validators import validate_json_search
from utils.errors import InvalidInputError, FieldTooLongError


def condition(**overrides):
    c = {"condition": "title", "operator": "contains", "value": "x"}
    c.update(overrides)
    return c


def assert_invalid(document, field, error_class=InvalidInputError, **kwargs):
    with pytest.raises(error_class) as exc_info:
        validate_json_search(document, **kwargs)
    assert exc_info.value.field == field
    return exc_info.value


class TestDocumentValidation:

    def test_valid_document(self):
        validate_json_search({"name": "Valid", "conditions": [condition()]})

    def test_regexp_mode_condition_accepted(self):
        validate_json_search({
            "name": "Valid",
            "conditions": [{"condition": "title/regexp", "operator": "is", "value": "^foo"}],
        })

    def test_key_and_version_pass_through(self):
        validate_json_search({"key": "ABCD2345", "version": 3, "name": "Valid", "conditions": [condition()]})

    def test_non_object_rejected(self):
        error = assert_invalid(["name"], None)
        assert error.message == "Saved search data must be an object (array)"

    def test_empty_name(self):
        error = assert_invalid({"name": "", "conditions": [condition()]}, "name")
        assert error.message == "Search name cannot be empty"

    def test_name_too_long(self):
        error = assert_invalid({"name": "A" * 300, "conditions": [condition()]}, "name", FieldTooLongError)
        assert error.status == 413

    def test_name_length_counts_characters(self):
        # 255 three-byte characters
        validate_json_search({"name": "€" * 255, "conditions": [condition()]})

    def test_name_must_be_string(self):
        error = assert_invalid({"name": 5, "conditions": [condition()]}, "name")
        assert error.message == "'name' must be a string"

    def test_missing_name(self):
        error = assert_invalid({"conditions": [condition()]}, "name")
        assert error.message == "'name' property not provided"

    def test_missing_conditions(self):
        assert_invalid({"name": "Valid"}, "conditions")

    def test_empty_conditions(self):
        error = assert_invalid({"name": "Valid", "conditions": []}, "conditions")
        assert error.message == "'conditions' cannot be empty"

    def test_conditions_must_be_array(self):
        error = assert_invalid({"name": "Valid", "conditions": {"condition": "title"}}, "conditions")
        assert error.message == "'conditions' must be an array (object)"

    def test_unknown_property(self):
        error = assert_invalid({"name": "Valid", "conditions": [condition()], "color": "red"}, "color")
        assert error.message == "Invalid property 'color'"

    def test_first_error_in_document_order(self):
        assert_invalid({"bogus": 1, "name": ""}, "bogus", partial_update=True)
        assert_invalid({"name": "", "bogus": 1}, "name", partial_update=True)

    def test_validation_is_deterministic(self):
        document = {"name": "Valid", "conditions": [condition(operator="")]}
        errors = []
        for _ in range(3):
            with pytest.raises(InvalidInputError) as exc_info:
                validate_json_search(document)
            errors.append((type(exc_info.value), exc_info.value.field, exc_info.value.message))
        assert len(set(errors)) == 1


class TestPartialUpdate:

    def test_name_only(self):
        validate_json_search({"name": "Renamed"}, partial_update=True)

    def test_empty_document(self):
        validate_json_search({}, partial_update=True)

    def test_supplied_properties_still_validated(self):
        assert_invalid({"conditions": []}, "conditions", partial_update=True)


class TestConditionValidation:

    def document(self, c):
        return {"name": "Valid", "conditions": [condition(), c]}

    @pytest.mark.parametrize("prop", ["condition", "operator", "value"])
    def test_required_condition_property(self, prop):
        c = condition()
        del c[prop]
        error = assert_invalid(self.document(c), prop)
        assert error.message == f"'{prop}' property not provided for search condition"

    def test_non_object_condition(self):
        assert_invalid(self.document("title"), "condition")

    def test_non_string_value(self):
        error = assert_invalid(self.document(condition(value=3)), "value")
        assert error.message == "'value' must be a string"

    def test_empty_condition(self):
        error = assert_invalid(self.document(condition(condition="")), "condition")
        assert error.message == "Search condition cannot be empty"

    def test_empty_operator(self):
        error = assert_invalid(self.document(condition(operator="")), "operator")
        assert error.message == "Search operator cannot be empty"

    def test_empty_value_allowed(self):
        validate_json_search(self.document(condition(value="")))

    def test_condition_byte_limit(self):
        validate_json_search(self.document(condition(condition="c" * 50)))
        assert_invalid(self.document(condition(condition="c" * 51)), "condition")

    def test_operator_byte_limit(self):
        error = assert_invalid(self.document(condition(operator="o" * 26)), "operator")
        assert error.message == "Search operator cannot be longer than 25 bytes"

    def test_value_limit_counts_bytes(self):
        # 128 two-byte characters = 256 bytes
        error = assert_invalid(self.document(condition(value="é" * 128)), "value")
        assert error.message == "Search value cannot be longer than 255 bytes"

    def test_unknown_condition_property(self):
        error = assert_invalid(self.document(condition(mode="regexp")), "mode")
        assert error.message == "Invalid property 'mode' for search condition"
