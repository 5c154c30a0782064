from formpilot.fields import (
    build_submission_schema,
    coerce_answers,
    compute_duration_ms,
    input_type,
    validate_answers,
)
from formpilot.schema import validate_form_config


def config_for(sample_config):
    return validate_form_config(sample_config).value


def test_schema_marks_required_fields(sample_config):
    schema = build_submission_schema(config_for(sample_config))
    assert schema["required"] == ["name", "email", "terms"]
    assert schema["properties"]["age"] == {"type": "number"}
    assert schema["properties"]["terms"] == {"type": "boolean", "const": True}
    assert schema["properties"]["education"]["enum"] == ["Bachelors", "Masters"]


def test_coerce_answers_types_values(sample_config):
    answers = coerce_answers(
        config_for(sample_config),
        {"name": "  Ann ", "email": "ann@example.com", "age": "42", "education": "", "terms": "true", "extra": "x"},
    )
    assert answers == {"name": "Ann", "email": "ann@example.com", "age": 42, "terms": True}


def test_valid_answers_have_no_errors(sample_config):
    config = config_for(sample_config)
    answers = coerce_answers(config, {"name": "Ann", "email": "ann@example.com", "terms": "on"})
    assert validate_answers(config, answers) == []


def test_error_messages(sample_config):
    config = config_for(sample_config)
    answers = coerce_answers(
        config,
        {"name": "", "email": "not-an-email", "age": "old", "education": "PhD"},
    )
    messages = validate_answers(config, answers)
    assert "Name is required" in messages
    assert "Invalid email address" in messages
    assert "Age must be a number" in messages
    assert "Education must be one of: Bachelors, Masters" in messages
    assert "Accept terms must be checked" in messages


def test_blank_required_email_reports_required_only(sample_config):
    config = config_for(sample_config)
    answers = coerce_answers(config, {"name": "Ann", "email": " ", "terms": "true"})
    assert validate_answers(config, answers) == ["Email is required"]


def test_password_length():
    config = {"title": "T", "elements": [{"type": "password", "label": "Password", "name": "pw"}]}
    assert validate_answers(config, {"pw": "abc"}) == ["Password must be at least 6 characters"]
    assert validate_answers(config, {"pw": "abcdef"}) == []


def test_compute_duration_ms():
    assert compute_duration_ms("1000", 4500) == 3500
    assert compute_duration_ms(5000, 4000) == 0
    assert compute_duration_ms(None, 4000) is None
    assert compute_duration_ms("", 4000) is None
    assert compute_duration_ms("soon", 4000) is None


def test_input_type():
    assert input_type({"type": "email"}) == "email"
    assert input_type({"type": "textarea"}) == "text"
    assert input_type({"type": "select"}) == "text"


def test_non_finite_start_time_has_no_duration():
    assert compute_duration_ms("inf", 1000) is None
    assert compute_duration_ms("-inf", 1000) is None
    assert compute_duration_ms("nan", 1000) is None
    assert compute_duration_ms(float("inf"), 1000) is None


def test_out_of_range_duration_is_dropped():
    assert compute_duration_ms("-1e30", 1000) is None
