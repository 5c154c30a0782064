from formpilot.ai_parser import (
    extract_json_object,
    parse_analysis_response,
    parse_form_config_response,
)


def test_extracts_embedded_object_and_defaults_chart():
    text = 'Sure! {"insights":[],"charts":[{"title":"Sales"}]}'
    result = parse_analysis_response(text)
    assert result.ok
    analysis = result.value
    assert analysis["insights"] == []
    assert len(analysis["charts"]) == 1
    chart = analysis["charts"][0]
    assert chart["type"] == "bar"
    assert chart["id"] == "chart-0"
    assert chart["title"] == "Sales"
    assert chart["description"] == ""
    assert analysis["rawResponse"] == text


def test_unparseable_text_returns_placeholder():
    text = "I cannot help with that."
    result = parse_analysis_response(text)
    assert not result.ok
    fallback = result.fallback
    assert len(fallback["insights"]) == 1
    assert fallback["insights"][0]["title"] == "Error analyzing data"
    assert fallback["insights"][0]["description"] == "Could not generate insights from the provided data."
    assert fallback["charts"] == []
    assert fallback["rawResponse"] == text


def test_defaults_titles_and_ids_by_position():
    text = """{
      "insights": [{"description": "first"}, {"title": "Named"}],
      "charts": [
        {"type": "pie", "dataPoints": [{"name": "a", "value": 1}]},
        {"type": "radar", "title": "Odd"}
      ]
    }"""
    analysis = parse_analysis_response(text).value
    assert [i["id"] for i in analysis["insights"]] == ["insight-0", "insight-1"]
    assert analysis["insights"][0]["title"] == "Insight 1"
    assert analysis["insights"][1]["description"] == ""
    assert analysis["charts"][0]["title"] == "Chart 1"
    assert analysis["charts"][0]["type"] == "pie"
    assert analysis["charts"][0]["data"] == [{"name": "a", "value": 1}]
    assert analysis["charts"][0]["keys"] == {"category": "name", "value": "value"}
    assert analysis["charts"][1]["id"] == "chart-1"
    assert analysis["charts"][1]["type"] == "bar"


def test_missing_arrays_default_to_empty():
    analysis = parse_analysis_response('{"summary": "nothing"}').value
    assert analysis["insights"] == []
    assert analysis["charts"] == []


def test_extract_json_object():
    assert extract_json_object('{"a": 1}') == {"a": 1}
    assert extract_json_object('text {"a": {"b": 2}} more') == {"a": {"b": 2}}
    assert extract_json_object("no json here") is None
    assert extract_json_object("{broken") is None
    assert extract_json_object(None) is None


def test_form_config_response_is_validated():
    text = '```json\n{"formConfig": [{"type": "text", "label": "Name", "name": "name"}]}\n```'
    result = parse_form_config_response(text, title="Contact form")
    assert result.ok
    assert result.value == {
        "title": "Contact form",
        "elements": [{"type": "text", "label": "Name", "name": "name"}],
    }


def test_form_config_response_requires_array():
    result = parse_form_config_response('{"fields": []}')
    assert not result.ok
    assert result.error == "Received invalid configuration structure from AI."


def test_form_config_response_names_bad_index():
    text = '{"formConfig": [{"type": "text", "label": "A", "name": "a"}, {"type": "text", "label": "B"}]}'
    result = parse_form_config_response(text)
    assert not result.ok
    assert "index 1" in result.error


def test_form_config_response_rejects_empty():
    assert not parse_form_config_response('{"formConfig": []}').ok
