import pytest

from workshop_registry.backends.llm_client import LLMClient


def test_clean_json_response_strips_code_fences():
    raw = '```json\n{"fields": []}\n```'

    assert LLMClient._clean_json_response(raw) == '{"fields": []}'


def test_parse_json_object_accepts_wrapped_json():
    text = 'Here you go:\n{"subject": "Hi", "body": "See you"}\nThanks!'

    assert LLMClient.parse_json_object(text) == {"subject": "Hi", "body": "See you"}


@pytest.mark.parametrize("text", ["no json here", "[1, 2, 3]", "{broken: json}"])
def test_parse_json_object_rejects_non_objects(text):
    with pytest.raises(ValueError):
        LLMClient.parse_json_object(text)
