import pytest

from opsin import jsoncodec
from opsin.analysis import build_analysis_request
from opsin.payloads import build_analysis_payload, build_chat_payload, build_probe_payload


def test_mapping_with_one_based_integer_keys_encodes_as_array():
    assert jsoncodec.encode({2: "b", 1: "a", 3: "c"}) == '["a","b","c"]'


def test_mapping_with_gaps_or_zero_base_encodes_as_object():
    assert jsoncodec.encode({1: "a", 3: "c"}) == '{"1":"a","3":"c"}'
    assert jsoncodec.encode({0: "a", 1: "b"}) == '{"0":"a","1":"b"}'


def test_empty_mapping_encodes_as_array():
    assert jsoncodec.encode({}) == "[]"


def test_boolean_keys_do_not_count_as_indices():
    assert jsoncodec.encode({True: "x"}) == '{"True":"x"}'


def test_scalars_and_escapes():
    assert jsoncodec.encode(None) == "null"
    assert jsoncodec.encode(True) == "true"
    assert jsoncodec.encode(0) == "0"
    assert jsoncodec.encode(0.3) == "0.3"
    assert jsoncodec.encode('say "hi"\n\tback\\slash') == '"say \\"hi\\"\\n\\tback\\\\slash"'


def test_object_keeps_insertion_order():
    assert jsoncodec.encode({"b": 1, "a": [1, 2], "c": {"d": False}}) == '{"b":1,"a":[1,2],"c":{"d":false}}'


def test_non_finite_and_unknown_values_are_rejected():
    with pytest.raises(ValueError):
        jsoncodec.encode(float("nan"))
    with pytest.raises(TypeError):
        jsoncodec.encode(object())


@pytest.mark.parametrize(
    "payload",
    [
        build_probe_payload("gpt-4o"),
        build_probe_payload("gpt-4o", legacy=True),
        build_chat_payload('Line1\nLine2 "quoted" é', max_tokens=42, temperature=0.7, top_p=0.5),
        build_analysis_payload(build_analysis_request(b"\xff\xd8jpeg", "IMG_0001.jpg"), model="gpt-4o"),
    ],
)
def test_payloads_survive_encoding(payload):
    decoded = jsoncodec.decode(jsoncodec.encode(payload))
    assert decoded == payload


def test_extract_string_field_unescapes():
    text = '{"id":"x","description":"Warm \\"golden\\" tones\\nand more"}'
    assert jsoncodec.extract_string_field(text, "description") == 'Warm "golden" tones\nand more'
    assert jsoncodec.extract_string_field(text, "missing") is None


def test_extract_number_field():
    text = '{"max_completion_tokens": 5, "temperature":0.3, "offset":-1.5e2}'
    assert jsoncodec.extract_number_field(text, "max_completion_tokens") == 5
    assert jsoncodec.extract_number_field(text, "temperature") == 0.3
    assert jsoncodec.extract_number_field(text, "offset") == -150.0
    assert jsoncodec.extract_number_field(text, "top_p") is None


def test_unescape_unicode_sequences():
    assert jsoncodec.unescape("caf\\u00e9 \\ud83d\\udcf7") == "café \U0001F4F7"
