import pytest

from opsin.models import AzureConfig, ConfigValidationError, ErrorKind
from opsin.validation import normalize_endpoint, validate_config

KEY = "abcdefghijklmnop"


def _config(endpoint="https://foo.openai.azure.com", api_key=KEY, deployment="gpt-4o"):
    return AzureConfig(endpoint=endpoint, api_key=api_key, deployment_name=deployment)


def test_trailing_slash_is_normalized_away():
    assert normalize_endpoint("https://foo.openai.azure.com/") == normalize_endpoint("https://foo.openai.azure.com")
    assert normalize_endpoint("  https://foo.openai.azure.com/ ") == "https://foo.openai.azure.com"


@pytest.mark.parametrize("endpoint", ["https://foo.openai.azure.com", "https://foo.openai.azure.com/"])
def test_valid_config_passes(endpoint):
    validate_config(_config(endpoint=endpoint))


@pytest.mark.parametrize(
    "endpoint",
    [
        "http://foo.openai.azure.com",
        "https://foo.openai.azure.com/openai",
        "https://foo.cognitiveservices.azure.com",
        "https://openai.azure.com",
        "foo.openai.azure.com",
        "https://foo.openai.azure.com.evil.example",
        "https://foo.openai.azure.com//",
    ],
)
def test_bad_endpoint_format(endpoint):
    with pytest.raises(ConfigValidationError) as excinfo:
        validate_config(_config(endpoint=endpoint))
    assert excinfo.value.kind is ErrorKind.BAD_FORMAT
    assert excinfo.value.field_name == "endpoint"


@pytest.mark.parametrize(
    "kwargs, field_name",
    [
        ({"endpoint": "   "}, "endpoint"),
        ({"api_key": ""}, "api_key"),
        ({"deployment": " \t"}, "deployment_name"),
    ],
)
def test_blank_fields_are_rejected(kwargs, field_name):
    with pytest.raises(ConfigValidationError) as excinfo:
        validate_config(_config(**kwargs))
    assert excinfo.value.kind is ErrorKind.EMPTY_FIELD
    assert excinfo.value.field_name == field_name
    assert excinfo.value.status_code == 422


def test_short_api_key():
    with pytest.raises(ConfigValidationError) as excinfo:
        validate_config(_config(api_key="123456789"))
    assert excinfo.value.kind is ErrorKind.TOO_SHORT


def test_ten_character_key_is_long_enough():
    validate_config(_config(api_key="1234567890"))
