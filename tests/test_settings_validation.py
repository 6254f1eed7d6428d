"""Tests for provider and settings validation."""

import pytest

from textassist.core.config import (
    AuthKind,
    InferenceBaseConfig,
    LanguageConfig,
    ModelConfig,
    ProviderConfig,
    ProviderKind,
)
from textassist.core.defaults import default_settings
from textassist.core.errors import SettingsValidationError
from textassist.core.validation import (
    validate_base_url,
    validate_endpoint,
    validate_provider_config,
    validate_settings,
)


def _provider(**overrides) -> ProviderConfig:
    fields = dict(
        id="p-1",
        name="Local",
        provider_kind=ProviderKind.OPENAI_COMPATIBLE,
        base_url="http://localhost:8080/",
        models_endpoint="v1/models",
        completion_endpoint="v1/chat/completions",
        auth_kind=AuthKind.NONE,
    )
    fields.update(overrides)
    return ProviderConfig(**fields)


def _settings_with_model(name: str = "llama3"):
    settings = default_settings()
    return settings.model_copy(update={"model": settings.model.model_copy(update={"name": name})})


@pytest.mark.parametrize(
    "url",
    ["http://localhost:8080/", "https://api.example.com/", "http://localhost:8080/api/v1/"],
)
def test_validate_base_url_accepts(url):
    validate_base_url(url)


@pytest.mark.parametrize(
    "url,code,fragment",
    [
        ("", "empty_base_url", "base URL cannot be empty"),
        ("http://localhost:8080", "missing_trailing_slash", "trailing slash"),
        ("not-a-url", "bad_scheme", "invalid URL scheme"),
        ("ftp://localhost:8080/", "bad_scheme", "invalid URL scheme"),
        ("http:///path/", "invalid_base_url", "host"),
        ("http://[::1/", "invalid_base_url", "invalid base URL format"),
    ],
)
def test_validate_base_url_rejects(url, code, fragment):
    with pytest.raises(SettingsValidationError) as exc_info:
        validate_base_url(url)
    assert exc_info.value.error_code == code
    assert fragment in str(exc_info.value)


def test_validate_endpoint():
    validate_endpoint("")
    validate_endpoint("v1/models")
    validate_endpoint("api/v1/chat/completions")
    with pytest.raises(SettingsValidationError) as exc_info:
        validate_endpoint("/v1/models")
    assert exc_info.value.error_code == "leading_slash"
    assert "must not start with a forward slash" in str(exc_info.value)


def test_validate_provider_config_accepts_valid_profiles():
    validate_provider_config(_provider())
    validate_provider_config(_provider(auth_kind=AuthKind.API_KEY, auth_token="sk"))
    validate_provider_config(
        _provider(auth_kind=AuthKind.BEARER, load_auth_token_from_env=True, env_var_name="KEY")
    )
    validate_provider_config(
        _provider(models_endpoint="", use_custom_model_list=True, custom_models=("m1",))
    )
    for provider in default_settings().available_providers:
        validate_provider_config(provider)


@pytest.mark.parametrize(
    "overrides,code",
    [
        ({"name": ""}, "empty_name"),
        ({"name": "   "}, "empty_name"),
        ({"base_url": ""}, "empty_base_url"),
        ({"base_url": "ftp://host/"}, "bad_scheme"),
        ({"base_url": "http://host"}, "missing_trailing_slash"),
        ({"completion_endpoint": ""}, "empty_completion_endpoint"),
        ({"completion_endpoint": "/chat"}, "leading_slash"),
        ({"models_endpoint": ""}, "missing_models_endpoint"),
        ({"models_endpoint": "/v1/models"}, "leading_slash"),
        ({"load_auth_token_from_env": True, "env_var_name": ""}, "missing_env_var_name"),
        ({"auth_kind": AuthKind.BEARER, "auth_token": ""}, "missing_auth_token"),
        ({"auth_kind": AuthKind.API_KEY}, "missing_auth_token"),
        (
            {"use_custom_model_list": True, "custom_models": (), "models_endpoint": ""},
            "missing_custom_models",
        ),
    ],
)
def test_validate_provider_config_reports_each_rule(overrides, code):
    with pytest.raises(SettingsValidationError) as exc_info:
        validate_provider_config(_provider(**overrides))
    assert exc_info.value.error_code == code


def test_validate_provider_config_rejects_none():
    with pytest.raises(SettingsValidationError) as exc_info:
        validate_provider_config(None)
    assert exc_info.value.error_code == "missing_provider"


def test_validate_provider_config_rejects_raw_kind_strings():
    raw = ProviderConfig.model_construct(**{**_provider().__dict__, "provider_kind": "grpc"})
    with pytest.raises(SettingsValidationError) as exc_info:
        validate_provider_config(raw)
    assert exc_info.value.error_code == "invalid_provider_kind"

    raw = ProviderConfig.model_construct(**{**_provider().__dict__, "auth_kind": "oauth"})
    with pytest.raises(SettingsValidationError) as exc_info:
        validate_provider_config(raw)
    assert exc_info.value.error_code == "invalid_auth_kind"


def test_models_endpoint_not_required_with_custom_models():
    validate_provider_config(
        _provider(models_endpoint="", use_custom_model_list=True, custom_models=("gpt-4o",))
    )


def test_env_token_takes_precedence_over_literal_token():
    validate_provider_config(
        _provider(
            auth_kind=AuthKind.BEARER,
            auth_token="",
            load_auth_token_from_env=True,
            env_var_name="TOKEN",
        )
    )


def test_validate_settings_accepts_defaults_with_model():
    validate_settings(_settings_with_model())


def test_validate_settings_model_name_rules():
    settings = default_settings()
    with pytest.raises(SettingsValidationError) as exc_info:
        validate_settings(settings)
    assert exc_info.value.error_code == "empty_model_name"

    validate_settings(settings, allow_unset_model=True)

    with pytest.raises(SettingsValidationError):
        validate_settings(_settings_with_model("   "), allow_unset_model=True)


def test_validate_settings_requires_current_provider_in_list():
    settings = _settings_with_model()
    stranger = _provider(id="x", name="Stranger")
    with pytest.raises(SettingsValidationError) as exc_info:
        validate_settings(settings.model_copy(update={"current_provider": stranger}))
    assert exc_info.value.error_code == "unknown_current_provider"

    unnamed = settings.current_provider.model_copy(update={"name": ""})
    with pytest.raises(SettingsValidationError) as exc_info:
        validate_settings(settings.model_copy(update={"current_provider": unnamed}))
    assert exc_info.value.error_code == "empty_current_provider"


def test_validate_settings_checks_current_provider_itself():
    settings = _settings_with_model()
    broken = settings.current_provider.model_copy(update={"base_url": "http://127.0.0.1:11434"})
    with pytest.raises(SettingsValidationError) as exc_info:
        validate_settings(settings.model_copy(update={"current_provider": broken}))
    assert exc_info.value.error_code == "invalid_current_provider"


def test_validate_settings_rejects_invalid_or_duplicate_providers():
    settings = _settings_with_model()
    bad = _provider(name="Bad", base_url="localhost")
    with pytest.raises(SettingsValidationError) as exc_info:
        validate_settings(
            settings.model_copy(
                update={"available_providers": settings.available_providers + (bad,)}
            )
        )
    assert exc_info.value.error_code == "invalid_provider"
    assert "'Bad'" in str(exc_info.value)

    twin = _provider(id="other", name="Ollama")
    with pytest.raises(SettingsValidationError) as exc_info:
        validate_settings(
            settings.model_copy(
                update={"available_providers": settings.available_providers + (twin,)}
            )
        )
    assert exc_info.value.error_code == "duplicate_provider_name"


@pytest.mark.parametrize(
    "inference,code",
    [
        (InferenceBaseConfig(timeout_seconds=0, max_retries=3), "invalid_timeout"),
        (InferenceBaseConfig(timeout_seconds=601, max_retries=3), "invalid_timeout"),
        (InferenceBaseConfig(timeout_seconds=30, max_retries=-1), "invalid_max_retries"),
        (InferenceBaseConfig(timeout_seconds=30, max_retries=11), "invalid_max_retries"),
    ],
)
def test_validate_settings_inference_ranges(inference, code):
    settings = _settings_with_model().model_copy(update={"inference": inference})
    with pytest.raises(SettingsValidationError) as exc_info:
        validate_settings(settings)
    assert exc_info.value.error_code == code


def test_validate_settings_temperature_only_checked_when_enabled():
    settings = _settings_with_model()
    hot = ModelConfig(name="m", use_temperature=True, temperature=2.5)
    with pytest.raises(SettingsValidationError) as exc_info:
        validate_settings(settings.model_copy(update={"model": hot}))
    assert exc_info.value.error_code == "invalid_temperature"

    ignored = ModelConfig(name="m", use_temperature=False, temperature=9.0)
    validate_settings(settings.model_copy(update={"model": ignored}))

    for edge in (0.0, 2.0):
        validate_settings(
            settings.model_copy(update={"model": ModelConfig(name="m", temperature=edge)})
        )


def test_validate_settings_language_rules():
    settings = _settings_with_model()
    with pytest.raises(SettingsValidationError) as exc_info:
        validate_settings(
            settings.model_copy(
                update={"language": settings.language.model_copy(update={"languages": ()})}
            )
        )
    assert exc_info.value.error_code == "empty_languages"

    lowercase = LanguageConfig(
        languages=("English", "Ukrainian"),
        default_input_language="english",
        default_output_language="UKRAINIAN",
    )
    validate_settings(settings.model_copy(update={"language": lowercase}))

    missing_input = lowercase.model_copy(update={"default_input_language": "Klingon"})
    with pytest.raises(SettingsValidationError) as exc_info:
        validate_settings(settings.model_copy(update={"language": missing_input}))
    assert exc_info.value.error_code == "unknown_default_input_language"

    missing_output = lowercase.model_copy(update={"default_output_language": "Klingon"})
    with pytest.raises(SettingsValidationError) as exc_info:
        validate_settings(settings.model_copy(update={"language": missing_output}))
    assert exc_info.value.error_code == "unknown_default_output_language"


def test_validation_error_is_a_value_error():
    with pytest.raises(ValueError):
        validate_base_url("")


@pytest.mark.parametrize("use_temperature", [True, False])
@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_validate_settings_rejects_non_finite_temperature(use_temperature, value):
    model = ModelConfig(name="m", use_temperature=use_temperature, temperature=value)
    with pytest.raises(SettingsValidationError) as exc_info:
        validate_settings(_settings_with_model().model_copy(update={"model": model}))
    assert exc_info.value.error_code == "non_finite_temperature"


@pytest.mark.parametrize("section", ["current_provider", "inference", "model", "language"])
def test_validate_settings_rejects_unset_sections(section):
    settings = _settings_with_model().model_copy(update={section: None})
    with pytest.raises(SettingsValidationError) as exc_info:
        validate_settings(settings)
    assert exc_info.value.error_code == f"missing_{section}_config"
