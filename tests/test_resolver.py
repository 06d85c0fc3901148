from __future__ import annotations

from cmdgraph.core import constraints
from cmdgraph.core.outcome import Failure, Success
from cmdgraph.core.params import param
from cmdgraph.ops.resolver import resolve_parameter, resolve_parameters

_CONFIG = param("config", default="/etc/myapp/config", env_key="CONFIG_PATH")
_PORT = param("port", value_type="int", default=8080, env_key="SERVER_PORT")
_ENV = param("env", kind="choice", choices=["staging", "prod"], required=True, env_key="APP_ENV")


def test_explicit_beats_environment_and_default() -> None:
    result = resolve_parameter(_CONFIG, ["/srv/explicit"], {"CONFIG_PATH": "/srv/env"})

    assert isinstance(result, Success)
    assert result.payload.value == "/srv/explicit"
    assert result.payload.source == "explicit-flag"
    assert result.payload.origin == "--config"


def test_environment_beats_default() -> None:
    result = resolve_parameter(_CONFIG, [], {"CONFIG_PATH": "/srv/env"})

    assert isinstance(result, Success)
    assert result.payload.value == "/srv/env"
    assert result.payload.source == "environment"
    assert result.payload.origin == "CONFIG_PATH"


def test_default_used_last() -> None:
    result = resolve_parameter(_CONFIG, [], {})

    assert isinstance(result, Success)
    assert result.payload.value == "/etc/myapp/config"
    assert result.payload.source == "default"
    assert result.payload.origin == "default"


def test_blank_environment_value_counts_as_unset() -> None:
    result = resolve_parameter(_CONFIG, [], {"CONFIG_PATH": "   "})

    assert isinstance(result, Success)
    assert result.payload.source == "default"


def test_optional_parameters_resolve_to_empty_values() -> None:
    flag = resolve_parameter(param("force", kind="flag"), [], {})
    multi = resolve_parameter(param("tags", kind="multi"), [], {})
    single = resolve_parameter(param("label"), [], {})

    assert isinstance(flag, Success) and flag.payload.value is False
    assert isinstance(multi, Success) and multi.payload.value == ()
    assert isinstance(single, Success) and single.payload.value is None
    assert single.payload.source == "default"


def test_int_conversion() -> None:
    explicit = resolve_parameter(_PORT, ["9000"], {})
    from_env = resolve_parameter(_PORT, [], {"SERVER_PORT": " 7000 "})

    assert isinstance(explicit, Success) and explicit.payload.value == 9000
    assert isinstance(from_env, Success) and from_env.payload.value == 7000


def test_int_conversion_failure_explicit() -> None:
    result = resolve_parameter(_PORT, ["abc"], {})

    assert isinstance(result, Failure)
    assert result.error.kind == "validation-failed"
    assert result.error.message == "invalid value 'abc' for '--port'"
    assert result.error.context == ("expected an integer",)


def test_int_conversion_failure_names_environment_variable() -> None:
    result = resolve_parameter(_PORT, [], {"SERVER_PORT": "eighty"})

    assert isinstance(result, Failure)
    assert result.error.context == (
        "value read from environment variable SERVER_PORT",
        "expected an integer",
    )


def test_float_conversion() -> None:
    spec = param("ratio", value_type="float")

    ok = resolve_parameter(spec, ["0.25"], {})
    bad = resolve_parameter(spec, ["quarter"], {})

    assert isinstance(ok, Success) and ok.payload.value == 0.25
    assert isinstance(bad, Failure) and bad.error.context == ("expected a number",)


def test_flag_from_environment() -> None:
    spec = param("verbose", kind="flag", env_key="SERVER_VERBOSE")

    on = resolve_parameter(spec, [], {"SERVER_VERBOSE": "Yes"})
    off = resolve_parameter(spec, [], {"SERVER_VERBOSE": "0"})
    bad = resolve_parameter(spec, [], {"SERVER_VERBOSE": "maybe"})

    assert isinstance(on, Success) and on.payload.value is True
    assert isinstance(off, Success) and off.payload.value is False
    assert isinstance(bad, Failure)
    assert bad.error.context == (
        "value read from environment variable SERVER_VERBOSE",
        "expected a boolean (0|1|false|no|off|on|true|yes)",
    )


def test_explicit_flag_is_true() -> None:
    result = resolve_parameter(param("verbose", kind="flag"), ["--verbose"], {})

    assert isinstance(result, Success)
    assert result.payload.value is True
    assert result.payload.origin == "--verbose"


def test_multi_from_environment_splits_on_commas() -> None:
    spec = param("tags", kind="multi", env_key="DEPLOY_TAGS")

    result = resolve_parameter(spec, [], {"DEPLOY_TAGS": "web, api,,db "})

    assert isinstance(result, Success)
    assert result.payload.value == ("web", "api", "db")


def test_multi_explicit_keeps_order() -> None:
    spec = param("ports", kind="multi", value_type="int")

    result = resolve_parameter(spec, ["80", "443"], {})

    assert isinstance(result, Success)
    assert result.payload.value == (80, 443)


def test_required_missing_mentions_environment_variable() -> None:
    result = resolve_parameter(_ENV, [], {})

    assert isinstance(result, Failure)
    assert result.error.kind == "missing-required"
    assert result.error.message == "missing required option '--env' (or set environment variable APP_ENV)"


def test_required_positional_missing() -> None:
    result = resolve_parameter(param("names", kind="multi", positional=True, required=True), [], {})

    assert isinstance(result, Failure)
    assert result.error.message == "missing required argument '<names>'"


def test_choice_rejects_unknown_value() -> None:
    result = resolve_parameter(_ENV, ["dev"], {})

    assert isinstance(result, Failure)
    assert result.error.kind == "validation-failed"
    assert result.error.message == "invalid value 'dev' for '--env'"
    assert result.error.context == ("valid choices: staging, prod",)


def test_choice_from_environment_is_checked() -> None:
    result = resolve_parameter(_ENV, [], {"APP_ENV": "dev"})

    assert isinstance(result, Failure)
    assert result.error.context == (
        "value read from environment variable APP_ENV",
        "valid choices: staging, prod",
    )


def test_validator_may_normalize() -> None:
    spec = param("region", validator=str.lower)

    result = resolve_parameter(spec, ["EU-West"], {})

    assert isinstance(result, Success)
    assert result.payload.value == "eu-west"


def test_validator_failure_becomes_validation_error() -> None:
    spec = param("name", validator=constraints.min_length(3))

    result = resolve_parameter(spec, ["al"], {})

    assert isinstance(result, Failure)
    assert result.error.kind == "validation-failed"
    assert result.error.message == "invalid value 'al' for '--name'"
    assert result.error.context == ("must be at least 3 characters long",)


def test_validator_applies_to_default_values() -> None:
    spec = param("mode", default="fast", validator=constraints.pattern("slow|careful"))

    result = resolve_parameter(spec, [], {})

    assert isinstance(result, Failure)
    assert result.error.context == ("must match pattern slow|careful",)


def test_each_validator_reports_failing_item() -> None:
    spec = param("tags", kind="multi", validator=constraints.each(constraints.pattern("[a-z]+")))

    result = resolve_parameter(spec, ["web", "API"], {})

    assert isinstance(result, Failure)
    assert result.error.message == "invalid value [web, API] for '--tags'"
    assert result.error.context == ("item 2 (API) must match pattern [a-z]+",)


def test_resolve_parameters_keeps_declaration_order() -> None:
    result = resolve_parameters((_PORT, _CONFIG), {"port": ("9000",)}, {"CONFIG_PATH": "/srv"})

    assert isinstance(result, Success)
    assert list(result.payload) == ["port", "config"]
    assert result.payload["port"].source == "explicit-flag"
    assert result.payload["config"].source == "environment"


def test_resolve_parameters_reports_first_failure() -> None:
    first = param("first", required=True)
    second = param("second", required=True)

    result = resolve_parameters((first, second), {}, {})

    assert isinstance(result, Failure)
    assert result.error.message == "missing required option '--first'"


def test_required_parameter_unaffected_by_other_environment_keys() -> None:
    result = resolve_parameter(_ENV, [], {"CONFIG_PATH": "/srv", "ENV": "prod", "app_env": "prod"})

    assert isinstance(result, Failure)
    assert result.error.kind == "missing-required"


def test_resolution_is_repeatable() -> None:
    environment = {"CONFIG_PATH": "/srv/env"}

    first = resolve_parameters((_PORT, _CONFIG), {}, environment)
    second = resolve_parameters((_PORT, _CONFIG), {}, environment)

    assert isinstance(first, Success) and isinstance(second, Success)
    assert dict(first.payload) == dict(second.payload)


def test_validator_crash_from_environment_is_source_failure() -> None:
    def broken(value: object) -> object:
        raise KeyError("lookup")

    spec = param("region", env_key="REGION", validator=broken)

    result = resolve_parameter(spec, [], {"REGION": "eu"})

    assert isinstance(result, Failure)
    assert result.error.kind == "source-failure"
    assert result.error.context == ("value read from environment variable REGION",)
    assert result.error.cause is not None
    assert result.error.cause.message == "KeyError: 'lookup'"
