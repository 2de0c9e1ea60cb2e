from collections.abc import Callable
from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

import extgen


def _assert_config_code(exc_info: pytest.ExceptionInfo[Exception], code: str) -> None:
    err = exc_info.value
    assert getattr(err, "code") == code
    assert getattr(err, "code") in extgen.VALID_ERROR_CODES


def test_import_extgen_module_smoke() -> None:
    assert callable(extgen.main)


def test_build_argument_parser_exposes_surface_and_defaults() -> None:
    parser = extgen.build_argument_parser()
    option_actions = {
        option: action for action in parser._actions for option in action.option_strings
    }

    assert {
        "--container",
        "--all-containers",
        "--family",
        "--package",
        "--output-dir",
        "--list-containers",
        "--list-representations",
        "--list-operators",
    }.issubset(option_actions.keys())
    assert option_actions["--output-dir"].default == extgen.DEFAULT_OUTPUT_DIR
    assert option_actions["--package"].default is None
    assert tuple(option_actions["--family"].choices) == ("logical", "arithmetic")


@pytest.mark.parametrize(
    "argv",
    [
        ["--container", "RAI", "--all-containers"],
        ["--list-containers", "--list-operators"],
        ["--family", "bitwise"],
    ],
)
def test_parse_args_rejects_invalid_combinations(argv: list[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        extgen.parse_args(argv)

    assert exc_info.value.code == 2


def test_parse_args_collects_space_separated_containers() -> None:
    args = extgen.parse_args(["--container", "RA", "RAI", "--container", "RRA"])

    assert args.container == [["RA", "RAI"], ["RRA"]]


def test_validate_config_defaults_to_all_containers_and_families(
    make_args: Callable[..., object],
) -> None:
    config = extgen.validate_config(make_args())

    assert isinstance(config, extgen.GenerateConfig)
    assert config.containers == ("RA", "RAI", "RRA", "RRARI")
    assert config.families == ("logical", "arithmetic")
    assert config.package == extgen.DEFAULT_PACKAGE


def test_validate_config_normalizes_and_dedupes_containers(
    make_args: Callable[..., object],
) -> None:
    config = extgen.validate_config(
        make_args(container=[["RAI", "RA"], ["RAI"]], family=["arithmetic"])
    )

    assert config.containers == ("RAI", "RA")
    assert config.families == ("arithmetic",)


def test_validate_config_unknown_container_is_config_error(
    make_args: Callable[..., object],
) -> None:
    with pytest.raises(extgen.ConfigError) as exc_info:
        extgen.validate_config(make_args(container=[["II"]]))

    _assert_config_code(exc_info, "UNKNOWN_CONTAINER")


@pytest.mark.parametrize("package", ["Org.Ntakt", "org..ntakt", "1org", "org.ntakt."])
def test_validate_config_rejects_invalid_package(
    make_args: Callable[..., object], package: str
) -> None:
    with pytest.raises(extgen.ConfigError) as exc_info:
        extgen.validate_config(make_args(package=package))

    _assert_config_code(exc_info, "INVALID_PACKAGE_NAME")


def test_validate_config_rejects_generate_with_discovery(
    make_args: Callable[..., object],
) -> None:
    with pytest.raises(extgen.ConfigError) as exc_info:
        extgen.validate_config(make_args(container=[["RA"]], list_containers=True))

    _assert_config_code(exc_info, "CONFLICT_GENERATE_DISCOVERY")


@pytest.mark.parametrize(
    ("flag", "command"),
    [
        ("list_containers", "list-containers"),
        ("list_representations", "list-representations"),
        ("list_operators", "list-operators"),
    ],
)
def test_validate_config_discovery_commands(
    make_args: Callable[..., object], flag: str, command: str
) -> None:
    config = extgen.validate_config(make_args(**{flag: True}))

    assert config == extgen.DiscoveryConfig(command=command)


def test_generate_config_is_frozen(tmp_path: Path) -> None:
    config = extgen.GenerateConfig(("RA",), ("logical",), "org.ntakt", tmp_path)

    with pytest.raises(FrozenInstanceError):
        config.package = "other"  # type: ignore[misc]


def test_main_prints_config_error_and_exits_1(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr("sys.argv", ["extgen.py", "--container", "NOPE"])

    with pytest.raises(SystemExit) as exc_info:
        extgen.main()

    out = capsys.readouterr().out
    assert exc_info.value.code == 1
    assert "Config error [UNKNOWN_CONTAINER]: Unknown container identifier: NOPE" in out
    assert "Hint: Use one of: RA, RAI, RRA, RRARI." in out
