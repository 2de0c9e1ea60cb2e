import argparse
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

GENERATOR_DIR = Path(__file__).resolve().parent.parent
if str(GENERATOR_DIR) not in sys.path:
    sys.path.insert(0, str(GENERATOR_DIR))

import extgen  # noqa: E402


@pytest.fixture
def registry() -> extgen.Registry:
    return extgen.default_registry()


@pytest.fixture
def rep(registry: extgen.Registry) -> Callable[[str], extgen.Representation]:
    return registry.representation


@pytest.fixture
def op(registry: extgen.Registry) -> Callable[[str], extgen.Operator]:
    def _op(name: str) -> extgen.Operator:
        for candidate in registry.arithmetic + registry.comparisons:
            if candidate.name == name:
                return candidate
        raise KeyError(name)

    return _op


@pytest.fixture
def make_args(tmp_path: Path) -> Callable[..., argparse.Namespace]:
    def _make_args(**overrides: object) -> argparse.Namespace:
        base_args: dict[str, object] = {
            "container": None,
            "all_containers": False,
            "family": None,
            "package": None,
            "output_dir": tmp_path / "out",
            "list_containers": False,
            "list_representations": False,
            "list_operators": False,
        }
        base_args.update(overrides)
        return argparse.Namespace(**base_args)

    return _make_args
