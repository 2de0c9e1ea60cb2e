import pytest

import extgen


def test_resolve_is_total_and_matches_category_rule(registry: extgen.Registry) -> None:
    for rep_a in registry.representations:
        for rep_b in registry.representations:
            decision = extgen.resolve(rep_a, rep_b)

            assert decision in extgen.DECISIONS
            if rep_a == rep_b:
                assert decision == extgen.IDENTITY
            elif rep_a.is_integer and rep_b.is_integer:
                assert decision == extgen.INTEGER_WIDEN
            else:
                assert decision == extgen.REAL_WIDEN


def test_resolve_is_symmetric(registry: extgen.Registry) -> None:
    for rep_a in registry.representations:
        for rep_b in registry.representations:
            assert extgen.resolve(rep_a, rep_b) == extgen.resolve(rep_b, rep_a)


@pytest.mark.parametrize(
    ("a", "b", "expected"),
    [
        ("IntType", "IntType", extgen.IDENTITY),
        ("ComplexFloatType", "ComplexFloatType", extgen.IDENTITY),
        ("IntType", "UnsignedIntType", extgen.INTEGER_WIDEN),
        ("UnsignedByteType", "UnsignedLongType", extgen.INTEGER_WIDEN),
        ("ByteType", "LongType", extgen.INTEGER_WIDEN),
        ("DoubleType", "IntType", extgen.REAL_WIDEN),
        ("FloatType", "DoubleType", extgen.REAL_WIDEN),
        ("ComplexDoubleType", "UnsignedShortType", extgen.REAL_WIDEN),
    ],
)
def test_resolve_examples(rep, a: str, b: str, expected: str) -> None:
    assert extgen.resolve(rep(a), rep(b)) == expected


@pytest.mark.parametrize(
    ("a", "b", "expected"),
    [
        ("ShortType", "ShortType", "ShortType"),
        ("ShortType", "UnsignedByteType", "LongType"),
        ("ShortType", "FloatType", "DoubleType"),
        ("ComplexFloatType", "ComplexFloatType", "ComplexFloatType"),
    ],
)
def test_result_class_for_arithmetic(
    registry: extgen.Registry, rep, op, a: str, b: str, expected: str
) -> None:
    assert extgen.result_class(registry, op("plus"), rep(a), rep(b)).name == expected


def test_result_class_for_comparison_is_boolean(
    registry: extgen.Registry, rep, op
) -> None:
    result = extgen.result_class(registry, op("ge"), rep("IntType"), rep("FloatType"))

    assert result == extgen.BOOL_TYPE


def test_plan_dispatch_covers_every_ordered_pair_once(
    registry: extgen.Registry, op
) -> None:
    branches = extgen.plan_dispatch(registry, op("lt"))
    pairs = [(b.rep_a.name, b.rep_b.name) for b in branches]

    assert len(pairs) == 144
    assert len(set(pairs)) == 144
    assert pairs[0] == ("ComplexDoubleType", "ComplexDoubleType")
    assert pairs[-1] == ("UnsignedByteType", "UnsignedByteType")
