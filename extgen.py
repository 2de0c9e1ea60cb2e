"""Typed operator extensions generator for ntakt.

Generates Kotlin extension functions (comparisons, arithmetic and selection)
for every imglib2 container kind and every pair of scalar representations.
Produces one `<Container><Family>Extensions.kt` file per container and family
under src/generatedMainKotlin.

Usage:
    python extgen.py --container RAI --family logical
"""

import argparse
import math
import re
import struct
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import NamedTuple

PROJECT_ROOT = Path(__file__).parent
DEFAULT_OUTPUT_DIR = PROJECT_ROOT / "src" / "generatedMainKotlin"
DEFAULT_PACKAGE = "org.ntakt"
GENERATOR_NAME = "ntakt-extensions-gen"


# ===--- Errors ---=== #


VALID_ERROR_CODES = {
    "UNKNOWN_CONTAINER",
    "INVALID_PACKAGE_NAME",
    "CONFLICT_GENERATE_DISCOVERY",
    "UNKNOWN_INVERSE",
    "DUPLICATE_REGISTRY_ENTRY",
    "UNKNOWN_WIDENING_TARGET",
    "UNKNOWN_CATEGORY",
}


class ConfigError(Exception):
    def __init__(self, code: str, message: str, suggestion: str | None = None):
        if code not in VALID_ERROR_CODES:
            raise ValueError(f"Unknown config error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion


# ===--- Registry ---=== #


COMPLEX = "complex"
REAL = "real"
SIGNED_INTEGER = "signedInteger"
UNSIGNED_INTEGER = "unsignedInteger"
CATEGORIES = (COMPLEX, REAL, SIGNED_INTEGER, UNSIGNED_INTEGER)
INTEGER_CATEGORIES = frozenset({SIGNED_INTEGER, UNSIGNED_INTEGER})

ARITHMETIC = "arithmetic"
COMPARISON = "comparison"


class ClassRef(NamedTuple):
    package: str
    name: str

    @property
    def qualified_name(self) -> str:
        return f"{self.package}.{self.name}"


BOOL_TYPE = ClassRef("net.imglib2.type.logic", "BoolType")
BOOLEAN_TYPE = ClassRef("net.imglib2.type", "BooleanType")
TYPE = ClassRef("net.imglib2.type", "Type")
REAL_TYPE = ClassRef("net.imglib2.type.numeric", "RealType")
COMPLEX_TYPE = ClassRef("net.imglib2.type.numeric", "ComplexType")
INTEGER_TYPE = ClassRef("net.imglib2.type.numeric", "IntegerType")


@dataclass(frozen=True)
class Representation:
    name: str
    package: str
    category: str
    bits: int

    @property
    def qualified_name(self) -> str:
        return f"{self.package}.{self.name}"

    @property
    def class_ref(self) -> ClassRef:
        return ClassRef(self.package, self.name)

    @property
    def is_integer(self) -> bool:
        return self.category in INTEGER_CATEGORIES


def abbreviate(name: str) -> str:
    return "".join(ch for ch in name if ch.isupper())


@dataclass(frozen=True)
class Container:
    name: str
    package: str

    @property
    def qualified_name(self) -> str:
        return f"{self.package}.{self.name}"

    @property
    def abbreviation(self) -> str:
        return abbreviate(self.name)


@dataclass(frozen=True)
class Operator:
    """One emitted operator.

    Attributes:
        name: Kotlin function name, e.g. "plus" or "ge".
        symbol: Kotlin operator symbol used inside converter bodies.
        kind: ARITHMETIC or COMPARISON.
        capability: Marker interface the result representation implements
            for the identity path (Add, Sub, Mul, Div). None for comparisons.
        inverse: Name of the operand-swapped operator in the same catalog,
            or None when no swapped equivalent exists.
    """

    name: str
    symbol: str
    kind: str
    capability: str | None = None
    inverse: str | None = None


@dataclass(frozen=True)
class Registry:
    representations: tuple[Representation, ...]
    containers: tuple[Container, ...]
    arithmetic: tuple[Operator, ...]
    comparisons: tuple[Operator, ...]
    boolean_result: ClassRef
    integer_wide: str
    real_wide: str

    def container(self, abbreviation: str) -> Container:
        for container in self.containers:
            if container.abbreviation == abbreviation:
                return container
        known = ", ".join(c.abbreviation for c in self.containers)
        raise ConfigError(
            "UNKNOWN_CONTAINER",
            f"Unknown container identifier: {abbreviation}",
            f"Use one of: {known}.",
        )

    def representation(self, name: str) -> Representation:
        for rep in self.representations:
            if rep.name == name:
                return rep
        raise KeyError(f"Unknown representation: {name}")

    def catalog(self, kind: str) -> tuple[Operator, ...]:
        if kind == ARITHMETIC:
            return self.arithmetic
        if kind == COMPARISON:
            return self.comparisons
        raise ValueError(f"Unknown operator kind: {kind}")

    def inverse_of(self, operator: Operator) -> Operator | None:
        if operator.inverse is None:
            return None
        for candidate in self.catalog(operator.kind):
            if candidate.name == operator.inverse:
                return candidate
        return None


_INTEGER_PACKAGE = "net.imglib2.type.numeric.integer"
_REAL_PACKAGE = "net.imglib2.type.numeric.real"
_COMPLEX_PACKAGE = "net.imglib2.type.numeric.complex"

DEFAULT_REPRESENTATIONS: tuple[Representation, ...] = (
    Representation("ComplexDoubleType", _COMPLEX_PACKAGE, COMPLEX, 64),
    Representation("ComplexFloatType", _COMPLEX_PACKAGE, COMPLEX, 32),
    Representation("DoubleType", _REAL_PACKAGE, REAL, 64),
    Representation("FloatType", _REAL_PACKAGE, REAL, 32),
    Representation("LongType", _INTEGER_PACKAGE, SIGNED_INTEGER, 64),
    Representation("IntType", _INTEGER_PACKAGE, SIGNED_INTEGER, 32),
    Representation("ShortType", _INTEGER_PACKAGE, SIGNED_INTEGER, 16),
    Representation("ByteType", _INTEGER_PACKAGE, SIGNED_INTEGER, 8),
    Representation("UnsignedLongType", _INTEGER_PACKAGE, UNSIGNED_INTEGER, 64),
    Representation("UnsignedIntType", _INTEGER_PACKAGE, UNSIGNED_INTEGER, 32),
    Representation("UnsignedShortType", _INTEGER_PACKAGE, UNSIGNED_INTEGER, 16),
    Representation("UnsignedByteType", _INTEGER_PACKAGE, UNSIGNED_INTEGER, 8),
)

DEFAULT_CONTAINERS: tuple[Container, ...] = (
    Container("RandomAccessible", "net.imglib2"),
    Container("RandomAccessibleInterval", "net.imglib2"),
    Container("RealRandomAccessible", "net.imglib2"),
    Container("RealRandomAccessibleRealInterval", "net.imglib2"),
)

DEFAULT_ARITHMETIC: tuple[Operator, ...] = (
    Operator("plus", "+", ARITHMETIC, capability="Add", inverse="plus"),
    Operator("minus", "-", ARITHMETIC, capability="Sub"),
    Operator("times", "*", ARITHMETIC, capability="Mul", inverse="times"),
    Operator("div", "/", ARITHMETIC, capability="Div"),
)

DEFAULT_COMPARISONS: tuple[Operator, ...] = (
    Operator("eq", "==", COMPARISON, inverse="eq"),
    Operator("ge", ">=", COMPARISON, inverse="le"),
    Operator("le", "<=", COMPARISON, inverse="ge"),
    Operator("gt", ">", COMPARISON, inverse="lt"),
    Operator("lt", "<", COMPARISON, inverse="gt"),
)


def _check_unique(names: list[str], what: str) -> None:
    seen: set[str] = set()
    for name in names:
        if name in seen:
            raise ConfigError(
                "DUPLICATE_REGISTRY_ENTRY",
                f"Duplicate {what} in registry: {name}",
                f"Each {what} must be registered exactly once.",
            )
        seen.add(name)


def _check_inverses(catalog: tuple[Operator, ...], label: str) -> None:
    by_name = {op.name: op for op in catalog}
    for op in catalog:
        if op.inverse is None:
            continue
        if op.inverse not in by_name:
            raise ConfigError(
                "UNKNOWN_INVERSE",
                f"{label} operator '{op.name}' names unknown inverse '{op.inverse}'",
                f"Use one of: {', '.join(sorted(by_name))}, or no inverse.",
            )
        back = by_name[op.inverse].inverse
        if back != op.name:
            raise ConfigError(
                "UNKNOWN_INVERSE",
                f"{label} operator '{op.name}' names inverse '{op.inverse}', "
                f"but '{op.inverse}' names {back!r}",
                f"Declare '{op.name}' as the inverse of '{op.inverse}'.",
            )


def build_registry(
    representations: tuple[Representation, ...],
    containers: tuple[Container, ...],
    arithmetic: tuple[Operator, ...],
    comparisons: tuple[Operator, ...],
    *,
    boolean_result: ClassRef = BOOL_TYPE,
    integer_wide: str = "LongType",
    real_wide: str = "DoubleType",
) -> Registry:
    """Validate the static catalogs and freeze them into a Registry.

    Raises:
        ConfigError: DUPLICATE_REGISTRY_ENTRY, UNKNOWN_CATEGORY, UNKNOWN_INVERSE
            or UNKNOWN_WIDENING_TARGET. All of them are programmer errors in the
            declared catalogs.
    """
    _check_unique([r.name for r in representations], "representation")
    _check_unique([c.name for c in containers], "container")
    _check_unique([c.abbreviation for c in containers], "container abbreviation")
    _check_unique([op.name for op in arithmetic], "arithmetic operator")
    _check_unique([op.name for op in comparisons], "comparison operator")

    for rep in representations:
        if rep.category not in CATEGORIES:
            raise ConfigError(
                "UNKNOWN_CATEGORY",
                f"Representation {rep.name} has unknown category: {rep.category}",
                f"Use one of: {', '.join(CATEGORIES)}.",
            )

    _check_inverses(arithmetic, "Arithmetic")
    _check_inverses(comparisons, "Comparison")

    by_name = {rep.name: rep for rep in representations}
    for target, accepted in (
        (integer_wide, INTEGER_CATEGORIES),
        (real_wide, frozenset({REAL})),
    ):
        rep = by_name.get(target)
        if rep is None or rep.category not in accepted:
            raise ConfigError(
                "UNKNOWN_WIDENING_TARGET",
                f"Widening target is not a registered {'/'.join(sorted(accepted))} "
                f"representation: {target}",
                "Register the widening target or pick an existing representation.",
            )

    return Registry(
        representations=tuple(representations),
        containers=tuple(containers),
        arithmetic=tuple(arithmetic),
        comparisons=tuple(comparisons),
        boolean_result=boolean_result,
        integer_wide=integer_wide,
        real_wide=real_wide,
    )


def default_registry() -> Registry:
    return build_registry(
        DEFAULT_REPRESENTATIONS,
        DEFAULT_CONTAINERS,
        DEFAULT_ARITHMETIC,
        DEFAULT_COMPARISONS,
    )


# ===--- Promotion ---=== #


IDENTITY = "identity"
INTEGER_WIDEN = "integer-widen"
REAL_WIDEN = "real-widen"
DECISIONS = (IDENTITY, INTEGER_WIDEN, REAL_WIDEN)


def resolve(rep_a: Representation, rep_b: Representation) -> str:
    if rep_a == rep_b:
        return IDENTITY
    if rep_a.is_integer and rep_b.is_integer:
        return INTEGER_WIDEN
    return REAL_WIDEN


def result_class(
    registry: Registry,
    operator: Operator,
    rep_a: Representation,
    rep_b: Representation,
) -> ClassRef:
    """Return the scalar class a dispatch branch stores its result into."""
    if operator.kind == COMPARISON:
        return registry.boolean_result
    decision = resolve(rep_a, rep_b)
    if decision == IDENTITY:
        return rep_a.class_ref
    if decision == INTEGER_WIDEN:
        return registry.representation(registry.integer_wide).class_ref
    return registry.representation(registry.real_wide).class_ref


class DispatchBranch(NamedTuple):
    rep_a: Representation
    rep_b: Representation
    decision: str
    result: ClassRef


def plan_dispatch(
    registry: Registry, operator: Operator
) -> tuple[DispatchBranch, ...]:
    """Enumerate one branch per ordered representation pair, in registry order."""
    return tuple(
        DispatchBranch(
            rep_a=rep_a,
            rep_b=rep_b,
            decision=resolve(rep_a, rep_b),
            result=result_class(registry, operator, rep_a, rep_b),
        )
        for rep_a in registry.representations
        for rep_b in registry.representations
    )


# ===--- Kotlin function model ---=== #


@dataclass(frozen=True)
class KotlinFunction:
    """One top-level Kotlin extension function.

    Attributes:
        name: Function name, e.g. "ge".
        receiver: Receiver type as Kotlin source, e.g. "RandomAccessible<out RealType<*>>".
        parameters: (name, type) pairs in declaration order.
        returns: Return type as Kotlin source.
        body: Body statements, one per line, without indentation.
        modifiers: Leading modifiers, e.g. ("infix",).
        type_variables: Type parameter declarations, e.g. ("T : Type<T>",).
        imports: Fully qualified class names referenced by the function.
    """

    name: str
    receiver: str
    parameters: tuple[tuple[str, str], ...]
    returns: str
    body: tuple[str, ...]
    modifiers: tuple[str, ...] = ()
    type_variables: tuple[str, ...] = ()
    imports: frozenset[str] = frozenset()


def render_function(function: KotlinFunction) -> list[str]:
    if not function.body:
        raise ValueError(f"Function '{function.name}' has an empty body")

    prefix = "".join(f"{modifier} " for modifier in function.modifiers)
    type_variables = (
        f"<{', '.join(function.type_variables)}> " if function.type_variables else ""
    )
    params = ", ".join(f"{name}: {type_}" for name, type_ in function.parameters)
    lines = [
        f"{prefix}fun {type_variables}{function.receiver}.{function.name}"
        f"({params}): {function.returns} {{"
    ]
    lines.extend(f"    {statement}" for statement in function.body)
    lines.append("}")
    return lines


# ===--- Pairwise emitter ---=== #


def operand_bound(operator: Operator) -> ClassRef:
    return REAL_TYPE if operator.kind == COMPARISON else COMPLEX_TYPE


def _operand_type(container: Container, bound: ClassRef) -> str:
    return f"{container.name}<out {bound.name}<*>>"


def _return_type(registry: Registry, container: Container, operator: Operator) -> str:
    if operator.kind == COMPARISON:
        return f"{container.name}<{registry.boolean_result.name}>"
    return _operand_type(container, operand_bound(operator))


def _modifiers(operator: Operator) -> tuple[str, ...]:
    return ("infix",) if operator.kind == COMPARISON else ("operator",)


def _call(operator: Operator, left: str, right: str) -> str:
    if operator.kind == COMPARISON:
        return f"{left} {operator.name} {right}"
    return f"{left} {operator.symbol} {right}"


def converter_body(
    branch: DispatchBranch, operator: Operator, left: str, right: str
) -> str:
    """Return the converter statement computing one branch's result into `t`."""
    if branch.decision == IDENTITY:
        if operator.kind == COMPARISON:
            return f"t.set({left} {operator.symbol} {right})"
        return f"t.set({left}); t.{operator.capability.lower()}({right})"
    view = "integerLong" if branch.decision == INTEGER_WIDEN else "realDouble"
    return f"t.set({left}.{view} {operator.symbol} {right}.{view})"


def _fallback(operator: Operator, first: str, second: str) -> str:
    label = "Comparison" if operator.kind == COMPARISON else "Arithmetic"
    return (
        f'throw Exception("{label} operators not supported for combination '
        f'of voxel types: ({first}, {second})")'
    )


def _branch_imports(branches: tuple[DispatchBranch, ...]) -> set[str]:
    names: set[str] = set()
    for branch in branches:
        names.add(branch.rep_a.qualified_name)
        names.add(branch.rep_b.qualified_name)
        names.add(branch.result.qualified_name)
    return names


def emit_container_operator(
    registry: Registry, container: Container, operator: Operator
) -> KotlinFunction:
    """Emit `container <op> container` with one branch per representation pair.

    Every ordered pair drawn from the registry gets exactly one guarded
    `if (this.type is A && that.type is B) return ...` line. The final
    statement throws with both runtime types and is unreachable while the
    runtime only produces registered representations.
    """
    bound = operand_bound(operator)
    operand = _operand_type(container, bound)
    branches = plan_dispatch(registry, operator)

    body: list[str] = []
    for branch in branches:
        a = branch.rep_a.name
        b = branch.rep_b.name
        body.append(
            f"if (this.type is {a} && that.type is {b}) "
            f"return (this as {container.name}<{a}>)"
            f".convert(that as {container.name}<{b}>, {branch.result.name}()) "
            f"{{ s1, s2, t -> {converter_body(branch, operator, 's1', 's2')} }}"
        )
    body.append(_fallback(operator, "${this.type}", "${that.type}"))

    imports = _branch_imports(branches)
    imports.update({container.qualified_name, bound.qualified_name})
    if operator.kind == COMPARISON:
        imports.add(registry.boolean_result.qualified_name)

    return KotlinFunction(
        name=operator.name,
        receiver=operand,
        parameters=(("that", operand),),
        returns=_return_type(registry, container, operator),
        body=tuple(body),
        modifiers=_modifiers(operator),
        imports=frozenset(imports),
    )


# ===--- Scalar and reverse synthesis ---=== #


_INTEGRAL_PRIMITIVES = ("Long", "Int", "Short", "Byte")


def _lift_primitive(container_expr: str, primitive_expr: str) -> str:
    # Integral primitives go through setInteger so 64-bit values stay exact.
    integral = " || ".join(f"{primitive_expr} is {p}" for p in _INTEGRAL_PRIMITIVES)
    return (
        f"{container_expr}.type.createVariable().also {{ "
        f"if (it is {INTEGER_TYPE.name}<*> && ({integral})) "
        f"it.setInteger({primitive_expr}.toLong()) "
        f"else it.setReal({primitive_expr}.toDouble()) }}"
    )


def emit_container_scalar(
    registry: Registry, container: Container, operator: Operator
) -> KotlinFunction:
    """Form 1: `container <op> scalar`, dispatched over every representation pair."""
    bound = operand_bound(operator)
    branches = plan_dispatch(registry, operator)

    body: list[str] = []
    for branch in branches:
        a = branch.rep_a.name
        b = branch.rep_b.name
        body.append(
            f"if (this.type is {a} && that is {b}) "
            f"return (this as {container.name}<{a}>)"
            f".convert({branch.result.name}()) "
            f"{{ s, t -> {converter_body(branch, operator, 's', 'that')} }}"
        )
    body.append(_fallback(operator, "${this.type}", "$that"))

    imports = _branch_imports(branches)
    imports.update({container.qualified_name, bound.qualified_name})
    if operator.kind == COMPARISON:
        imports.add(registry.boolean_result.qualified_name)

    return KotlinFunction(
        name=operator.name,
        receiver=_operand_type(container, bound),
        parameters=(("that", f"{bound.name}<*>"),),
        returns=_return_type(registry, container, operator),
        body=tuple(body),
        modifiers=_modifiers(operator),
        imports=frozenset(imports),
    )


def emit_scalar_container(
    registry: Registry, container: Container, operator: Operator
) -> KotlinFunction:
    """Form 2: `scalar <op> container`, a one-line delegation.

    With an inverse the operands are swapped (`that <inverse> this`). Without
    one the scalar is lifted into a constant container over `that`'s domain
    and the container/container form does the dispatch.
    """
    bound = operand_bound(operator)
    inverse = registry.inverse_of(operator)
    if inverse is not None:
        statement = f"return {_call(inverse, 'that', 'this')}"
    else:
        statement = f"return {_call(operator, 'that.constant(this)', 'that')}"

    imports = {container.qualified_name, bound.qualified_name}
    if operator.kind == COMPARISON:
        imports.add(registry.boolean_result.qualified_name)

    return KotlinFunction(
        name=operator.name,
        receiver=f"{bound.name}<*>",
        parameters=(("that", _operand_type(container, bound)),),
        returns=_return_type(registry, container, operator),
        body=(statement,),
        modifiers=_modifiers(operator),
        imports=frozenset(imports),
    )


def emit_container_primitive(
    registry: Registry, container: Container, operator: Operator
) -> KotlinFunction:
    """Form 3: `container <op> Number`, lifting the primitive into the container's type."""
    bound = operand_bound(operator)
    statement = f"return {_call(operator, 'this', _lift_primitive('this', 'that'))}"

    imports = {
        container.qualified_name,
        bound.qualified_name,
        INTEGER_TYPE.qualified_name,
    }
    if operator.kind == COMPARISON:
        imports.add(registry.boolean_result.qualified_name)

    return KotlinFunction(
        name=operator.name,
        receiver=_operand_type(container, bound),
        parameters=(("that", "Number"),),
        returns=_return_type(registry, container, operator),
        body=(statement,),
        modifiers=_modifiers(operator),
        imports=frozenset(imports),
    )


def emit_primitive_container(
    registry: Registry, container: Container, operator: Operator
) -> KotlinFunction:
    """Form 4: `Number <op> container`, symmetric to form 2."""
    bound = operand_bound(operator)
    inverse = registry.inverse_of(operator)
    imports = {container.qualified_name, bound.qualified_name}
    if inverse is not None:
        statement = f"return {_call(inverse, 'that', 'this')}"
    else:
        lifted = f"that.constant({_lift_primitive('that', 'this')})"
        statement = f"return {_call(operator, lifted, 'that')}"
        imports.add(INTEGER_TYPE.qualified_name)

    if operator.kind == COMPARISON:
        imports.add(registry.boolean_result.qualified_name)

    return KotlinFunction(
        name=operator.name,
        receiver="Number",
        parameters=(("that", _operand_type(container, bound)),),
        returns=_return_type(registry, container, operator),
        body=(statement,),
        modifiers=_modifiers(operator),
        imports=frozenset(imports),
    )


def emit_scalar_forms(
    registry: Registry, container: Container, operator: Operator
) -> tuple[KotlinFunction, ...]:
    return (
        emit_container_scalar(registry, container, operator),
        emit_scalar_container(registry, container, operator),
        emit_container_primitive(registry, container, operator),
        emit_primitive_container(registry, container, operator),
    )


# ===--- Selection emitter ---=== #


def emit_selection(container: Container, package: str) -> tuple[KotlinFunction, ...]:
    """Emit the two `choose` overloads for a boolean-valued container.

    Both operands share the type variable T, so no representation dispatch is
    needed. The constant overload lifts its operands with `constant` and
    delegates to the container overload.
    """
    mask = f"{container.name}<out {BOOLEAN_TYPE.name}<*>>"
    parameterized = f"{container.name}<T>"
    imports = frozenset(
        {
            container.qualified_name,
            BOOLEAN_TYPE.qualified_name,
            TYPE.qualified_name,
            f"{package}.converter.TriConverter",
        }
    )
    type_variables = (f"T : {TYPE.name}<T>",)

    container_container = KotlinFunction(
        name="choose",
        receiver=mask,
        parameters=(("chooseOnTrue", parameterized), ("chooseOnFalse", parameterized)),
        returns=parameterized,
        body=(
            "return TriConverter.convert(this, chooseOnTrue, chooseOnFalse, "
            "{ chooseOnTrue.type.createVariable() }) "
            f"{{ a: {BOOLEAN_TYPE.name}<*>, b: T, c: T, t: T -> "
            "t.set(if (a.get()) b else c) }",
        ),
        type_variables=type_variables,
        imports=imports,
    )
    constant_constant = KotlinFunction(
        name="choose",
        receiver=mask,
        parameters=(("chooseOnTrue", "T"), ("chooseOnFalse", "T")),
        returns=parameterized,
        body=(
            "return this.choose(this.constant(chooseOnTrue), "
            "this.constant(chooseOnFalse))",
        ),
        type_variables=type_variables,
        imports=imports,
    )
    return container_container, constant_constant


# ===--- Extension families ---=== #


def build_logical_functions(
    registry: Registry, container: Container, package: str
) -> tuple[KotlinFunction, ...]:
    functions: list[KotlinFunction] = []
    for comparison in registry.comparisons:
        functions.append(emit_container_operator(registry, container, comparison))
    for comparison in registry.comparisons:
        functions.extend(emit_scalar_forms(registry, container, comparison))
    functions.extend(emit_selection(container, package))
    return tuple(functions)


def build_arithmetic_functions(
    registry: Registry, container: Container, package: str
) -> tuple[KotlinFunction, ...]:
    functions: list[KotlinFunction] = []
    for operator in registry.arithmetic:
        functions.append(emit_container_operator(registry, container, operator))
    for operator in registry.arithmetic:
        functions.extend(emit_scalar_forms(registry, container, operator))
    return tuple(functions)


class ExtensionFamily(NamedTuple):
    key: str
    suffix: str
    build: Callable[[Registry, Container, str], tuple[KotlinFunction, ...]]


FAMILIES: tuple[ExtensionFamily, ...] = (
    ExtensionFamily("logical", "Logical", build_logical_functions),
    ExtensionFamily("arithmetic", "Arithmetic", build_arithmetic_functions),
)
FAMILY_KEYS = tuple(family.key for family in FAMILIES)


def get_family(key: str) -> ExtensionFamily:
    for family in FAMILIES:
        if family.key == key:
            return family
    raise ValueError(f"Unknown extension family: {key}")


def get_type_file_mapping(
    registry: Registry, suffix: str, output_dir: Path
) -> dict[str, tuple[str, Path]]:
    """Map each container abbreviation to its file stem and output path.

    `RAI` with suffix "Logical" maps to
    ("RandomAccessibleIntervalLogicalExtensions",
     <output_dir>/RandomAccessibleIntervalLogicalExtensions.kt).
    """
    mapping: dict[str, tuple[str, Path]] = {}
    for container in registry.containers:
        stem = f"{container.name}{suffix}Extensions"
        mapping[container.abbreviation] = (stem, Path(output_dir) / f"{stem}.kt")
    return mapping


# ===--- File assembly ---=== #


@dataclass(frozen=True)
class ExtensionFileSpec:
    """Complete input for one generated .kt file.

    Attributes:
        filename: Output filename including the .kt extension.
        package: Kotlin package declared at the top of the file.
        container: Container kind the functions extend.
        family: Extension family suffix, e.g. "Logical".
        representation_count: Size of the representation catalog the
            functions dispatch over. Reported in the header.
        functions: Functions in emission order.
    """

    filename: str
    package: str
    container: Container
    family: str
    representation_count: int
    functions: tuple[KotlinFunction, ...]

    @property
    def imports(self) -> tuple[str, ...]:
        names: set[str] = set()
        for function in self.functions:
            names.update(function.imports)
        return tuple(
            sorted(
                name
                for name in names
                if name.rpartition(".")[0] != self.package
            )
        )


_HEADER_BORDER: str = "// x-------------------------------------------x //"


def format_file_header(spec: ExtensionFileSpec) -> list[str]:
    """Return the boxed comment lines opening every generated file.

    Output format:
        // x-------------------------------------------x //
        // | ntakt Logical extensions for RandomAccessibleInterval
        // | Generated by ntakt-extensions-gen
        // | Representations: 12 (144 pairs per operator)
        // | Do not edit by hand
        // x-------------------------------------------x //
    """
    count = spec.representation_count
    return [
        _HEADER_BORDER,
        f"// | ntakt {spec.family} extensions for {spec.container.name}",
        f"// | Generated by {GENERATOR_NAME}",
        f"// | Representations: {count} ({count * count} pairs per operator)",
        "// | Do not edit by hand",
        _HEADER_BORDER,
    ]


def assemble_file_source(spec: ExtensionFileSpec) -> str:
    """Assemble a complete Kotlin source string from an ExtensionFileSpec.

    File structure:
        <header_comment_block>
                                    <- blank line
        package <package>
                                    <- blank line
        <import lines, sorted>      <- omitted with the blank line if no imports
                                    <- blank line
        <functions separated by one blank line>
                                    <- trailing newline

    Raises:
        ValueError: If spec.filename is empty or does not end with ".kt", or
            if the spec has no functions.
        ValueError: Propagated from render_function on an empty body.
    """
    if not spec.filename or not spec.filename.endswith(".kt"):
        raise ValueError(
            f"spec.filename must be non-empty and end with '.kt', got {spec.filename!r}"
        )
    if not spec.functions:
        raise ValueError(f"{spec.filename} has no functions to emit")

    parts: list[str] = list(format_file_header(spec))
    parts.append("")
    parts.append(f"package {spec.package}")

    imports = spec.imports
    if imports:
        parts.append("")
        parts.extend(f"import {name}" for name in imports)

    for function in spec.functions:
        parts.append("")
        parts.extend(render_function(function))

    return "\n".join(parts) + "\n"


def build_extension_file(
    registry: Registry,
    abbreviation: str,
    family_key: str,
    file_name: str,
    package: str = DEFAULT_PACKAGE,
) -> ExtensionFileSpec:
    container = registry.container(abbreviation)
    family = get_family(family_key)
    return ExtensionFileSpec(
        filename=f"{file_name}.kt",
        package=package,
        container=container,
        family=family.suffix,
        representation_count=len(registry.representations),
        functions=family.build(registry, container, package),
    )


def generate_extensions(
    registry: Registry,
    abbreviation: str,
    family_key: str,
    file_name: str,
    package: str = DEFAULT_PACKAGE,
) -> str:
    """Return the generated source for one container and family.

    Pure: the same registry and arguments always give byte-identical text.

    Raises:
        ConfigError: UNKNOWN_CONTAINER when abbreviation is not registered.
    """
    spec = build_extension_file(registry, abbreviation, family_key, file_name, package)
    return assemble_file_source(spec)


# ===--- Writer ---=== #


@dataclass(frozen=True)
class FileWriteResult:
    """Result of writing a single generated file.

    Attributes:
        filename: Filename written, e.g. "RandomAccessibleLogicalExtensions.kt".
        path: Absolute path of the written file.
        line_count: Number of newline characters in the written content.
        byte_count: Number of bytes written (UTF-8 encoded).
        function_count: Number of Kotlin functions in the file.
    """

    filename: str
    path: Path
    line_count: int
    byte_count: int
    function_count: int


@dataclass(frozen=True)
class GenerationResult:
    output_dir: Path
    files: tuple[FileWriteResult, ...]

    @property
    def total_lines(self) -> int:
        return sum(f.line_count for f in self.files)


def write_extension_file(output_dir: Path, spec: ExtensionFileSpec) -> FileWriteResult:
    """Write one generated .kt file to disk.

    Thin I/O shell over assemble_file_source. Creates output_dir (and any
    missing parents) before writing.

    Raises:
        ValueError: Propagated from assemble_file_source on an invalid spec.
        OSError: Propagated directly if the filesystem write fails.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    content = assemble_file_source(spec)
    file_path = output_dir / spec.filename
    file_path.write_text(content, encoding="utf-8")
    resolved = file_path.resolve()
    return FileWriteResult(
        filename=spec.filename,
        path=resolved,
        line_count=content.count("\n"),
        byte_count=len(resolved.read_bytes()),
        function_count=len(spec.functions),
    )


# ===--- Dispatch semantics model ---=== #

# Python model of what the emitted converter bodies compute.

_INT64_MAX = (1 << 63) - 1
_INT64_MIN = -(1 << 63)


def _wrap(value: int, bits: int, signed: bool) -> int:
    value &= (1 << bits) - 1
    if signed and value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def _double_to_long(value: float) -> int:
    # JVM (long) cast semantics.
    if math.isnan(value):
        return 0
    if value >= 2.0**63:
        return _INT64_MAX
    if value <= -(2.0**63):
        return _INT64_MIN
    return math.trunc(value)


def _single(value: float) -> float:
    # Round to nearest; only values past FLT_MAX + ulp/2 overflow.
    try:
        packed = struct.pack("<f", value)
    except OverflowError:
        return math.copysign(math.inf, value)
    return struct.unpack("<f", packed)[0]


def integer_long(rep: Representation, value) -> int:
    if rep.category == COMPLEX:
        return _double_to_long(complex(value).real)
    if rep.category == REAL:
        return _double_to_long(float(value))
    return _wrap(int(value), 64, True)


def real_double(rep: Representation, value) -> float:
    if rep.category == COMPLEX:
        return float(complex(value).real)
    return float(value)


def store(rep: Representation, value):
    """Narrow a computed value into the storage of `rep`."""
    if rep.is_integer:
        return _wrap(int(value), rep.bits, rep.category == SIGNED_INTEGER)
    if rep.category == REAL:
        return _single(float(value)) if rep.bits == 32 else float(value)
    value = complex(value)
    if rep.bits == 32:
        return complex(_single(value.real), _single(value.imag))
    return value


def _truncating_div(left: int, right: int) -> int:
    if right == 0:
        raise ZeroDivisionError("integer division by zero")
    quotient = abs(left) // abs(right)
    return quotient if (left < 0) == (right < 0) else -quotient


def _real_div(left, right):
    if right != 0:
        return left / right
    if isinstance(left, complex) or isinstance(right, complex):
        return complex(math.nan, math.nan)
    if left == 0 or math.isnan(left):
        return math.nan
    return math.copysign(math.inf, left) * math.copysign(1.0, right)


_COMPARISONS: dict[str, Callable[[object, object], bool]] = {
    "==": lambda a, b: a == b,
    ">=": lambda a, b: a >= b,
    "<=": lambda a, b: a <= b,
    ">": lambda a, b: a > b,
    "<": lambda a, b: a < b,
}


def _arithmetic(symbol: str, left, right, integral: bool):
    if symbol == "+":
        return left + right
    if symbol == "-":
        return left - right
    if symbol == "*":
        return left * right
    if symbol == "/":
        return _truncating_div(left, right) if integral else _real_div(left, right)
    raise ValueError(f"Unknown arithmetic symbol: {symbol}")


def evaluate(
    registry: Registry,
    operator: Operator,
    rep_a: Representation,
    a,
    rep_b: Representation,
    b,
) -> tuple[Representation | None, object]:
    """Compute `a <op> b` the way the emitted branch for (rep_a, rep_b) does.

    Returns:
        (result representation, value). Comparisons return None as the
        representation (boolean result class) and a bool.

    Raises:
        TypeError: Ordering comparison on two complex values (identity path).
        ZeroDivisionError: Integer division by zero.
    """
    decision = resolve(rep_a, rep_b)
    if decision == IDENTITY:
        left, right = a, b
        integral = rep_a.is_integer
    elif decision == INTEGER_WIDEN:
        left, right = integer_long(rep_a, a), integer_long(rep_b, b)
        integral = True
    else:
        left, right = real_double(rep_a, a), real_double(rep_b, b)
        integral = False

    if operator.kind == COMPARISON:
        return None, _COMPARISONS[operator.symbol](left, right)

    result_rep = registry.representation(
        result_class(registry, operator, rep_a, rep_b).name
    )
    return result_rep, store(
        result_rep, _arithmetic(operator.symbol, left, right, integral)
    )


def evaluate_reversed(
    registry: Registry,
    operator: Operator,
    rep_a: Representation,
    a,
    rep_b: Representation,
    b,
) -> tuple[Representation | None, object]:
    """Compute `b <inverse> a`, the body the reverse forms delegate to."""
    inverse = registry.inverse_of(operator)
    if inverse is None:
        raise ValueError(f"Operator '{operator.name}' has no inverse")
    return evaluate(registry, inverse, rep_b, b, rep_a, a)


def evaluate_selection(mask: list, on_true: list, on_false: list) -> list:
    if not len(mask) == len(on_true) == len(on_false):
        raise ValueError(
            f"Selection operands differ in length: "
            f"{len(mask)}, {len(on_true)}, {len(on_false)}"
        )
    return [t if m else f for m, t, f in zip(mask, on_true, on_false)]


# ===--- CLI config contracts ---=== #


@dataclass(frozen=True)
class GenerateConfig:
    containers: tuple[str, ...]
    families: tuple[str, ...]
    package: str
    output_dir: Path


@dataclass(frozen=True)
class DiscoveryConfig:
    command: str


_PACKAGE_RE = re.compile(r"^[a-z_][a-z0-9_]*(\.[a-z_][a-z0-9_]*)*$")


def validate_package_name(name: str) -> str:
    if _PACKAGE_RE.match(name):
        return name
    raise ConfigError(
        "INVALID_PACKAGE_NAME",
        f"Invalid Kotlin package name: {name}",
        "Use dot-separated lowercase identifiers (for example org.ntakt).",
    )


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate typed operator extensions for ntakt containers"
    )

    container_group = parser.add_mutually_exclusive_group()
    container_group.add_argument("--container", action="append", nargs="+", default=None)
    container_group.add_argument("--all-containers", action="store_true", default=False)

    parser.add_argument("--family", action="append", choices=FAMILY_KEYS, default=None)
    parser.add_argument("--package", type=str, default=None)
    parser.add_argument("--output-dir", type=Path, default=DEFAULT_OUTPUT_DIR)

    discovery_group = parser.add_mutually_exclusive_group()
    discovery_group.add_argument(
        "--list-containers", action="store_true", default=False
    )
    discovery_group.add_argument(
        "--list-representations", action="store_true", default=False
    )
    discovery_group.add_argument("--list-operators", action="store_true", default=False)

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_argument_parser()
    return parser.parse_args(argv)


def normalize_containers(raw_containers: list[list[str]] | None) -> tuple[str, ...]:
    if raw_containers is None:
        return tuple()
    normalized: list[str] = []
    for entry in raw_containers:
        names = entry if isinstance(entry, list) else [entry]
        for name in names:
            if name not in normalized:
                normalized.append(name)
    return tuple(normalized)


def validate_config(
    args: argparse.Namespace, registry: Registry | None = None
) -> GenerateConfig | DiscoveryConfig:
    if registry is None:
        registry = default_registry()

    raw_containers = normalize_containers(args.container)
    has_generate_input = bool(
        raw_containers or args.all_containers or args.family or args.package
    )
    has_discovery_command = bool(
        args.list_containers or args.list_representations or args.list_operators
    )

    if has_generate_input and has_discovery_command:
        raise ConfigError(
            "CONFLICT_GENERATE_DISCOVERY",
            "Generate flags cannot be combined with discovery flags.",
            "Choose either generate mode or one discovery command.",
        )

    if has_discovery_command:
        if args.list_containers:
            command = "list-containers"
        elif args.list_representations:
            command = "list-representations"
        else:
            command = "list-operators"
        return DiscoveryConfig(command=command)

    if raw_containers:
        containers = tuple(registry.container(name).abbreviation for name in raw_containers)
    else:
        containers = tuple(c.abbreviation for c in registry.containers)

    requested = set(args.family or FAMILY_KEYS)
    families = tuple(key for key in FAMILY_KEYS if key in requested)

    package = validate_package_name(args.package) if args.package else DEFAULT_PACKAGE

    return GenerateConfig(
        containers=containers,
        families=families,
        package=package,
        output_dir=args.output_dir,
    )


def build_config(argv: list[str] | None = None) -> GenerateConfig | DiscoveryConfig:
    return validate_config(parse_args(argv))


# ===--- Discovery ---=== #


def format_containers_table(registry: Registry) -> str:
    """Return the --list-containers output.

    Output format:
        4 container kinds:

          RA       RandomAccessible                    net.imglib2
          ...
    """
    lines = [f"{len(registry.containers)} container kinds:", ""]
    abbr_width = max((len(c.abbreviation) for c in registry.containers), default=0)
    name_width = max((len(c.name) for c in registry.containers), default=0)
    for container in registry.containers:
        lines.append(
            f"  {container.abbreviation.ljust(abbr_width)}  "
            f"{container.name.ljust(name_width)}  {container.package}"
        )
    lines.append("")
    return "\n".join(lines)


def format_representations_table(registry: Registry) -> str:
    lines = [f"{len(registry.representations)} scalar representations:", ""]
    name_width = max((len(r.name) for r in registry.representations), default=0)
    category_width = max(len(c) for c in CATEGORIES)
    for rep in registry.representations:
        marks = []
        if rep.name == registry.integer_wide:
            marks.append("integer-widen target")
        if rep.name == registry.real_wide:
            marks.append("real-widen target")
        row = (
            f"  {rep.name.ljust(name_width)}  {rep.category.ljust(category_width)}"
            f"  {rep.bits:>2} bits"
        )
        if marks:
            row += f"  ({', '.join(marks)})"
        lines.append(row)
    lines.append("")
    return "\n".join(lines)


def format_operators_table(registry: Registry) -> str:
    lines: list[str] = []
    for title, catalog in (
        ("Arithmetic operators", registry.arithmetic),
        ("Comparison operators", registry.comparisons),
    ):
        lines.append(f"{title} ({len(catalog)}):")
        for op in catalog:
            inverse = op.inverse or "-"
            row = f"  {op.name:<6} {op.symbol:<3} inverse: {inverse:<6}"
            if op.capability:
                row += f" requires: {op.capability}"
            lines.append(row.rstrip())
        lines.append("")
    return "\n".join(lines)


def run_discovery(config: DiscoveryConfig, registry: Registry | None = None) -> None:
    if registry is None:
        registry = default_registry()
    if config.command == "list-containers":
        print(format_containers_table(registry), end="")
    elif config.command == "list-representations":
        print(format_representations_table(registry), end="")
    elif config.command == "list-operators":
        print(format_operators_table(registry), end="")
    else:
        raise ValueError(f"Unknown discovery command: {config.command}")


# ===--- Pipeline ---=== #


def run_generate(
    config: GenerateConfig, registry: Registry | None = None
) -> GenerationResult:
    """Generate and write every requested (family, container) file.

    Files are written family by family, containers in registry order within
    a family. Output is deterministic: rerunning with the same registry and
    config rewrites byte-identical files.

    Raises:
        ConfigError: UNKNOWN_CONTAINER if config names an unregistered container.
        OSError: Filesystem write failure (partial writes are not rolled back).
        ValueError: Malformed file spec.
    """
    if registry is None:
        registry = default_registry()
    print(
        f"Registry: {len(registry.representations)} representations, "
        f"{len(registry.containers)} containers, "
        f"{len(registry.arithmetic)} arithmetic + "
        f"{len(registry.comparisons)} comparison operators"
    )

    containers = [registry.container(abbreviation) for abbreviation in config.containers]
    files: list[FileWriteResult] = []
    for family_key in config.families:
        family = get_family(family_key)
        mapping = get_type_file_mapping(registry, family.suffix, config.output_dir)
        for container in containers:
            stem, _path = mapping[container.abbreviation]
            spec = build_extension_file(
                registry, container.abbreviation, family.key, stem, config.package
            )
            files.append(write_extension_file(config.output_dir, spec))
        print(f"  {family.suffix}: {len(containers)} files")

    result = GenerationResult(output_dir=Path(config.output_dir), files=tuple(files))
    print(
        f"  Written: {len(result.files)} files, "
        f"{result.total_lines} lines to {result.output_dir}"
    )

    summary = build_generation_summary(config, registry, result)
    print_generation_summary(summary)
    return result


# ===--- Summary report ---=== #


@dataclass(frozen=True)
class GenerationSummary:
    """Immutable data for the post-generation console report.

    Attributes:
        package: Kotlin package of the generated files.
        output_dir: Output directory path as string.
        representation_count: Number of registered representations.
        containers: Abbreviations of the containers generated, in order.
        families: Family suffixes generated, in order.
        files: Ordered write results.
    """

    package: str
    output_dir: str
    representation_count: int
    containers: tuple[str, ...]
    families: tuple[str, ...]
    files: tuple[FileWriteResult, ...]


def build_generation_summary(
    config: GenerateConfig, registry: Registry, result: GenerationResult
) -> GenerationSummary:
    return GenerationSummary(
        package=config.package,
        output_dir=str(result.output_dir),
        representation_count=len(registry.representations),
        containers=config.containers,
        families=tuple(get_family(key).suffix for key in config.families),
        files=result.files,
    )


def format_generation_summary(summary: GenerationSummary) -> str:
    """Render a GenerationSummary to the console string.

    Line counts use thousands separators. Returns a string with exactly one
    trailing newline.
    """
    count = summary.representation_count
    lines: list[str] = []
    lines.append("ntakt extensions generated:")
    lines.append("")
    lines.append(f"  Package:          {summary.package}")
    lines.append(f"  Output:           {summary.output_dir}")
    lines.append(f"  Representations:  {count} ({count * count} pairs per operator)")
    lines.append(f"  Containers:       {', '.join(summary.containers)}")
    lines.append(f"  Families:         {', '.join(summary.families)}")
    lines.append("")
    lines.append("  Files written:")
    name_width = max((len(f.filename) for f in summary.files), default=0)
    for file_result in summary.files:
        lines.append(
            f"    {file_result.filename.ljust(name_width)} "
            f"{file_result.function_count:>4} functions "
            f"{file_result.line_count:>7,} lines"
        )

    total_lines = sum(f.line_count for f in summary.files)
    lines.append("")
    lines.append(f"  Total: {total_lines:,} lines across {len(summary.files)} files")
    lines.append("")

    return "\n".join(lines)


def print_generation_summary(summary: GenerationSummary) -> None:
    print(format_generation_summary(summary), end="")


# ===--- Main generation ---=== #


def main():
    try:
        config = build_config()
    except ConfigError as err:
        print(f"Config error [{err.code}]: {err.message}")
        if err.suggestion:
            print(f"Hint: {err.suggestion}")
        raise SystemExit(1) from err

    if isinstance(config, DiscoveryConfig):
        run_discovery(config)
        return

    try:
        run_generate(config)
    except OSError as err:
        print(f"Error: {err}")
        raise SystemExit(1) from err
    except (RuntimeError, ValueError) as err:
        print(f"Internal error: {err}")
        raise SystemExit(1) from err


if __name__ == "__main__":
    main()
