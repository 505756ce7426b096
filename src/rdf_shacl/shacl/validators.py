"""
Validator registry and the built-in SHACL Core validators.

The registry is a closed table keyed by constraint component IRI. Each
component declares its parameters and up to three validator slots:

- sh:validator: generic, used for node and property shapes
- sh:nodeValidator: node shapes only
- sh:propertyValidator: property shapes only

Validator functions take (engine, focus_node, value_nodes, constraint)
and return the violations they found. More components can be added with
ValidatorRegistry.register().
"""

from __future__ import annotations

import functools
import re
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from rdf_shacl.namespaces import SH, SH_NS
from rdf_shacl.terms import IRI, BlankNode, Literal, Term, is_true

if TYPE_CHECKING:
    from rdf_shacl.shacl.constraints import Constraint
    from rdf_shacl.shacl.engine import ValidationEngine


class ValidatorKind(Enum):
    """Validator slots of a constraint component."""

    VALIDATOR = "validator"
    NODE_VALIDATOR = "nodeValidator"
    PROPERTY_VALIDATOR = "propertyValidator"

    @property
    def predicate(self) -> IRI:
        return SH.term(self.value)


@dataclass(frozen=True)
class Violation:
    """One failed check reported by a validator function."""

    value: Optional[Term] = None
    path: Optional[Term] = None
    message: Optional[str] = None


ValidatorFunc = Callable[
    ["ValidationEngine", Term, list[Term], "Constraint"], Iterable[Violation]
]


@dataclass(frozen=True)
class Validator:
    """A validator function with its default result message."""

    func: ValidatorFunc
    message: Optional[str] = None


@dataclass(frozen=True)
class Parameter:
    """A constraint component parameter, sh: namespace unless given."""

    name: str
    optional: bool = False
    namespace: str = SH_NS

    @property
    def iri(self) -> IRI:
        return IRI(self.namespace + self.name)


@dataclass(frozen=True)
class ComponentDefinition:
    """Table row describing one constraint component."""

    iri: IRI
    parameters: tuple[Parameter, ...]
    validators: dict[ValidatorKind, Validator] = field(default_factory=dict, hash=False)


class ValidatorRegistry:
    """Constraint component definitions keyed by component IRI."""

    def __init__(self, definitions: Iterable[ComponentDefinition] = ()):
        self._definitions: dict[IRI, ComponentDefinition] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: ComponentDefinition) -> None:
        """Add or replace a component definition."""
        self._definitions[definition.iri] = definition

    def get(self, component: Term) -> Optional[ComponentDefinition]:
        return self._definitions.get(component)  # type: ignore[arg-type]

    def find_validator(self, component: Term, kind: ValidatorKind) -> Optional[Validator]:
        definition = self.get(component)
        if definition is None:
            return None
        return definition.validators.get(kind)

    def definitions(self) -> list[ComponentDefinition]:
        return list(self._definitions.values())

    def copy(self) -> "ValidatorRegistry":
        return ValidatorRegistry(self.definitions())

    def __contains__(self, component: object) -> bool:
        return component in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)


# =============================================================================
# Helpers
# =============================================================================

def _lexical(term: Term) -> str:
    if isinstance(term, Literal):
        return term.value
    if isinstance(term, IRI):
        return term.value
    return term.label


def _int_param(constraint: "Constraint", name: str) -> int:
    value = constraint.get_parameter_value(name)
    if isinstance(value, Literal):
        python_value = value.to_python()
        if isinstance(python_value, (int, Decimal)) and not isinstance(python_value, bool):
            return int(python_value)
        return int(value.value)
    raise ValueError(f"Parameter {name} must be an integer literal, got {value}")


def _numeric(value):
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def compare_terms(a: Term, b: Term) -> Optional[int]:
    """
    Compare two literals by value.

    Returns -1, 0 or 1, or None if the values are not comparable.
    """
    if not isinstance(a, Literal) or not isinstance(b, Literal):
        return None
    va, vb = a.to_python(), b.to_python()
    if _numeric(va) and _numeric(vb):
        if isinstance(va, float) or isinstance(vb, float):
            va, vb = float(va), float(vb)
    elif type(va) is not type(vb):
        return None
    try:
        if va < vb:
            return -1
        if va > vb:
            return 1
        return 0
    except TypeError:
        return None


def _language_matches(language: Optional[str], language_range: str) -> bool:
    if not language:
        return False
    language_range = language_range.lower()
    if language_range == "*":
        return True
    return language == language_range or language.startswith(language_range + "-")


_REGEX_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE}


@functools.lru_cache(maxsize=256)
def _compile_pattern(pattern: str, flags: str) -> re.Pattern:
    compiled_flags = 0
    for flag in flags:
        compiled_flags |= _REGEX_FLAGS.get(flag, 0)
    return re.compile(pattern, compiled_flags)


_NODE_KINDS = {
    SH.IRI: (IRI,),
    SH.BlankNode: (BlankNode,),
    SH.Literal: (Literal,),
    SH.BlankNodeOrIRI: (BlankNode, IRI),
    SH.BlankNodeOrLiteral: (BlankNode, Literal),
    SH.IRIOrLiteral: (IRI, Literal),
}


# =============================================================================
# Value Type Validators
# =============================================================================

def validate_class(engine, focus_node, value_nodes, constraint):
    cls = constraint.get_parameter_value("class")
    for value in value_nodes:
        if isinstance(value, Literal) or not engine.data_graph.is_instance_of(value, cls):
            yield Violation(value=value)


def validate_datatype(engine, focus_node, value_nodes, constraint):
    datatype = constraint.get_parameter_value("datatype")
    for value in value_nodes:
        if not (
            isinstance(value, Literal)
            and isinstance(datatype, IRI)
            and value.datatype == datatype.value
            and value.is_well_formed()
        ):
            yield Violation(value=value)


def validate_node_kind(engine, focus_node, value_nodes, constraint):
    allowed = _NODE_KINDS.get(constraint.get_parameter_value("nodeKind"), ())
    for value in value_nodes:
        if not isinstance(value, allowed):
            yield Violation(value=value)


# =============================================================================
# Cardinality Validators
# =============================================================================

def validate_min_count(engine, focus_node, value_nodes, constraint):
    if len(value_nodes) < _int_param(constraint, "minCount"):
        yield Violation()


def validate_max_count(engine, focus_node, value_nodes, constraint):
    if len(value_nodes) > _int_param(constraint, "maxCount"):
        yield Violation()


# =============================================================================
# Value Range Validators
# =============================================================================

def _range_validator(name: str, accept: Callable[[int], bool]) -> ValidatorFunc:
    def validate(engine, focus_node, value_nodes, constraint):
        bound = constraint.get_parameter_value(name)
        for value in value_nodes:
            result = compare_terms(value, bound)
            if result is None or not accept(result):
                yield Violation(value=value)

    validate.__name__ = f"validate_{name}"
    return validate


validate_min_exclusive = _range_validator("minExclusive", lambda c: c > 0)
validate_min_inclusive = _range_validator("minInclusive", lambda c: c >= 0)
validate_max_exclusive = _range_validator("maxExclusive", lambda c: c < 0)
validate_max_inclusive = _range_validator("maxInclusive", lambda c: c <= 0)


# =============================================================================
# String-based Validators
# =============================================================================

def validate_min_length(engine, focus_node, value_nodes, constraint):
    min_length = _int_param(constraint, "minLength")
    for value in value_nodes:
        if isinstance(value, BlankNode) or len(_lexical(value)) < min_length:
            yield Violation(value=value)


def validate_max_length(engine, focus_node, value_nodes, constraint):
    max_length = _int_param(constraint, "maxLength")
    for value in value_nodes:
        if isinstance(value, BlankNode) or len(_lexical(value)) > max_length:
            yield Violation(value=value)


def validate_pattern(engine, focus_node, value_nodes, constraint):
    pattern = constraint.get_parameter_value("pattern")
    flags = constraint.get_parameter_value("flags")
    regex = _compile_pattern(_lexical(pattern), _lexical(flags) if flags is not None else "")
    for value in value_nodes:
        if isinstance(value, BlankNode) or not regex.search(_lexical(value)):
            yield Violation(value=value)


def validate_language_in(engine, focus_node, value_nodes, constraint):
    ranges = [_lexical(t) for t in engine.shapes.rdf_list(constraint.get_parameter_value("languageIn"))]
    for value in value_nodes:
        language = value.language if isinstance(value, Literal) else None
        if not any(_language_matches(language, r) for r in ranges):
            yield Violation(value=value)


def validate_unique_lang(engine, focus_node, value_nodes, constraint):
    if not is_true(constraint.get_parameter_value("uniqueLang")):
        return
    counts = Counter(
        value.language for value in value_nodes
        if isinstance(value, Literal) and value.language
    )
    for language, count in counts.items():
        if count > 1:
            yield Violation(message=f'Language "{language}" used more than once')


# =============================================================================
# Property Pair Validators
# =============================================================================

def validate_equals(engine, focus_node, value_nodes, constraint):
    others = engine.data_graph.objects(focus_node, constraint.get_parameter_value("equals"))
    for value in value_nodes:
        if value not in others:
            yield Violation(value=value)
    for other in others:
        if other not in value_nodes:
            yield Violation(value=other)


def validate_disjoint(engine, focus_node, value_nodes, constraint):
    others = set(engine.data_graph.objects(focus_node, constraint.get_parameter_value("disjoint")))
    for value in value_nodes:
        if value in others:
            yield Violation(value=value)


def _pair_validator(name: str, accept: Callable[[int], bool]) -> ValidatorFunc:
    def validate(engine, focus_node, value_nodes, constraint):
        others = engine.data_graph.objects(focus_node, constraint.get_parameter_value(name))
        for value in value_nodes:
            for other in others:
                result = compare_terms(value, other)
                if result is None or not accept(result):
                    yield Violation(value=value)
                    break

    validate.__name__ = f"validate_{name}"
    return validate


validate_less_than = _pair_validator("lessThan", lambda c: c < 0)
validate_less_than_or_equals = _pair_validator("lessThanOrEquals", lambda c: c <= 0)


# =============================================================================
# Logical and Shape-based Validators
# =============================================================================

def validate_not(engine, focus_node, value_nodes, constraint):
    shape_node = constraint.get_parameter_value("not")
    for value in value_nodes:
        if engine.conforms_to(value, shape_node):
            yield Violation(value=value)


def validate_and(engine, focus_node, value_nodes, constraint):
    members = engine.shapes.rdf_list(constraint.get_parameter_value("and"))
    for value in value_nodes:
        if not all(engine.conforms_to(value, member) for member in members):
            yield Violation(value=value)


def validate_or(engine, focus_node, value_nodes, constraint):
    members = engine.shapes.rdf_list(constraint.get_parameter_value("or"))
    for value in value_nodes:
        if not any(engine.conforms_to(value, member) for member in members):
            yield Violation(value=value)


def validate_xone(engine, focus_node, value_nodes, constraint):
    members = engine.shapes.rdf_list(constraint.get_parameter_value("xone"))
    for value in value_nodes:
        matches = sum(1 for member in members if engine.conforms_to(value, member))
        if matches != 1:
            yield Violation(value=value)


def validate_node(engine, focus_node, value_nodes, constraint):
    shape_node = constraint.get_parameter_value("node")
    for value in value_nodes:
        if not engine.conforms_to(value, shape_node):
            yield Violation(value=value)


def validate_property(engine, focus_node, value_nodes, constraint):
    # Nested property shape results are recorded directly by the engine
    property_shape = engine.shapes_graph.get_shape(constraint.get_parameter_value("property"))
    for value in value_nodes:
        engine.validate_node_against_shape(value, property_shape)
    return ()


def _sibling_shapes(engine, constraint, qualified_shape: Term) -> list[Term]:
    shapes = engine.shapes
    siblings = []
    for parent in shapes.subjects(SH.property, constraint.shape.shape_node):
        for property_shape in shapes.objects(parent, SH.property):
            for sibling in shapes.objects(property_shape, SH.qualifiedValueShape):
                if sibling != qualified_shape and sibling not in siblings:
                    siblings.append(sibling)
    return siblings


def _qualified_count(engine, value_nodes, constraint) -> int:
    qualified_shape = constraint.get_parameter_value("qualifiedValueShape")
    siblings = []
    if is_true(constraint.get_parameter_value("qualifiedValueShapesDisjoint")):
        siblings = _sibling_shapes(engine, constraint, qualified_shape)

    count = 0
    for value in value_nodes:
        if not engine.conforms_to(value, qualified_shape):
            continue
        if any(engine.conforms_to(value, sibling) for sibling in siblings):
            continue
        count += 1
    return count


def validate_qualified_min_count(engine, focus_node, value_nodes, constraint):
    if _qualified_count(engine, value_nodes, constraint) < _int_param(constraint, "qualifiedMinCount"):
        yield Violation()


def validate_qualified_max_count(engine, focus_node, value_nodes, constraint):
    if _qualified_count(engine, value_nodes, constraint) > _int_param(constraint, "qualifiedMaxCount"):
        yield Violation()


# =============================================================================
# Other Validators
# =============================================================================

def validate_closed(engine, focus_node, value_nodes, constraint):
    if not is_true(constraint.get_parameter_value("closed")):
        return
    shapes = engine.shapes
    shape_node = constraint.shape.shape_node

    allowed = set()
    for property_shape in shapes.objects(shape_node, SH.property):
        path = shapes.value(property_shape, SH.path)
        if isinstance(path, IRI):
            allowed.add(path)
    ignored = constraint.get_parameter_value("ignoredProperties")
    if ignored is not None:
        allowed.update(shapes.rdf_list(ignored))

    for value in value_nodes:
        for _s, predicate, obj in engine.data_graph.triples(value, None, None):
            if predicate not in allowed:
                yield Violation(
                    value=obj,
                    path=predicate,
                    message=f"Predicate {predicate.value} is not allowed (closed shape)",
                )


def validate_has_value(engine, focus_node, value_nodes, constraint):
    if constraint.get_parameter_value("hasValue") not in value_nodes:
        yield Violation()


def validate_in(engine, focus_node, value_nodes, constraint):
    members = engine.shapes.rdf_list(constraint.get_parameter_value("in"))
    for value in value_nodes:
        if value not in members:
            yield Violation(value=value)


# =============================================================================
# SHACL Core Table
# =============================================================================

def _component(
    name: str,
    parameters: tuple[Parameter, ...],
    func: ValidatorFunc,
    message: Optional[str],
    kind: ValidatorKind = ValidatorKind.VALIDATOR,
) -> ComponentDefinition:
    return ComponentDefinition(
        iri=SH.term(f"{name}ConstraintComponent"),
        parameters=parameters,
        validators={kind: Validator(func=func, message=message)},
    )


_P = Parameter
_PROPERTY = ValidatorKind.PROPERTY_VALIDATOR
_NODE = ValidatorKind.NODE_VALIDATOR

CORE_COMPONENTS: tuple[ComponentDefinition, ...] = (
    _component("Class", (_P("class"),), validate_class,
               "Value does not have class {$class}"),
    _component("Datatype", (_P("datatype"),), validate_datatype,
               "Value does not have datatype {$datatype}"),
    _component("NodeKind", (_P("nodeKind"),), validate_node_kind,
               "Value does not have node kind {$nodeKind}"),
    _component("MinCount", (_P("minCount"),), validate_min_count,
               "Less than {$minCount} values", _PROPERTY),
    _component("MaxCount", (_P("maxCount"),), validate_max_count,
               "More than {$maxCount} values", _PROPERTY),
    _component("MinExclusive", (_P("minExclusive"),), validate_min_exclusive,
               "Value is not > {$minExclusive}"),
    _component("MinInclusive", (_P("minInclusive"),), validate_min_inclusive,
               "Value is not >= {$minInclusive}"),
    _component("MaxExclusive", (_P("maxExclusive"),), validate_max_exclusive,
               "Value is not < {$maxExclusive}"),
    _component("MaxInclusive", (_P("maxInclusive"),), validate_max_inclusive,
               "Value is not <= {$maxInclusive}"),
    _component("MinLength", (_P("minLength"),), validate_min_length,
               "Value has less than {$minLength} characters"),
    _component("MaxLength", (_P("maxLength"),), validate_max_length,
               "Value has more than {$maxLength} characters"),
    _component("Pattern", (_P("pattern"), _P("flags", optional=True)), validate_pattern,
               'Value does not match pattern "{$pattern}"'),
    _component("LanguageIn", (_P("languageIn"),), validate_language_in,
               "Language does not match any of {$languageIn}"),
    _component("UniqueLang", (_P("uniqueLang"),), validate_unique_lang,
               "Language used more than once", _PROPERTY),
    _component("Equals", (_P("equals"),), validate_equals,
               "Must have same values as {$equals}"),
    _component("Disjoint", (_P("disjoint"),), validate_disjoint,
               "Value node must not also be one of the values of {$disjoint}"),
    _component("LessThan", (_P("lessThan"),), validate_less_than,
               "Value is not < value of {$lessThan}", _PROPERTY),
    _component("LessThanOrEquals", (_P("lessThanOrEquals"),), validate_less_than_or_equals,
               "Value is not <= value of {$lessThanOrEquals}", _PROPERTY),
    _component("Not", (_P("not"),), validate_not,
               "Value does have shape {$not}"),
    _component("And", (_P("and"),), validate_and,
               "Value does not have all the shapes in the sh:and enumeration"),
    _component("Or", (_P("or"),), validate_or,
               "Value does not have any of the shapes in the sh:or enumeration"),
    _component("Xone", (_P("xone"),), validate_xone,
               "Value does not have exactly one of the shapes in the sh:xone enumeration"),
    _component("Node", (_P("node"),), validate_node,
               "Value does not have shape {$node}"),
    _component("Property", (_P("property"),), validate_property, None),
    _component(
        "QualifiedMinCount",
        (_P("qualifiedValueShape"), _P("qualifiedMinCount"),
         _P("qualifiedValueShapesDisjoint", optional=True)),
        validate_qualified_min_count,
        "Less than {$qualifiedMinCount} values have shape {$qualifiedValueShape}",
        _PROPERTY,
    ),
    _component(
        "QualifiedMaxCount",
        (_P("qualifiedValueShape"), _P("qualifiedMaxCount"),
         _P("qualifiedValueShapesDisjoint", optional=True)),
        validate_qualified_max_count,
        "More than {$qualifiedMaxCount} values have shape {$qualifiedValueShape}",
        _PROPERTY,
    ),
    _component("Closed", (_P("closed"), _P("ignoredProperties", optional=True)),
               validate_closed, "Predicate is not allowed (closed shape)", _NODE),
    _component("HasValue", (_P("hasValue"),), validate_has_value,
               "Missing expected value {$hasValue}"),
    _component("In", (_P("in"),), validate_in,
               "Value is not in {$in}"),
)

VALIDATORS_REGISTRY = ValidatorRegistry(CORE_COMPONENTS)
