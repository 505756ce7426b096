"""
Validation of a data graph against a ShapesGraph.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Optional, Union

from rdf_shacl.shacl.constraints import Constraint
from rdf_shacl.shacl.report import ValidationReport, ValidationResult
from rdf_shacl.shacl.shapes import Shape
from rdf_shacl.shacl.shapes_graph import ShapesGraph
from rdf_shacl.shacl.validators import Violation
from rdf_shacl.storage.graph import Graph
from rdf_shacl.terms import IRI, Literal, Term

if TYPE_CHECKING:
    from rdf_shacl.config import EngineConfig, ValidatorConfig

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\$(\w+)\}")


class _MaxErrorsReached(Exception):
    pass


class ValidationEngine:
    """
    Validates data graphs against the shapes of one ShapesGraph.

    An engine holds per-run state; use one engine per thread. The
    ShapesGraph can be shared once warmed.
    """

    def __init__(self, shapes_graph: ShapesGraph, config: Optional["EngineConfig"] = None):
        from rdf_shacl.config import EngineConfig

        self.shapes_graph = shapes_graph
        self.shapes: Graph = shapes_graph.graph
        self.config = config or EngineConfig()

        self.data_graph: Graph = Graph()
        self.report = ValidationReport()
        self._root_report = self.report
        self._in_progress: set[tuple[Term, Term]] = set()
        self._warned: set[Term] = set()

    def validate(self, data_graph: Graph) -> ValidationReport:
        """
        Validate data_graph against every targeted shape.

        Returns:
            ValidationReport with one result per failed check
        """
        self.data_graph = data_graph
        self.report = ValidationReport(allow_warnings=self.config.allow_warnings)
        self._root_report = self.report
        self._in_progress = set()

        focus_count = 0
        try:
            for shape in self.shapes_graph.get_shapes_with_target():
                if shape.deactivated:
                    logger.debug(f"Skipping deactivated shape {shape.shape_node}")
                    continue
                for focus_node in shape.get_target_nodes(data_graph):
                    focus_count += 1
                    self.validate_node_against_shape(focus_node, shape)
        except _MaxErrorsReached:
            logger.info(f"Validation stopped after {self.config.max_errors} results")

        report = self._root_report
        logger.info(
            f"Validated {focus_count} focus nodes: "
            f"{len(report.results)} results, conforms={report.conforms}"
        )
        return report

    def validate_node_against_shape(self, focus_node: Term, shape: Shape) -> bool:
        """
        Check one focus node against one shape, recording results.

        Returns True if no result was recorded. A pair that is already
        being checked further up the stack is treated as conforming.
        """
        if shape.deactivated:
            return True
        key = (focus_node, shape.shape_node)
        if key in self._in_progress:
            return True

        self._in_progress.add(key)
        try:
            before = len(self.report.results)
            value_nodes = shape.get_value_nodes(focus_node, self.data_graph)
            for constraint in shape.get_constraints():
                self.validate_constraint(focus_node, value_nodes, constraint)
            return len(self.report.results) == before
        finally:
            self._in_progress.discard(key)

    def conforms_to(self, node: Term, shape_node: Term) -> bool:
        """Check node against a shape without recording results."""
        shape = self.shapes_graph.get_shape(shape_node)
        saved = self.report
        self.report = ValidationReport()
        try:
            self.validate_node_against_shape(node, shape)
            return not self.report.results
        finally:
            self.report = saved

    def validate_constraint(self, focus_node: Term, value_nodes: list[Term], constraint: Constraint) -> None:
        component = constraint.component
        function = component.get_validation_function(constraint.shape)
        if function is None:
            if not component.has_validator() and component.node not in self._warned:
                self._warned.add(component.node)
                logger.warning(f"No validator for constraint component {component.node}")
            return

        for violation in function(self, focus_node, value_nodes, constraint):
            self._add_result(self._create_result(focus_node, constraint, violation))

    def _create_result(self, focus_node: Term, constraint: Constraint, violation: Violation) -> ValidationResult:
        shape = constraint.shape
        if violation.message:
            message: Optional[str] = violation.message
        else:
            messages = constraint.component_messages
            message = self.format_message(messages[0], constraint) if messages else None

        return ValidationResult(
            focus_node=focus_node,
            result_path=violation.path if violation.path is not None else shape.path,
            value=violation.value,
            source_shape=shape.shape_node,
            source_constraint_component=constraint.component.node,
            message=message,
            severity=shape.severity,
        )

    def format_message(self, template: str, constraint: Constraint) -> str:
        """Replace {$param} placeholders with parameter values."""

        def replace(match: re.Match) -> str:
            value = constraint.get_parameter_value(match.group(1))
            if value is None:
                return match.group(0)
            return self._display(value)

        return _PLACEHOLDER.sub(replace, template)

    def _display(self, term: Term) -> str:
        if isinstance(term, Literal):
            return term.value
        if isinstance(term, IRI):
            return term.value
        if self.shapes.is_list(term):
            return "(" + " ".join(self._display(t) for t in self.shapes.rdf_list(term)) + ")"
        return str(term)

    def _add_result(self, result: ValidationResult) -> None:
        self.report.add_result(result)
        max_errors = self.config.max_errors
        if self.report is self._root_report and max_errors and len(self.report.results) >= max_errors:
            raise _MaxErrorsReached()


def validate(
    data_graph: Graph,
    shapes: Union[Graph, ShapesGraph],
    config: Optional["ValidatorConfig"] = None,
) -> ValidationReport:
    """
    Validate a data graph against a shapes graph.

    Example:
        report = validate(Graph.from_turtle(data), Graph.from_turtle(shapes))
        if not report.conforms:
            for result in report.results:
                print(result.focus_node, result.message)
    """
    from rdf_shacl.config import ValidatorConfig

    config = config or ValidatorConfig()
    if isinstance(shapes, ShapesGraph):
        shapes_graph = shapes
    else:
        shapes_graph = ShapesGraph.build(shapes, config.shapes)
    return ValidationEngine(shapes_graph, config.engine).validate(data_graph)
