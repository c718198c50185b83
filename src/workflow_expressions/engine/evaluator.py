"""
Template evaluator.

Evaluates parsed templates against a ContextSnapshot using a frozen
HelperRegistry.

Process:
    Template text
          ↓
    compile()   - length check, parse (cached), unknown helper check
          ↓
    evaluate()  - single expression: native value
                  mixed template: display strings joined with literal text

Each expression is evaluated independently, left to right. Nothing is shared
between expressions and nothing is written to the snapshot, so one evaluator
can serve any number of concurrent evaluations.

Example:
    evaluator = TemplateEvaluator(create_default_registry())
    evaluator.evaluate('{{ $json "HTTP Request" "data.id" }}', snapshot)  # 7
    evaluator.evaluate("id={{ $json \\"HTTP Request\\" \\"data.id\\" }}", snapshot)  # "id=7"
"""

from __future__ import annotations

import json
import logging
from typing import Any

from .config import ExpressionConfig
from .exceptions import (
    ExpressionError,
    ExpressionEvaluationError,
    TemplateSyntaxError,
    UnknownHelperError,
)
from .interpolation import has_expressions
from .paths import resolve_reference
from .registry import HelperRegistry
from .snapshot import ContextSnapshot
from .template import (
    ExpressionSegment,
    Literal,
    Node,
    PathReference,
    Template,
    TextSegment,
    parse_template,
)
from .values import UNDEFINED, to_display_string, to_value

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


class TemplateEvaluator:
    """
    Evaluates templates against context snapshots.

    Args:
        registry: Helper registry (frozen before first use)
        config: Engine configuration (defaults if omitted)
    """

    def __init__(self, registry: HelperRegistry, config: ExpressionConfig | None = None):
        self.registry = registry
        self.config = config or ExpressionConfig()

    def compile(self, text: str) -> Template:
        """
        Parse a template and check it against the registry.

        Raises:
            TemplateSyntaxError: If the template is too long or malformed
            UnknownHelperError: If an expression calls an unregistered helper
        """
        if len(text) > self.config.max_template_length:
            raise TemplateSyntaxError(
                f"Template is {len(text)} characters long, "
                f"limit is {self.config.max_template_length}"
            )

        template = parse_template(text)
        for name in sorted(template.helper_names()):
            if not self.registry.has(name):
                raise UnknownHelperError(name, self.registry.list_names())
        return template

    def evaluate(self, template: Any, snapshot: ContextSnapshot) -> Any:
        """
        Evaluate a template.

        Args:
            template: Template text (non-strings are returned unchanged)
            snapshot: Context snapshot for this evaluation

        Returns:
            Native value when the template is exactly one expression
            (UNDEFINED stays UNDEFINED), otherwise the rendered string
        """
        if not has_expressions(template):
            return template

        compiled = self.compile(template)
        single = compiled.single_expression
        if single is not None:
            # Copy so callers can never mutate snapshot data
            return to_value(self._evaluate_segment(single, snapshot))

        rendered = self._render(compiled, snapshot)
        if self.config.parse_json_results:
            return _maybe_parse_json(rendered)
        return rendered

    def render(self, template: Any, snapshot: ContextSnapshot) -> str:
        """Evaluate a template to a string; Undefined and null render empty."""
        if not isinstance(template, str):
            return to_display_string(template)
        if not has_expressions(template):
            return template
        return self._render(self.compile(template), snapshot)

    def evaluate_object(self, obj: Any, snapshot: ContextSnapshot) -> Any:
        """
        Evaluate every template string inside a nested structure.

        Mapping keys are left as-is; sequences come back as lists. Expressions
        that resolve to nothing leave UNDEFINED in place, so pass the result
        through ``to_json_compatible`` before serializing it.
        """
        if isinstance(obj, str):
            return self.evaluate(obj, snapshot)
        if isinstance(obj, dict):
            return {key: self.evaluate_object(value, snapshot) for key, value in obj.items()}
        if isinstance(obj, (list, tuple)):
            return [self.evaluate_object(item, snapshot) for item in obj]
        return obj

    def _render(self, template: Template, snapshot: ContextSnapshot) -> str:
        parts: list[str] = []
        for segment in template.segments:
            if isinstance(segment, TextSegment):
                parts.append(segment.text)
            else:
                parts.append(to_display_string(self._evaluate_segment(segment, snapshot)))
        return "".join(parts)

    def _evaluate_segment(self, segment: ExpressionSegment, snapshot: ContextSnapshot) -> Any:
        if segment.node is None:
            return UNDEFINED
        value = self._evaluate_node(segment.node, segment, snapshot)
        logger.debug(f"Evaluated expression {segment.source!r}")
        return value

    def _evaluate_node(
        self, node: Node, segment: ExpressionSegment, snapshot: ContextSnapshot
    ) -> Any:
        if isinstance(node, Literal):
            return node.value

        if isinstance(node, PathReference):
            if len(node.parts) == 1 and self.registry.has(node.parts[0]):
                return self._call(node.parts[0], [], segment, snapshot)
            return resolve_reference(snapshot, list(node.parts))

        args = [self._evaluate_node(arg, segment, snapshot) for arg in node.args]
        return self._call(node.name, args, segment, snapshot)

    def _call(
        self, name: str, args: list[Any], segment: ExpressionSegment, snapshot: ContextSnapshot
    ) -> Any:
        try:
            return self.registry.invoke(name, args, snapshot)
        except ExpressionError:
            raise
        except Exception as e:
            raise ExpressionEvaluationError(segment.source, e, position=segment.position) from e


def _maybe_parse_json(text: str) -> Any:
    """Parse text that looks like a JSON object or array; otherwise return it."""
    stripped = text.strip()
    if not (
        (stripped.startswith("{") and stripped.endswith("}"))
        or (stripped.startswith("[") and stripped.endswith("]"))
    ):
        return text
    try:
        return json.loads(stripped, parse_constant=_reject_constant)
    except ValueError:
        return text
