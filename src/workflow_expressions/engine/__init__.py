"""Expression engine core.

Key Components:

- Value model: closed union of Undefined, Null, Bool, Number, String,
  Sequence and Mapping, with truthiness, equality and coercion rules
- ContextSnapshot: immutable per-evaluation view of upstream node outputs
- HelperRegistry: frozen registry of pure helper functions, populated by the
  helper family modules (data, array, logic, string, math, json, date)
- TemplateEvaluator: parses ``{{ }}`` templates and evaluates them against a
  snapshot
- ExpressionConfig/ExpressionConfigLoader: YAML configuration

Architecture:
- The core is synchronous and side-effect free
- Missing data degrades to Undefined instead of raising
- Configuration errors (helper collisions, malformed syntax, unknown
  helpers) are raised before anything is evaluated
"""

from .config import ExpressionConfig, ExpressionConfigLoader, safe_environment
from .evaluator import TemplateEvaluator
from .exceptions import (
    ExpressionConfigError,
    ExpressionError,
    ExpressionEvaluationError,
    HelperRegistrationError,
    TemplateSyntaxError,
    UnknownHelperError,
    ValueConversionError,
)
from .interpolation import contains_expressions, extract_expressions, has_expressions
from .registry import Helper, HelperRegistry, create_default_registry
from .snapshot import (
    ContextSnapshot,
    ExecutionInfo,
    NodeDescriptor,
    NodeRecord,
    WorkflowInfo,
    create_snapshot,
)
from .template import Template, parse_template
from .values import (
    UNDEFINED,
    ValueKind,
    is_empty,
    is_truthy,
    kind_of,
    strict_equals,
    to_display_string,
    to_number,
    to_value,
)

__all__ = [
    # Values
    "UNDEFINED",
    "ValueKind",
    "kind_of",
    "is_truthy",
    "is_empty",
    "strict_equals",
    "to_number",
    "to_display_string",
    "to_value",
    # Snapshot
    "ContextSnapshot",
    "NodeRecord",
    "WorkflowInfo",
    "ExecutionInfo",
    "NodeDescriptor",
    "create_snapshot",
    # Registry
    "Helper",
    "HelperRegistry",
    "create_default_registry",
    # Templates
    "Template",
    "parse_template",
    "TemplateEvaluator",
    "has_expressions",
    "extract_expressions",
    "contains_expressions",
    # Configuration
    "ExpressionConfig",
    "ExpressionConfigLoader",
    "safe_environment",
    # Exceptions
    "ExpressionError",
    "ExpressionConfigError",
    "HelperRegistrationError",
    "TemplateSyntaxError",
    "UnknownHelperError",
    "ExpressionEvaluationError",
    "ValueConversionError",
]
