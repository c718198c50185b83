"""Exception hierarchy for the expression engine.

Two families of failure exist:

- Configuration errors: helper name collisions, malformed template syntax,
  unknown helpers. Raised at registry build or compile time, never absorbed.
- Evaluation errors: an unexpected failure inside a helper. Missing data is
  NOT an error; it degrades to Undefined and never raises.

Exception Hierarchy:
    ExpressionError (base)
    ├── ExpressionConfigError (also a ValueError)
    │   ├── HelperRegistrationError (duplicate/invalid helper, frozen registry)
    │   ├── TemplateSyntaxError (expression cannot be parsed)
    │   └── UnknownHelperError (expression calls an unregistered helper)
    ├── ExpressionEvaluationError (helper raised unexpectedly)
    └── ValueConversionError (host object outside the value model)
"""

from __future__ import annotations


class ExpressionError(Exception):
    """Base exception for all expression engine errors.

    Example:
        >>> try:
        ...     evaluator.evaluate(template, snapshot)
        ... except ExpressionError as e:
        ...     logger.error(f"Expression failed: {e}")
    """

    pass


class ExpressionConfigError(ExpressionError, ValueError):
    """Configuration error detected before any template is evaluated."""

    pass


class HelperRegistrationError(ExpressionConfigError):
    """
    Helper registration failed.

    Raised when two helpers share a name, when a name does not follow the
    ``$identifier`` convention, or when registering into a frozen registry.

    Attributes:
        name: Helper name that failed to register
    """

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Cannot register helper '{name}': {reason}")


class TemplateSyntaxError(ExpressionConfigError):
    """
    Template expression could not be parsed.

    Attributes:
        message: Error description without location details
        source: Offending expression (or template) text
        position: Character offset inside ``source`` where parsing failed
        template_position: Offset of the expression braces inside the template
    """

    def __init__(
        self,
        message: str,
        source: str = "",
        position: int | None = None,
        *,
        template_position: int | None = None,
    ) -> None:
        self.message = message
        self.source = source
        self.position = position
        self.template_position = template_position

        detail = message
        if source:
            detail += f" in expression {source!r}"
        if position is not None:
            detail += f" at position {position}"
        if template_position is not None:
            detail += f" (template offset {template_position})"
        super().__init__(detail)


class UnknownHelperError(ExpressionConfigError):
    """
    Expression invokes a helper that is not registered.

    Attributes:
        name: Missing helper name
        available: Registered helper names at compile time
    """

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = available

        hint = ", ".join(available[:10])
        if len(available) > 10:
            hint += ", ..."
        super().__init__(f"Unknown helper '{name}'. Available helpers: {hint}")


class ExpressionEvaluationError(ExpressionError):
    """
    A helper raised an unexpected exception while evaluating an expression.

    Attributes:
        expression: Source text of the failing expression
        position: Offset of the expression braces inside the template
    """

    def __init__(self, expression: str, error: Exception, position: int | None = None) -> None:
        self.expression = expression
        self.position = position
        location = f" (template offset {position})" if position is not None else ""
        super().__init__(
            f"Failed to evaluate expression{location}: {expression}\n"
            f"Error: {type(error).__name__}: {error}"
        )

    def __repr__(self) -> str:
        return f"ExpressionEvaluationError(expression={self.expression!r})"


class ValueConversionError(ExpressionError, TypeError):
    """Host object cannot be represented in the expression value model."""

    pass
