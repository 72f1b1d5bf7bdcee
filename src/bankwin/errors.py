"""Structured error handling with context + cause + fix pattern.

All bankwin errors follow a consistent pattern that provides:
- Context: Which stage and operation was being attempted
- Cause: Why it failed
- Fix: How to resolve the issue

Errors are raised at the boundary of the failing component and propagate
unchanged to the caller. Nothing in the library retries or swallows them.
"""

from __future__ import annotations


class BankwinError(Exception):
    """Base error with structured messaging.

    All bankwin errors inherit from this class and provide
    context, cause, and fix information.
    """

    def __init__(self, context: str, cause: str, fix: str) -> None:
        self.context = context
        self.cause = cause
        self.fix = fix
        message = f"{context}\n\nCause: {cause}\n\nFix: {fix}"
        super().__init__(message)

    def to_dict(self) -> dict:
        """Serialize error to structured dict for JSON output."""
        return {
            "error": True,
            "code": type(self).__name__,
            "context": self.context,
            "cause": self.cause,
            "fix": self.fix,
        }


class ConfigurationError(BankwinError):
    """Configuration file or settings related errors."""

    pass


class ConfigNotFoundError(ConfigurationError):
    """Configuration file not found."""

    def __init__(self, path: str) -> None:
        super().__init__(
            context=f"Loading configuration from '{path}'",
            cause="Configuration file not found",
            fix=f"Create a bankwin.yaml file at '{path}' or call load_settings() with an existing path",
        )


class ConfigValidationError(ConfigurationError):
    """Configuration validation failed."""

    def __init__(self, path: str, details: str) -> None:
        super().__init__(
            context=f"Validating configuration from '{path}'",
            cause=details,
            fix="Check the configuration file matches the expected schema. See AnalyticsSettings for the available keys.",
        )


# ---------------------------------------------------------------------------
# Entity store
# ---------------------------------------------------------------------------


class IntegrityError(BankwinError):
    """Referential or domain violation found while loading the entity store."""

    pass


class MissingReferenceError(IntegrityError):
    """A foreign key points at a parent entity that does not exist."""

    def __init__(self, kind: str, key: object, parent_kind: str, parent_key: object) -> None:
        self.kind = kind
        self.key = key
        self.parent_kind = parent_kind
        self.parent_key = parent_key
        super().__init__(
            context=f"Loading {kind} {key!r} into the entity store",
            cause=f"{kind} {key!r} references {parent_kind} {parent_key!r}, which does not exist",
            fix=f"Add {parent_kind} {parent_key!r} to the snapshot or drop the orphaned {kind}.",
        )


class AmountPolicyError(IntegrityError):
    """Transaction amount violates the configured sign policy."""

    def __init__(self, transaction_id: object, amount: object, policy: str) -> None:
        super().__init__(
            context=f"Loading transaction {transaction_id!r} into the entity store",
            cause=f"Amount {amount} is not allowed under amount_policy='{policy}'",
            fix="Set amount_policy='signed' if the snapshot models refunds or reversals.",
        )


# ---------------------------------------------------------------------------
# Join resolution
# ---------------------------------------------------------------------------


class ResolutionError(BankwinError):
    """Malformed input to the join resolver."""

    pass


class DuplicateKeyError(ResolutionError):
    """Primary key appears more than once in an entity collection."""

    def __init__(self, kind: str, key: object) -> None:
        self.kind = kind
        self.key = key
        super().__init__(
            context=f"Indexing {kind} records by primary key",
            cause=f"{kind} key {key!r} appears more than once",
            fix=f"Deduplicate the {kind} collection before loading it.",
        )


# ---------------------------------------------------------------------------
# Operators and execution
# ---------------------------------------------------------------------------


class OperatorError(BankwinError):
    """Errors raised by analytical operators."""

    pass


class InvalidPartitionError(OperatorError):
    """A partition, order, or measure key is missing on the input."""

    def __init__(self, operator: str, column: str, cause: str) -> None:
        self.operator = operator
        self.column = column
        super().__init__(
            context=f"Running operator '{operator}' on column '{column}'",
            cause=cause,
            fix="Pass column names that exist in the input table and contain no nulls.",
        )


class OperatorConfigError(OperatorError):
    """Operator parameter outside its valid range."""

    def __init__(self, operator: str, parameter: str, value: object) -> None:
        super().__init__(
            context=f"Configuring operator '{operator}'",
            cause=f"{parameter} must be a positive integer, got {value!r}",
            fix=f"Set {parameter} to 1 or greater.",
        )


class EmptyInputError(OperatorError):
    """Marker for zero-row input.

    Operators never raise this; an empty input produces an empty result
    with the operator's output schema.
    """

    pass


class EngineError(BankwinError):
    """DuckDB failed to execute a compiled query."""

    pass
