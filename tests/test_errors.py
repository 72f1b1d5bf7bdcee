"""Tests for structured error handling."""

from __future__ import annotations

import bankwin.errors as errors


class TestBankwinError:
    """Tests for base error class."""

    def test_error_has_context_cause_fix(self) -> None:
        """Error contains context, cause, and fix."""
        err = errors.BankwinError(
            context="Loading snapshot",
            cause="File not found",
            fix="Create the file",
        )

        assert err.context == "Loading snapshot"
        assert err.cause == "File not found"
        assert err.fix == "Create the file"

    def test_error_message_format(self) -> None:
        """Error message combines all parts."""
        err = errors.BankwinError(
            context="Loading snapshot",
            cause="File not found",
            fix="Create the file",
        )

        message = str(err)
        assert "Loading snapshot" in message
        assert "Cause: File not found" in message
        assert "Fix: Create the file" in message

    def test_to_dict(self) -> None:
        """Structured dict carries the error class name as code."""
        err = errors.DuplicateKeyError(kind="branch", key=1)

        payload = err.to_dict()
        assert payload["error"] is True
        assert payload["code"] == "DuplicateKeyError"
        assert "branch" in payload["cause"]


class TestHierarchy:
    """Error kinds map onto the component that raises them."""

    def test_integrity_errors(self) -> None:
        assert issubclass(errors.MissingReferenceError, errors.IntegrityError)
        assert issubclass(errors.AmountPolicyError, errors.IntegrityError)

    def test_resolution_errors(self) -> None:
        assert issubclass(errors.DuplicateKeyError, errors.ResolutionError)

    def test_operator_errors(self) -> None:
        assert issubclass(errors.InvalidPartitionError, errors.OperatorError)
        assert issubclass(errors.OperatorConfigError, errors.OperatorError)
        assert issubclass(errors.EmptyInputError, errors.OperatorError)

    def test_all_share_base(self) -> None:
        for cls in (
            errors.ConfigurationError,
            errors.IntegrityError,
            errors.ResolutionError,
            errors.OperatorError,
            errors.EngineError,
        ):
            assert issubclass(cls, errors.BankwinError)


class TestMessages:
    """Concrete error messages name what failed."""

    def test_missing_reference(self) -> None:
        err = errors.MissingReferenceError(
            kind="account", key=7, parent_kind="customer", parent_key=99
        )

        assert err.kind == "account"
        assert err.parent_key == 99
        assert "customer 99" in str(err)

    def test_invalid_partition_names_operator_and_column(self) -> None:
        err = errors.InvalidPartitionError(
            operator="partitioned_rank", column="branch_id", cause="missing"
        )

        assert "partitioned_rank" in str(err)
        assert "branch_id" in str(err)

    def test_operator_config(self) -> None:
        err = errors.OperatorConfigError(operator="ntile", parameter="buckets", value=0)

        assert "buckets" in str(err)
        assert "0" in err.cause

    def test_config_not_found(self) -> None:
        err = errors.ConfigNotFoundError("/path/to/bankwin.yaml")

        assert "/path/to/bankwin.yaml" in str(err)
        assert "not found" in str(err).lower()
