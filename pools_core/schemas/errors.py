"""
Schemas & Errors
File: errors.py

Purpose: Standard error taxonomy for the pool primitives.
Defines both Pydantic models for structured error communication
and Python exceptions for control flow.

Every failure is local and synchronous. Operations validate before they
mutate, so a raised exception never leaves a tree or list half-updated.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the package."""

    # Input & Shape Errors
    INVALID_INPUT = "INVALID_INPUT"
    SHAPE_MISMATCH = "SHAPE_MISMATCH"
    INVALID_BINARY_VALUE = "INVALID_BINARY_VALUE"
    INVALID_ACCESS_TYPE = "INVALID_ACCESS_TYPE"

    # Tree Bounds Errors
    INDEX_OUT_OF_BOUNDS = "INDEX_OUT_OF_BOUNDS"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    INVALID_RANGE = "INVALID_RANGE"
    LENGTH_MISMATCH = "LENGTH_MISMATCH"
    SNAPSHOT_INTEGRITY = "SNAPSHOT_INTEGRITY"

    # Key Derivation Errors
    INVALID_MNEMONIC = "INVALID_MNEMONIC"
    EMPTY_CHAIN = "EMPTY_CHAIN"

    # Serialization Errors
    CANONICALIZATION_ERROR = "CANONICALIZATION_ERROR"


# =============================================================================
# Pydantic Error Models (Structured Communication)
# =============================================================================

class PoolsError(BaseModel):
    """
    Base error model for structured error communication.

    This model is used for passing errors between layers without exceptions,
    enabling structured error handling and serialization.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.INDEX_OUT_OF_BOUNDS],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )

    def to_exception(self) -> "PoolsException":
        """Convert this error model to a raised exception."""
        return PoolsException(
            code=self.code,
            message=self.message,
            details=self.details,
        )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class PoolsException(Exception):
    """
    Base exception for all pool primitive errors.

    This exception carries structured error information and can be
    converted to/from PoolsError models.
    """

    def __init__(
        self,
        message: str,
        code: str = "POOLS_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_error_model(self) -> PoolsError:
        """Convert this exception to a PoolsError model."""
        return PoolsError(
            code=self.code,
            message=self.message,
            details=self.details,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class InvalidInputException(PoolsException):
    """Exception raised when arguments match no recognized shape."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: str = ErrorCodes.INVALID_INPUT,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            details=details,
        )


class ShapeMismatchException(InvalidInputException):
    """Exception raised when packed metadata disagrees with its payload."""

    def __init__(
        self,
        message: str,
        bit_length: int | None = None,
        container_size: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if bit_length is not None:
            full_details["bit_length"] = bit_length
        if container_size is not None:
            full_details["container_size"] = container_size
        super().__init__(
            message=message,
            details=full_details,
            code=ErrorCodes.SHAPE_MISMATCH,
        )


class InvalidBinaryValueException(PoolsException):
    """Exception raised when a bit is anything other than 0 or 1."""

    def __init__(
        self,
        value: Any,
        position: int | None = None,
    ) -> None:
        details: dict[str, Any] = {"value": repr(value)}
        if position is not None:
            details["position"] = position
        super().__init__(
            message=f"Expected binary inputs only, received {value!r} instead",
            code=ErrorCodes.INVALID_BINARY_VALUE,
            details=details,
        )


class InvalidAccessTypeException(PoolsException):
    """Exception raised for an access type other than allowlist/blocklist."""

    def __init__(self, access_type: Any) -> None:
        super().__init__(
            message=(
                "Expected a valid access type ('allowlist' or 'blocklist'), "
                f"received {access_type!r} instead"
            ),
            code=ErrorCodes.INVALID_ACCESS_TYPE,
            details={"access_type": repr(access_type)},
        )


class IndexOutOfBoundsException(PoolsException):
    """Exception raised when an index falls outside the populated range."""

    def __init__(
        self,
        index: Any,
        length: int,
        message: str | None = None,
    ) -> None:
        super().__init__(
            message=message or f"Index {index} is out of bounds of tree with size {length}",
            code=ErrorCodes.INDEX_OUT_OF_BOUNDS,
            details={"index": repr(index), "length": length},
        )


class CapacityExceededException(PoolsException):
    """Exception raised when an operation would overflow 2**levels leaves."""

    def __init__(
        self,
        requested: int,
        capacity: int,
        message: str | None = None,
    ) -> None:
        super().__init__(
            message=message or f"Requested length {requested} exceeds the tree capacity {capacity}",
            code=ErrorCodes.CAPACITY_EXCEEDED,
            details={"requested": requested, "capacity": capacity},
        )


class InvalidRangeException(PoolsException):
    """Exception raised when window bounds are malformed or out of range."""

    def __init__(
        self,
        start: Any,
        end: Any,
        message: str | None = None,
    ) -> None:
        super().__init__(
            message=message or f"Invalid window [{start!r}, {end!r})",
            code=ErrorCodes.INVALID_RANGE,
            details={"start": repr(start), "end": repr(end)},
        )


class LengthMismatchException(PoolsException):
    """Exception raised when a replacement window has the wrong length."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            message=f"Expected replacement data of length {expected}, got {actual}",
            code=ErrorCodes.LENGTH_MISMATCH,
            details={"expected": expected, "actual": actual},
        )


class SnapshotIntegrityException(PoolsException):
    """Exception raised when a verified restore finds inconsistent layers."""

    def __init__(
        self,
        message: str,
        level: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if level is not None:
            full_details["level"] = level
        super().__init__(
            message=message,
            code=ErrorCodes.SNAPSHOT_INTEGRITY,
            details=full_details,
        )


class InvalidMnemonicException(PoolsException):
    """Exception raised when a seed phrase fails checksum validation."""

    def __init__(self, message: str = "Invalid mnemonic") -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.INVALID_MNEMONIC,
        )


class EmptyChainException(PoolsException):
    """Exception raised when the latest node is requested before any exists."""

    def __init__(self, message: str = "No nodes generated yet") -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.EMPTY_CHAIN,
        )


class CanonicalizationException(PoolsException):
    """Exception raised when canonical serialization fails."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.CANONICALIZATION_ERROR,
            details=details,
        )
