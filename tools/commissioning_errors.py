#!/usr/bin/env python3
"""
commissioning_errors.py - Error types for Matter commissioning tools

All errors derive from CommissioningError, which is a ValueError, so code
written against the plain ValueError convention keeps working.

Usage:
    from commissioning_errors import CommissioningError, InvalidCountError

    try:
        generate_credentials_batch(count)
    except CommissioningError as e:
        print(f"Error: {e}", file=sys.stderr)
"""

from typing import Any


class CommissioningError(ValueError):
    """Base class for all commissioning payload errors."""


class InvalidCountError(CommissioningError):
    """Batch generation requested with a count below 1."""

    def __init__(self, count: int):
        self.count = count
        super().__init__(f"Invalid credential count: {count}. Must be greater than 0")


class TooManyRequestedError(CommissioningError):
    """Batch larger than the number of distinct discriminators."""

    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(
            f"Cannot generate {count} unique credential sets: "
            f"only {limit} distinct discriminators exist"
        )


class CombinedValueOutOfRangeError(CommissioningError):
    """Manual pairing code intermediate value does not fit in 24 bits."""

    def __init__(self, combined: int, discriminator: int, passcode: int):
        self.combined = combined
        self.discriminator = discriminator
        self.passcode = passcode
        super().__init__(
            f"Combined value 0x{combined:X} exceeds 24 bits "
            f"(discriminator={discriminator}, passcode={passcode})"
            if combined >= 0 else
            f"Combined value {combined} is negative "
            f"(discriminator={discriminator}, passcode={passcode})"
        )


class SecureRandomError(CommissioningError):
    """The platform secure random source failed."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Secure random number generation failed: {cause}")


class CredentialGenerationError(CommissioningError):
    """Batch generation exceeded its draw cap."""

    def __init__(self, count: int, draws: int):
        self.count = count
        self.draws = draws
        super().__init__(
            f"Gave up after {draws} draws collecting {count} unique credential sets"
        )


class InvalidParameterError(CommissioningError):
    """A commissioning parameter is outside its allowed domain."""

    def __init__(self, parameter: str, value: Any, reason: str):
        self.parameter = parameter
        self.value = value
        self.reason = reason
        super().__init__(
            f"Invalid commissioning parameter '{parameter}' = '{value}': {reason}"
        )
