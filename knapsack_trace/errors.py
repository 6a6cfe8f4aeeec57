"""Exception hierarchy for the knapsack trace solvers.

Two families are kept apart:
- InputError: the decoded argument list is unusable (missing header values,
  malformed numeric fields).
- ContractViolation: the values decode fine but violate a domain invariant
  (negative capacity, non-positive weight, cyclic parent pointers, ...).

Every check runs before a DP table is allocated, so a failing call never
leaves a partially filled table behind.
"""


class KnapsackError(Exception):
    """Base class for all errors raised by this package."""


class ConfigError(KnapsackError, ValueError):
    """Raised when a configuration source contains unknown or invalid keys."""


# ----------------------------
# Input errors
# ----------------------------

class InputError(KnapsackError, ValueError):
    """Raised when the positional input cannot be decoded."""


class InsufficientArgumentsError(InputError):
    """Raised when header values (capacity, K, item count) are missing."""


class MalformedFieldError(InputError):
    """Raised when an attribute string is non-numeric or lacks a separator."""

    def __init__(self, field, reason):
        self.field = field
        self.reason = reason
        super().__init__(f"Malformed field {field!r}: {reason}")


# ----------------------------
# Contract violations
# ----------------------------

class ContractViolation(KnapsackError, ValueError):
    """Raised when decoded input violates a domain invariant."""


class InvalidCapacityError(ContractViolation):
    """Raised for a negative capacity bound."""


class InvalidWeightError(ContractViolation):
    """Raised for an item whose weight is not strictly positive."""


class InvalidValueError(ContractViolation):
    """Raised for an item whose value is negative."""


class InvalidCountError(ContractViolation):
    """Raised for a multiplicity ceiling below one."""


class InvalidTypeError(ContractViolation):
    """Raised for a mixed-variant type tag outside {0, 1, 2}."""


class InvalidDependencyError(ContractViolation):
    """Raised for a parent pointer that does not reference a usable item."""


class CyclicDependencyError(ContractViolation):
    """Raised when parent pointers form a cycle."""

    def __init__(self, cycle):
        self.cycle = list(cycle)
        path = " -> ".join(str(i + 1) for i in self.cycle)
        super().__init__(f"Parent pointers form a cycle: {path}")


class AttachmentLimitError(ContractViolation):
    """Raised when a main item has more attachments than the configured ceiling."""
