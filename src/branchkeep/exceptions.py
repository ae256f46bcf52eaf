"""Branchkeep exception hierarchy.

All branchkeep-specific exceptions inherit from BranchkeepError.
"""


class BranchkeepError(Exception):
    """Base exception for all branchkeep errors."""


class ObjectNotFoundError(BranchkeepError):
    """Raised when an object id lookup fails."""

    def __init__(self, oid: str) -> None:
        self.oid = oid
        super().__init__(f"Object not found: {oid}")


class RefResolutionError(BranchkeepError):
    """Raised when a reference cannot be resolved to an object id.

    Covers dangling symbolic references, symbolic cycles, and entries
    that carry neither a target nor a symbolic target.
    """

    def __init__(self, ref_name: str, reason: str) -> None:
        self.ref_name = ref_name
        self.reason = reason
        super().__init__(f"Cannot resolve reference '{ref_name}': {reason}")


class StoreAccessError(BranchkeepError):
    """Raised when reading or writing the reference namespace fails."""

    def __init__(self, operation: str, ref_name: str | None, reason: str) -> None:
        self.operation = operation
        self.ref_name = ref_name
        self.reason = reason
        where = f" {ref_name}" if ref_name else ""
        super().__init__(f"{operation}{where} failed: {reason}")


class InvalidRefNameError(BranchkeepError):
    """Raised when a reference name violates naming rules."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid reference name '{name}': {reason}")


class InvalidBranchNameError(BranchkeepError):
    """Raised when a branch name violates naming rules."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid branch name '{name}': {reason}")


class BranchExistsError(BranchkeepError):
    """Raised when trying to create a branch that already exists."""

    def __init__(self, branch_name: str) -> None:
        self.branch_name = branch_name
        super().__init__(f"Branch already exists: {branch_name}")


class BranchNotFoundError(BranchkeepError):
    """Raised when a branch lookup fails."""

    def __init__(self, branch_name: str) -> None:
        self.branch_name = branch_name
        super().__init__(f"Branch not found: {branch_name}")


class AmbiguousPrefixError(BranchkeepError):
    """Raised when an object id prefix matches multiple objects."""

    def __init__(self, prefix: str, candidates: list[str]) -> None:
        self.prefix = prefix
        self.candidates = candidates
        candidate_str = ", ".join(c[:12] + "..." for c in candidates[:5])
        super().__init__(
            f"Ambiguous prefix '{prefix}'. Matches: {candidate_str}"
        )


class EventLogError(BranchkeepError):
    """Raised when the event log cannot be read or replayed."""


class GCError(BranchkeepError):
    """Raised when garbage collection fails."""


class VisibilityError(GCError):
    """Raised when the visible commit set cannot be computed.

    A sweep that hits this error performs no deletions.
    """
