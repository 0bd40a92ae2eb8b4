# rf_mutate/pipeline/errors.py
"""
Error taxonomy for the mutant design pipeline.

Per-unit errors (ParseError, MotifNotFoundError, InvalidOrfError,
InvalidTargetError, SearchExhaustedError) are caught by the workers and
tallied. OracleInvocationError is only raised during startup validation and
aborts the run.
"""


class MutateError(Exception):
    """Base class for rf_mutate errors."""

    pass


class ParseError(MutateError):
    """Raised when a transcript entry is unreadable or malformed."""

    pass


class MotifNotFoundError(MutateError):
    """Raised when a motif specifier does not resolve to a helix."""

    pass


class InvalidOrfError(MutateError):
    """Raised when an ORF specification cannot be resolved on a transcript."""

    pass


class InvalidTargetError(MutateError):
    """Raised when a target structure cannot be applied to its motif."""

    pass


class SearchExhaustedError(MutateError):
    """Raised when a search phase ends without any accepted candidate."""

    def __init__(self, message: str, phase: str = "mutagenesis"):
        super().__init__(message)
        self.phase = phase


class OracleInvocationError(MutateError):
    """Raised when the external folding program is missing or unusable."""

    pass
