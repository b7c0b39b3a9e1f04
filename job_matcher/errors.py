"""Error taxonomy for the matching engine.

Only ``PreconditionError`` reaches callers. The ``AIScoringError`` family is
raised by the AI scorer and resolved inside the batch matcher and search
path by retrying, scoring jobs individually, or falling back to the
heuristic scorer.
"""


class MatchingError(Exception):
    """Base class for all engine errors."""


class PreconditionError(MatchingError):
    """The candidate profile lacks the parsed fields matching needs."""


class AIScoringError(MatchingError):
    """Base class for failures of the external compatibility scorer."""


class TransientError(AIScoringError):
    """Network failure, rate limit, server error or timeout. Retryable."""


class ProtocolError(AIScoringError):
    """Empty or malformed response from the AI provider."""


class ParseError(AIScoringError):
    """Response is valid JSON but fails schema validation."""
