# -----------------------------
# Job failure taxonomy
# every one of these ends the run with a non-zero status
# -----------------------------
class LedgerJobError(Exception):
    exit_code = 1


class ConfigurationError(LedgerJobError):
    exit_code = 2


class TransportError(LedgerJobError):
    """An event source query failed for one chunk; the whole run is aborted."""

    exit_code = 1

    def __init__(self, chunk, cause: Exception | None = None):
        self.chunk = chunk
        self.cause = cause
        super().__init__(
            f"log query failed for blocks {chunk.from_block}-{chunk.to_block}"
            + (f": {cause}" if cause is not None else "")
        )


class NormalizationError(LedgerJobError):
    exit_code = 3


class InvariantViolation(LedgerJobError):
    exit_code = 3
