# src/models/errors.py

"""Exception taxonomy for the product pipeline."""


class ProteinMatchError(Exception):
    """Base class for all protein_match errors."""


class MalformedListingError(ProteinMatchError):
    """A raw listing lacks a field the normaliser cannot do without."""


class SourceUnavailableError(ProteinMatchError):
    """A marketplace fetch failed, timed out or is not configured."""

    def __init__(self, source_id: str, reason: str) -> None:
        super().__init__(f"{source_id}: {reason}")
        self.source_id = source_id
        self.reason = reason


class PreferenceValidationError(ProteinMatchError):
    """Diagnosis answers are missing or carry unknown values."""

    def __init__(self, problems: list[str]) -> None:
        super().__init__("; ".join(problems))
        self.problems = problems


class AllSourcesFailedError(ProteinMatchError):
    """Every marketplace fetch failed for one request."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__(
            f"All {len(errors)} sources failed: " + "; ".join(errors)
        )
        self.errors = errors
