"""
Error taxonomy for the generation pipeline.

Client-caused errors (validation, not found, forbidden) are kept apart from
system failures (storage, provider) so the HTTP layer can map each to its own
status code and only the latter are logged as errors.
"""

from typing import Optional


class MealgenError(Exception):
    """Base class; ``status_code`` is the HTTP status the API layer reports."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class JobValidationError(MealgenError):
    status_code = 400


class AuthenticationError(MealgenError):
    status_code = 401


class JobForbiddenError(MealgenError):
    status_code = 403

    def __init__(self, job_id: str) -> None:
        super().__init__("Unauthorized")
        self.job_id = job_id


class JobNotFoundError(MealgenError):
    status_code = 404

    def __init__(self, job_id: str) -> None:
        super().__init__("Job not found")
        self.job_id = job_id


class StorageError(MealgenError):
    status_code = 500


class ParseError(MealgenError):
    """Provider text could not be turned into a domain object. ``raw`` is never dropped."""

    status_code = 422

    def __init__(self, reason: str, raw: str, detail: Optional[str] = None) -> None:
        super().__init__(reason if not detail else f"{reason}: {detail}")
        self.reason = reason
        self.raw = raw
        self.detail = detail


class AllergenViolationError(ParseError):
    def __init__(self, raw: str, violations: list[str]) -> None:
        super().__init__("allergen violation", raw, detail=", ".join(violations))
        self.violations = violations


class GenerationError(MealgenError):
    """Raised once the retry policy gives up; wraps the last underlying cause."""

    status_code = 500

    def __init__(self, last_cause: BaseException, attempts: int, retryable: bool) -> None:
        super().__init__(f"Failed to generate content: {last_cause}")
        self.last_cause = last_cause
        self.attempts = attempts
        self.retryable = retryable


class ServiceUnavailableError(MealgenError):
    status_code = 503
