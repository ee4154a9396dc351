"""Exception types for the follow-up engine."""

from followup.models import ValidationError


class FollowUpError(Exception):
    """Base class for follow-up engine errors."""
    pass


class DraftRejectedError(FollowUpError):
    """A draft failed validation and was not submitted."""

    def __init__(self, errors: list[ValidationError]):
        self.errors = errors
        messages = "; ".join(error.message for error in errors)
        super().__init__(f"Draft rejected: {messages}")

    @property
    def fields(self) -> list[str]:
        """All offending field names, in error order."""
        names: list[str] = []
        for error in self.errors:
            for name in error.fields:
                if name not in names:
                    names.append(name)
        return names


class FetchError(FollowUpError):
    """Notes or the customer directory could not be retrieved."""

    def __init__(self, message: str, status_code: int | None = None, url: str | None = None):
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class SubmissionError(FollowUpError):
    """The note store rejected a submitted note."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        field_errors: dict[str, list[str]] | None = None,
    ):
        self.status_code = status_code
        self.field_errors = field_errors or {}
        super().__init__(message)


class DuplicateShareWarning(FollowUpError):
    """Some candidate profiles were already shared; confirmation is required.

    Resubmit with the override flag to share them again. The original candidate
    ids are submitted unchanged.
    """

    def __init__(self, already_shared: list[str], candidate_ids: list[str] | None = None):
        self.already_shared = already_shared
        self.candidate_ids = candidate_ids or []
        super().__init__(
            "Profiles already shared with: " + ", ".join(already_shared)
        )


class SessionBusyError(FollowUpError):
    """A fetch is outstanding for this session."""
    pass


class SessionClosedError(FollowUpError):
    """The session was torn down."""
    pass
