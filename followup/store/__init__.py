"""Note store access."""

from .client import NoteStoreClient, build_submission_form

__all__ = ["NoteStoreClient", "build_submission_form"]
