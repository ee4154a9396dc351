"""Follow-up Journey Engine - stage tracking, reminders and share checks for customer follow-ups."""

__version__ = "1.0.0"
