class ExamNotFound(LookupError):
    """Raised when an exam does not exist or is not owned by the caller."""


class AttemptNotFound(LookupError):
    pass
