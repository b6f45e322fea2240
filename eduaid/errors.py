"""
Errors surfaced to the caller. Everything else in the pipeline degrades
instead of raising.
"""


class EduAidError(Exception):
    """Base class for user-visible analysis errors"""


class UnsupportedFileTypeError(EduAidError):
    def __init__(self, extension, allowed):
        self.extension = extension
        self.allowed = list(allowed)
        shown = extension or "(none)"
        super().__init__(
            f'Unsupported file format: "{shown}". '
            f'Please upload one of: {", ".join(self.allowed)}'
        )


class EmptyDatasetError(EduAidError):
    def __init__(self, message="No valid data to analyze"):
        super().__init__(message)


class AuthError(EduAidError):
    """Mock auth rejection; status_code is the HTTP status to answer with"""

    def __init__(self, message, status_code=401):
        self.status_code = status_code
        super().__init__(message)
