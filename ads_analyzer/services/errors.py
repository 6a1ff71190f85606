"""
Exceptions raised by the analysis pipeline.

Only input-shape problems abort a request; everything else (missing columns,
unparsable numbers, unknown currencies, narrator failures) falls back to a
safe default.
"""


class AnalysisError(Exception):
    """Base class for analysis failures"""


class AnalysisInputError(AnalysisError):
    """The request cannot be analyzed as submitted (maps to HTTP 400)"""


class EmptyDatasetError(AnalysisInputError):
    def __init__(self, message: str = "No data detected in the upload."):
        super().__init__(message)


class IncompleteBusinessContextError(AnalysisInputError):
    def __init__(self, missing_fields=None):
        self.missing_fields = list(missing_fields or [])
        message = "Incomplete business context"
        if self.missing_fields:
            message += ": " + ", ".join(self.missing_fields) + " must be positive numbers."
        else:
            message += "."
        super().__init__(message)


class NoExploitableRowsError(AnalysisInputError):
    def __init__(self, message: str = "No exploitable rows after cleaning."):
        super().__init__(message)
