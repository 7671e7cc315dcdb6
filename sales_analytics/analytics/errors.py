"""
Report Errors

Failures a report request can end in. Only ValidationError is the caller's
fault; the others surface as a generic server failure.
"""

from typing import List, Optional


class ReportError(Exception):
    """Base class for report failures"""


class ValidationError(ReportError):
    """A report parameter is malformed"""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid report parameters")


class DataAccessError(ReportError):
    """The record store could not be read"""

    def __init__(self, message: str, operation: Optional[str] = None):
        self.operation = operation
        super().__init__(message)


class ComputationError(ReportError):
    """Aggregation failed on data that satisfied every precondition"""
