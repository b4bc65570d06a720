# eloqua_toolbox/utils/exceptions.py - Custom exception classes

from fastapi import HTTPException, status


class BulkSubmitError(Exception):
    """Base class for form bulk submit failures that abort a whole job."""


class CsvIngestionError(BulkSubmitError):
    pass


class EmptyInputError(CsvIngestionError):
    def __init__(self, message: str = "CSV data is empty"):
        super().__init__(message)


class MalformedCsvError(CsvIngestionError):
    def __init__(self, message: str = "CSV must have at least a header row and one data row"):
        super().__init__(message)


class CsvTooLargeError(CsvIngestionError):
    def __init__(self, size_bytes: int, limit_bytes: int):
        super().__init__(f"CSV data is too large ({size_bytes} bytes, limit {limit_bytes})")
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes


class EmptyResultsError(BulkSubmitError):
    def __init__(self, message: str = "Cannot summarize an empty result set"):
        super().__init__(message)


class NotFoundError(HTTPException):
    def __init__(self, resource: str, identifier: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} with ID '{identifier}' not found",
        )


class ForbiddenError(HTTPException):
    def __init__(self, message: str = "Access denied"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=message,
        )


class ValidationError(HTTPException):
    def __init__(self, message: str):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=message,
        )
