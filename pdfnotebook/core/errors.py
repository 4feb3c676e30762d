"""
Error taxonomy shared by the pipeline, the adapters and the HTTP layer
"""
from fastapi import status


class NotebookServiceError(Exception):
    """Base error; carries the HTTP status the API layer should answer with"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationError(NotebookServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ValidationError(NotebookServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(NotebookServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class ConfigurationError(NotebookServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ExtractionError(NotebookServiceError):
    """The uploaded payload is not a parseable PDF or yielded no usable text"""

    status_code = status.HTTP_400_BAD_REQUEST


class EmbeddingError(NotebookServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class UpstreamGenerationError(NotebookServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
