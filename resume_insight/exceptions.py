"""
Error taxonomy shared by every pipeline stage.

Each error carries a stable ``error_code`` and, on the ingestion -> analysis
path, the correlation id generated when the upload event was received.
"""
from typing import List, Optional


class PipelineError(Exception):
    error_code = "PIPELINE_ERROR"
    status_code = 500

    def __init__(self, message: str, correlation_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.correlation_id = correlation_id

    def tag(self, correlation_id: str) -> "PipelineError":
        if not self.correlation_id:
            self.correlation_id = correlation_id
        return self


class ValidationError(PipelineError):
    error_code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, errors, correlation_id: Optional[str] = None):
        if isinstance(errors, str):
            errors = [errors]
        self.errors: List[str] = list(errors)
        super().__init__("; ".join(self.errors), correlation_id)


class UnsupportedFileTypeError(PipelineError):
    error_code = "UNSUPPORTED_FILE_TYPE"
    status_code = 400

    def __init__(self, extension: str, correlation_id: Optional[str] = None):
        self.extension = extension
        super().__init__(
            f"File extension '{extension}' is not supported. Only .pdf and .docx files are allowed.",
            correlation_id,
        )


class FileSizeExceededError(PipelineError):
    error_code = "FILE_TOO_LARGE"
    status_code = 413

    def __init__(self, file_size: int, max_size: int, correlation_id: Optional[str] = None):
        self.file_size = file_size
        self.max_size = max_size
        super().__init__(f"File size {file_size} bytes exceeds maximum {max_size} bytes", correlation_id)


class ExtractionFailedError(PipelineError):
    error_code = "EXTRACTION_FAILED"
    status_code = 422
    prefix = "Text extraction failed: "

    def __init__(self, message: str, correlation_id: Optional[str] = None):
        # Re-raising a captured extraction error keeps a single prefix
        if not message.startswith(self.prefix):
            message = f"{self.prefix}{message}"
        super().__init__(message, correlation_id)


class AnalyzerInvocationFailedError(PipelineError):
    error_code = "ANALYZER_INVOCATION_FAILED"
    status_code = 502


class StorageError(PipelineError):
    error_code = "STORAGE_ERROR"
    status_code = 500


class NotFoundError(PipelineError):
    error_code = "NOT_FOUND"
    status_code = 404


class ForbiddenError(PipelineError):
    error_code = "FORBIDDEN"
    status_code = 403


class InferenceError(PipelineError):
    error_code = "INFERENCE_FAILED"
    status_code = 502


class InferenceAccessDeniedError(InferenceError):
    error_code = "INFERENCE_ACCESS_DENIED"

    def __init__(self, model_id: str, detail: str = ""):
        self.model_id = model_id
        message = (
            f"Access denied to model '{model_id}'. Grant this service access to the model "
            f"on the inference endpoint (pull it or enable model access) and retry."
        )
        if detail:
            message += f" Original error: {detail}"
        super().__init__(message)
