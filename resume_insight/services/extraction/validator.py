import logging
from pathlib import PurePosixPath

from ...exceptions import FileSizeExceededError, UnsupportedFileTypeError
from ...schemas.extraction import FileType

logger = logging.getLogger("ingestion_validator")

ALLOWED_FILE_TYPES = (FileType.PDF, FileType.DOCX)
SIZE_WARNING_RATIO = 0.8


class IngestionValidator:
    """
    Gates an uploaded object on extension and size before any extraction work.
    """

    def __init__(self, max_file_size_bytes: int):
        if max_file_size_bytes <= 0:
            raise ValueError("max_file_size_bytes must be positive")
        self.max_file_size_bytes = max_file_size_bytes

    def validate_extension(self, object_key: str, correlation_id: str = "") -> FileType:
        extension = PurePosixPath(object_key).suffix.lower()
        logger.info(f"[{correlation_id}] Validating file extension: {extension or '<none>'}")

        file_type = FileType.from_key(object_key)
        if file_type not in ALLOWED_FILE_TYPES:
            logger.warning(f"[{correlation_id}] Validation failed: unsupported file extension '{extension}'")
            raise UnsupportedFileTypeError(extension, correlation_id)
        return file_type

    def validate_size(self, file_size: int, correlation_id: str = "") -> None:
        size_mb = file_size / 1024 / 1024
        max_mb = self.max_file_size_bytes / 1024 / 1024
        logger.info(
            f"[{correlation_id}] File size: {file_size} bytes ({size_mb:.2f} MB), "
            f"max allowed: {self.max_file_size_bytes} bytes ({max_mb:.2f} MB)"
        )

        if file_size > self.max_file_size_bytes:
            logger.warning(f"[{correlation_id}] Validation failed: file size exceeds maximum allowed size")
            raise FileSizeExceededError(file_size, self.max_file_size_bytes, correlation_id)

        if file_size > self.max_file_size_bytes * SIZE_WARNING_RATIO:
            logger.warning(f"[{correlation_id}] File size is approaching limit ({size_mb:.2f} MB / {max_mb:.2f} MB)")

    def validate(self, object_key: str, file_size: int, correlation_id: str = "") -> FileType:
        file_type = self.validate_extension(object_key, correlation_id)
        self.validate_size(file_size, correlation_id)
        return file_type
