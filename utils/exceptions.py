"""
Custom exception hierarchy for tagsort.

Every per-file failure is raised as a subclass of FileProcessingError or
RelocateError so the driver can report it and move on to the next file.
"""


class TagSortError(Exception):
    """Base class for all application-specific errors."""
    pass


class ConfigurationError(TagSortError):
    """Raised when there are configuration-related issues."""
    pass


class FileProcessingError(TagSortError):
    """Base class for errors raised while handling a single file."""

    kind = "processing"


class MetadataError(FileProcessingError):
    """Raised when tags cannot be obtained from an audio file."""

    kind = "metadata"

    def __init__(self, file_path: str, reason: str = None):
        self.file_path = file_path
        self.reason = reason

        message = f"Failed to read metadata from file: {file_path}"
        if reason:
            message += f" - {reason}"

        super().__init__(message)


class UnreadableFileError(MetadataError):
    """Raised when the file cannot be opened for reading."""

    kind = "unreadable"


class CorruptMetadataError(MetadataError):
    """Raised when a tag block is present but cannot be parsed."""

    kind = "corrupt"


class UnsupportedFormatError(MetadataError):
    """Raised when a file does not carry a supported audio extension."""

    kind = "unsupported_format"

    def __init__(self, file_path: str, format_detected: str = None):
        self.format_detected = format_detected

        if format_detected:
            reason = f"unsupported audio format '{format_detected}'"
        else:
            reason = "could not determine audio format"

        super().__init__(file_path, reason)


class RelocateError(TagSortError):
    """Raised when a file cannot be moved or copied to its destination."""

    kind = "io"

    def __init__(self, source_path: str, dest_path: str, reason: str = None):
        self.source_path = source_path
        self.dest_path = dest_path
        self.reason = reason

        message = f"Failed to relocate file from '{source_path}' to '{dest_path}'"
        if reason:
            message += f": {reason}"

        super().__init__(message)


class FilesystemError(TagSortError):
    """Raised when walking an input directory fails."""

    def __init__(self, path: str, operation: str, reason: str = None):
        self.path = path
        self.operation = operation
        self.reason = reason

        message = f"Filesystem error during {operation} on {path}"
        if reason:
            message += f": {reason}"

        super().__init__(message)
