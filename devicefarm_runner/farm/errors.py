"""
Device Farm Errors
==================

Exception hierarchy raised by the Device Farm client. Every error derives
from DeviceFarmError so callers can catch the whole family at once.
"""

from typing import Optional


class DeviceFarmError(Exception):
    """Base exception for Device Farm client errors."""

    pass


class CredentialsExchangeError(DeviceFarmError):
    """Raised when assuming the configured IAM role fails."""

    def __init__(self, role_arn: str, reason: str):
        super().__init__(f"Unable to assume role '{role_arn}': {reason}")
        self.role_arn = role_arn


class NotFoundError(DeviceFarmError):
    """Raised when a project or device pool name has no exact match."""

    def __init__(self, kind: str, name: str):
        super().__init__(f"{kind} '{name}' not found.")
        self.kind = kind
        self.name = name


class ArnFormatError(DeviceFarmError):
    """Raised when a resource ARN does not have the expected shape."""

    def __init__(self, arn: str, reason: str):
        super().__init__(f"Malformed Device Farm ARN '{arn}': {reason}")
        self.arn = arn


class UnrecognizedArtifactTypeError(DeviceFarmError):
    """Raised when a file extension maps to no known upload type."""

    def __init__(self, path: str, kind: str = "app"):
        super().__init__(f"Unknown {kind} artifact to upload: {path}")
        self.path = path


class MissingArtifactPathError(DeviceFarmError):
    """Raised when an upload is requested without a file path."""

    def __init__(self):
        super().__init__("Must have an artifact path.")


class LocalFileNotFoundError(DeviceFarmError):
    """Raised when the file to upload does not exist locally."""

    def __init__(self, path: str):
        super().__init__(f"File artifact {path} not found.")
        self.path = path


class UploadTransportError(DeviceFarmError):
    """Raised when the PUT to the pre-signed upload URL could not be sent."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"Upload of {name} could not be sent: {reason}")
        self.name = name


class UploadRejectedError(DeviceFarmError):
    """Raised when the pre-signed upload URL answers with a non-200 status."""

    def __init__(self, name: str, status_code: int):
        super().__init__(f"Upload of {name} returned non-200 response: {status_code}")
        self.name = name
        self.status_code = status_code


class UploadFailedError(DeviceFarmError):
    """Raised when Device Farm reports an upload as FAILED."""

    def __init__(self, name: str, metadata: Optional[str] = None):
        message = f"Upload {name} failed!"
        if metadata:
            message = f"{message} Device Farm said: {metadata}"
        super().__init__(message)
        self.name = name
        self.metadata = metadata


class WaitInterruptedError(DeviceFarmError):
    """Raised when waiting for an upload is cancelled or interrupted."""

    def __init__(self, name: str):
        super().__init__(f"Interrupted while waiting for upload {name} to complete")
        self.name = name


class UploadTimeoutError(DeviceFarmError):
    """Raised when an upload does not reach a terminal status in time."""

    def __init__(self, name: str, timeout: float, last_status: str):
        super().__init__(
            f"Upload {name} still {last_status} after {timeout:g}s"
        )
        self.name = name
        self.timeout = timeout
        self.last_status = last_status


class ArtifactDownloadError(DeviceFarmError):
    """Raised when a run artifact cannot be placed or fetched."""

    def __init__(self, artifact: str, reason: str):
        super().__init__(f"Artifact {artifact} could not be downloaded: {reason}")
        self.artifact = artifact
