"""Custom exception hierarchy for WebGL Preflight.

All scan failures inherit from BuildScanError, which carries the name of
the archive being inspected so handlers can report which upload failed.
Malformed persisted scan JSON is deliberately absent here: the normalizer
absorbs it into defaults instead of raising. ReportDeliveryError is separate:
it covers handing a finished report to the mail provider.
"""


class BuildScanError(Exception):
    """Base exception for all archive inspection failures.

    Attributes:
        archive_name: Name of the uploaded archive, if known.
    """

    def __init__(self, message: str, *, archive_name: str | None = None) -> None:
        self.archive_name = archive_name
        super().__init__(message)


class InvalidArchiveError(BuildScanError):
    """Raised when the uploaded bytes are not a readable zip container."""


class BuildRootNotFoundError(BuildScanError):
    """Raised in strict mode when no Build/ folder holds both data and wasm artifacts."""


class ArchiveTooLargeError(BuildScanError):
    """Raised when the archive exceeds the configured byte ceiling.

    Attributes:
        size_bytes: Actual size of the archive.
        limit_bytes: Configured ceiling.
    """

    def __init__(
        self,
        message: str,
        *,
        size_bytes: int,
        limit_bytes: int,
        archive_name: str | None = None,
    ) -> None:
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(message, archive_name=archive_name)


class ReportDeliveryError(Exception):
    """Raised when the mail provider rejects or fails to accept a report email.

    Attributes:
        http_status: Status returned by the provider, if a response arrived.
    """

    def __init__(self, message: str, *, http_status: int | None = None) -> None:
        self.http_status = http_status
        super().__init__(message)
