from __future__ import annotations

"""Error taxonomy shared by the pipeline components.

Per-item errors (InadmissibleImage, EncodingFailure, ImageRegistrationError)
are caught at the item boundary and counted. Structural errors (NotFound
family, MergeFailure) abort the current merge call and trigger restoration.
"""

__all__ = [
    "RosterQrError",
    "NotFound",
    "WorkbookNotFound",
    "WorksheetNotFound",
    "BackupNotFound",
    "UnsupportedWorkbook",
    "EmptyRoster",
    "InvalidAddress",
    "InadmissibleImage",
    "EncodingFailure",
    "ImageRegistrationError",
    "MergeFailure",
    "VerificationWarning",
]


class RosterQrError(Exception):
    """Base class for all pipeline errors."""


class NotFound(RosterQrError):
    pass


class WorkbookNotFound(NotFound):
    pass


class WorksheetNotFound(NotFound):
    pass


class BackupNotFound(NotFound):
    pass


class UnsupportedWorkbook(RosterQrError):
    """Raised when the workbook extension is not a readable Excel format."""


class EmptyRoster(RosterQrError):
    """Raised when a worksheet yields no valid roster rows."""


class InvalidAddress(RosterQrError, ValueError):
    """Raised for malformed cell references (e.g. '1A', 'A', '')."""


class InadmissibleImage(RosterQrError):
    """Image failed existence / size / format checks. Non-fatal, causes skip."""


class EncodingFailure(RosterQrError):
    """Identifier image generation failed. Non-fatal per identifier."""


class ImageRegistrationError(RosterQrError):
    """Every registration strategy failed for a single image."""


class MergeFailure(RosterQrError):
    """Fatal merge error (persist failure etc.). Triggers backup restoration."""


class VerificationWarning(UserWarning):
    """Post-merge re-read did not confirm the result. Logged only."""
