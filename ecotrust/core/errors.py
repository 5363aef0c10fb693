"""
Pipeline exception types.

Only the stamp-and-store stage may abort a submission; everything it raises
derives from `StorageStageError` so callers need a single except clause.
"""


class PipelineError(Exception):
    """Base class for all pipeline failures."""


class StorageStageError(PipelineError):
    """Evidence could not be turned into a durably stored, stamped artifact."""


class MediaDecodeError(StorageStageError):
    """Image bytes could not be decoded (corrupt, unsupported, or too large)."""


class UploadError(StorageStageError):
    """The object store rejected or failed the upload."""


class InvalidStateTransition(PipelineError):
    """A submission tried to move backwards or re-enter a state."""
