"""Audio capture and segment encoding."""

from .types import EncodedSegment, UploadState, UploadStatus

__all__ = ["EncodedSegment", "UploadState", "UploadStatus"]
