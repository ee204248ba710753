"""Per-file validation outcome models."""

from enum import Enum

from pydantic import BaseModel


class RejectionReason(str, Enum):
    """Machine-readable rule a file failed."""

    UNSUPPORTED_MEDIA_TYPE = "unsupported_media_type"
    EXTENSION_MISMATCH = "extension_mismatch"
    DIMENSION_EXCEEDED = "dimension_exceeded"
    FORMAT_NOT_DECODABLE = "format_not_decodable"
    DISALLOWED_DECODED_FORMAT = "disallowed_decoded_format"
    DECLARED_TYPE_MISMATCH = "declared_type_mismatch"
    ALPHA_IN_JPEG_ANOMALY = "alpha_in_jpeg_anomaly"
    INFECTED = "infected"
    SCAN_FAILED = "scan_failed"

    @property
    def message(self) -> str:
        """Human-readable description used in error responses."""
        messages = {
            RejectionReason.UNSUPPORTED_MEDIA_TYPE: "Invalid file type. Only JPEG, PNG, WebP, and GIF are allowed",
            RejectionReason.EXTENSION_MISMATCH: "File extension does not match file type",
            RejectionReason.DIMENSION_EXCEEDED: "Image dimensions exceed the maximum",
            RejectionReason.FORMAT_NOT_DECODABLE: "File could not be decoded as an image",
            RejectionReason.DISALLOWED_DECODED_FORMAT: "Invalid image format",
            RejectionReason.DECLARED_TYPE_MISMATCH: "Image content does not match the declared file type",
            RejectionReason.ALPHA_IN_JPEG_ANOMALY: "Suspicious file - JPEG with alpha channel",
            RejectionReason.INFECTED: "File failed the malware scan",
            RejectionReason.SCAN_FAILED: "File could not be scanned for malware",
        }
        return messages[self]


class ValidationOutcome(BaseModel):
    """Accepted, or rejected with a reason and optional detail."""

    accepted: bool
    reason: RejectionReason | None = None
    detail: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def accept(cls) -> "ValidationOutcome":
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: RejectionReason, detail: str | None = None) -> "ValidationOutcome":
        return cls(accepted=False, reason=reason, detail=detail)

    @property
    def rejected(self) -> bool:
        return not self.accepted

    def describe(self) -> str:
        """Rule message with detail appended, or empty for accepted outcomes."""
        if self.accepted or self.reason is None:
            return ""
        if self.detail:
            return f"{self.reason.message} ({self.detail})"
        return self.reason.message
