"""Exception hierarchy for the fingerprint index and suggestion pipeline."""


class SlideTimingError(Exception):
    """Base class for all SlideTiming errors."""


class ValidationError(SlideTimingError, ValueError):
    """Malformed input, rejected before any normalization happens."""


class UnknownOwnerError(SlideTimingError):
    """The owner id could not be resolved to a known author."""

    def __init__(self, owner_id: str | None):
        self.owner_id = owner_id
        super().__init__(f"Unknown owner: {owner_id!r}")


class OwnerMismatchError(SlideTimingError, PermissionError):
    """A write touched a fingerprint that belongs to another owner."""

    def __init__(self, caller_id: str, owner_id: str):
        self.caller_id = caller_id
        self.owner_id = owner_id
        super().__init__(
            f"Owner {caller_id!r} may not modify fingerprints owned by {owner_id!r}"
        )


class StoreUnavailableError(SlideTimingError):
    """The fingerprint store could not be reached or queried."""


class DuplicateFingerprintError(SlideTimingError):
    """A fingerprint already exists for the given document/slide pair."""


class FingerprintNotFoundError(SlideTimingError, LookupError):
    """No fingerprint exists for the given document/slide pair."""


class IndexDriftError(SlideTimingError):
    """Stored normalized fields no longer match a fresh recomputation."""

    def __init__(self, source_document_id: str, source_slide_id: str, fields: list[str]):
        self.source_document_id = source_document_id
        self.source_slide_id = source_slide_id
        self.fields = fields
        super().__init__(
            f"Fingerprint {source_document_id}/{source_slide_id} drifted on: {', '.join(fields)}"
        )
