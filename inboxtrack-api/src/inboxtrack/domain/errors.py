"""Error taxonomy for the ingestion pipeline."""


class InboxTrackError(Exception):
    """Base class for pipeline errors."""


class CryptoError(InboxTrackError):
    """Token vault misconfiguration, tampering or wrong key."""


class GatewayError(InboxTrackError):
    """Mailbox provider unreachable or returned an unusable response."""


class ClassificationError(InboxTrackError):
    """Relevance classification call failed or answered ambiguously."""


class ExtractionError(InboxTrackError):
    """Extraction call failed or returned malformed structured output."""


class ReconciliationError(InboxTrackError):
    """Record store write conflict while reconciling one message."""


class NotifyError(InboxTrackError):
    """Publishing a change event to subscribers failed."""
