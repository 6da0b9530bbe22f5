"""Custom exceptions for partner-split."""


class PartnerSplitError(Exception):
    """Base exception for all partner-split errors."""

    pass


class ConfigurationError(PartnerSplitError):
    """Raised when configuration is invalid or missing."""

    pass


class InvalidRecordError(PartnerSplitError):
    """Raised when an expense or settlement fails integrity checks."""

    pass


class UnknownPartnerError(InvalidRecordError):
    """Raised when a record references a partner outside the configured pair."""

    def __init__(self, partner_id: str, message: str | None = None):
        self.partner_id = partner_id
        super().__init__(message or f"Unknown partner '{partner_id}'")


class RecordNotFoundError(PartnerSplitError):
    """Raised when an expense or settlement id does not exist."""

    def __init__(self, kind: str, record_id: int):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind.capitalize()} {record_id} not found")


class NothingToSettleError(PartnerSplitError):
    """Raised when a settlement is requested but the partners are even."""

    pass


class APIError(PartnerSplitError):
    """Base class for API-related errors."""

    pass


class SupabaseAPIError(APIError):
    """Raised when a Supabase REST request fails."""

    pass
