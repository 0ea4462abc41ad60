"""Billing and document configuration."""

from pydantic import BaseModel, Field


class BillingConfig(BaseModel):
    """
    Tunables for issuance, reconciliation and documents.

    Durations use their natural units, like AuthConfig.
    """

    # Document numbering
    document_number_attempts: int = Field(
        default=5,
        description="Fresh numbers to try when a generated number collides",
        ge=1,
        le=20,
    )

    # Reconciliation
    paid_amount_retry_attempts: int = Field(
        default=3,
        description="Compare-and-set retries when updating an invoice's paid amount",
        ge=1,
        le=10,
    )

    # Contracts
    signing_token_days: int = Field(
        default=7,
        description="Lifetime of a contract signing link",
        ge=1,
        le=90,
    )

    # Storage
    presigned_url_expiry_seconds: int = Field(
        default=3600,
        description="Lifetime of presigned download URLs",
        ge=60,
        le=604800,
    )
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Largest accepted image upload",
        ge=1024,
    )

    # Public pages
    public_base_url: str = Field(
        default="",
        description="Origin of the tenant-facing pages, used in signing links sent over LINE",
    )

    # Rendering
    font_path: str | None = Field(
        default=None,
        description="TrueType font with Thai glyphs for rendered cards",
    )

    # Calendar
    timezone: str = Field(
        default="Asia/Bangkok",
        description="Timezone for billing months and contract dates",
    )
