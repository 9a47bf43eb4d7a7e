"""Authentication configuration."""

from typing import Literal

from pydantic import BaseModel, Field


class AuthConfig(BaseModel):
    """
    Authentication configuration.

    Passed explicitly to every component at construction time, so several
    independently configured instances can live in one process. All
    durations are in their natural units (minutes for short durations,
    hours for longer ones) to make configuration intuitive.
    """

    # Session tokens
    token_secret: str = Field(
        ...,
        description="Symmetric key used to sign session tokens",
        min_length=32,
    )
    token_algorithm: Literal["HS256", "HS384", "HS512"] = Field(
        default="HS256",
        description="JWT signing algorithm",
    )
    access_token_minutes: int = Field(
        default=1440,  # 24 hours
        description="Session token lifetime in minutes",
        ge=1,
        le=43200,
    )
    enforce_single_device: bool = Field(
        default=True,
        description="Only the most recently issued token is accepted per account",
    )

    # Tickets
    verification_token_hours: int = Field(
        default=24,
        description="How long email verification links remain valid",
        ge=1,
        le=168,
    )
    password_reset_token_minutes: int = Field(
        default=60,
        description="How long password reset links remain valid",
        ge=5,
        le=1440,
    )
    ticket_token_bytes: int = Field(
        default=16,
        description="Random bytes per ticket token (hex-encoded, so twice as many chars)",
        ge=16,
        le=64,
    )

    # Passwords
    min_password_length: int = Field(
        default=8,
        description="Minimum accepted password length",
        ge=6,
        le=128,
    )
    password_time_cost: int = Field(
        default=3,
        description="argon2 iterations",
        ge=1,
        le=10,
    )
    password_memory_cost: int = Field(
        default=65536,
        description="argon2 memory in KiB",
        ge=8,
    )
    password_parallelism: int = Field(
        default=4,
        description="argon2 lanes",
        ge=1,
        le=16,
    )

    # Roles
    default_role: str = Field(
        default="user",
        description="Role assigned to every newly registered account",
        min_length=1,
    )
    admin_role: str = Field(
        default="admin",
        description="Role allowed to run account lifecycle operations",
        min_length=1,
    )

    # Links and delivery
    app_base_url: str = Field(
        default="http://localhost:3000",
        description="Base URL for verification and reset links",
    )
    verify_email_path: str = Field(
        default="/auth/verify-email",
        description="Path appended to app_base_url for verification links",
    )
    reset_password_path: str = Field(
        default="/auth/reset-password",
        description="Path appended to app_base_url for password reset links",
    )
    notification_workers: int = Field(
        default=2,
        description="Worker threads delivering notifications",
        ge=1,
        le=16,
    )
