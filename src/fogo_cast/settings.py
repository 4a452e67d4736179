"""Environment-backed settings primitives for :mod:`fogo_cast`."""

from __future__ import annotations

from pydantic import Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["FogoCastSettings", "get_settings"]

_DEFAULT_PROGRAM_ID = "SEAyjT1FUx3JyXJnWt5NtjELDwuU9XsoZeZVPVvweU4"


class FogoCastSettings(BaseSettings):
    """Expose environment-derived configuration for a cast session.

    Attributes:
        rpc_url: JSON-RPC endpoint used for account reads and chain tip.
        paymaster_url: Endpoint that sponsors and relays signed transactions.
        capability_url: Endpoint issuing cast capabilities.
        program_id: Base58 address of the fishing program.
        session_key: Base58 64-byte session keypair produced by ``convert``.
        owner: Base58 wallet address owning the player account.
        tx_template: Base64 serialized cast transaction template.
        cast_interval_seconds: Delay between cast attempts.
        max_casts: Number of casts per session; ``0`` means unbounded.
        poll_attempts: Confirmation polls per cast.
        poll_interval_seconds: Delay before each confirmation poll.
        request_timeout: Timeout in seconds for HTTP requests.
    """

    rpc_url: str | None = Field(default=None, alias="FOGO_RPC_URL")
    paymaster_url: str | None = Field(default=None, alias="FOGO_PAYMASTER_URL")
    capability_url: str | None = Field(default=None, alias="FOGO_CAPABILITY_URL")
    program_id: str = Field(default=_DEFAULT_PROGRAM_ID, alias="FOGO_PROGRAM_ID")
    session_key: SecretStr | None = Field(default=None, alias="FOGO_SESSION_KEY")
    owner: str | None = Field(default=None, alias="FOGO_OWNER")
    tx_template: str | None = Field(default=None, alias="FOGO_TX_TEMPLATE")
    cast_interval_seconds: float = Field(
        default=3.0, alias="FOGO_CAST_INTERVAL_SECONDS"
    )
    max_casts: int = Field(default=0, alias="FOGO_MAX_CASTS")
    poll_attempts: int = Field(default=8, alias="FOGO_POLL_ATTEMPTS")
    poll_interval_seconds: float = Field(
        default=1.0, alias="FOGO_POLL_INTERVAL_SECONDS"
    )
    request_timeout: float = Field(default=10.0, alias="FOGO_REQUEST_TIMEOUT")

    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    @field_validator(
        "cast_interval_seconds",
        "poll_interval_seconds",
        "request_timeout",
        mode="before",
    )
    @classmethod
    def _parse_float(cls, value: object, info: ValidationInfo) -> float:
        """Parse float fields, falling back to the default on malformed input."""

        default = cls.model_fields[str(info.field_name)].default
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value) if value >= 0 else default
        if isinstance(value, str):
            try:
                parsed = float(value.strip())
            except ValueError:
                return default
            return parsed if parsed >= 0 else default
        return default

    @field_validator("max_casts", "poll_attempts", mode="before")
    @classmethod
    def _parse_int(cls, value: object, info: ValidationInfo) -> int:
        """Parse integer fields, falling back to the default on malformed input."""

        default = cls.model_fields[str(info.field_name)].default
        parsed: int | None = None
        if isinstance(value, bool):
            parsed = None
        elif isinstance(value, int):
            parsed = value
        elif isinstance(value, float) and value.is_integer():
            parsed = int(value)
        elif isinstance(value, str):
            try:
                parsed = int(value.strip())
            except ValueError:
                parsed = None
        if parsed is None or parsed < 0:
            return default
        return parsed

    def missing(self) -> list[str]:
        """Return the environment variables a cast session still needs."""

        required = {
            "FOGO_RPC_URL": self.rpc_url,
            "FOGO_PAYMASTER_URL": self.paymaster_url,
            "FOGO_CAPABILITY_URL": self.capability_url,
            "FOGO_SESSION_KEY": (
                self.session_key.get_secret_value()
                if self.session_key is not None
                else None
            ),
            "FOGO_OWNER": self.owner,
            "FOGO_TX_TEMPLATE": self.tx_template,
        }
        return [name for name, value in required.items() if not value]


def get_settings() -> FogoCastSettings:
    """Return a :class:`FogoCastSettings` instance.

    Returns:
        Settings parsed from environment variables.
    """

    return FogoCastSettings()
