from __future__ import annotations

import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, Field
from stellar_sdk import Keypair, Network
from stellar_sdk.exceptions import Ed25519SecretSeedInvalidError

from .errors import ConfigurationError

_NETWORKS: dict[str, dict[str, str]] = {
    "testnet": {
        "passphrase": Network.TESTNET_NETWORK_PASSPHRASE,
        "rpc_url": "https://soroban-testnet.stellar.org",
        "horizon_url": "https://horizon-testnet.stellar.org",
    },
    "mainnet": {
        "passphrase": Network.PUBLIC_NETWORK_PASSPHRASE,
        "rpc_url": "https://mainnet.sorobanrpc.com",
        "horizon_url": "https://horizon.stellar.org",
    },
}


def _is_on(name: str, default: str = "off") -> bool:
    return os.getenv(name, default).strip().casefold() in {"1", "true", "yes", "on"}


def _optional(name: str) -> str | None:
    raw = os.getenv(name, "").strip()
    return raw or None


class TransferJobSettings(BaseModel):
    from_address: str
    to_address: str
    amount: int = Field(gt=0)


class Settings(BaseModel):
    network: str = "testnet"
    network_passphrase: str = Network.TESTNET_NETWORK_PASSPHRASE
    rpc_url: str = _NETWORKS["testnet"]["rpc_url"]
    horizon_url: str = _NETWORKS["testnet"]["horizon_url"]
    contract_address: str | None = None
    signer_secret: str | None = Field(default=None, repr=False)
    cron_enabled: bool = False
    cron_timezone: str = "America/Sao_Paulo"
    distribution_cron: str = "*/5 * * * *"
    transfer_cron: str = "0 0 * * *"
    transfer_job: TransferJobSettings | None = None
    apr_fallback_rate: float = 0.05
    port: int = 3001
    state_dir: Path = Field(default_factory=lambda: Path.home() / ".stakehouse")

    @property
    def timezone(self) -> ZoneInfo:
        try:
            return ZoneInfo(self.cron_timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigurationError(f"unknown cron time zone: {self.cron_timezone}") from exc

    def signer_keypair(self) -> Keypair:
        if not self.signer_secret:
            raise ConfigurationError("STAKEHOUSE_SIGNER_SECRET is not set; the distribution signer key is required")
        try:
            return Keypair.from_secret(self.signer_secret)
        except Ed25519SecretSeedInvalidError as exc:
            raise ConfigurationError("STAKEHOUSE_SIGNER_SECRET is not a valid secret seed") from exc


def _transfer_job_from_env() -> TransferJobSettings | None:
    source = _optional("STAKEHOUSE_TRANSFER_FROM")
    destination = _optional("STAKEHOUSE_TRANSFER_TO")
    amount = _optional("STAKEHOUSE_TRANSFER_AMOUNT")
    if not (source and destination and amount):
        return None
    try:
        return TransferJobSettings(from_address=source, to_address=destination, amount=int(amount))
    except ValueError as exc:
        raise ConfigurationError(f"invalid transfer job settings: {exc}") from exc


def load_settings(env_file: str | None = ".env") -> Settings:
    """Build settings from the environment. A .env file never overrides real variables."""
    if env_file:
        load_dotenv(env_file, override=False)

    network = os.getenv("STAKEHOUSE_NETWORK", "testnet").strip().casefold()
    if network not in _NETWORKS:
        raise ConfigurationError(f"STAKEHOUSE_NETWORK must be one of {sorted(_NETWORKS)}, got {network!r}")
    defaults = _NETWORKS[network]

    state_dir_raw = _optional("STAKEHOUSE_STATE_DIR")
    try:
        settings = Settings(
            network=network,
            network_passphrase=defaults["passphrase"],
            rpc_url=os.getenv("STAKEHOUSE_RPC_URL", defaults["rpc_url"]),
            horizon_url=os.getenv("STAKEHOUSE_HORIZON_URL", defaults["horizon_url"]).rstrip("/"),
            contract_address=_optional("STAKEHOUSE_CONTRACT_ADDRESS"),
            signer_secret=_optional("STAKEHOUSE_SIGNER_SECRET"),
            cron_enabled=_is_on("STAKEHOUSE_CRON_ENABLED"),
            cron_timezone=os.getenv("STAKEHOUSE_CRON_TIMEZONE", "America/Sao_Paulo"),
            distribution_cron=os.getenv("STAKEHOUSE_DISTRIBUTION_CRON", "*/5 * * * *"),
            transfer_cron=os.getenv("STAKEHOUSE_TRANSFER_CRON", "0 0 * * *"),
            transfer_job=_transfer_job_from_env(),
            apr_fallback_rate=float(os.getenv("STAKEHOUSE_APR_FALLBACK_RATE", "0.05")),
            port=int(os.getenv("STAKEHOUSE_PORT", "3001")),
            state_dir=Path(state_dir_raw).expanduser() if state_dir_raw else Path.home() / ".stakehouse",
        )
    except ValueError as exc:
        raise ConfigurationError(f"invalid configuration: {exc}") from exc

    # Fail fast on a bad time zone rather than at the first scheduler tick.
    _ = settings.timezone
    return settings
