from __future__ import annotations

import os
from pathlib import Path

import pytest
from stellar_sdk import Keypair, Network

from stakehouse.core.config import Settings, load_settings
from stakehouse.core.errors import ConfigurationError

_ENV_VARS = [
    "STAKEHOUSE_NETWORK",
    "STAKEHOUSE_RPC_URL",
    "STAKEHOUSE_HORIZON_URL",
    "STAKEHOUSE_CONTRACT_ADDRESS",
    "STAKEHOUSE_SIGNER_SECRET",
    "STAKEHOUSE_CRON_ENABLED",
    "STAKEHOUSE_CRON_TIMEZONE",
    "STAKEHOUSE_TRANSFER_FROM",
    "STAKEHOUSE_TRANSFER_TO",
    "STAKEHOUSE_TRANSFER_AMOUNT",
    "STAKEHOUSE_PORT",
    "STAKEHOUSE_STATE_DIR",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_load_settings_defaults_to_testnet() -> None:
    settings = load_settings(env_file=None)

    assert settings.network == "testnet"
    assert settings.network_passphrase == Network.TESTNET_NETWORK_PASSPHRASE
    assert settings.rpc_url == "https://soroban-testnet.stellar.org"
    assert settings.cron_enabled is False
    assert settings.timezone.key == "America/Sao_Paulo"
    assert settings.port == 3001
    assert settings.transfer_job is None


def test_load_settings_reads_mainnet_and_overrides(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("STAKEHOUSE_NETWORK", "MAINNET")
    monkeypatch.setenv("STAKEHOUSE_CRON_ENABLED", "on")
    monkeypatch.setenv("STAKEHOUSE_PORT", "8080")
    monkeypatch.setenv("STAKEHOUSE_STATE_DIR", str(tmp_path))

    settings = load_settings(env_file=None)

    assert settings.network == "mainnet"
    assert settings.network_passphrase == Network.PUBLIC_NETWORK_PASSPHRASE
    assert settings.horizon_url == "https://horizon.stellar.org"
    assert settings.cron_enabled is True
    assert settings.port == 8080
    assert settings.state_dir == Path(tmp_path)


def test_unknown_network_is_a_configuration_error(monkeypatch) -> None:
    monkeypatch.setenv("STAKEHOUSE_NETWORK", "futurenet")
    with pytest.raises(ConfigurationError):
        load_settings(env_file=None)


def test_unknown_timezone_is_a_configuration_error(monkeypatch) -> None:
    monkeypatch.setenv("STAKEHOUSE_CRON_TIMEZONE", "Mars/Olympus_Mons")
    with pytest.raises(ConfigurationError):
        load_settings(env_file=None)


def test_transfer_job_is_enabled_only_when_fully_configured(monkeypatch) -> None:
    source, destination = Keypair.random().public_key, Keypair.random().public_key
    monkeypatch.setenv("STAKEHOUSE_TRANSFER_FROM", source)
    monkeypatch.setenv("STAKEHOUSE_TRANSFER_TO", destination)
    assert load_settings(env_file=None).transfer_job is None

    monkeypatch.setenv("STAKEHOUSE_TRANSFER_AMOUNT", "10000000000")
    transfer = load_settings(env_file=None).transfer_job
    assert transfer is not None
    assert transfer.from_address == source
    assert transfer.amount == 10_000_000_000


def test_dotenv_file_does_not_override_environment(monkeypatch, tmp_path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("STAKEHOUSE_PORT=9999\nSTAKEHOUSE_CRON_TIMEZONE=UTC\n", encoding="utf-8")
    monkeypatch.setenv("STAKEHOUSE_PORT", "4000")

    try:
        settings = load_settings(env_file=str(env_file))
    finally:
        os.environ.pop("STAKEHOUSE_CRON_TIMEZONE", None)

    assert settings.port == 4000
    assert settings.cron_timezone == "UTC"


def test_signer_keypair_requires_valid_secret() -> None:
    with pytest.raises(ConfigurationError):
        Settings().signer_keypair()
    with pytest.raises(ConfigurationError):
        Settings(signer_secret="SNOTASECRET").signer_keypair()

    keypair = Keypair.random()
    assert Settings(signer_secret=keypair.secret).signer_keypair().public_key == keypair.public_key


def test_signer_secret_is_hidden_from_repr() -> None:
    secret = Keypair.random().secret
    assert secret not in repr(Settings(signer_secret=secret))
