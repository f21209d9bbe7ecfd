from __future__ import annotations

from pathlib import Path

import pytest

from pyagg.config import AggregatorConfig, ClientConfig
from pyagg.exceptions import AggConfigError
from pyagg.store.policy import RetentionPolicy


def test_defaults() -> None:
    config = AggregatorConfig()

    assert config.port == 4567
    assert config.max_records == 20
    assert config.expiry_seconds == 30.0
    assert config.retention is RetentionPolicy.LATEST_PER_SOURCE
    assert config.main_store_path == Path("data") / "records.jsonl"
    assert config.staging_dir == Path("data") / "staging"


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PYAGG_PORT", "8080")
    monkeypatch.setenv("PYAGG_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("PYAGG_RETENTION", "FULL_HISTORY")
    monkeypatch.setenv("PYAGG_PERSIST", "off")

    config = AggregatorConfig.from_env()

    assert config.port == 8080
    assert config.data_dir == tmp_path
    assert config.retention is RetentionPolicy.FULL_HISTORY
    assert config.persist is False


def test_overrides_beat_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PYAGG_PORT", "8080")

    assert AggregatorConfig.from_env(port=9000).port == 9000


def test_invalid_environment_value(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PYAGG_MAX_RECORDS", "many")

    with pytest.raises(AggConfigError, match="PYAGG_MAX_RECORDS"):
        AggregatorConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [{"max_records": 0}, {"expiry_seconds": 0}, {"sweep_interval": -1}, {"port": 70000}],
)
def test_invalid_values_rejected(kwargs: dict[str, object]) -> None:
    with pytest.raises(AggConfigError):
        AggregatorConfig(**kwargs)  # type: ignore[arg-type]


def test_data_dir_coerced_to_path() -> None:
    assert AggregatorConfig(data_dir="somewhere").data_dir == Path("somewhere")  # type: ignore[arg-type]


def test_client_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PYAGG_CLIENT_BASE_URL", "http://example:1234")
    monkeypatch.setenv("PYAGG_CLIENT_RETRIES", "2")

    config = ClientConfig.from_env(retry_delay=0.5)

    assert config.base_url == "http://example:1234"
    assert config.retries == 2
    assert config.retry_delay == 0.5


def test_client_config_requires_an_attempt() -> None:
    with pytest.raises(AggConfigError):
        ClientConfig(retries=0)
