from __future__ import annotations

from pathlib import Path

import pytest

from motionhub.config import MotionHubConfig
from motionhub.exceptions import MotionHubConfigError


def test_config_defaults() -> None:
    config = MotionHubConfig()

    assert config.udp_port == 41234
    assert config.udp_host == "0.0.0.0"
    assert config.data_file == Path("public/data.json")
    assert config.strict_push is False


def test_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MOTIONHUB_UDP_PORT", "5005")
    monkeypatch.setenv("MOTIONHUB_HTTP_HOST", " 127.0.0.1 ")
    monkeypatch.setenv("MOTIONHUB_PERSIST_TIMEOUT", "1.5")
    monkeypatch.setenv("MOTIONHUB_HTTP_ENABLED", "off")
    monkeypatch.setenv("MOTIONHUB_STRICT_PUSH", "yes")
    monkeypatch.setenv("MOTIONHUB_DATA_FILE", "/var/lib/motionhub/data.json")

    config = MotionHubConfig.from_env()

    assert config.udp_port == 5005
    assert config.http_host == "127.0.0.1"
    assert config.persist_timeout == 1.5
    assert config.http_enabled is False
    assert config.strict_push is True
    assert config.data_file == Path("/var/lib/motionhub/data.json")


def test_config_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MOTIONHUB_UDP_PORT", "5005")
    monkeypatch.setenv("MOTIONHUB_HTTP_ENABLED", "false")

    config = MotionHubConfig.from_env(udp_port=6000, http_enabled=True)

    assert config.udp_port == 6000
    assert config.http_enabled is True


def test_config_empty_data_file_disables_persistence(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MOTIONHUB_DATA_FILE", "")

    assert MotionHubConfig.from_env().data_file is None


def test_config_rejects_bad_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MOTIONHUB_UDP_PORT", "not-a-port")
    with pytest.raises(MotionHubConfigError):
        MotionHubConfig.from_env()

    with pytest.raises(MotionHubConfigError):
        MotionHubConfig(http_port=70000)
    with pytest.raises(MotionHubConfigError):
        MotionHubConfig(persist_timeout=0)


def test_config_coerces_string_data_file() -> None:
    config = MotionHubConfig(data_file="snapshots/latest.json")  # type: ignore[arg-type]

    assert config.data_file == Path("snapshots/latest.json")
