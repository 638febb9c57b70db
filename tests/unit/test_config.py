from __future__ import annotations

import dataclasses

import pytest

from tamimah_network.config import NetworkConfig


def test_defaults_match_default_preset() -> None:
    cfg = NetworkConfig.default()
    assert cfg.base_url == "https://api.example.com"
    assert cfg.connect_timeout == 30.0
    assert cfg.max_retries == 3
    assert cfg.retry_delay == 1.0
    assert cfg.enable_logging is True
    assert cfg.enable_retry is True
    assert cfg.default_headers == {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


def test_development_and_production_presets() -> None:
    dev = NetworkConfig.development()
    assert dev.base_url == "https://dev-api.example.com"
    assert dev.connect_timeout == 60.0
    assert dev.receive_timeout == 60.0
    assert dev.enable_logging is True

    prod = NetworkConfig.production()
    assert prod.base_url == "https://api.example.com"
    assert prod.connect_timeout == 30.0
    assert prod.max_retries == 2
    assert prod.retry_delay == 2.0
    assert prod.enable_logging is False
    assert prod.enable_retry is True


def test_config_is_immutable_and_copy_on_write() -> None:
    cfg = NetworkConfig(base_url="https://api.test.com")
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.base_url = "https://other.test.com"  # type: ignore[misc]

    updated = cfg.with_auth_token("abc")
    assert updated.auth_token == "abc"
    assert cfg.auth_token is None
    assert updated.base_url == cfg.base_url


def test_with_headers_merges_into_a_copy() -> None:
    cfg = NetworkConfig(base_url="https://api.test.com")
    updated = cfg.with_headers({"X-Api-Key": "key"})

    assert updated.default_headers["X-Api-Key"] == "key"
    assert updated.default_headers["Accept"] == "application/json"
    assert "X-Api-Key" not in cfg.default_headers


def test_caller_header_mapping_is_copied() -> None:
    headers = {"X-Trace": "1"}
    cfg = NetworkConfig(base_url="https://api.test.com", default_headers=headers)
    headers["X-Trace"] = "2"
    assert cfg.default_headers["X-Trace"] == "1"


@pytest.mark.parametrize(
    "changes",
    [
        {"base_url": ""},
        {"base_url": "   "},
        {"max_retries": -1},
        {"retry_delay": -0.5},
        {"connect_timeout": 0},
    ],
)
def test_invalid_values_are_rejected(changes: dict[str, object]) -> None:
    with pytest.raises(ValueError):
        NetworkConfig(**changes)  # type: ignore[arg-type]


def test_timeout_maps_connect_receive_send() -> None:
    cfg = NetworkConfig(connect_timeout=5, receive_timeout=10, send_timeout=15)
    timeout = cfg.timeout()
    assert timeout.connect == 5
    assert timeout.read == 10
    assert timeout.write == 15


def test_repr_masks_auth_token() -> None:
    cfg = NetworkConfig(auth_token="secret-token")
    text = repr(cfg)
    assert "secret-token" not in text
    assert "auth_token='***'" in text


def test_blank_token_is_not_a_bearer_token() -> None:
    assert NetworkConfig(auth_token="  ").bearer_token() is None
    assert NetworkConfig(auth_token=" abc ").bearer_token() == "abc"
