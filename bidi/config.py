"""Config loader with optional overrides for secrets/local settings."""
from __future__ import annotations

import os
from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv

MIRROR_NODES = {
    "mainnet": "https://mainnet-public.mirrornode.hedera.com",
    "testnet": "https://testnet.mirrornode.hedera.com",
    "previewnet": "https://previewnet.mirrornode.hedera.com",
}


class ConfigError(Exception):
    """Raised when required settings are missing or invalid."""


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open() as handle:
        return yaml.safe_load(handle) or {}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result = deepcopy(base)
    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(value, dict)
        ):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(base_path: str = "config.yaml", local_path: Optional[str] = None) -> Dict[str, Any]:
    base_file = Path(base_path)
    if not base_file.exists():
        raise FileNotFoundError(f"Config file not found: {base_file}")
    config = _read_yaml(base_file)

    if local_path:
        local_file = Path(local_path)
        if local_file.exists():
            local_cfg = _read_yaml(local_file)
            config = _deep_merge(config, local_cfg)
    return config


@dataclass
class GasLimits:
    call: int = 100_000
    execute: int = 1_000_000
    deploy: int = 1_000_000
    hello_world: int = 500_000


@dataclass
class MaxFees:
    """Maximum transaction fees, in hbar."""

    file: int = 5
    contract: int = 20
    execute: int = 5


@dataclass
class MirrorSettings:
    url: str
    retry_attempts: int = 3
    retry_wait_seconds: int = 1
    timeout_seconds: int = 10
    rate_limit_per_sec: Optional[float] = None


@dataclass
class Settings:
    network: str
    operator_account_id: Optional[str]
    operator_private_key: Optional[str]
    mirror: MirrorSettings
    hashscan_url: str
    artifacts_dir: Path = Path("artifacts/contracts")
    data_dir: Path = Path(".")
    chunk_size: int = 4000
    gas: GasLimits = field(default_factory=GasLimits)
    max_fee_hbar: MaxFees = field(default_factory=MaxFees)
    token_decimals: int = 18
    token_symbol: str = "BIDI"
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def require_operator(self) -> None:
        if not self.operator_account_id or not self.operator_private_key:
            raise ConfigError("OPERATOR_PRIVATE_KEY and OPERATOR_ACCOUNT_ID must be present")

    def hashscan(self, kind: str, entity_id) -> str:
        return f"{self.hashscan_url}/{kind}/{entity_id}"


def build_settings(cfg: Mapping[str, Any], env: Optional[Mapping[str, str]] = None) -> Settings:
    """Turn a raw config mapping into :class:`Settings`; env vars win over files."""
    env = os.environ if env is None else env
    net_cfg = cfg.get("network", {}) or {}
    operator_cfg = cfg.get("operator", {}) or {}
    mirror_cfg = cfg.get("mirror", {}) or {}
    token_cfg = cfg.get("token", {}) or {}
    paths_cfg = cfg.get("paths", {}) or {}
    log_cfg = cfg.get("logging", {}) or {}

    network = env.get("HEDERA_NETWORK") or net_cfg.get("name", "testnet")
    if network not in MIRROR_NODES:
        raise ConfigError(f"Unknown network {network!r}, expected one of {sorted(MIRROR_NODES)}")

    chunk_size = int(net_cfg.get("chunk_size", 4000))
    if chunk_size < 1:
        raise ConfigError("network.chunk_size must be positive")

    return Settings(
        network=network,
        operator_account_id=env.get("OPERATOR_ACCOUNT_ID") or operator_cfg.get("account_id"),
        operator_private_key=env.get("OPERATOR_PRIVATE_KEY") or operator_cfg.get("private_key"),
        mirror=MirrorSettings(
            url=(mirror_cfg.get("url") or MIRROR_NODES[network]).rstrip("/"),
            retry_attempts=mirror_cfg.get("retry", 3),
            retry_wait_seconds=mirror_cfg.get("retry_wait", 1),
            timeout_seconds=mirror_cfg.get("timeout", 10),
            rate_limit_per_sec=mirror_cfg.get("rate_limit_per_sec"),
        ),
        hashscan_url=net_cfg.get("hashscan_url", f"https://hashscan.io/{network}").rstrip("/"),
        artifacts_dir=Path(paths_cfg.get("artifacts", "artifacts/contracts")),
        data_dir=Path(paths_cfg.get("data", ".")),
        chunk_size=chunk_size,
        gas=GasLimits(**(cfg.get("gas", {}) or {})),
        max_fee_hbar=MaxFees(**(cfg.get("max_fee_hbar", {}) or {})),
        token_decimals=token_cfg.get("decimals", 18),
        token_symbol=token_cfg.get("symbol", "BIDI"),
        log_level=log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
    )


def load_settings(
    base_path: str = "config.yaml",
    local_path: Optional[str] = None,
    env_file: Optional[str] = ".env",
) -> Settings:
    if env_file:
        load_dotenv(env_file)
    cfg = load_config(base_path, local_path) if Path(base_path).exists() else {}
    return build_settings(cfg)


__all__ = ["ConfigError", "Settings", "build_settings", "load_config", "load_settings"]
