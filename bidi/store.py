"""Flat-file storage for deployed contract ids and compiled artifacts."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Union

TOKEN_ID_FILE = "token-contract-id.txt"
NFT_ID_FILE = "nft-contract-id.txt"


class StoreError(Exception):
    """Raised when a contract id or artifact cannot be read."""


class ContractIdStore:
    def __init__(self, data_dir: Union[str, Path] = ".") -> None:
        self.data_dir = Path(data_dir)

    def _read(self, filename: str, label: str) -> str:
        path = self.data_dir / filename
        if not path.exists():
            raise StoreError(f"{label} contract ID not found. Please ensure {filename} exists.")
        try:
            value = path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise StoreError(f"Unable to read {label} contract ID file. Error: {exc}") from exc
        if not value:
            raise StoreError(f"{filename} is empty")
        return value

    def _write(self, filename: str, contract_id) -> Path:
        path = self.data_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(str(contract_id), encoding="utf-8")
        return path

    def token_contract_id(self) -> str:
        return self._read(TOKEN_ID_FILE, "BIDI token")

    def nft_contract_id(self) -> str:
        return self._read(NFT_ID_FILE, "NFT")

    def has_nft_contract_id(self) -> bool:
        return (self.data_dir / NFT_ID_FILE).exists()

    def save_token_contract_id(self, contract_id) -> Path:
        return self._write(TOKEN_ID_FILE, contract_id)

    def save_nft_contract_id(self, contract_id) -> Path:
        return self._write(NFT_ID_FILE, contract_id)


def resolve_contract_id(explicit: Optional[str], fallback, logger=None) -> str:
    """Prefer an id given on the command line over the stored one."""
    if explicit:
        if logger:
            logger.info("Using contract ID from command line argument")
        return explicit
    contract_id = fallback()
    if logger:
        logger.info("Using stored contract ID %s", contract_id)
    return contract_id


def load_bytecode(artifacts_dir: Union[str, Path], contract_name: str) -> str:
    """Read the ``bytecode`` field of a hardhat artifact."""
    path = Path(artifacts_dir) / f"{contract_name}.sol" / f"{contract_name}.json"
    if not path.exists():
        raise StoreError(f"Artifact not found: {path}")
    with path.open(encoding="utf-8") as handle:
        try:
            artifact = json.load(handle)
        except json.JSONDecodeError as exc:
            raise StoreError(f"Artifact {path} is not valid JSON: {exc}") from exc
    bytecode = artifact.get("bytecode") if isinstance(artifact, dict) else None
    if not bytecode:
        raise StoreError(f"Artifact {path} has no bytecode")
    return bytecode
