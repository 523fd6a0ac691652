"""Tests for bidi.store: contract-id files and hardhat artifacts."""

import json
from pathlib import Path

import pytest

from bidi.store import ContractIdStore, StoreError, load_bytecode, resolve_contract_id


class TestContractIdStore:
    def test_round_trip_trims_whitespace(self, tmp_path: Path) -> None:
        store = ContractIdStore(tmp_path)
        store.save_token_contract_id("0.0.1001")
        (tmp_path / "nft-contract-id.txt").write_text("  0.0.2002\n", encoding="utf-8")
        assert store.token_contract_id() == "0.0.1001"
        assert store.nft_contract_id() == "0.0.2002"
        assert store.has_nft_contract_id()

    def test_missing_files(self, tmp_path: Path) -> None:
        store = ContractIdStore(tmp_path)
        assert not store.has_nft_contract_id()
        with pytest.raises(StoreError, match="token-contract-id.txt"):
            store.token_contract_id()
        with pytest.raises(StoreError, match="nft-contract-id.txt"):
            store.nft_contract_id()

    def test_empty_file(self, tmp_path: Path) -> None:
        (tmp_path / "token-contract-id.txt").write_text("\n", encoding="utf-8")
        with pytest.raises(StoreError):
            ContractIdStore(tmp_path).token_contract_id()

    def test_save_creates_directory(self, tmp_path: Path) -> None:
        store = ContractIdStore(tmp_path / "state")
        path = store.save_nft_contract_id("0.0.7")
        assert path.read_text(encoding="utf-8") == "0.0.7"


class TestResolveContractId:
    def test_explicit_wins(self) -> None:
        def fallback() -> str:
            raise AssertionError("fallback should not be used")

        assert resolve_contract_id("0.0.5", fallback) == "0.0.5"

    def test_fallback(self) -> None:
        assert resolve_contract_id(None, lambda: "0.0.6") == "0.0.6"


class TestLoadBytecode:
    def write_artifact(self, root: Path, name: str, payload) -> None:
        folder = root / f"{name}.sol"
        folder.mkdir(parents=True)
        (folder / f"{name}.json").write_text(json.dumps(payload), encoding="utf-8")

    def test_reads_bytecode(self, tmp_path: Path) -> None:
        self.write_artifact(tmp_path, "CreateToken", {"contractName": "CreateToken", "bytecode": "0x6080"})
        assert load_bytecode(tmp_path, "CreateToken") == "0x6080"

    def test_missing_artifact(self, tmp_path: Path) -> None:
        with pytest.raises(StoreError, match="Artifact not found"):
            load_bytecode(tmp_path, "HelloWorld")

    def test_missing_bytecode(self, tmp_path: Path) -> None:
        self.write_artifact(tmp_path, "HelloWorld", {"abi": []})
        with pytest.raises(StoreError, match="no bytecode"):
            load_bytecode(tmp_path, "HelloWorld")

    def test_invalid_json(self, tmp_path: Path) -> None:
        folder = tmp_path / "HelloWorld.sol"
        folder.mkdir()
        (folder / "HelloWorld.json").write_text("{", encoding="utf-8")
        with pytest.raises(StoreError, match="not valid JSON"):
            load_bytecode(tmp_path, "HelloWorld")
