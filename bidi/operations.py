"""One-shot ledger operations: deploys, allowances, NFT mint/redeem and queries."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .codec import (
    evm_address_to_account_num,
    format_token_amount,
    format_with_separators,
    normalize_evm_address,
    to_fixed_point,
)
from .mirror import CollectionInfo
from .store import load_bytecode, resolve_contract_id

HELLO_WORLD = "HelloWorld"
TOKEN = "CreateToken"
COLLECTION = "CreateCollection"
NFT_COLLECTION = "NFTCollection"
REDEMPTION_COLLECTION = "DeployCollection"


class OperationError(Exception):
    """Raised when an operation's on-chain precondition does not hold."""


@dataclass
class BalanceReport:
    account_id: str
    evm_address: str
    balance: int
    allowance: Optional[int] = None


@dataclass
class NftRecord:
    token_id: int
    owner_evm: str
    owner_id: str
    raw_amount: int
    formatted_amount: str
    redeemed: bool

    @property
    def status(self) -> str:
        if self.redeemed:
            return "Redeemed - tokens already claimed"
        return "Available - tokens locked and ready for redemption"


class Operations:
    def __init__(self, settings, ledger, store, logger, mirror=None) -> None:
        self.settings = settings
        self.ledger = ledger
        self.store = store
        self.logger = logger
        self.mirror = mirror

    def _bytecode(self, contract_name: str) -> str:
        return load_bytecode(self.settings.artifacts_dir, contract_name)

    def _amount(self, raw) -> str:
        return format_token_amount(raw, self.settings.token_decimals, self.settings.token_symbol)

    def deploy_hello_world(self, message: str = "Hello from Hedera!"):
        self.logger.info("Starting deployment of %s", HELLO_WORLD)
        return self.ledger.deploy(
            self._bytecode(HELLO_WORLD),
            self.settings.gas.hello_world,
            [("string", message)],
        )

    def create_token(self):
        self.logger.info("Starting token contract deployment...")
        contract_id = self.ledger.deploy(self._bytecode(TOKEN), self.settings.gas.deploy)
        path = self.store.save_token_contract_id(contract_id)
        self.logger.info("Token contract ID %s saved to %s", contract_id, path)
        return contract_id

    def create_collection(self):
        self.logger.info("Starting %s deployment...", COLLECTION)
        return self.ledger.deploy(self._bytecode(COLLECTION), self.settings.gas.deploy)

    def deploy_nft_contract(self):
        self.logger.info("Starting %s deployment...", NFT_COLLECTION)
        return self.ledger.deploy(self._bytecode(NFT_COLLECTION), self.settings.gas.deploy)

    def deploy_redemption_collection(self, token_contract_id: Optional[str] = None):
        token_id = resolve_contract_id(token_contract_id, self.store.token_contract_id, self.logger)
        token_evm = self.ledger.evm_address(token_id)
        self.logger.info("Using token contract %s (EVM %s)", token_id, token_evm)

        contract_id = self.ledger.deploy(
            self._bytecode(REDEMPTION_COLLECTION),
            self.settings.gas.deploy,
            [("address", token_evm)],
        )
        self.logger.info("NFT contract EVM address: %s", self.ledger.evm_address(contract_id))
        path = self.store.save_nft_contract_id(contract_id)
        self.logger.info("NFT contract ID %s saved to %s", contract_id, path)
        return contract_id

    def allowance(self, token_contract_id: str, owner_evm: str, spender_evm: str) -> int:
        result = self.ledger.call(
            token_contract_id,
            "allowance",
            [("address", owner_evm), ("address", spender_evm)],
        )
        return int(result.get_uint256(0))

    def get_balance(self, account_id: Optional[str] = None) -> BalanceReport:
        account_id = account_id or self.settings.operator_account_id
        if not account_id:
            raise ValueError("Provide an account ID or set OPERATOR_ACCOUNT_ID")
        token_id = self.store.token_contract_id()
        self.logger.info("Checking %s balance of %s on %s", self.settings.token_symbol, account_id, token_id)

        evm_address = self.ledger.evm_address(account_id)
        result = self.ledger.call(token_id, "balanceOf", [("address", evm_address)])
        report = BalanceReport(account_id, evm_address, int(result.get_uint256(0)))
        self.logger.info("Balance: %s (%s)", self._amount(report.balance), report.balance)

        if self.store.has_nft_contract_id():
            nft_evm = self.ledger.evm_address(self.store.nft_contract_id())
            report.allowance = self.allowance(token_id, evm_address, nft_evm)
            self.logger.info("Current NFT contract allowance: %s", self._amount(report.allowance))
        return report

    def set_allowance(self, amount: str):
        token_amount = to_fixed_point(amount, self.settings.token_decimals)
        self.logger.info("Setting allowance to %s (%s)", amount, format_with_separators(token_amount))

        token_id = self.store.token_contract_id()
        nft_evm = self.ledger.evm_address(self.store.nft_contract_id())
        self.logger.info("Approving NFT contract %s", nft_evm)
        receipt = self.ledger.execute(
            token_id,
            "approve",
            [("address", nft_evm), ("uint256", token_amount)],
        )
        return receipt.transaction_id

    def mint_nft(self, recipient_id: str, amount: str, contract_id: Optional[str] = None):
        token_amount = to_fixed_point(amount, self.settings.token_decimals)
        nft_id = resolve_contract_id(contract_id, self.store.nft_contract_id, self.logger)
        token_id = self.store.token_contract_id()
        self.logger.info(
            "Minting NFT on %s for %s locking %s (%s units)",
            nft_id,
            recipient_id,
            amount,
            token_amount,
        )

        recipient_evm = self.ledger.evm_address(recipient_id)
        nft_evm = self.ledger.evm_address(nft_id)
        operator_evm = self.ledger.operator_evm_address()
        self.logger.info("Recipient %s, NFT contract %s, operator %s", recipient_evm, nft_evm, operator_evm)

        current = self.allowance(token_id, operator_evm, nft_evm)
        if current < token_amount:
            self.logger.warning(
                "Insufficient allowance: required %s, current %s. Approve the NFT contract first.",
                token_amount,
                current,
            )
            raise OperationError(f"Insufficient {self.settings.token_symbol} token allowance")

        receipt = self.ledger.execute(
            nft_id,
            "safeMint",
            [("address", recipient_evm), ("uint256", token_amount)],
        )
        self.logger.info("NFT minted successfully")
        return receipt.transaction_id

    def redeem_nft(self, token_id, contract_id: Optional[str] = None):
        nft_id = resolve_contract_id(contract_id, self.store.nft_contract_id, self.logger)
        self.logger.info("Redeeming NFT #%s on %s to %s", token_id, nft_id, self.settings.operator_account_id)
        receipt = self.ledger.execute(nft_id, "redeem", [("uint256", int(token_id))])
        self.logger.info("NFT redeemed successfully")
        return receipt.transaction_id

    def list_nfts(self, contract_id: Optional[str] = None, limit: Optional[int] = None) -> List[NftRecord]:
        """Walk token ids from zero until the contract stops answering."""
        nft_id = resolve_contract_id(contract_id, self.store.nft_contract_id, self.logger)
        self.logger.info("Scanning collection at contract ID %s", nft_id)
        records: List[NftRecord] = []
        token_id = 0
        while limit is None or token_id < limit:
            args = [("uint256", token_id)]
            try:
                owner = normalize_evm_address(self.ledger.call(nft_id, "ownerOf", args).get_address(0))
                raw_amount = int(self.ledger.call(nft_id, "getRedemptionAmount", args).get_uint256(0))
                redeemed = bool(self.ledger.call(nft_id, "isRedeemed", args).get_bool(0))
            except Exception as exc:  # noqa: BLE001
                self.logger.debug("Token #%s query stopped the scan: %s", token_id, exc)
                break
            record = NftRecord(
                token_id=token_id,
                owner_evm=owner,
                owner_id=str(evm_address_to_account_num(owner)),
                raw_amount=raw_amount,
                formatted_amount=self._amount(raw_amount),
                redeemed=redeemed,
            )
            self.logger.info(
                "NFT #%s owner=%s (%s) amount=%s raw=%s status=%s",
                record.token_id,
                record.owner_evm,
                record.owner_id,
                record.formatted_amount,
                record.raw_amount,
                record.status,
            )
            records.append(record)
            token_id += 1

        if records:
            self.logger.info("Total NFTs found: %s", len(records))
        else:
            self.logger.info("No tokens found in collection")
        return records

    def list_collections(self, account_id: Optional[str] = None) -> List[CollectionInfo]:
        if self.mirror is None:
            raise ValueError("A mirror client is required to list collections")
        account_id = account_id or self.settings.operator_account_id
        if not account_id:
            raise ValueError("Provide an account ID or set OPERATOR_ACCOUNT_ID")
        self.logger.info("Fetching contracts created by %s", account_id)

        transactions = self.mirror.contract_create_transactions(account_id)
        if not transactions:
            self.logger.info("No contracts found for this account.")
            return []
        self.logger.info("Found %s contracts", len(transactions))
        collections = []
        for tx in transactions:
            contract_id = tx.get("entity_id")
            if not contract_id:
                continue
            info = self.mirror.collection_info(contract_id, tx.get("consensus_timestamp"))
            self.logger.info(
                "Contract %s name=%s symbol=%s created=%s %s",
                contract_id,
                info.name,
                info.symbol,
                info.created,
                self.settings.hashscan("contract", contract_id),
            )
            collections.append(info)
        return collections
