"""Thin wrapper over the Hedera SDK: bytecode upload, deploys, calls and executes."""
from __future__ import annotations

import time
from typing import Any, Optional, Sequence, Tuple

from hiero_sdk_python import (
    AccountId,
    AccountInfoQuery,
    Client,
    ContractCallQuery,
    ContractCreateTransaction,
    ContractExecuteTransaction,
    ContractFunctionParameters,
    ContractId,
    FileAppendTransaction,
    FileCreateTransaction,
    Hbar,
    Network,
    PrivateKey,
    ResponseCode,
)

from .codec import account_id_to_evm_address, chunk, normalize_evm_address

# (solidity type, value) pairs, e.g. ("address", "0x..."), ("uint256", 10)
Args = Sequence[Tuple[str, Any]]

_ADDERS = {
    "address": "add_address",
    "uint256": "add_uint256",
    "string": "add_string",
    "bool": "add_bool",
}


class LedgerError(Exception):
    """Raised when a transaction fails or a receipt lacks the expected field."""


def build_parameters(args: Optional[Args]) -> Optional[ContractFunctionParameters]:
    if not args:
        return None
    params = ContractFunctionParameters()
    for sol_type, value in args:
        adder = _ADDERS.get(sol_type)
        if adder is None:
            raise ValueError(f"Unsupported parameter type {sol_type}")
        params = getattr(params, adder)(value)
    return params


def _status_name(status) -> str:
    try:
        return ResponseCode(status).name
    except (AttributeError, TypeError, ValueError):
        return str(status)


class Ledger:
    def __init__(self, settings, logger, client: Optional[Client] = None) -> None:
        self.settings = settings
        self.logger = logger
        self.client = client
        self.operator_key: Optional[PrivateKey] = None
        self.operator_id: Optional[AccountId] = None
        self.consensus_wait_seconds = 2

    def connect(self) -> "Ledger":
        self.settings.require_operator()
        self.operator_id = AccountId.from_string(self.settings.operator_account_id)
        self.operator_key = PrivateKey.from_string(self.settings.operator_private_key)
        if self.client is None:
            self.client = Client(Network(network=self.settings.network))
        self.client.set_operator(self.operator_id, self.operator_key)
        self.logger.debug("Connected to %s as %s", self.settings.network, self.operator_id)
        return self

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None

    def __enter__(self) -> "Ledger":
        return self.connect()

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _submit(self, transaction, max_fee_hbar: int):
        transaction.transaction_fee = Hbar(max_fee_hbar).to_tinybars()
        receipt = transaction.freeze_with(self.client).sign(self.operator_key).execute(self.client)
        if receipt.status != ResponseCode.SUCCESS:
            raise LedgerError(f"Transaction failed with status {_status_name(receipt.status)}")
        return receipt

    def upload_bytecode(self, bytecode: str) -> Any:
        """Create a file for ``bytecode`` and append it in size-limited chunks."""
        fees = self.settings.max_fee_hbar
        self.logger.info("Creating file for contract bytecode...")
        receipt = self._submit(
            FileCreateTransaction().set_keys([self.operator_key.public_key()]),
            fees.file,
        )
        file_id = receipt.file_id
        if not file_id:
            raise LedgerError("Failed to create bytecode file - no file ID received")
        self.logger.info("Bytecode file created with ID %s", file_id)

        pieces = chunk(bytecode, self.settings.chunk_size)
        total = len(pieces)
        for index, piece in enumerate(pieces, start=1):
            self.logger.info("Uploading chunk %s of %s...", index, total)
            self._submit(
                FileAppendTransaction().set_file_id(file_id).set_contents(piece),
                fees.file,
            )
        self.logger.info("View file on HashScan: %s", self.settings.hashscan("file", file_id))
        return file_id

    def create_contract(self, file_id, gas: int, constructor_args: Optional[Args] = None) -> Any:
        transaction = (
            ContractCreateTransaction()
            .set_bytecode_file_id(file_id)
            .set_gas(gas)
            .set_admin_key(self.operator_key.public_key())
        )
        params = build_parameters(constructor_args)
        if params is not None:
            transaction = transaction.set_constructor_parameters(params)
        receipt = self._submit(transaction, self.settings.max_fee_hbar.contract)
        if self.consensus_wait_seconds:
            time.sleep(self.consensus_wait_seconds)
        contract_id = receipt.contract_id
        if not contract_id:
            raise LedgerError("Failed to create contract - no contract ID received")
        self.logger.info("Contract created with ID %s", contract_id)
        self.logger.info("View contract on HashScan: %s", self.settings.hashscan("contract", contract_id))
        return contract_id

    def deploy(self, bytecode: str, gas: int, constructor_args: Optional[Args] = None) -> Any:
        file_id = self.upload_bytecode(bytecode)
        return self.create_contract(file_id, gas, constructor_args)

    def call(self, contract_id: str, function: str, args: Optional[Args] = None):
        query = (
            ContractCallQuery()
            .set_contract_id(ContractId.from_string(str(contract_id)))
            .set_gas(self.settings.gas.call)
        )
        params = build_parameters(args)
        return query.set_function(function, params).execute(self.client)

    def execute(self, contract_id: str, function: str, args: Optional[Args] = None):
        transaction = (
            ContractExecuteTransaction()
            .set_contract_id(ContractId.from_string(str(contract_id)))
            .set_gas(self.settings.gas.execute)
        )
        params = build_parameters(args)
        receipt = self._submit(transaction.set_function(function, params), self.settings.max_fee_hbar.execute)
        self.logger.info("Transaction ID: %s", receipt.transaction_id)
        self.logger.info("View transaction on HashScan: %s", self.settings.hashscan("transaction", receipt.transaction_id))
        return receipt

    def evm_address(self, entity_id) -> str:
        """EVM address of an account or contract, as reported by the network."""
        info = AccountInfoQuery().set_account_id(AccountId.from_string(str(entity_id))).execute(self.client)
        address = getattr(info, "contract_account_id", None)
        if address:
            return normalize_evm_address(address)
        self.logger.debug("No contract account id for %s, deriving long-zero address", entity_id)
        return account_id_to_evm_address(str(entity_id))

    def operator_evm_address(self) -> str:
        return self.evm_address(self.settings.operator_account_id)
