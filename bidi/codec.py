"""Pure conversions between ledger identifiers, EVM addresses and token amounts."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Union

from .logger import get_logger

SHARD_HEX_WIDTH = 8  # 4 bytes
REALM_HEX_WIDTH = 8  # 4 bytes
NUM_HEX_WIDTH = 24  # 12 bytes
EVM_ADDRESS_HEX_WIDTH = SHARD_HEX_WIDTH + REALM_HEX_WIDTH + NUM_HEX_WIDTH

TOKEN_DECIMALS = 18
DEFAULT_CHUNK_SIZE = 4000
SCIENTIFIC_THRESHOLD = 24

_AMOUNT_RE = re.compile(r"[0-9]+\.?[0-9]*")
_HEX_RE = re.compile(r"[0-9a-fA-F]*")

logger = get_logger("bidi.codec")

Payload = Union[bytes, bytearray, str]


class CodecError(ValueError):
    """Base class for conversion failures."""


class ValidationError(CodecError):
    """Raised when an input string does not have the expected shape."""


class EncodingError(CodecError):
    """Raised when a numeric component does not fit its byte width."""


class DecodingError(CodecError):
    """Raised when hexadecimal input was expected but not supplied."""


@dataclass(frozen=True)
class AccountIdentifier:
    shard: int
    realm: int
    num: int

    @classmethod
    def parse(cls, value: str) -> "AccountIdentifier":
        parts = str(value).strip().split(".")
        if len(parts) != 3 or not all(part.isdigit() and part.isascii() for part in parts):
            raise ValidationError(f"Invalid account id {value!r}, expected shard.realm.num")
        shard, realm, num = (int(part) for part in parts)
        return cls(shard, realm, num)

    def __str__(self) -> str:
        return f"{self.shard}.{self.realm}.{self.num}"


def _as_identifier(account_id) -> AccountIdentifier:
    if isinstance(account_id, AccountIdentifier):
        return account_id
    if isinstance(account_id, str):
        return AccountIdentifier.parse(account_id)
    # SDK AccountId / ContractId objects expose the same three fields.
    return AccountIdentifier(int(account_id.shard), int(account_id.realm), int(account_id.num))


def _hex_field(name: str, value: int, width: int) -> str:
    if value < 0:
        raise EncodingError(f"{name} must be non-negative, got {value}")
    rendered = format(value, "x")
    if len(rendered) > width:
        raise EncodingError(f"{name} {value} does not fit in {width // 2} bytes")
    return rendered.rjust(width, "0")


def account_id_to_evm_address(account_id) -> str:
    """Encode ``shard.realm.num`` as a 20-byte long-zero EVM address.

    Each component is zero-padded big-endian to its width (4, 4 and 12
    bytes) and the fields are concatenated in that order. Components that
    do not fit raise :class:`EncodingError`.
    """
    ident = _as_identifier(account_id)
    address = "0x" + (
        _hex_field("shard", ident.shard, SHARD_HEX_WIDTH)
        + _hex_field("realm", ident.realm, REALM_HEX_WIDTH)
        + _hex_field("num", ident.num, NUM_HEX_WIDTH)
    )
    if len(address) != EVM_ADDRESS_HEX_WIDTH + 2:
        raise EncodingError(f"Invalid EVM address length: {len(address)}. Address: {address}")
    return address


def _strip_prefix(value: str) -> str:
    value = value.strip()
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def evm_address_to_account_id(address: str) -> AccountIdentifier:
    """Strict inverse of :func:`account_id_to_evm_address`."""
    digits = _strip_prefix(address)
    if len(digits) != EVM_ADDRESS_HEX_WIDTH or not _HEX_RE.fullmatch(digits):
        raise DecodingError(f"Not a {EVM_ADDRESS_HEX_WIDTH}-digit hex address: {address!r}")
    realm_end = SHARD_HEX_WIDTH + REALM_HEX_WIDTH
    return AccountIdentifier(
        shard=int(digits[:SHARD_HEX_WIDTH], 16),
        realm=int(digits[SHARD_HEX_WIDTH:realm_end], 16),
        num=int(digits[realm_end:], 16),
    )


def evm_address_to_account_num(address: str) -> AccountIdentifier:
    """Recover ``0.0.num`` from an address, ignoring shard and realm.

    Every hex digit after the leading zeros is read as the account number, so
    this only matches :func:`evm_address_to_account_id` for addresses whose
    shard and realm are zero. Kept for owner lookups on contract results.
    """
    digits = _strip_prefix(address).lstrip("0")
    if not _HEX_RE.fullmatch(digits):
        raise DecodingError(f"Not a hex address: {address!r}")
    return AccountIdentifier(0, 0, int(digits, 16) if digits else 0)


def normalize_evm_address(value) -> str:
    """Return a ``0x``-prefixed lowercase hex address from SDK bytes or text."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    text = str(value).strip().lower()
    return text if text.startswith("0x") else "0x" + text


def to_fixed_point(amount: str, decimals: int = TOKEN_DECIMALS) -> int:
    """Convert a human amount such as ``"1,000.5"`` to its on-chain integer.

    Fraction digits beyond ``decimals`` are truncated, not rounded.
    """
    clean = str(amount).replace(",", "")
    if not _AMOUNT_RE.fullmatch(clean):
        raise ValidationError("Invalid amount. Please enter a valid number.")
    whole, _, fraction = clean.partition(".")
    padded = fraction.ljust(decimals, "0")[:decimals]
    return int((whole + padded).lstrip("0") or "0")


def format_token_amount(raw, decimals: int = TOKEN_DECIMALS, unit: str = "") -> str:
    """Render a fixed-point amount for display. Never raises."""
    suffix = f" {unit}" if unit else ""
    try:
        if isinstance(raw, (bool, float)) or not isinstance(raw, (int, str)):
            raise TypeError(f"expected an integer or digit string, got {type(raw).__name__}")
        amount = int(raw)
        scale = 10 ** decimals
        sign = "-" if amount < 0 else ""
        whole, remainder = divmod(abs(amount), scale)
        if remainder == 0:
            return f"{sign}{whole}{suffix}"
        trimmed = str(remainder).rjust(decimals, "0").rstrip("0")
        if not trimmed:
            return f"{sign}{whole}{suffix}"
        return f"{sign}{whole}.{trimmed}{suffix}"
    except (OverflowError, TypeError, ValueError) as exc:
        logger.error("Error formatting token amount %r: %s", raw, exc)
        return f"{raw}{suffix} (raw)"


def format_with_separators(raw) -> str:
    """Group digits by thousands, or switch to ``d.ddde+N`` past 24 digits.

    Display only; the scientific form drops precision.
    """
    digits = str(raw)
    if len(digits) > SCIENTIFIC_THRESHOLD:
        return f"{digits[:1]}.{digits[1:4]}e+{len(digits) - 1}"
    return re.sub(r"\B(?=(\d{3})+(?!\d))", ",", digits)


class Chunks:
    """Restartable view over a payload split into ``max_size`` slices."""

    def __init__(self, payload: Payload, max_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.payload = payload
        self.max_size = max_size

    def __len__(self) -> int:
        return -(-len(self.payload) // self.max_size)

    def __iter__(self) -> Iterator[Payload]:
        for start in range(0, len(self.payload), self.max_size):
            yield self.payload[start : start + self.max_size]


def chunk(payload: Payload, max_size: int = DEFAULT_CHUNK_SIZE) -> Chunks:
    return Chunks(payload, max_size)


def decode_hex_string(value: str) -> str:
    """Decode a hex storage value into text, stopping at the first zero byte."""
    digits = _strip_prefix(value)
    if not _HEX_RE.fullmatch(digits):
        raise DecodingError(f"Not a hex string: {value!r}")
    try:
        raw = bytes.fromhex(digits)
    except ValueError as exc:
        raise DecodingError(f"Not a hex string: {value!r}") from exc
    return raw.split(b"\x00", 1)[0].decode("latin-1")


__all__ = [
    "AccountIdentifier",
    "Chunks",
    "CodecError",
    "DEFAULT_CHUNK_SIZE",
    "DecodingError",
    "EncodingError",
    "TOKEN_DECIMALS",
    "ValidationError",
    "account_id_to_evm_address",
    "chunk",
    "decode_hex_string",
    "evm_address_to_account_id",
    "evm_address_to_account_num",
    "format_token_amount",
    "format_with_separators",
    "normalize_evm_address",
    "to_fixed_point",
]
