"""
Tests for bidi.codec

Covers:
1. shard.realm.num <-> EVM address (strict and legacy decoders)
2. decimal string <-> fixed-point token amounts
3. display formatting with separators / scientific notation
4. payload chunking and hex string decoding
"""

from types import SimpleNamespace

import pytest

from bidi.codec import (
    AccountIdentifier,
    DecodingError,
    EncodingError,
    ValidationError,
    account_id_to_evm_address,
    chunk,
    decode_hex_string,
    evm_address_to_account_id,
    evm_address_to_account_num,
    format_token_amount,
    format_with_separators,
    normalize_evm_address,
    to_fixed_point,
)

ADDRESS_1234 = "0x" + "0" * 37 + "4d2"


class TestAccountIdentifier:
    """Parsing and rendering of shard.realm.num"""

    def test_parse_and_str(self) -> None:
        ident = AccountIdentifier.parse("0.0.1234")
        assert ident == AccountIdentifier(0, 0, 1234)
        assert str(ident) == "0.0.1234"

    @pytest.mark.parametrize("value", ["", "0.0", "0.0.1.2", "a.b.c", "0.0.-1", "0. 0.1"])
    def test_parse_rejects_malformed(self, value: str) -> None:
        with pytest.raises(ValidationError):
            AccountIdentifier.parse(value)


class TestAccountIdToEvmAddress:
    """Encoding an identifier into a 20-byte address"""

    def test_zero_shard_realm(self) -> None:
        assert account_id_to_evm_address("0.0.1234") == ADDRESS_1234

    def test_all_components_placed_big_endian(self) -> None:
        address = account_id_to_evm_address(AccountIdentifier(1, 2, 3))
        assert address == "0x" + "00000001" + "00000002" + "0" * 23 + "3"

    def test_accepts_sdk_like_objects(self) -> None:
        sdk_id = SimpleNamespace(shard=0, realm=0, num=1234)
        assert account_id_to_evm_address(sdk_id) == ADDRESS_1234

    def test_output_shape(self) -> None:
        for ident in ("0.0.0", "0.0.5", "4294967295.4294967295.79228162514264337593543950335"):
            address = account_id_to_evm_address(ident)
            assert len(address) == 42
            assert address.startswith("0x")
            assert address == address.lower()

    def test_max_widths_fit(self) -> None:
        address = account_id_to_evm_address(AccountIdentifier(2**32 - 1, 2**32 - 1, 2**96 - 1))
        assert address == "0x" + "f" * 40

    @pytest.mark.parametrize(
        "ident",
        [
            AccountIdentifier(2**32, 0, 1),
            AccountIdentifier(0, 2**32, 1),
            AccountIdentifier(0, 0, 2**96),
            AccountIdentifier(0, 0, -1),
        ],
    )
    def test_out_of_range_component_raises(self, ident: AccountIdentifier) -> None:
        with pytest.raises(EncodingError):
            account_id_to_evm_address(ident)


class TestEvmAddressDecoding:
    """Strict inverse and the legacy account-number decoder"""

    def test_strict_round_trip(self) -> None:
        for ident in (AccountIdentifier(0, 0, 1234), AccountIdentifier(1, 2, 3), AccountIdentifier(7, 0, 2**96 - 1)):
            assert evm_address_to_account_id(account_id_to_evm_address(ident)) == ident

    def test_strict_accepts_missing_prefix_and_uppercase(self) -> None:
        assert evm_address_to_account_id(ADDRESS_1234[2:].upper()) == AccountIdentifier(0, 0, 1234)

    @pytest.mark.parametrize("address", ["0x1234", "0x" + "g" * 40, "0x" + "0" * 41])
    def test_strict_rejects_bad_input(self, address: str) -> None:
        with pytest.raises(DecodingError):
            evm_address_to_account_id(address)

    def test_legacy_recovers_account_number(self) -> None:
        assert evm_address_to_account_num(ADDRESS_1234) == AccountIdentifier(0, 0, 1234)
        assert str(evm_address_to_account_num(ADDRESS_1234[2:])) == "0.0.1234"

    def test_legacy_round_trip_for_zero_shard_realm(self) -> None:
        for num in (0, 1, 1234, 5_000_000, 2**96 - 1):
            address = account_id_to_evm_address(AccountIdentifier(0, 0, num))
            assert evm_address_to_account_num(address).num == num

    def test_legacy_folds_shard_into_number(self) -> None:
        address = account_id_to_evm_address(AccountIdentifier(1, 0, 3))
        decoded = evm_address_to_account_num(address)
        assert (decoded.shard, decoded.realm) == (0, 0)
        assert decoded.num == int("1" + "0" * 31 + "3", 16)

    def test_legacy_all_zero_address(self) -> None:
        assert evm_address_to_account_num("0x" + "0" * 40) == AccountIdentifier(0, 0, 0)

    def test_legacy_rejects_non_hex(self) -> None:
        with pytest.raises(DecodingError):
            evm_address_to_account_num("0xzz12")

    def test_normalize_evm_address(self) -> None:
        assert normalize_evm_address(b"\x12\x34") == "0x1234"
        assert normalize_evm_address("ABCD") == "0xabcd"
        assert normalize_evm_address(ADDRESS_1234) == ADDRESS_1234


class TestToFixedPoint:
    """Human decimal strings to 18-decimal integers"""

    def test_whole_number(self) -> None:
        assert to_fixed_point("1000") == int("1000" + "0" * 18)

    def test_fraction(self) -> None:
        assert to_fixed_point("1000.5") == 1000500000000000000000

    def test_commas_are_stripped(self) -> None:
        assert to_fixed_point("1,000,000.25") == to_fixed_point("1000000.25")

    def test_smallest_unit(self) -> None:
        assert to_fixed_point("0.000000000000000001") == 1

    def test_excess_precision_is_truncated_not_rounded(self) -> None:
        assert to_fixed_point("1.1234567890123456789") == 1123456789012345678
        assert to_fixed_point("0.0000000000000000019") == 1

    def test_leading_zeros_and_trailing_dot(self) -> None:
        assert to_fixed_point("007") == 7 * 10**18
        assert to_fixed_point("5.") == 5 * 10**18
        assert to_fixed_point("0") == 0
        assert to_fixed_point("0.0") == 0

    def test_custom_decimals(self) -> None:
        assert to_fixed_point("1.5", decimals=6) == 1_500_000
        assert to_fixed_point("12.9", decimals=0) == 12

    def test_beyond_64_bits(self) -> None:
        assert to_fixed_point("123456789012345678901234567890") == 123456789012345678901234567890 * 10**18

    @pytest.mark.parametrize("value", ["abc", "", ".5", "1.2.3", "-1", "1e18", " 1", "1 000", "١٢"])
    def test_invalid_amounts(self, value: str) -> None:
        with pytest.raises(ValidationError, match="Invalid amount"):
            to_fixed_point(value)


class TestFormatTokenAmount:
    """Fixed-point integers back to display strings"""

    def test_zero(self) -> None:
        assert format_token_amount(0) == "0"
        assert format_token_amount(0, unit="BIDI") == "0 BIDI"

    def test_whole_amount(self) -> None:
        assert format_token_amount(1000 * 10**18, unit="BIDI") == "1000 BIDI"

    def test_fraction_trailing_zeros_trimmed(self) -> None:
        assert format_token_amount(1000500000000000000000) == "1000.5"
        assert format_token_amount("1500000000000000000", unit="BIDI") == "1.5 BIDI"

    def test_fraction_leading_zeros_kept(self) -> None:
        assert format_token_amount(1) == "0.000000000000000001"
        assert format_token_amount(10**18 + 5 * 10**15) == "1.005"

    def test_large_values_keep_precision(self) -> None:
        raw = 123456789012345678901234567890123456789
        assert format_token_amount(raw) == "123456789012345678901.234567890123456789"

    def test_custom_decimals(self) -> None:
        assert format_token_amount(1_500_000, decimals=6) == "1.5"

    def test_unparseable_input_falls_back(self) -> None:
        assert format_token_amount("not-a-number", unit="BIDI") == "not-a-number BIDI (raw)"
        assert format_token_amount(None) == "None (raw)"

    def test_floats_are_not_truncated(self) -> None:
        assert format_token_amount(1.5, unit="BIDI") == "1.5 BIDI (raw)"
        assert format_token_amount(float("inf"), unit="BIDI") == "inf BIDI (raw)"
        assert format_token_amount(True) == "True (raw)"

    @pytest.mark.parametrize("value", ["1000.5", "0.25", "42", "0", "123456789.000000000000000001"])
    def test_round_trip_of_normalized_strings(self, value: str) -> None:
        assert format_token_amount(to_fixed_point(value)) == value

    def test_round_trip_normalizes(self) -> None:
        assert format_token_amount(to_fixed_point("0010.500")) == "10.5"
        assert format_token_amount(to_fixed_point("3.")) == "3"


class TestFormatWithSeparators:
    """Cosmetic digit grouping"""

    def test_short_numbers(self) -> None:
        assert format_with_separators("1") == "1"
        assert format_with_separators("123") == "123"
        assert format_with_separators("1234") == "1,234"
        assert format_with_separators("123456") == "123,456"
        assert format_with_separators(1234567) == "1,234,567"

    def test_twenty_four_digits_still_grouped(self) -> None:
        assert format_with_separators("1" * 24) == ",".join(["111"] * 8)

    def test_long_numbers_use_scientific_notation(self) -> None:
        assert format_with_separators("1234567890123456789012345") == "1.234e+24"
        assert format_with_separators(to_fixed_point("5000000")) == "5.000e+24"


class TestChunk:
    """Order-preserving bounded slices"""

    def test_uneven_split(self) -> None:
        payload = bytes(range(256)) * 33 + b"x" * 52  # 8500 bytes
        pieces = chunk(payload, 4000)
        assert len(pieces) == 3
        assert [len(p) for p in pieces] == [4000, 4000, 500]
        assert b"".join(pieces) == payload

    def test_even_split(self) -> None:
        payload = "ab" * 4000
        pieces = list(chunk(payload, 4000))
        assert [len(p) for p in pieces] == [4000, 4000]
        assert "".join(pieces) == payload

    def test_short_payload_is_single_chunk(self) -> None:
        assert list(chunk("6080", 4000)) == ["6080"]

    def test_empty_payload(self) -> None:
        pieces = chunk(b"", 4000)
        assert len(pieces) == 0
        assert list(pieces) == []

    def test_restartable(self) -> None:
        pieces = chunk("abcdefg", 3)
        assert list(pieces) == ["abc", "def", "g"]
        assert list(pieces) == ["abc", "def", "g"]

    def test_invalid_size(self) -> None:
        with pytest.raises(ValueError):
            chunk("abc", 0)


class TestDecodeHexString:
    """Null-terminated hex storage values"""

    def test_stops_at_null(self) -> None:
        assert decode_hex_string("0x42494449" + "00" * 27 + "08") == "BIDI"

    def test_without_prefix(self) -> None:
        assert decode_hex_string("4e4654") == "NFT"

    def test_empty(self) -> None:
        assert decode_hex_string("0x") == ""

    def test_non_hex(self) -> None:
        with pytest.raises(DecodingError):
            decode_hex_string("0xzz")

    @pytest.mark.parametrize("value", ["0x41 42", "0x414", "0x41\n42"])
    def test_rejects_whitespace_and_odd_length(self, value: str) -> None:
        with pytest.raises(DecodingError):
            decode_hex_string(value)
