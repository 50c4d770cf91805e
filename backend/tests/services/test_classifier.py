# tests/services/test_classifier.py
"""
Tests for transaction classification.

The classifier is pure, so every case is a plain input -> output check.
"""

import pytest

from app.services.transactions.classifier import (
    classify,
    classify_type,
    detect_direction,
    extract_method_signature,
    method_name,
    set_direction_for_address,
)
from app.services.transactions.types import (
    TransactionDirection,
    TransactionType,
)
from tests.conftest import OTHER, USDC, WALLET, make_transfer


class TestExtractMethodSignature:
    """Tests for selector extraction."""

    def test_lowercases_selector(self):
        assert extract_method_signature("0xA9059CBB0000") == "0xa9059cbb"

    @pytest.mark.parametrize("input_data", ["", None, "0x", "0xa9059c"])
    def test_short_input_has_no_selector(self, input_data):
        """Should return "" when the input is shorter than a selector."""
        assert extract_method_signature(input_data) == ""


class TestClassifyType:
    """Tests for selector -> type mapping."""

    @pytest.mark.parametrize("selector,expected", [
        ("0xa9059cbb", TransactionType.SEND),
        ("0x23b872dd", TransactionType.SEND),
        ("0x7ff36ab5", TransactionType.SWAP),
        ("0x38ed1739", TransactionType.SWAP),
        ("0x414bf389", TransactionType.SWAP),
        ("0x3593564c", TransactionType.SWAP),
        ("0x3d18b912", TransactionType.STAKE),
        ("0xb6b55f25", TransactionType.STAKE),
    ])
    def test_known_selectors(self, selector, expected):
        assert classify_type(selector) == expected

    def test_unknown_selector_defaults_to_send(self):
        assert classify_type("0xdeadbeef") == TransactionType.SEND

    def test_empty_selector_defaults_to_send(self):
        assert classify_type("") == TransactionType.SEND

    def test_selector_from_input_data(self):
        """Should extract the selector when none is given."""
        assert classify_type(None, "0x7ff36ab5" + "00" * 32) == TransactionType.SWAP

    def test_uppercase_selector(self):
        assert classify_type("0x7FF36AB5") == TransactionType.SWAP


class TestMethodName:
    def test_named_selector(self):
        assert method_name("0x7ff36ab5") == "swapExactETHForTokens"

    def test_plain_transfer(self):
        assert method_name("") == "transfer"

    def test_unknown_selector(self):
        assert method_name("0xdeadbeef") == "unknown"


class TestDirection:
    """Tests for direction detection."""

    def test_outgoing(self):
        assert detect_direction(WALLET, OTHER, WALLET) == TransactionDirection.OUT

    def test_incoming(self):
        assert detect_direction(OTHER, WALLET, WALLET) == TransactionDirection.IN

    def test_case_insensitive(self):
        mixed = "0x" + USDC.address[2:].upper()
        assert detect_direction(OTHER, mixed, USDC.address) == TransactionDirection.IN

    def test_self_transfer_is_outgoing(self):
        assert detect_direction(WALLET, WALLET, WALLET) == TransactionDirection.OUT

    def test_unrelated_defaults_to_outgoing(self):
        """Should report OUT when neither side is the address."""
        third = "0x" + "3" * 40
        assert detect_direction(OTHER, third, WALLET) == TransactionDirection.OUT

    def test_set_direction_leaves_unrelated_unset(self):
        """Should leave direction None when neither side matches."""
        tx = make_transfer(sender=OTHER, recipient="0x" + "3" * 40)

        set_direction_for_address(tx, WALLET)

        assert tx.direction is None

    def test_set_direction_leaves_self_transfer_unset(self):
        tx = make_transfer(sender=WALLET, recipient=WALLET)

        set_direction_for_address(tx, WALLET)

        assert tx.direction is None

    def test_set_direction_clears_earlier_classification(self):
        """Should not keep the OUT that classify gives a self-transfer."""
        tx = classify(make_transfer(sender=WALLET, recipient=WALLET), WALLET)
        assert tx.direction == TransactionDirection.OUT

        set_direction_for_address(tx, WALLET)

        assert tx.direction is None

    def test_set_direction_incoming(self):
        tx = make_transfer(sender=OTHER, recipient=WALLET)

        set_direction_for_address(tx, WALLET)

        assert tx.direction == TransactionDirection.IN


class TestClassify:
    """Tests for full classification."""

    def test_plain_incoming_is_receive(self):
        tx = classify(make_transfer(sender=OTHER, recipient=WALLET), WALLET)

        assert tx.direction == TransactionDirection.IN
        assert tx.type == TransactionType.RECEIVE

    def test_plain_outgoing_is_send(self):
        tx = classify(make_transfer(sender=WALLET, recipient=OTHER), WALLET)

        assert tx.direction == TransactionDirection.OUT
        assert tx.type == TransactionType.SEND

    def test_incoming_erc20_transfer_is_receive(self):
        """Should turn a transfer() arriving at the address into a receive."""
        tx = make_transfer(sender=OTHER, recipient=WALLET, token=USDC, method_signature="0xa9059cbb")

        classify(tx, WALLET)

        assert tx.type == TransactionType.RECEIVE

    def test_swap_selector_wins(self):
        tx = make_transfer(sender=WALLET, recipient=OTHER, method_signature="0x7ff36ab5")

        classify(tx, WALLET)

        assert tx.type == TransactionType.SWAP

    def test_incoming_swap_stays_swap(self):
        """Should only correct SEND to RECEIVE, not other types."""
        tx = make_transfer(sender=OTHER, recipient=WALLET, method_signature="0x7ff36ab5")

        classify(tx, WALLET)

        assert tx.type == TransactionType.SWAP

    def test_selector_taken_from_input_data(self):
        tx = make_transfer(sender=WALLET, recipient=OTHER)
        tx.input_data = "0x3d18b912" + "00" * 32

        classify(tx, WALLET)

        assert tx.method_signature == "0x3d18b912"
        assert tx.type == TransactionType.STAKE

    def test_is_deterministic(self):
        """Should give the same result when classified twice."""
        tx = make_transfer(sender=OTHER, recipient=WALLET, method_signature="0xa9059cbb")

        first = (classify(tx, WALLET).type, tx.direction)
        second = (classify(tx, WALLET).type, tx.direction)

        assert first == second
