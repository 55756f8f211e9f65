# tests/core/test_canonical.py
"""Tests for canonical text normalization and fingerprinting."""

import pytest

from proofmark.contracts import ValidationError
from proofmark.core.canonical import (
    CANONICAL_VERSION,
    canonicalize,
    fingerprint,
    fingerprint_content,
    is_fingerprint,
    validate_fingerprint,
)

HELLO_WORLD_FINGERPRINT = "0x35c6b9f66dceb6cf8f733d08689564e420e18eb40250d9435352617c027f36d6"
EMPTY_FINGERPRINT = "0xe3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


class TestCanonicalize:
    """Each normalization step, in isolation and in combination."""

    def test_crlf_becomes_lf(self) -> None:
        assert canonicalize("Hello\r\nWorld") == "Hello\nWorld"

    def test_trailing_whitespace_stripped_per_line(self) -> None:
        assert canonicalize("Hello   \nWorld  ") == "Hello\nWorld"

    def test_tabs_and_unicode_spaces_count_as_trailing_whitespace(self) -> None:
        assert canonicalize("Hello\t\u00a0\nWorld\u3000") == "Hello\nWorld"

    def test_byte_order_mark_is_whitespace(self) -> None:
        assert canonicalize("\ufeffHello\ufeff") == "Hello"
        assert fingerprint_content("\ufeffHello\nWorld\r\n") == HELLO_WORLD_FINGERPRINT

    @pytest.mark.parametrize("control", ["\x1c", "\x1d", "\x1e", "\x1f", "\x85"])
    def test_separator_controls_are_content(self, control: str) -> None:
        assert canonicalize(f"Hello{control}") == f"Hello{control}"
        assert canonicalize(f"{control}Hello") == f"{control}Hello"

    def test_vertical_tab_and_form_feed_are_whitespace(self) -> None:
        assert canonicalize("Hello\v\f\nWorld\u2028") == "Hello\nWorld"

    def test_leading_whitespace_inside_lines_preserved(self) -> None:
        assert canonicalize("def f():\n    return 1") == "def f():\n    return 1"

    def test_edge_blank_lines_trimmed(self) -> None:
        assert canonicalize("\n\nHello\nWorld\n\n") == "Hello\nWorld"

    def test_internal_blank_lines_preserved(self) -> None:
        assert canonicalize("Para one.\n\n\nPara two.") == "Para one.\n\n\nPara two."

    def test_whitespace_only_blank_lines_become_empty(self) -> None:
        assert canonicalize("a\n   \nb") == "a\n\nb"

    def test_combining_sequence_composed(self) -> None:
        assert canonicalize("e\u0301") == canonicalize("\u00e9") == "\u00e9"

    def test_lone_carriage_return_is_not_a_line_break(self) -> None:
        # Only CRLF pairs are normalized; a bare CR inside a line is content
        assert canonicalize("a\rb") == "a\rb"

    def test_cr_before_crlf(self) -> None:
        assert canonicalize("a\r\r\nb") == "a\nb"

    def test_empty_and_whitespace_only(self) -> None:
        assert canonicalize("") == ""
        assert canonicalize(" \r\n\t\n ") == ""

    def test_case_preserved(self) -> None:
        assert canonicalize("Hello") != canonicalize("hello")


class TestFingerprint:
    def test_known_digest(self) -> None:
        assert fingerprint("Hello\nWorld") == HELLO_WORLD_FINGERPRINT

    def test_empty_content_digest(self) -> None:
        assert fingerprint("") == EMPTY_FINGERPRINT

    def test_utf8_encoded(self) -> None:
        assert fingerprint("caf\u00e9") == "0x850f7dc43910ff890f8879c0ed26fe697c93a067ad93a7d50f466a7028a9bf4e"

    def test_line_ending_equivalence(self) -> None:
        assert fingerprint(canonicalize("Hello\r\nWorld")) == fingerprint(canonicalize("Hello\nWorld"))

    def test_fingerprint_content_canonicalizes_first(self) -> None:
        assert fingerprint_content("\n  \nHello  \r\nWorld\t\n") == HELLO_WORLD_FINGERPRINT

    def test_no_collisions_in_short_string_battery(self) -> None:
        battery = [f"note {i}" for i in range(200)] + [chr(c) for c in range(ord("a"), ord("z") + 1)]
        digests = {fingerprint_content(s) for s in battery}
        assert len(digests) == len(battery)

    def test_single_character_change_changes_fingerprint(self) -> None:
        assert fingerprint_content("Hello World") != fingerprint_content("Hello Worle")

    def test_canonical_version_names_the_algorithm(self) -> None:
        assert CANONICAL_VERSION.startswith("sha256")


class TestFingerprintValidation:
    def test_is_fingerprint(self) -> None:
        assert is_fingerprint(HELLO_WORLD_FINGERPRINT)

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "0x",
            HELLO_WORLD_FINGERPRINT[2:],
            HELLO_WORLD_FINGERPRINT.upper(),
            HELLO_WORLD_FINGERPRINT[:-1],
            HELLO_WORLD_FINGERPRINT + "0",
            "0x" + "g" * 64,
        ],
    )
    def test_rejects_malformed(self, value: str) -> None:
        assert not is_fingerprint(value)
        with pytest.raises(ValidationError) as exc_info:
            validate_fingerprint(value, field="parent_hash")
        assert exc_info.value.field == "parent_hash"

    def test_validate_returns_value(self) -> None:
        assert validate_fingerprint(HELLO_WORLD_FINGERPRINT) == HELLO_WORLD_FINGERPRINT
