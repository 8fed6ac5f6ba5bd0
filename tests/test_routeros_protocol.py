"""Tests for the RouterOS API word and sentence encoding."""

import pytest

from app.services.routeros_protocol import (
    decode_length,
    encode_length,
    encode_sentence,
    format_args,
    length_prefix_size,
    md5_challenge_response,
    parse_reply,
)


class TestLengthEncoding:
    """Tests for the variable-length word prefix."""

    @pytest.mark.parametrize(
        "length, encoded",
        [
            (0x00, b"\x00"),
            (0x7F, b"\x7f"),
            (0x80, b"\x80\x80"),
            (0x3FFF, b"\xbf\xff"),
            (0x4000, b"\xc0\x40\x00"),
            (0x1FFFFF, b"\xdf\xff\xff"),
            (0x200000, b"\xe0\x20\x00\x00"),
            (0xFFFFFFF, b"\xef\xff\xff\xff"),
            (0x10000000, b"\xf0\x10\x00\x00\x00"),
        ],
    )
    def test_boundaries(self, length: int, encoded: bytes) -> None:
        """Each size class switches at the documented boundary and decodes back."""
        assert encode_length(length) == encoded
        assert length_prefix_size(encoded[0]) == len(encoded)
        assert decode_length(encoded) == length

    def test_negative_length_rejected(self) -> None:
        with pytest.raises(ValueError):
            encode_length(-1)

    def test_reserved_control_byte_rejected(self) -> None:
        """0xF8 and above are reserved for control bytes."""
        with pytest.raises(ValueError):
            length_prefix_size(0xF8)

    def test_short_prefix_rejected(self) -> None:
        with pytest.raises(ValueError):
            decode_length(b"\xc0\x40")


class TestSentences:
    """Tests for sentence framing."""

    def test_sentence_ends_with_empty_word(self) -> None:
        data = encode_sentence(["/interface/print"])
        assert data == b"\x10/interface/print\x00"

    def test_each_word_is_length_prefixed(self) -> None:
        data = encode_sentence(["!re", "=name=ether1"])
        assert data == b"\x03!re\x0c=name=ether1\x00"

    def test_utf8_words_use_byte_length(self) -> None:
        """Length counts encoded bytes, not characters."""
        word = "=comment=café"
        data = encode_sentence([word])
        assert data == bytes([len(word.encode("utf-8"))]) + word.encode("utf-8") + b"\x00"
        assert data[0] == len(word) + 1

    def test_long_word_gets_two_byte_prefix(self) -> None:
        word = "=comment=" + "x" * 200
        data = encode_sentence([word])
        assert data[:2] == encode_length(209)
        assert data[2:-1].decode("utf-8") == word


class TestParseReply:
    """Tests for reply attribute parsing."""

    def test_attributes_become_mapping(self) -> None:
        reply_type, attrs = parse_reply(["!re", "=.id=*1", "=name=ether1", "=disabled=false"])
        assert reply_type == "!re"
        assert attrs == {".id": "*1", "name": "ether1", "disabled": "false"}

    def test_value_may_contain_equals(self) -> None:
        _, attrs = parse_reply(["!re", "=comment=a=b"])
        assert attrs == {"comment": "a=b"}

    def test_tag_word_is_kept(self) -> None:
        _, attrs = parse_reply(["!done", ".tag=7"])
        assert attrs == {".tag": "7"}

    def test_empty_sentence(self) -> None:
        assert parse_reply([]) == (None, {})


def test_format_args() -> None:
    assert format_args({"interface": "ether1,ether2", "once": None}) == [
        "=interface=ether1,ether2",
        "=once=",
    ]
    assert format_args(None) == []


def test_md5_challenge_response() -> None:
    """Legacy login answer for a known challenge."""
    import hashlib

    challenge = "0123456789abcdef0123456789abcdef"
    expected = "00" + hashlib.md5(b"\x00" + b"secret" + bytes.fromhex(challenge)).hexdigest()
    assert md5_challenge_response("secret", challenge) == expected
    assert len(md5_challenge_response("secret", challenge)) == 34
