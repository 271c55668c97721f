"""Tests for playback service protocol encoding and parsing."""

import pytest

from playctrl.api.protocol import (
    DELIMITER,
    PROTOCOL_VERSION,
    Command,
    FrameError,
    ProtocolError,
    decode_frame,
    encode_frame,
    format_float,
    format_int,
    parse_float,
    parse_id_list,
    parse_int,
)


class TestEncodeFrame:
    """Tests for encode_frame function."""

    def test_encode_without_arguments(self) -> None:
        """Test a bare opcode frame."""
        assert encode_frame(Command.VERSION) == "0"
        assert encode_frame(Command.GET_STATUS) == str(int(Command.GET_STATUS))

    def test_encode_with_arguments(self) -> None:
        """Test arguments are prefixed by the delimiter."""
        frame = encode_frame(Command.GET_QUEUE, "0", "25000")
        assert frame == f"10{DELIMITER}0{DELIMITER}25000"

    def test_round_trip(self) -> None:
        """Test decoding an encoded frame yields the same opcode and arguments."""
        frame = encode_frame(Command.SET_QUEUE, "3", "7")
        assert decode_frame(frame) == (Command.SET_QUEUE, ["3", "7"])

    def test_round_trip_empty_argument(self) -> None:
        """Test empty string arguments survive a round trip."""
        frame = encode_frame(Command.SET_QUEUE, "", "7")
        assert decode_frame(frame) == (Command.SET_QUEUE, ["", "7"])

    def test_rejects_delimiter_in_argument(self) -> None:
        """Test arguments containing the delimiter are rejected."""
        with pytest.raises(FrameError):
            encode_frame(Command.SET_QUEUE, f"3{DELIMITER}7")

    def test_rejects_delimiter_only_argument(self) -> None:
        """Test an argument equal to the delimiter is rejected."""
        with pytest.raises(FrameError):
            encode_frame(Command.ADD_TO_SUB_QUEUE, DELIMITER)

    def test_rejects_newline_in_argument(self) -> None:
        """Test arguments containing the frame terminator are rejected."""
        with pytest.raises(FrameError):
            encode_frame(Command.SET_VOLUME, "50\n")

    def test_frame_error_is_protocol_error(self) -> None:
        """Test FrameError can be caught as ProtocolError."""
        assert issubclass(FrameError, ProtocolError)


class TestDecodeFrame:
    """Tests for decode_frame function."""

    def test_decode_bare_opcode(self) -> None:
        """Test decoding a frame without arguments."""
        assert decode_frame("25") == (Command.GET_STATUS, [])

    def test_decode_unknown_opcode(self) -> None:
        """Test an opcode outside the command set is rejected."""
        with pytest.raises(ProtocolError):
            decode_frame("999")

    def test_decode_non_numeric_opcode(self) -> None:
        """Test a non-numeric opcode is rejected."""
        with pytest.raises(ProtocolError):
            decode_frame(f"play{DELIMITER}1")


class TestCommand:
    """Tests for the opcode table."""

    def test_version_query_is_zero(self) -> None:
        """Test the handshake opcode is 0."""
        assert Command.VERSION == 0

    def test_opcodes_are_contiguous(self) -> None:
        """Test opcodes run from 0 without gaps."""
        assert sorted(int(c) for c in Command) == list(range(len(Command)))

    def test_protocol_version(self) -> None:
        """Test the compiled-in protocol version."""
        assert PROTOCOL_VERSION == 1


class TestFormatting:
    """Tests for argument formatting helpers."""

    def test_format_int(self) -> None:
        """Test integer formatting."""
        assert format_int(42) == "42"
        assert format_int(-1) == "-1"

    def test_format_float_fixed_notation(self) -> None:
        """Test fractional values use six decimals."""
        assert format_float(50) == "50.000000"
        assert format_float(12.5) == "12.500000"


class TestParsing:
    """Tests for response parsing helpers."""

    def test_parse_int(self) -> None:
        """Test parsing integer payloads."""
        assert parse_int("42") == 42
        assert parse_int(" -1 ") == -1

    def test_parse_int_malformed(self) -> None:
        """Test malformed integers raise ProtocolError."""
        with pytest.raises(ProtocolError):
            parse_int("4x2")

    def test_parse_float(self) -> None:
        """Test parsing fractional payloads."""
        assert parse_float("12.500000") == 12.5
        assert parse_float("3") == 3.0

    def test_parse_float_malformed(self) -> None:
        """Test malformed numbers raise ProtocolError."""
        with pytest.raises(ProtocolError):
            parse_float("loud")

    def test_parse_id_list(self) -> None:
        """Test parsing a delimiter-separated ID list."""
        assert parse_id_list(f"5{DELIMITER}9{DELIMITER}12") == [5, 9, 12]

    def test_parse_id_list_single(self) -> None:
        """Test parsing a single ID."""
        assert parse_id_list("5") == [5]

    def test_parse_id_list_empty(self) -> None:
        """Test an empty payload yields an empty list."""
        assert parse_id_list("") == []

    def test_parse_id_list_lone_delimiter(self) -> None:
        """Test a lone delimiter yields an empty list."""
        assert parse_id_list(DELIMITER) == []

    def test_parse_id_list_skips_empty_tokens(self) -> None:
        """Test doubled and trailing delimiters are ignored."""
        assert parse_id_list(f"{DELIMITER}5{DELIMITER}{DELIMITER}9{DELIMITER}") == [5, 9]

    def test_parse_id_list_malformed_token(self) -> None:
        """Test a malformed token raises ProtocolError."""
        with pytest.raises(ProtocolError):
            parse_id_list(f"5{DELIMITER}nine{DELIMITER}12")
