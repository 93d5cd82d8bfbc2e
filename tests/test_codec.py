"""Unit tests for the scalar codec."""

import io
import math

import numpy as np
import pytest

from featurefile import codec
from featurefile.errors import BadArgumentError, EndOfFileError, WriteError
from featurefile.protocol import Protocol


class _FailingStream(io.RawIOBase):
    """Writable stream that accepts at most *limit* bytes per write."""

    def __init__(self, limit):
        self.limit = limit

    def writable(self):
        return True

    def write(self, data):
        return min(len(data), self.limit)


class _NonBlockingStream(io.RawIOBase):
    """Readable stream returning some bytes, then ``None`` (no data yet)."""

    def __init__(self, data):
        self._chunks = [data]

    def readable(self):
        return True

    def read(self, size=-1):
        if self._chunks:
            return self._chunks.pop()
        return None


class TestEndianness:
    """Test wire byte order normalization."""

    def test_wire_order_is_big_endian(self):
        """Test that doubles are stored most significant byte first."""
        assert codec.encode_double(1.0) == bytes.fromhex("3ff0000000000000")

    @pytest.mark.parametrize("host", ["little", "big"])
    def test_encoding_is_host_independent(self, host):
        """Test that simulated little- and big-endian hosts agree on the wire."""
        assert codec.encode_double(-2.5, host) == bytes.fromhex("c004000000000000")

    @pytest.mark.parametrize("host", ["little", "big"])
    def test_adapt_from_simulated_native(self, host):
        """Test normalization of a native representation for each host order."""
        order = "<" if host == "little" else ">"
        native = np.array([3.25], dtype=order + "f8").tobytes()
        wire = codec.adapt_endianness(native, host)
        assert wire == np.array([3.25], dtype=">f8").tobytes()

    def test_adapt_is_an_involution(self):
        """Test that applying the conversion twice restores the input."""
        data = bytes(range(8))
        for host in ("little", "big"):
            assert codec.adapt_endianness(codec.adapt_endianness(data, host), host) == data

    def test_little_host_reverses_bytes(self):
        """Test that a little-endian host swaps bytes."""
        assert codec.adapt_endianness(b"\x01\x02", "little") == b"\x02\x01"
        assert codec.adapt_endianness(b"\x01\x02", "big") == b"\x01\x02"

    @pytest.mark.parametrize("host", ["little", "big"])
    def test_decode_round_trip(self, host):
        """Test bit-identical recovery on both simulated hosts."""
        for value in (0.0, -0.0, 1e-300, 123456.789, -math.pi, math.inf):
            wire = codec.encode_double(value, host)
            restored = codec.decode_double(wire, host)
            assert np.float64(restored).tobytes() == np.float64(value).tobytes()

    def test_unknown_host_order(self):
        """Test that only little and big are accepted."""
        with pytest.raises(ValueError, match="host_byte_order"):
            codec.adapt_endianness(b"\x00" * 8, "middle")

    def test_decode_requires_eight_bytes(self):
        """Test that partial doubles are rejected."""
        with pytest.raises(BadArgumentError):
            codec.decode_double(b"\x00" * 7)


class TestAsciiCodec:
    """Test the human-readable protocol."""

    def test_put_double_format(self):
        """Test general format with a trailing space."""
        stream = io.StringIO()
        codec.put_double(stream, Protocol.ASCII, 0.5)
        codec.put_double(stream, Protocol.ASCII, 1e-5)
        codec.put_double(stream, Protocol.ASCII, 2.0)
        assert stream.getvalue() == "0.5 1e-05 2.0 "

    def test_put_byte_format(self):
        """Test decimal integer output with a trailing space."""
        stream = io.StringIO()
        codec.put_byte(stream, Protocol.ASCII, 0)
        codec.put_byte(stream, Protocol.ASCII, 255)
        assert stream.getvalue() == "0 255 "

    def test_put_to_binary_buffer(self):
        """Test that ascii tokens can target byte streams too."""
        stream = io.BytesIO()
        codec.put_byte(stream, Protocol.ASCII, 7)
        assert stream.getvalue() == b"7 "

    def test_round_trip(self):
        """Test that ascii doubles read back within tolerance."""
        values = [0.1, -3.75, 6.02214076e23, 1.0 / 3.0]
        stream = io.StringIO()
        for value in values:
            codec.put_double(stream, Protocol.ASCII, value)
        stream.seek(0)
        for value in values:
            assert codec.get_double(stream, Protocol.ASCII) == pytest.approx(value, rel=1e-6)

    def test_reads_any_whitespace(self):
        """Test that tokens may be separated by newlines and tabs."""
        stream = io.StringIO("  1.5\n\t-2e3\n")
        assert codec.get_double(stream, Protocol.ASCII) == 1.5
        assert codec.get_double(stream, Protocol.ASCII) == -2000.0

    def test_end_of_file(self):
        """Test that exhausted input reports end of file."""
        stream = io.StringIO("4.0 \n  ")
        codec.get_double(stream, Protocol.ASCII)
        with pytest.raises(EndOfFileError):
            codec.get_double(stream, Protocol.ASCII)

    def test_corrupted_token_is_bad_argument(self):
        """Test that a non-numeric token is malformed data, not end of file."""
        stream = io.StringIO("1.0 abc 2.0")
        codec.get_double(stream, Protocol.ASCII)
        with pytest.raises(BadArgumentError, match="abc"):
            codec.get_double(stream, Protocol.ASCII)

    def test_underscored_number_is_rejected(self):
        """Test that Python-only literal syntax is not accepted."""
        with pytest.raises(BadArgumentError):
            codec.get_double(io.StringIO("1_000"), Protocol.ASCII)

    def test_special_values(self):
        """Test that inf and nan survive the ascii protocol."""
        stream = io.StringIO()
        codec.put_double(stream, Protocol.ASCII, math.inf)
        codec.put_double(stream, Protocol.ASCII, math.nan)
        stream.seek(0)
        assert codec.get_double(stream, Protocol.ASCII) == math.inf
        assert math.isnan(codec.get_double(stream, Protocol.ASCII))

    def test_undecodable_bytes_are_bad_argument(self, tmp_path):
        """Test that bytes invalid in the stream encoding are malformed data."""
        path = tmp_path / "values.txt"
        path.write_bytes(b"1.0 \xff\xfe 2.0")
        with open(path, "r", encoding="utf-8") as stream:
            with pytest.raises(BadArgumentError, match="Undecodable"):
                for _ in range(3):
                    codec.get_double(stream, Protocol.ASCII)

    def test_get_byte(self):
        """Test reading byte tokens."""
        stream = io.StringIO("12 300")
        assert codec.get_byte(stream, Protocol.ASCII) == 12
        with pytest.raises(BadArgumentError):
            codec.get_byte(stream, Protocol.ASCII)
        with pytest.raises(EndOfFileError):
            codec.get_byte(stream, Protocol.ASCII)


class TestBinaryCodec:
    """Test the fixed-width binary protocol."""

    def test_put_double_writes_eight_bytes(self):
        """Test the wire representation of a double."""
        stream = io.BytesIO()
        codec.put_double(stream, Protocol.BINARY, 1.0)
        assert stream.getvalue() == bytes.fromhex("3ff0000000000000")

    def test_put_byte_writes_one_byte(self):
        """Test the wire representation of a byte."""
        stream = io.BytesIO()
        codec.put_byte(stream, Protocol.BINARY, 200)
        assert stream.getvalue() == b"\xc8"

    def test_round_trip_is_bit_identical(self):
        """Test that binary doubles read back exactly."""
        values = np.random.default_rng(0).normal(size=32)
        stream = io.BytesIO()
        for value in values:
            codec.put_double(stream, Protocol.BINARY, value)
        stream.seek(0)
        restored = [codec.get_double(stream, Protocol.BINARY) for _ in values]
        np.testing.assert_array_equal(np.asarray(restored), values)

    def test_put_doubles_matches_scalar_writes(self):
        """Test that bulk writes produce the same bytes as scalar writes."""
        values = [1.5, -0.25, 1e10]
        bulk, single = io.BytesIO(), io.BytesIO()
        assert codec.put_doubles(bulk, Protocol.BINARY, values) == 3
        for value in values:
            codec.put_double(single, Protocol.BINARY, value)
        assert bulk.getvalue() == single.getvalue()

    def test_end_of_file_after_last_record(self):
        """Test that reading past the last record reports end of file."""
        stream = io.BytesIO(codec.encode_double(7.0))
        assert codec.get_double(stream, Protocol.BINARY) == 7.0
        with pytest.raises(EndOfFileError):
            codec.get_double(stream, Protocol.BINARY)

    def test_truncated_record_at_end_is_end_of_file(self):
        """Test that a partial trailing record counts as end of file."""
        stream = io.BytesIO(b"\x00\x01\x02")
        with pytest.raises(EndOfFileError):
            codec.get_double(stream, Protocol.BINARY)

    def test_short_read_without_end_is_bad_argument(self):
        """Test that a short read while the stream is still live is malformed."""
        stream = _NonBlockingStream(b"\x00\x01\x02")
        with pytest.raises(BadArgumentError, match="Short read"):
            codec.get_double(stream, Protocol.BINARY)

    def test_get_byte(self):
        """Test reading raw bytes until end of file."""
        stream = io.BytesIO(b"\x05")
        assert codec.get_byte(stream, Protocol.BINARY) == 5
        with pytest.raises(EndOfFileError):
            codec.get_byte(stream, Protocol.BINARY)


class TestCodecFailures:
    """Test write failures and contract violations."""

    def test_short_write_is_write_error(self):
        """Test that an incomplete write is reported."""
        with pytest.raises(WriteError, match="Short write"):
            codec.put_double(_FailingStream(4), Protocol.BINARY, 1.0)

    def test_closed_stream_is_write_error(self):
        """Test that writing to a closed stream is reported."""
        stream = io.BytesIO()
        stream.close()
        with pytest.raises(WriteError):
            codec.put_byte(stream, Protocol.BINARY, 1)

    @pytest.mark.parametrize("value", [-1, 256, 1.5, 5.0, True, "5", np.bool_(True)])
    def test_invalid_byte_value(self, value):
        """Test that values outside a byte are rejected."""
        with pytest.raises(BadArgumentError, match="Byte values"):
            codec.put_byte(io.BytesIO(), Protocol.BINARY, value)

    def test_numpy_integer_byte_value(self):
        """Test that numpy integers are accepted as byte values."""
        stream = io.BytesIO()
        codec.put_byte(stream, Protocol.BINARY, np.uint8(42))
        codec.put_byte(stream, Protocol.BINARY, np.int64(7))
        assert stream.getvalue() == b"\x2a\x07"

    def test_unspecified_protocol_is_fatal(self):
        """Test that an unspecified protocol is a contract violation."""
        with pytest.raises(AssertionError):
            codec.put_double(io.BytesIO(), Protocol.UNSPECIFIED, 1.0)
        with pytest.raises(AssertionError):
            codec.get_double(io.BytesIO(), Protocol.UNSPECIFIED)

    def test_missing_stream_is_fatal(self):
        """Test that a missing stream is a contract violation."""
        with pytest.raises(AssertionError):
            codec.put_byte(None, Protocol.ASCII, 1)
