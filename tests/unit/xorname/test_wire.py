"""
Wire Format Unit Tests
======================

[UNIT] Tests for xorname/wire.py compact binary forms.
"""

import struct

import pytest


# ============================================================================
# XorName / Prefix
# ============================================================================

class TestNameAndPrefix:
    """Test fixed-size records."""

    def test_xor_name_is_raw_bytes(self, random_name):
        """A name is exactly its 32 bytes."""
        from xorname.wire import pack_xor_name, unpack_xor_name

        name = random_name()
        packed = pack_xor_name(name)

        assert packed == name.data
        assert unpack_xor_name(packed) == name

    def test_xor_name_wrong_length(self):
        """Short input is rejected."""
        from xorname import WrongLengthError
        from xorname.wire import unpack_xor_name

        with pytest.raises(WrongLengthError):
            unpack_xor_name(b"\x00" * 31)

    def test_prefix_layout(self):
        """u16 bit count followed by the 32-byte name."""
        from xorname import Prefix, XorName
        from xorname.wire import pack_prefix, PREFIX_SIZE

        p = Prefix(14, XorName(b"\xaa" * 32))
        packed = pack_prefix(p)

        assert len(packed) == PREFIX_SIZE == 34
        assert packed[:2] == b"\x00\x0e"
        assert packed[2:] == p.name.data

    def test_prefix_roundtrip(self, random_name):
        """unpack_prefix inverts pack_prefix."""
        from xorname import Prefix
        from xorname.wire import pack_prefix, unpack_prefix

        for bit_count in (0, 3, 255, 256):
            p = Prefix(bit_count, random_name())
            assert unpack_prefix(pack_prefix(p)) == p

    def test_prefix_bit_count_too_large(self):
        """bit_count above 256 is a codec error."""
        from xorname import SerializationError
        from xorname.wire import unpack_prefix

        with pytest.raises(SerializationError):
            unpack_prefix(struct.pack(">H32s", 257, b"\x00" * 32))

    def test_prefix_normalized_on_read(self):
        """Stray tail bits are cleared when decoding."""
        from xorname import Prefix, XorName
        from xorname.wire import unpack_prefix

        p = unpack_prefix(struct.pack(">H32s", 4, b"\xff" * 32))

        assert p == Prefix(4, XorName(b"\xf0" + b"\x00" * 31))


# ============================================================================
# PrefixTable
# ============================================================================

class TestTable:
    """Test table encoding."""

    @pytest.fixture
    def filled(self, table, prefix):
        table.insert(prefix("0"), b"zero")
        table.insert(prefix("1"), b"one")
        table.insert(prefix("10"), b"")
        return table

    def test_roundtrip(self, filled):
        """Bytes values round-trip without a codec."""
        from xorname.wire import pack_prefix_table, unpack_prefix_table

        restored = unpack_prefix_table(pack_prefix_table(filled))

        assert restored == filled

    def test_roundtrip_with_codec(self, table, prefix):
        """Arbitrary values via encoder/decoder."""
        from xorname.wire import pack_prefix_table, unpack_prefix_table

        table.insert(prefix("01"), 7)
        table.insert(prefix("1"), 300)

        data = pack_prefix_table(table, value_encoder=lambda v: v.to_bytes(2, "big"))
        restored = unpack_prefix_table(data, value_decoder=lambda b: int.from_bytes(b, "big"))

        assert restored.entries() == [(prefix("01"), 7), (prefix("1"), 300)]

    def test_header(self, filled):
        """Version byte and entry count lead the payload."""
        from xorname import config
        from xorname.wire import pack_prefix_table

        data = pack_prefix_table(filled)

        assert data[0] == config.wire.version
        assert struct.unpack(">I", data[1:5]) == (3,)

    def test_empty_table(self, table):
        """An empty table is just the header."""
        from xorname.wire import pack_prefix_table, unpack_prefix_table, TABLE_HEADER_SIZE

        data = pack_prefix_table(table)

        assert len(data) == TABLE_HEADER_SIZE
        assert len(unpack_prefix_table(data)) == 0

    def test_truncated(self, filled):
        """Every truncation point is detected."""
        from xorname import SerializationError
        from xorname.wire import pack_prefix_table, unpack_prefix_table

        data = pack_prefix_table(filled)

        for cut in (0, 3, 10, len(data) - 1):
            with pytest.raises(SerializationError):
                unpack_prefix_table(data[:cut])

    def test_trailing_bytes(self, filled):
        """Garbage after the last entry is rejected."""
        from xorname import SerializationError
        from xorname.wire import pack_prefix_table, unpack_prefix_table

        with pytest.raises(SerializationError):
            unpack_prefix_table(pack_prefix_table(filled) + b"\x00")

    def test_wrong_version(self, filled):
        """Unknown format versions are refused."""
        from xorname import SerializationError
        from xorname.wire import pack_prefix_table, unpack_prefix_table

        data = bytearray(pack_prefix_table(filled))
        data[0] = 99

        with pytest.raises(SerializationError):
            unpack_prefix_table(bytes(data))

    def test_limits(self, filled):
        """WireConfig limits bound decoded tables."""
        from xorname import PayloadTooLargeError, WireConfig
        from xorname.wire import pack_prefix_table, unpack_prefix_table

        data = pack_prefix_table(filled)

        with pytest.raises(PayloadTooLargeError):
            unpack_prefix_table(data, wire_config=WireConfig(max_table_entries=2))
        with pytest.raises(PayloadTooLargeError):
            unpack_prefix_table(data, wire_config=WireConfig(max_value_size=3))
        with pytest.raises(PayloadTooLargeError):
            pack_prefix_table(filled, wire_config=WireConfig(max_value_size=3))

    def test_decoder_failure(self, filled):
        """Value decoder errors surface as SerializationError."""
        from xorname import SerializationError
        from xorname.wire import pack_prefix_table, unpack_prefix_table

        def strict(raw: bytes) -> str:
            if not raw:
                raise ValueError("empty value")
            return raw.decode()

        with pytest.raises(SerializationError):
            unpack_prefix_table(pack_prefix_table(filled), value_decoder=strict)

    def test_table_config_passed_through(self, table, prefix):
        """Decoded table uses the given TableConfig."""
        import xorname
        from xorname import TableConfig

        table.insert(prefix("0"), [1])
        data = xorname.wire.pack_prefix_table(table, value_encoder=bytes)

        shared = xorname.wire.unpack_prefix_table(
            data, value_decoder=list, table_config=TableConfig(copy_values=False)
        )
        copied = xorname.wire.unpack_prefix_table(data, value_decoder=list)

        assert shared.get(prefix("0")).value is shared.get(prefix("0")).value
        assert copied.get(prefix("0")).value is not copied.get(prefix("0")).value
        assert shared.get(prefix("0")).value == [1]
