"""
Binary Wire Format
==================

Компактная бинарная форма XorName, Prefix и PrefixTable на базе struct.

XorName: ровно 32 байта, без длины, порядок байт как в памяти.

Prefix (34 bytes), Format String: `>H32s` (Big-Endian)

| Field     | Type | Size | Description                      |
|-----------|------|------|----------------------------------|
| BitCount  | H    | 2    | Длина префикса 0..256            |
| Name      | 32s  | 32   | XorName (незначимые биты = 0)    |

PrefixTable, Format String заголовка: `>BI` (Big-Endian)

| Field     | Type | Size | Description                      |
|-----------|------|------|----------------------------------|
| Version   | B    | 1    | WireConfig.version               |
| Count     | I    | 4    | Количество записей               |

Затем Count записей: Prefix (34 bytes) + `>I` длина значения + значение.
Записи идут в естественном порядке префиксов (как отсортированная map).

[PERSISTENCE] Инвариант покрытия при чтении не перепроверяется.
"""

import struct
import logging
from typing import Callable, List, Optional, Tuple, TypeVar

from .config import TableConfig, WireConfig, config
from .errors import PayloadTooLargeError, SerializationError, WrongLengthError
from .prefix import Prefix
from .prefix_table import PrefixTable
from .xor_name import XOR_NAME_BITS, XOR_NAME_LEN, XorName

logger = logging.getLogger(__name__)

V = TypeVar("V")


# ============================================================================
# Format Constants
# ============================================================================

PREFIX_FORMAT = '>H32s'
PREFIX_SIZE = struct.calcsize(PREFIX_FORMAT)  # 34
TABLE_HEADER_FORMAT = '>BI'
TABLE_HEADER_SIZE = struct.calcsize(TABLE_HEADER_FORMAT)  # 5
VALUE_LENGTH_FORMAT = '>I'
VALUE_LENGTH_SIZE = struct.calcsize(VALUE_LENGTH_FORMAT)  # 4


# ============================================================================
# XorName / Prefix
# ============================================================================

def pack_xor_name(name: XorName) -> bytes:
    return name.data


def unpack_xor_name(data: bytes) -> XorName:
    """
    Raises:
        WrongLengthError: длина не равна 32 байтам
    """
    if len(data) != XOR_NAME_LEN:
        raise WrongLengthError(XOR_NAME_LEN, len(data))
    return XorName(bytes(data))


def pack_prefix(prefix: Prefix) -> bytes:
    """Упаковать префикс в 34 байта."""
    return struct.pack(PREFIX_FORMAT, prefix.bit_count, prefix.name.data)


def unpack_prefix(data: bytes) -> Prefix:
    """
    Распаковать префикс из 34 байт.

    Raises:
        WrongLengthError: длина не равна 34 байтам
        SerializationError: bit_count больше 256
    """
    if len(data) != PREFIX_SIZE:
        raise WrongLengthError(PREFIX_SIZE, len(data))
    bit_count, name = struct.unpack(PREFIX_FORMAT, data)
    if bit_count > XOR_NAME_BITS:
        raise SerializationError(f"prefix bit_count {bit_count} exceeds {XOR_NAME_BITS}")
    return Prefix(bit_count, XorName(name))


# ============================================================================
# PrefixTable
# ============================================================================

def _identity(value):
    return value


def pack_prefix_table(
    table: PrefixTable,
    value_encoder: Callable[[V], bytes] = _identity,
    wire_config: Optional[WireConfig] = None,
) -> bytes:
    """
    Упаковать таблицу.

    Args:
        table: Таблица для упаковки
        value_encoder: Преобразование значения в байты (по умолчанию
                       значения уже bytes)
        wire_config: Настройки формата (по умолчанию config.wire)

    Raises:
        PayloadTooLargeError: значение больше max_value_size
    """
    cfg = wire_config or config.wire
    entries = table.entries()

    parts: List[bytes] = [struct.pack(TABLE_HEADER_FORMAT, cfg.version, len(entries))]
    for prefix, value in entries:
        encoded = value_encoder(value)
        if len(encoded) > cfg.max_value_size:
            raise PayloadTooLargeError(
                f"value for {prefix!r} is {len(encoded)} bytes > {cfg.max_value_size}"
            )
        parts.append(pack_prefix(prefix))
        parts.append(struct.pack(VALUE_LENGTH_FORMAT, len(encoded)))
        parts.append(encoded)

    payload = b"".join(parts)
    logger.debug(f"[WIRE] Packed table: {len(entries)} entries, {len(payload)} bytes")
    return payload


def unpack_prefix_table(
    data: bytes,
    value_decoder: Callable[[bytes], V] = _identity,
    wire_config: Optional[WireConfig] = None,
    table_config: Optional[TableConfig] = None,
) -> PrefixTable:
    """
    Распаковать таблицу.

    Raises:
        SerializationError: неверная версия, обрезанные данные,
                            лишние байты в конце
        PayloadTooLargeError: превышены лимиты WireConfig
    """
    cfg = wire_config or config.wire

    if len(data) < TABLE_HEADER_SIZE:
        raise SerializationError(f"table header truncated: {len(data)} bytes")
    version, count = struct.unpack_from(TABLE_HEADER_FORMAT, data, 0)
    if version != cfg.version:
        logger.warning(f"[WIRE] Unsupported table version: {version}")
        raise SerializationError(f"unsupported table version {version}")
    if count > cfg.max_table_entries:
        raise PayloadTooLargeError(f"{count} entries > {cfg.max_table_entries}")

    offset = TABLE_HEADER_SIZE
    entries: List[Tuple[Prefix, V]] = []
    for _ in range(count):
        if len(data) - offset < PREFIX_SIZE + VALUE_LENGTH_SIZE:
            raise SerializationError(f"table entry truncated at offset {offset}")
        prefix = unpack_prefix(data[offset:offset + PREFIX_SIZE])
        offset += PREFIX_SIZE
        (length,) = struct.unpack_from(VALUE_LENGTH_FORMAT, data, offset)
        offset += VALUE_LENGTH_SIZE
        if length > cfg.max_value_size:
            raise PayloadTooLargeError(f"value is {length} bytes > {cfg.max_value_size}")
        if len(data) - offset < length:
            raise SerializationError(f"value truncated at offset {offset}")
        try:
            value = value_decoder(bytes(data[offset:offset + length]))
        except (TypeError, ValueError) as e:
            raise SerializationError(f"value for {prefix!r} failed to decode: {e!r}") from e
        entries.append((prefix, value))
        offset += length

    if offset != len(data):
        raise SerializationError(f"{len(data) - offset} trailing bytes after table")

    return PrefixTable.from_entries(entries, table_config)
