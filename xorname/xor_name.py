"""
XorName - точка XOR-пространства
================================

[XOR] 256-битный идентификатор узла или данных:
- 32 байта, big-endian (байт 0 - старший)
- Порядок = порядок беззнаковых целых
- Расстояние между a и b = a XOR b как целое число

[XOR] Свойства метрики:
- XOR(a, a) = 0 (точка ближе всего к себе)
- XOR(a, b) = XOR(b, a) (симметрия)
- Для любых a, d существует ровно одна точка b: XOR(a, b) = d

[BITS] Биты нумеруются с нуля от старшего бита байта 0.
Индекс вне [0, 256) во всех битовых операциях - определённый no-op:
with_bit / with_flipped_bit возвращают значение без изменений,
bit() возвращает False.
"""

import os
import hashlib
from dataclasses import dataclass
from enum import IntEnum
from typing import Union

from .errors import HexDecodeError, WrongLengthError


# Константы XOR-пространства
XOR_NAME_LEN = 32  # Байт
XOR_NAME_BITS = XOR_NAME_LEN * 8  # 256 бит
_MAX_VALUE = (1 << XOR_NAME_BITS) - 1
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


class Ordering(IntEnum):
    """Результат трёхстороннего сравнения."""

    LESS = -1
    EQUAL = 0
    GREATER = 1

    @classmethod
    def of(cls, lhs, rhs) -> "Ordering":
        """Сравнить два значения с естественным порядком."""
        if lhs < rhs:
            return cls.LESS
        if lhs > rhs:
            return cls.GREATER
        return cls.EQUAL


@dataclass(frozen=True, order=True, repr=False)
class XorName:
    """
    256-битное число как точка в XOR-пространстве.

    [XOR] Значение неизменяемо: все преобразования (with_bit,
    with_flipped_bit, set_remaining) возвращают новый XorName.
    Сравнение и хэш - по байтам, порядок - как у беззнаковых целых.
    """

    data: bytes  # 32 байта

    def __post_init__(self):
        if isinstance(self.data, (bytearray, memoryview)):
            object.__setattr__(self, "data", bytes(self.data))
        if not isinstance(self.data, bytes):
            raise TypeError(f"XorName expects bytes, got {type(self.data).__name__}")
        if len(self.data) != XOR_NAME_LEN:
            raise WrongLengthError(XOR_NAME_LEN, len(self.data))

    # ------------------------------------------------------------------
    # Конструкторы
    # ------------------------------------------------------------------

    @classmethod
    def zero(cls) -> "XorName":
        return cls(bytes(XOR_NAME_LEN))

    @classmethod
    def from_int(cls, value: int) -> "XorName":
        """
        Построить XorName из беззнакового целого.

        Raises:
            OverflowError: если value не помещается в 256 бит
        """
        if value < 0 or value > _MAX_VALUE:
            raise OverflowError(f"{value} does not fit into {XOR_NAME_BITS} bits")
        return cls(value.to_bytes(XOR_NAME_LEN, byteorder="big"))

    @classmethod
    def from_hex(cls, text: str) -> "XorName":
        """
        Декодировать XorName из 64-символьной hex-строки.

        Raises:
            HexDecodeError: недопустимый символ (символ и позиция в ошибке)
            WrongLengthError: строка не кодирует ровно 32 байта
        """
        for position, character in enumerate(text):
            if character not in _HEX_DIGITS:
                raise HexDecodeError(character, position)
        if len(text) != 2 * XOR_NAME_LEN:
            raise WrongLengthError(XOR_NAME_LEN, len(text) // 2)
        return cls(bytes.fromhex(text))

    @classmethod
    def random(cls) -> "XorName":
        """Случайная точка пространства (os.urandom)."""
        return cls(os.urandom(XOR_NAME_LEN))

    @classmethod
    def from_content(cls, *parts: bytes) -> "XorName":
        """
        XorName как SHA3-256 от конкатенации частей.

        [CONTENT] Адресация данных по содержимому: одинаковые данные
        всегда попадают в одну точку пространства.
        """
        digest = hashlib.sha3_256()
        for part in parts:
            digest.update(part)
        return cls(digest.digest())

    # ------------------------------------------------------------------
    # Представления
    # ------------------------------------------------------------------

    def to_hex(self) -> str:
        """64 символа lowercase hex."""
        return self.data.hex()

    def __int__(self) -> int:
        return int.from_bytes(self.data, byteorder="big")

    def __bytes__(self) -> bytes:
        return self.data

    def __str__(self) -> str:
        # Короткий отладочный id: первые два байта
        return f"{self.data[0]:02x}{self.data[1]:02x}.."

    def __repr__(self) -> str:
        return f"XorName({self})"

    def __format__(self, spec: str) -> str:
        if spec == "b":
            return format(int(self), f"0{XOR_NAME_BITS}b")
        return format(str(self), spec)

    # ------------------------------------------------------------------
    # Битовые операции
    # ------------------------------------------------------------------

    def bit(self, index: int) -> bool:
        """Значение бита index (0 - старший бит байта 0)."""
        if not 0 <= index < XOR_NAME_BITS:
            return False
        return bool(self.data[index // 8] & (0x80 >> (index % 8)))

    def with_bit(self, index: int, value: bool) -> "XorName":
        """Копия с установленным (value=True) или сброшенным битом index."""
        if not 0 <= index < XOR_NAME_BITS:
            return self
        buf = bytearray(self.data)
        mask = 0x80 >> (index % 8)
        if value:
            buf[index // 8] |= mask
        else:
            buf[index // 8] &= ~mask & 0xFF
        return XorName(bytes(buf))

    def with_flipped_bit(self, index: int) -> "XorName":
        """Копия с инвертированным битом index."""
        if not 0 <= index < XOR_NAME_BITS:
            return self
        buf = bytearray(self.data)
        buf[index // 8] ^= 0x80 >> (index % 8)
        return XorName(bytes(buf))

    def set_remaining(self, n: int, value: bool) -> "XorName":
        """
        Сохранить первые n бит, а все биты начиная с позиции n
        выставить в value.

        [BOUNDS] Используется для границ поддерева префикса:
        set_remaining(k, False) - нижняя граница, set_remaining(k, True) - верхняя.
        """
        n = max(0, n)
        if n >= XOR_NAME_BITS:
            return self
        tail = (1 << (XOR_NAME_BITS - n)) - 1
        head = int(self) & (_MAX_VALUE ^ tail)
        return XorName.from_int(head | tail if value else head)

    def common_prefix(self, other: "XorName") -> int:
        """
        Количество старших бит, в которых self и other совпадают.

        Например, для 10101... и 10011... результат 2. Для равных имён - 256.
        """
        return XOR_NAME_BITS - (int(self) ^ int(other)).bit_length()

    def count_differing_bits(self, other: "XorName") -> int:
        """Расстояние Хэмминга между двумя именами."""
        return bin(int(self) ^ int(other)).count("1")

    # ------------------------------------------------------------------
    # XOR-метрика
    # ------------------------------------------------------------------

    def distance(self, other: "XorName") -> int:
        """XOR-расстояние как целое число."""
        return int(self) ^ int(other)

    def __xor__(self, other: "XorName") -> "XorName":
        if not isinstance(other, XorName):
            return NotImplemented
        return XorName(bytes(a ^ b for a, b in zip(self.data, other.data)))

    def cmp_distance(self, lhs: "XorName", rhs: "XorName") -> Ordering:
        """
        Сравнить lhs и rhs по расстоянию до self.

        [KADEMLIA] Побайтово от старшего байта: в первом различающемся
        байте ближе тот, чей XOR с self меньше. EQUAL только при lhs == rhs.
        """
        for ours, left, right in zip(self.data, lhs.data, rhs.data):
            if left != right:
                return Ordering.of(left ^ ours, right ^ ours)
        return Ordering.EQUAL

    def closer(self, lhs: "XorName", rhs: "XorName") -> bool:
        """True если lhs строго ближе к self, чем rhs."""
        return self.cmp_distance(lhs, rhs) == Ordering.LESS

    def closer_or_equal(self, lhs: "XorName", rhs: "XorName") -> bool:
        """True если lhs ближе к self, чем rhs, или lhs == rhs."""
        return self.cmp_distance(lhs, rhs) != Ordering.GREATER

    # ------------------------------------------------------------------
    # Числовое представление
    # ------------------------------------------------------------------

    def __sub__(self, other: "XorName") -> "XorName":
        """
        Вычитание как беззнаковых 256-битных целых.

        Raises:
            OverflowError: other > self (ошибка программиста)
        """
        if not isinstance(other, XorName):
            return NotImplemented
        if other > self:
            raise OverflowError("XorName subtraction underflow")
        return XorName.from_int(int(self) - int(other))

    def __floordiv__(self, divisor: Union["XorName", int]) -> "XorName":
        if isinstance(divisor, XorName):
            divisor = int(divisor)
        elif not isinstance(divisor, int):
            return NotImplemented
        return XorName.from_int(int(self) // divisor)


def closer_to_target(lhs: XorName, rhs: XorName, target: XorName) -> bool:
    """
    True если lhs ближе к target, чем rhs.

    Эквивалентно: в старшем бите, где lhs и rhs расходятся,
    lhs совпадает с target.
    """
    return target.cmp_distance(lhs, rhs) == Ordering.LESS


def closer_to_target_or_equal(lhs: XorName, rhs: XorName, target: XorName) -> bool:
    """True если lhs ближе к target, чем rhs, или lhs == rhs."""
    return target.cmp_distance(lhs, rhs) != Ordering.GREATER
