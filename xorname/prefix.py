"""
Prefix - поддерево XOR-пространства
===================================

[PREFIX] Префикс = (bit_count, name):
- первые bit_count бит name фиксированы, остальные свободны
- описывает непрерывный диапазон адресов [lower_bound, upper_bound]
- биты name начиная с bit_count всегда нулевые (нормальная форма),
  поэтому равенство и хэш зависят только от значимых бит

[ORDER] Три порядка:
- естественный (depth-first): совместимые префиксы - по длине,
  несовместимые - по name
- cmp_breadth_first: сначала длина, затем name (обход по уровням)
- cmp_distance: "ближайшее поддерево" к target для Kademlia-выборки

[COVERAGE] is_covered_by - исчерпывающая проверка покрытия поддерева
объединением поддеревьев кандидатов (двоичное разбиение пространства).
"""

from dataclasses import dataclass, field
from functools import total_ordering
from typing import Iterable, Iterator, List, Tuple

from .errors import PrefixParseError, SerializationError
from .xor_name import XOR_NAME_BITS, Ordering, XorName


@total_ordering
@dataclass(frozen=True, eq=False, repr=False)
class Prefix:
    """
    Префикс секции: последовательность бит, задающая часть пространства имён,
    состоящую из всех имён, начинающихся с этой последовательности.

    Конструктор ограничивает bit_count диапазоном [0, 256] и обнуляет
    незначимые биты name.
    """

    bit_count: int = 0
    name: XorName = field(default_factory=XorName.zero)

    def __post_init__(self):
        bit_count = min(max(self.bit_count, 0), XOR_NAME_BITS)
        object.__setattr__(self, "bit_count", bit_count)
        object.__setattr__(self, "name", self.name.set_remaining(bit_count, False))

    # ------------------------------------------------------------------
    # Текстовые формы
    # ------------------------------------------------------------------

    @classmethod
    def parse(cls, bits: str) -> "Prefix":
        """
        Разобрать префикс из строки '0'/'1'. bit_count = длина строки.

        Raises:
            PrefixParseError: встретился другой символ
        """
        value = 0
        for bit in bits:
            if bit not in "01":
                raise PrefixParseError(bit)
            value = (value << 1) | (bit == "1")
        length = min(len(bits), XOR_NAME_BITS)
        value >>= len(bits) - length
        return cls(length, XorName.from_int(value << (XOR_NAME_BITS - length)))

    def to_text(self) -> str:
        """Версионированная текстовая форма: "<hex name>/<bit_count>"."""
        return f"{self.name.to_hex()}/{self.bit_count}"

    @classmethod
    def from_text(cls, text: str) -> "Prefix":
        """
        Обратная операция к to_text().

        Raises:
            HexDecodeError, WrongLengthError: ошибка в hex-части
            SerializationError: нет '/' или bit_count не число
                                или больше 256, text не строка
        """
        if not isinstance(text, str):
            raise SerializationError(f"prefix text must be str, got {type(text).__name__}")
        hex_str, sep, bit_count = text.partition("/")
        if not sep:
            raise SerializationError(f"no '/' symbol encountered in {text!r}")
        name = XorName.from_hex(hex_str)
        if not (bit_count.isascii() and bit_count.isdigit()):
            raise SerializationError(f"bit_count {bit_count!r} is not a valid unsigned integer")
        if int(bit_count) > XOR_NAME_BITS:
            raise SerializationError(f"bit_count {bit_count} exceeds {XOR_NAME_BITS}")
        return cls(int(bit_count), name)

    def __str__(self) -> str:
        return format(self.name, "b")[:self.bit_count]

    def __repr__(self) -> str:
        return f"Prefix({self})"

    # ------------------------------------------------------------------
    # Равенство, хэш, порядок
    # ------------------------------------------------------------------

    def __eq__(self, other) -> bool:
        if isinstance(other, Prefix):
            return self.bit_count == other.bit_count and self.name == other.name
        return NotImplemented

    def __hash__(self) -> int:
        # Только значимые биты
        return hash((self.bit_count, int(self.name) >> (XOR_NAME_BITS - self.bit_count)))

    def __lt__(self, other: "Prefix") -> bool:
        if not isinstance(other, Prefix):
            return NotImplemented
        return self.cmp_depth_first(other) == Ordering.LESS

    def cmp_depth_first(self, other: "Prefix") -> Ordering:
        """
        Естественный порядок (depth-first).

        Совместимые префиксы упорядочены по длине (предок раньше потомка),
        несовместимые - по name.
        """
        if self == other:
            return Ordering.EQUAL
        if self.is_compatible(other):
            return Ordering.of(self.bit_count, other.bit_count)
        return Ordering.of(self.name, other.name)

    def cmp_breadth_first(self, other: "Prefix") -> Ordering:
        """
        Порядок в ширину: короткие префиксы раньше длинных, при равной
        длине - по name.
        """
        return Ordering.of((self.bit_count, self.name), (other.bit_count, other.name))

    def cmp_distance(self, other: "Prefix", target: XorName) -> Ordering:
        """
        Сравнить расстояние self и other до target.

        [KADEMLIA] Для совместимых префиксов ближе более короткий: его
        поддерево содержит поддерево другого. Для несовместимых ближе тот,
        чьё name имеет более длинный общий префикс с target.
        """
        if self.is_compatible(other):
            return Ordering.of(self.bit_count, other.bit_count)
        return Ordering.of(other.name.common_prefix(target), self.name.common_prefix(target))

    # ------------------------------------------------------------------
    # Производные префиксы
    # ------------------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return self.bit_count == 0

    def pushed(self, bit: bool) -> "Prefix":
        """Префикс с дописанным битом. На максимальной длине - без изменений."""
        if self.bit_count >= XOR_NAME_BITS:
            return self
        return Prefix(self.bit_count + 1, self.name.with_bit(self.bit_count, bit))

    def popped(self) -> "Prefix":
        """Префикс без последнего бита. Пустой префикс - без изменений."""
        if self.bit_count == 0:
            return self
        return Prefix(self.bit_count - 1, self.name)

    def with_flipped_bit(self, index: int) -> "Prefix":
        """Соседний префикс, отличающийся битом index (index >= bit_count - no-op)."""
        if not 0 <= index < self.bit_count:
            return self
        return Prefix(self.bit_count, self.name.with_flipped_bit(index))

    def sibling(self) -> "Prefix":
        """Соседнее поддерево той же глубины (инвертирован последний бит)."""
        if 0 < self.bit_count < XOR_NAME_BITS:
            return self.with_flipped_bit(self.bit_count - 1)
        return self

    def ancestor(self, bit_count: int) -> "Prefix":
        """
        Предок заданной длины.

        Raises:
            ValueError: bit_count не меньше длины self (ошибка программиста)
        """
        if not 0 <= bit_count < self.bit_count:
            raise ValueError(
                f"ancestor length {bit_count} must be less than prefix length {self.bit_count}"
            )
        return Prefix(bit_count, self.name)

    def ancestors(self) -> Iterator["Prefix"]:
        """Все строгие предки от пустого префикса до родителя включительно."""
        for bit_count in range(self.bit_count):
            yield self.ancestor(bit_count)

    # ------------------------------------------------------------------
    # Отношения между префиксами
    # ------------------------------------------------------------------

    def is_compatible(self, other: "Prefix") -> bool:
        """True если один из префиксов является префиксом другого."""
        i = self.name.common_prefix(other.name)
        return i >= min(self.bit_count, other.bit_count)

    def is_extension_of(self, other: "Prefix") -> bool:
        """True если other - совместимый и строго более короткий префикс."""
        i = self.name.common_prefix(other.name)
        return i >= other.bit_count and self.bit_count > other.bit_count

    def is_neighbour(self, other: "Prefix") -> bool:
        """
        True если поддеревья не пересекаются, но становятся совместимыми
        после инверсии бита в точке первого расхождения.
        """
        i = self.name.common_prefix(other.name)
        if i >= min(self.bit_count, other.bit_count):
            return False
        j = self.name.with_flipped_bit(i).common_prefix(other.name)
        return j >= min(self.bit_count, other.bit_count)

    def is_covered_by(self, prefixes: Iterable["Prefix"]) -> bool:
        """
        Покрыто ли поддерево self объединением поддеревьев prefixes.

        [COVERAGE] Узел покрыт, если (i) среди кандидатов есть совместимый
        префикс не длиннее узла, либо (ii) длина узла не превышает длину
        самого длинного кандидата и покрыты оба потомка узла.
        Обход итеративный, глубина ограничена 256 битами.
        """
        candidates: List[Prefix] = list(prefixes)
        max_prefix_len = max((p.bit_count for p in candidates), default=0)

        stack = [self]
        while stack:
            node = stack.pop()
            if any(c.bit_count <= node.bit_count and c.is_compatible(node) for c in candidates):
                continue
            if node.bit_count > max_prefix_len or node.bit_count >= XOR_NAME_BITS:
                return False
            stack.append(node.pushed(True))
            stack.append(node.pushed(False))
        return True

    # ------------------------------------------------------------------
    # Отношения с адресами
    # ------------------------------------------------------------------

    def common_prefix(self, name: XorName) -> int:
        """Число общих старших бит с name, не больше bit_count."""
        return min(self.bit_count, self.name.common_prefix(name))

    def matches(self, name: XorName) -> bool:
        """True если self - префикс name."""
        return self.name.common_prefix(name) >= self.bit_count

    def __contains__(self, name: XorName) -> bool:
        return self.matches(name)

    def lower_bound(self) -> XorName:
        """Наименьшее имя в поддереве."""
        return self.name.set_remaining(self.bit_count, False)

    def upper_bound(self) -> XorName:
        """Наибольшее имя в поддереве."""
        return self.name.set_remaining(self.bit_count, True)

    def range_inclusive(self) -> Tuple[XorName, XorName]:
        """Включающий диапазон (lower_bound, upper_bound)."""
        return self.lower_bound(), self.upper_bound()

    def substituted_in(self, name: XorName) -> XorName:
        """name, в котором первые bit_count бит заменены битами префикса."""
        tail = (1 << (XOR_NAME_BITS - self.bit_count)) - 1
        return XorName.from_int(int(self.name) | (int(name) & tail))


EMPTY_PREFIX = Prefix()
