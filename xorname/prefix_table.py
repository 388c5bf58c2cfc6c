"""
Prefix Table - таблица секций по префиксам
==========================================

[ROUTING] Отображение Prefix -> значение, которое само поддерживает
минимальное непересекающееся покрытие:
- если поддерево записи полностью покрыто её потомками, запись удаляется
  (есть (00), вставили (000) и (001) -> (00) удаляется)
- предок не вставляется, если в таблице уже есть его потомок:
  более грубая запись не должна скрывать уже известную точную

[LOOKUP] Поиск по имени - longest prefix match: из всех совпавших
префиксов берётся самый длинный.

[CONCURRENCY] Все операции выполняются под одним threading.RLock.
insert (проверка потомков + запись + prune) - одна критическая секция,
поэтому нарушение инварианта покрытия никогда не наблюдаемо.
AsyncPrefixTable - обёртка для asyncio с единственной точкой
приостановки: захватом asyncio.Lock.
"""

import asyncio
import copy
import json
import logging
import threading
from functools import cmp_to_key
from typing import (
    Any, Callable, Dict, Generic, Iterable, Iterator, List, NamedTuple,
    Optional, Tuple, TypeVar,
)

from .config import TableConfig, config
from .errors import SerializationError
from .prefix import Prefix
from .xor_name import XorName

logger = logging.getLogger(__name__)

V = TypeVar("V")


class PrefixEntry(NamedTuple):
    """Запись таблицы: ключ и значение."""

    prefix: Prefix
    value: Any


class PrefixTable(Generic[V]):
    """
    Контейнер, ключи которого - префиксы.

    [INVARIANT] Ни одна запись не покрыта целиком объединением других
    записей. Таблица изменяется только через insert() и prune().

    Example:
        table = PrefixTable()
        table.insert(Prefix.parse("0"), "a")
        table.insert(Prefix.parse("00"), "b")   # (0) остаётся
        table.insert(Prefix.parse("01"), "c")   # (0) покрыт и удалён
        table.get_matching(name)                # самый длинный совпавший
    """

    def __init__(self, table_config: Optional[TableConfig] = None):
        """
        Args:
            table_config: Настройки таблицы (по умолчанию config.table)
        """
        self._entries: Dict[Prefix, V] = {}
        self._lock = threading.RLock()
        self._config = table_config or config.table

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[Tuple[Prefix, V]],
        table_config: Optional[TableConfig] = None,
    ) -> "PrefixTable[V]":
        """
        Восстановить таблицу из сохранённых пар (Prefix, значение).

        [PERSISTENCE] Инвариант покрытия НЕ перепроверяется: сохранять
        можно только уже корректные таблицы.
        """
        table = cls(table_config)
        for prefix, value in entries:
            table._entries[prefix] = value
        logger.info(f"[PREFIX_TABLE] Restored {len(table._entries)} entries")
        return table

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, prefix: Prefix) -> bool:
        with self._lock:
            return prefix in self._entries

    def __iter__(self) -> Iterator[PrefixEntry]:
        return iter(self.entries())

    def __eq__(self, other) -> bool:
        if not isinstance(other, PrefixTable):
            return NotImplemented
        return self.entries() == other.entries()

    def _out(self, prefix: Prefix, value: V) -> PrefixEntry:
        if self._config.copy_values:
            value = copy.copy(value)
        return PrefixEntry(prefix, value)

    def entries(self) -> List[PrefixEntry]:
        """Снимок всех записей в естественном порядке префиксов."""
        with self._lock:
            return [self._out(p, v) for p, v in sorted(self._entries.items())]

    def prefixes(self) -> List[Prefix]:
        """Снимок всех ключей в естественном порядке."""
        with self._lock:
            return sorted(self._entries)

    # ------------------------------------------------------------------
    # Изменение
    # ------------------------------------------------------------------

    def insert(self, prefix: Prefix, value: V) -> bool:
        """
        Вставить запись, заменив существующую с тем же префиксом.

        [ROUTING] Логика:
        1. Если в таблице есть строгий потомок prefix - отказ, таблица
           не меняется
        2. Иначе запись сохраняется (или перезаписывается)
        3. Предки prefix, покрытые своими потомками, удаляются (prune)

        Returns:
            True если таблица изменилась, False если вставка отклонена
        """
        with self._lock:
            if any(p.is_extension_of(prefix) for p in self._entries):
                logger.debug(f"[PREFIX_TABLE] Rejected {prefix!r}: descendant already present")
                return False

            self._entries[prefix] = value
            logger.debug(f"[PREFIX_TABLE] Inserted {prefix!r}")
            self._prune_locked(prefix.popped())
            return True

    def prune(self, prefix: Prefix) -> None:
        """
        Удалить prefix и его предков, если они покрыты потомками.

        Например, если в таблице есть (00) и (01), то (0) и () удаляются.
        """
        with self._lock:
            self._prune_locked(prefix)

    def _prune_locked(self, prefix: Prefix) -> None:
        current = prefix
        while True:
            if current in self._entries:
                descendants = [p for p in self._entries if p.is_extension_of(current)]
                if current.is_covered_by(descendants):
                    del self._entries[current]
                    logger.debug(f"[PREFIX_TABLE] Pruned {current!r}: covered by descendants")

            if current.is_empty:
                break
            current = current.popped()

    # ------------------------------------------------------------------
    # Поиск
    # ------------------------------------------------------------------

    def get(self, prefix: Prefix) -> Optional[PrefixEntry]:
        """Запись с точно таким префиксом."""
        with self._lock:
            if prefix not in self._entries:
                return None
            return self._out(prefix, self._entries[prefix])

    def get_matching(self, name: XorName) -> Optional[PrefixEntry]:
        """
        Запись с самым длинным префиксом, которому соответствует name.

        Returns:
            PrefixEntry или None, если ни один префикс не совпал
        """
        with self._lock:
            return self._get_matching_locked(name)

    def _get_matching_locked(self, name: XorName) -> Optional[PrefixEntry]:
        best: Optional[Prefix] = None
        for prefix in self._entries:
            if prefix.matches(name) and (best is None or prefix.bit_count > best.bit_count):
                best = prefix
        if best is None:
            return None
        return self._out(best, self._entries[best])

    def get_matching_prefix(self, prefix: Prefix) -> Optional[PrefixEntry]:
        """То же, что get_matching(prefix.name)."""
        return self.get_matching(prefix.name)

    def try_get_matching(self, name: XorName) -> Optional[PrefixEntry]:
        """
        Найти хоть какую-то правдоподобную цель маршрутизации для name.

        [FALLBACK] Порядок:
        1. Обычный longest prefix match
        2. Совпадение для name с инвертированным старшим битом
           (лучшая запись в противоположной половине пространства)
        3. Запись, ближайшая к name по Prefix.cmp_distance

        Returns:
            PrefixEntry; None только для пустой таблицы
        """
        with self._lock:
            entry = self._get_matching_locked(name)
            if entry is not None:
                return entry

            entry = self._get_matching_locked(name.with_flipped_bit(0))
            if entry is not None:
                return entry

            if not self._entries:
                return None
            closest = min(
                self._entries,
                key=cmp_to_key(lambda lhs, rhs: lhs.cmp_distance(rhs, name)),
            )
            return self._out(closest, self._entries[closest])

    def descendants(self, prefix: Prefix) -> Iterator[PrefixEntry]:
        """
        Записи, чьи префиксы - строгие потомки prefix.

        Каждый вызов возвращает новый ленивый итератор по снимку таблицы.
        """
        with self._lock:
            snapshot = [
                (p, v) for p, v in sorted(self._entries.items()) if p.is_extension_of(prefix)
            ]
        for p, v in snapshot:
            yield self._out(p, v)

    # ------------------------------------------------------------------
    # Сериализация
    # ------------------------------------------------------------------

    def to_dict(self, value_encoder: Optional[Callable[[V], Any]] = None) -> Dict:
        """
        Сериализация в словарь.

        Args:
            value_encoder: Преобразование значения в JSON-совместимый вид
        """
        encode = value_encoder or (lambda value: value)
        with self._lock:
            items = sorted(self._entries.items())
            return {
                "entries": [
                    {"prefix": prefix.to_text(), "value": encode(value)}
                    for prefix, value in items
                ],
            }

    @classmethod
    def from_dict(
        cls,
        data: Dict,
        value_decoder: Optional[Callable[[Any], V]] = None,
        table_config: Optional[TableConfig] = None,
    ) -> "PrefixTable[V]":
        """
        Десериализация из словаря.

        Raises:
            SerializationError: структура словаря не соответствует формату
        """
        decode = value_decoder or (lambda value: value)
        try:
            entries = [
                (Prefix.from_text(item["prefix"]), decode(item["value"]))
                for item in data["entries"]
            ]
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"[PREFIX_TABLE] Invalid persisted table: {e!r}")
            raise SerializationError(f"invalid persisted table: {e!r}") from e
        return cls.from_entries(entries, table_config)

    def to_json(self, value_encoder: Optional[Callable[[V], Any]] = None) -> bytes:
        """Сериализация в JSON-байты."""
        return json.dumps(self.to_dict(value_encoder), separators=(",", ":")).encode("utf-8")

    @classmethod
    def from_json(
        cls,
        data: bytes,
        value_decoder: Optional[Callable[[Any], V]] = None,
        table_config: Optional[TableConfig] = None,
    ) -> "PrefixTable[V]":
        """
        Десериализация из JSON-байтов.

        Raises:
            SerializationError: данные не являются корректным JSON таблицы
        """
        try:
            parsed = json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"[PREFIX_TABLE] Invalid JSON: {e}")
            raise SerializationError(f"invalid JSON: {e}") from e
        if not isinstance(parsed, dict):
            raise SerializationError("persisted table must be a JSON object")
        return cls.from_dict(parsed, value_decoder, table_config)


class AsyncPrefixTable(Generic[V]):
    """
    Обёртка PrefixTable для asyncio-кода.

    [ASYNC] Каждая операция захватывает asyncio.Lock и затем выполняется
    синхронно до конца. Отмена ожидания до захвата блокировки не влияет
    на таблицу; частичные изменения никогда не видны.
    """

    def __init__(self, table: Optional[PrefixTable[V]] = None):
        self.table: PrefixTable[V] = table if table is not None else PrefixTable()
        self._lock = asyncio.Lock()

    async def insert(self, prefix: Prefix, value: V) -> bool:
        async with self._lock:
            return self.table.insert(prefix, value)

    async def prune(self, prefix: Prefix) -> None:
        async with self._lock:
            self.table.prune(prefix)

    async def get(self, prefix: Prefix) -> Optional[PrefixEntry]:
        async with self._lock:
            return self.table.get(prefix)

    async def get_matching(self, name: XorName) -> Optional[PrefixEntry]:
        async with self._lock:
            return self.table.get_matching(name)

    async def get_matching_prefix(self, prefix: Prefix) -> Optional[PrefixEntry]:
        async with self._lock:
            return self.table.get_matching_prefix(prefix)

    async def try_get_matching(self, name: XorName) -> Optional[PrefixEntry]:
        async with self._lock:
            return self.table.try_get_matching(name)

    async def descendants(self, prefix: Prefix) -> List[PrefixEntry]:
        async with self._lock:
            return list(self.table.descendants(prefix))

    async def entries(self) -> List[PrefixEntry]:
        async with self._lock:
            return self.table.entries()
