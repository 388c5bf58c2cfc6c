"""
XorName Configuration
=====================
Централизованная конфигурация пакета.

Значения по умолчанию можно переопределить переменными окружения:
- XORNAME_COPY_VALUES: "true" / "false"
- XORNAME_MAX_TABLE_ENTRIES: максимум записей при декодировании таблицы
- XORNAME_MAX_VALUE_SIZE: максимум байт на одно значение в бинарной форме
"""

from dataclasses import dataclass, field

import os


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


COPY_VALUES: bool = os.getenv("XORNAME_COPY_VALUES", "true").lower() != "false"
MAX_TABLE_ENTRIES: int = _env_int("XORNAME_MAX_TABLE_ENTRIES", 1 << 20)
MAX_VALUE_SIZE: int = _env_int("XORNAME_MAX_VALUE_SIZE", 16 * 1024 * 1024)


@dataclass
class TableConfig:
    """Настройки PrefixTable."""

    # Отдавать вызывающему поверхностную копию значения, а не сам объект
    copy_values: bool = COPY_VALUES


@dataclass
class WireConfig:
    """Настройки бинарной формы."""

    # Версия формата таблицы (первый байт payload)
    version: int = 1

    # Лимиты при декодировании сохранённой таблицы
    max_table_entries: int = MAX_TABLE_ENTRIES
    max_value_size: int = MAX_VALUE_SIZE


@dataclass
class Config:
    """Главный конфигурационный класс."""

    table: TableConfig = field(default_factory=TableConfig)
    wire: WireConfig = field(default_factory=WireConfig)


# Глобальный экземпляр конфигурации
config = Config()
