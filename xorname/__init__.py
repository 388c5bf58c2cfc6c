"""
XorName Module
==============

Адресация в XOR-пространстве для Kademlia-подобных сетей:
- XorName: 256-битная точка пространства и XOR-метрика
- Prefix: поддерево пространства (первые k бит фиксированы)
- PrefixTable: таблица Prefix -> значение с автоматическим
  удалением покрытых записей и поиском longest prefix match
- wire: компактная бинарная форма

[KADEMLIA] Ключевые принципы:
- XOR-метрика для измерения расстояния между именами
- Сеть разбита на непересекающиеся секции-префиксы
- Таблица хранит минимальное покрытие известных секций
"""

from .xor_name import (
    XorName,
    Ordering,
    XOR_NAME_LEN,
    XOR_NAME_BITS,
    closer_to_target,
    closer_to_target_or_equal,
)

from .prefix import Prefix, EMPTY_PREFIX

from .prefix_table import PrefixTable, PrefixEntry, AsyncPrefixTable

from .errors import (
    XorNameError,
    HexDecodeError,
    WrongLengthError,
    PrefixParseError,
    SerializationError,
    PayloadTooLargeError,
)

from .config import Config, TableConfig, WireConfig, config

from . import wire

__all__ = [
    # Names
    "XorName",
    "Ordering",
    "XOR_NAME_LEN",
    "XOR_NAME_BITS",
    "closer_to_target",
    "closer_to_target_or_equal",
    # Prefixes
    "Prefix",
    "EMPTY_PREFIX",
    # Table
    "PrefixTable",
    "PrefixEntry",
    "AsyncPrefixTable",
    # Errors
    "XorNameError",
    "HexDecodeError",
    "WrongLengthError",
    "PrefixParseError",
    "SerializationError",
    "PayloadTooLargeError",
    # Config
    "Config",
    "TableConfig",
    "WireConfig",
    "config",
    # Binary form
    "wire",
]

__version__ = "0.1.0"
