"""
XorName Errors
==============

Иерархия ошибок пакета. Все ошибки декодирования также наследуют
ValueError, поэтому код, ловящий встроенное исключение, продолжает работать.

[FATAL] Нарушения предусловий (ancestor() с недопустимой длиной,
вычитание с переполнением) НЕ входят в иерархию: это ошибки программиста,
они поднимают встроенные ValueError / OverflowError.
"""


class XorNameError(Exception):
    """Базовая ошибка пакета xorname."""
    pass


class HexDecodeError(XorNameError, ValueError):
    """Недопустимый hex-символ в текстовой форме XorName."""

    def __init__(self, character: str, position: int):
        self.character = character
        self.position = position
        super().__init__(f"Invalid hex character {character!r} at position {position}")


class WrongLengthError(XorNameError, ValueError):
    """Данные не кодируют ровно 32 байта."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected {expected} bytes, got {actual}")


class PrefixParseError(XorNameError, ValueError):
    """Символ, отличный от '0' и '1', в битовой строке префикса."""

    def __init__(self, invalid_character: str):
        self.invalid_character = invalid_character
        super().__init__(
            f"{invalid_character!r} not allowed - the string must represent a binary number."
        )


class SerializationError(XorNameError, ValueError):
    """Ошибка кодека при декодировании сохранённых данных."""
    pass


class PayloadTooLargeError(SerializationError):
    """Сохранённая таблица превышает лимиты WireConfig."""
    pass
