"""Error taxonomy shared by the arithmetic engine and the service layer."""


class PaillierError(Exception):
    """Base class for every failure raised by the Paillier engine."""


class ConversionError(PaillierError, ValueError):
    """An input could not be interpreted as an integer or a key."""


class RangeError(PaillierError, ValueError):
    """A value lies outside the range an operation accepts."""


class AlgebraicError(PaillierError, ArithmeticError):
    """A modular inverse was requested for a non-invertible pair."""


class ProtocolError(PaillierError):
    """The message boundary received an operation it does not know."""


class EntropyError(PaillierError):
    """The secure randomness source is unavailable. Never retried."""


class AttemptsExhaustedError(PaillierError):
    """A bounded generation loop ran out of attempts."""
