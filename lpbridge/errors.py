"""
Exception types raised by lpbridge
"""


class LPBridgeError(Exception):
    """Base class for all lpbridge errors"""


class ValidationError(LPBridgeError, ValueError):
    """Invalid model data, e.g. a lower bound above the upper bound"""


class ExpressionTypeError(LPBridgeError, TypeError):
    """
    Unsupported expression.

    Raised for non-linear products, non-numeric operands and when a
    continuous expression is used where an integer one is required.
    """


class SerializationError(LPBridgeError, IOError):
    """Model or solution file could not be written or parsed"""


class SolveError(LPBridgeError, RuntimeError):
    """The solving engine failed (nonzero exit code or error status)"""


class ResourceError(LPBridgeError, OSError):
    """A temporary resource could not be released"""
