"""PLC errors — one exception family per pipeline stage."""

from __future__ import annotations


class PlcError(Exception):
    """Base for every error raised by the toolchain."""

    def __init__(self, msg: str, offset: int | None = None):
        self.msg: str = msg
        self.offset: int | None = offset
        if offset is None:
            super().__init__(msg)
        else:
            super().__init__(msg + " at offset " + str(offset))


class LexError(PlcError):
    """Malformed character sequence."""

    def __init__(self, msg: str, offset: int):
        super().__init__(msg, offset)


class ParseError(PlcError):
    """Token sequence does not match the grammar."""

    def __init__(self, msg: str, offset: int):
        super().__init__(msg, offset)


# ============================================================
# ANALYSIS
# ============================================================


class CheckError(PlcError):
    """Static semantic violation. Subclasses name the cause."""


class UnresolvedMainError(CheckError):
    pass


class TypeMismatchError(CheckError):
    pass


class NotAssignableError(CheckError):
    pass


class UnknownSymbolError(CheckError):
    pass


class ArityMismatchError(UnknownSymbolError):
    """A function of that name exists, but not with that many parameters."""


class DuplicateDeclarationError(CheckError):
    pass


class EmptyBlockError(CheckError):
    pass


class MissingDefaultError(CheckError):
    pass


class LiteralRangeError(CheckError):
    pass


class InvalidExpressionError(CheckError):
    """Expression or statement of a shape the language forbids."""


class ImmutableAssignmentError(CheckError):
    pass


# ============================================================
# EXECUTION
# ============================================================


class RuntimeFault(PlcError):
    """Contract violation while executing a checked program."""
