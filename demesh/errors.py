"""
Error types raised by demesh.

Every failure carries a human-readable message and a nonzero numeric code.
The command-line driver prints the message and exits with the code, so the
codes are part of the process interface and must stay stable.
"""

from enum import IntEnum
from typing import Optional


class ErrorCode(IntEnum):
    """Process exit codes for each error kind (0 means success)."""
    SUCCESS = 0
    USAGE = 1
    FILE_OPEN = 2
    DOCUMENT_SYNTAX = 3
    DUPLICATE_PARAMETER = 4
    INVALID_PARAMETER_NAME = 5
    ILLEGAL_NESTED_MAPPING = 6
    ILLEGAL_SEQUENCE_CONTEXT = 7
    INVALID_NUMBER = 8
    POINT_COUNT_MISMATCH = 9
    MISSING_PARAMETER = 10
    INVALID_PARAMETER_VALUE = 11
    TRIANGULATION = 12
    MESH_WRITE = 13


class DemeshError(Exception):
    """
    Base class for all demesh errors.

    Attributes:
        message: Human-readable description of the failure
        code: Numeric error code (see ErrorCode)
    """
    code: ErrorCode = ErrorCode.USAGE

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class FileOpenError(DemeshError):
    """A configuration or data file could not be opened or written."""
    code = ErrorCode.FILE_OPEN

    def __init__(self, path, reason: Optional[str] = None):
        message = f"The file '{path}' could not be opened."
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.path = str(path)


class DocumentSyntaxError(DemeshError):
    """The configuration document is not well-formed YAML."""
    code = ErrorCode.DOCUMENT_SYNTAX


class DuplicateParameterError(DemeshError):
    code = ErrorCode.DUPLICATE_PARAMETER

    def __init__(self, block_name: str, param_name: str):
        super().__init__(
            f"Parameter {param_name} in {block_name} block appears more than once!"
        )
        self.block_name = block_name
        self.param_name = param_name


class InvalidParameterNameError(DemeshError):
    code = ErrorCode.INVALID_PARAMETER_NAME

    def __init__(self, block_name: str, param_name: str):
        super().__init__(f"Invalid parameter name in {block_name} block: '{param_name}'")
        self.block_name = block_name
        self.param_name = param_name


class IllegalNestedMappingError(DemeshError):
    code = ErrorCode.ILLEGAL_NESTED_MAPPING

    def __init__(self, param_name: str):
        super().__init__(f"Illegal mapping encountered in parameter {param_name}")
        self.param_name = param_name


class IllegalSequenceContextError(DemeshError):
    code = ErrorCode.ILLEGAL_SEQUENCE_CONTEXT

    def __init__(self, block_name: str):
        super().__init__(f"Encountered illegal array value in {block_name} block.")
        self.block_name = block_name


class InvalidNumberError(DemeshError):
    """A string could not be converted to the requested numeric type."""
    code = ErrorCode.INVALID_NUMBER


class PointCountMismatchError(DemeshError):
    code = ErrorCode.POINT_COUNT_MISMATCH

    def __init__(self, name: str, count: int, reference_name: str, reference_count: int):
        super().__init__(
            f"Number of {name} ({count}) != number of {reference_name} ({reference_count})."
        )
        self.name = name
        self.count = count
        self.reference_name = reference_name
        self.reference_count = reference_count


class MissingParameterError(DemeshError):
    """A parameter required by a pipeline stage was never set."""
    code = ErrorCode.MISSING_PARAMETER


class InvalidParameterValueError(DemeshError):
    """A parameter was given a value outside its allowed set."""
    code = ErrorCode.INVALID_PARAMETER_VALUE


class TriangulationError(DemeshError):
    code = ErrorCode.TRIANGULATION


class MeshWriteError(DemeshError):
    """A mesh file could not be produced in the requested format."""
    code = ErrorCode.MESH_WRITE
