# blockgen/errors.py
"""
blockgen Error Types and Reporting Module

This module provides the error handling infrastructure for the blockgen
generation pipeline.  A generation pass either yields complete program text
or fails outright with one of the exceptions below; there is no
partial-success mode.

Architecture Overview:
─────────────────────
┌─────────────────────────────────────────────────────────────────────────────┐
│                          Error Hierarchy                                     │
├─────────────────────────────────────────────────────────────────────────────┤
│  BlockgenError (base)                                                       │
│  ├── ParseError                 - Malformed S-expression node trees         │
│  ├── ConfigError                - Invalid generator configuration           │
│  └── GenerationError            - Failures during a generation pass         │
│      ├── UnhandledCombinationError - Field/input combination with no rule  │
│      ├── UnknownKindError          - Node kind with no registered rule     │
│      └── RuleContractError         - Rule returned the wrong result shape  │
└─────────────────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
Each error has a unique code following the pattern BLKG-XXXX where XXXX is a
4-digit number in ranges:
  - 1000-1999: Parse errors
  - 2000-2999: Configuration errors
  - 4000-4999: Generation errors
  - 9000-9999: Internal errors

Example Usage:
──────────────
    from blockgen.errors import UnhandledCombinationError, NodeLocation

    raise UnhandledCombinationError(
        "lists_getIndex", field="WHERE", value="MIDDLE",
        location=NodeLocation.from_node(node),
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Any, Dict, List, Optional


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR SEVERITY AND CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorSeverity(Enum):
    """Severity levels for blockgen errors."""

    FATAL = "fatal"
    ERROR = "error"
    WARNING = "warning"


@unique
class ErrorPhase(Enum):
    """Pipeline phase where the error occurred."""

    PARSE = "parse"            # S-expression → node tree
    CONFIG = "config"          # Generator configuration
    GENERATION = "generation"  # Node tree → program text
    INTERNAL = "internal"      # Engine internals


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorCode:
    """
    Structured error code.

    Error codes follow the pattern PREFIX-NNNN where PREFIX is ``BLKG`` and
    NNNN is a 4-digit number.
    """

    __slots__ = ("prefix", "number", "phase", "default_severity")

    def __init__(
        self,
        prefix: str,
        number: int,
        phase: ErrorPhase,
        default_severity: ErrorSeverity = ErrorSeverity.ERROR,
    ) -> None:
        self.prefix = prefix
        self.number = number
        self.phase = phase
        self.default_severity = default_severity

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.phase.name})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class BlockgenErrorCodes:
    """Predefined error codes."""

    # ═══════════════════════════════════════════════════════════════════════════
    # PARSE ERRORS (1000-1999)
    # ═══════════════════════════════════════════════════════════════════════════

    SEXP_SYNTAX = ErrorCode("BLKG", 1000, ErrorPhase.PARSE)
    UNEXPECTED_FORM = ErrorCode("BLKG", 1001, ErrorPhase.PARSE)
    INVALID_VALUE = ErrorCode("BLKG", 1002, ErrorPhase.PARSE)
    DUPLICATE_ID = ErrorCode("BLKG", 1003, ErrorPhase.PARSE)

    # ═══════════════════════════════════════════════════════════════════════════
    # CONFIGURATION ERRORS (2000-2999)
    # ═══════════════════════════════════════════════════════════════════════════

    INVALID_CONFIG = ErrorCode("BLKG", 2000, ErrorPhase.CONFIG)

    # ═══════════════════════════════════════════════════════════════════════════
    # GENERATION ERRORS (4000-4999)
    # ═══════════════════════════════════════════════════════════════════════════

    GENERATION_FAILURE = ErrorCode("BLKG", 4000, ErrorPhase.GENERATION)
    UNHANDLED_COMBINATION = ErrorCode("BLKG", 4001, ErrorPhase.GENERATION)
    UNKNOWN_KIND = ErrorCode("BLKG", 4002, ErrorPhase.GENERATION)
    RULE_CONTRACT = ErrorCode("BLKG", 4003, ErrorPhase.GENERATION)

    # ═══════════════════════════════════════════════════════════════════════════
    # INTERNAL ERRORS (9000-9999)
    # ═══════════════════════════════════════════════════════════════════════════

    INTERNAL_ERROR = ErrorCode(
        "BLKG", 9000, ErrorPhase.INTERNAL, ErrorSeverity.FATAL
    )


# Convenience alias
E = BlockgenErrorCodes


# ═══════════════════════════════════════════════════════════════════════════════
# LOCATION TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class NodeLocation:
    """
    Points at the node (and optionally the field or input) an error is about.

    Nodes come from an editor rather than a text file, so the location is
    the node's kind and id instead of a line/column pair.  ``file`` and
    ``line`` are filled in for trees loaded from S-expression files.
    """

    kind: str = ""
    node_id: str = ""
    slot: str = ""
    file: str = ""
    line: int = 0

    @classmethod
    def from_node(cls, node: Any, slot: str = "") -> "NodeLocation":
        """Create a NodeLocation from a node object."""
        return cls(
            kind=getattr(node, "kind", "") or "",
            node_id=getattr(node, "id", "") or "",
            slot=slot,
        )

    def __str__(self) -> str:
        parts = []
        if self.file:
            parts.append(self.file if not self.line else f"{self.file}:{self.line}")
        if self.kind:
            node = self.kind
            if self.node_id:
                node += f"#{self.node_id}"
            if self.slot:
                node += f".{self.slot}"
            parts.append(node)
        if not parts:
            return "<unknown location>"
        return ": ".join(parts)


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR MESSAGE FORMATTING
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class ErrorNote:
    """Additional note attached to an error."""

    message: str
    label: str = "note"

    def __str__(self) -> str:
        prefix = f"{self.label}: " if self.label else ""
        return f"{prefix}{self.message}"


@dataclass
class ErrorMessage:
    """
    A complete error message with all context.

    This is the internal representation of an error before it is printed
    or serialised for the host.
    """

    code: ErrorCode
    message: str
    location: NodeLocation = field(default_factory=NodeLocation)
    severity: Optional[ErrorSeverity] = None  # None means use code's default
    notes: List[ErrorNote] = field(default_factory=list)
    hint: str = ""

    def __post_init__(self) -> None:
        if self.severity is None:
            self.severity = self.code.default_severity

    def add_note(self, message: str, label: str = "note") -> "ErrorMessage":
        """Add a note to this error message."""
        self.notes.append(ErrorNote(message=message, label=label))
        return self

    def to_gcc_format(self) -> str:
        """Format as a GCC-style error message."""
        severity = self.severity.value if self.severity else "error"
        lines = [f"{self.location}: {severity}: {self.message} [{self.code}]"]
        for note in self.notes:
            lines.append(str(note))
        if self.hint:
            lines.append(f"hint: {self.hint}")
        return "\n".join(lines)

    def to_json(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "code": self.code.code,
            "message": self.message,
            "severity": self.severity.value if self.severity else "error",
            "location": {
                "kind": self.location.kind,
                "id": self.location.node_id,
                "slot": self.location.slot,
                "file": self.location.file,
                "line": self.location.line,
            },
            "phase": self.code.phase.value,
            "notes": [
                {"message": note.message, "label": note.label}
                for note in self.notes
            ],
            "hint": self.hint,
        }

    def __str__(self) -> str:
        return self.to_gcc_format()


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class BlockgenError(Exception):
    """
    Base exception for all blockgen errors.

    Carries structured error information that can be pretty-printed or
    converted to JSON for the host editor.
    """

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        location: Optional[NodeLocation] = None,
        severity: Optional[ErrorSeverity] = None,
        cause: Optional[Exception] = None,
        notes: Optional[List[ErrorNote]] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.error_message = ErrorMessage(
            code=code or BlockgenErrorCodes.INTERNAL_ERROR,
            message=message,
            location=location or NodeLocation(),
            severity=severity,
            notes=notes or [],
            hint=hint,
        )
        self.cause = cause

    @property
    def code(self) -> ErrorCode:
        return self.error_message.code

    @property
    def location(self) -> NodeLocation:
        return self.error_message.location

    @property
    def severity(self) -> ErrorSeverity:
        return self.error_message.severity or ErrorSeverity.ERROR

    def add_note(self, message: str, label: str = "note") -> "BlockgenError":
        """Add a note to this error."""
        self.error_message.add_note(message, label)
        return self

    def to_gcc_format(self) -> str:
        return self.error_message.to_gcc_format()

    def to_json(self) -> Dict[str, Any]:
        return self.error_message.to_json()

    def __str__(self) -> str:
        return self.to_gcc_format()


# ───────────────────────────────────────────────────────────────────────────────
# PARSE ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class ParseError(BlockgenError):
    """Raised when an S-expression cannot be mapped to a valid node tree."""

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        location: Optional[NodeLocation] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message=message,
            code=code or BlockgenErrorCodes.UNEXPECTED_FORM,
            location=location,
            **kwargs,
        )


# ───────────────────────────────────────────────────────────────────────────────
# CONFIGURATION ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class ConfigError(BlockgenError):
    """Invalid generator configuration."""

    def __init__(self, option: str, message: str, **kwargs: Any) -> None:
        super().__init__(
            message=f"Invalid option {option!r}: {message}",
            code=BlockgenErrorCodes.INVALID_CONFIG,
            **kwargs,
        )
        self.option = option


# ───────────────────────────────────────────────────────────────────────────────
# GENERATION ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class GenerationError(BlockgenError):
    """Error during a generation pass."""

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        location: Optional[NodeLocation] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message=message,
            code=code or BlockgenErrorCodes.GENERATION_FAILURE,
            location=location,
            **kwargs,
        )


class UnhandledCombinationError(GenerationError):
    """A rule reached a field/input configuration it has no translation for.

    Indicates an editor/model inconsistency, never a transient condition.
    """

    def __init__(
        self,
        kind: str,
        field: str = "",
        value: Any = None,
        location: Optional[NodeLocation] = None,
        **kwargs: Any,
    ) -> None:
        if field:
            message = f"Unhandled combination ({kind}): {field}={value!r}"
        else:
            message = f"Unhandled combination ({kind})"
        super().__init__(
            message=message,
            code=BlockgenErrorCodes.UNHANDLED_COMBINATION,
            location=location or NodeLocation(kind=kind, slot=field),
            **kwargs,
        )
        self.kind = kind
        self.field = field
        self.value = value


class UnknownKindError(GenerationError):
    """No translation rule is registered for a node kind."""

    def __init__(
        self,
        kind: str,
        location: Optional[NodeLocation] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message=f"No generator rule for node kind {kind!r}",
            code=BlockgenErrorCodes.UNKNOWN_KIND,
            location=location or NodeLocation(kind=kind),
            hint="Register a rule for this kind or remove the node",
            **kwargs,
        )
        self.kind = kind


class RuleContractError(GenerationError):
    """A rule returned a statement where an expression was expected, or
    the other way round."""

    def __init__(
        self,
        message: str,
        location: Optional[NodeLocation] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message=message,
            code=BlockgenErrorCodes.RULE_CONTRACT,
            location=location,
            **kwargs,
        )
