"""Data models for offrecord."""

import re
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, Union

Validator = Callable[[str], bool]
ReplacementFn = Callable[[str, str], str]

REDACTED = "[REDACTED]"


def _default_replacement_fn(match: str, pattern_name: str) -> str:
    return f"[REDACTED:{pattern_name}]"


@dataclass(frozen=True)
class PatternRegistration:
    """
    A named rule recognising one category of secret.

    Patterns given as strings are compiled on construction. Every pattern is
    applied in scan-all mode, so anchors are the caller's business.
    """

    name: str
    patterns: Sequence[Union[str, "re.Pattern[str]"]]
    validator: Optional[Validator] = None
    env_var: Optional[str] = None
    description: str = ""

    def __post_init__(self) -> None:
        """Compile string patterns and freeze the pattern list."""
        if not self.name:
            raise ValueError("Pattern registration requires a name")
        if isinstance(self.patterns, (str, re.Pattern)):
            raise ValueError(f"Pattern '{self.name}': patterns must be a sequence")

        compiled = tuple(
            p if isinstance(p, re.Pattern) else re.compile(p) for p in self.patterns
        )
        if not compiled:
            raise ValueError(f"Pattern '{self.name}' has no regular expressions")

        object.__setattr__(self, "patterns", compiled)

    @property
    def has_validator(self) -> bool:
        """Return True if matches must pass a validator."""
        return self.validator is not None

    def accepts(self, value: str) -> bool:
        """Return True unless the validator rejects the value."""
        return self.validator is None or bool(self.validator(value))


@dataclass
class RedactionConfig:
    """Replacement policy for redaction."""

    replacement: str = REDACTED
    include_pattern_name: bool = False
    replacement_fn: ReplacementFn = _default_replacement_fn

    def replacement_for(self, match: str, pattern_name: str) -> str:
        """Return the text substituted for a matched secret."""
        if self.include_pattern_name:
            return self.replacement_fn(match, pattern_name)
        return self.replacement


@dataclass
class DetectedSecret:
    """Single detected secret. Never carries the raw value."""

    pattern_name: str
    start_index: int
    end_index: int
    redacted_value: str

    @property
    def span(self) -> tuple[int, int]:
        """Return (start, end) tuple."""
        return (self.start_index, self.end_index)


@dataclass
class DetectionResult:
    """Result from detect operation."""

    found: bool = False
    matches: list[DetectedSecret] = field(default_factory=list)

    @property
    def match_count(self) -> int:
        """Return number of matches."""
        return len(self.matches)


@dataclass
class ValidationResult:
    """Result from validate_key operation."""

    valid: bool
    pattern_name: str
    error: Optional[str] = None


@dataclass
class RedactionResult:
    """Result from redact_detailed operation."""

    original_text: str
    redacted_text: str
    redaction_count: int = 0


@dataclass
class SafeErrorOptions:
    """Options for sanitizing an exception."""

    redact_stack: bool = True
    context: Optional[str] = None
    preserve_type: bool = True
