"""Core detection and redaction engine."""

import re
import logging
from typing import Iterator, Optional

from offrecord.models import (
    DetectedSecret,
    DetectionResult,
    PatternRegistration,
    RedactionConfig,
    RedactionResult,
    ValidationResult,
)
from offrecord.registry import PatternRegistry, get_pattern_registry

logger = logging.getLogger(__name__)

PREVIEW_MASK = "***"
PREVIEW_SEPARATOR = "..."


def scan(pattern: "re.Pattern[str]", text: str) -> Iterator["re.Match[str]"]:
    """Yield every non-overlapping match of pattern in text, from the start."""
    return pattern.finditer(text)


def redact_value(value: str) -> str:
    """Return a masked preview of a secret that is safe to log."""
    if len(value) <= 8:
        return PREVIEW_MASK
    return f"{value[:2]}{PREVIEW_SEPARATOR}{value[-2:]}"


class SecretRedactor:
    """
    Detects and redacts secrets using the rules of a PatternRegistry.

    The registry is shared, not owned: rules registered through the redactor
    are visible to every other user of the same registry. Apart from that the
    redactor holds only its replacement policy and keeps no state between
    calls.
    """

    def __init__(
        self,
        config: Optional[RedactionConfig] = None,
        registry: Optional[PatternRegistry] = None,
    ) -> None:
        """
        Initialize redactor.

        Args:
            config: Replacement policy. Defaults to a flat "[REDACTED]".
            registry: Rules to apply. Defaults to the shared default registry.
        """
        self.config = config or RedactionConfig()
        self._registry = registry if registry is not None else get_pattern_registry()

    @property
    def registry(self) -> PatternRegistry:
        """The registry this redactor applies."""
        return self._registry

    def redact(self, text: str) -> str:
        """
        Replace every secret in text.

        Rules run in registry order and each one scans the output of the rule
        before it, so an earlier rule wins any span it shares with a later one.

        Args:
            text: Text to redact

        Returns:
            Redacted text
        """
        return self.redact_detailed(text).redacted_text

    def redact_detailed(self, text: str) -> RedactionResult:
        """
        Redact secrets and report how many occurrences were replaced.

        Args:
            text: Text to redact

        Returns:
            RedactionResult with redacted text and replacement count
        """
        if not text:
            return RedactionResult(original_text=text, redacted_text=text)

        result = text
        count = 0
        for registration in self._registry.get_all():
            for pattern in registration.patterns:
                result, replaced = self._apply(registration, pattern, result)
                count += replaced

        return RedactionResult(original_text=text, redacted_text=result, redaction_count=count)

    def _apply(
        self,
        registration: PatternRegistration,
        pattern: "re.Pattern[str]",
        text: str,
    ) -> tuple[str, int]:
        """Substitute one pattern's accepted matches in text."""
        replaced = 0

        def substitute(match: "re.Match[str]") -> str:
            nonlocal replaced
            value = match.group(0)
            if not registration.accepts(value):
                return value
            replaced += 1
            return self.config.replacement_for(value, registration.name)

        out = pattern.sub(substitute, text)
        if replaced:
            logger.debug(f"Rule {registration.name} redacted {replaced} occurrence(s)")
        return out, replaced

    def detect(self, text: str) -> DetectionResult:
        """
        Find secrets in text without modifying it.

        Every rule scans the original text. Matches are reported in rule and
        pattern order, not by position, and overlapping spans from different
        rules are all kept.

        Args:
            text: Text to scan

        Returns:
            DetectionResult with a masked preview of each match
        """
        if not text:
            return DetectionResult(found=False, matches=[])

        matches: list[DetectedSecret] = []

        for registration in self._registry.get_all():
            for pattern in registration.patterns:
                for match in scan(pattern, text):
                    value = match.group(0)
                    if not registration.accepts(value):
                        continue

                    start, end = match.span()
                    matches.append(
                        DetectedSecret(
                            pattern_name=registration.name,
                            start_index=start,
                            end_index=end,
                            redacted_value=redact_value(value),
                        )
                    )

        return DetectionResult(found=len(matches) > 0, matches=matches)

    def validate_key(self, value: str, pattern_name: str) -> ValidationResult:
        """
        Check a candidate value against one named rule.

        Lookup failures are reported in the result rather than raised.

        Args:
            value: Candidate secret
            pattern_name: Name of the rule to check against

        Returns:
            ValidationResult; error distinguishes unknown rule, wrong shape
            and validator rejection
        """
        registration = self._registry.get(pattern_name)
        if registration is None:
            return ValidationResult(
                valid=False,
                pattern_name=pattern_name,
                error=f"Pattern '{pattern_name}' not found",
            )

        if not any(pattern.search(value) for pattern in registration.patterns):
            return ValidationResult(
                valid=False,
                pattern_name=pattern_name,
                error="Value does not match pattern format",
            )

        if registration.validator is not None:
            is_valid = bool(registration.validator(value))
            return ValidationResult(
                valid=is_valid,
                pattern_name=pattern_name,
                error=None if is_valid else "Value failed validation",
            )

        return ValidationResult(valid=True, pattern_name=pattern_name)

    def register(self, registration: PatternRegistration) -> None:
        """Register a rule on the underlying registry."""
        self._registry.register(registration)

    def unregister(self, name: str) -> bool:
        """Unregister a rule from the underlying registry."""
        return self._registry.unregister(name)


# Process-wide default redactor
_global_redactor: Optional[SecretRedactor] = None


def get_redactor() -> SecretRedactor:
    """Get the shared default redactor, creating it on first use."""
    global _global_redactor
    if _global_redactor is None:
        _global_redactor = SecretRedactor()
    return _global_redactor


def configure_redactor(
    config: Optional[RedactionConfig] = None,
    registry: Optional[PatternRegistry] = None,
) -> SecretRedactor:
    """Replace the shared default redactor with a freshly built one."""
    global _global_redactor
    _global_redactor = SecretRedactor(config, registry)
    return _global_redactor


def reset_redactor() -> None:
    """Drop the shared default redactor so the next access rebuilds it."""
    global _global_redactor
    _global_redactor = None
