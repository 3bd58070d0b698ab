"""
offrecord: detect and redact secrets before they reach logs.

This package provides a registry of secret-matching rules, an engine that
redacts or reports matches, and helpers for wrapping secret values and
sanitizing exceptions.
"""

__version__ = "0.1.0"

from offrecord.models import (
    PatternRegistration,
    RedactionConfig,
    DetectedSecret,
    DetectionResult,
    ValidationResult,
    RedactionResult,
    SafeErrorOptions,
)
from offrecord.registry import (
    DEFAULT_PATTERNS,
    PatternRegistry,
    get_pattern_registry,
    load_registry,
    reset_pattern_registry,
)
from offrecord.engine import SecretRedactor, configure_redactor, get_redactor, reset_redactor
from offrecord.errors import (
    SafeError,
    create_safe_error,
    safe_errors,
    sanitize_message,
    sanitize_stack,
)
from offrecord.secure import (
    MissingEnvironmentVariable,
    SecretDisposedError,
    SecureString,
    secure,
    secure_from_env,
)
from offrecord.buffers import (
    SecureBuffer,
    create_secure_buffer,
    secure_buffer_to_string,
    secure_compare,
    secure_compare_buffers,
    secure_zero,
    string_to_secure_buffer,
)
from offrecord.logging_filter import RedactingFilter, install_redacting_filter

__all__ = [
    "PatternRegistration",
    "RedactionConfig",
    "DetectedSecret",
    "DetectionResult",
    "ValidationResult",
    "RedactionResult",
    "SafeErrorOptions",
    "DEFAULT_PATTERNS",
    "PatternRegistry",
    "get_pattern_registry",
    "load_registry",
    "reset_pattern_registry",
    "SecretRedactor",
    "configure_redactor",
    "get_redactor",
    "reset_redactor",
    "SafeError",
    "create_safe_error",
    "safe_errors",
    "sanitize_message",
    "sanitize_stack",
    "SecureString",
    "secure",
    "secure_from_env",
    "MissingEnvironmentVariable",
    "SecretDisposedError",
    "SecureBuffer",
    "create_secure_buffer",
    "secure_buffer_to_string",
    "secure_compare",
    "secure_compare_buffers",
    "secure_zero",
    "string_to_secure_buffer",
    "RedactingFilter",
    "install_redacting_filter",
]
