"""
Wrapper for secret values that keeps them out of logs and reprs.

Python strings are immutable and may be interned or copied, so dispose()
only drops this object's reference; it cannot wipe the value from memory.
"""

import os
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")

MASK = "[SecureString]"


class SecretDisposedError(RuntimeError):
    """Raised when revealing a SecureString after dispose()."""


class MissingEnvironmentVariable(KeyError):
    """Raised when a required secret environment variable is unset."""


class SecureString:
    """A secret string that must be revealed explicitly."""

    __slots__ = ("_value", "_disposed")

    def __init__(self, value: str) -> None:
        self._value: Optional[str] = value
        self._disposed = False

    def reveal(self) -> str:
        """
        Return the wrapped value.

        Raises:
            SecretDisposedError: If dispose() was called
        """
        if self._disposed or self._value is None:
            raise SecretDisposedError("SecureString has been disposed")
        return self._value

    def dispose(self) -> None:
        """Drop the value. Idempotent."""
        self._value = None
        self._disposed = True

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def use(self, fn: Callable[[str], T]) -> T:
        """Call fn with the revealed value, then dispose."""
        try:
            return fn(self.reveal())
        finally:
            self.dispose()

    async def use_async(self, fn: Callable[[str], Awaitable[T]]) -> T:
        """Await fn with the revealed value, then dispose."""
        try:
            return await fn(self.reveal())
        finally:
            self.dispose()

    def to_json(self) -> str:
        return MASK

    def __len__(self) -> int:
        if self._disposed or self._value is None:
            return 0
        return len(self._value)

    def __str__(self) -> str:
        return MASK

    def __repr__(self) -> str:
        return MASK

    def __format__(self, format_spec: str) -> str:
        return format(MASK, format_spec)

    def __reduce__(self):
        raise TypeError("SecureString cannot be pickled")

    @classmethod
    def from_env(cls, env_var: str) -> Optional["SecureString"]:
        """Wrap an environment variable, or return None if unset or empty."""
        value = os.environ.get(env_var)
        if not value:
            return None
        return cls(value)


def secure(value: str) -> SecureString:
    """Wrap a value in a SecureString."""
    return SecureString(value)


def secure_from_env(env_var: str) -> SecureString:
    """
    Wrap a required environment variable.

    Raises:
        MissingEnvironmentVariable: If the variable is unset or empty
    """
    result = SecureString.from_env(env_var)
    if result is None:
        raise MissingEnvironmentVariable(f"Environment variable '{env_var}' is not set")
    return result
