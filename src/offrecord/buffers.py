"""
Byte buffer helpers for handling secrets.

Only mutable buffers (bytearray, writable memoryview) can be wiped; bytes and
str objects cannot. Wiping is best effort: copies made elsewhere survive.
"""

import hmac
from typing import Union

WritableBuffer = Union[bytearray, memoryview]


def secure_zero(buffer: WritableBuffer) -> None:
    """Overwrite a mutable buffer with zero bytes in place."""
    view = memoryview(buffer).cast("B")
    view[:] = bytes(len(view))


def secure_compare(a: str, b: str) -> bool:
    """Compare two strings in constant time."""
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def secure_compare_buffers(a: bytes, b: bytes) -> bool:
    """Compare two byte buffers in constant time."""
    return hmac.compare_digest(bytes(a), bytes(b))


class SecureBuffer(bytearray):
    """A bytearray that zeroes itself when used as a context manager exits."""

    def wipe(self) -> None:
        secure_zero(self)

    def __enter__(self) -> "SecureBuffer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.wipe()

    def __repr__(self) -> str:
        return f"SecureBuffer(size={len(self)})"


def create_secure_buffer(size: int) -> SecureBuffer:
    """Allocate a zero-filled SecureBuffer of the given size."""
    return SecureBuffer(size)


def string_to_secure_buffer(value: str) -> SecureBuffer:
    """Copy a string's UTF-8 encoding into a SecureBuffer."""
    return SecureBuffer(value.encode("utf-8"))


def secure_buffer_to_string(buffer: WritableBuffer) -> str:
    """Decode a buffer as UTF-8, then zero it.

    Invalid bytes decode to U+FFFD. The buffer is zeroed even if decoding fails.
    """
    try:
        return bytes(buffer).decode("utf-8", errors="replace")
    finally:
        secure_zero(buffer)
