"""
Id allocation for slices and segments.
"""

from threading import Lock


class IdAllocator:
    """Thread-safe, monotonically increasing id counter."""
    def __init__(self, initial_value: int = 0):
        self._next = initial_value
        self.lock = Lock()

    def next_id(self) -> int:
        """Return the next free id and advance the counter."""
        with self.lock:
            value = self._next
            self._next += 1
            return value

    def peek(self) -> int:
        """Get the id the next call to next_id() will return."""
        with self.lock:
            return self._next

    def __repr__(self) -> str:
        return f"IdAllocator(next={self.peek()})"
