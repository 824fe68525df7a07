"""Park-Miller minimal standard pseudo-random numbers."""

from __future__ import annotations

__all__ = ["ParkMillerRandom", "next_value"]

_MASK64 = 0xFFFFFFFFFFFFFFFF


def next_value(state: int) -> int:
    """Return the number following ``state``; it is also the new state.

    Results lie in the range 0 to 0x7ffffffd inclusive.
    """
    x = (state & _MASK64) % 0x7FFFFFFE + 1
    hi, lo = divmod(x, 127773)
    x = 16807 * lo - 2836 * hi
    if x < 0:
        x += 0x7FFFFFFF
    return x - 1


class ParkMillerRandom:
    """A generator of pseudo-random numbers carrying its own state."""

    def __init__(self, seed: int = 1) -> None:
        self.state = seed & _MASK64

    def next(self) -> int:
        """Advance the state and return the new value."""
        self.state = next_value(self.state)
        return self.state

    def __iter__(self) -> "ParkMillerRandom":
        return self

    def __next__(self) -> int:
        return self.next()