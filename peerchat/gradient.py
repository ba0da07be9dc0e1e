"""Colour-cycling gradient animation state.

The animator holds a ring of (start, end) colour pairs. A fast tick moves the
blend towards the next pair, and a slower switch advances to that pair and
starts the blend again. Drawing is left to the caller, which asks for the
current start and end colours of the linear gradient.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

UPDATE_INTERVAL_MS = 16
PROGRESS_STEP = 0.02
DEFAULT_SWITCH_INTERVAL_MS = 1000
RAINBOW_SWITCH_INTERVAL_MS = 5000


@dataclass(frozen=True)
class Color:
    """An RGBA colour with 8-bit channels."""

    red: int
    green: int
    blue: int
    alpha: int = 255

    def __post_init__(self) -> None:
        for name in ("red", "green", "blue", "alpha"):
            value = getattr(self, name)
            if not 0 <= value <= 255:
                raise ValueError(f"{name} must be within 0..255, got {value}")


_RAINBOW = (
    Color(255, 0, 0, 50),
    Color(255, 165, 0, 50),
    Color(255, 255, 0, 50),
    Color(0, 255, 0, 50),
    Color(0, 255, 255, 50),
    Color(0, 0, 255, 50),
    Color(128, 0, 255, 50),
)


def interpolate(a: Color, b: Color, t: float) -> Color:
    """Blend *a* towards *b* by *t* (0 gives *a*, 1 gives *b*), truncating channels."""
    return Color(
        int(a.red + (b.red - a.red) * t),
        int(a.green + (b.green - a.green) * t),
        int(a.blue + (b.blue - a.blue) * t),
        int(a.alpha + (b.alpha - a.alpha) * t),
    )


@dataclass
class GradientAnimator:
    """Cycles through colour pairs, blending smoothly from one to the next."""

    pairs: list[tuple[Color, Color]] = field(default_factory=list)
    current_index: int = 0
    progress: float = 0.0
    running: bool = False
    switch_interval: int = DEFAULT_SWITCH_INTERVAL_MS
    update_interval: int = UPDATE_INTERVAL_MS

    def add_gradient_pair(self, start: Color, end: Color) -> None:
        """Append a (start, end) pair to the cycle."""
        self.pairs.append((start, end))

    def start(self, interval: int = DEFAULT_SWITCH_INTERVAL_MS) -> bool:
        """Start cycling, switching pairs every *interval* milliseconds.

        At least two pairs are needed; with fewer nothing starts and ``False``
        is returned.
        """
        if len(self.pairs) < 2:
            return False
        self.switch_interval = interval
        self.running = True
        return True

    def tick(self) -> float:
        """Advance the blend by one step, capped at 1; return the new progress."""
        self.progress = min(self.progress + PROGRESS_STEP, 1.0)
        return self.progress

    def switch(self) -> int:
        """Move on to the next pair and restart the blend; return the new index."""
        if not self.pairs:
            raise ValueError("no gradient pairs to switch between")
        self.current_index = (self.current_index + 1) % len(self.pairs)
        self.progress = 0.0
        return self.current_index

    def current_colors(self) -> Optional[tuple[Color, Color]]:
        """Return the gradient's current start and end colours.

        Returns ``None`` when fewer than two pairs are set, since there is
        nothing to draw then.
        """
        if len(self.pairs) < 2:
            return None
        current = self.pairs[self.current_index]
        upcoming = self.pairs[(self.current_index + 1) % len(self.pairs)]
        return (
            interpolate(current[0], upcoming[0], self.progress),
            interpolate(current[1], upcoming[1], self.progress),
        )


def rainbow_animator() -> GradientAnimator:
    """Return a started animator cycling through faint rainbow colours."""
    animator = GradientAnimator()
    for i, start in enumerate(_RAINBOW):
        animator.add_gradient_pair(start, _RAINBOW[(i + 1) % len(_RAINBOW)])
    animator.start(RAINBOW_SWITCH_INTERVAL_MS)
    return animator