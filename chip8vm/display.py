# Display buffer - 64x32 monochrome cells, stored row-major as a numpy
# array indexed [y, x]. Only clear() and draw_sprite() change it.

import numpy as np

WIDTH = 64
HEIGHT = 32


class Display:
    def __init__(self):
        self._cells = np.zeros((HEIGHT, WIDTH), dtype=np.uint8)
        self._changed = True

    def clear(self):
        self._cells.fill(0)
        self._changed = True

    def draw_sprite(self, x, y, rows):
        """XOR an 8-pixel-wide sprite onto the buffer at (x, y).

        Both axes wrap around the edges, for the start position and for
        every pixel of the sprite. Returns True if any set pixel was
        turned off (collision).
        """
        x %= WIDTH
        y %= HEIGHT
        collision = False
        for row, sprite in enumerate(rows):
            if sprite == 0:
                continue
            cy = (y + row) % HEIGHT
            for bit in range(8):
                if sprite & (0x80 >> bit):
                    cx = (x + bit) % WIDTH
                    if self._cells[cy, cx]:
                        collision = True
                    self._cells[cy, cx] ^= 1
        self._changed = True
        return collision

    def pixel(self, x, y):
        return bool(self._cells[y % HEIGHT, x % WIDTH])

    def snapshot(self):
        cells = self._cells.copy()
        cells.flags.writeable = False
        return cells

    def consume_changed(self):
        """True if the buffer changed since the last call."""
        changed = self._changed
        self._changed = False
        return changed
