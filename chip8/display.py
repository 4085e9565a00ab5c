import numpy as np

from .constants import HEIGHT, WIDTH


class Display:
    """64x32 monochrome framebuffer, row-major, origin at top-left.

    Only the CPU mutates it (CLS / DRW). The renderer reads snapshot() and
    resets `dirty` once it has drawn a frame.
    """

    def __init__(self, width=WIDTH, height=HEIGHT, wrap=False):
        self.width = width
        self.height = height
        self.wrap = wrap
        self.pixels = np.zeros((height, width), dtype=np.uint8)
        self.dirty = True

    def clear(self):
        self.pixels[:] = 0
        self.dirty = True

    def draw_sprite(self, x, y, sprite):
        """XOR an 8-pixel-wide sprite onto the screen at (x, y).

        `sprite` is a sequence of row bytes, MSB leftmost. The origin always
        wraps onto the screen; pixels running off the right or bottom edge
        wrap around when `wrap` is set and are dropped otherwise.

        Returns True if any lit pixel was turned off.
        """
        rows = np.unpackbits(np.frombuffer(bytes(sprite), dtype=np.uint8)).reshape(-1, 8)
        ys = (y % self.height) + np.arange(rows.shape[0])
        xs = (x % self.width) + np.arange(8)
        if self.wrap:
            ys %= self.height
            xs %= self.width
        else:
            rows = rows[ys < self.height][:, xs < self.width]
            ys = ys[ys < self.height]
            xs = xs[xs < self.width]

        # row by row: a wrapped sprite taller than the screen hits a row twice
        collided = False
        for py, bits in zip(ys, rows):
            line = self.pixels[py, xs]
            if np.any(line & bits):
                collided = True
            self.pixels[py, xs] = line ^ bits
        self.dirty = True
        return collided

    def pixel(self, x, y):
        return bool(self.pixels[y, x])

    def snapshot(self):
        grid = self.pixels.copy()
        grid.flags.writeable = False
        return grid
