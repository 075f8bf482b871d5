"""
CHIP-8 Display
64x32 monochrome framebuffer with XOR sprite blitting.
The blit kernel is compiled with Numba.
"""

import numpy as np
from numba import njit
from typing import Tuple


SCREEN_WIDTH = 64
SCREEN_HEIGHT = 32


@njit(cache=True)
def blit_sprite(framebuffer, sprite, x, y):
    """
    XOR an 8-pixel-wide sprite into the framebuffer at (x, y).
    
    Coordinates wrap on both axes. Returns True if any lit pixel
    was turned off.
    """
    height = framebuffer.shape[0]
    width = framebuffer.shape[1]
    collision = False
    
    for row in range(sprite.shape[0]):
        byte = sprite[row]
        py = (y + row) % height
        for col in range(8):
            bit = (byte >> (7 - col)) & 1
            if bit == 0:
                continue
            px = (x + col) % width
            if framebuffer[py, px] == 1:
                collision = True
                framebuffer[py, px] = 0
            else:
                framebuffer[py, px] = 1
    
    return collision


class Display:
    """
    CHIP-8 screen.
    
    The framebuffer is a (32, 64) uint8 array of 0/1 pixels, row-major,
    so the flat index of (x, y) is x + y * 64.
    """
    
    def __init__(self):
        self.framebuffer = np.zeros((SCREEN_HEIGHT, SCREEN_WIDTH), dtype=np.uint8)
    
    @property
    def pixels(self) -> np.ndarray:
        """Flat view of the framebuffer."""
        return self.framebuffer.reshape(-1)
    
    def clear(self):
        self.framebuffer[:] = 0
    
    def draw_sprite(self, sprite: np.ndarray, x: int, y: int) -> bool:
        """Draw sprite rows at (x, y). Returns the collision flag."""
        sprite = np.ascontiguousarray(sprite, dtype=np.uint8)
        return bool(blit_sprite(self.framebuffer, sprite, int(x), int(y)))
    
    def get_pixel(self, x: int, y: int) -> int:
        """Pixel at (x, y), wrapping like the blitter. For hosts and inspection."""
        return int(self.framebuffer[y % SCREEN_HEIGHT, x % SCREEN_WIDTH])
    
    def to_rgb(self, on_color: Tuple[int, int, int] = (255, 255, 255),
               off_color: Tuple[int, int, int] = (0, 0, 0)) -> np.ndarray:
        """Render to a (32, 64, 3) RGB image."""
        on = np.array(on_color, dtype=np.uint8)
        off = np.array(off_color, dtype=np.uint8)
        return np.where(self.framebuffer[:, :, None] == 1, on, off).astype(np.uint8)
    
    def warm_up(self):
        """Compile the blit kernel ahead of the first frame."""
        scratch = np.zeros((SCREEN_HEIGHT, SCREEN_WIDTH), dtype=np.uint8)
        blit_sprite(scratch, np.zeros(1, dtype=np.uint8), 0, 0)
