"""
CHIP-8 Emulator Configuration
Host cadence, rendering and compatibility settings.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


# QWERTY layout of the 4x4 hex keypad:
#   1 2 3 C      1 2 3 4
#   4 5 6 D  ->  Q W E R
#   7 8 9 E      A S D F
#   A 0 B F      Z X C V
DEFAULT_KEY_MAP: Dict[str, int] = {
    '1': 0x1, '2': 0x2, '3': 0x3, '4': 0xC,
    'q': 0x4, 'w': 0x5, 'e': 0x6, 'r': 0xD,
    'a': 0x7, 's': 0x8, 'd': 0x9, 'f': 0xE,
    'z': 0xA, 'x': 0x0, 'c': 0xB, 'v': 0xF,
}


@dataclass
class EmulatorConfig:
    """Configuration for the emulator and its host loop."""
    
    # Host cadence
    cycles_per_frame: int = 10
    target_fps: int = 60
    
    # Rendering
    scale: int = 10
    on_color: Tuple[int, int, int] = (255, 255, 255)
    off_color: Tuple[int, int, int] = (0, 0, 0)
    
    # Input: pygame key name -> keypad index
    key_map: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_KEY_MAP))
    
    # Ex9E clears the key it matched
    consume_key_on_skip: bool = True
    
    # Audio
    beep_frequency: int = 440
    
    # Seed for Cxnn, None for OS entropy
    seed: Optional[int] = None
    
    def __post_init__(self):
        if self.cycles_per_frame <= 0:
            raise ValueError(f"cycles_per_frame must be positive, got {self.cycles_per_frame}")
        if self.target_fps <= 0:
            raise ValueError(f"target_fps must be positive, got {self.target_fps}")
        if self.scale <= 0:
            raise ValueError(f"scale must be positive, got {self.scale}")
        for name, key in self.key_map.items():
            if not 0 <= key <= 0xF:
                raise ValueError(f"Key '{name}' maps to 0x{key:X}, outside the keypad")
