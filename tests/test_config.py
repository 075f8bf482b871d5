"""
Configuration Tests
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from chip8.config import DEFAULT_KEY_MAP, EmulatorConfig


class TestDefaults:

    def test_keypad_layout(self):
        assert sorted(DEFAULT_KEY_MAP.values()) == list(range(16))
        assert DEFAULT_KEY_MAP['x'] == 0x0
        assert DEFAULT_KEY_MAP['4'] == 0xC
        assert DEFAULT_KEY_MAP['v'] == 0xF

    def test_key_map_not_shared(self):
        a = EmulatorConfig()
        a.key_map['p'] = 1
        assert 'p' not in EmulatorConfig().key_map


class TestValidation:

    @pytest.mark.parametrize("field", ["cycles_per_frame", "target_fps", "scale"])
    def test_positive(self, field):
        with pytest.raises(ValueError):
            EmulatorConfig(**{field: 0})

    def test_key_out_of_range(self):
        with pytest.raises(ValueError):
            EmulatorConfig(key_map={'q': 0x10})
