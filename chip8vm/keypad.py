# Input state - 16 logical keys 0x0-0xF. Written only by the host
# between cycles; the interpreter just reads it.

KEY_COUNT = 16


class Keypad:
    def __init__(self):
        self._keys = [False] * KEY_COUNT

    def press(self, key):
        self._keys[key & 0xF] = True

    def release(self, key):
        self._keys[key & 0xF] = False

    def set_state(self, states):
        """Replace all 16 key states from a host snapshot."""
        states = [bool(s) for s in states]
        if len(states) != KEY_COUNT:
            raise ValueError(f"expected {KEY_COUNT} key states, got {len(states)}")
        self._keys = states

    def is_pressed(self, key):
        return self._keys[key & 0xF]

    def first_pressed(self):
        for i, pressed in enumerate(self._keys):
            if pressed:
                return i
        return None

    def snapshot(self):
        return tuple(self._keys)
