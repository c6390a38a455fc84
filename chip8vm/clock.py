# Driver loop clocks. The instruction rate and the 60 Hz timer rate are two
# independent accumulators fed from the same wall-clock delta, so timer
# cadence never depends on how many instructions ran.

TIMER_HZ = 60


class FixedRate:
    """Turns elapsed seconds into a count of whole periods at ``hz``."""

    def __init__(self, hz):
        if hz <= 0:
            raise ValueError(f"rate must be positive, got {hz}")
        self.hz = hz
        self.interval = 1.0 / hz
        self._accumulator = 0.0

    def advance(self, dt):
        self._accumulator += dt
        due = int(self._accumulator * self.hz + 1e-9)
        self._accumulator -= due * self.interval
        # float drift can push the remainder a hair below zero
        if self._accumulator < 0:
            self._accumulator = 0.0
        return due


class Driver:
    """Runs a Chip8 machine from elapsed wall-clock time.

    ``on_sound`` (optional) is called with True when the sound timer
    becomes active and with False on the tick it reaches zero.
    """

    def __init__(self, machine, instructions_per_second, timer_hz=TIMER_HZ, on_sound=None):
        self.machine = machine
        self.cpu_clock = FixedRate(instructions_per_second)
        self.timer_clock = FixedRate(timer_hz)
        self.on_sound = on_sound
        self.cycles = 0
        self.timer_ticks = 0
        self._sound_on = False

    def advance(self, dt, keys=None):
        """Feed ``dt`` seconds. ``keys`` is the host's 16-key snapshot for
        this iteration. Chip8Error from the machine propagates."""
        if keys is not None:
            self.machine.set_keys(keys)

        for _ in range(self.cpu_clock.advance(dt)):
            self.machine.step()
            self.cycles += 1
            self._sync_sound()

        for _ in range(self.timer_clock.advance(dt)):
            self.machine.tick_timers()
            self.timer_ticks += 1
            self._sync_sound()

    def _sync_sound(self):
        # Fx18 can start or cancel the sound, a tick can only stop it
        active = self.machine.sound_active
        if active != self._sound_on:
            self._set_sound(active)

    def _set_sound(self, on):
        self._sound_on = on
        if self.on_sound is not None:
            self.on_sound(on)
