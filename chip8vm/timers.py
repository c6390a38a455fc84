# Delay and sound timers. Both count down by one per tick, floor 0. The
# driver calls tick() at 60 Hz no matter how fast instructions run.


class Timers:
    def __init__(self):
        self.delay = 0
        self.sound = 0

    @property
    def sound_active(self):
        return self.sound > 0

    def decrement_delay(self):
        if self.delay > 0:
            self.delay -= 1

    def decrement_sound(self):
        """Count the sound timer down. Returns True on the tick it reaches 0."""
        if self.sound > 0:
            self.sound -= 1
            return self.sound == 0
        return False

    def tick(self):
        """One 60 Hz tick of both timers. Returns the sound stop edge."""
        self.decrement_delay()
        return self.decrement_sound()
