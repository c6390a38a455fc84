# pyglet front end: window, keyboard and beep around a Chip8 machine.
# We subclass pyglet's Window and override what we need from there. The
# machine itself knows nothing about pyglet; this module only feeds it key
# snapshots and elapsed time, and reads back the display and sound state.

import logging

import numpy as np
import pyglet
from pyglet.media import synthesis

from . import config, inspector
from .clock import Driver
from .errors import Chip8Error

log = logging.getLogger(__name__)

WHITE = (255, 255, 255, 255)


def resolve_keymap(names):
    return {getattr(pyglet.window.key, name): value for name, value in names.items()}


def generate_beep(duration, frequency, sample_rate=config.beep_sample_rate):
    # Use a Sine waveform from pyglet.media.synthesis
    return synthesis.Sine(duration=duration, frequency=frequency, sample_rate=sample_rate)


class Chip8Window(pyglet.window.Window):
    def __init__(self, machine, cpu_hz=config.cpu_hz, timer_hz=config.timer_HZ, scale=config.scale):
        self.scale = scale
        window_width, window_height = config.width * scale, config.height * scale
        super().__init__(window_width, window_height, caption="CHIP-8 Emulator", resizable=False, vsync=False)

        self.machine = machine
        self.driver = Driver(machine, cpu_hz, timer_hz, on_sound=self._on_sound)
        self.keymap = resolve_keymap(config.keymap)
        self.key_inputs = [False] * 16
        self.error = None

        # ---- Framebuffer ----
        # 64x32 RGBA, upscaled on the CPU with numpy.repeat
        self._small_framebuf = np.zeros((config.height, config.width, 4), dtype=np.uint8)
        self._small_framebuf[..., 3] = 255
        self.image = pyglet.image.ImageData(
            window_width, window_height, "RGBA",
            np.zeros((window_height, window_width, 4), dtype=np.uint8).tobytes(),
        )
        self.should_draw = True

        # ---- Sound ----
        self.beep_player = None

        # ---- Performance Counters ----
        self._fps_counter = 0
        self._last_cycles = 0
        self.fps_label = pyglet.text.Label(
            "FPS: 0", font_size=12, x=5, y=window_height - 15,
            anchor_x="left", anchor_y="center", color=WHITE,
        )
        self.cps_label = pyglet.text.Label(
            "Cycles/s: 0", font_size=12, x=5, y=window_height - 30,
            anchor_x="left", anchor_y="center", color=WHITE,
        )

        # Timer cadence drives the update; the driver works out how many
        # instructions are due from dt.
        pyglet.clock.schedule_interval(self._update, 1.0 / timer_hz)
        pyglet.clock.schedule_interval(self._update_bench, 1.0)

    # ---- Main update ----
    def _update(self, dt):
        if self.error is not None:
            return
        try:
            self.driver.advance(dt, keys=self.key_inputs)
        except Chip8Error as e:
            log.error("Emulation error: %s", e)
            self.error = e
            self.close()
            return
        if self.machine.display_changed():
            self.should_draw = True

    def _update_bench(self, dt):
        self.fps_label.text = f"FPS: {self._fps_counter / dt:.1f}"
        self.cps_label.text = f"Cycles/s: {self.driver.cycles - self._last_cycles}"
        self._fps_counter = 0
        self._last_cycles = self.driver.cycles

    # ---- Sound ----
    def _on_sound(self, on):
        if on:
            if self.beep_player is None:
                duration = max(self.machine.sound_timer / self.driver.timer_clock.hz, config.beep_duration)
                self.beep_player = pyglet.media.Player()
                self.beep_player.queue(generate_beep(duration, config.beep_frequency))
                self.beep_player.play()
        elif self.beep_player is not None:
            self.beep_player.pause()
            self.beep_player.delete()
            self.beep_player = None

    # ---- Input ----
    def on_key_press(self, symbol, modifiers):
        #@Override
        if symbol == pyglet.window.key.ESCAPE:
            self.close()
        elif symbol == pyglet.window.key.F1:
            toggle_debug_logging()
        elif symbol == pyglet.window.key.F2:
            print(inspector.report(self.machine.snapshot(), self.machine.memory_dump()))
        elif symbol in self.keymap:
            self.key_inputs[self.keymap[symbol]] = True

    def on_key_release(self, symbol, modifiers):
        #@Override
        if symbol in self.keymap:
            self.key_inputs[self.keymap[symbol]] = False

    # ---- Drawing ----
    def on_draw(self):
        self.clear()
        if self.should_draw:
            # pyglet's origin is bottom-left, the display's is top-left
            cells = self.machine.display_snapshot()[::-1]
            self._small_framebuf[..., :3] = cells[..., None] * 255
            scaled = np.repeat(np.repeat(self._small_framebuf, self.scale, axis=0), self.scale, axis=1)
            self.image.set_data("RGBA", self.width * 4, scaled.tobytes())
            self.should_draw = False
        self.image.blit(0, 0)

        self.fps_label.draw()
        self.cps_label.draw()
        self._fps_counter += 1

    def close(self):
        pyglet.clock.unschedule(self._update)
        pyglet.clock.unschedule(self._update_bench)
        self._on_sound(False)
        super().close()


def toggle_debug_logging():
    logger = logging.getLogger("chip8vm")
    debug = logger.getEffectiveLevel() > logging.DEBUG
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    logger.warning("logsOn: %s", debug)


def run(machine, **kwargs):
    window = Chip8Window(machine, **kwargs)
    pyglet.app.run()
    return window.error
