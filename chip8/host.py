# pyglet front end for the interpreter core.
# Window + keyboard -> Keypad, Display.snapshot() -> screen, sound timer -> beep.
# The core never imports this module.

import logging
import sys

import numpy as np
import pyglet
from pyglet.media import synthesis
from pyglet.window import key

from .constants import CPU_HZ, HEIGHT, SCALE, TIMER_HZ, WIDTH
from .cpu import Chip8
from .errors import Chip8Error
from .instructions import disassemble
from .quirks import PRESETS, get_preset

log = logging.getLogger(__name__)

window_width, window_height = WIDTH * SCALE, HEIGHT * SCALE

# Key mapping - 1234/QWER/ASDF/ZXCV onto the hex keypad
#   1 2 3 C
#   4 5 6 D
#   7 8 9 E
#   A 0 B F
KEYMAP = {
    key._1: 0x1, key._2: 0x2, key._3: 0x3, key._4: 0xC,
    key.Q: 0x4, key.W: 0x5, key.E: 0x6, key.R: 0xD,
    key.A: 0x7, key.S: 0x8, key.D: 0x9, key.F: 0xE,
    key.Z: 0xA, key.X: 0x0, key.C: 0xB, key.V: 0xF,
}


def load_rom(machine, path):
    log.info("Loading ROM: %s", path)
    with open(path, "rb") as f:
        data = f.read()
    return machine.load(data)


def make_beep_player(frequency=440, sample_rate=44100):
    # 1 s of a whole-number frequency loops without a click
    wave = synthesis.Sine(duration=1.0, frequency=frequency, sample_rate=sample_rate)
    player = pyglet.media.Player()
    player.queue(wave)
    player.loop = True
    return player


class Chip8Window(pyglet.window.Window):

    def __init__(self, machine):
        super().__init__(window_width, window_height, caption="CHIP-8 Emulator", resizable=False)
        self.machine = machine
        self.has_exit = False

        # Pre-allocated small framebuffer (64x32 RGBA), upscaled with numpy.repeat
        self._small_framebuf = np.zeros((HEIGHT, WIDTH, 4), dtype=np.uint8)
        self._small_framebuf[..., 3] = 255
        self.image = pyglet.image.ImageData(
            window_width,
            window_height,
            'RGBA',
            np.repeat(np.repeat(self._small_framebuf, SCALE, axis=0), SCALE, axis=1).tobytes()
        )

        self.cps_label = pyglet.text.Label(
            "Cycles/s: 0",
            font_size=12,
            x=5,
            y=window_height - 15,
            anchor_x='left',
            anchor_y='center',
            color=(255, 255, 255, 255)
        )
        self._last_cycle_count = 0

        # One looping sine tone, paused/resumed from the sound timer
        self.beep_player = make_beep_player()

        # Schedule CPU and timer ticks
        pyglet.clock.schedule_interval(self._cpu_tick, 1.0 / CPU_HZ)
        pyglet.clock.schedule_interval(self._timer_tick, 1.0 / TIMER_HZ)
        pyglet.clock.schedule_interval(self._update_cps, 1.0)

    def _stop(self):
        self.has_exit = True
        pyglet.clock.unschedule(self._cpu_tick)
        pyglet.clock.unschedule(self._timer_tick)
        pyglet.clock.unschedule(self._update_cps)
        self.beep_player.pause()
        self.beep_player.delete()
        self.close()

    # ---- CPU cycle ----
    def _cpu_tick(self, dt):
        if self.has_exit:
            return
        machine = self.machine
        pc = machine.registers.pc
        try:
            machine.step()
        except Chip8Error as e:
            try:
                where = disassemble(machine.memory.read_word(pc))
            except Chip8Error:
                where = "??"
            log.error("Emulation error at 0x%03X (%s): %s", pc, where, e)
            self._stop()

    # ---- timers ----
    def _timer_tick(self, dt):
        self.machine.tick()
        # tone sounds exactly while the sound timer is nonzero
        if self.machine.timers.sound_active:
            if not self.beep_player.playing:
                self.beep_player.play()
        elif self.beep_player.playing:
            self.beep_player.pause()

    def _update_cps(self, dt):
        count = self.machine.cycle_count
        # cycle_count restarts on reset()
        done = count - self._last_cycle_count if count >= self._last_cycle_count else count
        self.cps_label.text = f"Cycles/s: {done}"
        self._last_cycle_count = count

    # ---- Input ----
    def on_key_press(self, symbol, modifiers):
        if symbol == key.ESCAPE:
            self._stop()
        elif symbol == key.F1:
            toggle_trace()
        elif symbol in KEYMAP:
            self.machine.keypad.set_key(KEYMAP[symbol], True)

    def on_key_release(self, symbol, modifiers):
        if symbol in KEYMAP:
            self.machine.keypad.set_key(KEYMAP[symbol], False)

    # ---- Drawing ----
    def on_draw(self):
        self.clear()
        display = self.machine.display
        if display.dirty:
            # pyglet's origin is bottom-left, the CHIP-8 screen's is top-left
            grid = display.snapshot()[::-1] * 255
            self._small_framebuf[..., 0] = grid
            self._small_framebuf[..., 1] = grid
            self._small_framebuf[..., 2] = grid
            scaled = np.repeat(np.repeat(self._small_framebuf, SCALE, axis=0), SCALE, axis=1)
            self.image.set_data('RGBA', window_width * 4, scaled.tobytes())
            display.dirty = False
        self.image.blit(0, 0)
        self.cps_label.draw()


def toggle_trace():
    # F1: flip instruction tracing on/off
    core = logging.getLogger("chip8")
    core.setLevel(logging.WARNING if core.getEffectiveLevel() <= logging.DEBUG else logging.DEBUG)
    log.warning("Instruction trace %s", "on" if core.getEffectiveLevel() <= logging.DEBUG else "off")


# ---- Entry point ----
def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    if not 1 <= len(argv) <= 2:
        print("Usage: chip8 <rom-file> [%s]" % "|".join(sorted(PRESETS)))
        sys.exit(1)
    try:
        quirks = get_preset(argv[1]) if len(argv) > 1 else None
    except ValueError as e:
        print(e)
        print("Usage: chip8 <rom-file> [%s]" % "|".join(sorted(PRESETS)))
        sys.exit(1)

    machine = Chip8(quirks)
    try:
        load_rom(machine, argv[0])
    except (OSError, Chip8Error) as e:
        print("Could not load ROM:", e)
        sys.exit(1)
    Chip8Window(machine)
    pyglet.app.run()


if __name__ == "__main__":
    main()
