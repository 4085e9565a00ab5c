class Timers:
    """Delay and sound countdown timers.

    The host calls tick() at a fixed 60 Hz, independent of how often the
    CPU is stepped. Both counters stop at zero.
    """

    def __init__(self):
        self.delay = 0
        self.sound = 0

    def reset(self):
        self.delay = 0
        self.sound = 0

    def tick(self):
        if self.delay > 0:
            self.delay -= 1
        if self.sound > 0:
            self.sound -= 1

    @property
    def sound_active(self):
        # the audio side beeps while this holds
        return self.sound > 0
