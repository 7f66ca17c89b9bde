
import math
import random
import time
from telemhub.core.sensor_base import AbstractSensorAdapter

SEA_LEVEL_KPA = 101.325


class SimulatedBarometerAdapter(AbstractSensorAdapter):
    """Barometric channel: temperature (C), pressure (kPa) and altitude (m)."""
    def __init__(self, channel_id: str, kind: str = 'barometer', hz: float = 1.0, elevation: float = 23.0):
        super().__init__(channel_id, kind)
        self.hz = hz
        self.elevation = elevation

    def sample(self, t: float) -> dict:
        altitude = self.elevation + random.uniform(-0.5, 0.5)
        # barometric formula, troposphere approximation
        pressure = SEA_LEVEL_KPA * (1 - 2.25577e-5 * altitude) ** 5.25588
        return {
            'temperature': round(20.0 + 3.0 * math.sin(t / 600.0), 2),
            'pressure': round(pressure, 3),
            'altitude': round(altitude, 2),
        }

    def run(self):
        t = 0.0
        period = 1.0 / self.hz
        while not self._stop.is_set():
            self.emit(self.sample(t))
            t += period
            self._stop.wait(period)


class SimulatedColorAdapter(AbstractSensorAdapter):
    """Colorimetric channel: red, green and blue in 0..255."""
    def __init__(self, channel_id: str, kind: str = 'color', hz: float = 1.0):
        super().__init__(channel_id, kind)
        self.hz = hz

    def sample(self, t: float) -> dict:
        return {
            'red': round(127.5 + 127.5 * math.sin(t), 1),
            'green': round(127.5 + 127.5 * math.sin(t + 2 * math.pi / 3), 1),
            'blue': round(127.5 + 127.5 * math.sin(t + 4 * math.pi / 3), 1),
        }

    def run(self):
        start = time.monotonic()
        period = 1.0 / self.hz
        while not self._stop.is_set():
            self.emit(self.sample(time.monotonic() - start))
            self._stop.wait(period)
