
import json
import math
from typing import Dict, Optional

import serial
from telemhub.core.sensor_base import AbstractSensorAdapter


def parse_line(line: str) -> Optional[Dict[str, float]]:
    """Parse ``key=value,key=value`` or a JSON object into a numeric map.

    Returns None for lines that carry no numeric values.
    """
    line = line.strip()
    if not line:
        return None
    if line.startswith('{'):
        try:
            raw = json.loads(line)
        except ValueError:
            return None
        if not isinstance(raw, dict):
            return None
        items = raw.items()
    else:
        items = (part.split('=', 1) for part in line.split(',') if '=' in part)
    values = {}
    for key, value in items:
        if isinstance(value, bool):
            continue
        try:
            number = float(value)
        except (TypeError, ValueError):
            continue
        if math.isfinite(number):
            values[str(key).strip()] = number
    return values or None


class SerialLineAdapter(AbstractSensorAdapter):
    """Reads ASCII lines from a USB serial port, one reading per line.
    """
    def __init__(self, channel_id: str, port: str = '/dev/ttyUSB0', baudrate: int = 115200, kind: str = 'serial'):
        super().__init__(channel_id, kind)
        self.port = port
        self.baudrate = baudrate
        self.skipped = 0

    def run(self):
        ser = serial.Serial(self.port, self.baudrate, timeout=1)
        try:
            while not self._stop.is_set():
                line = ser.readline().decode(errors='ignore').strip()
                if not line:
                    continue
                values = parse_line(line)
                if values is None:
                    self.skipped += 1
                    self.logger.debug("skipping line %r", line)
                    continue
                self.emit(values)
        finally:
            ser.close()
