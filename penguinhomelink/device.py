"""Devices and the shell-command sensors attached to them."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from typing import Optional


class SensorError(Exception):
    """Raised when a sensor's command cannot be run or fails."""


@dataclass(frozen=True)
class DeviceInfo:
    """Identity of a device."""

    name: str
    manufacturer: str
    model: str
    serial_number: str


class Device:
    """A device with its identity and an ordered collection of sensors."""

    def __init__(self, name: str, manufacturer: str, model: str, serial_number: str):
        self.info = DeviceInfo(name, manufacturer, model, serial_number)
        self.sensors: list[Sensor] = []

    def add_sensor(self, sensor: Sensor) -> None:
        """Append ``sensor`` to the device's sensors."""
        self.sensors.append(sensor)

    def __repr__(self) -> str:
        return f"Device(info={self.info!r}, sensors={len(self.sensors)})"


@dataclass(eq=False)
class Sensor:
    """A sensor whose value is the trimmed standard output of a bash command."""

    name: str
    command: str
    device_class: str = ""
    state_class: str = ""
    unit_of_measurement: str = ""
    icon: str = ""
    device: Optional[Device] = field(default=None, repr=False)
    value: str = field(default="", init=False)

    def read_value(self) -> str:
        """Run the command and return its trimmed output; raise SensorError on failure."""
        try:
            completed = subprocess.run(
                ["bash", "-c", self.command],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=False,
            )
        except OSError as exc:
            self.value = ""
            raise SensorError(f"cannot run command for sensor {self.name!r}: {exc}") from exc

        if completed.returncode != 0:
            self.value = ""
            details = completed.stderr.decode("utf-8", errors="replace").strip()
            message = (
                f"command for sensor {self.name!r} exited with status {completed.returncode}"
            )
            raise SensorError(f"{message}: {details}" if details else message)

        self.value = completed.stdout.decode("utf-8", errors="replace").strip()
        return self.value