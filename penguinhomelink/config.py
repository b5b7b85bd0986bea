"""Loading of the YAML configuration file."""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from os import PathLike
from typing import Any, Union

import yaml

_MISSING = object()


class ConfigError(Exception):
    """Raised when the configuration cannot be read or decoded."""


@dataclass
class SoftwareSettings:
    """Settings of the program itself."""

    refresh_period_s: int = 0


@dataclass
class DeviceSettings:
    """Identity of the device published to the broker."""

    name: str = ""
    manufacturer: str = ""
    model: str = ""
    serial_number: str = ""


@dataclass
class MQTTServerSettings:
    """Address and credentials of the MQTT broker."""

    ip: str = ""
    port: str = ""
    username: str = ""
    password: str = ""


@dataclass
class SensorSettings:
    """One sensor: its name, the shell command that measures it and its metadata."""

    name: str = ""
    command: str = ""
    device_class: str = ""
    state_class: str = ""
    unit_of_measurement: str = ""
    icon: str = ""


def _as_int(value: Any, where: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ConfigError(f"{where}: expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ConfigError(f"{where}: expected an integer, got {value!r}")


def _as_str(value: Any, where: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, datetime.date)):
        return str(value)
    raise ConfigError(f"{where}: expected a scalar value, got {type(value).__name__}")


def _section(data: Any, where: str) -> Mapping:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigError(f"{where}: expected a mapping, got {type(data).__name__}")
    return data


def _strings(settings_cls: type, data: Any, where: str):
    section = _section(data, where)
    values = {
        item.name: _as_str(section.get(item.name), f"{where}.{item.name}")
        for item in fields(settings_cls)
    }
    return settings_cls(**values)


@dataclass
class Config:
    """The whole application configuration."""

    software: SoftwareSettings = field(default_factory=SoftwareSettings)
    device: DeviceSettings = field(default_factory=DeviceSettings)
    mqtt_server: MQTTServerSettings = field(default_factory=MQTTServerSettings)
    sensors: list[SensorSettings] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Any) -> Config:
        """Build a configuration from decoded YAML data; absent keys keep their defaults."""
        root = _section(data, "config")

        software_data = _section(root.get("software"), "software")
        software = SoftwareSettings(
            refresh_period_s=_as_int(
                software_data.get("refresh_period_s"), "software.refresh_period_s"
            )
        )

        raw_sensors = root.get("sensors")
        if raw_sensors is None:
            raw_sensors = []
        if not isinstance(raw_sensors, list):
            raise ConfigError(
                f"sensors: expected a sequence, got {type(raw_sensors).__name__}"
            )

        return cls(
            software=software,
            device=_strings(DeviceSettings, root.get("device"), "device"),
            mqtt_server=_strings(
                MQTTServerSettings, root.get("mqtt_server"), "mqtt_server"
            ),
            sensors=[
                _strings(SensorSettings, entry, f"sensors[{position}]")
                for position, entry in enumerate(raw_sensors)
            ],
        )


def load_config(file_path: Union[str, PathLike]) -> Config:
    """Read the first YAML document of ``file_path`` into a :class:`Config`."""
    try:
        with open(file_path, encoding="utf-8") as stream:
            try:
                document = next(yaml.safe_load_all(stream), _MISSING)
            except (yaml.YAMLError, UnicodeDecodeError) as exc:
                raise ConfigError(f"failed to decode config file: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"failed to open config file: {exc}") from exc

    if document is _MISSING:
        raise ConfigError("failed to decode config file: no YAML document found")
    try:
        return Config.from_mapping(document)
    except ConfigError as exc:
        raise ConfigError(f"failed to decode config file: {exc}") from exc