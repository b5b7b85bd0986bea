"""MQTT payloads and topics for Home Assistant device discovery."""

from __future__ import annotations

import json
import math
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from .device import Device

SOFTWARE_NAME = "PenguinHomeLink"
SOFTWARE_VERSION = "1.0.0"
SOFTWARE_URL = "https://example.com/penguinhomelink"

_SEPARATORS = frozenset(b" _-.")
_DECIMAL_NUMBER = re.compile(
    r"[+-]?(?:inf|infinity|nan|(?:\d+\.?\d*|\.\d+)(?:e[+-]?\d+)?)", re.IGNORECASE
)
_HEX_NUMBER = re.compile(
    r"[+-]?0x(?:[0-9a-f]+\.?[0-9a-f]*|\.[0-9a-f]+)p[+-]?\d+", re.IGNORECASE
)
_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _kind(byte: int) -> str | None:
    if 65 <= byte <= 90:
        return "upper"
    if 97 <= byte <= 122:
        return "lower"
    if 48 <= byte <= 57:
        return "digit"
    return None


def to_snake(name: str) -> str:
    """Convert ``name`` to snake_case, treating acronyms and digit runs as words."""
    raw = name.strip().encode("utf-8")
    out = bytearray()
    for position, byte in enumerate(raw):
        kind = _kind(byte)
        char = byte + 32 if kind == "upper" else byte
        following = _kind(raw[position + 1]) if position + 1 < len(raw) else None
        previous = _kind(raw[position - 1]) if position > 0 else None

        if kind and following and kind != following:
            if kind == "upper" and following == "lower" and previous == "upper":
                out.append(ord("_"))
            out.append(char)
            if kind in ("lower", "digit") or following == "digit":
                out.append(ord("_"))
            continue

        out.append(ord("_") if byte in _SEPARATORS else char)
    return out.decode("utf-8")


def _json(value: Any) -> str:
    text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    for char, escape in _HTML_ESCAPES.items():
        text = text.replace(char, escape)
    return text


def _json_number(value: float) -> str:
    if not math.isfinite(value):
        raise ValueError(f"unsupported value: {value!r}")
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"
    if 1e-6 <= abs(value) < 1e21:
        return format(Decimal(repr(value)).normalize(), "f")
    text = repr(value)
    return re.sub(r"e-0(\d)$", r"e-\1", text)


def _parse_number(text: str) -> float:
    if _DECIMAL_NUMBER.fullmatch(text):
        return float(text)
    if _HEX_NUMBER.fullmatch(text):
        return float.fromhex(text)
    raise ValueError(f"invalid number: {text!r}")


def _round_hundredths(value: float) -> float:
    scaled = Decimal(value * 100).to_integral_value(rounding=ROUND_HALF_UP)
    return float(scaled) / 100


def config_topic(device: Device) -> str:
    """Home Assistant discovery topic for ``device``."""
    return f"homeassistant/device/{SOFTWARE_NAME}/{device.info.serial_number}/config"


def state_topic(device: Device) -> str:
    """Topic on which ``device`` publishes its sensor values."""
    return f"{SOFTWARE_NAME}/{device.info.serial_number}/state"


def format_mqtt_config(device: Device) -> str:
    """JSON discovery payload describing ``device`` and its sensors."""
    info = device.info
    components: dict[str, dict[str, str]] = {}
    for sensor in device.sensors:
        key = to_snake(sensor.name)
        component = {
            "name": sensor.name,
            "platform": "sensor",
            "device_class": sensor.device_class,
            "unit_of_measurement": sensor.unit_of_measurement,
            "value_template": "{{ value_json." + key + " }}",
            "unique_id": f"{sensor.name}_{info.name}",
            "state_topic": state_topic(device),
        }
        if sensor.icon:
            component["icon"] = sensor.icon
        components[key] = component

    payload = {
        "device": {
            "identifiers": [info.serial_number],
            "name": info.name,
            "manufacturer": info.manufacturer,
            "model": info.model,
            "serial_number": info.serial_number,
        },
        "o": {"name": SOFTWARE_NAME, "sw": SOFTWARE_VERSION, "url": SOFTWARE_URL},
        "cmps": dict(sorted(components.items())),
        "state_topic": info.serial_number,
        "qos": 1,
    }
    return _json(payload)


def format_mqtt_values(device: Device) -> str:
    """JSON object of every sensor's current value, rounded to two decimals.

    Raises SensorError when a command fails and ValueError when its output
    is not a finite number.
    """
    values: dict[str, float] = {}
    for sensor in device.sensors:
        number = _parse_number(sensor.read_value())
        values[to_snake(sensor.name)] = _round_hundredths(number)

    members = (
        f"{_json(key)}:{_json_number(value)}" for key, value in sorted(values.items())
    )
    return "{" + ",".join(members) + "}"