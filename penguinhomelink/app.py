"""Command-line entry point and the main publishing loop."""

from __future__ import annotations

import itertools
import sys
import time
from typing import Callable, Optional, Sequence

from .config import Config, ConfigError, load_config
from .device import Device, Sensor, SensorError
from .formatter import (
    SOFTWARE_NAME,
    config_topic,
    format_mqtt_config,
    format_mqtt_values,
    state_topic,
)
from .mqtt import MQTTProxy

RETRY_PAUSE = 30.0
CONFIG_REFRESH_PERIOD = 15 * 60.0


def build_device(config: Config) -> Device:
    """Create the device described by ``config`` with all of its sensors."""
    settings = config.device
    device = Device(
        settings.name, settings.manufacturer, settings.model, settings.serial_number
    )
    for entry in config.sensors:
        device.add_sensor(
            Sensor(
                name=entry.name,
                command=entry.command,
                device_class=entry.device_class,
                state_class=entry.state_class,
                unit_of_measurement=entry.unit_of_measurement,
                icon=entry.icon,
                device=device,
            )
        )
    return device


def _log_sensor_values(device: Device) -> None:
    print("> Getting sensor values...")
    for sensor in device.sensors:
        try:
            value = sensor.read_value()
        except SensorError as exc:
            print("Error getting sensor value:", exc)
            continue
        print("Sensor : ", sensor.name, " - value:", value)
    print("> Sensor values retrieved successfully.")


def run(
    device: Device,
    proxy: MQTTProxy,
    refresh_period: float,
    *,
    iterations: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """Publish discovery and state messages for ``device`` repeatedly.

    Runs forever unless ``iterations`` is given. Any failure inside a cycle
    is reported and followed by a pause of RETRY_PAUSE seconds.
    """
    discovery_payload = format_mqtt_config(device)
    last_config_sent: Optional[float] = None
    cycles = itertools.count() if iterations is None else range(iterations)

    for _ in cycles:
        try:
            proxy.connect()
            print("> Connected to the MQTT server.")

            if last_config_sent is None or clock() - last_config_sent > CONFIG_REFRESH_PERIOD:
                print("> Sending configuration to the MQTT server...")
                proxy.publish(config_topic(device), discovery_payload)
                print("> Configuration sent to the MQTT server.")
                last_config_sent = clock()

            _log_sensor_values(device)

            print("> Sending sensor values to the MQTT server...")
            values_payload = format_mqtt_values(device)
            proxy.publish(state_topic(device), values_payload)
            print("> Sensor values sent to the MQTT server.")

            sleep(refresh_period)
        except Exception as exc:
            print(">>> Recovered in run:", exc)
            print(f">>> Waiting for {RETRY_PAUSE:g} seconds before retrying...")
            sleep(RETRY_PAUSE)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Load the configuration file named on the command line and run forever."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        raise SystemExit(f"Usage: {SOFTWARE_NAME} <config-file-path>")
    config_file_path = args[0]

    print(f"Starting {SOFTWARE_NAME}...")
    print(">> Configuring...")
    print(">> Loading configuration...")
    try:
        config = load_config(config_file_path)
    except ConfigError as exc:
        raise SystemExit(str(exc)) from exc
    print(">> Configuration loaded successfully.")

    print(">> Creating device and sensors...")
    device = build_device(config)
    print(">> Device and sensors created successfully.")

    print(">> Creating MQTT server proxy...")
    server = config.mqtt_server
    proxy = MQTTProxy(server.ip, server.port, server.username, server.password)
    print(">> MQTT server proxy created successfully.")
    print(">> Software configured successfully.")

    print(">> Running...")
    try:
        run(device, proxy, config.software.refresh_period_s)
    except KeyboardInterrupt:
        return 130
    finally:
        proxy.disconnect()
    return 0


if __name__ == "__main__":
    sys.exit(main())