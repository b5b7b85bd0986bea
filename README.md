# penguinhomelink

Turn a Linux machine into a Home Assistant device. Each sensor is a shell
command run with `bash -c`; its trimmed output is read as a number and
published over MQTT, together with a Home Assistant auto-discovery message
describing the device and all of its sensors.

## Installation

```
pip install penguinhomelink
```

`bash` must be available on the machine, since every sensor command is run
through it.

## Configuration

The program reads the first document of a single YAML file:

```yaml
software:
  refresh_period_s: 60

device:
  name: My Server
  manufacturer: Example Corp
  model: Homelab Box
  serial_number: SN-EXAMPLE-0001

mqtt_server:
  ip: 192.168.1.10
  port: "1883"
  username: homeassistant
  password: password

sensors:
  - name: CPU Temperature
    command: "cat /sys/class/thermal/thermal_zone0/temp | awk '{print $1/1000}'"
    device_class: temperature
    state_class: measurement
    unit_of_measurement: "°C"
    icon: mdi:thermometer
  - name: Load Average
    command: "cut -d' ' -f1 /proc/loadavg"
    device_class: ""
    state_class: measurement
    unit_of_measurement: ""
```

Absent keys take empty defaults (`""`, `0`, or no sensors). Scalar values
such as a numeric port are read as text. A file that cannot be opened or
decoded raises `penguinhomelink.config.ConfigError`.

## Running

```
penguinhomelink /etc/penguinhomelink/config.yaml
```

Without a path the command exits with a usage message. Once configured it
loops until interrupted:

1. Connects to the MQTT broker, unless a connection is already up. If the
   connection has been lost, a fresh client is created on the next cycle.
2. On the first cycle, and afterwards whenever more than 15 minutes have
   passed since the last one, publishes the discovery payload to
   `homeassistant/device/PenguinHomeLink/<serial_number>/config`.
3. Runs every sensor command, printing each value (or the error for a
   failing command).
4. Publishes a compact JSON object, keyed by the snake_case sensor names and
   sorted by key, on `PenguinHomeLink/<serial_number>/state`, for example
   `{"cpu_temperature":47.25,"load_average":0.42}`. Values are rounded half
   up to two decimal places.
5. Sleeps for `refresh_period_s` seconds.

If any step fails — including a sensor command that fails or prints
something that is not a finite number — the error is printed and the loop
waits 30 seconds before the next cycle. Ctrl-C disconnects and exits with
status 130.

## Using it as a library

```python
from penguinhomelink.config import load_config
from penguinhomelink.app import build_device
from penguinhomelink.formatter import (
    config_topic,
    format_mqtt_config,
    format_mqtt_values,
    state_topic,
    to_snake,
)

config = load_config("config.yaml")
device = build_device(config)

print(config_topic(device), format_mqtt_config(device))
print(state_topic(device), format_mqtt_values(device))
print(to_snake("CPU Temperature"))  # cpu_temperature
```

- `penguinhomelink.device.Device` holds a frozen `DeviceInfo` (`info`) and a
  list of `Sensor` objects (`sensors`); `add_sensor` appends one.
  `Sensor.read_value()` runs the command and returns its trimmed output, or
  raises `SensorError` if the command cannot be run or exits non-zero.
- `penguinhomelink.mqtt.MQTTProxy(ip, port, username, password)` wraps the
  broker connection with `connect`, `disconnect`, `publish`, `subscribe` and
  `unsubscribe`, and can be used as a context manager. Failures raise
  `MQTTError`; publishing, subscribing or unsubscribing while not connected
  raises `NotConnectedError`. The optional `client_factory` and
  `connect_timeout` (default 30 seconds) keyword arguments control how the
  client is created and how long `connect` waits for the broker.
- `penguinhomelink.app.run(device, proxy, refresh_period)` is the loop
  described above; `iterations`, `sleep` and `clock` keyword arguments bound
  it and replace its timing functions.

## What it does not do

- It connects over plain TCP only; there is no TLS option.
- A sensor's `state_class` is read from the configuration but is not part
  of the discovery payload.
- It runs in the foreground; it ships no service unit or system package.