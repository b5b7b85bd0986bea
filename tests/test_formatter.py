import json

import pytest

from penguinhomelink.device import Device, Sensor, SensorError
from penguinhomelink.formatter import (
    SOFTWARE_NAME,
    SOFTWARE_URL,
    SOFTWARE_VERSION,
    config_topic,
    format_mqtt_config,
    format_mqtt_values,
    state_topic,
    to_snake,
)


def make_device(*sensors):
    device = Device("Test Box", "Example Corp", "Model X", "SN-0000-TEST")
    for name, command, icon in sensors:
        device.add_sensor(
            Sensor(
                name,
                command,
                device_class="temperature",
                state_class="measurement",
                unit_of_measurement="°C",
                icon=icon,
                device=device,
            )
        )
    return device


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("CPU Temperature", "cpu_temperature"),
        ("JSONData", "json_data"),
        ("Disk1Usage", "disk_1_usage"),
    ],
)
def test_to_snake_examples(name, expected):
    assert to_snake(name) == expected


@pytest.mark.parametrize("name", ["load", "cpu_temp", "disk_usage"])
def test_to_snake_keeps_snake_case(name):
    assert to_snake(name) == name


def test_to_snake_is_idempotent():
    once = to_snake("Memory Usage Percent")
    assert to_snake(once) == once


def test_topics():
    device = make_device()
    assert config_topic(device) == "homeassistant/device/PenguinHomeLink/SN-0000-TEST/config"
    assert state_topic(device) == "PenguinHomeLink/SN-0000-TEST/state"


def test_config_payload_describes_device():
    device = make_device(("CPU Temperature", "echo 1", "mdi:thermometer"))
    payload = json.loads(format_mqtt_config(device))
    assert payload["device"] == {
        "identifiers": ["SN-0000-TEST"],
        "name": "Test Box",
        "manufacturer": "Example Corp",
        "model": "Model X",
        "serial_number": "SN-0000-TEST",
    }
    assert payload["o"] == {"name": SOFTWARE_NAME, "sw": SOFTWARE_VERSION, "url": SOFTWARE_URL}
    assert payload["state_topic"] == "SN-0000-TEST"
    assert payload["qos"] == 1


def test_config_payload_components():
    device = make_device(("CPU Temperature", "echo 1", "mdi:thermometer"))
    payload = json.loads(format_mqtt_config(device))
    component = payload["cmps"][to_snake("CPU Temperature")]
    assert component == {
        "name": "CPU Temperature",
        "platform": "sensor",
        "device_class": "temperature",
        "unit_of_measurement": "°C",
        "value_template": "{{ value_json." + to_snake("CPU Temperature") + " }}",
        "unique_id": "CPU Temperature_Test Box",
        "state_topic": state_topic(device),
        "icon": "mdi:thermometer",
    }


def test_empty_icon_is_omitted():
    device = make_device(("load", "echo 1", ""))
    payload = json.loads(format_mqtt_config(device))
    assert "icon" not in payload["cmps"]["load"]


def test_config_payload_top_level_order_and_compactness():
    text = format_mqtt_config(make_device())
    assert text.startswith('{"device":{"identifiers":["SN-0000-TEST"]')
    assert text.endswith('"state_topic":"SN-0000-TEST","qos":1}')
    assert json.loads(text)["cmps"] == {}


def test_components_are_sorted_by_key():
    device = make_device(("zeta", "echo 1", ""), ("alpha", "echo 1", ""))
    text = format_mqtt_config(device)
    assert list(json.loads(text)["cmps"]) == ["alpha", "zeta"]


def test_html_characters_are_escaped():
    device = make_device(("a<b & c>d", "echo 1", ""))
    text = format_mqtt_config(device)
    assert "<" not in text and ">" not in text and "&" not in text
    assert "\\u003c" in text
    component = next(iter(json.loads(text)["cmps"].values()))
    assert component["name"] == "a<b & c>d"


def test_values_payload_holds_each_sensor():
    device = make_device(("CPU Temperature", "echo 42.5", ""), ("load", "echo 7", ""))
    values = json.loads(format_mqtt_values(device))
    assert values == {to_snake("CPU Temperature"): 42.5, "load": 7}


def test_integral_values_are_written_without_fraction():
    device = make_device(("load", "echo 7", ""))
    assert format_mqtt_values(device) == '{"load":7}'


def test_halves_round_away_from_zero():
    device = make_device(("ratio", "echo 0.125", ""))
    assert json.loads(format_mqtt_values(device))["ratio"] == 0.13


def test_rounded_values_have_at_most_two_decimals():
    device = make_device(("ratio", "echo 1.23456", ""), ("other", "echo -9.87654", ""))
    for value in json.loads(format_mqtt_values(device)).values():
        assert round(value * 100) == pytest.approx(value * 100)


def test_values_keys_are_sorted():
    device = make_device(("zeta", "echo 1", ""), ("alpha", "echo 2", ""))
    text = format_mqtt_values(device)
    assert text.index('"alpha"') < text.index('"zeta"')


def test_no_sensors_gives_empty_object():
    assert format_mqtt_values(make_device()) == "{}"


@pytest.mark.parametrize("command", ["echo warm", "echo nan", "echo inf", "echo 1_000", "echo"])
def test_non_numeric_output_raises(command):
    with pytest.raises(ValueError):
        format_mqtt_values(make_device(("bad", command, "")))


def test_failing_sensor_raises():
    with pytest.raises(SensorError):
        format_mqtt_values(make_device(("broken", "exit 1", "")))