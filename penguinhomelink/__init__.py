"""Publish shell-command sensor readings to Home Assistant over MQTT, with device auto-discovery."""

__version__ = "1.0.0"