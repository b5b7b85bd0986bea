[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "penguinhomelink"
version = "1.0.0"
description = "Publish shell-command sensor readings to Home Assistant over MQTT with device auto-discovery"
requires-python = ">=3.10"
keywords = ["home-assistant", "mqtt", "sensors", "auto-discovery", "monitoring"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Environment :: No Input/Output (Daemon)",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Home Automation",
    "Topic :: System :: Monitoring",
]
dependencies = [
    "paho-mqtt>=2.0",
    "pyyaml>=6.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "pytest-mock>=3.10",
]

[project.scripts]
penguinhomelink = "penguinhomelink.app:main"

[tool.hatch.build.targets.wheel]
packages = ["penguinhomelink"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
