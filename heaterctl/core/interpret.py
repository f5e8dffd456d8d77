"""Locale-independent meanings for heater status and error codes."""

from __future__ import annotations

from enum import Enum


class HeaterStatus(Enum):
    OFF = "0"
    STARTING = "1"
    RUNNING = "2"
    COOLING = "3"
    FAULT = "4"


class HeaterFault(Enum):
    NO_ERROR = "0"
    OVERHEAT = "1"
    LOW_VOLTAGE = "2"
    HIGH_VOLTAGE = "3"
    FLAME_FAILURE = "4"
    FAN_FAILURE = "5"
    TEMP_SENSOR_FAILURE = "6"
    FUEL_PUMP_FAILURE = "7"
    RESTARTING = "8"


_STATUS_LABELS = {
    HeaterStatus.OFF: "Off",
    HeaterStatus.STARTING: "Starting",
    HeaterStatus.RUNNING: "Running",
    HeaterStatus.COOLING: "Cooling",
    HeaterStatus.FAULT: "Fault",
}

_FAULT_LABELS = {
    HeaterFault.NO_ERROR: "NoError",
    HeaterFault.OVERHEAT: "Overheat",
    HeaterFault.LOW_VOLTAGE: "LowVoltage",
    HeaterFault.HIGH_VOLTAGE: "HighVoltage",
    HeaterFault.FLAME_FAILURE: "FlameFailure",
    HeaterFault.FAN_FAILURE: "FanFailure",
    HeaterFault.TEMP_SENSOR_FAILURE: "TempSensorFailure",
    HeaterFault.FUEL_PUMP_FAILURE: "FuelPumpFailure",
    HeaterFault.RESTARTING: "Restarting",
}


def interpret_status(code: str) -> str:
    """Map a raw status code to its label, ``Unknown(code)`` otherwise."""
    try:
        return _STATUS_LABELS[HeaterStatus(code)]
    except ValueError:
        return f"Unknown({code})"


def interpret_error(code: str) -> str:
    """Map a raw error code to its label, ``UnknownError(code)`` otherwise."""
    try:
        return _FAULT_LABELS[HeaterFault(code)]
    except ValueError:
        return f"UnknownError({code})"
