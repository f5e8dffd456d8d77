"""Heater control unit diagnostics over a Bluetooth serial link."""
