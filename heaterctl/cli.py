"""Typer CLI entrypoint."""

from __future__ import annotations

import logging
import threading

import typer

from heaterctl.core.errors import HeaterctlError
from heaterctl.core.framing import FrameDecoder
from heaterctl.core.model import (
    ConnectionState,
    ErrorCode,
    LinkError,
    Status,
    TelemetryEvent,
    Temperature,
    Voltage,
)
from heaterctl.core.profile_loader import DEFAULT_PROFILE_ID
from heaterctl.core.service import HeaterService
from heaterctl.core.telemetry import parse

app = typer.Typer(help="Heater control unit diagnostics over a Bluetooth serial link")


def describe(event: TelemetryEvent) -> str:
    if isinstance(event, Temperature):
        return f"Temperature: {event.value} °C"
    if isinstance(event, Voltage):
        return f"Voltage: {event.value} V"
    if isinstance(event, Status):
        return f"Status: {event.label} ({event.code})"
    if isinstance(event, ErrorCode):
        return f"Error: {event.label} ({event.code})"
    return f"Received: {event.raw}"


class _EchoSink:
    """Prints connection events and tracks when the link goes away."""

    def __init__(self) -> None:
        self.closed = threading.Event()

    def on_telemetry(self, event: TelemetryEvent) -> None:
        typer.echo(describe(event))

    def on_state_change(self, old: ConnectionState, new: ConnectionState) -> None:
        if new is ConnectionState.IDLE:
            self.closed.set()

    def on_error(self, error: LinkError) -> None:
        typer.echo(f"Error: {error.message}", err=True)


def _build_service(profile: str) -> HeaterService:
    service = HeaterService(profile_id=profile)
    for warning in service.load_warnings:
        typer.echo(f"Warning: {warning}", err=True)
    return service


def _open_link(service: HeaterService, target: str | None, sink: _EchoSink) -> None:
    endpoint = service.resolve_endpoint(target)
    service.subscribe(sink)
    typer.echo(f"Connecting to {endpoint.label} ({endpoint.address})...")
    if not service.connect(endpoint).result():
        service.connection.events.flush()
        raise typer.Exit(code=1)
    typer.echo(f"Connected to {endpoint.label}")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("profiles")
def list_profiles(
    profile: str = typer.Option(DEFAULT_PROFILE_ID, "--profile", help="Profile ID"),
) -> None:
    """List available heater profiles."""
    try:
        service = _build_service(profile)
        for item in service.list_profiles():
            name_tokens = ", ".join(item.match.name_contains) or "-"
            prefixes = ", ".join(item.match.address_prefix) or "-"
            typer.echo(f"{item.id}: {item.name}")
            typer.echo(f"  names: {name_tokens}  address prefixes: {prefixes}")
    except HeaterctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("devices")
def list_devices(
    profile: str = typer.Option(DEFAULT_PROFILE_ID, "--profile", help="Profile ID"),
) -> None:
    """Scan for heaters and list the candidate devices."""
    try:
        with _build_service(profile) as service:
            typer.echo(f"Scanning for {service.profile.scan_duration_s:.0f}s...")
            devices = service.scan()
            if not devices:
                typer.echo("No heater devices found")
                return
            for device in devices:
                typer.echo(f"{device.address} {device.label}")
    except HeaterctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("monitor")
def monitor(
    target: str | None = typer.Argument(None, help="Address or partial name"),
    duration: float | None = typer.Option(None, "--duration", help="Stop after N seconds"),
    poll: list[str] = typer.Option([], "--poll", help="Command to send once connected"),
    profile: str = typer.Option(DEFAULT_PROFILE_ID, "--profile", help="Profile ID"),
) -> None:
    """Connect to a heater and print telemetry until interrupted."""
    sink = _EchoSink()
    try:
        with _build_service(profile) as service:
            _open_link(service, target, sink)
            for command in poll:
                service.send(command).result()
            try:
                sink.closed.wait(duration)
            except KeyboardInterrupt:
                pass
            lost = sink.closed.is_set()
            service.disconnect()
            service.connection.events.flush()
            if lost:
                raise typer.Exit(code=1)
    except HeaterctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("send")
def send(
    target: str = typer.Argument(..., help="Address or partial name"),
    commands: list[str] = typer.Argument(..., help="STATUS, TEMP, VOLT, ERRORS, START, STOP, RESET or raw text"),
    wait: float = typer.Option(2.0, "--wait", help="Seconds to print replies for"),
    profile: str = typer.Option(DEFAULT_PROFILE_ID, "--profile", help="Profile ID"),
) -> None:
    """Send one or more commands and print the replies."""
    sink = _EchoSink()
    try:
        with _build_service(profile) as service:
            _open_link(service, target, sink)
            failed = False
            for command in commands:
                if service.send(command).result():
                    typer.echo(f"Sent command: {command}")
                else:
                    failed = True
            sink.closed.wait(wait)
            service.disconnect()
            service.connection.events.flush()
            if failed:
                raise typer.Exit(code=1)
    except HeaterctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("decode")
def decode(lines: list[str] = typer.Argument(..., help="Raw frames as received from the heater")) -> None:
    """Decode captured heater messages without a connection."""
    decoder = FrameDecoder()
    for line in lines:
        for frame in decoder.feed(line + "\n"):
            typer.echo(describe(parse(frame)))


def run() -> None:
    app()


if __name__ == "__main__":
    run()
