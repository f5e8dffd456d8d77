"""Domain-specific errors for heaterctl."""


class HeaterctlError(Exception):
    """Base error for heaterctl."""


class ProfileValidationError(HeaterctlError):
    """Raised when a profile file does not conform to schema or semantics."""


class ProfileLoadError(HeaterctlError):
    """Raised when loading profile sources fails or a profile is unknown."""


class DeviceDiscoveryError(HeaterctlError):
    """Raised when Bluetooth device discovery command(s) fail."""


class DeviceSelectionError(HeaterctlError):
    """Raised when a device hint cannot be resolved to a single endpoint."""


class TransportError(HeaterctlError):
    """Base transport error."""


class TransportUnavailableError(TransportError):
    """Raised when the runtime cannot open Bluetooth streams at all."""


class ConnectFailedError(TransportError):
    """Raised by transports when a stream to an endpoint cannot be opened."""


class ConnectionStateError(HeaterctlError):
    """Raised when an operation is not valid in the current connection state."""


class NotConnectedError(ConnectionStateError):
    """Raised on send when no connection is established."""


class ConnectionBusyError(ConnectionStateError):
    """Raised on connect while another connection is active or in progress."""
