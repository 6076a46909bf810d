"""Ports (abstract interfaces) implemented by `stackstrap.adapters`."""
