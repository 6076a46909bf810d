"""CLI helpers for STACKSTRAP.

Utilities used by the command-line interface: OSC-8 terminal hyperlinks when
supported, message emitters that write to stderr with emoji→ASCII fallbacks,
``NAME=LEVEL`` option parsing, and the single place where domain errors
become exit codes.
"""

from .errors import handles_errors
from .hyperlinks import hyperlink
from .messages import error, note, success, warn

__all__ = ["error", "handles_errors", "hyperlink", "note", "success", "warn"]
