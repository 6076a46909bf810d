"""Bootstrap (composition root) for STACKSTRAP.

Assembles the application at runtime: picks the concrete adapters (command
runner, redactor, OS trust store) and hands them to entrypoints as a single
`AppContainer`.

Import rules:
- Entry points import *this* package for wiring (not adapters directly).
- This package may import: `stackstrap.adapters`, `stackstrap.service_layer`,
  `stackstrap.interfaces`, `stackstrap.domain`, and `stackstrap.config`.
- Inner layers must not import `stackstrap.bootstrap`.
"""

from .bootstrap import AppContainer, bootstrap

__all__ = ["AppContainer", "bootstrap"]
