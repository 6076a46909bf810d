"""Entrypoints (inbound adapters) for STACKSTRAP.

Expose the application to the outside world: the ``stackstrap`` CLI used on
developer machines and as the container entrypoint. Parse and validate
inputs, call service-layer functions, and present results.

Dependency rule: may import `stackstrap.service_layer` and
`stackstrap.bootstrap`; avoid importing `stackstrap.adapters` directly.
"""
