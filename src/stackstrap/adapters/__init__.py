"""Adapters (outbound) for STACKSTRAP.

Concrete implementations of the interfaces in `stackstrap.interfaces`:
subprocess command execution, platform trust stores and log redaction.
"""
