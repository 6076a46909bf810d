"""Domain layer for STACKSTRAP.

Pure values and rules: error taxonomy, result types, certificate requests,
and the typed broker configuration. No I/O happens here.
"""
