"""Click-Extra command line interface for STACKSTRAP."""
