"""
Core vector-space abstraction, configuration, shapes and payload contracts.

This module is independent of any I/O: every operation is a pure computation
or a direct in-place mutation.
"""
