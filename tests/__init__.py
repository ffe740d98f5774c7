"""
Test suite for arrayspace

Contains:
- tests/unit/          : Unit tests for individual modules
"""
