"""
Test suite for PrepFlow.

Run tests:
    pytest
"""
