"""
Unit Tests Package for the Fee Policy Engine

Domain value objects, strategies and aggregates tested in isolation.
"""
