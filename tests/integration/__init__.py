"""
Integration Tests Package for the Fee Policy Engine

Factories, DTOs and the pricing service working together.
"""
