"""Application layer: DTOs and the pricing service"""
