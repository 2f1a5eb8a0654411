"""Tests for the fee policy engine"""
