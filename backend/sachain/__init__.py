"""Sachain KYC backend: resilience core shared by the Lambda handlers."""

__version__ = "0.1.0"
