"""Shared helpers for the Corrently connector."""
