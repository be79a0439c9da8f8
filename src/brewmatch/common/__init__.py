"""Shared helpers used across brewmatch layers."""
