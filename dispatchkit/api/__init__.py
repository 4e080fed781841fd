"""Startup wiring and the ASGI transport boundary."""
