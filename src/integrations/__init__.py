"""Adapters for the external services the relay talks to."""
