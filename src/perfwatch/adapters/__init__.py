"""Adapters connecting a monitor to its environment."""
