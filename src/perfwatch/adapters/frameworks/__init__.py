"""Web framework adapters exposing a monitor over HTTP."""
