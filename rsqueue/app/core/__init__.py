"""Shared identifiers for the client process."""

SERVICE_NAME = "rsqueue-client"
