"""Domain services: chunked drawing storage and game sessions.

This package contains the store logic imported by HTTP routes and socket
handlers, keeping transport concerns separated from persistence rules.
"""
