"""Mock scheduling backend.

Every endpoint returns fixed data regardless of the request; it exists so
the bot has something to talk to during development and demos.
"""
