"""Core infrastructure: configuration, logging, database, errors and state machine."""
