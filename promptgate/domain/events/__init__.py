"""Domain Event definitions.

Represents significant occurrences during a prompt request (throttling,
deferral, retries, success, failure) that observers can react to.
"""
