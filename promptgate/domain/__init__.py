"""Domain Layer: models, events, interfaces and exceptions.

Has no dependency on the infrastructure layer.
"""
