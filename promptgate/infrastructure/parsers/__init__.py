"""Schema and Output Parsing Implementations.

Contains the conversion of pydantic output models into strict JSON schemas
and the validation of model responses against them.
"""
