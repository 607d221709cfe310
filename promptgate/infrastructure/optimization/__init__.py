"""Token Estimation Implementations.

Contains the service for estimating request sizes ahead of rate-limit
admission.
Bounded Context: Token Management
"""
