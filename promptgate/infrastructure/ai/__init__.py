"""AI Provider Implementations.

Contains adapters for upstream completion APIs, each implementing the
`CompletionProvider` interface from the domain layer, plus the static
model registry they are described by.
"""
