"""Ports used by the prompt client.

`CompletionProvider` is the seam to the upstream chat API and `UserInterface`
the seam to whatever presents results; both are abstract base classes.
"""
