"""Request Assembly Implementations.

Contains builders that turn a `PromptInput` into the message list and the
parameter dict sent to the completion provider.
"""
