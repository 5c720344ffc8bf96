"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Media types, type vocabularies, primitive widths
- exceptions: Exception taxonomy
- payload: Body normalisation and byte decoders
"""
