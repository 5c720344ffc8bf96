"""Typed models: component tree, encodings, output records and wire contracts."""
