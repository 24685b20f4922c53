"""Core types: descriptors, configuration, index and exceptions."""
