"""Core utilities: I/O, tensor shapes, buffer scopes and image helpers."""
