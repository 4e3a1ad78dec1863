"""Runners that drive the detector over images, videos and cameras."""
