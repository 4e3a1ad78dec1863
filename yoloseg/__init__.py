"""yoloseg - YOLOv8 instance segmentation with canvas overlays."""

__version__ = "0.1.0"
