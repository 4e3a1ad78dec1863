"""Class colour palette."""

from ..core.utils import hex_to_rgba


class Colors:
    """Ultralytics 20-colour palette, cycled by class id."""

    PALETTE = [
        "#FF3838", "#FF9D97", "#FF701F", "#FFB21D", "#CFD231",
        "#48F90A", "#92CC17", "#3DDB86", "#1A9334", "#00D4BB",
        "#2C99A8", "#00C2FF", "#344593", "#6473FF", "#0018EC",
        "#8438FF", "#520085", "#CB38FF", "#FF95C8", "#FF37C7",
    ]

    def __init__(self):
        self.n = len(self.PALETTE)

    def get(self, class_id: int) -> str:
        """Hex colour for a class id."""
        return self.PALETTE[int(class_id) % self.n]

    def rgba(self, class_id: int, alpha: int = 255) -> tuple:
        """RGBA colour for a class id."""
        return hex_to_rgba(self.get(class_id), alpha)
