"""Graphics for dodgeball: numpy buffer primitives and the field renderer."""

from dodgeball.graphics.renderer import FieldRenderer

__all__ = ["FieldRenderer"]
