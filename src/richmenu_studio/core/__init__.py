"""Core value types shared across the editor: geometry and region actions."""

from .actions import Action, ActionFormatError
from .geometry import Bounds, CanvasSize, Point, Viewport

__all__ = ["Action", "ActionFormatError", "Bounds", "CanvasSize", "Point", "Viewport"]
