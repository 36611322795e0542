"""Editor package containing the menu document model and canvas gestures."""

from . import document_model, interaction, overlays

__all__ = ["document_model", "interaction", "overlays"]
