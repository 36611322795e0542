"""UI package holding the desktop application's widgets and controllers.

Widgets live in :mod:`richmenu_studio.ui.presentation` and are imported
explicitly so the domain layer can be used without a display.
"""

from .events import EventBus

__all__ = ["EventBus"]
