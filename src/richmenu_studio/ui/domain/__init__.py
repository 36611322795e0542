"""Domain layer for the UI.

Domain managers own state and communicate through the event bus; they have
no dependency on Qt.

Domain Managers:
    - MenuStore: menu document and region selection
"""

from __future__ import annotations

from .menu_store import MenuStore

__all__ = ["MenuStore"]
