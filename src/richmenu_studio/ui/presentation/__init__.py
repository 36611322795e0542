"""Presentation layer: Qt widgets that render store state and forward user input."""
