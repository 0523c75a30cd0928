"""Dual-source content resolution and learning-path composition engine."""

__version__ = "1.0.0"
