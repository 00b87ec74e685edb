from .validation import ValidationHandler

__all__ = ["ValidationHandler"]
