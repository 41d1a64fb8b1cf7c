"""Shared utilities: id generation."""

from app.shared.utils.generators import ID_LENGTH, generate_cuid

__all__ = [
    "ID_LENGTH",
    "generate_cuid",
]
