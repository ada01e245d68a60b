"""Text normalization and similarity scoring for raw item/category names."""

from pos_analytics.normalize.similarity import similarity
from pos_analytics.normalize.text import (
    category_display_name,
    item_display_name,
    normalize,
)

__all__ = [
    "category_display_name",
    "item_display_name",
    "normalize",
    "similarity",
]
