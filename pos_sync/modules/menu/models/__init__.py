# pos_sync/modules/menu/models/__init__.py

from .menu_models import (
    Category,
    Product,
    Subproduct,
    ModifierGroup,
    ProductModifierGroup,
)

__all__ = [
    "Category",
    "Product",
    "Subproduct",
    "ModifierGroup",
    "ProductModifierGroup",
]
