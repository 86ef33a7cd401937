# pos_sync/modules/menu/models/menu_models.py

from sqlalchemy import (Column, Integer, String, ForeignKey, Float, Text,
                        Boolean, Table)
from sqlalchemy.orm import relationship
from pos_sync.core.database import Base
from pos_sync.core.mixins import TimestampMixin, ShopScopedMixin, CatalogSyncMixin


product_categories = Table(
    "product_categories",
    Base.metadata,
    Column("product_id", Integer, ForeignKey("products.id"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id"), primary_key=True),
)

modifier_group_subproducts = Table(
    "modifier_group_subproducts",
    Base.metadata,
    Column("modifier_group_id", Integer, ForeignKey("modifier_groups.id"),
           primary_key=True),
    Column("subproduct_id", Integer, ForeignKey("subproducts.id"),
           primary_key=True),
)


class Category(Base, TimestampMixin, ShopScopedMixin, CatalogSyncMixin):
    """Menu categories mirrored as CloudPOS categories"""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    display_order = Column(Integer, nullable=False, default=0)

    products = relationship(
        "Product", secondary=product_categories, back_populates="categories"
    )

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}', remote_ref={self.remote_ref})>"


class Product(Base, TimestampMixin, ShopScopedMixin, CatalogSyncMixin):
    """Sellable products; pushed only once one of their categories is linked"""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False, default=0.0)
    tax_rate = Column(Float, nullable=False, default=21.0)
    stock_quantity = Column(Integer, nullable=True)

    categories = relationship(
        "Category",
        secondary=product_categories,
        back_populates="products",
        order_by="Category.id",
    )
    modifier_group_assignments = relationship(
        "ProductModifierGroup",
        back_populates="product",
        order_by="ProductModifierGroup.slot",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', price={self.price})>"


class Subproduct(Base, TimestampMixin, ShopScopedMixin, CatalogSyncMixin):
    """Modifier items selectable inside a modifier group ("popup")"""
    __tablename__ = "subproducts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    price = Column(Float, nullable=False, default=0.0)
    tax_rate = Column(Float, nullable=False, default=21.0)
    stock_quantity = Column(Integer, nullable=True)

    modifier_groups = relationship(
        "ModifierGroup",
        secondary=modifier_group_subproducts,
        back_populates="subproducts",
    )

    def __repr__(self):
        return f"<Subproduct(id={self.id}, name='{self.name}', price={self.price})>"


class ModifierGroup(Base, TimestampMixin, ShopScopedMixin):
    """Modifier group definition; projected onto a product's numbered slots"""
    __tablename__ = "modifier_groups"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)

    # Selection rules
    multiselect = Column(Boolean, nullable=False, default=False)
    min_options = Column(Integer, nullable=False, default=0)
    max_options = Column(Integer, nullable=False, default=0)  # 0 = unlimited
    required_on_web = Column(Boolean, nullable=False, default=False)
    required_on_register = Column(Boolean, nullable=False, default=False)
    default_checked_subproduct_id = Column(
        Integer, ForeignKey("subproducts.id"), nullable=True
    )

    subproducts = relationship(
        "Subproduct",
        secondary=modifier_group_subproducts,
        back_populates="modifier_groups",
        order_by="Subproduct.id",
    )
    default_checked_subproduct = relationship(
        "Subproduct", foreign_keys=[default_checked_subproduct_id]
    )

    def __repr__(self):
        return f"<ModifierGroup(id={self.id}, title='{self.title}')>"


class ProductModifierGroup(Base, TimestampMixin):
    """Assignment of a modifier group to a product at a numbered slot"""
    __tablename__ = "product_modifier_groups"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    modifier_group_id = Column(
        Integer, ForeignKey("modifier_groups.id"), nullable=True
    )
    slot = Column(Integer, nullable=False, default=1)

    product = relationship("Product", back_populates="modifier_group_assignments")
    modifier_group = relationship("ModifierGroup")

    def __repr__(self):
        return (
            f"<ProductModifierGroup(product_id={self.product_id}, "
            f"group_id={self.modifier_group_id}, slot={self.slot})>"
        )
