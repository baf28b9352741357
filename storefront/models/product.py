"""
Storefront API: Product SQLAlchemy Model
==========================================

What:  ORM model describing the `products` table.
How:   Inherits from the shared DeclarativeBase; the service builds its
       listing query from this table definition.
Who:   Used by ProductService to select rows and by the test suite to
       create a throwaway schema.

The table is owned by the store's own migrations. This definition only has
to agree with it on column names and types.
"""

from typing import Optional

from sqlalchemy import Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from storefront.database import Base


class ProductRecord(Base):
    """
    One row of the product catalogue.

    Query Patterns:
        - List all products: SELECT ... ORDER BY id ASC
          → primary key index gives the order for free
    """

    __tablename__ = "products"

    # Assigned by the store, immutable afterwards
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Units on hand; fractional for goods sold by weight
    stock: Mapped[float] = mapped_column(Float, nullable=False)

    # Price in the smallest currency unit; NULL while unpriced
    price: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<ProductRecord(id={self.id}, name='{self.name}')>"


# Core table handle used for connection-level queries
products_table = ProductRecord.__table__
