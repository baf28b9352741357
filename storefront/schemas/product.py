"""
Storefront API: Product Schema and Record Mapper
==================================================

What:  The Product shape sent to clients, and the conversion from a store row.
How:   Pydantic validates each row's columns against the Product fields;
       any failure becomes MappingFailed.
Who:   ProductService maps every selected row through Product.from_row();
       the products handler serializes the resulting models to JSON.

Mapping rules:
    - id, name, stock are required and must not be NULL
    - price is nullable (unpriced products serialize as "price": null)
    - values are never coerced: "7" is not an id, 10.5 is not a price
    - stock must be finite (NaN and infinity are not valid JSON)
    - columns the schema does not name are ignored
"""

from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from storefront.exceptions import MappingFailed


class Product(BaseModel):
    """
    What:  Wire representation of one product row.
    Who:   Returned (as a JSON array) by GET /products.
    """
    id: int = Field(description="Store-assigned product identifier")
    name: str = Field(description="Product display name")
    stock: float = Field(description="Units currently in stock", allow_inf_nan=False)
    price: Optional[int] = Field(
        default=None,
        description="Price in the smallest currency unit (null if unpriced)",
    )

    model_config = {"frozen": True, "strict": True}

    @classmethod
    def from_row(cls, row: Any) -> "Product":
        """
        Convert a store row into a Product.

        Accepts an SQLAlchemy Row (read through its `_mapping`) or any mapping
        of column name to value. Pure: no I/O, no shared state.

        Raises:
            MappingFailed: A required field is absent, NULL or mistyped.
        """
        mapping = getattr(row, "_mapping", row)
        if not isinstance(mapping, Mapping):
            raise MappingFailed(
                message="Store row is not a column mapping",
                context={"row_type": type(row).__name__},
            )

        try:
            return cls.model_validate(dict(mapping))
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
            raise MappingFailed(
                message="Store row does not match the product shape",
                fields=fields,
                context={"row_id": mapping.get("id")},
            ) from e
