"""
Catalog models: remote product records and local product entities.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, field_validator

PRICE_QUANTUM = Decimal("0.01")

# Upstream spells this key wrong; it must be matched literally.
AVAILABLE_QUANTITY_KEY = "Avaliable Quantity"


def to_price(value: Any) -> Decimal:
    """Normalize a price (string, int, float or Decimal) to a 2-place Decimal."""
    if isinstance(value, Decimal):
        price = value
    elif isinstance(value, float):
        # Go through str() so 12.5 becomes Decimal("12.5"), not its binary expansion
        price = Decimal(str(value))
    else:
        try:
            price = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Invalid price: {value!r}") from e
    if not price.is_finite():
        raise ValueError(f"Invalid price: {value!r}")
    return price.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)


def to_quantity(value: Any) -> int:
    """Parse a stock quantity such as 12, "12" or "12.0"."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid quantity: {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid quantity: {value!r}") from e


class StockStatus(str, Enum):
    """Stock status of a local product."""
    IN_STOCK = "instock"
    OUT_OF_STOCK = "outofstock"

    @classmethod
    def for_quantity(cls, quantity: int) -> "StockStatus":
        return cls.IN_STOCK if quantity > 0 else cls.OUT_OF_STOCK


class RemoteProductRecord(BaseModel):
    """A product as published by the remote catalog."""
    sku: str = Field(..., min_length=1, description="Unique product key")
    name: str = ""
    full_description: str = ""
    short_description: str = ""
    price: Decimal
    available_quantity: Optional[int] = Field(None, description="None means do not touch stock")
    image_url: Optional[str] = None

    @field_validator("sku")
    @classmethod
    def validate_sku(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("SKU must not be blank")
        return v

    @field_validator("price", mode="before")
    @classmethod
    def validate_price(cls, v):
        return to_price(v)

    @field_validator("available_quantity", mode="before")
    @classmethod
    def validate_quantity(cls, v):
        if v is None:
            return None
        return to_quantity(v)

    @field_validator("image_url", mode="before")
    @classmethod
    def validate_image_url(cls, v):
        # Empty strings are treated as "no image"
        if not v:
            return None
        return v

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "RemoteProductRecord":
        """
        Build a record from the upstream JSON shape.

        Args:
            payload: One element of the catalog's JSON array

        Returns:
            Parsed record

        Raises:
            pydantic.ValidationError: If the payload is malformed
        """
        if not isinstance(payload, dict):
            raise ValueError(f"Product payload must be an object, got {type(payload).__name__}")

        price_model = payload.get("ProductPrice") or {}
        custom_properties = payload.get("CustomProperties") or {}
        picture_model = payload.get("DefaultPictureModel") or {}
        sku = payload.get("Sku")

        return cls(
            sku=str(sku) if sku is not None else "",
            name=payload.get("Name") or "",
            full_description=payload.get("FullDescription") or "",
            short_description=payload.get("ShortDescription") or "",
            price=price_model.get("PriceValue"),
            available_quantity=custom_properties.get(AVAILABLE_QUANTITY_KEY),
            image_url=picture_model.get("FullSizeImageUrl"),
        )


class LocalProductEntity(BaseModel):
    """A product as held by the local product store."""
    id: Optional[str] = None
    sku: str
    name: str = ""
    full_description: str = ""
    short_description: str = ""
    regular_price: Optional[Decimal] = None
    manage_stock: bool = False
    stock_quantity: Optional[int] = None
    stock_status: StockStatus = StockStatus.IN_STOCK
    image_ref: Optional[str] = None
    image_source_url: Optional[str] = Field(None, description="URL the current image was ingested from")

    @field_validator("regular_price", mode="before")
    @classmethod
    def validate_regular_price(cls, v):
        if v is None or v == "":
            return None
        return to_price(v)

    def set_stock(self, quantity: int) -> None:
        """Set stock quantity, enabling stock management and deriving status."""
        self.manage_stock = True
        self.stock_quantity = quantity
        self.stock_status = StockStatus.for_quantity(quantity)
