"""
Product Models - Storefront product payloads consumed by the cart.

The product API speaks camelCase and may send prices as strings; numeric
fields stay loosely typed here and are coerced by the cart engine.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)


class ProductVariant(_ApiModel):
    """One selectable option of an attribute (e.g. Color: Red)."""
    id: str
    name: str = ""
    value: str = ""
    price: Any = None  # Extra cost of this option
    stock: Any = None
    sku: Optional[str] = None
    images: List[str] = Field(default_factory=list)


class ProductAttribute(_ApiModel):
    id: str
    name: str = ""
    type: str = "select"
    variants: List[ProductVariant] = Field(default_factory=list)
    required: bool = False

    def find_variant(self, variant_id: str) -> Optional[ProductVariant]:
        return next((v for v in self.variants if v.id == variant_id), None)


class StoreUser(_ApiModel):
    """Store staff member; the phone number is used for order contact."""
    id: str = ""
    user_id: Optional[str] = Field(default=None, alias="userId")
    is_creator: bool = Field(default=False, alias="isCreator")
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    user_name: Optional[str] = Field(default=None, alias="userName")

    def has_phone(self) -> bool:
        return bool(self.phone_number and str(self.phone_number).strip())


class Product(_ApiModel):
    """Product as returned by the storefront API."""
    id: str
    name: str = ""
    images: List[str] = Field(default_factory=list)
    base_price: Any = Field(default=None, alias="basePrice")
    currency: Optional[str] = None
    sku: Optional[str] = None
    category: Optional[str] = None
    attributes: List[ProductAttribute] = Field(default_factory=list)
    hide_price: Optional[bool] = Field(default=None, alias="hidePrice")

    # Store identity and contact
    store_id: Optional[str] = Field(default=None, alias="storeId")
    store_name: Optional[str] = Field(default=None, alias="storeName")
    store_logo: Optional[str] = Field(default=None, alias="storeLogo")
    store_instagram: Optional[str] = Field(default=None, alias="storeInstagram")
    store_tiktok: Optional[str] = Field(default=None, alias="storeTiktok")
    store_phone_number: Optional[str] = Field(default=None, alias="storePhoneNumber")
    store_users: List[StoreUser] = Field(default_factory=list, alias="storeUsers")

    @classmethod
    def from_api(cls, data: dict) -> "Product":
        """Build from an API payload (camelCase keys)."""
        return cls.model_validate(data)

    def find_variant(self, attribute_id: str, variant_id: str) -> Optional[ProductVariant]:
        """Look up a variant by attribute and variant id."""
        attribute = next((a for a in self.attributes if a.id == attribute_id), None)
        if attribute is None:
            return None
        return attribute.find_variant(variant_id)
