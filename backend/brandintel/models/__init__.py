from brandintel.models.base import Base
from brandintel.models.brand import Brand, BrandProduct, BrandPricing, BrandFeature, BrandAsset

__all__ = [
    "Base",
    "Brand", "BrandProduct", "BrandPricing", "BrandFeature", "BrandAsset",
]
