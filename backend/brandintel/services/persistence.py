from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, Mapping, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from brandintel.models.base import get_session_maker
from brandintel.models.brand import Brand, BrandAsset, BrandFeature, BrandPricing, BrandProduct


class EntityStoreError(RuntimeError):
    pass


DEFAULT_RESCAN_AGE = timedelta(days=7)

_ENTITY_MODELS = {
    "product": BrandProduct,
    "pricing": BrandPricing,
    "feature": BrandFeature,
    "asset": BrandAsset,
}


def _columns_for(model, payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = set(model.__table__.columns.keys()) - {"id", "created_at"}
    return {key: value for key, value in payload.items() if key in allowed}


class SqlEntityStore:
    """Writes validated brand entities through SQLAlchemy.

    ``persist_entity("brand", ...)`` upserts the brand row keyed by ``id``;
    every other kind inserts a new row and needs a ``brand_id`` that exists.
    """

    def __init__(self, session_maker: Optional[async_sessionmaker] = None) -> None:
        self._session_maker = session_maker

    def _sessions(self) -> async_sessionmaker:
        if self._session_maker is None:
            self._session_maker = get_session_maker()
        return self._session_maker

    async def persist_entity(self, kind: str, payload: Mapping[str, Any]) -> str:
        kind = str(kind or "").strip().lower()
        if kind == "brand":
            return await self._upsert_brand(payload)
        model = _ENTITY_MODELS.get(kind)
        if model is None:
            raise EntityStoreError(f"Unknown entity kind: {kind}")
        brand_id = str(payload.get("brand_id") or "")
        if not brand_id:
            raise EntityStoreError(f"{kind} payload is missing brand_id")

        async with self._sessions()() as session:
            brand = await session.get(Brand, brand_id)
            if brand is None:
                raise EntityStoreError(f"Brand not found: {brand_id}")
            row = model(**_columns_for(model, payload))
            session.add(row)
            await session.commit()
            return str(row.id)

    async def _upsert_brand(self, payload: Mapping[str, Any]) -> str:
        brand_id = str(payload.get("id") or "")
        if not brand_id:
            raise EntityStoreError("brand payload is missing id")
        values = _columns_for(Brand, payload)
        values["last_scanned_at"] = datetime.utcnow()

        async with self._sessions()() as session:
            brand = await session.get(Brand, brand_id)
            if brand is None:
                session.add(Brand(id=brand_id, **values))
            else:
                for key, value in values.items():
                    setattr(brand, key, value)
            await session.commit()
        return brand_id

    async def brand_data_status(self, brand_id: str) -> Dict[str, Any]:
        """Stored-data summary for a brand; an unknown brand reports no data."""
        async with self._sessions()() as session:
            brand = await session.get(Brand, brand_id)
            product_count = await session.scalar(
                select(func.count(BrandProduct.id)).where(BrandProduct.brand_id == brand_id)
            )
            pricing_count = await session.scalar(
                select(func.count(BrandPricing.id)).where(BrandPricing.brand_id == brand_id)
            )
        product_count = int(product_count or 0)
        return {
            "has_products": product_count > 0,
            "product_count": product_count,
            "has_pricing": bool(pricing_count),
            "last_scanned_at": brand.last_scanned_at if brand is not None else None,
        }

    async def should_rescan(
        self,
        brand_id: str,
        max_age: timedelta = DEFAULT_RESCAN_AGE,
        now: Optional[datetime] = None,
    ) -> Tuple[bool, str]:
        status = await self.brand_data_status(brand_id)
        if not status["has_products"]:
            return True, "No products found"
        last_scanned_at = status["last_scanned_at"]
        # products without a recorded scan time are treated as stale
        if last_scanned_at is None or (now or datetime.utcnow()) - last_scanned_at > max_age:
            return True, "Data is stale"
        return False, "Data is current"
