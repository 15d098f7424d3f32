import asyncio
from datetime import datetime, timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from brandintel.models import Brand, BrandProduct
from brandintel.models.base import init_db
from brandintel.services.brand_intel.models import BrandContext
from brandintel.services.brand_intel.orchestrator import brand_payload
from brandintel.services.persistence import EntityStoreError, SqlEntityStore


def test_sql_store_upserts_brand_and_inserts_entities(tmp_path):
    async def run():
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'brands.db'}")
        sessions = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        await init_db(engine)
        store = SqlEntityStore(sessions)
        try:
            context = BrandContext(name="Acme", domain="acme.test", business_type="saas")
            assert await store.persist_entity("brand", brand_payload("brand-1", context)) == "brand-1"

            product_id = await store.persist_entity(
                "product",
                {
                    "brand_id": "brand-1",
                    "name": "Acme Insights",
                    "type": "saas",
                    "source_url": "https://acme.test/products",
                    "images": ["https://cdn.acme.test/insights.png"],
                    "validation_score": 0.9,
                    "ignored_field": "dropped",
                },
            )
            assert product_id

            renamed = BrandContext(name="Acme Analytics", domain="acme.test", business_type="saas")
            await store.persist_entity("brand", brand_payload("brand-1", renamed))

            with pytest.raises(EntityStoreError):
                await store.persist_entity("product", {"brand_id": "missing", "name": "X", "source_url": "u"})
            with pytest.raises(EntityStoreError):
                await store.persist_entity("widget", {"brand_id": "brand-1"})
            with pytest.raises(EntityStoreError):
                await store.persist_entity("feature", {"name": "Funnels"})

            async with sessions() as session:
                brands = (await session.execute(select(Brand))).scalars().all()
                products = (await session.execute(select(BrandProduct))).scalars().all()
            return brands, products
        finally:
            await engine.dispose()

    brands, products = asyncio.run(run())

    assert [(brand.id, brand.name) for brand in brands] == [("brand-1", "Acme Analytics")]
    assert brands[0].last_scanned_at is not None
    assert [(product.brand_id, product.name) for product in products] == [("brand-1", "Acme Insights")]
    assert products[0].images == ["https://cdn.acme.test/insights.png"]


def test_brand_data_status_and_rescan_recommendation(tmp_path):
    async def run():
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'status.db'}")
        sessions = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        await init_db(engine)
        store = SqlEntityStore(sessions)
        try:
            unknown = await store.brand_data_status("missing")
            empty_verdict = await store.should_rescan("missing")

            context = BrandContext(name="Acme", domain="acme.test", business_type="saas")
            await store.persist_entity("brand", brand_payload("brand-1", context))
            no_products = await store.should_rescan("brand-1")

            for name in ("Acme Insights", "Acme Pulse"):
                await store.persist_entity(
                    "product", {"brand_id": "brand-1", "name": name, "source_url": "https://acme.test/products"}
                )
            await store.persist_entity("pricing", {"brand_id": "brand-1", "model": "subscription"})
            status = await store.brand_data_status("brand-1")

            scanned_at = status["last_scanned_at"]
            fresh = await store.should_rescan("brand-1", now=scanned_at + timedelta(days=1))
            stale = await store.should_rescan("brand-1", now=scanned_at + timedelta(days=8))
            short_window = await store.should_rescan(
                "brand-1", max_age=timedelta(hours=1), now=scanned_at + timedelta(hours=2)
            )
            return unknown, empty_verdict, no_products, status, fresh, stale, short_window
        finally:
            await engine.dispose()

    unknown, empty_verdict, no_products, status, fresh, stale, short_window = asyncio.run(run())

    assert unknown == {
        "has_products": False,
        "product_count": 0,
        "has_pricing": False,
        "last_scanned_at": None,
    }
    assert empty_verdict == (True, "No products found")
    assert no_products == (True, "No products found")

    assert status["has_products"] is True
    assert status["product_count"] == 2
    assert status["has_pricing"] is True
    assert isinstance(status["last_scanned_at"], datetime)

    assert fresh == (False, "Data is current")
    assert stale == (True, "Data is stale")
    assert short_window == (True, "Data is stale")
