"""Persisted brand intelligence: brands and their validated entities."""
from sqlalchemy import Column, Integer, String, DateTime, JSON, Text, ForeignKey, Float, Boolean
from sqlalchemy.orm import relationship
from datetime import datetime

from brandintel.models.base import Base


class Brand(Base):
    __tablename__ = "brands"

    id = Column(String(100), primary_key=True)
    domain = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    business_type = Column(String(50), default="unknown")
    pricing_model = Column(String(50), default="unknown")
    known_products = Column(JSON, default=list)
    competitors = Column(JSON, default=list)
    company_info = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    last_scanned_at = Column(DateTime, nullable=True)

    products = relationship("BrandProduct", back_populates="brand", cascade="all, delete-orphan")
    pricing = relationship("BrandPricing", back_populates="brand", cascade="all, delete-orphan")
    features = relationship("BrandFeature", back_populates="brand", cascade="all, delete-orphan")
    assets = relationship("BrandAsset", back_populates="brand", cascade="all, delete-orphan")


class BrandProduct(Base):
    __tablename__ = "brand_products"

    id = Column(Integer, primary_key=True, index=True)
    brand_id = Column(String(100), ForeignKey("brands.id"), nullable=False, index=True)
    name = Column(String(500), nullable=False)
    type = Column(String(50), default="saas")  # physical, saas, service
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=True)
    currency = Column(String(10), nullable=True)
    images = Column(JSON, default=list)
    category = Column(String(255), nullable=True)
    variants = Column(JSON, nullable=True)
    source_url = Column(String(1000), nullable=False)
    validation_score = Column(Float, default=0.0)
    needs_review = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    brand = relationship("Brand", back_populates="products")


class BrandPricing(Base):
    __tablename__ = "brand_pricing"

    id = Column(Integer, primary_key=True, index=True)
    brand_id = Column(String(100), ForeignKey("brands.id"), nullable=False, index=True)
    model = Column(String(50), default="unknown")
    tiers = Column(JSON, default=list)
    has_free_tier = Column(Boolean, default=False)
    has_enterprise = Column(Boolean, default=False)
    billing_options = Column(JSON, default=list)
    validation_score = Column(Float, default=0.0)
    validation_concerns = Column(JSON, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)

    brand = relationship("Brand", back_populates="pricing")


class BrandFeature(Base):
    __tablename__ = "brand_features"

    id = Column(Integer, primary_key=True, index=True)
    brand_id = Column(String(100), ForeignKey("brands.id"), nullable=False, index=True)
    name = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(255), nullable=True)
    status = Column(String(50), default="ga")  # ga, beta, coming_soon
    included_in = Column(JSON, nullable=True)
    validation_score = Column(Float, default=0.0)
    created_at = Column(DateTime, default=datetime.utcnow)

    brand = relationship("Brand", back_populates="features")


class BrandAsset(Base):
    __tablename__ = "brand_assets"

    id = Column(Integer, primary_key=True, index=True)
    brand_id = Column(String(100), ForeignKey("brands.id"), nullable=False, index=True)
    url = Column(String(2000), nullable=False)
    type = Column(String(50), default="image")  # image, video, logo, screenshot, lifestyle
    alt = Column(Text, nullable=True)
    context = Column(Text, nullable=True)
    product_association = Column(String(500), nullable=True)
    validation_score = Column(Float, default=0.0)
    created_at = Column(DateTime, default=datetime.utcnow)

    brand = relationship("Brand", back_populates="assets")
