from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from content_api.database import Base
from content_api.lifecycle import (
    EditorialStatus,
    SectionStatus,
    ServiceStatus,
    TestimonialStatus,
)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )


# ---------------------------------------------------------------------------
# Article (blog post)
# ---------------------------------------------------------------------------
class Article(TimestampMixin, Base):
    __tablename__ = "articles"

    __table_args__ = (
        # Public feed: published posts, newest first
        Index("ix_articles_status_created_at", "status", "created_at"),
        Index("ix_articles_views", "views"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    subtitle: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    description: Mapped[str] = mapped_column(String(750), nullable=False)
    slug: Mapped[str] = mapped_column(String(250), unique=True, nullable=False, index=True)
    content_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    content_digest: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    creator_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    author_name: Mapped[str] = mapped_column(String(150), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    tags: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    table_of_contents: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)
    read_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    cta_section: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    read_more: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    faqs: Mapped[List[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=EditorialStatus.DRAFT.value, nullable=False
    )
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Service sections and service pages
# ---------------------------------------------------------------------------
class ServiceSection(TimestampMixin, Base):
    __tablename__ = "service_sections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    slug: Mapped[str] = mapped_column(String(150), unique=True, nullable=False, index=True)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20), default=SectionStatus.DRAFT.value, nullable=False
    )

    # lazy="noload": listings never need the pages, services load them explicitly
    services: Mapped[List["ServicePage"]] = relationship(
        "ServicePage", back_populates="section", lazy="noload"
    )


class ServicePage(TimestampMixin, Base):
    __tablename__ = "service_pages"

    __table_args__ = (
        Index("ix_service_pages_section_order", "section_id", "order"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    section_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("service_sections.id"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    subtitle: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    description: Mapped[str] = mapped_column(String(1000), nullable=False)
    slug: Mapped[str] = mapped_column(String(250), unique=True, nullable=False, index=True)
    content_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    content_digest: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=ServiceStatus.DRAFT.value, nullable=False
    )
    features: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    experts: Mapped[List[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    process: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    promises: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    cta: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    faqs: Mapped[List[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    section: Mapped["ServiceSection"] = relationship(
        "ServiceSection", back_populates="services", lazy="noload"
    )


# ---------------------------------------------------------------------------
# Sample (writing sample)
# ---------------------------------------------------------------------------
class Sample(TimestampMixin, Base):
    __tablename__ = "samples"

    __table_args__ = (
        Index("ix_samples_status_rating", "status", "rating_score"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    subtitle: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    description: Mapped[str] = mapped_column(String(1000), nullable=False)
    slug: Mapped[str] = mapped_column(String(250), unique=True, nullable=False, index=True)
    content_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    content_digest: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    subject: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    topic: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    academic_level: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    word_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    reference_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    rating_score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    rating_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    faqs: Mapped[List[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=EditorialStatus.DRAFT.value, nullable=False
    )
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Testimonial
# ---------------------------------------------------------------------------
class Testimonial(TimestampMixin, Base):
    __tablename__ = "testimonials"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    stars: Mapped[int] = mapped_column(Integer, nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    for_homepage: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=TestimonialStatus.DRAFT.value, nullable=False
    )
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Image asset
# ---------------------------------------------------------------------------
class ImageAsset(TimestampMixin, Base):
    __tablename__ = "image_assets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    alt_text: Mapped[str] = mapped_column(String(300), nullable=False)
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    # Provider id kept alongside the URL so deletes need no URL parsing.
    public_id: Mapped[str] = mapped_column(String(512), nullable=False)
