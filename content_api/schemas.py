from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Request models only: responses are plain dicts wrapped in the envelope.
# Update models leave every field optional; routers dump them with
# ``exclude_unset=True, exclude_none=True`` so omitted fields stay untouched.


class _Input(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


# --- Shared blocks ---

class FaqItem(_Input):
    question: str = Field(min_length=1, max_length=500)
    answer: str = Field(min_length=1, max_length=5000)
    order: int | None = Field(None, ge=0)


class FaqUpdate(_Input):
    question: str | None = Field(None, min_length=1, max_length=500)
    answer: str | None = Field(None, min_length=1, max_length=5000)
    order: int | None = Field(None, ge=0)


class CtaSection(_Input):
    title: str | None = None
    content: str | None = None


class ReadMore(_Input):
    title: str | None = None
    content: str | None = None
    link: str | None = None


class StatusChange(_Input):
    status: str = Field(min_length=1)


class BulkDelete(_Input):
    ids: list[int] = Field(min_length=1)


# --- Article ---

class ArticleCreate(_Input):
    title: str = Field(min_length=1, max_length=200)
    subtitle: str | None = Field(None, max_length=300)
    description: str = Field(min_length=1, max_length=750)
    # Raw markdown, or the URL of an already-stored body.
    content: str = Field(min_length=1)
    thumbnail_url: str | None = Field(None, max_length=1024)
    author_name: str | None = Field(None, max_length=150)
    category: str | None = Field(None, max_length=100)
    tags: list[str] = []
    table_of_contents: list[str] | None = None
    cta_section: CtaSection | None = None
    read_more: ReadMore | None = None
    faqs: list[FaqItem] = []
    status: str | None = None


class ArticleUpdate(_Input):
    title: str | None = Field(None, min_length=1, max_length=200)
    subtitle: str | None = Field(None, max_length=300)
    description: str | None = Field(None, min_length=1, max_length=750)
    content: str | None = None
    thumbnail_url: str | None = Field(None, max_length=1024)
    author_name: str | None = Field(None, min_length=1, max_length=150)
    category: str | None = Field(None, max_length=100)
    tags: list[str] | None = None
    table_of_contents: list[str] | None = None
    cta_section: CtaSection | None = None
    read_more: ReadMore | None = None
    faqs: list[FaqItem] | None = None
    status: str | None = None


# --- Service sections and pages ---

class SectionCreate(_Input):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    order: int = Field(0, ge=0)
    status: str | None = None


class SectionUpdate(_Input):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    order: int | None = Field(None, ge=0)
    status: str | None = None


class Expert(_Input):
    name: str = Field(min_length=1, max_length=150)
    role: str | None = None
    image_url: str | None = None
    bio: str | None = None


class ServicePageCreate(_Input):
    section_id: int
    title: str = Field(min_length=1, max_length=200)
    subtitle: str | None = Field(None, max_length=300)
    description: str = Field(min_length=1, max_length=1000)
    content: str | None = None
    order: int = Field(0, ge=0)
    features: list[str] = []
    experts: list[Expert] = []
    process: dict[str, Any] | None = None
    promises: dict[str, Any] | None = None
    cta: dict[str, Any] | None = None
    faqs: list[FaqItem] = []
    status: str | None = None


class ServicePageUpdate(_Input):
    section_id: int | None = None
    title: str | None = Field(None, min_length=1, max_length=200)
    subtitle: str | None = Field(None, max_length=300)
    description: str | None = Field(None, min_length=1, max_length=1000)
    content: str | None = None
    order: int | None = Field(None, ge=0)
    features: list[str] | None = None
    experts: list[Expert] | None = None
    process: dict[str, Any] | None = None
    promises: dict[str, Any] | None = None
    cta: dict[str, Any] | None = None
    faqs: list[FaqItem] | None = None
    status: str | None = None


# --- Sample ---

class SampleCreate(_Input):
    title: str = Field(min_length=1, max_length=200)
    subtitle: str | None = Field(None, max_length=300)
    description: str = Field(min_length=1, max_length=1000)
    content: str | None = None
    subject: str = Field(min_length=1, max_length=100)
    topic: str | None = Field(None, max_length=200)
    academic_level: str | None = Field(None, max_length=100)
    word_count: int | None = Field(None, ge=0)
    reference_count: int | None = Field(None, ge=0)
    rating_score: float = Field(0.0, ge=0, le=5)
    rating_count: int = Field(0, ge=0)
    faqs: list[FaqItem] = []
    status: str | None = None


class SampleUpdate(_Input):
    title: str | None = Field(None, min_length=1, max_length=200)
    subtitle: str | None = Field(None, max_length=300)
    description: str | None = Field(None, min_length=1, max_length=1000)
    content: str | None = None
    subject: str | None = Field(None, min_length=1, max_length=100)
    topic: str | None = Field(None, max_length=200)
    academic_level: str | None = Field(None, max_length=100)
    word_count: int | None = Field(None, ge=0)
    reference_count: int | None = Field(None, ge=0)
    rating_score: float | None = Field(None, ge=0, le=5)
    rating_count: int | None = Field(None, ge=0)
    faqs: list[FaqItem] | None = None
    status: str | None = None


# --- Testimonial (multipart form) ---

class TestimonialForm(_Input):
    name: str = Field(min_length=1, max_length=150)
    content: str = Field(min_length=1, max_length=5000)
    stars: int = Field(ge=1, le=5)
    location: str | None = Field(None, max_length=150)
    for_homepage: bool = False
    status: str | None = None


class TestimonialUpdateForm(_Input):
    name: str | None = Field(None, min_length=1, max_length=150)
    content: str | None = Field(None, min_length=1, max_length=5000)
    stars: int | None = Field(None, ge=1, le=5)
    location: str | None = Field(None, max_length=150)
    for_homepage: bool | None = None
    status: str | None = None


# --- Image asset (multipart form) ---

class ImageAssetForm(_Input):
    name: str = Field(min_length=1, max_length=200)
    alt_text: str = Field(min_length=1, max_length=300)


class ImageAssetUpdateForm(_Input):
    name: str | None = Field(None, min_length=1, max_length=200)
    alt_text: str | None = Field(None, min_length=1, max_length=300)


# --- Order intake (multipart form) ---

class OrderSubmission(_Input):
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=254)
    country_code: str = Field(min_length=1, max_length=8)
    phone_number: str = Field(min_length=6, max_length=15)
    subject_code: str = Field(min_length=2, max_length=100)
    description: str = Field(min_length=10, max_length=2000)
    deadline: date
    pages: int = Field(ge=1, le=1000)
    accept_terms: bool

    @field_validator("email")
    @classmethod
    def normalise_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("accept_terms")
    @classmethod
    def terms_accepted(cls, value: bool) -> bool:
        if not value:
            raise ValueError("You must accept the terms and conditions")
        return value
