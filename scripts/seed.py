"""Database seeder for local development and listing benchmarks."""
import asyncio
import argparse
import random
import time
from datetime import datetime, timezone, timedelta

from content_api.database import engine, async_session, Base
from content_api.lifecycle import EditorialStatus, SectionStatus, ServiceStatus, TestimonialStatus
from content_api.models import Article, Sample, ServicePage, ServiceSection, Testimonial
from content_api.slugs import slugify

TOPICS = ["python", "fastapi", "postgresql", "redis", "docker", "statistics",
          "economics", "nursing", "marketing", "history", "chemistry", "law"]
CATEGORIES = ["Guides", "Study Tips", "Research", "Announcements"]
SUBJECTS = ["Business", "Nursing", "Computer Science", "Psychology", "History"]
LEVELS = ["High School", "Undergraduate", "Masters", "PhD"]


def _editorial_status() -> str:
    roll = random.random()
    if roll > 0.2:
        return EditorialStatus.PUBLISHED.value
    if roll > 0.05:
        return EditorialStatus.DRAFT.value
    return EditorialStatus.ARCHIVED.value


async def seed(small: bool = False):
    num_articles = 100 if small else 5000
    num_samples = 50 if small else 2000
    num_testimonials = 20 if small else 200

    print(f"Seeding: {num_articles} blogs, {num_samples} samples, {num_testimonials} testimonials")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        sections = []
        for order, name in enumerate(["Writing", "Editing", "Consulting"]):
            section = ServiceSection(
                name=name, slug=slugify(name), order=order, status=SectionStatus.LIVE.value
            )
            session.add(section)
            sections.append(section)
        await session.flush()

        services = 0
        for section in sections:
            for order in range(4):
                title = f"{section.name} service {order + 1}"
                session.add(ServicePage(
                    section_id=section.id,
                    title=title,
                    slug=slugify(title),
                    description=f"Professional {section.name.lower()} help.",
                    order=order,
                    status=random.choice([s.value for s in ServiceStatus]),
                ))
                services += 1
        print(f"  Created {len(sections)} sections, {services} services")

        batch_size = 500
        for batch_start in range(0, num_articles, batch_size):
            batch_end = min(batch_start + batch_size, num_articles)
            for i in range(batch_start, batch_end):
                created = datetime.now(timezone.utc) - timedelta(days=random.randint(0, 365))
                status = _editorial_status()
                title = f"Blog {i} on {random.choice(TOPICS)}"
                session.add(Article(
                    title=title,
                    slug=slugify(title),
                    description=f"Notes on {random.choice(TOPICS)} for students.",
                    author_name="Seed Author",
                    category=random.choice(CATEGORIES),
                    tags=random.sample(TOPICS, k=random.randint(1, 4)),
                    read_time=random.randint(2, 15),
                    views=random.randint(0, 10000),
                    status=status,
                    published_at=created if status == EditorialStatus.PUBLISHED.value else None,
                    created_at=created,
                ))
            await session.flush()
            print(f"  Batch {batch_start}-{batch_end}: blogs created")

        for i in range(num_samples):
            status = _editorial_status()
            title = f"Sample {i} {random.choice(SUBJECTS)} essay"
            session.add(Sample(
                title=title,
                slug=slugify(title),
                description="Annotated writing sample.",
                subject=random.choice(SUBJECTS),
                topic=random.choice(TOPICS),
                academic_level=random.choice(LEVELS),
                word_count=random.randint(500, 5000),
                rating_score=round(random.uniform(3, 5), 1),
                rating_count=random.randint(0, 300),
                views=random.randint(0, 5000),
                status=status,
                published_at=datetime.now(timezone.utc) if status == EditorialStatus.PUBLISHED.value else None,
            ))
        await session.flush()
        print(f"  Created {num_samples} samples")

        for i in range(num_testimonials):
            session.add(Testimonial(
                name=f"Student {i}",
                content="Clear communication and on-time delivery.",
                stars=random.randint(3, 5),
                for_homepage=random.random() > 0.8,
                status=random.choice([s.value for s in TestimonialStatus]),
            ))

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")


def main():
    parser = argparse.ArgumentParser(description="Seed the content database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (100 blogs)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
