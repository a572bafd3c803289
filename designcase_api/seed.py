from sqlalchemy.orm import Session
import structlog

from designcase_api.database import SessionLocal, init_db
from designcase_api.logging_config import configure_logging
from designcase_api.models import Template

logger = structlog.get_logger(__name__)

DEFAULT_TEMPLATES = [
    {
        "name": "Minimal",
        "slug": "minimal",
        "description": "Clean and minimal case study template",
        "category": "minimal",
        "thumbnail": "https://via.placeholder.com/400x300?text=Minimal",
        "config": {"layout": "vertical", "colorScheme": "light"},
        "features": ["Responsive", "Fast", "Clean"],
        "sort_order": 1,
    },
    {
        "name": "Immersive",
        "slug": "immersive",
        "description": "Immersive 3D case study template",
        "category": "immersive",
        "thumbnail": "https://via.placeholder.com/400x300?text=Immersive",
        "demo_url": "https://demo.example.com/immersive",
        "config": {"layout": "3d", "colorScheme": "dark"},
        "features": ["3D Effects", "Animations", "Interactive"],
        "sort_order": 2,
    },
    {
        "name": "Portfolio",
        "slug": "portfolio",
        "description": "Portfolio-style case study template",
        "category": "portfolio",
        "thumbnail": "https://via.placeholder.com/400x300?text=Portfolio",
        "config": {"layout": "grid", "colorScheme": "auto"},
        "features": ["Showcase", "Grid Layout", "Light/Dark Mode"],
        "sort_order": 3,
    },
]


def seed_templates(db: Session) -> int:
    """Insert the default templates that are not present yet; returns how many were added"""
    existing = {slug for (slug,) in db.query(Template.slug).all()}
    created = 0
    for data in DEFAULT_TEMPLATES:
        if data["slug"] in existing:
            continue
        db.add(Template(is_premium=False, is_public=True, **data))
        created += 1
    db.commit()
    logger.info("Templates seeded", created=created, total=len(DEFAULT_TEMPLATES))
    return created


def main():
    configure_logging()
    init_db()
    db = SessionLocal()
    try:
        seed_templates(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
