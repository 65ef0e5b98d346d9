"""
Create tables and load the house catalog.

Safe to re-run: rows are matched by name and only changed fields are
written. Legacy .png image references are moved to .webp on the way.
"""
from decimal import Decimal
from typing import Tuple
from sqlalchemy.orm import Session
from lupora.database import SessionLocal, init_db
from lupora.models.product import Product, Media
from lupora.utils.slug import image_path_for

CATALOG = [
    {
        "name": "Flora Divina",
        "category": "Floral",
        "price": Decimal("4500"),
        "description": "A luminous bouquet of rare florals, capturing the essence of an eternal garden.",
    },
    {
        "name": "Midnight Elixir",
        "category": "Oriental",
        "price": Decimal("5200"),
        "description": "A mysterious blend of dark woods and spices, evoking the allure of midnight.",
    },
    {
        "name": "Oud Mystique",
        "category": "Woody",
        "price": Decimal("6800"),
        "description": "Precious oud intertwined with amber and saffron, a scent of timeless opulence.",
    },
    {
        "name": "Velvet Rose",
        "category": "Floral",
        "price": Decimal("4800"),
        "description": "Velvety Bulgarian rose layered with musk, an ode to romantic elegance.",
    },
    {
        "name": "Amber Noir",
        "category": "Amber",
        "price": Decimal("5500"),
        "description": "Rich amber meets smoky vetiver, a bold signature for the discerning soul.",
    },
]

MEDIA = [
    {"name": "Lupora Hero", "type": "video", "url": "/lupora-hero-video.mp4"},
]


def seed_catalog(db: Session) -> Tuple[int, int]:
    """Upsert CATALOG and MEDIA. Returns (created, updated)."""
    created = updated = 0

    for entry in CATALOG:
        values = dict(entry, image=image_path_for(entry["name"]))
        product = db.query(Product).filter(Product.name == entry["name"]).first()
        if product is None:
            db.add(Product(**values))
            created += 1
            continue

        if product.image and product.image.endswith(".png"):
            product.image = product.image[:-len(".png")] + ".webp"

        changed = False
        for field, value in values.items():
            if field == "image" and product.image:
                continue  # Keep curated image paths
            if getattr(product, field) != value:
                setattr(product, field, value)
                changed = True
        if changed or product in db.dirty:
            updated += 1

    for entry in MEDIA:
        media = db.query(Media).filter(Media.name == entry["name"]).first()
        if media is None:
            db.add(Media(**entry))
            created += 1
        elif (media.type, media.url) != (entry["type"], entry["url"]):
            media.type = entry["type"]
            media.url = entry["url"]
            updated += 1

    db.commit()
    return created, updated


if __name__ == "__main__":
    init_db()
    session = SessionLocal()
    try:
        created, updated = seed_catalog(session)
        print(f"Catalog seeded: {created} created, {updated} updated")
    finally:
        session.close()
