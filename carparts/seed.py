"""Load demo categories and parts: ``python -m carparts.seed``."""

import logging

import config
from database import create_document

from .deps import get_db
from .schemas import Category, Part

logger = logging.getLogger(__name__)

CATEGORIES = [
    Category(name="Brakes", description="Pads, discs and calipers"),
    Category(name="Filters", description="Oil, air and cabin filters"),
    Category(name="Electrical", description="Batteries, bulbs and sensors"),
]

PARTS = {
    "Brakes": [
        dict(name="Front Brake Pads", description="Ceramic front pad set", price=45.0, quantity=20,
             min_quantity=5, manufacturer="Brembo", part_number="BRK-1001"),
        dict(name="Brake Disc 280mm", description="Vented front disc", price=62.5, quantity=4,
             min_quantity=5, manufacturer="ATE", part_number="BRK-2040"),
    ],
    "Filters": [
        dict(name="Oil Filter", description="Spin-on oil filter", price=8.99, quantity=60,
             min_quantity=10, manufacturer="Mann", part_number="FLT-0101"),
        dict(name="Cabin Air Filter", description="Activated carbon cabin filter", price=14.5,
             quantity=15, min_quantity=5, manufacturer="Bosch", part_number="FLT-0340"),
    ],
    "Electrical": [
        dict(name="12V Battery 70Ah", description="AGM start-stop battery", price=139.0, quantity=6,
             min_quantity=3, manufacturer="Varta", part_number="ELC-7000"),
    ],
}


def seed(db) -> bool:
    """Insert the demo catalogue unless one is already there."""
    if db["category"].find_one({}):
        logger.info("Already seeded")
        return False

    for category in CATEGORIES:
        category_id = create_document(db, "category", category)
        for fields in PARTS.get(category.name, []):
            create_document(db, "part", Part(category=category_id, **fields))
    logger.info("Seeded %d categories", len(CATEGORIES))
    return True


if __name__ == "__main__":
    config.configure_logging()
    seed(get_db())
