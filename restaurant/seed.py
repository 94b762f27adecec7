"""Reset the restaurant database with sample data: ``python -m restaurant.seed``."""

import logging

import config
from database import create_document, utcnow
from security import hash_password

from .deps import get_db
from .schemas import Customization, CustomizationOption, MenuItem, Table, User, UserRole

logger = logging.getLogger(__name__)

USERS = [
    ("Admin User", "admin@restaurant.com", "admin123!", UserRole.ADMIN),
    ("Maria Manager", "manager@restaurant.com", "manager123!", UserRole.MANAGER),
    ("Walter Waiter", "waiter@restaurant.com", "waiter123!", UserRole.WAITER),
    ("Wendy Waiter", "wendy@restaurant.com", "waiter123!", UserRole.WAITER),
    ("Charles Chef", "chef@restaurant.com", "chef1234!", UserRole.CHEF),
]

SIZE = Customization(name="Size", options=[
    CustomizationOption(name="Regular", price=0),
    CustomizationOption(name="Large", price=2.5),
])

MENU_ITEMS = [
    MenuItem(name="Margherita Pizza", description="Tomato, mozzarella, basil", category="Mains",
             price=12.0, preparation_time=15, customizations=[SIZE]),
    MenuItem(name="Caesar Salad", description="Romaine, parmesan, croutons", category="Starters",
             price=8.5, preparation_time=8),
    MenuItem(name="Tomato Soup", description="Roasted tomato and basil", category="Starters",
             price=6.0, preparation_time=5),
    MenuItem(name="Grilled Salmon", description="Salmon fillet with greens", category="Mains",
             price=21.0, preparation_time=20),
    MenuItem(name="Tiramisu", description="Coffee soaked ladyfingers", category="Desserts",
             price=7.0, preparation_time=5),
    MenuItem(name="Lemonade", description="Fresh squeezed", category="Drinks",
             price=3.5, preparation_time=2, customizations=[SIZE]),
]

TABLES = [Table(table_number=n, capacity=c) for n, c in [(1, 2), (2, 2), (3, 4), (4, 4), (5, 6), (6, 8)]]


def seed(db):
    for name in ("user", "menu_item", "table"):
        db[name].delete_many({})
    logger.info("Cleared existing data")

    for name, email, password, role in USERS:
        create_document(db, "user", User(name=name, email=email, password=hash_password(password), role=role))
    for item in MENU_ITEMS:
        create_document(db, "menu_item", item)
    for table in TABLES:
        doc = table.model_dump(mode="json")
        doc.update(current_waiter=None, current_order=None, last_cleaned=utcnow())
        create_document(db, "table", doc)
    logger.info("Sample data inserted: %d users, %d menu items, %d tables",
                len(USERS), len(MENU_ITEMS), len(TABLES))


if __name__ == "__main__":
    config.configure_logging()
    seed(get_db())
