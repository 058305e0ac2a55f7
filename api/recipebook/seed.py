"""Create tables and seed a starter Dewey classification."""
from recipebook.core.config import setup_logging
from recipebook.core.database import SessionLocal, engine
from recipebook.models import Base
from recipebook.services.category_repository import CategoryRepository

# One line per branch, in the same "code name" format the import endpoint takes
STARTER_CATEGORIES = """\
0 Proteins, 00 Meat, 000 Poultry, 000.0 Chicken, 000.00 Chicken Breast
0 Proteins, 00 Meat, 000 Poultry, 000.0 Chicken, 000.01 Chicken Thigh
0 Proteins, 00 Meat, 000 Poultry, 000.1 Turkey
0 Proteins, 00 Meat, 001 Beef, 001.0 Steak
0 Proteins, 00 Meat, 002 Pork
0 Proteins, 01 Seafood, 010 Fish, 010.0 Salmon
0 Proteins, 01 Seafood, 011 Shellfish
1 Vegetables, 10 Leafy Greens, 100 Salads
1 Vegetables, 11 Roots, 110 Potatoes
2 Grains, 20 Pasta, 200 Long Pasta
2 Grains, 21 Rice, 210 Risotto
3 Baking, 30 Bread, 300 Yeast Bread
3 Baking, 31 Desserts, 310 Cakes, 311 Cookies
"""


def seed_dewey_categories(db) -> int:
    """Import the starter classification; a second run imports nothing."""
    result = CategoryRepository(db).import_text(STARTER_CATEGORIES, file_name="seed")
    if result.imported_count:
        print(f"✓ Imported {result.imported_count} Dewey categories")
    else:
        print("✓ Dewey categories already exist")
    for error in result.errors:
        print(f"  ! {error}")
    return result.imported_count


def seed_database():
    """Seed essential data."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        print("Starting database seeding...")
        seed_dewey_categories(db)
        print("Seeding complete.")
    finally:
        db.close()


if __name__ == "__main__":
    setup_logging()
    seed_database()
