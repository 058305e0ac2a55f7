"""Tests for the starter Dewey classification seed."""
from recipebook.models.dewey_category import DeweyCategory
from recipebook.seed import seed_dewey_categories
from recipebook.services.category_repository import CategoryRepository


class TestSeedDewey:
    """Test seeding the starter categories."""

    def test_seed_builds_linked_tree(self, db_session):
        imported = seed_dewey_categories(db_session)
        assert imported == db_session.query(DeweyCategory).count()

        tree = CategoryRepository(db_session).tree()
        assert [c.dewey_code for c in tree.roots()] == ["0", "1", "2", "3"]
        assert tree.broken_links() == []
        assert tree.level_mismatches() == []
        path = [c.name for c in tree.ancestor_path("000.00")]
        assert path == ["Proteins", "Meat", "Poultry", "Chicken", "Chicken Breast"]

    def test_seed_twice_is_noop(self, db_session):
        seed_dewey_categories(db_session)
        count = db_session.query(DeweyCategory).count()

        assert seed_dewey_categories(db_session) == 0
        assert db_session.query(DeweyCategory).count() == count
