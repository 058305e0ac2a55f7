"""Tests for the Dewey category API."""
import io

from fastapi.testclient import TestClient

from recipebook.models.audit_log import AuditLog
from recipebook.models.dewey_category import DeweyCategory
from recipebook.models.recipe import Recipe


class TestDeweyListing:
    """Test category listing and tree retrieval."""

    def test_flat_list_ordered_by_code(self, client: TestClient, dewey_hierarchy):
        response = client.get("/dewey/")
        assert response.status_code == 200
        codes = [c["dewey_code"] for c in response.json()]
        assert codes == ["4", "41", "411", "411.2", "411.21", "411.22", "412", "5"]

    def test_tree_structure(self, client: TestClient, dewey_hierarchy):
        response = client.get("/dewey/tree")
        assert response.status_code == 200
        tree = response.json()

        assert [n["dewey_code"] for n in tree] == ["4", "5"]
        mains = tree[0]["children"][0]
        assert mains["dewey_code"] == "41"
        assert [n["dewey_code"] for n in mains["children"]] == ["411", "412"]
        chicken = mains["children"][0]["children"][0]
        assert chicken["child_count"] == 2
        assert [n["dewey_code"] for n in chicken["children"]] == ["411.21", "411.22"]

    def test_tree_hides_inactive(self, client: TestClient, db_session, dewey_hierarchy):
        dewey_hierarchy["sides"].is_active = False
        db_session.commit()

        response = client.get("/dewey/tree")
        mains = response.json()[0]["children"][0]
        assert [n["dewey_code"] for n in mains["children"]] == ["411"]

        response = client.get("/dewey/tree?include_inactive=true")
        mains = response.json()[0]["children"][0]
        assert [n["dewey_code"] for n in mains["children"]] == ["411", "412"]

    def test_roots(self, client: TestClient, dewey_hierarchy):
        response = client.get("/dewey/roots")
        assert response.status_code == 200
        assert [c["dewey_code"] for c in response.json()] == ["4", "5"]

    def test_get_by_code_with_ancestors(self, client: TestClient, dewey_hierarchy):
        response = client.get("/dewey/code/411.21")
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Breast"
        assert data["level"] == 5
        assert [a["dewey_code"] for a in data["ancestors"]] == ["4", "41", "411", "411.2"]
        assert data["full_path"] == "Dinners > Mains > Poultry > Chicken > Breast"
        assert data["has_children"] is False

    def test_get_by_code_not_found(self, client: TestClient, dewey_hierarchy):
        response = client.get("/dewey/code/999")
        assert response.status_code == 404

    def test_children(self, client: TestClient, dewey_hierarchy):
        response = client.get("/dewey/code/411.2/children")
        assert response.status_code == 200
        assert [c["dewey_code"] for c in response.json()] == ["411.21", "411.22"]

    def test_children_of_unknown_code(self, client: TestClient, dewey_hierarchy):
        response = client.get("/dewey/code/999/children")
        assert response.status_code == 404


class TestDeweyCRUD:
    """Test category create, update and delete."""

    def test_create_links_structural_parent(self, client: TestClient, dewey_hierarchy):
        response = client.post("/dewey/", json={"dewey_code": "411.23", "name": "Wings"})
        assert response.status_code == 201
        data = response.json()
        assert data["level"] == 5
        assert data["parent_code"] == "411.2"
        assert data["is_active"] is True

    def test_create_without_stored_parent_is_root(self, client: TestClient, dewey_hierarchy):
        response = client.post("/dewey/", json={"dewey_code": "700", "name": "Drinks"})
        assert response.status_code == 201
        data = response.json()
        assert data["parent_code"] is None
        assert data["level"] == 3

        roots = client.get("/dewey/roots").json()
        assert "700" in [c["dewey_code"] for c in roots]

    def test_create_with_explicit_parent(self, client: TestClient, dewey_hierarchy):
        response = client.post("/dewey/", json={"dewey_code": "6", "name": "Drinks", "parent_code": "5"})
        assert response.status_code == 201
        assert response.json()["parent_code"] == "5"

    def test_create_duplicate_code(self, client: TestClient, dewey_hierarchy):
        response = client.post("/dewey/", json={"dewey_code": "411", "name": "Birds"})
        assert response.status_code == 400
        assert "already exists" in response.json()["detail"]

    def test_create_level_mismatch(self, client: TestClient, dewey_hierarchy):
        response = client.post("/dewey/", json={"dewey_code": "413", "name": "Soups", "level": 2})
        assert response.status_code == 400

    def test_create_invalid_code(self, client: TestClient, dewey_hierarchy):
        response = client.post("/dewey/", json={"dewey_code": "41a", "name": "Bad"})
        assert response.status_code == 422

    def test_create_sequence_code_rejected(self, client: TestClient, dewey_hierarchy):
        response = client.post("/dewey/", json={"dewey_code": "411.21.001", "name": "Recipe"})
        assert response.status_code == 400

    def test_create_writes_audit_log(self, client: TestClient, db_session, dewey_hierarchy):
        client.post("/dewey/", json={"dewey_code": "411.23", "name": "Wings"})
        entry = db_session.query(AuditLog).filter(
            AuditLog.entity_type == "DeweyCategory", AuditLog.action == "CREATE"
        ).first()
        assert entry is not None
        assert entry.changes["dewey_code"] == "411.23"

    def test_update_name(self, client: TestClient, dewey_hierarchy):
        category_id = dewey_hierarchy["sides"].category_id
        response = client.put(f"/dewey/{category_id}", json={"name": "Side Dishes"})
        assert response.status_code == 200
        assert response.json()["name"] == "Side Dishes"
        assert response.json()["dewey_code"] == "412"

    def test_update_code_of_leaf(self, client: TestClient, dewey_hierarchy):
        category_id = dewey_hierarchy["sides"].category_id
        response = client.put(f"/dewey/{category_id}", json={"dewey_code": "413"})
        assert response.status_code == 200
        assert response.json()["dewey_code"] == "413"
        assert response.json()["level"] == 3

    def test_update_code_with_children_blocked(self, client: TestClient, dewey_hierarchy):
        category_id = dewey_hierarchy["chicken"].category_id
        response = client.put(f"/dewey/{category_id}", json={"dewey_code": "411.5"})
        assert response.status_code == 409

    def test_update_code_with_recipes_blocked(self, client: TestClient, db_session, dewey_hierarchy):
        db_session.add(Recipe(name="Lemon Chicken", dewey_decimal="411.21.001"))
        db_session.commit()

        category_id = dewey_hierarchy["breast"].category_id
        response = client.put(f"/dewey/{category_id}", json={"dewey_code": "411.29"})
        assert response.status_code == 409
        assert "recipe" in response.json()["detail"]

        # Renaming without changing the code is still allowed
        response = client.put(f"/dewey/{category_id}", json={"name": "Chicken Breast"})
        assert response.status_code == 200

    def test_update_code_with_unnumbered_recipe_blocked(self, client: TestClient, db_session, dewey_hierarchy):
        db_session.add(Recipe(name="Rice", dewey_decimal="412"))
        db_session.commit()

        response = client.put(f"/dewey/{dewey_hierarchy['sides'].category_id}", json={"dewey_code": "413"})
        assert response.status_code == 409

    def test_deactivate_keeps_code_reserved(self, client: TestClient, dewey_hierarchy):
        category_id = dewey_hierarchy["sides"].category_id
        response = client.put(f"/dewey/{category_id}", json={"is_active": False})
        assert response.status_code == 200
        assert response.json()["is_active"] is False

        response = client.post("/dewey/", json={"dewey_code": "412", "name": "Sides Again"})
        assert response.status_code == 400

    def test_clear_parent_makes_root(self, client: TestClient, dewey_hierarchy):
        category_id = dewey_hierarchy["sides"].category_id
        response = client.put(f"/dewey/{category_id}", json={"parent_code": ""})
        assert response.status_code == 200
        assert response.json()["parent_code"] is None

        roots = [c["dewey_code"] for c in client.get("/dewey/roots").json()]
        assert roots == ["4", "412", "5"]

    def test_update_not_found(self, client: TestClient, dewey_hierarchy):
        response = client.put("/dewey/9999", json={"name": "Ghost"})
        assert response.status_code == 404

    def test_delete_guarded_by_children(self, client: TestClient):
        parent = client.post("/dewey/", json={"dewey_code": "00", "name": "Meat"}).json()
        child = client.post("/dewey/", json={"dewey_code": "000", "name": "Poultry"}).json()
        assert child["parent_code"] == "00"

        response = client.delete(f"/dewey/{parent['category_id']}")
        assert response.status_code == 409
        assert "child" in response.json()["detail"]

        response = client.delete(f"/dewey/{child['category_id']}")
        assert response.status_code == 204

        response = client.delete(f"/dewey/{parent['category_id']}")
        assert response.status_code == 204
        assert client.get("/dewey/").json() == []

    def test_delete_guard_counts_inactive_children(self, client: TestClient, db_session, dewey_hierarchy):
        dewey_hierarchy["breast"].is_active = False
        dewey_hierarchy["thigh"].is_active = False
        db_session.commit()

        response = client.delete(f"/dewey/{dewey_hierarchy['chicken'].category_id}")
        assert response.status_code == 409

    def test_delete_not_found(self, client: TestClient, dewey_hierarchy):
        response = client.delete("/dewey/9999")
        assert response.status_code == 404


class TestNextSequence:
    """Test the next sequence code preview."""

    def test_first_number(self, client: TestClient, dewey_hierarchy):
        response = client.get("/dewey/next-sequence/411.21")
        assert response.status_code == 200
        assert response.json() == {"base_code": "411.21", "next_sequence": "411.21.001"}

    def test_continues_after_existing(self, client: TestClient, db_session, dewey_hierarchy):
        db_session.add_all([
            Recipe(name="One", dewey_decimal="411.21.001"),
            Recipe(name="Two", dewey_decimal="411.21.002"),
            Recipe(name="Other", dewey_decimal="411.22.007"),
        ])
        db_session.commit()

        response = client.get("/dewey/next-sequence/411.21")
        assert response.json()["next_sequence"] == "411.21.003"

    def test_exhausted(self, client: TestClient, db_session, dewey_hierarchy):
        db_session.add(Recipe(name="Last", dewey_decimal="411.21.999"))
        db_session.commit()

        response = client.get("/dewey/next-sequence/411.21")
        assert response.status_code == 409

    def test_invalid_base(self, client: TestClient, dewey_hierarchy):
        response = client.get("/dewey/next-sequence/41a")
        assert response.status_code == 400


class TestDeweyImport:
    """Test bulk category import."""

    IMPORT_TEXT = (
        "0 Proteins, 00 Meat, 000 Poultry, 000.0 Chicken\n"
        "0 Proteins, 00 Meat, 000 Poultry, 000.1 Turkey\n"
    )

    def _upload(self, client, text, name="categories.csv"):
        return client.post(
            "/dewey/import",
            files={"file": (name, io.BytesIO(text.encode("utf-8")), "text/csv")},
        )

    def test_import_creates_linked_categories(self, client: TestClient):
        response = self._upload(client, self.IMPORT_TEXT)
        assert response.status_code == 200
        result = response.json()
        assert result["imported_count"] == 5
        assert result["error_count"] == 0

        turkey = client.get("/dewey/code/000.1").json()
        assert turkey["full_path"] == "Proteins > Meat > Poultry > Turkey"

    def test_import_is_idempotent(self, client: TestClient):
        self._upload(client, self.IMPORT_TEXT)
        response = self._upload(client, self.IMPORT_TEXT)
        result = response.json()
        assert result["imported_count"] == 0
        assert result["error_count"] == 0
        assert len(client.get("/dewey/").json()) == 5

    def test_import_reports_bad_fields(self, client: TestClient):
        response = self._upload(client, "4 Dinners, 4..1 Broken\nJust a name, 5 Desserts\n")
        result = response.json()
        assert result["imported_count"] == 2
        assert result["error_count"] == 1
        assert "Line 1" in result["errors"][0]
        assert len(result["warnings"]) == 1

    def test_import_handles_bom(self, client: TestClient):
        response = client.post(
            "/dewey/import",
            files={"file": ("cats.txt", io.BytesIO("4 Dinners".encode("utf-8-sig")), "text/plain")},
        )
        assert response.status_code == 200
        assert client.get("/dewey/code/4").status_code == 200

    def test_import_rejects_sequence_codes(self, client: TestClient, dewey_hierarchy):
        response = self._upload(client, "411.21.001 Lemon Chicken, 411.23 Wings\n")
        result = response.json()
        assert result["imported_count"] == 1
        assert result["error_count"] == 1
        assert "Line 1" in result["errors"][0]

        assert client.get("/dewey/code/411.21.001").status_code == 404
        # 411.21 is still a leaf, so numbering under it continues
        nxt = client.get("/dewey/next-sequence/411.21").json()
        assert nxt["next_sequence"] == "411.21.001"

    def test_import_rejects_binary(self, client: TestClient):
        response = client.post(
            "/dewey/import",
            files={"file": ("cats.bin", io.BytesIO(b"\xff\xfe\xfa"), "application/octet-stream")},
        )
        assert response.status_code == 400


class TestDeweyIntegrity:
    """Test the integrity report."""

    def test_clean_hierarchy(self, client: TestClient, dewey_hierarchy):
        report = client.get("/dewey/integrity").json()
        assert report["category_count"] == 8
        assert report["broken_links"] == []
        assert report["level_mismatches"] == []

    def test_reports_problems(self, client: TestClient, db_session, dewey_hierarchy):
        db_session.add(DeweyCategory(
            dewey_code="999.9", name="Orphan", level=2, parent_code="999", is_active=True
        ))
        db_session.commit()

        report = client.get("/dewey/integrity").json()
        assert report["broken_links"] == [{"dewey_code": "999.9", "missing_parent_code": "999"}]
        assert report["level_mismatches"] == [
            {"dewey_code": "999.9", "stored_level": 2, "expected_level": 4}
        ]
