"""
Tests for EntityCatalog loading and lookups.
"""

import random
from pathlib import Path

import pytest

from divine_quiz.catalog import EntityCatalog
from divine_quiz.errors import CatalogError
from divine_quiz.models import Entity, Language


def write_yaml(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "catalog.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoading:
    """Test YAML loading and load-time validation."""

    def test_load_default_catalog(self):
        catalog = EntityCatalog.load_default()

        assert len(catalog) >= 20
        assert "ganesha" in catalog
        assert catalog.get("ganesha").display_name(Language.TAMIL) == "விநாயகர்"

    def test_default_catalog_falls_back_for_partial_entries(self):
        catalog = EntityCatalog.load_default()
        assert catalog.get("varaha").display_name(Language.TAMIL) == "Varaha"

    def test_from_yaml(self, tmp_path):
        path = write_yaml(tmp_path, """
entities:
  - id: shiva
    names:
      English: Shiva
      Hindi: शिव
  - id: vishnu
    names:
      English: Vishnu
""")
        catalog = EntityCatalog.from_yaml(path)

        assert [entity.id for entity in catalog.all()] == ["shiva", "vishnu"]
        assert catalog.get("shiva").names[Language.HINDI] == "शिव"

    def test_missing_entities_key(self, tmp_path):
        path = write_yaml(tmp_path, "deities: []\n")
        with pytest.raises(CatalogError):
            EntityCatalog.from_yaml(path)

    def test_missing_english_name_fails_at_load(self, tmp_path):
        path = write_yaml(tmp_path, """
entities:
  - id: shiva
    names:
      Hindi: शिव
""")
        with pytest.raises(CatalogError, match="#0"):
            EntityCatalog.from_yaml(path)

    def test_duplicate_ids_rejected(self):
        entity = Entity(id="shiva", names={Language.ENGLISH: "Shiva"})
        with pytest.raises(CatalogError, match="Duplicate"):
            EntityCatalog([entity, entity])

    def test_empty_catalog_rejected(self):
        with pytest.raises(CatalogError):
            EntityCatalog([])

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            EntityCatalog.from_yaml(tmp_path / "nope.yaml")


class TestLookups:

    def test_get_unknown_returns_none(self, catalog):
        assert catalog.get("zeus") is None

    def test_all_returns_copy(self, catalog):
        entities = catalog.all()
        entities.clear()
        assert len(catalog) == 6

    def test_list_excluding(self, catalog):
        others = catalog.list_excluding("shiva")

        assert len(others) == len(catalog) - 1
        assert "shiva" not in {entity.id for entity in others}

    def test_pick_random_covers_catalog(self, catalog):
        rng = random.Random(7)
        seen = {catalog.pick_random(rng).id for _ in range(500)}
        assert seen == {entity.id for entity in catalog.all()}
