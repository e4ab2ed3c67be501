"""Tests for result models."""

from dataclasses import fields

import pytest

from blueprint_storage.models import (
    Blueprint,
    BlueprintBook,
    TrailingValidation,
    UpgradePlanner,
    Version,
    is_blueprint,
    is_blueprint_book,
    is_empty,
    is_upgrade_planner,
)


class TestVersion:
    """Test version ordering and parsing."""

    def test_ordering(self) -> None:
        """Test versions order by major, minor, patch then developer."""
        assert Version(1, 0, 0) < Version(1, 0, 0, 1) < Version(1, 1, 0) < Version(2, 0, 0)
        assert Version(1, 2, 0, 0xA7) <= Version(1, 2, 0, 0x175)

    def test_branch_is_ignored(self) -> None:
        """Test the branch byte takes no part in comparisons."""
        assert Version(2, 0, 0, 0, branch=1) == Version(2, 0, 0, 0)

    def test_parse(self) -> None:
        assert Version.parse("1.2.0", 0xA7) == Version(1, 2, 0, 0xA7)
        assert str(Version.parse("2.0.7")) == "2.0.7.0"

    def test_parse_rejects_short_text(self) -> None:
        with pytest.raises(ValueError):
            Version.parse("2.0")


class TestPredicates:
    """Test library entry predicates."""

    def test_variants(self) -> None:
        blueprint = Blueprint(1, "A", False, b"")
        book = BlueprintBook(1, "B", "", (), (), 0)
        planner = UpgradePlanner(1, "U", "", (), ())

        assert is_blueprint(blueprint) and not is_blueprint(book)
        assert is_blueprint_book(book) and not is_blueprint_book(None)
        assert is_upgrade_planner(planner)
        assert is_empty(None) and not is_empty(blueprint)
        assert blueprint.kind == "blueprint"
        assert book.kind == "blueprint_book"


class TestTrailingValidation:
    """Test the trailer summary."""

    def test_fields(self) -> None:
        """Test only facts read from the trailer are recorded."""
        assert [field.name for field in fields(TrailingValidation)] == [
            "trailer_present",
            "saved_targetables_count",
            "targeter_mappings",
        ]
        assert TrailingValidation(False) == TrailingValidation(False, None, 0)
