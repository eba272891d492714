"""Tests for CollectionValidator rules."""

from __future__ import annotations

from datetime import timedelta

from mcpbridge.model.canonical import build_snippet
from mcpbridge.model.validator import CollectionValidator

from tests.helpers import make_collection


class TestValidate:
    """Structural invariants of a single collection."""

    def test_valid_collection(self, sample_collection) -> None:
        """A well-formed collection has no errors or warnings."""
        result = CollectionValidator().validate(sample_collection)
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_empty_snippets_is_warning(self) -> None:
        """No snippets is valid but warned about."""
        result = CollectionValidator().validate(make_collection(snippets=0))
        assert result.is_valid
        assert result.warnings == ["Collection has no code snippets"]

    def test_missing_id_and_tool(self, sample_collection) -> None:
        sample_collection.id = ""
        sample_collection.source_tool = " "
        result = CollectionValidator().validate(sample_collection)
        assert not result.is_valid
        assert "Collection id is required" in result.errors
        assert "Source tool is required" in result.errors

    def test_empty_snippet_content(self, sample_collection) -> None:
        sample_collection.code_snippets[0].content = ""
        result = CollectionValidator().validate(sample_collection)
        assert "Snippet 0: content is required" in result.errors

    def test_duplicate_snippet_ids(self, sample_collection) -> None:
        """Snippet ids must be unique within the collection."""
        sample_collection.code_snippets.append(
            build_snippet(id=sample_collection.code_snippets[0].id, content="x", language="shell")
        )
        result = CollectionValidator().validate(sample_collection)
        assert any("duplicate id" in e for e in result.errors)

    def test_tags_must_be_set(self, sample_collection) -> None:
        sample_collection.code_snippets[0].tags = ["mcp"]
        result = CollectionValidator().validate(sample_collection)
        assert "Snippet 0: tags must be a set" in result.errors

    def test_snippets_not_a_list(self, sample_collection) -> None:
        sample_collection.code_snippets = "oops"
        result = CollectionValidator().validate(sample_collection)
        assert "Code snippets must be a list" in result.errors

    def test_updated_before_created(self, sample_collection) -> None:
        """updated_at earlier than created_at is rejected."""
        sample_collection.updated_at = sample_collection.created_at - timedelta(seconds=1)
        result = CollectionValidator().validate(sample_collection)
        assert result.errors == ["Updated date precedes created date"]

    def test_missing_metadata_name(self, sample_collection) -> None:
        sample_collection.metadata.name = ""
        result = CollectionValidator().validate(sample_collection)
        assert "Metadata name is required" in result.errors


class TestUniqueIds:
    """Store-wide id uniqueness."""

    def test_duplicates_reported(self) -> None:
        a = make_collection(collection_id="mcp_a")
        b = make_collection(collection_id="mcp_a", name="other")
        result = CollectionValidator().validate_unique_ids([a, b])
        assert result.errors == ["Duplicate collection id 'mcp_a'"]

    def test_distinct_ids_pass(self) -> None:
        a = make_collection(collection_id="mcp_a")
        b = make_collection(collection_id="mcp_b")
        assert CollectionValidator().validate_unique_ids([a, b]).is_valid
