"""
Unit tests for the resource builder.
"""

import json
import logging
from datetime import datetime, timezone

import pytest

from delivery.builder.resource_builder import ResourceBuilder
from delivery.cache.identity import IdentityCache
from delivery.cache.metadata import CacheKeyGenerator, InMemoryMetadataCache
from delivery.core.exceptions import (
    FieldCoercionError, SchemaError, UnknownLocaleError, UnresolvedContentTypeError,
)
from delivery.core.files import ImageFile
from delivery.core.models import DiagnosticKind, Link, ResourceArray
from delivery.core.resources import Asset, ContentType, DeletedEntry, Entry, Space


class TestBuildSpaceAndContentType:
    """Tests for process-lifetime resources."""

    def test_build_space(self, builder, space_json):
        """Test the space is built with its locale table and cached."""
        space = builder.build(space_json)

        assert isinstance(space, Space)
        assert space.name == "Contentful Example API"
        assert space.default_locale.code == "en-US"
        assert builder.identity_cache.get_space() is space
        assert builder.build(space_json) is space

    def test_space_without_default_locale(self, builder, space_json):
        """Test a space without default locale is rejected and not cached."""
        for locale in space_json["locales"]:
            locale["default"] = False

        with pytest.raises(SchemaError):
            builder.build(space_json)
        assert not builder.identity_cache.has_space()

    def test_build_content_type(self, builder, cat_json):
        """Test content types are cached by id."""
        content_type = builder.build(cat_json)

        assert isinstance(content_type, ContentType)
        assert builder.identity_cache.get_content_type("cat") is content_type
        assert builder.build(cat_json) is content_type

    def test_unknown_type(self, builder):
        """Test unknown resource types are rejected."""
        with pytest.raises(SchemaError, match="Unknown resource type 'Webhook'"):
            builder.build({"sys": {"type": "Webhook", "id": "hook"}})

    def test_missing_type(self, builder):
        """Test documents without sys.type are rejected."""
        with pytest.raises(SchemaError):
            builder.build({"fields": {}})
        with pytest.raises(SchemaError):
            builder.build(["not", "a", "document"])


class TestBuildAsset:
    """Tests for building assets."""

    def test_nyancat_asset(self, builder, asset_json):
        """Test the nyancat asset and its getters."""
        asset = builder.build(asset_json)

        assert isinstance(asset, Asset)
        assert asset.id == "nyancat"
        assert asset.revision == 1
        assert asset.created_at == datetime(2013, 9, 2, 14, 56, 34, 240000, tzinfo=timezone.utc)
        assert asset.get_title() == "Nyan Cat"
        assert asset.get_title("de-DE") == "Kater Karlo"
        assert asset.get_title("tlh") == "Nyan Cat"
        assert asset.get_description("tlh") == "A picture of Nyan Cat"
        assert isinstance(asset.get_file(), ImageFile)
        assert asset.get_file("de-DE").width == 250

    def test_invalid_locale(self, builder, asset_json):
        """Test unknown locales list the available ones."""
        asset = builder.build(asset_json)

        with pytest.raises(UnknownLocaleError, match="Available locales are en-US, tlh, de-DE."):
            asset.get_title("xyz")

    def test_roundtrip(self, builder, asset_json):
        """Test a built asset serializes back to its raw form."""
        asset = builder.build(asset_json)

        assert asset.to_dict() == asset_json
        assert json.loads(asset.to_json()) == asset_json

    def test_missing_description(self, builder, asset_json):
        """Test absent localized values are absent, not null-filled."""
        del asset_json["fields"]["description"]
        asset_json["fields"]["title"]["tlh"] = None

        asset = builder.build(asset_json)

        assert asset.description == {}
        assert asset.get_description() is None
        assert "tlh" not in asset.title
        assert "description" not in asset.to_dict()["fields"]


class TestBuildEntry:
    """Tests for building entries."""

    def test_fields_coerced(self, builder, nyancat_json):
        """Test every field is coerced according to the content type."""
        entry = builder.build(nyancat_json)

        assert isinstance(entry, Entry)
        assert entry.content_type.id == "cat"
        assert entry["name"] == "Nyan Cat"
        assert entry.get("name", "tlh") == "Nyan vIghro'"
        assert entry.get("name", "de-DE") == "Nyan Cat"
        assert entry.likes == ["rainbows", "fish"]
        assert entry.lives == 1337
        assert entry.birthday == datetime(2011, 4, 4, 22, 0, tzinfo=timezone.utc)
        assert entry.get_raw("bestFriend") == Link("happycat", "Entry")
        assert "color" in entry
        assert "mood" not in entry

    def test_null_locale_value_falls_back(self, builder, nyancat_json):
        """Test a null value in one locale falls back like a missing one."""
        nyancat_json["fields"]["name"]["tlh"] = None

        entry = builder.build(nyancat_json)

        assert entry.get("name", "tlh") == "Nyan Cat"
        assert entry.to_dict()["fields"]["name"] == {"en-US": "Nyan Cat", "tlh": None}

    def test_roundtrip(self, builder, nyancat_json):
        """Test a built entry serializes back to its raw form."""
        entry = builder.build(nyancat_json)

        assert entry.to_dict() == nyancat_json

    def test_unknown_attribute(self, builder, nyancat_json):
        """Test attribute access for unknown fields raises AttributeError."""
        entry = builder.build(nyancat_json)

        with pytest.raises(AttributeError):
            entry.mood
        with pytest.raises(KeyError):
            entry["mood"]

    def test_disabled_field_dropped(self, builder, nyancat_json):
        """Test disabled fields are not part of the built entry."""
        nyancat_json["fields"]["lifes"] = {"en-US": 9}

        entry = builder.build(nyancat_json)

        assert "lifes" not in entry.fields
        assert entry.diagnostics == []

    def test_unresolved_content_type(self, nyancat_json):
        """Test an unknown content type without fetcher leaves the cache untouched."""
        identity_cache = IdentityCache()
        builder = ResourceBuilder(identity_cache, space_id="cfexampleapi")
        session = builder.new_session()

        with pytest.raises(UnresolvedContentTypeError) as exc_info:
            builder.build(nyancat_json, session)

        assert exc_info.value.content_type_id == "cat"
        assert exc_info.value.entry_id == "nyancat"
        assert identity_cache.stats() == {"space": None, "content_types": []}
        assert len(session) == 0

    def test_content_type_fetched_once(self, builder, static_connector, nyancat_json, happycat_json):
        """Test the content type and space are fetched just in time, then cached."""
        builder.build(nyancat_json)
        builder.build(happycat_json)

        fetched = [params["type"] for name, params in static_connector.request_history]
        assert fetched == ["ContentType", "Space"]

    def test_metadata_cache(self, nyancat_json, cat_json, space_json):
        """Test space and content type are revived from the metadata cache."""
        cache = InMemoryMetadataCache({
            CacheKeyGenerator.space_key("cfexampleapi"): json.dumps(space_json),
            CacheKeyGenerator.content_type_key("cfexampleapi", "cat"): json.dumps(cat_json),
        })
        builder = ResourceBuilder(IdentityCache(), space_id="cfexampleapi", metadata_cache=cache)

        entry = builder.build(nyancat_json)

        assert entry["name"] == "Nyan Cat"
        assert entry.space.id == "cfexampleapi"
        assert builder.identity_cache.stats() == {"space": "cfexampleapi", "content_types": ["cat"]}

    def test_coercion_failure_withdraws_registration(self, builder, nyancat_json):
        """Test a failed build leaves no partially built entry behind."""
        nyancat_json["fields"]["lives"] = {"en-US": "many"}
        session = builder.new_session()

        with pytest.raises(FieldCoercionError) as exc_info:
            builder.build(nyancat_json, session)

        assert exc_info.value.field_id == "lives"
        assert session.get("Entry", "nyancat") is None

    def test_diagnostics(self, builder, nyancat_json, caplog):
        """Test schema drift is recorded and logged, never raised."""
        del nyancat_json["fields"]["name"]
        nyancat_json["fields"]["mood"] = {"en-US": "happy"}
        session = builder.new_session()

        with caplog.at_level(logging.WARNING, logger="delivery"):
            entry = builder.build(nyancat_json, session)

        kinds = {(d.field_id, d.kind) for d in entry.diagnostics}
        assert kinds == {
            ("mood", DiagnosticKind.UNKNOWN_FIELD),
            ("name", DiagnosticKind.MISSING_REQUIRED_FIELD),
        }
        assert session.diagnostics == entry.diagnostics
        assert builder.last_diagnostics == entry.diagnostics
        assert entry.fields["mood"] == {"en-US": "happy"}
        assert entry.get("mood") == "happy"
        assert "mood" in caplog.text

    def test_single_locale_document(self, builder, nyancat_json):
        """Test flattened single-locale fields are keyed by sys.locale."""
        nyancat_json["sys"]["locale"] = "tlh"
        nyancat_json["fields"] = {
            "name": "Nyan vIghro'",
            "color": "rainbow",
            "lives": 1337,
        }

        entry = builder.build(nyancat_json)

        assert entry.locale == "tlh"
        assert entry.fields["name"] == {"tlh": "Nyan vIghro'"}
        assert entry["name"] == "Nyan vIghro'"
        assert entry.to_dict()["fields"] == nyancat_json["fields"]

    def test_flat_value_in_all_locale_document(self, builder, nyancat_json):
        """Test all-locale documents must hold per-locale maps."""
        nyancat_json["fields"]["color"] = "rainbow"

        with pytest.raises(FieldCoercionError):
            builder.build(nyancat_json)


class TestIdentity:
    """Tests for deduplication within build sessions."""

    def test_same_document_same_instance(self, builder, nyancat_json):
        """Test building the same document twice in a session yields one instance."""
        session = builder.new_session()

        first = builder.build(nyancat_json, session)
        second = builder.build(nyancat_json, session)

        assert first is second

    def test_sessions_are_independent(self, builder, nyancat_json):
        """Test unrelated builds do not share entries."""
        first = builder.build(nyancat_json)
        second = builder.build(nyancat_json)

        assert first is not second
        assert first.content_type is second.content_type
        assert first.space is second.space

    def test_assets_shared_across_sessions(self, builder, asset_json):
        """Test an asset built in two sessions is one instance."""
        first = builder.build(asset_json)
        second = builder.build(asset_json)

        assert second is first
        assert builder.identity_cache.get_asset("nyancat") is first

    def test_new_asset_revision_replaces_cached(self, builder, asset_json):
        """Test a newer revision of an asset is not served from the cache."""
        first = builder.build(asset_json)
        asset_json["sys"]["revision"] = 2
        asset_json["fields"]["title"]["en-US"] = "Nyan Cat (updated)"

        second = builder.build(asset_json)

        assert second is not first
        assert second.get_title() == "Nyan Cat (updated)"
        assert builder.identity_cache.get_asset("nyancat") is second
        assert builder.build(asset_json) is second

    def test_asset_locale_scopes_are_distinct(self, builder, asset_json):
        """Test single-locale and all-locale assets are cached separately."""
        all_locales = builder.build(asset_json)
        asset_json["sys"]["locale"] = "de-DE"
        asset_json["fields"] = {"title": "Kater Karlo"}

        single = builder.build(asset_json)

        assert single is not all_locales
        assert builder.identity_cache.get_asset("nyancat", "de-DE") is single
        assert builder.identity_cache.find_asset("nyancat", "tlh") is all_locales

    def test_locale_scopes_are_distinct(self, builder, nyancat_json):
        """Test the same id in different locale scopes gives different instances."""
        session = builder.new_session()
        all_locales = builder.build(nyancat_json, session)

        nyancat_json["sys"]["locale"] = "en-US"
        nyancat_json["fields"] = {"name": "Nyan Cat"}
        single = builder.build(nyancat_json, session)

        assert single is not all_locales
        assert session.find("Entry", "nyancat", "de-DE") is all_locales


class TestBuildArray:
    """Tests for Array documents."""

    def test_array_with_includes(self, builder, nyancat_json, happycat_json, asset_json, static_connector):
        """Test includes are used to resolve links without fetching."""
        raw = {
            "sys": {"type": "Array"},
            "total": 1,
            "skip": 0,
            "limit": 100,
            "items": [nyancat_json],
            "includes": {"Entry": [happycat_json], "Asset": [asset_json]},
        }

        array = builder.build(raw)
        fetches_after_build = static_connector.fetch_count

        assert isinstance(array, ResourceArray)
        assert (array.total, array.skip, array.limit) == (1, 0, 100)
        nyancat = array[0]
        assert nyancat.best_friend.name == "Happy Cat"
        assert nyancat.image.get_title() == "Nyan Cat"
        assert nyancat.best_friend.best_friend is nyancat
        assert static_connector.fetch_count == fetches_after_build

    def test_array_preserves_order(self, builder, nyancat_json, happycat_json, asset_json):
        """Test items keep the response order."""
        raw = {"sys": {"type": "Array"}, "items": [happycat_json, asset_json, nyancat_json]}

        array = builder.build(raw)

        assert [(type(i).__name__, i.id) for i in array] == [
            ("Entry", "happycat"), ("Asset", "nyancat"), ("Entry", "nyancat"),
        ]
        assert array.total == 3

    def test_build_batch(self, builder, nyancat_json, happycat_json):
        """Test a batch shares one session and its side-table."""
        entries = builder.build_batch([nyancat_json], included=[happycat_json])

        assert entries[0].best_friend.id == "happycat"


class TestBuildDeleted:
    """Tests for deleted stubs."""

    def test_deleted_entry(self, builder, deleted_entry_json):
        """Test deleted stubs carry only sys."""
        deleted = builder.build(deleted_entry_json)

        assert isinstance(deleted, DeletedEntry)
        assert deleted.id == "garfield"
        assert deleted.space_id == "cfexampleapi"
        assert deleted.deleted_at == datetime(2014, 8, 11, 8, 30, 42, 559000, tzinfo=timezone.utc)
        assert deleted.to_dict() == deleted_entry_json
