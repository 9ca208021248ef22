"""Tests for the Persister and DataObject lifecycle.

Tests cover:
1. Creation and defaults
2. Write/read round trips (including blobs)
3. Cache-first unique-key lookups
4. Field changes: immutability, no-op suppression, immediate writes
5. Removal, reset, dispose
6. Bulk creation and list queries
"""

import pytest
from unittest.mock import Mock

from craftworks.core.cache import CacheAside
from craftworks.core.cache.codec import decode, encode
from craftworks.core.config import Settings
from craftworks.core.errors import (
    ConfigurationError,
    EntityStateError,
    ImmutableFieldError,
    MissingIdentifierError,
    NotFoundError,
    SchemaError,
    ShapeMismatchError,
    StoreError,
    UnknownAttributeError,
)
from craftworks.core.mapping import DataObject, EntityState, Persister, resolve_entity_type

from conftest import Attachment, Gadget, Widget


def _widget(persister, name="Gear", price=9.99):
    widget = persister.create_new(Widget)
    widget.SetName(name)
    widget.SetPrice(price)
    widget.write()
    return widget


# =============================================================================
# Creation Tests
# =============================================================================

@pytest.mark.unit
class TestCreateNew:
    """Tests for create_new."""

    def test_defaults_by_bind_type(self, persister):
        """Test fresh entity.

        ЧТО ПРОВЕРЯЕМ:
            Defaults follow bind-types, ID is 0, state TRANSIENT, delayed writes
        """
        widget = persister.create_new("Widget")

        assert isinstance(widget, Widget)
        assert widget.snapshot() == {"ID": 0, "Name": "", "Price": 0.0}
        assert widget.state == EntityState.TRANSIENT
        assert widget.delayed is True

    def test_blob_default_is_none(self, persister):
        assert persister.create_new(Attachment).get("Payload") is None

    def test_classmethod_with_persister(self, persister):
        widget = Widget.create_new(persister=persister)
        assert widget.persister is persister

    def test_unregistered_type_name(self, persister):
        """A type name without a class gets a generated DataObject subclass."""
        counter = persister.create_new("Counter")

        assert isinstance(counter, DataObject)
        assert type(counter).__name__ == "Counter"
        assert resolve_entity_type("Counter") is type(counter)

    def test_store_required(self, cache_aside, settings):
        with pytest.raises(ConfigurationError):
            Persister(None, cache_aside, settings)


# =============================================================================
# Round Trip Tests
# =============================================================================

@pytest.mark.integration
class TestRoundTrip:
    """Tests for write followed by lookup."""

    def test_create_write_find(self, persister):
        """Test create, set, write, then cold lookup by ID.

        ЧТО ПРОВЕРЯЕМ:
            Insert assigns ID 1 and a cold lookup returns the written values
        """
        widget = persister.create_new("Widget")
        widget.SetName("Gear")
        widget.SetPrice(9.99)
        widget.write()

        assert widget.GetID() == 1
        assert widget.state == EntityState.CLEAN

        found = persister.find_unique("Widget", "ID", 1)
        assert found.snapshot() == {"ID": 1, "Name": "Gear", "Price": 9.99}
        assert found.state == EntityState.CLEAN

    def test_update_existing_row(self, persister, select_row):
        widget = _widget(persister)
        widget.SetPrice(12.5)
        widget.write()

        assert select_row("Widget", widget.id) == {"ID": widget.id, "Name": "Gear", "Price": 12.5}

    def test_blob_round_trip(self, persister, store, session):
        """Test long-data upload.

        ЧТО ПРОВЕРЯЕМ:
            Blob larger than one chunk is uploaded in pieces and read back intact
        """
        settings = Settings(long_data_chunk_size=7)
        persister = Persister(store, CacheAside([]), settings)
        payload = bytes(range(256)) * 3

        attachment = persister.create_new(Attachment)
        attachment.SetLabel("icon")
        attachment.SetPayload(payload)
        attachment.write()

        found = persister.find_unique(Attachment, "ID", attachment.id)
        assert found.GetPayload() == payload
        assert found.GetLabel() == "icon"

    def test_none_blob_stays_null(self, persister, select_row):
        attachment = persister.create_new(Attachment)
        attachment.write()

        assert select_row("Attachment", attachment.id)["Payload"] is None

    def test_empty_blob(self, persister, select_row):
        attachment = persister.create_new(Attachment)
        attachment.SetPayload(b"")
        attachment.write()

        assert select_row("Attachment", attachment.id)["Payload"] == b""

    def test_relation_with_only_id(self, persister):
        """INSERT without value fields uses DEFAULT VALUES."""
        counter = persister.create_new("Counter")
        counter.write()
        counter.write()

        assert counter.id == 1

    def test_store_failure_surfaces_as_store_error(self, persister):
        _widget(persister, name="Gear")
        duplicate = persister.create_new(Widget)
        duplicate.SetName("Gear")

        with pytest.raises(StoreError, match="UNIQUE"):
            duplicate.write()
        assert duplicate.id == 0


# =============================================================================
# Unique-Key Lookup Tests
# =============================================================================

@pytest.mark.integration
class TestFindUnique:
    """Tests for cache-first lookups."""

    def test_missing_row_raises_and_caches_nothing(self, persister, memory_cache):
        """Test lookup miss.

        ЧТО ПРОВЕРЯЕМ:
            NotFoundError is raised and no entity entry is cached

        The test Widget declares Name UNIQUE. Lookups by a column that is not
        a unique key raise SchemaError instead (see test_non_unique_field).
        """
        with pytest.raises(NotFoundError) as exc_info:
            persister.find_unique("Widget", "Name", "NoSuchWidget")

        assert exc_info.value.field == "Name"
        assert memory_cache.keys() == ["Widget_keys_public"]

    @pytest.mark.parametrize("value", ["keys", "Gear", None, "3.5"])
    def test_id_lookup_with_non_integer_value(self, persister, value):
        """Test ID lookups that no row can match.

        ЧТО ПРОВЕРЯЕМ:
            "keys" does not hit the cached schema entry; every non-integer
            value ends in NotFoundError
        """
        _widget(persister)

        with pytest.raises(NotFoundError):
            persister.find_unique("Widget", "ID", value)

    def test_numeric_string_id_lookup(self, persister):
        _widget(persister)

        assert persister.find_unique("Widget", "ID", "1").snapshot()["Name"] == "Gear"

    def test_foreign_cached_payload_is_a_miss(self, persister, memory_cache):
        """A cached value that is not a snapshot falls through to the store."""
        _widget(persister)
        memory_cache.store("Widget_1_public", encode(["not", "a", "snapshot"]))

        found = persister.find_unique("Widget", "ID", 1)

        assert found.snapshot() == {"ID": 1, "Name": "Gear", "Price": 9.99}
        assert decode(memory_cache.fetch("Widget_1_public")) == found.snapshot()

    def test_cold_read_seeds_all_unique_keys(self, persister, memory_cache):
        """Test post-create hook.

        ЧТО ПРОВЕРЯЕМ:
            Cold read caches the snapshot under ID and Name_<value>
        """
        _widget(persister)
        persister.find_unique("Widget", "Name", "Gear")

        assert "Widget_1_public" in memory_cache.keys()
        assert "Widget_Name_Gear_public" in memory_cache.keys()
        assert decode(memory_cache.fetch("Widget_1_public")) == {"ID": 1, "Name": "Gear", "Price": 9.99}

    def test_cached_entries_use_long_ttl(self, persister, memory_cache, settings):
        _widget(persister)
        persister.find_unique("Widget", "ID", 1)

        entry = memory_cache._store["Widget_1_public"]
        assert entry.expires_at is not None

    def test_cache_hit_skips_store(self, store, cache_aside, settings):
        """Test warm read.

        ЧТО ПРОВЕРЯЕМ:
            A cached entity is returned without preparing any statement
        """
        persister = Persister(store, cache_aside, settings)
        _widget(persister)
        persister.find_unique("Widget", "ID", 1)

        spy = Mock(wraps=store)
        warm = Persister(spy, cache_aside, settings, catalog=persister.catalog)
        found = warm.find_unique("Widget", "ID", 1)

        assert found.snapshot() == {"ID": 1, "Name": "Gear", "Price": 9.99}
        assert found.state == EntityState.CLEAN
        spy.prepare.assert_not_called()

    def test_repeated_lookups_cache_identical_bytes(self, persister, memory_cache):
        """Test idempotent caching.

        ЧТО ПРОВЕРЯЕМ:
            Two cold lookups of an unchanged row store the same bytes
        """
        _widget(persister)
        persister.find_unique("Widget", "ID", 1)
        first = memory_cache.fetch("Widget_Name_Gear_public")

        memory_cache.flush("Widget_1_public")
        memory_cache.flush("Widget_Name_Gear_public")
        persister.find_unique("Widget", "ID", 1)

        assert memory_cache.fetch("Widget_Name_Gear_public") == first

    def test_secondary_key_may_be_stale_after_write(self, persister):
        """Writes do not refresh entries keyed by other unique fields."""
        widget = _widget(persister)
        persister.find_unique("Widget", "Name", "Gear")

        widget.SetPrice(20.0)
        widget.write()

        stale = persister.find_unique("Widget", "Name", "Gear")
        assert stale.GetPrice() == 9.99

    def test_undeclared_field(self, persister):
        with pytest.raises(UnknownAttributeError):
            persister.find_unique("Widget", "Weight", 1)

    def test_non_unique_field(self, persister):
        with pytest.raises(SchemaError, match="not a unique key"):
            persister.find_unique("Widget", "Price", 9.99)

    def test_private_entities_cached_per_session(self, persister, memory_cache, session):
        attachment = persister.create_new(Attachment)
        attachment.SetLabel("icon")
        attachment.write()

        persister.find_unique(Attachment, "ID", attachment.id)

        key = persister.entity_cache.key("Attachment", attachment.id, private=True)
        assert key in memory_cache.keys()
        assert session.sid not in key

    def test_custom_post_create(self, persister, memory_cache):
        """Entity types can replace the cache re-seeding hook."""
        calls = []

        class Quiet(DataObject):
            __relation__ = "Widget"
            data_is_private = False

            def post_create(self):
                calls.append(self.id)

        _widget(persister)
        found = persister.find_unique(Quiet, "ID", 1)

        assert calls == [1]
        assert found.GetName() == "Gear"
        assert not any(key.startswith("Quiet_1") for key in memory_cache.keys())


# =============================================================================
# Field Change Tests
# =============================================================================

@pytest.mark.unit
class TestSet:
    """Tests for field changes."""

    def test_id_is_immutable_in_every_state(self, persister):
        """Test ID protection.

        ЧТО ПРОВЕРЯЕМ:
            SetID raises on fresh and persisted entities and ID is unchanged
        """
        fresh = persister.create_new(Widget)
        with pytest.raises(ImmutableFieldError):
            fresh.SetID(7)
        assert fresh.GetID() == 0

        written = _widget(persister)
        with pytest.raises(ImmutableFieldError):
            written.set("ID", 7)
        with pytest.raises(ImmutableFieldError):
            written.ID = 7
        assert written.id == 1

    def test_delayed_set_touches_snapshot_only(self, persister, select_row):
        widget = _widget(persister)
        widget.SetPrice(1.0)

        assert widget.state == EntityState.DIRTY
        assert select_row("Widget", 1)["Price"] == 9.99

    def test_identical_value_is_a_noop(self, store, cache_aside, settings):
        """Test no-op suppression.

        ЧТО ПРОВЕРЯЕМ:
            Setting an identical value issues no store call, even in immediate mode
        """
        spy = Mock(wraps=store)
        persister = Persister(spy, cache_aside, settings)
        widget = _widget(persister)
        widget.write(keep_delayed=False)
        spy.prepare.reset_mock()

        widget.SetName("Gear")
        widget.SetPrice(9.99)

        spy.prepare.assert_not_called()
        assert widget.state == EntityState.CLEAN

    def test_equal_value_of_other_type_is_applied(self, persister):
        """Identity is type-aware: 10 is not 10.0."""
        widget = _widget(persister, price=10.0)
        widget.SetPrice(10)

        assert widget.state == EntityState.DIRTY
        assert type(widget.GetPrice()) is int

    def test_immediate_mode_updates_single_column(self, store, cache_aside, settings, select_row):
        """Test immediate writes.

        ЧТО ПРОВЕРЯЕМ:
            With delayed writes off, set issues one UPDATE of the column
        """
        spy = Mock(wraps=store)
        persister = Persister(spy, cache_aside, settings)
        widget = _widget(persister)
        widget.write(keep_delayed=False)
        spy.prepare.reset_mock()

        widget.SetName("Cog")

        assert spy.prepare.call_count == 1
        sql = spy.prepare.call_args[0][0]
        assert sql.startswith('UPDATE "Widget" SET "Name" = ?')
        assert select_row("Widget", 1)["Name"] == "Cog"
        assert widget.state == EntityState.DIRTY

    def test_immediate_mode_failure_keeps_snapshot(self, persister):
        _widget(persister, name="Gear")
        other = _widget(persister, name="Cog")
        other.write(keep_delayed=False)

        with pytest.raises(StoreError):
            other.SetName("Gear")

        assert other.GetName() == "Cog"

    def test_immediate_mode_without_id_inserts(self, persister, select_row):
        counter = persister.create_new(Widget)
        counter._delay_writes = False

        counter.SetName("Sprocket")

        assert counter.id == 1
        assert select_row("Widget", 1)["Name"] == "Sprocket"

    def test_delay_writes_turns_buffering_back_on(self, persister, select_row):
        widget = _widget(persister)
        widget.write(keep_delayed=False)
        widget.delay_writes()

        widget.SetName("Cog")

        assert widget.delayed is True
        assert select_row("Widget", 1)["Name"] == "Gear"

    def test_unknown_field(self, persister):
        widget = persister.create_new(Widget)

        with pytest.raises(UnknownAttributeError):
            widget.SetWeight(5)
        with pytest.raises(UnknownAttributeError):
            widget.Weight


# =============================================================================
# Accessor Routing Tests
# =============================================================================

@pytest.mark.unit
class TestAccessors:
    """Tests for DataObject attribute routing."""

    def test_plain_attribute_read_and_write(self, persister):
        widget = persister.create_new(Widget)
        widget.Name = "Gear"

        assert widget.Name == "Gear"
        assert widget.get("Name") == "Gear"
        assert widget.state == EntityState.DIRTY

    def test_lowercase_prefix(self, persister):
        widget = persister.create_new(Widget)
        widget.setName("Gear")

        assert widget.getName() == "Gear"

    def test_hasattr(self, persister):
        widget = persister.create_new(Widget)

        assert hasattr(widget, "Name")
        assert not hasattr(widget, "Weight")

    def test_private_attributes_not_routed(self, persister):
        widget = persister.create_new(Widget)
        widget._scratch = 1

        assert widget._scratch == 1
        assert "_scratch" not in widget.snapshot()

    def test_override_keeps_validation(self, persister):
        """Subclass accessors call set() and keep the shared checks."""

        class Shouty(DataObject):
            __relation__ = "Widget"

            def SetName(self, value):
                self.set("Name", value.upper())

        shouty = persister.create_new(Shouty)
        shouty.SetName("gear")

        assert shouty.GetName() == "GEAR"
        with pytest.raises(ImmutableFieldError):
            shouty.SetID(1)


# =============================================================================
# Removal Tests
# =============================================================================

@pytest.mark.integration
class TestRemove:
    """Tests for remove, reset and dispose."""

    def test_remove(self, persister, memory_cache, select_row):
        """Test deletion.

        ЧТО ПРОВЕРЯЕМ:
            Row is deleted, ID reset to 0, cached keys flushed, state DELETED
        """
        widget = _widget(persister)
        persister.find_unique(Widget, "ID", 1)
        widget.remove()

        assert widget.id == 0
        assert widget.state == EntityState.DELETED
        assert select_row("Widget", 1) is None
        assert memory_cache.keys() == ["Widget_keys_public"]
        with pytest.raises(NotFoundError):
            persister.find_unique(Widget, "ID", 1)

    def test_remove_unwritten_raises(self, persister):
        with pytest.raises(MissingIdentifierError):
            persister.create_new(Widget).remove()

    def test_deleted_entity_rejects_mutation(self, persister):
        widget = _widget(persister)
        widget.remove()

        with pytest.raises(EntityStateError):
            widget.SetName("Cog")
        with pytest.raises(EntityStateError):
            widget.write()
        with pytest.raises(EntityStateError):
            widget.remove()
        assert widget.GetName() == "Gear"

    def test_reset_after_remove(self, persister):
        widget = _widget(persister)
        widget.remove()
        widget.reset()

        assert widget.state == EntityState.TRANSIENT
        assert widget.snapshot() == {"ID": 0, "Name": "", "Price": 0.0}
        widget.SetName("Again")
        widget.write()
        assert widget.id == 2

    def test_dispose_recaches_private_snapshot(self, persister, memory_cache, session):
        """Test disposal.

        ЧТО ПРОВЕРЯЕМ:
            Leaving the entity context re-caches it under its ID with dispose_ttl
        """
        attachment = persister.create_new(Attachment)
        attachment.write()
        key = persister.entity_cache.key("Attachment", attachment.id, private=True)

        with attachment:
            attachment.SetLabel("edited")

        assert decode(memory_cache.fetch(key))["Label"] == "edited"
        assert memory_cache._store[key].expires_at is not None

    def test_dispose_without_ttl_does_nothing(self, persister, memory_cache):
        widget = _widget(persister)

        assert widget.dispose() is False
        assert "Widget_1_public" not in memory_cache.keys()


# =============================================================================
# Bulk Tests
# =============================================================================

@pytest.mark.integration
class TestBulk:
    """Tests for create_from_rows and list queries."""

    def test_from_rows(self, persister):
        widgets = Widget.from_rows(
            [{"ID": 4, "Name": "A", "Price": 1.0}, {"ID": 5, "Name": "B", "Price": 2.0}],
            persister=persister,
        )

        assert [w.id for w in widgets] == [4, 5]
        assert all(w.state == EntityState.CLEAN for w in widgets)

    @pytest.mark.parametrize("row", [
        {"ID": 1, "Name": "A"},
        {"ID": 1, "Name": "A", "Price": 1.0, "Weight": 3},
    ])
    def test_shape_mismatch(self, persister, row):
        with pytest.raises(ShapeMismatchError):
            persister.create_from_rows(Widget, [row])

    def test_from_rows_bypasses_cache(self, persister, memory_cache):
        persister.create_from_rows(Widget, [{"ID": 4, "Name": "A", "Price": 1.0}])
        assert memory_cache.keys() == ["Widget_keys_public"]

    def test_find_all(self, persister):
        _widget(persister, name="A")
        _widget(persister, name="B")

        assert [w.GetName() for w in Widget.get_all(persister=persister)] == ["A", "B"]

    def test_find_all_by(self, persister):
        owner = _widget(persister)
        for serial in ("S1", "S2"):
            gadget = persister.create_new(Gadget)
            gadget.SetOwner(owner.id)
            gadget.SetSerial(serial)
            gadget.write()

        gadgets = Gadget.get_all_by("Owner", owner.id, persister=persister)

        assert [g.GetSerial() for g in gadgets] == ["S1", "S2"]
        assert Gadget.get_all_by("Owner", 99, persister=persister) == []

    def test_find_all_by_undeclared_field(self, persister):
        with pytest.raises(UnknownAttributeError):
            persister.find_all_by(Gadget, "Colour", "red")
