"""
Schema registry: define/lookup, builder validation, sealing, subclass visibility.
"""

from __future__ import annotations

import pytest

from typed_store.codec import AttributeType
from typed_store.core.errors import (
    CoercionError,
    DisallowedValueError,
    DuplicateAttributeError,
    DuplicateStoreError,
    RegistrySealedError,
    SchemaError,
    UndefinedStoreError,
    UnknownTypeError,
)
from typed_store.schema import (
    BackendConfig,
    SchemaRegistry,
    StorageMode,
    get_registry,
    set_registry,
)


class User:
    pass


INLINE = BackendConfig(StorageMode.INLINE, "settings")


def _build(s):
    s.boolean("allow_comments", default=True)
    s.string("theme", default="light", allowed={"light", "dark"})
    s.integer("max_replies", default=50)


def test_define_then_lookup_preserves_declaration_order():
    registry = SchemaRegistry()
    schema = registry.define(User, "settings", INLINE, _build)
    assert registry.lookup(User, "settings") is schema
    assert schema.names == ["allow_comments", "theme", "max_replies"]
    assert schema["theme"].type is AttributeType.STRING
    assert schema["theme"].allowed == frozenset({"light", "dark"})
    assert schema["max_replies"].default == 50
    assert "theme" in schema
    assert "missing" not in schema
    assert len(schema) == 3
    assert len(registry) == 1


def test_builder_invoked_exactly_once():
    calls = []

    def build(s):
        calls.append(s)
        s.text("bio")

    registry = SchemaRegistry()
    registry.define(User, "profile", INLINE, build)
    registry.lookup(User, "profile")
    registry.lookup(User, "profile")
    assert len(calls) == 1


def test_lookup_undefined_store_raises():
    registry = SchemaRegistry()
    with pytest.raises(UndefinedStoreError) as exc_info:
        registry.lookup(User, "nope")
    assert exc_info.value.store == "nope"
    assert exc_info.value.owner_type is User


def test_duplicate_attribute_rejected():
    def build(s):
        s.string("theme")
        s.text("theme")

    registry = SchemaRegistry()
    with pytest.raises(DuplicateAttributeError) as exc_info:
        registry.define(User, "settings", INLINE, build)
    assert exc_info.value.attribute == "theme"
    assert len(registry) == 0


def test_duplicate_store_rejected():
    registry = SchemaRegistry()
    registry.define(User, "settings", INLINE, _build)
    with pytest.raises(DuplicateStoreError):
        registry.define(User, "settings", INLINE, _build)


def test_unknown_type_token_rejected():
    def build(s):
        s.attribute("decimal", "price")

    with pytest.raises(UnknownTypeError) as exc_info:
        SchemaRegistry().define(User, "settings", INLINE, build)
    assert "boolean" in str(exc_info.value)


def test_type_tokens_accepted_as_strings():
    def build(s):
        s.attribute("Boolean", "flag")
        s.attribute(" datetime ", "seen_at")

    schema = SchemaRegistry().define(User, "settings", INLINE, build)
    assert schema["flag"].type is AttributeType.BOOLEAN
    assert schema["seen_at"].type is AttributeType.DATETIME


@pytest.mark.parametrize("name", ["", "1st", "has space", "class", "dash-name"])
def test_invalid_attribute_names_rejected(name):
    def build(s):
        s.string(name)

    with pytest.raises(SchemaError):
        SchemaRegistry().define(User, "settings", INLINE, build)


def test_invalid_store_name_rejected():
    with pytest.raises(SchemaError):
        SchemaRegistry().define(User, "bad name", INLINE, _build)


def test_literal_default_is_coerced_and_checked_against_allowed():
    def coerced(s):
        s.integer("limit", default="10")

    schema = SchemaRegistry().define(User, "settings", INLINE, coerced)
    assert schema["limit"].default == 10

    def disallowed(s):
        s.string("theme", default="blue", allowed={"light", "dark"})

    with pytest.raises(DisallowedValueError):
        SchemaRegistry().define(User, "other", INLINE, disallowed)

    def uncoercible(s):
        s.integer("limit", default="ten")

    with pytest.raises(CoercionError):
        SchemaRegistry().define(User, "third", INLINE, uncoercible)


def test_callable_default_kept_as_is():
    def build(s):
        s.datetime("trial_ends_at", default=lambda owner: owner.created_at)

    schema = SchemaRegistry().define(User, "settings", INLINE, build)
    assert schema["trial_ends_at"].has_callable_default
    assert schema["trial_ends_at"].type is AttributeType.DATETIME


def test_sealed_registry_rejects_define():
    registry = SchemaRegistry()
    registry.define(User, "settings", INLINE, _build)
    registry.seal()
    assert registry.sealed
    with pytest.raises(RegistrySealedError):
        registry.define(User, "profile", INLINE, _build)
    assert registry.lookup(User, "settings").name == "settings"


def test_subclass_sees_base_stores_base_first():
    class Base:
        pass

    class Child(Base):
        pass

    registry = SchemaRegistry()
    base_schema = registry.define(Base, "settings", INLINE, _build)
    child_schema = registry.define(
        Child,
        "metadata",
        BackendConfig(StorageMode.ASSOCIATED, "child_metadata"),
        lambda s: s.string("source"),
    )
    assert registry.lookup(Child, "settings") is base_schema
    assert registry.schemas_for(Child) == [base_schema, child_schema]
    with pytest.raises(UndefinedStoreError):
        registry.lookup(Base, "metadata")


def test_before_register_veto_leaves_registry_untouched():
    registry = SchemaRegistry()

    def veto(schema):
        raise SchemaError("vetoed")

    with pytest.raises(SchemaError):
        registry.define(User, "settings", INLINE, _build, before_register=veto)
    assert len(registry) == 0
    registry.define(User, "settings", INLINE, _build)
    assert len(registry) == 1


def test_backend_config_validates_location():
    with pytest.raises(SchemaError):
        BackendConfig(StorageMode.ASSOCIATED, "users; DROP TABLE users")
    with pytest.raises(SchemaError):
        BackendConfig(StorageMode.INLINE, "settings", owner_key="")


def test_hooks_created_once_per_owner_type():
    registry = SchemaRegistry()
    hooks = registry.hooks(User)
    assert registry.hooks(User) is hooks
    assert len(hooks.callbacks("before_save")) == 1


def test_set_registry_installs_process_default():
    previous = get_registry()
    fresh = SchemaRegistry()
    try:
        set_registry(fresh)
        assert get_registry() is fresh
    finally:
        set_registry(previous)
