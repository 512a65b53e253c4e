# tests/test_identity.py
"""Tests for identity keys, global references and the type registry."""

import pytest

from ballot.errors import UnresolvableReference
from ballot.services.identity import (
    BallotRegistry,
    EntityKey,
    GlobalRef,
    cache_label,
    default_registry,
    normalize_scope,
)
from tests.models import AnonKey, Comment, Post, Tag, User


def test_normalize_scope_treats_empty_as_default() -> None:
    assert normalize_scope(None) is None
    assert normalize_scope("") is None
    assert normalize_scope("love") == "love"


def test_cache_label_uses_empty_string_for_default_scope() -> None:
    assert cache_label(None) == ""
    assert cache_label("") == ""
    assert cache_label("haha") == "haha"


def test_mapped_mixins_register_themselves() -> None:
    """Mapped voter and votable classes are resolvable by type name."""
    assert default_registry.get("User") is User
    assert default_registry.get("Post") is Post
    assert default_registry.get("Comment") is Comment
    assert default_registry.get("Anon") is AnonKey
    assert "Tag" not in default_registry
    assert "VotableMixin" not in default_registry


def test_registry_rejects_conflicting_type_names() -> None:
    registry = BallotRegistry()
    registry.register(User)
    registry.register(User)

    class Impostor:
        @classmethod
        def ballot_type(cls) -> str:
            return "User"

    with pytest.raises(ValueError):
        registry.register(Impostor)


def test_entity_key_of_entity(user: User, anon_key: AnonKey) -> None:
    assert EntityKey.of(user) == EntityKey(type="User", id=str(user.id))
    assert EntityKey.of(anon_key) == EntityKey(type="Anon", id=bytes(range(32)).hex())


def test_resolve_entity_key(db_session, user: User) -> None:
    assert default_registry.resolve(db_session, EntityKey("User", str(user.id))) is user


def test_resolve_bytes_primary_key(db_session, anon_key: AnonKey) -> None:
    resolved = default_registry.resolve(db_session, EntityKey("Anon", anon_key.user_id.hex()))
    assert resolved is anon_key


def test_resolve_passes_instances_through(db_session, tag: Tag) -> None:
    assert default_registry.resolve(db_session, tag) is tag


def test_global_ref_round_trip(db_session, post: Post) -> None:
    ref = GlobalRef.of(post)

    assert str(ref) == f"gid://ballot/Post/{post.id}"
    assert ref.to_key() == EntityKey("Post", str(post.id))
    assert default_registry.resolve(db_session, ref) is post


@pytest.mark.parametrize(
    "ref",
    [
        None,
        EntityKey("Unknown", "1"),
        EntityKey("User", "999999"),
        EntityKey("User", "not-a-number"),
        GlobalRef("gid://ballot/User"),
        GlobalRef("http://ballot/User/1"),
        GlobalRef("gid://another-app/User/1"),
    ],
)
def test_unresolvable_references(db_session, ref) -> None:
    with pytest.raises(UnresolvableReference):
        default_registry.resolve(db_session, ref)


def test_load_many_groups_by_type(db_session, user: User, other_user: User, comment: Comment) -> None:
    keys = [EntityKey.of(user), EntityKey.of(comment), EntityKey.of(other_user)]

    loaded = default_registry.load_many(db_session, keys)

    assert loaded == {keys[0]: user, keys[1]: comment, keys[2]: other_user}
