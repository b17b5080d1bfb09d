import time

from jose import jwt

from services.reconciliation import registry
from services.session_store import SessionStore, token_expired


def make_token(exp_offset):
    return jwt.encode({"sub": "1", "exp": int(time.time()) + exp_offset}, "secret", algorithm="HS256")


def test_token_expiry_reads_exp_claim():
    assert token_expired(make_token(-60))
    assert not token_expired(make_token(3600))


def test_opaque_tokens_never_expire():
    assert not token_expired("not-a-jwt")
    assert not token_expired(jwt.encode({"sub": "1"}, "secret", algorithm="HS256"))


def test_create_and_get(db):
    store = SessionStore(db)

    session = store.create(role="admin", access_token=make_token(3600), user_id=7,
                           display_name="admin@school.in", info={"id": 7})

    loaded = store.get(session.id)
    assert loaded.role == "admin"
    assert loaded.user_id == "7"
    assert loaded.info == {"id": 7}
    assert loaded.sidebar_collapsed is False


def test_unknown_or_missing_session(db):
    store = SessionStore(db)
    assert store.get(None) is None
    assert store.get("nope") is None


def test_expired_session_is_removed(db):
    store = SessionStore(db)
    session = store.create(role="student", access_token=make_token(-5))
    session_id = session.id

    assert store.get(session_id) is None
    assert store.get(session_id) is None
    assert store.set_sidebar_collapsed(session_id, True) is False


def test_sidebar_preference_persists(db):
    store = SessionStore(db)
    session = store.create(role="admin", access_token="opaque")

    assert store.set_sidebar_collapsed(session.id, True)
    assert store.get(session.id).sidebar_collapsed is True


def test_clear(db):
    store = SessionStore(db)
    session_id = store.create(role="admin", access_token="opaque").id

    store.clear(session_id)
    store.clear(None)

    assert store.get(session_id) is None


def test_expiry_drops_the_fee_collection_copy(db, client):
    store = SessionStore(db)
    session_id = store.create(role="admin", access_token=make_token(-5)).id
    working_copy = registry.get(session_id, client)

    assert store.get(session_id) is None

    assert registry.get(session_id, client) is not working_copy
    registry.discard(session_id)


def test_clear_drops_the_fee_collection_copy(db, client):
    store = SessionStore(db)
    session_id = store.create(role="admin", access_token="opaque").id
    working_copy = registry.get(session_id, client)

    store.clear(session_id)

    assert registry.get(session_id, client) is not working_copy
    registry.discard(session_id)
