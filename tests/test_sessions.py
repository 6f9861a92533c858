"""
Tests for the session store and cookie signing.
"""

from datetime import timedelta

import pytest

from playerhub.security import new_session_id, sign_session_id, unsign_session_id
from playerhub.sessions import SessionStore


def test_sign_roundtrip():
    sid = new_session_id()
    signed = sign_session_id(sid, "key")
    assert sid not in signed.split(".")
    assert unsign_session_id(signed, "key") == sid


def test_unsign_wrong_key():
    signed = sign_session_id(new_session_id(), "key")
    assert unsign_session_id(signed, "other-key") is None
    assert unsign_session_id("garbage", "key") is None


def test_session_ids_are_unique():
    assert len({new_session_id() for _ in range(100)}) == 100


@pytest.mark.asyncio
async def test_create_and_get(db_session, session_store: SessionStore):
    created = await session_store.create(db_session, "user-1")

    found = await session_store.get(db_session, created.sid)
    assert found is not None
    assert found.user_id == "user-1"
    assert found.expire == created.expire


@pytest.mark.asyncio
async def test_get_unknown(db_session, session_store: SessionStore):
    assert await session_store.get(db_session, "missing") is None


@pytest.mark.asyncio
async def test_expired_session_not_returned(db_session):
    store = SessionStore(ttl=timedelta(seconds=-1))
    created = await store.create(db_session, "user-1")

    assert await store.get(db_session, created.sid) is None


@pytest.mark.asyncio
async def test_destroy_is_idempotent(db_session, session_store: SessionStore):
    created = await session_store.create(db_session, "user-1")

    await session_store.destroy(db_session, created.sid)
    await session_store.destroy(db_session, created.sid)

    assert await session_store.get(db_session, created.sid) is None


@pytest.mark.asyncio
async def test_purge_expired(db_session, session_store: SessionStore):
    expired_store = SessionStore(ttl=timedelta(seconds=-1))
    await expired_store.create(db_session, "old")
    live = await session_store.create(db_session, "new")

    assert await session_store.purge_expired(db_session) == 1
    assert await session_store.get(db_session, live.sid) is not None
