import json
import os
import sys
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from api.errors import ApiError, SessionInvalidError  # noqa: E402
from api.models import Identity, Role  # noqa: E402
from db import database  # noqa: E402
from db.storage import SessionStorage  # noqa: E402
from fake_backend import ShopTestCase  # noqa: E402
from state.session import SessionStatus, SessionStore  # noqa: E402
from utils.validation import RegistrationForm, ValidationError  # noqa: E402


class SessionStoreTestCase(ShopTestCase):
    async def fresh_store(self) -> SessionStore:
        """A second store over the same file, like restarting the app."""
        storage = SessionStorage()
        store = SessionStore(self.client, storage)
        await store.initialize()
        return store

    # ---------- persistence round trip ----------

    async def test_starts_uninitialized_then_anonymous_without_data(self):
        self.assertEqual(self.session.status, SessionStatus.UNINITIALIZED)
        self.assertTrue(self.session.is_loading)
        status = await self.session.initialize()
        self.assertEqual(status, SessionStatus.ANONYMOUS)
        self.assertFalse(self.session.is_authenticated)
        self.assertIsNone(self.session.role)

    async def test_persisted_pair_restores_identity(self):
        for identity in (
            Identity(id=1, username="alice", email="alice@example.com", role=Role.USER),
            Identity(id=42, username="root", email="root@example.com", role=Role.ADMIN),
        ):
            await self.storage.write_pair(f"token-{identity.id}", json.dumps(identity.to_json()))
            store = await self.fresh_store()
            self.assertEqual(store.status, SessionStatus.AUTHENTICATED)
            self.assertEqual(store.identity, identity)
            self.assertEqual(store.token, f"token-{identity.id}")

    async def test_half_written_or_garbage_pair_is_wiped(self):
        cases = [
            [("token", "abc")],
            [("user", json.dumps({"id": 1, "username": "a", "email": "e", "role": "USER"}))],
            [("token", "abc"), ("user", "{not json")],
            [("token", "abc"), ("user", json.dumps({"id": 1}))],
            [("token", "abc"), ("user", json.dumps({"id": 1, "username": "a", "email": "e", "role": "GOD"}))],
        ]
        for rows in cases:
            await self.storage.clear()
            async with database.connect() as conn:
                await conn.executemany("INSERT INTO kv(key, value) VALUES (?, ?);", rows)
                await conn.commit()

            store = await self.fresh_store()
            self.assertEqual(store.status, SessionStatus.ANONYMOUS, rows)
            self.assertIsNone(store.identity)
            self.assertEqual(await self.storage.read_pair(), (None, None))

    # ---------- login / register / logout ----------

    async def test_login_maps_flat_response_and_persists_pair(self):
        await self.session.initialize()
        identity = await self.session.login("alice", "secret1")

        self.assertEqual(identity, Identity(1, "alice", "alice@example.com", Role.USER))
        self.assertEqual(self.session.status, SessionStatus.AUTHENTICATED)
        self.assertFalse(self.session.is_admin)

        token, user_json = await self.storage.read_pair()
        self.assertTrue(token.startswith("tok-alice"))
        self.assertEqual(json.loads(user_json)["username"], "alice")

    async def test_failed_login_keeps_prior_state_and_raises(self):
        await self.session.initialize()
        with self.assertRaises(ApiError) as ctx:
            await self.session.login("alice", "wrong")
        self.assertEqual(ctx.exception.message, "Invalid username or password")
        self.assertEqual(self.session.status, SessionStatus.ANONYMOUS)
        self.assertEqual(await self.storage.read_pair(), (None, None))

    async def test_register_validates_before_network(self):
        await self.session.initialize()
        form = RegistrationForm("ab", "not-an-email", "123", "456", "", "Doe")
        with self.assertRaises(ValidationError) as ctx:
            await self.session.register(form)
        self.assertEqual(
            set(ctx.exception.errors),
            {"username", "email", "password", "confirm_password", "first_name"},
        )
        self.assertEqual(self.shop.requests, [])

    async def test_register_establishes_session(self):
        await self.session.initialize()
        form = RegistrationForm("carol", "carol@example.com", "pass123", "pass123", "Carol", "C")
        identity = await self.session.register(form)
        self.assertEqual(identity.username, "carol")
        self.assertEqual(identity.role, Role.USER)
        self.assertTrue(self.session.is_authenticated)
        body = json.loads(self.shop.last("/auth/register").content)
        self.assertEqual(body["firstName"], "Carol")
        self.assertNotIn("confirm_password", body)

    async def test_logout_clears_pair_without_network(self):
        await self.session.initialize()
        await self.session.login("root", "hunter22")
        self.assertTrue(self.session.is_admin)
        sent = len(self.shop.requests)

        await self.session.logout()
        self.assertEqual(self.session.status, SessionStatus.ANONYMOUS)
        self.assertEqual(await self.storage.read_pair(), (None, None))
        self.assertEqual(len(self.shop.requests), sent)

    async def test_listeners_see_every_transition(self):
        seen = []

        async def listener(store):
            seen.append(store.status)

        self.session.subscribe(listener)
        await self.session.initialize()
        await self.session.login("alice", "secret1")
        await self.session.logout()
        self.session.unsubscribe(listener)
        await self.session.login("alice", "secret1")

        self.assertEqual(
            seen,
            [SessionStatus.ANONYMOUS, SessionStatus.AUTHENTICATED, SessionStatus.ANONYMOUS],
        )

    # ---------- rejected token ----------

    async def test_rejected_token_drops_session_everywhere(self):
        await self.session.initialize()
        await self.session.login("alice", "secret1")
        self.shop.tokens.clear()  # server side expiry

        with self.assertRaises(SessionInvalidError):
            await self.client.get_profile()

        self.assertEqual(self.session.status, SessionStatus.ANONYMOUS)
        self.assertIsNone(self.session.identity)
        self.assertIsNone(self.cart.cart)
        self.assertEqual(await self.storage.read_pair(), (None, None))

    async def test_stale_persisted_token_is_discovered_by_cart_refresh(self):
        await self.storage.write_pair(
            "stale-token",
            json.dumps({"id": 1, "username": "alice", "email": "a@e.com", "role": "USER"}),
        )
        # restoring the session refreshes the cart, which the server rejects
        await self.session.initialize()

        self.assertEqual(self.session.status, SessionStatus.ANONYMOUS)
        self.assertIsNone(self.cart.cart)
        self.assertEqual(await self.storage.read_pair(), (None, None))
        self.assertEqual(
            self.shop.last("/cart").headers["Authorization"], "Bearer stale-token"
        )


if __name__ == "__main__":
    unittest.main()
