"""Token store, file storage and the login API."""

import json

import httpx
import pytest

from gitboss_ai.auth import AuthAPI, TokenStore
from gitboss_ai.errors import AuthError
from gitboss_ai.storage import FileStorage, MemoryStorage, Storage
from gitboss_ai.transport.http import HttpClient

NOW = 1_700_000_000


def make_store(storage=None) -> TokenStore:
    return TokenStore(storage if storage is not None else MemoryStorage(), clock=lambda: NOW)


class TestTokenStore:
    def test_store_and_get(self):
        store = make_store()
        store.store("tok", NOW + 60, username="octocat")
        assert store.get() == "tok"
        assert store.is_authenticated()
        assert store.username() == "octocat"

    def test_store_sets_flag(self):
        storage = MemoryStorage()
        make_store(storage).store("tok", NOW + 60)
        assert storage.get_item("is_authenticated") == "true"
        assert storage.get_item("token_expiry") == str(NOW + 60)

    def test_expired_token_is_cleared(self):
        storage = MemoryStorage()
        store = make_store(storage)
        store.store("tok", NOW - 1, username="octocat")

        assert store.get() is None
        assert storage.get_item("auth_token") is None
        assert storage.get_item("token_expiry") is None
        assert storage.get_item("username") is None
        assert storage.get_item("is_authenticated") == "false"

    def test_expiry_equal_to_now_is_invalid(self):
        store = make_store()
        store.store("tok", NOW)
        assert store.get() is None

    def test_clear_twice(self):
        store = make_store()
        store.store("tok", NOW + 60)
        store.clear()
        assert store.get() is None
        store.clear()
        assert store.get() is None
        assert not store.is_authenticated()

    @pytest.mark.parametrize("expiry", ["soon", "inf", "-inf", "1e400", "nan"])
    def test_garbage_expiry_treated_as_expired(self, expiry):
        storage = MemoryStorage()
        storage.set_item("auth_token", "tok")
        storage.set_item("token_expiry", expiry)
        store = make_store(storage)
        assert store.get() is None
        assert not store.is_authenticated()
        assert store.authenticated_ws_url("wss://chat.example.test/ws") is None

    def test_username_hidden_once_expired(self):
        storage = MemoryStorage()
        storage.set_item("auth_token", "tok")
        storage.set_item("token_expiry", str(NOW - 10))
        storage.set_item("username", "octocat")
        assert make_store(storage).username() is None

    def test_authenticated_ws_url(self):
        store = make_store()
        assert store.authenticated_ws_url("wss://x/ws") is None
        store.store("abc", NOW + 60)
        assert store.authenticated_ws_url("wss://x/ws") == "wss://x/ws?token=abc"

    def test_unavailable_storage_means_not_authenticated(self):
        class BrokenStorage(Storage):
            def get_item(self, key):
                raise OSError("disk gone")

            def set_item(self, key, value):
                raise OSError("disk gone")

            def remove_item(self, key):
                raise OSError("disk gone")

        store = make_store(BrokenStorage())
        assert store.get() is None
        assert not store.is_authenticated()
        assert not BrokenStorage().is_available()


class TestFileStorage:
    def test_round_trip_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "storage.json"
        FileStorage(path).set_item("auth_token", "tok")
        assert FileStorage(path).get_item("auth_token") == "tok"
        assert json.loads(path.read_text()) == {"auth_token": "tok"}

    def test_remove(self, tmp_path):
        storage = FileStorage(tmp_path / "s.json")
        storage.set_item("a", "1")
        storage.remove_item("a")
        storage.remove_item("missing")
        assert storage.get_item("a") is None

    def test_corrupt_file_degrades(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text("{not json")
        storage = FileStorage(path)
        assert storage.get_item("auth_token") is None
        assert storage.is_available()

    def test_token_store_on_file(self, tmp_path):
        store = make_store(FileStorage(tmp_path / "s.json"))
        store.store("tok", NOW + 60, username="octocat")
        assert make_store(FileStorage(tmp_path / "s.json")).get() == "tok"


def login_handler(request: httpx.Request) -> httpx.Response:
    body = json.loads(request.content)
    if request.url.path == "/login" and body == {"username": "octocat", "password": "hunter2"}:
        return httpx.Response(200, json={"token": "jwt-token", "expires": NOW + 3600})
    if request.url.path == "/login":
        return httpx.Response(401, json={"error": "Invalid username or password"})
    if request.url.path == "/register":
        if body["username"] == "taken":
            return httpx.Response(400, json={"detail": "Username already exists"})
        return httpx.Response(201, json={"message": "User registered"})
    return httpx.Response(404)


@pytest.fixture
def auth_api():
    store = make_store()
    http = HttpClient("http://api.test", transport=httpx.MockTransport(login_handler))
    return AuthAPI(http, store), store, http


class TestAuthAPI:
    @pytest.mark.asyncio
    async def test_login_stores_token(self, auth_api):
        api, store, _ = auth_api
        result = await api.login("octocat", "hunter2")
        assert result.token == "jwt-token"
        assert store.get() == "jwt-token"
        assert store.username() == "octocat"

    @pytest.mark.asyncio
    async def test_login_rejected(self, auth_api):
        api, store, _ = auth_api
        with pytest.raises(AuthError, match="Invalid username or password"):
            await api.login("octocat", "wrong")
        assert store.get() is None

    @pytest.mark.asyncio
    async def test_login_without_token_in_body(self):
        http = HttpClient("http://api.test", transport=httpx.MockTransport(
            lambda request: httpx.Response(200, json={"error": "Account locked"})))
        with pytest.raises(AuthError, match="Account locked"):
            await AuthAPI(http, make_store()).login("octocat", "hunter2")

    @pytest.mark.asyncio
    async def test_register(self, auth_api):
        api, _, _ = auth_api
        result = await api.register("newbie", "pw", email="n@example.com")
        assert result.message == "User registered"
        with pytest.raises(AuthError, match="Username already exists"):
            await api.register("taken", "pw")

    @pytest.mark.asyncio
    async def test_logout_clears(self, auth_api):
        api, store, _ = auth_api
        await api.login("octocat", "hunter2")
        api.logout()
        assert store.get() is None
