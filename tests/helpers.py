"""
In-memory stand-in for the marketplace API.

Served through ``httpx.MockTransport`` so the session client exercises its
real request building, header handling and response parsing.
"""

import json
import asyncio

import httpx

from api_sessions.state import SessionContext
from api_sessions.client import SessionClient
from api_sessions.types import CredentialPair
from api_sessions.stores import MemoryCredentialStore


BASE_URL = "https://api.herhomes.test"

STALE = CredentialPair("stale-access", "stale-refresh")
FRESH = CredentialPair("fresh-access", "fresh-refresh")
SIGNED_IN = CredentialPair("signin-access", "signin-refresh")

USER = {
    "id": "u-1",
    "name": "Ada Obi",
    "email": "ada@example.com",
    "role": "applicant",
}


def envelope(data=None, message="OK", success=True):
    return {"success": success, "message": message, "data": data}


class FakeMarketplaceAPI:
    def __init__(self):
        self.valid_access_tokens = {FRESH.access_token}
        self.valid_refresh_tokens = {STALE.refresh_token}
        self.rotated = FRESH
        self.accounts = {USER["email"]: "correct-horse"}
        self.sign_in_user = None

        self.refresh_status = 200
        self.refresh_payload = None
        self.refresh_statuses = []
        self.refresh_bodies = []
        self.refresh_gate = None
        self.release_refresh_after = None

        self.fail_network_for = set()
        self.routes = {}
        self.requests = []
        self.unauthorized = 0
        self.hooks = {}

    @property
    def refresh_calls(self):
        return len(self.refresh_bodies)

    def hold_refresh_until_unauthorized(self, count):
        """Blocks the refresh endpoint until ``count`` requests were rejected."""
        self.refresh_gate = asyncio.Event()
        self.release_refresh_after = count

    def on(self, event, callback):
        """Runs ``callback`` once, the next time ``event`` happens."""
        self.hooks[event] = callback

    def _fire(self, event):
        callback = self.hooks.pop(event, None)
        if callback is not None:
            callback()

    def route(self, method, path, status=200, payload=None):
        self.routes[(method, path)] = (status, payload)

    def calls_to(self, path):
        return [request for request in self.requests if request.url.path == path]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path in self.fail_network_for:
            raise httpx.ConnectError("connection refused", request=request)

        if path == "/auth/session/refresh":
            return await self._refresh(request)

        if path == "/auth/signin":
            return self._sign_in(request)

        if (request.method, path) in self.routes:
            status, payload = self.routes[(request.method, path)]
            if status == 401:
                return self._unauthorized()
            return httpx.Response(status, json=payload)

        if not self._authorized(request):
            return self._unauthorized()

        if path == "/user":
            return httpx.Response(200, json=envelope(USER))

        return httpx.Response(200, json=envelope({"path": path}))

    def _authorized(self, request):
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        return scheme == "Bearer" and token in self.valid_access_tokens

    def _unauthorized(self):
        self.unauthorized += 1
        self._fire("unauthorized")
        if (
            self.refresh_gate is not None
            and self.unauthorized >= self.release_refresh_after
        ):
            self.refresh_gate.set()
        return httpx.Response(401, json={"success": False, "message": "Unauthorized"})

    async def _refresh(self, request):
        body = json.loads(request.content or b"{}")
        self.refresh_bodies.append(body)

        if self.refresh_gate is not None:
            await self.refresh_gate.wait()

        self._fire("refresh")

        if self.refresh_statuses:
            status = self.refresh_statuses.pop(0)
            if status != 200:
                return httpx.Response(status, json={"message": "Server error"})

        if self.refresh_status != 200:
            return httpx.Response(self.refresh_status, json={"message": "Expired"})

        if body.get("refresh_token") not in self.valid_refresh_tokens:
            return httpx.Response(401, json={"message": "Invalid refresh token"})

        # Rotation: the presented refresh token is single use.
        self.valid_refresh_tokens.discard(body["refresh_token"])
        self.valid_refresh_tokens.add(self.rotated.refresh_token)

        payload = self.refresh_payload or envelope(self.rotated._asdict())
        return httpx.Response(200, json=payload)

    def _sign_in(self, request):
        body = json.loads(request.content or b"{}")
        if self.accounts.get(body.get("email")) != body.get("password"):
            return httpx.Response(
                401, json={"success": False, "message": "Invalid email or password"}
            )
        self.valid_access_tokens.add(SIGNED_IN.access_token)
        self.valid_refresh_tokens.add(SIGNED_IN.refresh_token)

        data = SIGNED_IN._asdict()
        if self.sign_in_user is not None:
            data["user"] = self.sign_in_user
        return httpx.Response(200, json=envelope(data))


def make_client(api, credentials=None, store=None):
    if store is None:
        store = MemoryCredentialStore(credentials)
    elif credentials is not None:
        store.set(credentials)

    http = httpx.AsyncClient(transport=httpx.MockTransport(api), base_url=BASE_URL)
    return SessionClient(context=SessionContext(store=store), http=http)
