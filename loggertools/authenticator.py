"""Fetches client-credential tokens from a UAA server."""

import json

import requests


class AuthenticationError(Exception):
    """Raised when no token could be obtained."""


class UAAClient:
    """Obtains bearer tokens with the client-credentials grant."""

    def __init__(self, client_id, client_secret, uaa_addr, session=None):
        self._client_id = client_id
        self._client_secret = client_secret
        self._uaa_addr = uaa_addr
        self._session = session if session is not None else requests.Session()

    def token(self):
        """Return ``"bearer <access token>"``; raises AuthenticationError."""
        try:
            response = self._session.post(
                self._uaa_addr + "/oauth/token",
                data={
                    "response_type": "token",
                    "grant_type": "client_credentials",
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                },
            )
        except (requests.RequestException, OSError) as exc:
            raise AuthenticationError(str(exc)) from exc

        try:
            if response.status_code != 200:
                raise AuthenticationError(
                    "Expected 200 status code from /oauth/token, "
                    f"got {response.status_code}"
                )
            body = response.content
        finally:
            response.close()

        try:
            data = json.loads(body)
        except ValueError as exc:
            raise AuthenticationError(str(exc)) from exc
        if not isinstance(data, dict) or "access_token" not in data:
            raise AuthenticationError("No access_token on UAA oauth response")
        access_token = data["access_token"]
        if not isinstance(access_token, str):
            raise AuthenticationError("access_token on UAA oauth response not a string")
        return "bearer " + access_token