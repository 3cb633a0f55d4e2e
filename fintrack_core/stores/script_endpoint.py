# =============================================================================
# fintrack_core/stores/script_endpoint.py
# Remote Store A - scripted spreadsheet endpoint
# =============================================================================
"""
Client for the spreadsheet web-app endpoint.

One URL accepts JSON action payloads:

    POST {"action": "SAVE", "id": "npf_2025", "type": "npf", "year": 2025, "data": {...}}
    GET  ?id=npf_2025

and answers ``{"status": "success"|"error", "data"?, "user"?, "users"?, "message"?}``.
POST bodies go out as ``text/plain`` so the hosting platform does not demand a
CORS preflight.
"""

from __future__ import annotations
import json
from typing import Any, Dict, List, Optional

import requests

from fintrack_core.errors import NotConfiguredError, RejectedError, RemoteUnreachableError
from fintrack_core.logging import get_logger
from fintrack_core.models import ReportRecord, UserProfile
from fintrack_core.stores.base import RecordStore

logger = get_logger(__name__)

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"


class ScriptEndpointClient(RecordStore):
    """
    Remote Store A.

    Usage:
        client = ScriptEndpointClient("https://script.google.com/macros/s/<id>/exec")
        client.fetch("daily_2025-06-01")
    """

    name = "script"
    # The action protocol has no delete verb
    supports_delete = False

    def __init__(
        self,
        url: str,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "text/plain;charset=utf-8"})

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    def call(self, payload: Dict[str, Any], method: str = "POST") -> Dict[str, Any]:
        """
        Send one action payload and return the decoded response.

        GET requests encode the payload as a query string; POST requests send
        it as a JSON body.

        Raises:
            RemoteUnreachableError: transport failure, HTTP error status or a
                body that is not a JSON object
        """
        operation = payload.get("action") or payload.get("check") or "GET"
        try:
            if method.upper() == "GET":
                response = self.session.get(
                    self.url,
                    params=_query_params(payload),
                    timeout=self.timeout,
                )
            else:
                response = self.session.post(
                    self.url,
                    data=json.dumps(payload).encode("utf-8"),
                    timeout=self.timeout,
                )
            response.raise_for_status()
            body = response.json()
        except requests.exceptions.RequestException as e:
            raise RemoteUnreachableError(
                f"Script endpoint request failed: {e}",
                store=self.name,
                operation=operation,
            ) from e
        except ValueError as e:
            raise RemoteUnreachableError(
                "Script endpoint returned a non-JSON body",
                store=self.name,
                operation=operation,
            ) from e

        if not isinstance(body, dict):
            raise RemoteUnreachableError(
                "Script endpoint returned an unexpected body",
                store=self.name,
                operation=operation,
            )
        return body

    def call_action(self, payload: Dict[str, Any], method: str = "POST") -> Dict[str, Any]:
        """Like ``call`` but converts an ``error`` status into RejectedError."""
        body = self.call(payload, method)
        if body.get("status") != STATUS_SUCCESS:
            message = body.get("message") or body.get("error") or "Request was rejected."
            raise RejectedError(message, email=payload.get("email"))
        return body

    # =========================================================================
    # RECORD STORE
    # =========================================================================

    def fetch(self, record_id: str) -> Optional[Any]:
        body = self.call({"id": record_id}, method="GET")
        if body.get("status") == STATUS_SUCCESS and body.get("data"):
            return body["data"]
        return None

    def store(self, record: ReportRecord) -> None:
        body = self.call(
            {
                "action": "SAVE",
                "id": record.id,
                "type": record.kind.value,
                "year": record.year,
                "data": record.payload,
            }
        )
        if body.get("status") != STATUS_SUCCESS:
            raise RemoteUnreachableError(
                body.get("message") or "Script endpoint refused the save",
                store=self.name,
                operation="SAVE",
                details={"id": record.id},
            )
        logger.debug(f"Script save result for {record.id}: {body.get('status')}")

    def remove(self, record_id: str) -> None:
        raise NotConfiguredError(
            "The script endpoint has no delete action",
            store=self.name,
            details={"id": record_id},
        )

    def ping(self) -> None:
        body = self.call({"check": "ping"}, method="GET")
        if body.get("status") != STATUS_SUCCESS:
            raise RemoteUnreachableError("Script endpoint ping did not succeed", store=self.name, operation="ping")

    # =========================================================================
    # AUTH ACTIONS
    # =========================================================================

    def login(self, email: str, password_hash: str) -> UserProfile:
        body = self.call_action({"action": "LOGIN", "email": email, "password_hash": password_hash})
        return _profile_from(body, email)

    def register(self, email: str, password_hash: str, name: str) -> UserProfile:
        body = self.call_action(
            {"action": "REGISTER", "email": email, "password_hash": password_hash, "name": name}
        )
        return _profile_from(body, email)

    def request_reset(self, email: str, reset_link: str) -> str:
        body = self.call_action({"action": "RESET_REQUEST", "email": email, "resetLink": reset_link})
        return body.get("message") or "Reset link sent."

    def confirm_reset(self, email: str, token: str, password_hash: str) -> str:
        body = self.call_action(
            {"action": "RESET_CONFIRM", "email": email, "token": token, "password_hash": password_hash}
        )
        return body.get("message") or "Password updated."

    def get_users(self) -> List[UserProfile]:
        body = self.call_action({"action": "GET_USERS"}, method="GET")
        users = body.get("users") or body.get("data") or []
        return [UserProfile.from_dict(user) for user in users]


def _query_params(payload: Dict[str, Any]) -> Dict[str, str]:
    """Flatten a payload for a query string; nested values are sent as JSON."""
    params = {}
    for key, value in payload.items():
        if value is None:
            continue
        if isinstance(value, (dict, list)):
            params[key] = json.dumps(value)
        else:
            params[key] = str(value)
    return params


def _profile_from(body: Dict[str, Any], email: str) -> UserProfile:
    user = body.get("user")
    if not isinstance(user, dict):
        raise RemoteUnreachableError(
            "Script endpoint answered success without a user",
            store=ScriptEndpointClient.name,
            details={"email": email},
        )
    return UserProfile.from_dict(user)
