"""
app/api/deps.py

Purpose: Request dependencies

- Resolve the caller's principal from the bearer token
- Hand routes the shared store, database and LLM client
  built at startup (app.state)
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.ai.llm_client import LlmClient
from app.core.exceptions import AuthenticationError
from app.db.rules import Principal
from app.db.store import DocumentStore
from app.services.auth_service import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_db(request: Request):
    return request.app.state.database


def get_llm(request: Request) -> LlmClient:
    return request.app.state.llm


async def get_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    """
    Raises:
        AuthenticationError: If no valid bearer token was sent
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Not authenticated")
    return decode_access_token(credentials.credentials)
