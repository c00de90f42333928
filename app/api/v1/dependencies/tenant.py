"""Tenant dependency: resolve the tenant (organization) id from the header."""

from __future__ import annotations

import re

from fastapi import HTTPException, Request

from app.core.config import get_settings

# Organization ids are CUIDs or UUIDs
_TENANT_ID_RE = re.compile(r"[A-Za-z0-9_-]{1,64}")


async def get_tenant_id(request: Request) -> str:
    """Return the tenant id from the configured header.

    Membership checks happen upstream (authentication is out of scope); only
    presence and format are validated here.
    """
    name = get_settings().tenant_header_name
    value = request.headers.get(name)
    if not value:
        raise HTTPException(
            status_code=400,
            detail=f"Missing required header: {name}",
        )
    if not _TENANT_ID_RE.fullmatch(value):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid {name} format (letters, digits, '-' and '_', at most 64 characters)",
        )
    return value
