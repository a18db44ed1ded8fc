"""Caller identity supplied by the host.

Authentication happens upstream (gateway or auth middleware); the API trusts
the user id it is handed.
"""
from fastapi import Header


async def get_current_user_id(
    x_user_id: int = Header(..., ge=1, description="Authenticated caller's user id"),
) -> int:
    return x_user_id
