"""
Models describing the authenticated caller.
"""
from typing import Optional

from pydantic import BaseModel


class AuthenticatedUser(BaseModel):
    """Identity and role injected into the sales endpoints."""
    id: str
    role: Optional[str] = None
