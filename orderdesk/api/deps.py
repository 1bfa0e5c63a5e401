from typing import Annotated, Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.database import get_db


async def get_actor(
    x_actor_id: Annotated[Optional[str], Header(max_length=100)] = None,
) -> Optional[str]:
    """
    Identity of the caller, recorded on history entries and stock movements.

    Authentication happens upstream; the gateway forwards the identity in
    the X-Actor-Id header.
    """
    return x_actor_id or None


# Type aliases for cleaner dependency injection
DB = Annotated[AsyncSession, Depends(get_db)]
Actor = Annotated[Optional[str], Depends(get_actor)]
