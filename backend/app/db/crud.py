from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.db.models import TeamMember


async def find_team_memberships(db: AsyncSession, shop_id: str, user_id: str) -> List[TeamMember]:
    query = select(TeamMember).where(TeamMember.shop_id == str(shop_id), TeamMember.user_id == str(user_id))
    result = await db.execute(query)
    return list(result.scalars().all())
