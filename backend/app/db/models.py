from sqlalchemy import Column, String, DateTime, Index
from sqlalchemy.sql import func
from app.db.database import Base


class TeamMember(Base):
    """A persisted grant allowing a user to act on behalf of a shop."""
    __tablename__ = "team_members"
    __table_args__ = (
        Index("ix_team_members_shop_user", "shop_id", "user_id"),
    )

    id = Column(String(64), primary_key=True)
    shop_id = Column(String(64), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    role = Column(String(50), default="member")  # owner, admin, agent, member
    created_at = Column(DateTime(timezone=True), server_default=func.now())
