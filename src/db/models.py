"""SQLAlchemy declarative base and ORM models for a season."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import JSON


class Base(DeclarativeBase):
    """Base class for all database models."""


class GameStateModel(Base):
    """Season clock. One row per game."""

    __tablename__ = "game_state"

    game_id: Mapped[str] = mapped_column(String, primary_key=True)
    week: Mapped[int] = mapped_column(Integer, default=1)
    phase: Mapped[str] = mapped_column(String, default="Setup")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class HouseguestModel(Base):
    """ORM model for houseguests."""

    __tablename__ = "houseguests"

    houseguest_id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    stats: Mapped[dict] = mapped_column(JSON, nullable=False)
    traits: Mapped[list] = mapped_column(JSON, default=list)
    status: Mapped[str] = mapped_column(String, default="Active")

    is_hoh: Mapped[bool] = mapped_column(Boolean, default=False)
    is_nominated: Mapped[bool] = mapped_column(Boolean, default=False)
    is_pov_holder: Mapped[bool] = mapped_column(Boolean, default=False)
    is_player: Mapped[bool] = mapped_column(Boolean, default=False)

    hoh_wins: Mapped[int] = mapped_column(Integer, default=0)
    pov_wins: Mapped[int] = mapped_column(Integer, default=0)
    other_wins: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class RelationshipModel(Base):
    """One row per unordered pair, stored as (guest_a, guest_b) with guest_a <= guest_b."""

    __tablename__ = "relationships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    guest_a: Mapped[str] = mapped_column(String, nullable=False)
    guest_b: Mapped[str] = mapped_column(String, nullable=False)
    score: Mapped[float] = mapped_column(Float, default=0.0)
    notes: Mapped[list] = mapped_column(JSON, default=list)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    events: Mapped[list["RelationshipEventModel"]] = relationship(
        "RelationshipEventModel",
        back_populates="relationship",
        cascade="all, delete-orphan",
        order_by="RelationshipEventModel.id",
    )

    __table_args__ = (
        UniqueConstraint("guest_a", "guest_b", name="uq_rel_pair"),
        Index("idx_rel_guest_a", "guest_a"),
        Index("idx_rel_guest_b", "guest_b"),
    )


class RelationshipEventModel(Base):
    """ORM model for relationship events."""

    __tablename__ = "relationship_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    relationship_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("relationships.id", ondelete="CASCADE"), nullable=False
    )
    event_type: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    impact_score: Mapped[float] = mapped_column(Float, nullable=False)
    decayable: Mapped[bool] = mapped_column(Boolean, default=True)
    week: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    relationship: Mapped["RelationshipModel"] = relationship(
        "RelationshipModel", back_populates="events"
    )


class AllianceModel(Base):
    """ORM model for alliances."""

    __tablename__ = "alliances"

    alliance_id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    member_ids: Mapped[list] = mapped_column(JSON, default=list)
    founder_id: Mapped[str] = mapped_column(String, nullable=False)
    created_week: Mapped[int] = mapped_column(Integer, default=1)
    status: Mapped[str] = mapped_column(String, default="Active")
    stability: Mapped[float] = mapped_column(Float, default=80.0)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False)
    last_meeting_week: Mapped[int | None] = mapped_column(Integer, nullable=True)
    dissolved_by: Mapped[list] = mapped_column(JSON, default=list)


class DealModel(Base):
    """ORM model for deals."""

    __tablename__ = "deals"

    deal_id: Mapped[str] = mapped_column(String, primary_key=True)
    deal_type: Mapped[str] = mapped_column(String, nullable=False)
    proposer_id: Mapped[str] = mapped_column(String, nullable=False)
    recipient_id: Mapped[str] = mapped_column(String, nullable=False)
    week: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String, default="pending")
    trust_impact: Mapped[str] = mapped_column(String, default="medium")
    title: Mapped[str] = mapped_column(String, default="")
    description: Mapped[str] = mapped_column(Text, default="")
    context: Mapped[dict] = mapped_column(JSON, default=dict)
    expires_week: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_deal_proposer", "proposer_id"),
        Index("idx_deal_recipient", "recipient_id"),
    )


class ProposalModel(Base):
    """Pending AI-to-player proposal. The deal draft is stored as JSON until answered."""

    __tablename__ = "npc_proposals"

    proposal_id: Mapped[str] = mapped_column(String, primary_key=True)
    from_npc_id: Mapped[str] = mapped_column(String, nullable=False)
    from_npc_name: Mapped[str] = mapped_column(String, nullable=False)
    to_player_id: Mapped[str] = mapped_column(String, nullable=False)
    deal_draft: Mapped[dict] = mapped_column(JSON, nullable=False)
    reasoning: Mapped[str] = mapped_column(Text, default="")
    timestamp: Mapped[float] = mapped_column(Float, nullable=False)
    response: Mapped[str] = mapped_column(String, default="pending")


class CompetitionModel(Base):
    """ORM model for resolved competitions."""

    __tablename__ = "competitions"

    competition_id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False)
    comp_type: Mapped[str] = mapped_column(String, nullable=False)
    week: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    participants: Mapped[list] = mapped_column(JSON, default=list)
    winner_id: Mapped[str | None] = mapped_column(String, nullable=True)
    is_complete: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    results: Mapped[list["CompetitionResultModel"]] = relationship(
        "CompetitionResultModel",
        back_populates="competition",
        cascade="all, delete-orphan",
        order_by="CompetitionResultModel.placement",
    )


class CompetitionResultModel(Base):
    """ORM model for per-houseguest competition placements."""

    __tablename__ = "competition_results"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    competition_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("competitions.competition_id", ondelete="CASCADE"),
        nullable=False,
    )
    houseguest_id: Mapped[str] = mapped_column(String, nullable=False)
    placement: Mapped[int] = mapped_column(Integer, nullable=False)
    score: Mapped[float] = mapped_column(Float, nullable=False)
    eliminated: Mapped[bool] = mapped_column(Boolean, default=False)
    eliminated_at: Mapped[float | None] = mapped_column(Float, nullable=True)

    competition: Mapped["CompetitionModel"] = relationship(
        "CompetitionModel", back_populates="results"
    )
