"""
Current Visit API: CurrentVisit SQLAlchemy Model
================================================

What:  ORM mapping of the `CurrentVisit` table.
Who:   Used by VisitStore for every query and by `create_schema()`.

Table Design:
    - visitId:   UUID string assigned when the create body is decoded; primary
                 key, so a (vanishingly unlikely) collision fails the insert
    - userId:    opaque client string
    - name:      opaque client string, matched exactly by the visits query
    - visitTime: server wall-clock epoch milliseconds at insert

    Column names keep the camelCase spelling of the wire format; the Python
    attributes are snake_case.

    Index on (userId, name, visitTime):
        Serves both the recent-names aggregate (filter on userId, group on
        name, max of visitTime) and the exact-name visits query ordered by
        visitTime.
"""

from sqlalchemy import BigInteger, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from visitapi.database import Base


class CurrentVisit(Base):
    """
    One row per recorded visit. Rows are inserted once and never updated.

    Query Patterns:
        - Recent names: GROUP BY name ORDER BY MAX(visitTime) DESC LIMIT 5
        - Visits of:    WHERE userId = ? AND name = ? ORDER BY visitTime DESC
        - By id:        WHERE visitId = ?
    """

    __tablename__ = "CurrentVisit"

    visit_id: Mapped[str] = mapped_column(
        "visitId",
        String(36),
        primary_key=True,
    )

    user_id: Mapped[str] = mapped_column(
        "userId",
        String(255),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        "name",
        String(255),
        nullable=False,
    )

    visit_time: Mapped[int] = mapped_column(
        "visitTime",
        BigInteger,
        nullable=False,
    )

    __table_args__ = (
        Index("idx_current_visit_user_name_time", "userId", "name", "visitTime"),
    )

    def __repr__(self) -> str:
        return (
            f"<CurrentVisit(visit_id={self.visit_id}, user_id='{self.user_id}', "
            f"name='{self.name}', visit_time={self.visit_time})>"
        )
