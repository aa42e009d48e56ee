"""
Current Visit API: Pydantic Data Schemas
========================================

What:  Pydantic models for the values passed between layers.
How:   `Visit` is frozen, so a visit built by the decoder or read from the
       store cannot be changed afterwards. The hand-rolled wire format lives
       in `schemas.visit_json`; these models are never serialized by FastAPI's
       JSON encoder except for the health response.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Visit(BaseModel):
    """
    What:  A record that a user visited a named place at a given time.

    Fields:
        - user_id, name: opaque strings supplied by the client
        - visit_id: UUID string assigned when the create request is decoded
        - visit_time: epoch milliseconds assigned by VisitStore.insert();
          None until inserted, and on rows read by queries that skip it
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    user_id: str = Field(description="Client supplied user identifier")
    name: str = Field(description="Client supplied place name")
    visit_id: str = Field(description="Unique visit identifier (UUID string)")
    visit_time: Optional[int] = Field(
        default=None,
        description="Server wall-clock epoch milliseconds at insert",
    )


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and database status.
    Who:   Returned by GET /health for monitoring and load balancer probes.
    """

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
