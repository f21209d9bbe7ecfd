"""Base model shared by pyagg's value objects.

Every model is frozen: records, results and reports are handed across
handler tasks and the sweeper, so nothing downstream may mutate them.
Unknown keys are rejected rather than ignored, which keeps the main
store file and staging artifacts from silently growing fields.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class AggBaseModel(BaseModel):
    """Base for pyagg models."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
    )
