"""
backend/app/models/analysis.py

Purpose:
    Request/response models for the match analysis endpoint. Accepts both the
    current camelCase field names and the legacy Romanian ones
    (``echipe``/``liga``/``status``) sent by the original web client.

Dependencies:
    - pydantic
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class AnalysisRequest(BaseModel):
    teams_label: str = Field(
        min_length=1,
        validation_alias=AliasChoices("teamsLabel", "teams_label", "echipe"),
        serialization_alias="teamsLabel",
    )
    league: str = Field(
        min_length=1,
        validation_alias=AliasChoices("league", "liga"),
    )
    match_status: str = Field(
        min_length=1,
        validation_alias=AliasChoices("matchStatus", "match_status", "status"),
        serialization_alias="matchStatus",
    )

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    def cache_key(self) -> str:
        """Deterministic identity of the fixture; whitespace-insensitive."""
        return f"{self.teams_label.strip()}|{self.league.strip()}|{self.match_status.strip()}"


class AnalysisResponse(BaseModel):
    analysis: str


class ErrorResponse(BaseModel):
    error: str
    reason: str | None = None
