from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from clubcomp.exceptions import CompetitionError
from clubcomp.routes.deps import get_store, http_error
from clubcomp.services.league_service import setup_season
from clubcomp.services.store import SqlModelStore

router = APIRouter()


class GroupMemberResponse(BaseModel):
    team_id: int
    is_filler: bool


class GroupResponse(BaseModel):
    group_number: int
    name: str
    members: List[GroupMemberResponse]


class SeasonSetupResponse(BaseModel):
    season_id: int
    groups: List[GroupResponse]
    fixture_count: int
    filler_count: int


class FixtureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    group_id: int
    matchday: int
    home_team_id: int
    away_team_id: int
    match_date: date


@router.post("/seasons/{season_id}/groups", response_model=SeasonSetupResponse)
def create_season_groups(season_id: int, store: SqlModelStore = Depends(get_store)):
    """Partition approved teams into groups and generate their fixtures. Replaces any earlier run."""
    try:
        outcome = setup_season(store, season_id)
    except CompetitionError as exc:
        raise http_error(exc)

    return SeasonSetupResponse(
        season_id=season_id,
        groups=[
            GroupResponse(
                group_number=g.group_number,
                name=g.name,
                members=[GroupMemberResponse(team_id=m.team_id, is_filler=m.is_filler) for m in g.members],
            )
            for g in outcome.groups
        ],
        fixture_count=len(outcome.fixtures),
        filler_count=outcome.filler_count,
    )


@router.get("/seasons/{season_id}/fixtures", response_model=List[FixtureResponse])
def get_season_fixtures(season_id: int, matchday: Optional[int] = None, store: SqlModelStore = Depends(get_store)):
    try:
        store.get_season(season_id)
    except CompetitionError as exc:
        raise http_error(exc)

    fixtures = store.get_season_fixtures(season_id)
    if matchday is not None:
        fixtures = [f for f in fixtures if f.matchday == matchday]
    return fixtures
