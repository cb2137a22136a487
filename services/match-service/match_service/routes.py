from fastapi import APIRouter, Depends, HTTPException, Request
from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .errors import MatchServiceError
from .models import TripRequestRecord
from .schemas import MatchesRequest, MatchesResponse, TripRequest
from .services import MatchService, to_match_view

router = APIRouter()


async def get_db(request: Request):
    async with request.app.state.session_factory() as session:
        yield session


def get_match_service(request: Request) -> MatchService:
    return request.app.state.match_service


def to_trip_request(record: TripRequestRecord) -> TripRequest:
    return TripRequest(
        city=record.city,
        dates=record.dates,
        preferred_time=record.preferred_time,
        interests=record.interests,
        preferred_nationality=record.preferred_nationality,
        preferred_languages=record.preferred_languages,
        preferred_gender=record.preferred_gender,
    )


async def _respond(service: MatchService, trip: TripRequest) -> MatchesResponse:
    try:
        matches = await service.find_matches(trip)
    except MatchServiceError as e:
        logger.error("matching failed: {}", e)
        raise HTTPException(status_code=503, detail="Matching temporarily unavailable")

    views = [to_match_view(m) for m in matches]
    return MatchesResponse(matches=views, count=len(views))


@router.post("/matches", response_model=MatchesResponse)
async def matches(
    data: MatchesRequest,
    db: AsyncSession = Depends(get_db),
    service: MatchService = Depends(get_match_service),
):
    try:
        result = await db.execute(select(TripRequestRecord).where(TripRequestRecord.id == data.request_id))
        record = result.scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error("trip request lookup failed: {}", e)
        raise HTTPException(status_code=503, detail="Matching temporarily unavailable")

    if not record:
        raise HTTPException(status_code=404, detail="Trip request not found")

    return await _respond(service, to_trip_request(record))


@router.post("/matches/preview", response_model=MatchesResponse)
async def preview_matches(
    data: TripRequest,
    service: MatchService = Depends(get_match_service),
):
    return await _respond(service, data)
