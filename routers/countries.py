from typing import List

from fastapi import APIRouter, HTTPException

from schemas.country import CountryOption
from utils.countries import get_countries, get_country_name

router = APIRouter(prefix="/countries", tags=["countries"])


@router.get("", response_model=List[CountryOption], summary="Country code/name pairs for filters")
async def list_countries() -> List[CountryOption]:
    return [CountryOption(**c) for c in get_countries()]


@router.get("/{code}", response_model=CountryOption, summary="Look up one country by code")
async def read_country(code: str) -> CountryOption:
    name = get_country_name(code)
    if name is None:
        raise HTTPException(status_code=404, detail="Country not found")
    return CountryOption(code=code.upper(), name=name)
