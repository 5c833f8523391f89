"""ISO 3166-1 alpha-2 country reference data for filter dropdowns."""
from functools import lru_cache
from typing import List, Optional

import pycountry

# Display-name overrides applied on top of the ISO names
NAME_OVERRIDES = {
    "TW": "Taiwan",
}


@lru_cache(maxsize=1)
def get_countries() -> List[dict]:
    """Code/name pairs sorted by display name."""
    countries = [
        {"code": country.alpha_2, "name": NAME_OVERRIDES.get(country.alpha_2, country.name)}
        for country in pycountry.countries
    ]
    countries.sort(key=lambda c: c["name"].casefold())
    return countries


def get_country_name(code: str) -> Optional[str]:
    code = code.upper()
    for country in get_countries():
        if country["code"] == code:
            return country["name"]
    return None
