"""Path builders for the Edmunds vehicle API endpoints."""
from urllib.parse import quote

from catalog_refresh.config import config


def _key(api_key: str | None) -> str:
    return quote(api_key if api_key is not None else (config.EDMUNDS_API_KEY or ""), safe="")


def make_model_listing_path(year: int, api_key: str | None = None) -> str:
    """All new vehicle makes with their models for a year."""
    return f"/api/vehicle/v2/makes?state=new&year={year}&view=full&fmt=json&api_key={_key(api_key)}"


def styles_path(make: str, model: str, year: int, api_key: str | None = None) -> str:
    """Styles of one make/model/year."""
    return (
        f"/api/vehicle/v2/{quote(make, safe='')}/{quote(model, safe='')}/{year}/styles"
        f"?view=full&fmt=json&api_key={_key(api_key)}"
    )


def rating_path(make: str, model: str, year: int, api_key: str | None = None) -> str:
    """Ratings and reviews of one make/model/year."""
    return (
        f"/api/vehiclereviews/v2/{quote(make, safe='')}/{quote(model, safe='')}/{year}"
        f"?sortby=thumbsUp%3AASC&pagenum=1&pagesize=10&fmt=json&api_key={_key(api_key)}"
    )
