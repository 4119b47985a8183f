"""Map the crawled catalog tree onto the problem template."""
import logging
import math
from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path
from typing import Any, Iterable, Optional

import aiofiles
import orjson
from pydantic import ValidationError

from catalog_refresh.exceptions import MapperInputMissing
from catalog_refresh.mapping.models import Option, ProblemDocument

logger = logging.getLogger(__name__)

HIGHWAY_WEIGHT = 0.45
CITY_WEIGHT = 0.55


def to_number(value: Any) -> Optional[float | int]:
    """Coerce a raw catalog value to a number, or None when it is not one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if isinstance(value, float) and not math.isfinite(value) else value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def round_half_away_from_zero(value: float) -> int:
    return int(Decimal(repr(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def combined_mpg(mpg: Optional[dict]) -> Optional[int]:
    """Weighted fuel economy: 45% highway, 55% city."""
    if not mpg:
        return None
    highway = to_number(mpg.get("highway"))
    city = to_number(mpg.get("city"))
    if highway is None or city is None:
        return None
    return round_half_away_from_zero(highway * HIGHWAY_WEIGHT + city * CITY_WEIGHT)


def _get(data: Optional[dict], *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def style_values(style: dict) -> dict[str, Any]:
    """Objective values of one style."""
    return {
        "price": to_number(_get(style, "price", "baseMSRP")),
        "engineSize": to_number(_get(style, "engine", "size")),
        "power": to_number(_get(style, "engine", "horsepower")),
        "MPGCombined": combined_mpg(style.get("MPG")),
        "averageRating": to_number(_get(style, "rating", "averageRating")),
        "reviewsCount": to_number(_get(style, "rating", "reviewsCount")),
    }


def transform_options(makes: Iterable[dict]) -> list[Option]:
    """One option per retained style; repeated style ids keep the first."""
    options: list[Option] = []
    seen: set = set()
    logger.info("Mapping car styles to problem options")

    for make in makes:
        for model in make.get("models") or []:
            years = model.get("years") or [{}]
            for style in years[0].get("styles") or []:
                style_id = style.get("id")
                if style_id is None:
                    logger.warning(f"skipping: style without id for {make.get('name')} {model.get('name')}")
                    continue
                if style_id in seen:
                    logger.warning(f"skipping: duplicate id-{style_id}")
                    continue
                seen.add(style_id)
                options.append(
                    Option(
                        key=style_id,
                        name=f"{make.get('name')} {model.get('name')}",
                        description=style.get("name"),
                        values=style_values(style),
                    )
                )

    logger.info(f"Mapped {len(options)} options")
    return options


def map_catalog(makes: Iterable[dict], template: ProblemDocument) -> ProblemDocument:
    """Fill the template with options built from the catalog tree."""
    return ProblemDocument(
        subject=template.subject,
        columns=[column.model_copy(deep=True) for column in template.columns],
        options=transform_options(makes),
        **(template.model_extra or {}),
    )


async def load_template(path: Path) -> ProblemDocument:
    """Read the problem template. Raises MapperInputMissing when unusable."""
    try:
        async with aiofiles.open(path, "rb") as f:
            raw = await f.read()
        return ProblemDocument.model_validate(orjson.loads(raw))
    except OSError as e:
        raise MapperInputMissing(path, str(e)) from e
    except orjson.JSONDecodeError as e:
        raise MapperInputMissing(path, f"invalid JSON: {e}") from e
    except ValidationError as e:
        raise MapperInputMissing(path, f"invalid template: {e}") from e
