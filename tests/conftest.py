"""Shared fixtures: a fake Edmunds service behind httpx.MockTransport."""
import copy

import httpx
import pytest


MAKES = [
    {
        "id": 200001,
        "name": "Acura",
        "niceName": "acura",
        "models": [
            {"id": "Acura_ILX", "name": "ILX", "niceName": "ilx", "years": [{"id": 401, "year": 2016}]},
            {"id": "Acura_MDX", "name": "MDX", "niceName": "mdx", "years": [{"id": 402, "year": 2016}]},
        ],
    },
    {
        "id": 200002,
        "name": "Audi",
        "niceName": "audi",
        "models": [
            {"id": "Audi_A3", "name": "A3", "niceName": "a3", "years": [{"id": 403, "year": 2016}]},
            {"id": "Audi_Q3", "name": "Q3", "niceName": "q3", "years": [{"id": 404, "year": 2016}]},
        ],
    },
]

STYLES = {
    ("acura", "ilx"): [
        {
            "id": 101,
            "name": "4dr Sedan (2.4L 4cyl 8AM)",
            "price": {"baseMSRP": 27900},
            "engine": {"size": 2.4, "horsepower": 201},
            "MPG": {"city": "30", "highway": "40"},
            "colors": [{"category": "Exterior", "options": ["Red", "Blue"]}],
        },
        {"id": 102, "name": "4dr Sedan w/Premium Package", "price": {"baseMSRP": 29900}},
    ],
    ("acura", "mdx"): None,
    ("audi", "a3"): [
        {
            "id": 103,
            "name": "Premium 4dr Sedan",
            "price": {"baseMSRP": 30950},
            "engine": {"size": 1.8, "horsepower": 170},
        },
    ],
    ("audi", "q3"): [],
}

RATINGS = {
    ("acura", "ilx"): {
        "averageRating": 4.5,
        "reviewsCount": 12,
        "reviews": [{"title": "Great car", "text": "..."}],
    },
}


class FakeCatalog:
    """Routes requests to canned Edmunds responses.

    ``None`` entries answer 404. ``failures`` maps a path fragment to a status
    code or an exception raised by the transport.
    """

    def __init__(self, makes=MAKES, styles=STYLES, ratings=RATINGS, failures=None):
        self.makes = makes
        self.styles = styles
        self.ratings = ratings
        self.failures = failures or {}
        self.requests: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append(path)

        for fragment, failure in self.failures.items():
            if fragment in path:
                if isinstance(failure, Exception):
                    raise failure
                return httpx.Response(failure, text="upstream failure")

        parts = path.strip("/").split("/")
        if path == "/api/vehicle/v2/makes":
            if self.makes is None:
                return httpx.Response(404, json={"status": "NOT_FOUND"})
            makes = copy.deepcopy(self.makes)
            return httpx.Response(200, json={"makes": makes, "makesCount": len(makes)})
        if parts[:3] == ["api", "vehicle", "v2"] and parts[-1] == "styles":
            styles = self.styles.get((parts[3], parts[4]))
            if styles is None:
                return httpx.Response(404, json={"status": "NOT_FOUND"})
            return httpx.Response(200, json={"styles": copy.deepcopy(styles), "stylesCount": len(styles)})
        if parts[:3] == ["api", "vehiclereviews", "v2"]:
            rating = self.ratings.get((parts[3], parts[4]))
            if rating is None:
                return httpx.Response(404, json={"status": "NOT_FOUND"})
            return httpx.Response(200, json=copy.deepcopy(rating))
        return httpx.Response(404)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_catalog():
    return FakeCatalog()


@pytest.fixture
def catalog_tree():
    """A crawled tree as the importer leaves it."""
    makes = copy.deepcopy(MAKES)
    ilx_style = copy.deepcopy(STYLES[("acura", "ilx")][0])
    del ilx_style["colors"]
    ilx_style["rating"] = {"averageRating": 4.5, "reviewsCount": 12}
    makes[0]["models"][0]["years"][0]["styles"] = [ilx_style]
    makes[1]["models"][0]["years"][0]["styles"] = [copy.deepcopy(STYLES[("audi", "a3")][0])]
    return makes
