import asyncio
from typing import Dict, List

import httpx
import pytest
import pytest_asyncio

from client import PokeApiClient

BASE = "https://pokeapi.co/api/v2"


def url_of(kind: str, id: int) -> str:
    return f"{BASE}/{kind}/{id}/"


def ref(kind: str, name: str, id: int) -> dict:
    return {"name": name, "url": url_of(kind, id)}


def location_payload(id: int, name: str, area_ids: List[int]) -> dict:
    return {
        "id": id,
        "name": name,
        "region": ref("region", "kanto", 1),
        "game_indices": [{"game_index": 1, "generation": ref("generation", "generation-i", 1)}],
        "names": [{"name": name.replace("-", " ").title(), "language": ref("language", "en", 9)}],
        "areas": [ref("location-area", f"{name}-area-{area_id}", area_id) for area_id in area_ids],
    }


def encounter_payload(name: str, id: int, min_level: int = 3, max_level: int = 5, chance: int = 20) -> dict:
    return {
        "pokemon": ref("pokemon", name, id),
        "version_details": [
            {
                "max_chance": chance,
                "encounter_details": [
                    {
                        "min_level": min_level,
                        "max_level": max_level,
                        "chance": chance,
                        "method": ref("encounter-method", "walk", 1),
                        "condition_values": [],
                    }
                ],
                "version": ref("version", "red", 1),
            }
        ],
    }


def area_payload(id: int, pokemon: List[tuple]) -> dict:
    return {
        "id": id,
        "name": f"area-{id}",
        "encounter_method_rates": [],
        "pokemon_encounters": [encounter_payload(name, pokemon_id) for name, pokemon_id in pokemon],
    }


def pokemon_payload(id: int, name: str, types=("normal",)) -> dict:
    return {
        "id": id,
        "name": name,
        "height": 4,
        "weight": 60,
        "base_experience": 112,
        "types": [{"slot": slot, "type": ref("type", t, slot)} for slot, t in enumerate(types, start=1)],
        "sprites": {"front_default": f"https://example.com/sprite{id}.png", "other": {}},
        "abilities": [{"ability": ref("ability", "static", 9), "is_hidden": False, "slot": 1}],
        "stats": [{"stat": ref("stat", "hp", 1), "base_stat": 35, "effort": 0}],
    }


POKEMON = {
    "pikachu": 25,
    "rattata": 19,
    "pidgey": 16,
    "geodude": 74,
    "zubat": 41,
}


class FakePokeApi:
    """In-memory pokeapi served through ``httpx.MockTransport``.

    ``hold(url)`` keeps the response for ``url`` pending until the returned
    event is set, which lets tests decide the order in which fetches land.
    """

    def __init__(self):
        self.routes: Dict[str, tuple] = {}
        self.gates: Dict[str, asyncio.Event] = {}
        self.calls: List[str] = []

    def add(self, url: str, payload=None, status: int = 200):
        self.routes[url] = (status, payload)

    def hold(self, url: str) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[url] = gate
        return gate

    def calls_to(self, url: str) -> int:
        return self.calls.count(url)

    def add_pokemon(self):
        for name, id in POKEMON.items():
            self.add(url_of("pokemon", id), pokemon_payload(id, name))

    async def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls.append(url)
        gate = self.gates.get(url)
        if gate is not None:
            await gate.wait()
        if url not in self.routes:
            return httpx.Response(404, text="Not Found")
        status, payload = self.routes[url]
        if isinstance(payload, Exception):
            raise payload
        if isinstance(payload, str):
            return httpx.Response(status, text=payload)
        return httpx.Response(status, json=payload)


@pytest.fixture
def pokeapi():
    api = FakePokeApi()
    api.add_pokemon()
    # viridian forest: areas 1 and 2
    api.add(url_of("location", 1), location_payload(1, "viridian-forest", [1, 2]))
    api.add(url_of("location-area", 1), area_payload(1, [("pikachu", 25), ("rattata", 19)]))
    api.add(url_of("location-area", 2), area_payload(2, [("rattata", 19), ("pidgey", 16)]))
    # mt moon: area 3
    api.add(url_of("location", 2), location_payload(2, "mt-moon", [3]))
    api.add(url_of("location-area", 3), area_payload(3, [("geodude", 74), ("zubat", 41)]))
    return api


@pytest_asyncio.fixture
async def client(pokeapi):
    http = httpx.AsyncClient(transport=httpx.MockTransport(pokeapi.handler))
    async with PokeApiClient(BASE, http_client=http) as api_client:
        yield api_client
    await http.aclose()
