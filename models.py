from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional


# Define resource pointer used by every pokeapi endpoint
class ResourceRef(BaseModel):
    """Lightweight (name, url) pointer to a catalog resource that is fetched lazily."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str


class PagedResponse(BaseModel):
    count: int = 0
    next: Optional[str] = None
    previous: Optional[str] = None
    results: List[ResourceRef] = Field(default_factory=list)


# --- Location ---


class LocationName(BaseModel):
    name: str
    language: ResourceRef


class GameIndex(BaseModel):
    game_index: int
    generation: ResourceRef


class LocationRecord(BaseModel):
    id: int
    name: str
    region: Optional[ResourceRef] = None
    game_indices: List[GameIndex] = Field(default_factory=list)
    names: List[LocationName] = Field(default_factory=list)
    areas: List[ResourceRef] = Field(default_factory=list)

    @property
    def display_names(self) -> Dict[str, str]:
        """Localized names keyed by language code, e.g. {"en": "Pallet Town"}"""
        return {entry.language.name: entry.name for entry in self.names}

    @property
    def english_name(self) -> str:
        # pokeapi names are slugs: "pallet-town"
        return self.display_names.get("en") or self.name.replace("-", " ").title()


# --- Area encounters ---


class EncounterDetail(BaseModel):
    min_level: int
    max_level: int
    chance: int
    method: ResourceRef


class VersionEncounterDetail(BaseModel):
    max_chance: int = 0
    encounter_details: List[EncounterDetail] = Field(default_factory=list)


class PokemonEncounter(BaseModel):
    pokemon: ResourceRef
    version_details: List[VersionEncounterDetail] = Field(default_factory=list)


class AreaEncounterList(BaseModel):
    id: int
    name: str
    pokemon_encounters: List[PokemonEncounter] = Field(default_factory=list)


# --- Pokemon ---


class PokemonType(BaseModel):
    slot: int
    type: ResourceRef


class PokemonSprites(BaseModel):
    front_default: Optional[str] = None
    front_shiny: Optional[str] = None
    back_default: Optional[str] = None
    back_shiny: Optional[str] = None


class PokemonAbility(BaseModel):
    ability: ResourceRef
    is_hidden: bool = False
    slot: int


class PokemonStat(BaseModel):
    stat: ResourceRef
    base_stat: int
    effort: int


class PokemonDetail(BaseModel):
    id: int
    name: str
    # pokeapi units: decimeters and hectograms
    height: int
    weight: int
    types: List[PokemonType] = Field(default_factory=list)
    sprites: PokemonSprites = Field(default_factory=PokemonSprites)
    abilities: List[PokemonAbility] = Field(default_factory=list)
    stats: List[PokemonStat] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": 25,
                    "name": "pikachu",
                    "height": 4,
                    "weight": 60,
                    "types": [
                        {
                            "slot": 1,
                            "type": {"name": "electric", "url": "https://pokeapi.co/api/v2/type/13/"},
                        }
                    ],
                    "sprites": {"front_default": "https://example.com/25.png"},
                    "abilities": [],
                    "stats": [],
                }
            ]
        }
    }

    @property
    def best_sprite_url(self) -> Optional[str]:
        """
        Front sprites are preferred over back sprites and regular over shiny.
        Returns None when pokeapi has no sprite at all for this pokemon.
        """
        for url in (
            self.sprites.front_default,
            self.sprites.front_shiny,
            self.sprites.back_default,
            self.sprites.back_shiny,
        ):
            if url:
                return url
        return None

    @property
    def height_in_meters(self) -> float:
        return self.height / 10

    @property
    def weight_in_kg(self) -> float:
        return self.weight / 10

    @property
    def type_names(self) -> List[str]:
        return [t.type.name for t in sorted(self.types, key=lambda t: t.slot)]
