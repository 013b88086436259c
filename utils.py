from typing import Dict, Iterable, List, Optional, Sequence
from config.logging_config import get_logger
from models import PokemonDetail, PokemonEncounter, ResourceRef
from state import Failed, Loaded, StateSnapshot

# __name__ will set logger name as the file name: 'utils'
logger = get_logger(__name__)

SPRITE_URL_TEMPLATE = "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/pokemon/{id}.png"


def capitalize(name: str) -> str:
    return name[:1].upper() + name[1:]


def prettify_name(slug: str) -> str:
    """
    Pokeapi names are slugs such as "pallet-town".
    Converting "-" to " " and capitalizing every word gives "Pallet Town"
    """
    return " ".join(capitalize(word) for word in slug.replace("-", " ").split())


def resource_id(url: str) -> Optional[str]:
    """
    Resource urls end with the numeric id: https://pokeapi.co/api/v2/pokemon/25/
    """
    segments = [segment for segment in url.split("/") if segment]
    if not segments or not segments[-1].isdigit():
        return None
    return segments[-1]


def sprite_url_for(ref: ResourceRef) -> Optional[str]:
    pokemon_id = resource_id(ref.url)
    if pokemon_id is None:
        return None
    return SPRITE_URL_TEMPLATE.format(id=pokemon_id)


def distinct_pokemon(
    encounters_by_area: Dict[str, List[PokemonEncounter]],
    area_order: Optional[Sequence[str]] = None,
) -> List[PokemonEncounter]:
    """
    Concatenate the encounters of every area and keep the first encounter of each pokemon.

    Pokemon are matched by name, not url. Areas are walked in ``area_order``
    (area urls, usually the location's own area list) when given, otherwise
    in the order the mapping holds them. Areas missing from the mapping are skipped.
    """
    if area_order is None:
        area_order = list(encounters_by_area)

    seen = set()
    distinct = []
    for area_url in area_order:
        for encounter in encounters_by_area.get(area_url, []):
            if encounter.pokemon.name in seen:
                continue
            seen.add(encounter.pokemon.name)
            distinct.append(encounter)
    return distinct


def encounter_summary(encounter: PokemonEncounter) -> Optional[str]:
    # Only the first version and its first detail are shown
    if not encounter.version_details:
        return None
    details = encounter.version_details[0].encounter_details
    if not details:
        return None
    detail = details[0]
    return f"Level {detail.min_level}-{detail.max_level} • {detail.chance}% chance"


def format_measurements(detail: PokemonDetail) -> str:
    return f"{detail.height_in_meters}m • {detail.weight_in_kg:.1f}kg"


def filter_resources(refs: Iterable[ResourceRef], query: str) -> List[ResourceRef]:
    """Case-insensitive search on both the slug and its prettified form."""
    query = query.strip().lower()
    if not query:
        return list(refs)
    return [
        ref
        for ref in refs
        if query in ref.name.lower() or query in prettify_name(ref.name).lower()
    ]


def pokemon_row(encounter: PokemonEncounter, detail: Optional[PokemonDetail]) -> dict:
    row = {
        "name": encounter.pokemon.name,
        "display_name": capitalize(encounter.pokemon.name),
        "url": encounter.pokemon.url,
        "encounter": encounter_summary(encounter),
        # details land one by one, a missing one is still loading
        "loading": detail is None,
    }
    if detail is not None:
        row.update(
            {
                "id": detail.id,
                "sprite": detail.best_sprite_url or sprite_url_for(encounter.pokemon),
                "types": detail.type_names,
                "measurements": format_measurements(detail),
            }
        )
    else:
        row["sprite"] = sprite_url_for(encounter.pokemon)
    return row


def build_location_view(snapshot: StateSnapshot) -> dict:
    """JSON-ready view of the location detail screen."""
    status = snapshot.location_status
    view = {"status": status.status}
    if isinstance(status, Failed):
        view["detail"] = status.detail
    if not isinstance(status, Loaded):
        return view

    location = status.data
    encounters = distinct_pokemon(
        snapshot.encounters_by_area,
        area_order=[area.url for area in location.areas],
    )
    view.update(
        {
            "id": location.id,
            "name": location.name,
            "display_name": location.english_name,
            "region": capitalize(location.region.name) if location.region else None,
            "games": len(location.game_indices),
            "areas": [area.name for area in location.areas],
            "areas_loaded": len(snapshot.encounters_by_area),
            "pokemon_count": len(encounters),
            "pokemon": [
                pokemon_row(encounter, snapshot.pokemon_details_by_name.get(encounter.pokemon.name))
                for encounter in encounters
            ],
        }
    )
    logger.info(f"Built view for {location.name}: {len(encounters)} distinct pokemon")
    return view
