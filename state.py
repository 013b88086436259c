"""
Observable state of the location detail screen.

``AggregationState`` is owned and mutated by ``aggregator.LocationAggregator`` only.
Readers either take a ``snapshot()`` or ``subscribe`` and get a fresh frozen
``StateSnapshot`` after every change.

Detail maps carry a generation number. Wiping the maps advances it, and every
merge names the generation it was dispatched under, so results from a
superseded location never leak into the current one.
"""

from typing import Callable, Dict, Generic, List, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict

from config.logging_config import get_logger
from models import LocationRecord, PokemonDetail, PokemonEncounter, ResourceRef

logger = get_logger(__name__)

T = TypeVar("T")


# Status of one fetch target, tagged by `status`
class Loading(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["loading"] = "loading"


class Failed(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["error"] = "error"
    detail: Optional[str] = None


class Loaded(BaseModel, Generic[T]):
    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    data: T


ListStatus = Union[Loading, Failed, Loaded[List[ResourceRef]]]
LocationStatus = Union[Loading, Failed, Loaded[LocationRecord]]


class StateSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    generation: int
    list_status: ListStatus
    location_status: LocationStatus
    encounters_by_area: Dict[str, List[PokemonEncounter]]
    pokemon_details_by_name: Dict[str, PokemonDetail]

    @property
    def location(self) -> Optional[LocationRecord]:
        if isinstance(self.location_status, Loaded):
            return self.location_status.data
        return None


Listener = Callable[[StateSnapshot], None]


class AggregationState:
    def __init__(self):
        self._generation = 0
        self._list_status: ListStatus = Loading()
        self._location_status: LocationStatus = Loading()
        self._encounters_by_area: Dict[str, List[PokemonEncounter]] = {}
        self._pokemon_details_by_name: Dict[str, PokemonDetail] = {}
        self._listeners: List[Listener] = []

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def list_status(self) -> ListStatus:
        return self._list_status

    @property
    def location_status(self) -> LocationStatus:
        return self._location_status

    @property
    def location(self) -> Optional[LocationRecord]:
        if isinstance(self._location_status, Loaded):
            return self._location_status.data
        return None

    @property
    def encounters_by_area(self) -> Dict[str, List[PokemonEncounter]]:
        return self._encounters_by_area

    @property
    def pokemon_details_by_name(self) -> Dict[str, PokemonDetail]:
        return self._pokemon_details_by_name

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> StateSnapshot:
        return StateSnapshot(
            generation=self._generation,
            list_status=self._list_status,
            location_status=self._location_status,
            encounters_by_area=self._encounters_by_area,
            pokemon_details_by_name=self._pokemon_details_by_name,
        )

    def _publish(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception(f"State listener {listener!r} failed")

    def set_list_status(self, status: ListStatus) -> None:
        self._list_status = status
        self._publish()

    def set_location_status(self, status: LocationStatus) -> None:
        self._location_status = status
        self._publish()

    def advance_generation(self) -> int:
        """Wipe both detail maps in one step and return the new generation."""
        self._generation += 1
        self._encounters_by_area = {}
        self._pokemon_details_by_name = {}
        self._publish()
        return self._generation

    def merge_area(self, generation: int, area_url: str, encounters: List[PokemonEncounter]) -> bool:
        if generation != self._generation:
            logger.info(f"Dropping encounters of {area_url} from stale generation {generation}")
            return False
        # copy-on-write: readers holding the previous dict never see it change
        self._encounters_by_area = {**self._encounters_by_area, area_url: list(encounters)}
        self._publish()
        return True

    def merge_pokemon(self, generation: int, detail: PokemonDetail) -> bool:
        if generation != self._generation:
            logger.info(f"Dropping details of {detail.name} from stale generation {generation}")
            return False
        self._pokemon_details_by_name = {**self._pokemon_details_by_name, detail.name: detail}
        self._publish()
        return True

    def reset(self) -> int:
        """Back to "no location loaded": location Loading, detail maps empty."""
        self._location_status = Loading()
        return self.advance_generation()
