import asyncio
import functools
from typing import Dict, List, Optional, Sequence, Set

from client import FetchError, PokeApiClient
from config.logging_config import get_logger
from models import AreaEncounterList, LocationRecord, PagedResponse, PokemonDetail, ResourceRef
from state import AggregationState, Failed, Loaded, Loading

# __name__ will set logger name as the file name: 'aggregator'
logger = get_logger(__name__)

DEFAULT_LIST_LIMIT = 10000


class LocationAggregator:
    """
    Loads a location, then every area of it, then every pokemon met in those areas.

    None of the ``fetch_*`` methods wait for the network: each one schedules an
    ``asyncio.Task`` on the running loop and returns it. Results are merged into
    ``self.state`` as they land, in whatever order they complete. Use
    ``wait_until_idle`` to wait for the whole cascade.

    Area and pokemon tasks are tagged with the state generation they were
    started under. Starting a new fan-out or resetting cancels the tasks of
    older generations, and a result that still arrives late is refused by
    the state.
    """

    def __init__(
        self,
        client: PokeApiClient,
        state: Optional[AggregationState] = None,
        dedupe_requests: bool = True,
        list_limit: int = DEFAULT_LIST_LIMIT,
    ):
        self.client = client
        self.state = state if state is not None else AggregationState()
        self.dedupe_requests = dedupe_requests
        self.list_limit = list_limit

        self._tasks: Set[asyncio.Task] = set()
        self._tasks_by_generation: Dict[int, Set[asyncio.Task]] = {}
        self._pokemon_requests: Dict[str, asyncio.Task] = {}
        self._location_task: Optional[asyncio.Task] = None
        self._location_token = 0

    # --- task bookkeeping ---

    def _spawn(self, coro, name: str, generation: Optional[int] = None) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        if generation is not None:
            self._tasks_by_generation.setdefault(generation, set()).add(task)
        task.add_done_callback(functools.partial(self._on_task_done, generation))
        return task

    def _on_task_done(self, generation: Optional[int], task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if generation is not None:
            siblings = self._tasks_by_generation.get(generation)
            if siblings is not None:
                siblings.discard(task)
                if not siblings:
                    del self._tasks_by_generation[generation]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Unexpected error in task {task.get_name()}", exc_info=exc)

    def _enter_generation(self, generation: int) -> None:
        for stale in [g for g in self._tasks_by_generation if g < generation]:
            for task in self._tasks_by_generation.pop(stale):
                task.cancel()
        self._pokemon_requests = {}

    def _cancel_location_fetch(self) -> None:
        self._location_token += 1
        if self._location_task is not None and not self._location_task.done():
            self._location_task.cancel()
        self._location_task = None

    async def wait_until_idle(self) -> None:
        """Wait until every scheduled fetch, including ones spawned meanwhile, has finished."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def shutdown(self) -> None:
        self._cancel_location_fetch()
        for task in list(self._tasks):
            task.cancel()
        await self.wait_until_idle()

    # --- location list ---

    def fetch_location_list(self, limit: Optional[int] = None) -> asyncio.Task:
        url = self.client.list_url("location", limit or self.list_limit)
        self.state.set_list_status(Loading())
        return self._spawn(self._load_location_list(url), name="location-list")

    async def _load_location_list(self, url: str) -> Optional[List[ResourceRef]]:
        try:
            page = await self.client.fetch(url, PagedResponse)
        except FetchError as exc:
            logger.error(f"Fetching location list failed: {exc}")
            self.state.set_list_status(Failed(detail=str(exc)))
            return None
        logger.info(f"Fetched {len(page.results)} locations")
        self.state.set_list_status(Loaded[List[ResourceRef]](data=page.results))
        return page.results

    # --- location detail ---

    def fetch_location_detail(self, url: str) -> asyncio.Task:
        """Fetch one location. Supersedes any location fetch still in flight."""
        return self._start_location(url, fan_out=False)

    def load_location(self, url: str) -> asyncio.Task:
        """Fetch a location and, once it is known, the encounters of all its areas."""
        return self._start_location(url, fan_out=True)

    def _start_location(self, url: str, fan_out: bool) -> asyncio.Task:
        self._cancel_location_fetch()
        self.state.set_location_status(Loading())
        # a different location is coming, its areas start from empty maps
        self._enter_generation(self.state.advance_generation())

        token = self._location_token
        task = self._spawn(self._load_location_detail(url, token, fan_out), name=f"location:{url}")
        self._location_task = task
        return task

    async def _load_location_detail(self, url: str, token: int, fan_out: bool) -> Optional[LocationRecord]:
        logger.info(f"Fetching location {url}")
        try:
            location = await self.client.fetch(url, LocationRecord)
        except FetchError as exc:
            if token == self._location_token:
                logger.error(f"Fetching location {url} failed: {exc}")
                self.state.set_location_status(Failed(detail=str(exc)))
            return None

        if token != self._location_token:
            logger.info(f"Discarding superseded location {location.name}")
            return None

        self.state.set_location_status(Loaded[LocationRecord](data=location))
        if fan_out and location.areas:
            self.fetch_all_area_encounters(location.areas)
        return location

    # --- areas ---

    def fetch_all_area_encounters(self, areas: Sequence[ResourceRef]) -> List[asyncio.Task]:
        generation = self.state.advance_generation()
        self._enter_generation(generation)
        logger.info(f"Fetching encounters for {len(areas)} area(s), generation {generation}")
        return [
            self._spawn(self._load_area(area.url, generation), name=f"area:{area.url}", generation=generation)
            for area in areas
        ]

    def fetch_area_encounters(self, area_url: str) -> asyncio.Task:
        generation = self.state.generation
        return self._spawn(self._load_area(area_url, generation), name=f"area:{area_url}", generation=generation)

    async def _load_area(self, area_url: str, generation: int) -> None:
        try:
            area = await self.client.fetch(area_url, AreaEncounterList)
        except FetchError as exc:
            # a missing area only shortens the encounter list
            logger.warning(f"Skipping area {area_url}: {exc}")
            return

        if not self.state.merge_area(generation, area_url, area.pokemon_encounters):
            return
        for encounter in area.pokemon_encounters:
            self._request_pokemon(encounter.pokemon.url, generation)

    # --- pokemon ---

    def fetch_pokemon_details(self, pokemon_url: str) -> asyncio.Task:
        return self._request_pokemon(pokemon_url, self.state.generation)

    def _request_pokemon(self, pokemon_url: str, generation: int) -> asyncio.Task:
        if self.dedupe_requests:
            pending = self._pokemon_requests.get(pokemon_url)
            if pending is not None:
                return pending

        task = self._spawn(
            self._load_pokemon(pokemon_url, generation),
            name=f"pokemon:{pokemon_url}",
            generation=generation,
        )
        if self.dedupe_requests:
            self._pokemon_requests[pokemon_url] = task
        return task

    async def _load_pokemon(self, pokemon_url: str, generation: int) -> Optional[PokemonDetail]:
        try:
            detail = await self.client.fetch(pokemon_url, PokemonDetail)
        except FetchError as exc:
            logger.warning(f"Skipping pokemon {pokemon_url}: {exc}")
            # a later area listing the same pokemon may try again
            if self._pokemon_requests.get(pokemon_url) is asyncio.current_task():
                del self._pokemon_requests[pokemon_url]
            return None

        self.state.merge_pokemon(generation, detail)
        return detail

    # --- navigation ---

    def reset_detail_state(self) -> None:
        """Forget the current location, e.g. when leaving its detail view."""
        self._cancel_location_fetch()
        self._enter_generation(self.state.reset())
