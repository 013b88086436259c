from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from client import PokeApiClient
from config.logging_config import get_logger, set_log_level
from config.settings import load_settings
from locations import router as locations_router

# __name__ will set logger name as the file name: 'main'
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = load_settings()
    set_log_level(settings.log_level)
    app.state.settings = settings
    # a single client, so every request shares the connection pool
    app.state.client = PokeApiClient(settings.api_base_url, timeout=settings.request_timeout)
    logger.info(f"Using pokeapi at {settings.api_base_url}")
    try:
        yield
    finally:
        await app.state.client.aclose()


app = FastAPI(title="Pokedex locations", lifespan=lifespan)
app.include_router(locations_router)


# Custom HTTPException handler for FastAPI
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.error(f"HTTP Exception occurred: {exc.detail}")
    return JSONResponse(content={"detail": exc.detail}, status_code=exc.status_code)


@app.get("/health")
async def health():
    return {"status": "ok"}
