"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from dotenv import load_dotenv
from fastapi import FastAPI

from whatsapp_ingest.adapters.inbound.http.routes import router
from whatsapp_ingest.infrastructure.wiring.dependencies import shutdown_adapters

# Load environment variables from .env file
load_dotenv()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    # in-flight real-time publications finish before the Redis clients close
    await shutdown_adapters()


app = FastAPI(
    title="WhatsApp Webhook Ingestion",
    description="Ingests WhatsApp Business webhooks into leads, conversations and tickets",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(router)
