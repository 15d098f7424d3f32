from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from brandintel.config import configure_logging
from brandintel.models.base import init_db
from brandintel.api import scans


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: logging and database tables
    configure_logging()
    await init_db()
    yield


app = FastAPI(
    title="Brand Intelligence API",
    description="Products, pricing, features and marketing assets for any web domain",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(scans.router, prefix="/scans", tags=["scans"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


@app.get("/")
async def root():
    return {"message": "Brand Intelligence API", "docs": "/docs"}
