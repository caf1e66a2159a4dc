"""
FastAPI application entry point.

Run with: uvicorn api.main:app --reload
"""
import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Load environment variables from backend/.env (optional) before other imports that read env
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from api.routes import geocoding, locations
from services.address_api import AddressApiClient
from services.geocoding import GeocodingClient

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# Create app
app = FastAPI(
    title="ProKvartiru Location API",
    description="Location autocomplete for ProKvartiru.kz: geocoding and remembered addresses",
    version="0.1.0",
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure properly for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(geocoding.router, prefix="/api/geocoding", tags=["geocoding"])
app.include_router(locations.router, prefix="/api/locations", tags=["locations"])


@app.on_event("startup")
def startup_event():
    """Create the upstream clients owned by this app."""
    app.state.geocoder = GeocodingClient()
    app.state.address_client = AddressApiClient()


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "ProKvartiru Location API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
