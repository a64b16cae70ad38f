import sys
import os

# Add the root project directory to Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from dotenv import load_dotenv
load_dotenv()

from cloister import Bridge
from cloister import Config
from cloister import StorageGate
from cloister.StorageGate import StorageGate as Storage
from cloister.shared.gate import GateLogger
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from altar.api import health as health_api
from altar.api import storage as storage_api

_log = GateLogger.get("Altar")

app = FastAPI(title="Cloister")


@app.on_event("startup")
async def startup_event():
    """Initialize subsystems on server startup."""
    valid, errors = Config.validate()
    if not valid:
        _log.warning(f"Configuration problems: {'; '.join(errors)}")

    if not StorageGate.is_initialized() and not StorageGate.initialize(
        config_path=Config.get("CLOISTER_CONFIG_PATH")
    ):
        _log.error("StorageGate failed to initialize; storage routes will fail until it does")


origins = [
    "http://localhost:5000",
    "http://localhost:8000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_api.create_router())
app.include_router(storage_api.create_router(Bridge, Storage))
