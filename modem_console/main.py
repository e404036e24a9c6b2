#!/usr/bin/env python3
"""
Modem Console - Main Application
FastAPI server for modem telemetry
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from modem_console import __version__
from modem_console.api.routes import telemetry as telemetry_routes
from modem_console.services.preferences import get_preferences
from modem_console.utils.logger import get_logger

logger = logging.getLogger(__name__)

app = FastAPI(title="Modem Console", version=__version__)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(telemetry_routes.router)


@app.on_event("startup")
async def startup_event():
    get_logger()
    transport = get_preferences().get_transport_config()
    logger.info(f"Modem Console {__version__} using AT endpoint {transport.endpoint}")


@app.get("/")
async def root():
    return {"name": "Modem Console", "version": __version__}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
