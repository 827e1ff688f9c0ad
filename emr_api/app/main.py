import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .errors import register_error_handlers
from .middleware.audit import register_audit_logging
from .routers import persons

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

CORS_ALLOW_ORIGINS = [
    origin.strip() for origin in os.environ.get("CORS_ALLOW_ORIGINS", "").split(",") if origin.strip()
]

app = FastAPI(title="EMR Person API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_audit_logging(app)
register_error_handlers(app)

app.include_router(persons.router)

@app.get("/")
def root():
    return {"status": "ok"}

@app.get("/__routes")
def list_routes():
    # included routers are not flattened into app.routes on every FastAPI release
    paths = app.openapi().get("paths", {})
    return [
        {"path": path, "methods": sorted(method.upper() for method in operations)}
        for path, operations in paths.items()
    ]
