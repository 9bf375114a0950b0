# backend/app/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import grammars, tokenize
from app.core.config import CORS_ORIGINS, GRAMMARS_DIR
from app.services.assets import get_registry
from app.utils.logger_api import api_logger

app = FastAPI(title="TextMate Bridge API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(grammars.router, prefix="/api/grammars", tags=["Grammars"])
app.include_router(tokenize.router, prefix="/api/tokenize", tags=["Tokenize"])


@app.on_event("startup")
async def startup_event():
    api_logger.info("Application startup...")
    registry = get_registry()
    api_logger.info(f"Grammars under {GRAMMARS_DIR}: {', '.join(sorted(registry.grammars)) or 'none'}")


@app.get("/")
async def root():
    api_logger.info("Root endpoint accessed.")
    return {"message": "TextMate Bridge API. POST lines to /api/tokenize, list grammars at /api/grammars"}
