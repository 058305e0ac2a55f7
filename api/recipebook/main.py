"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from recipebook.api import dewey_categories, recipes, tags
from recipebook.core.config import settings, setup_logging

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Recipe Catalog", version="1.0.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(recipes.router, prefix="/recipes", tags=["recipes"])
app.include_router(tags.router, prefix="/tags", tags=["tags"])
# Dewey classification admin, browsing and sequence allocation
app.include_router(dewey_categories.router, prefix="/dewey", tags=["dewey"])


@app.get("/")
def read_root():
    return {"message": "Recipe Catalog API"}
