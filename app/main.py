from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.endpoints import admin, cookbooks, health, metadata, recipes, users
from app.core.config import settings
from app.database.base import engine
from app.database.models import Base


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    # Shutdown
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, prefix="/api/v1/health", tags=["health"])
app.include_router(metadata.classifications, prefix="/api/v1/classifications", tags=["metadata"])
app.include_router(metadata.sources, prefix="/api/v1/sources", tags=["metadata"])
app.include_router(metadata.meals, prefix="/api/v1/meals", tags=["metadata"])
app.include_router(metadata.courses, prefix="/api/v1/courses", tags=["metadata"])
app.include_router(metadata.preparations, prefix="/api/v1/preparations", tags=["metadata"])
app.include_router(recipes.router, prefix="/api/v1/recipes", tags=["recipes"])
app.include_router(cookbooks.router, prefix="/api/v1/cookbooks", tags=["cookbooks"])
app.include_router(users.router, prefix="/api/v1/users", tags=["users"])
app.include_router(admin.router, prefix="/api/v1/admin", tags=["admin"])


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.APP_NAME}"}
