from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from nestlink.api.routers import users, connections, shortlists, properties, posts, notifications, ratings
from nestlink.core.config import settings
from nestlink.core.database import SessionLocal
import logging

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="NestLink API",
    description="Social network for property owners, seekers and businesses",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(users.router, prefix="/api/v1/users", tags=["users"])
app.include_router(connections.router, prefix="/api/v1/connections", tags=["connections"])
app.include_router(shortlists.router, prefix="/api/v1/shortlists", tags=["shortlists"])
app.include_router(properties.router, prefix="/api/v1/properties", tags=["properties"])
app.include_router(posts.router, prefix="/api/v1/posts", tags=["posts"])
app.include_router(notifications.router, prefix="/api/v1/notifications", tags=["notifications"])
app.include_router(ratings.router, prefix="/api/v1/ratings", tags=["ratings"])

@app.get("/")
async def root():
    return {"message": "NestLink API"}

@app.get("/health")
async def health_check():
    """Health check endpoint that verifies the database is reachable"""
    health_status = {
        "status": "healthy",
        "services": {}
    }

    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
        health_status["services"]["database"] = "healthy"

    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        health_status["status"] = "degraded"
        health_status["services"]["database"] = "unhealthy"

    return health_status
