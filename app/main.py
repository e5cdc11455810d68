# FastAPI 

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app import models  # noqa: F401  (registers tables on Base.metadata)
from app.config import settings
from app.core.database import engine, Base
from app.core.errors import install_error_handling
from app.core.logging import configure_logging, get_logger
from app.api import auth, tasks, plans, chat

configure_logging()
logger = get_logger(__name__)

# Create tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Planner Assistant API",
    version="1.0.0",
    description="Tasks, day plans and a tool-calling planning assistant"
)

install_error_handling(app)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(tasks.router, prefix="/api/tasks", tags=["Tasks"])
app.include_router(plans.router, prefix="/api/plans", tags=["Plans"])
app.include_router(chat.router, prefix="/api/chat", tags=["Assistant"])

@app.get("/")
def root():
    return {
        "message": "Planner Assistant API",
        "status": "running",
        "docs": "/docs"
    }

@app.get("/health")
def health():
    return {"status": "healthy"}
