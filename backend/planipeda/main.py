from dotenv import load_dotenv
from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
import os
import logging
import sys

# Load environment variables from .env file, specifying the path
# Assumes .env is in the project root, two levels above this package
dotenv_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "..", ".env")
load_dotenv(dotenv_path=dotenv_path)

# Import settings and database session management
from planipeda.core.config import settings
from planipeda.db.session import engine, Base

# Configure logging for the entire application
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)
logger.debug("Application startup: Initializing FastAPI application.")

# Registers every table on Base.metadata
import planipeda.models  # noqa: F401

# Import the API routers for each resource
from planipeda.api.v1 import chapter_plans, compositions, sequences
logger.debug("Main: Imported API routers.")

# --- Database Table Creation ---
def create_tables():
    """
    Creates all database tables based on the SQLAlchemy Base metadata.
    """
    Base.metadata.create_all(bind=engine)

# Create the main FastAPI application instance
app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)
logger.debug(f"Main: FastAPI application instance created with title '{settings.PROJECT_NAME}'.")

# --- Middleware ---
# Allowed origins come from CORS_ORIGINS; the default allows all origins.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
logger.debug("Main: CORS middleware added.")

# --- Event Handlers ---
@app.on_event("startup")
def on_startup():
    """
    Event handler that runs when the FastAPI application starts.
    Creates the database tables if they do not exist yet.
    """
    logger.debug("Main: Startup event triggered. Creating database tables.")
    create_tables()

# --- API Routers ---
app.include_router(sequences.router, prefix=f"{settings.API_V1_STR}/sequences", tags=["Sequences"])
logger.debug(f"Main: Including sequences router with prefix: {settings.API_V1_STR}/sequences")
app.include_router(chapter_plans.router, prefix=f"{settings.API_V1_STR}/chapter-plans", tags=["Chapter Plans"])
logger.debug(f"Main: Including chapter plans router with prefix: {settings.API_V1_STR}/chapter-plans")
app.include_router(compositions.router, prefix=f"{settings.API_V1_STR}/compositions", tags=["Compositions"])
logger.debug(f"Main: Including compositions router with prefix: {settings.API_V1_STR}/compositions")

# --- Root Endpoint ---
@app.get("/", tags=["Root"])
def read_root():
    """
    A simple root endpoint for health checks and to welcome users.
    """
    return {"message": f"Welcome to the {settings.PROJECT_NAME}"}
