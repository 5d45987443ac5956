# exam_portal/main.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.sessions import SessionMiddleware
import logging
from dotenv import load_dotenv
from exam_portal.config.settings import get_settings
from exam_portal.database.database import init_db

# Import routers
from exam_portal.routers.mock_exam_router import router as mock_exam_router
from exam_portal.routers.handout_router import router as handout_router

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()
init_db()

settings = get_settings()
if settings.session_secret_key == "change-me":
    logger.warning("SESSION_SECRET_KEY not set; using the development default")

app = FastAPI(title="PowerPoint Mock Exam API")

# CORS middleware configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SessionMiddleware, secret_key=settings.session_secret_key)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Unhandled database error on {request.url.path}: {str(exc)}")
    return JSONResponse(status_code=503, content={"detail": "Database connection failed."})


# Include routers
app.include_router(mock_exam_router)
app.include_router(handout_router)

@app.get("/")
async def root():
    return {"message": "PowerPoint Mock Exam API is running"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
