import logging

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from supabase import Client

from campus.core.config import settings
from campus.db.supabase import get_supabase
from campus.modules.auth.router import router as auth_router
from campus.modules.classrooms.router import router as classrooms_router
from campus.modules.schedule.router import router as schedule_router
from campus.modules.attendance.router import router as attendance_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Campus Core",
    description="Classroom scheduling and attendance backend",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins for development
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Every error leaves the API as {"error": message}
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    reason = first.get("msg", "Invalid request")
    message = f"{field}: {reason}" if field else reason
    logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content={"error": message})


# Root route (test)
@app.get("/")
def root():
    return {"message": "Campus Core API ready"}


# Health check route
@app.get("/health")
def health_check(db: Client = Depends(get_supabase)):
    """Check if the service and database connection are healthy"""
    try:
        db.table("profiles").select("id").limit(1).execute()
        return {"status": "healthy", "database": "connected"}
    except Exception as e:
        logger.warning("Health check failed: %s", e)
        return {"status": "unhealthy", "database": f"error: {str(e)}"}


# Include routers
app.include_router(auth_router, prefix="/auth", tags=["Auth"])
app.include_router(classrooms_router, prefix="/classrooms", tags=["Classrooms"])
app.include_router(schedule_router, prefix="/schedule", tags=["Schedule"])
app.include_router(attendance_router, prefix="/attendance", tags=["Attendance"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("campus.main:app", host="0.0.0.0", port=8000)
