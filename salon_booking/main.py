from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from salon_booking.core.config import settings
from salon_booking.core.errors import BookingError
from salon_booking.api import bookings
from salon_booking.core.logger import setup_logging, logger
from salon_booking.services.booking_service import BookingService
from salon_booking.services.db_service import SupabaseBookingStore
from salon_booking.services.store import BookingStore, InMemoryBookingStore
from contextlib import asynccontextmanager
from datetime import datetime

setup_logging()


def build_store() -> BookingStore:
    if settings.STORE_BACKEND == "memory":
        logger.warning("⚠️ Using in-memory booking store, data is lost on restart")
        return InMemoryBookingStore()
    return SupabaseBookingStore()


def build_booking_service(store: BookingStore) -> BookingService:
    return BookingService(
        store,
        degraded_mode=settings.degraded_mode_allowed,
        any_stylist_blocks_slot=settings.ANY_STYLIST_BLOCKS_SLOT,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"🚀 Starting {settings.PROJECT_NAME} ({settings.ENVIRONMENT})")
    store = build_store()
    await store.connect()
    app.state.booking_service = build_booking_service(store)
    if not store.is_ready():
        logger.warning("🟡 Booking store not ready" + (", degraded mode active" if settings.degraded_mode_allowed else ""))
    yield
    # Shutdown
    await store.close()
    logger.info("🛑 Shutting down backend")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Invalid request", "error": "ValidationError"}
    )

# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"🔥 UNHANDLED ERROR: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal Server Error", "error": str(exc)}
    )

app.include_router(bookings.router, prefix=settings.API_PREFIX, tags=["Bookings"])

@app.get("/")
async def root():
    return {"message": "Barber Shop Backend API is running!"}

@app.get("/health")
async def health_check(request: Request):
    service = getattr(request.app.state, "booking_service", None)
    ready = bool(service and service.store.is_ready())
    return {
        "status": "ok",
        "timestamp": datetime.now().isoformat(),
        "database": {
            "state": "connected" if ready else "disconnected",
            "backend": service.store.backend if service else settings.STORE_BACKEND,
        },
        "environment": settings.ENVIRONMENT,
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("salon_booking.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
