from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from eonchat.routes import auth, users, requests, messages, notifications, bot, websocket
from eonchat.core.auth import get_current_user
from eonchat.core.config import settings
from eonchat.core.relay import relay
from eonchat.core.websocket import manager
from eonchat.utils.logger import safe_print, setup_logging
from dotenv import load_dotenv
import json
import logging

load_dotenv()
setup_logging(settings.LOG_LEVEL)

logger = logging.getLogger(__name__)


# Custom JSON encoder that preserves Unicode characters (emojis)
class UnicodeJSONResponse(JSONResponse):
    def render(self, content) -> bytes:
        return json.dumps(
            content,
            ensure_ascii=False,
            allow_nan=False,
            indent=None,
            separators=(",", ":"),
        ).encode("utf-8")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("EonChat API starting")
    yield
    # Let in-flight notification saves finish before the process exits
    if relay.pending:
        logger.info(f"Waiting for {relay.pending} notification saves")
    await relay.drain()
    logger.info("EonChat API stopped")


app = FastAPI(
    title="EonChat API",
    description="Two-person chat with friend recommendations and real-time fan-out",
    version="1.0.0",
    openapi_tags=[
        {"name": "Authentication", "description": "Signup, login and email verification"},
        {"name": "Users", "description": "Search, friends and recommendations"},
        {"name": "Requests", "description": "Friend request endpoints"},
        {"name": "Messages", "description": "Message management endpoints"},
        {"name": "Notifications", "description": "Notification stack endpoints"},
        {"name": "Bot", "description": "Keyword bot endpoints"},
        {"name": "WebSocket", "description": "WebSocket endpoints"},
    ],
    # Configure default JSON response class to preserve Unicode
    default_response_class=UnicodeJSONResponse,
    lifespan=lifespan
)


# Add request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming API requests"""
    method = request.method
    path = request.url.path
    query_params = str(request.query_params) if request.query_params else ""

    safe_print(f"[{method}] {path}" + (f"?{query_params}" if query_params else ""))
    response = await call_next(request)
    safe_print(f"[{method}] {path} - Status: {response.status_code}")

    return response


# Configure CORS - MUST be added before routes
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CLIENT_URLS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["*"],
)


def cors_headers(request: Request) -> dict:
    origin = request.headers.get("origin")
    if origin in settings.CLIENT_URLS:
        return {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Credentials": "true",
        }
    return {}


# Global exception handlers keep CORS headers on error responses
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    headers = cors_headers(request)
    if exc.headers:
        headers.update(exc.headers)
    return UnicodeJSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return UnicodeJSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors())},
        headers=cors_headers(request)
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return UnicodeJSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
        headers=cors_headers(request)
    )


# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])

# Protected routes (require authentication)
app.include_router(users.router, prefix="/api/users", tags=["Users"], dependencies=[Depends(get_current_user)])
app.include_router(requests.router, prefix="/api/requests", tags=["Requests"], dependencies=[Depends(get_current_user)])
app.include_router(messages.router, prefix="/api/messages", tags=["Messages"], dependencies=[Depends(get_current_user)])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"], dependencies=[Depends(get_current_user)])
app.include_router(bot.router, prefix="/api/bot", tags=["Bot"], dependencies=[Depends(get_current_user)])

app.include_router(websocket.router, prefix="/api", tags=["WebSocket"])


@app.get("/")
async def root():
    return {"message": "Welcome to the EonChat API"}


@app.get("/api/health")
async def health_check():
    return {
        "status": "healthy",
        "connections": len(manager.connections),
        "pending_notifications": relay.pending
    }


# Run uvicorn server when file is executed directly
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
