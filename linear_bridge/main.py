from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
from linear_bridge.linear_mcp import linear_client, linear_mcp_server
from linear_bridge.core.config import settings
from contextlib import asynccontextmanager
from linear_bridge.api import health_router

import logging

# Load environment variables from .env file
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create MCP HTTP app
linear_mcp_app = linear_mcp_server.http_app()


# combining app lifespan with FastMCP lifespan
@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        async with linear_mcp_app.lifespan(app):
            yield
    finally:
        await linear_client.close()


# Create FastAPI app
app = FastAPI(title=settings.APP_NAME, version="1.0.0", lifespan=lifespan)

# Mount MCP server
app.mount("/linear", linear_mcp_app)

# CORS configuration
origins = [origin.strip() for origin in settings.CORS_ORIGINS.split(",")]
logger.info(f"CORS configured with origins: {origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error: {exc}", exc_info=True)

    # Don't expose internal errors in production
    if settings.ENV == "production":
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})
    else:
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal Server Error", "error": str(exc)}
        )


# Mount fastapi routes
app.include_router(health_router, prefix="/api")


def run():
    import uvicorn
    logger.info(f"Starting server on {settings.HOST}:{settings.PORT}")
    uvicorn.run(
        "linear_bridge.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )


if __name__ == "__main__":
    run()
