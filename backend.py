import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prepwise.config import FRONTEND_URL
from prepwise.database import init_db
from prepwise.log import setup_logging
from prepwise.routers import users_router, interviews_router, feedback_router, call_router

logger = logging.getLogger("prepwise")

app = FastAPI(title="PrepWise API")

app.include_router(users_router)
app.include_router(interviews_router)
app.include_router(feedback_router)
app.include_router(call_router)


def _strip_trailing_slash(value: str) -> str:
    return value[:-1] if value.endswith("/") else value


allowed_origins = [
    _strip_trailing_slash(FRONTEND_URL),
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup():
    setup_logging()
    init_db()
    logger.info("[Startup] PrepWise API ready, accepting origins %s", allowed_origins)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "PrepWise API is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
