from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auth import router as auth_router
from comments import router as comments_router
from core import db, settings
from core.logging_setup import setup_logging
from core.responses import install_exception_handlers
from posts import router as posts_router
from users import router as users_router

setup_logging()


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Initialize the DB pool once per process.
    await db.init_pool()
    try:
        yield
    finally:
        await db.close_pool()


app = FastAPI(title="social-api", lifespan=lifespan)

# Allow the frontend dev server to call this API from the browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_exception_handlers(app)

app.include_router(auth_router.router, tags=["auth"])
app.include_router(users_router.router, tags=["users"])
app.include_router(posts_router.router, tags=["posts"])
app.include_router(comments_router.router, tags=["comments"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def root() -> dict:
    return {"message": "social api"}
