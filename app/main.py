from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api.categories_router import router as router_categories
from app.api.likes_router import router as router_likes
from app.api.router import router as router_api
from app.auth.router import router as router_auth
from app.config import settings
from app.handlers import register_exception_handlers

app = FastAPI(title="Blog API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount(
    "/uploads",
    StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
    name="uploads",
)

app.include_router(router_auth)
app.include_router(router_api)
app.include_router(router_likes)
app.include_router(router_categories)

register_exception_handlers(app)
