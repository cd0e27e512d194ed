from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from repurposer.config import get_settings
from repurposer.routers import ai, content, sources, usage

settings = get_settings()

app = FastAPI(title="Content Repurposer API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(ai.router)
app.include_router(sources.router)
app.include_router(content.router)
app.include_router(usage.router)


@app.get("/")
def root():
    return {"message": "Content Repurposer API", "docs": "/docs"}
