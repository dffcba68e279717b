"""Farm Advisory API - sequential multi-agent crop advisory pipeline."""

import farm_advisory.startup  # noqa: F401

from fastapi import FastAPI, Request  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402
from fastapi.staticfiles import StaticFiles  # noqa: E402

from farm_advisory import config  # noqa: E402
from farm_advisory.lifecycle import lifespan  # noqa: E402
from farm_advisory.routers import pipelines, root, uploads  # noqa: E402

WRITE_METHODS = {"POST", "PATCH", "DELETE", "PUT"}

app = FastAPI(title="Farm Advisory API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def _optional_api_key_guard(request: Request, call_next):
    expected = config.api_key_required()
    if expected is None:
        return await call_next(request)

    if request.method in WRITE_METHODS:
        provided = request.headers.get("X-API-Key", "")
        if provided != expected:
            return JSONResponse(
                status_code=403,
                content={
                    "detail": {
                        "code": "Forbidden",
                        "description": "Invalid or missing API key",
                    }
                },
            )

    return await call_next(request)


app.include_router(root.router)
app.include_router(pipelines.router, prefix="/pipelines", tags=["Pipelines"])
app.include_router(uploads.router, prefix="/uploads", tags=["Uploads"])

upload_dir = config.upload_dir()
upload_dir.mkdir(parents=True, exist_ok=True)
app.mount(uploads.FILES_PATH, StaticFiles(directory=str(upload_dir)), name="uploads")
