from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables from .env file
load_dotenv()

from nameplate.api import generate
from nameplate.core.errors import NameplateError


try:
    allowed_origins = generate.get_settings().allowed_origins
except NameplateError as e:
    # Requests still get the configuration error as JSON from the route
    print(f"Warning: {e.message}")
    allowed_origins = ["*"]


app = FastAPI(
    title="Nameplate API",
    description="AI-generated premium nameplates from a face photo",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_methods=["POST", "OPTIONS", "GET"],
    allow_headers=["Content-Type"],
)

app.add_exception_handler(NameplateError, generate.nameplate_error_handler)

# Register routes
app.include_router(generate.router, prefix="/api", tags=["generate"])


@app.get("/")
async def root():
    """Health check."""
    return {"status": "ok", "service": "Nameplate API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
