from functools import lru_cache

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from nameplate.core.config import Settings
from nameplate.core.errors import NameplateError
from nameplate.core.runner import GenerationRunner
from nameplate.models.schemas import ErrorResponse, GenerateResponse


router = APIRouter()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def get_runner(settings: Settings = Depends(get_settings)) -> GenerationRunner:
    return GenerationRunner.from_settings(settings)


async def nameplate_error_handler(request: Request, exc: NameplateError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message).model_dump(),
    )


@router.post(
    "/generate",
    response_model=GenerateResponse,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def generate(request: Request, runner: GenerationRunner = Depends(get_runner)):
    """
    Generate a nameplate image from a multipart form
    (name, job, phone, face and optionally outfit/portraitStyle).
    """
    body = await request.body()
    content_type = request.headers.get("content-type", "")

    try:
        return await run_in_threadpool(runner.run, body, content_type)
    except NameplateError:
        raise
    except Exception as e:
        print(f"Function error: {e}")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error=str(e) or "Lỗi xử lý tạo ảnh.").model_dump(),
        )
