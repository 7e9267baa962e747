from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mealgen.api.routes import router as api_router
from mealgen.errors import MealgenError
from mealgen.logging import configure_logging, get_logger
from mealgen.services.llm.dspy_client import check_llm_configuration
from mealgen.storage.db import create_db_and_tables

app = FastAPI(title="Mealgen API")
logger = get_logger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MealgenError)
async def mealgen_error_handler(request: Request, exc: MealgenError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request.failed path=%s status=%s error=%s", request.url.path, exc.status_code, exc)
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse({"error": "Invalid request parameters", "details": details}, status_code=400)


@app.on_event("startup")
def on_startup() -> None:
    configure_logging()
    logger.info("startup: configuring services")
    check_llm_configuration()
    create_db_and_tables()


app.include_router(api_router)
