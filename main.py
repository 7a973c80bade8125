import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from timeledger.config import CORS_ORIGINS, LOG_LEVEL
from timeledger.services.errors import TimesheetError

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Timeledger API")

# --- Register routers ---
from timeledger.routers.timesheets import router as timesheets_router
from timeledger.routers.approvals import router as approvals_router
from timeledger.routers.locks import router as locks_router
from timeledger.routers.reports import router as reports_router

app.include_router(timesheets_router)
app.include_router(approvals_router)
app.include_router(locks_router)
app.include_router(reports_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in CORS_ORIGINS],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Domain error -> HTTP status
ERROR_STATUS = {
    "validation_error": 400,
    "forbidden": 403,
    "not_found": 404,
    "invalid_state": 409,
    "daily_cap_exceeded": 422,
}


@app.exception_handler(TimesheetError)
async def timesheet_error_handler(request: Request, exc: TimesheetError):
    status = ERROR_STATUS.get(exc.kind, 400)
    if status >= 403:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, status, exc.message)
    return JSONResponse(status_code=status, content=exc.to_dict())


@app.get("/health")
def health():
    return {"ok": True}
