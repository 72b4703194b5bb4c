# app/routers/system.py
from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter()


@router.get("/healthz", response_class=PlainTextResponse)  # tiny health check, no auth
def healthz():
    return "ok"
