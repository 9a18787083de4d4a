# backend/main.py
"""
Interview session service: REST question/answer flow plus the live transcript socket.
"""
import os
import sys
import logging
from dotenv import load_dotenv

logging.basicConfig(stream=sys.stdout, level=logging.INFO)
_log = logging.getLogger("env_loader")

# Candidate .env locations (in order)
#  - PROJECT_ROOT/.env
#  - BACKEND_DIR/.env
#  - current working directory .env
BASE_DIR = os.path.dirname(os.path.abspath(__file__))        # backend/
PROJECT_ROOT = os.path.dirname(BASE_DIR)                     # project root (parent of backend)
CWD = os.getcwd()

cand_paths = [
    os.path.join(PROJECT_ROOT, ".env"),
    os.path.join(BASE_DIR, ".env"),
    os.path.join(CWD, ".env"),
]

loaded_from = None
for p in cand_paths:
    if os.path.exists(p):
        load_dotenv(p, override=False)
        loaded_from = p
        _log.info("Loaded .env from: %s", p)
        break

if not loaded_from:
    load_dotenv(override=False)

# ---------------------------------------------------------

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import interviews, ws_interview
from core.config import settings
from core.errors import install_error_handlers
from core.logging import setup_json_logging
from core.request_id import RequestIDMiddleware
from db.init_db import init_db

setup_json_logging()
_log.info("[ENV] INTERVIEW_AGENT_PROVIDER=%s, INTERVIEW_AGENT_URL=%s", settings.agent_provider, settings.agent_url)

app = FastAPI(title="Interview Session API")

app.include_router(interviews.router)
app.include_router(ws_interview.router)

install_error_handlers(app)

app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

init_db()


@app.get("/health")
def health():
    return {"ok": True}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "8000")))
