import json
import os
import time
import logging
import uuid

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from pydantic import BaseModel

from gitver.config import DEFAULT_MAIN_BRANCH, DEFAULT_MAJOR_PATTERN, DEFAULT_MINOR_PATTERN, Settings
from gitver.errors import GitVersionError, PatternCompileError
from gitver.repository import GitRepository
from gitver.version import compute_version

load_dotenv()

logger = logging.getLogger("gitver")
if not logger.handlers:
    handler = logging.StreamHandler()
    logger.addHandler(handler)
logger.setLevel(logging.INFO)

app = FastAPI(title="gitver", version="0.1.0")

try:
    METRIC_COMPUTATIONS = Counter(
        "gitver_computations_total", "Version computations", ["outcome"]
    )
    METRIC_LATENCY = Histogram(
        "gitver_computation_latency_seconds",
        "Latency of version computations",
        buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30),
    )
except ValueError:
    # Already registered (e.g., module reload in tests)
    METRIC_COMPUTATIONS = None
    METRIC_LATENCY = None


@app.middleware("http")
async def request_id_middleware(request, call_next):  # type: ignore
    req_id = str(uuid.uuid4())
    request.state.request_id = req_id
    resp = await call_next(request)
    resp.headers["X-Request-ID"] = req_id
    return resp


def _settings_from_env() -> Settings:
    return Settings(
        repo_path=os.getenv("GITVER_REPO", "."),
        path_filter=os.getenv("GITVER_PATH") or None,
        major_pattern=os.getenv("GITVER_MAJOR_REGEX", DEFAULT_MAJOR_PATTERN),
        minor_pattern=os.getenv("GITVER_MINOR_REGEX", DEFAULT_MINOR_PATTERN),
        main_branch_name=os.getenv("GITVER_MAIN_BRANCH", DEFAULT_MAIN_BRANCH),
        structured_logging=os.getenv("GITVER_STRUCT_LOG", "1") != "0",
        auth_token=os.getenv("GITVER_AUTH_TOKEN"),
    )


SET = _settings_from_env()


class VersionResult(BaseModel):
    version: str
    major: int
    minor: int
    patch: int
    prerelease: str | None = None
    build: str | None = None
    branch: str
    is_main_branch: bool
    ahead: int
    commits_counted: int
    warnings: list[str] = []
    request_id: str | None = None


@app.get("/healthz")
def healthz():
    return {
        "ok": True,
        "repo": SET.repo_path,
        "main_branch": SET.main_branch_name,
        "path_filter": SET.path_filter,
    }


@app.get("/readyz")
def readyz():
    # Ready once the configured repository can be opened
    try:
        with GitRepository.open(SET.repo_path):
            pass
    except GitVersionError as e:
        return Response(
            content=json.dumps({"ok": False, "error": str(e)}),
            media_type="application/json",
            status_code=503,
        )
    return {"ok": True}


def require_auth(request: Request):
    if SET.auth_token:
        auth = request.headers.get("Authorization")
        if not auth or auth != f"Bearer {SET.auth_token}":
            raise HTTPException(status_code=401, detail="unauthorized")
    return True


def _log_event(payload: dict) -> None:
    if not SET.structured_logging:
        return
    logger.info(json.dumps(payload))


@app.get("/version", response_model=VersionResult)
def version(
    request: Request,
    path: str | None = None,
    main_branch: str | None = None,
    _: bool = Depends(require_auth),
):
    settings = SET.model_copy(
        update={
            "path_filter": path if path is not None else SET.path_filter,
            "main_branch_name": main_branch or SET.main_branch_name,
        }
    )
    request_id = getattr(request.state, "request_id", None)
    start = time.time()
    try:
        report = compute_version(settings)
    except GitVersionError as e:
        if METRIC_COMPUTATIONS:
            METRIC_COMPUTATIONS.labels(outcome=e.stage).inc()
        _log_event(
            {
                "event": "version_failed",
                "stage": e.stage,
                "error": e.message,
                "repo": settings.repo_path,
                "request_id": request_id,
            }
        )
        code = 422 if isinstance(e, PatternCompileError) else 500
        raise HTTPException(status_code=code, detail={"stage": e.stage, "error": e.message})
    duration = time.time() - start
    if METRIC_COMPUTATIONS:
        METRIC_COMPUTATIONS.labels(outcome="ok").inc()
    if METRIC_LATENCY:
        METRIC_LATENCY.observe(duration)

    v = report.version
    result = VersionResult(
        version=str(v),
        major=v.major,
        minor=v.minor,
        patch=v.patch,
        prerelease=v.prerelease,
        build=v.build,
        branch=report.branch.current_branch_name,
        is_main_branch=report.branch.is_main_branch,
        ahead=report.branch.ahead_count,
        commits_counted=max(len(report.retained) - 1, 0),
        warnings=[f"{w.commit_id}: {w.reason}" for w in report.warnings],
        request_id=request_id,
    )
    _log_event(
        {
            "event": "version_computed",
            "version": result.version,
            "branch": result.branch,
            "repo": settings.repo_path,
            "warnings": len(result.warnings),
            "latency_ms": int(duration * 1000),
            "request_id": request_id,
        }
    )
    return result


@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def main():
    # Convenience entrypoint: `gitver-server`
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8787"))
    uvicorn.run("services.gitver.main:app", host=host, port=port, reload=False)
