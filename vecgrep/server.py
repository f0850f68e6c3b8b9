"""FastAPI entrypoint exposing batch semantic grep over HTTP."""

from __future__ import annotations

import asyncio
import os
import threading
import traceback
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException

from .embedder import Embedder
from .errors import ConfigError
from .models import (
    BlockPayload,
    DistributionPayload,
    GrepOptions,
    GrepRequest,
    GrepResponsePayload,
)
from .pipeline import GrepRunner
from .settings import load_settings

app = FastAPI(title="vecgrep", description="Semantic grep API")

runner: Optional[GrepRunner] = None
_runner_lock = threading.Lock()


def get_runner() -> GrepRunner:
    """The process-wide runner, built and loaded by the first caller only."""
    global runner
    with _runner_lock:
        if runner is None:
            settings = load_settings()
            embedder = Embedder(model_name=settings.model_name, offline=settings.offline, verbose=settings.verbose)
            embedder.load_model()
            runner = GrepRunner(embedder=embedder, settings=settings)
        return runner


@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok", "message": "vecgrep is running"}


@app.post("/grep", response_model=GrepResponsePayload, tags=["grep"])
async def grep(request: GrepRequest):
    try:
        current = await asyncio.to_thread(get_runner)
    except Exception as exc:
        traceback.print_exc()
        raise HTTPException(status_code=500, detail=str(exc))

    try:
        options = GrepOptions.build(
            query=request.query,
            threshold=request.threshold if request.threshold is not None else current.settings.threshold,
            before=request.before,
            after=request.after,
            top=request.top,
            hide_scores=request.hide_scores,
            batch_size=current.settings.batch_size,
        )
        result = await asyncio.to_thread(current.run_batch, request.lines, options)
    except ConfigError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except Exception as exc:
        traceback.print_exc()
        raise HTTPException(status_code=500, detail=str(exc))

    dist = result.distribution
    return GrepResponsePayload(
        output=result.output,
        blocks=[
            BlockPayload(start=window.start, end=window.end, lines=lines)
            for window, lines in zip(result.windows, result.blocks)
        ],
        matches=result.selection.count,
        summary=result.selection.summary,
        distribution=DistributionPayload(
            min=dist.min,
            p50=dist.p50,
            p90=dist.p90,
            p95=dist.p95,
            p99=dist.p99,
            p999=dist.p999,
            p9999=dist.p9999,
            max=dist.max,
        ),
    )


def main() -> None:
    host = os.environ.get("VECGREP_HOST", "127.0.0.1")
    port = int(os.environ.get("VECGREP_PORT", "8000"))
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
