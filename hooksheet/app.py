# hooksheet/app.py
import time
from typing import Literal

# Load .env BEFORE any hooksheet imports (they read env vars at import time)
from dotenv import load_dotenv
load_dotenv(override=True)

from fastapi import FastAPI, Request, Path, Query
from fastapi.responses import JSONResponse, Response, PlainTextResponse

from hooksheet.orchestrator import WebhookOrchestrator
from hooksheet.store import RecordStore
from hooksheet.schemas import RowsResponse, WebhookSubmission
from hooksheet.errors import ExportError
from hooksheet import exporter
from hooksheet import monitoring
from hooksheet import samples

app = FastAPI(title="Webhook Transformer API")

# one in-memory store per process; nothing survives a restart
store = RecordStore()
orchestrator = WebhookOrchestrator(store)


def _internal_error(e: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "error_code": "E_INTERNAL",
            "message": "Internal server error",
            "details": {"exception": str(e)},
        },
    )


# ---------------------------------------------------------------------------
# Metrics middleware
# ---------------------------------------------------------------------------
@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.time()
    endpoint = request.url.path
    method = request.method
    status = "500"
    try:
        response = await call_next(request)
        status = str(response.status_code)
        return response
    except Exception:
        monitoring.logger.exception("Unhandled exception in request", extra={"path": endpoint})
        raise
    finally:
        monitoring.observe_request(start, endpoint, method, status)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@app.post("/api/webhooks")
def submit_webhook(req: WebhookSubmission):
    """
    POST /api/webhooks
    Body: { "payload": "<raw JSON text>", "instructions": "..." }
    Returns a tri-state result: success / input_error / processing_error.
    """
    monitoring.logger.info("Received webhook submission", extra={"payload_bytes": len(req.payload)})
    try:
        resp = orchestrator.submit(req.payload, req.instructions)
        return JSONResponse(status_code=200, content=resp)
    except Exception as e:
        monitoring.logger.exception("Unexpected error in /api/webhooks handler")
        return _internal_error(e)


@app.get("/api/rows")
def list_rows(order: Literal["newest", "oldest"] = Query("newest")):
    rows, columns = store.snapshot(newest_first=(order == "newest"))
    body = RowsResponse(count=len(rows), columns=columns, rows=rows)
    return JSONResponse(status_code=200, content=body.model_dump(by_alias=True))


@app.get("/api/columns")
def list_columns():
    return {"columns": store.column_union()}


@app.delete("/api/rows")
def clear_rows():
    """
    DELETE /api/rows
    Irreversible bulk clear. Confirmation is the client's job.
    """
    removed = orchestrator.clear()
    return {"status": "success", "cleared": removed}


@app.get("/api/export")
def export_rows(order: Literal["newest", "oldest"] = Query("newest")):
    """
    GET /api/export?order=newest|oldest
    CSV download of the whole store; 204 when there is nothing to export.
    """
    try:
        content = exporter.export_csv(store, newest_first=(order == "newest"))
    except ExportError:
        monitoring.inc_export("empty")
        return Response(status_code=204)
    except Exception as e:
        monitoring.inc_export("error")
        monitoring.logger.exception("Unexpected error in /api/export handler")
        return _internal_error(e)
    monitoring.inc_export("success")
    filename = exporter.export_filename()
    return Response(
        content=content,
        media_type=exporter.CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/api/endpoint")
def webhook_endpoint():
    return {"url": samples.ENDPOINT_URL, "simulated": True}


@app.get("/api/samples")
def list_samples():
    return {"samples": [s.model_dump() for s in samples.SAMPLE_WEBHOOKS]}


@app.post("/api/samples/{index}/simulate")
def simulate_sample(index: int = Path(..., description="Sample webhook index"),
                    process: bool = Query(False)):
    """
    POST /api/samples/{index}/simulate?process=true|false
    Pretends the sample arrived on the endpoint; with process=true it is also submitted.
    """
    try:
        sample = samples.get_sample(index)
    except IndexError:
        return JSONResponse(
            status_code=404,
            content={"status": "error", "error_code": "E_NOT_FOUND", "message": f"No sample webhook at index {index}"},
        )
    log = [f"POST {samples.ENDPOINT_URL} - 200 OK", f"Payload received: {sample.name}"]
    monitoring.logger.info("Simulated webhook received", extra={"sample": sample.name, "auto_process": process})
    body = {"sample": sample.model_dump(), "log": log, "result": None}
    if process:
        log.append("Auto-triggering transformation...")
        try:
            body["result"] = orchestrator.submit(sample.payload, sample.instructions)
        except Exception as e:
            monitoring.logger.exception("Unexpected error in /api/samples simulate handler")
            return _internal_error(e)
    return JSONResponse(status_code=200, content=body)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/metrics")
async def metrics():
    if not monitoring.PROMETHEUS_ENABLED:
        return PlainTextResponse("Prometheus disabled", status_code=404)
    payload, content_type = monitoring.prometheus_metrics_response()
    return Response(content=payload, media_type=content_type)
