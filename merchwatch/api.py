"""
merchwatch/api.py
─────────────────────────────────────────────────────────────────────────────
Merch Watch — Dual-mode API layer

TWO USAGE MODES:
  1. Importable module:
         from merchwatch.api import SlaReportAPI
         api = SlaReportAPI()
         result = api.generate_report(chat_text, "2024-10-16", sla_minutes=60)

  2. FastAPI HTTP server:
         python -m merchwatch.api                 # default: port 8766
         python -m merchwatch.api --port 9000
         uvicorn merchwatch.api:app --port 8766

ENDPOINTS:
  POST /report      — chat text + cutoff → {rows, csv, meta}
  POST /report.csv  — same input, CSV attachment
  GET  /config      — effective config
  GET  /health      — status + mapping readiness

ERRORS:
  400 — missing chatText / cutoffDate, bad cutoffDate, unknown policy
  500 — anything else; logged server-side, generic body to the caller
"""

from __future__ import annotations

import argparse
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from merchwatch.aggregators.timeline_builder import build_pid_timelines
from merchwatch.classifiers import get_policy
from merchwatch.config import ensure_config
from merchwatch.mapping_store import MappingStore
from merchwatch.models.record import MappingEntry
from merchwatch.parsers.chat_parser import parse_chat_text, parse_cutoff_date
from merchwatch.parsers.mapping_parser import parse_mapping_csv
from merchwatch.report import build_report, report_rows
from merchwatch.report_export import export_to_csv

logger = logging.getLogger(__name__)

VERSION = "1.2.0"


class ReportRequestError(ValueError):
    """Caller-side problem with a report request. Safe to show to the client."""


# ═══════════════════════════════════════════════════════════════════════════
# IMPORTABLE CLASS
# ═══════════════════════════════════════════════════════════════════════════

class SlaReportAPI:
    """
    Pure-Python entry point — import and call directly, no HTTP needed.

    Usage:
        api    = SlaReportAPI(config={"policy": "alternating_sender"})
        result = api.generate_report(chat_text, "2024-10-16")
        result["rows"], result["csv"], result["meta"]
    """

    def __init__(
        self,
        config:        Optional[Dict[str, Any]] = None,
        mapping_store: Optional[MappingStore]   = None,
    ):
        self.config = config if config is not None else ensure_config()
        self.mapping_store = mapping_store or MappingStore(
            mapping_dir  = self.config.get("mapping_dir"),
            mapping_urls = self.config.get("mapping_urls") or [],
            pattern      = self.config.get("mapping_glob") or "dump_*.csv",
            timeout_sec  = int(self.config.get("mapping_timeout_sec") or 15),
        )

    def mapping_for(
        self,
        mapping_csv_text: Optional[str]                     = None,
        mapping:          Optional[Dict[str, MappingEntry]] = None,
    ) -> Dict[str, MappingEntry]:
        """Caller-supplied table or upload when given, otherwise the shared store."""
        if mapping is not None:
            return mapping
        if mapping_csv_text:
            return parse_mapping_csv(mapping_csv_text)
        return self.mapping_store.get()

    def generate_report(
        self,
        chat_text:        Optional[str],
        cutoff_date:      Optional[str],
        sla_minutes:      Any                 = None,
        mapping_csv_text: Optional[str]       = None,
        policy:           Optional[str]       = None,
        now:              Optional[datetime]  = None,
        mapping:          Optional[Dict[str, MappingEntry]] = None,
    ) -> Dict[str, Any]:
        """
        Run the full pipeline:
          parse chat → build PID timelines → classify → rows + CSV.

        Raises ReportRequestError for caller mistakes. Anything else
        propagates to the caller.
        """
        if not chat_text or not cutoff_date:
            raise ReportRequestError("chatText and cutoffDate are required")
        try:
            cutoff = parse_cutoff_date(cutoff_date)
        except ValueError:
            raise ReportRequestError("Invalid cutoffDate")
        try:
            sla_policy = get_policy(policy, self.config)
        except KeyError as exc:
            raise ReportRequestError(str(exc.args[0]))

        sla     = _resolve_sla(sla_minutes, self.config.get("sla_minutes"), sla_policy.default_sla_minutes)
        now     = now or datetime.now(timezone.utc)
        mapping = self.mapping_for(mapping_csv_text, mapping)

        messages  = parse_chat_text(chat_text, cutoff)
        timelines = build_pid_timelines(messages)
        report    = build_report(timelines, mapping, sla_policy, sla, now=now)

        meta: Dict[str, Any] = {
            "mappingCount":   report.mapping_count,
            "policy":         report.policy,
            "slaMinutes":     sla,
            "cutoffDate":     cutoff.strftime("%Y-%m-%d"),
            "messagesParsed": len(messages),
            "pidCount":       report.pid_count,
            "rowCount":       len(report.rows),
        }
        if report.policy == "alternating_sender":
            meta["matchedPidCount"] = report.matched_pid_count

        logger.info(
            f"Report ready | policy={report.policy} sla={sla}m "
            f"pids={report.pid_count} rows={len(report.rows)}"
        )
        return {
            "rows": report_rows(report),
            "csv":  export_to_csv(report),
            "meta": meta,
        }


def _resolve_sla(requested: Any, configured: Any, policy_default: int) -> int:
    """Request value, then config value, then policy default. Never below 1."""
    for candidate in (requested, configured):
        if candidate is None or candidate == "":
            continue
        try:
            return max(1, int(candidate))
        except (TypeError, ValueError):
            logger.debug(f"Ignoring non-integer slaMinutes: {candidate!r}")
    return policy_default


# ═══════════════════════════════════════════════════════════════════════════
# FASTAPI HTTP APP
# ═══════════════════════════════════════════════════════════════════════════

class ReportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chat_text:        Optional[str] = Field(None, alias="chatText")
    cutoff_date:      Optional[str] = Field(None, alias="cutoffDate")
    sla_minutes:      Optional[Any] = Field(None, alias="slaMinutes")
    mapping_csv_text: Optional[str] = Field(None, alias="mappingCsvText")
    policy:           Optional[str] = None


def _build_app(api: Optional[SlaReportAPI] = None) -> FastAPI:
    """Build the FastAPI application around one SlaReportAPI instance."""
    _api = api or SlaReportAPI()

    _app = FastAPI(
        title       = "Merch Watch API",
        description = "Open PID queries and SLA breaches from exported chat transcripts",
        version     = VERSION,
        docs_url    = "/docs",
        redoc_url   = None,
    )

    _app.add_middleware(
        CORSMiddleware,
        allow_origins     = list(_api.config.get("cors_origins") or []),
        allow_methods     = ["GET", "POST", "OPTIONS"],
        allow_headers     = ["Content-Type"],
        allow_credentials = False,
    )

    def _run(req: ReportRequest) -> Dict[str, Any]:
        try:
            return _api.generate_report(
                chat_text        = req.chat_text,
                cutoff_date      = req.cutoff_date,
                sla_minutes      = req.sla_minutes,
                mapping_csv_text = req.mapping_csv_text,
                policy           = req.policy,
            )
        except ReportRequestError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except Exception as exc:
            logger.error(f"Report endpoint error: {exc}", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal Server Error")

    @_app.post("/report", summary="Build open-query report")
    def report(req: ReportRequest):
        """
        Parse the chat transcript, group messages per PID and classify each
        PID's SLA status. Returns rows, the CSV rendering and counts.
        """
        return JSONResponse(content=_run(req), status_code=200)

    @_app.post("/report.csv", summary="Build open-query report as CSV")
    def report_csv(req: ReportRequest):
        result = _run(req)
        return Response(
            content    = result["csv"],
            media_type = "text/csv",
            headers    = {"Content-Disposition": 'attachment; filename="open_queries.csv"'},
        )

    @_app.get("/config", summary="Effective config")
    def get_config():
        return {"config": _api.config}

    @_app.get("/health", summary="Health check")
    def health():
        store = _api.mapping_store
        return {
            "status":         "ok",
            "mapping_loaded": store.is_loaded,
            "mapping_count":  len(store.get()) if store.is_loaded else None,
            "version":        VERSION,
        }

    return _app


# Module-level app instance, used by uvicorn merchwatch.api:app
app = _build_app()


# ═══════════════════════════════════════════════════════════════════════════
# CLI ENTRYPOINT: python -m merchwatch.api / merchwatch-api
# ═══════════════════════════════════════════════════════════════════════════

def main():
    import uvicorn

    parser = argparse.ArgumentParser(
        prog        = "merchwatch-api",
        description = "Merch Watch API Server",
    )
    parser.add_argument("--host",   type=str,  default=None, help="Host to bind (default from config)")
    parser.add_argument("--port",   type=int,  default=None, help="Port to bind (default from config)")
    parser.add_argument("--root",   type=Path, default=None, help="Directory holding merchwatch_config.json")
    args = parser.parse_args()

    logging.basicConfig(
        level   = logging.INFO,
        format  = '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt = '%H:%M:%S',
    )

    config = ensure_config(args.root)
    server_app = _build_app(SlaReportAPI(config=config))

    uvicorn.run(
        server_app,
        host      = args.host or config.get("api_host") or "127.0.0.1",
        port      = args.port or int(config.get("api_port") or 8766),
        log_level = "info",
    )


if __name__ == "__main__":
    main()
