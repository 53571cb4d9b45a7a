# payments_portal/operations/health_monitor.py

# Readiness checks: database reachability and free disk space

import shutil
from typing import Dict

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from payments_portal.extensions import db


def _check_db() -> Dict:
    try:
        db.session.execute(text("SELECT 1"))
        return {"ok": True, "detail": "database reachable"}
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Health check database error: {e}")
        return {"ok": False, "error": type(e).__name__}


def _check_disk(min_free_gb: float) -> Dict:
    total, used, free = shutil.disk_usage(".")
    free_gb = free / (1024**3)
    return {"ok": free_gb >= min_free_gb, "free_gb": round(free_gb, 2), "min_required_gb": min_free_gb}


def check_health() -> Dict:
    """Aggregate overall system health."""
    database = _check_db()
    disk = _check_disk(current_app.config['MIN_FREE_DISK_GB'])
    return {"db": database, "disk": disk, "overall_ok": database["ok"] and disk["ok"]}
