"""
Read access to the rotating log file written by cloudscan.core.logging_config.
"""
from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, List, Optional

import os

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import StreamingResponse

from cloudscan.core.logging_config import LOG_FILE

LOG_PATH = LOG_FILE
MAX_LIMIT = 500

router = APIRouter(prefix="/logs")


def parse_log_line(line: str) -> Optional[Dict[str, Any]]:
    # "2024-02-23 10:30:45 | INFO     | cloudscan.modules.scan.node | Message"
    parts = line.split(' | ', 3)
    if len(parts) < 4:
        return None
    timestamp, level, module, message = (p.strip() for p in parts)
    return {"timestamp": timestamp, "level": level, "module": module, "message": message}


def iter_entries(lines: Iterable[str], level: Optional[str], search: Optional[str]) -> Iterator[Dict[str, Any]]:
    """Parsed entries matching the level and free-text filters; unparseable lines are skipped."""
    wanted_level = level.upper() if level else None
    needle = search.lower() if search else None
    for line in lines:
        entry = parse_log_line(line)
        if entry is None:
            continue
        if wanted_level and entry["level"] != wanted_level:
            continue
        if needle and needle not in entry["message"].lower():
            continue
        yield entry


@router.get("")
def get_logs(
    level: Optional[str] = Query(None, description="Log level to filter by (TRACE, DEBUG, INFO, WARNING, ERROR)"),
    search: Optional[str] = Query(None, description="Free text to search for in log message"),
    offset: int = Query(0, ge=0, description="Entries to skip, counting back from the newest"),
    limit: int = Query(100, ge=1, description=f"Number of entries to return, max {MAX_LIMIT}"),
) -> List[Dict[str, Any]]:
    if not os.path.exists(LOG_PATH):
        return []

    with open(LOG_PATH, 'r', encoding='utf-8', errors='ignore') as f:
        lines = f.readlines()

    results = []
    for index, entry in enumerate(iter_entries(reversed(lines), level, search)):
        if index < offset:
            continue
        results.append(entry)
        if len(results) >= min(limit, MAX_LIMIT):
            break
    return results


@router.get("/download")
def download_logs(
    level: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
):
    if not os.path.exists(LOG_PATH):
        raise HTTPException(status_code=404, detail="Log file not found")

    def generate():
        with open(LOG_PATH, 'r', encoding='utf-8', errors='ignore') as f:
            for entry in iter_entries(f, level, search):
                yield f"[{entry['timestamp']}] [{entry['level'].ljust(8)}] [{entry['module']}] {entry['message']}\n"

    stamp = datetime.now().strftime("%Y-%m-%d_%H%M%S")
    return StreamingResponse(
        generate(),
        media_type="text/plain",
        headers={"Content-Disposition": f"attachment; filename=cloud_to_scan_logs_{stamp}.txt"}
    )
