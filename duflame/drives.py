from __future__ import annotations
import os
from typing import Optional
import psutil

def default_workers() -> int:
    return psutil.cpu_count() or 1

def volume_for(path: str) -> Optional[dict]:
    """Usage of the mounted volume holding ``path`` (longest matching mountpoint)."""
    ap = os.path.abspath(path)
    best = None
    for p in psutil.disk_partitions(all=False):
        mp = p.mountpoint
        if not mp:
            continue
        mp_norm = os.path.abspath(mp)
        if ap != mp_norm and not ap.startswith(mp_norm.rstrip(os.sep) + os.sep):
            continue
        if best is None or len(mp_norm) > len(best[0]):
            best = (mp_norm, p.fstype)
    if best is None:
        return None
    try:
        u = psutil.disk_usage(best[0])
    except OSError:
        return None
    return {
        "mountpoint": best[0],
        "fstype": best[1],
        "total": int(u.total),
        "used": int(u.used),
        "free": int(u.free),
        "percent": float(u.percent),
    }
