
import os
import time
from fastapi import APIRouter, Depends
from ..core.channel_manager import ChannelManager
from .deps import get_manager

router = APIRouter(prefix="/metrics", tags=["metrics"])

STARTED = time.monotonic()

def _proc_status_kb(*fields: str) -> dict[str, int | None]:
    """Selected kB fields of /proc/self/status; None where unavailable."""
    found: dict[str, int | None] = dict.fromkeys(fields)
    try:
        with open("/proc/self/status") as f:
            for line in f:
                name, _, rest = line.partition(":")
                if name in found and rest.split():
                    found[name] = int(rest.split()[0])
    except OSError:
        pass
    return found

@router.get("/system")
def system_metrics(manager: ChannelManager = Depends(get_manager)):
    load = os.getloadavg() if hasattr(os, "getloadavg") else (0.0, 0.0, 0.0)
    stores = [c.store for c in manager.channels.values()]
    return {
        "uptime_s": round(time.monotonic() - STARTED, 3),
        "loadavg_1_5_15": load,
        "process_kb": _proc_status_kb("VmRSS", "VmHWM"),
        "retained_readings": sum(len(s) for s in stores),
        "retention_capacity": sum(s.capacity for s in stores),
    }

@router.get("/channels")
def channel_metrics(manager: ChannelManager = Depends(get_manager)):
    return {"channels": manager.stats()}
