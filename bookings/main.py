import logging

from fastapi import FastAPI

from bookings.api.functions import router as functions_router
from bookings.api.v1.occurrences import router as occurrences_router
from bookings.api.v1.series import router as series_router
from bookings.core.config import settings

class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("series_id", "occurrence_id", "lead_id", "path", "status", "amount_cents", "error", "remote_error"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title="Recurring Booking Scheduler", version="1.0.0")

app.include_router(functions_router, tags=["functions"])
app.include_router(series_router, tags=["series"])
app.include_router(occurrences_router, tags=["occurrences"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
