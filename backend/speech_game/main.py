import logging

from fastapi import FastAPI

from .db import Base, engine, ensure_schema
from .settings import settings
from .routers import auth
from .routers import speech
from .routers import progress
from .routers import session
from .routers import analytics
from .routers import public

logging.basicConfig(
	level=getattr(logging, settings.log_level.upper(), logging.INFO),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger("google").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

app = FastAPI(title="Speech Game API")
app.include_router(auth.router)
app.include_router(speech.router)
app.include_router(progress.router)
app.include_router(session.router)
app.include_router(analytics.router)
app.include_router(public.router)


@app.get("/info")
def root():
	return {"status": "ok", "speech_configured": bool(settings.google_project)}


@app.on_event("startup")
async def startup_event():
	# Initialize DB schema
	Base.metadata.create_all(bind=engine)
	# Apply lightweight migrations for older databases
	try:
		ensure_schema()
	except Exception:
		logger.warning("Schema migration skipped", exc_info=True)
	logger.info("Speech Game API ready")
