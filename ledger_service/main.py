import logging
from fastapi import FastAPI
from ledger_service.core.config import get_settings
from ledger_service.db.database import Base, engine
from ledger_service.api.v1.routes.players import router as players_router
from ledger_service.api.v1.routes.games import router as games_router
from ledger_service.api.v1.routes.sessions import router as sessions_router
from ledger_service.api.v1.routes.settlements import router as settlements_router

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)

Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=settings.project_name,
    description="Tracks session buy-ins and cash-outs and settles player balances",
    version="1.0.0"
)

app.include_router(players_router)
app.include_router(sessions_router)
app.include_router(games_router)
app.include_router(settlements_router)


@app.get("/")
def read_root():
    return {"message": "Ledger Service API", "version": "1.0.0"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    # python -m ledger_service.main
    import uvicorn
    uvicorn.run("ledger_service.main:app", host="127.0.0.1", port=8000, reload=True)
