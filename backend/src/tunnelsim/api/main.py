from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tunnelsim.db.init_db import init_db
from tunnelsim.logging_config import configure_logging
from tunnelsim.api.routers.encounters import router as encounters_router
from tunnelsim.api.routers.simulate import router as simulate_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_db()
    yield


app = FastAPI(title="Tunnel Fight Simulator", lifespan=lifespan)

# браузерный фронт ходит с другого origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(simulate_router)
app.include_router(encounters_router)
