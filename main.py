from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from config import get_settings, configure_logging
from core.coordinator import Coordinator
from services.meet_link_service import provider_from_settings
from api import meetings, websocket

settings = get_settings()
configure_logging(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: 建立唯一的 Coordinator 並開始處理 mailbox
    app.state.coordinator = Coordinator(settings)
    app.state.meet_link_provider = provider_from_settings(settings)
    await app.state.coordinator.start()
    yield
    # Shutdown: 停止 drain task，狀態隨程序結束而消失
    await app.state.coordinator.stop()


app = FastAPI(
    title="Knock The Door API",
    description="Real-time meeting request coordination between a boss and employees",
    version="1.0.0",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(meetings.router)
app.include_router(websocket.router)


@app.get("/")
def root():
    return {"message": "Knock The Door API", "status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
