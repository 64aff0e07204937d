import logging
from typing import List

import uvicorn
from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import __version__
from .checkpoint_store import CheckpointStore
from .config import get_settings
from .db import Base, SessionLocal, engine
from .errors import ApiTesterError
from .logging_setup import configure_logging
from .models import HistoryItem
from .request_store import RequestStore
from .schemas import (
    CheckpointCreate,
    CheckpointCreated,
    CheckpointOut,
    Deleted,
    HistoryOut,
    RequestCreate,
    RequestOut,
    RequestUpdate,
    SendRequest,
)
from .sender import Sender
from .versioning import VersioningService

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="API Tester Backend", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Base.metadata.create_all(bind=engine)


@app.exception_handler(ApiTesterError)
async def handle_core_error(request: Request, exc: ApiTesterError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_request_store(db: Session = Depends(get_db)) -> RequestStore:
    return RequestStore(db)


def get_versioning(db: Session = Depends(get_db)) -> VersioningService:
    return VersioningService(RequestStore(db), CheckpointStore(db))


def get_sender() -> Sender:
    return Sender(timeout=settings.send_timeout, max_redirects=settings.send_max_redirects)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/requests", response_model=RequestOut, status_code=status.HTTP_201_CREATED)
def create_request(payload: RequestCreate, store: RequestStore = Depends(get_request_store)):
    return store.create(payload.model_dump())


@app.get("/requests", response_model=List[RequestOut])
def list_requests(store: RequestStore = Depends(get_request_store)):
    return store.list()


@app.get("/requests/{request_id}", response_model=RequestOut)
def get_request(request_id: int, store: RequestStore = Depends(get_request_store)):
    return store.get(request_id)


@app.patch("/requests/{request_id}", response_model=RequestOut)
def update_request(
    request_id: int,
    payload: RequestUpdate,
    service: VersioningService = Depends(get_versioning),
):
    fields = payload.model_dump(exclude_unset=True)
    # body is the only field that may be cleared with null
    fields = {k: v for k, v in fields.items() if v is not None or k == "body"}
    return service.update_request(request_id, fields)


@app.delete("/requests/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_request(request_id: int, store: RequestStore = Depends(get_request_store)):
    store.delete(request_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.post("/checkpoints", response_model=CheckpointCreated, status_code=status.HTTP_201_CREATED)
def create_checkpoint(payload: CheckpointCreate, service: VersioningService = Depends(get_versioning)):
    result = service.create_checkpoint(payload.request_id, payload.name)
    out = CheckpointOut.model_validate(result.checkpoint)
    return CheckpointCreated(
        **out.model_dump(), unsaved_cleared=result.unsaved_cleared, warning=result.error
    )


@app.get("/checkpoints/request/{request_id}", response_model=List[CheckpointOut])
def list_checkpoints(request_id: int, service: VersioningService = Depends(get_versioning)):
    return service.list_checkpoints(request_id)


@app.get("/checkpoints/{checkpoint_id}", response_model=CheckpointOut)
def get_checkpoint(checkpoint_id: int, service: VersioningService = Depends(get_versioning)):
    return service.checkpoints.get(checkpoint_id)


@app.post("/checkpoints/{checkpoint_id}/rollback", response_model=RequestOut)
def rollback(checkpoint_id: int, service: VersioningService = Depends(get_versioning)):
    return service.rollback(checkpoint_id)


@app.delete("/checkpoints/{checkpoint_id}", response_model=Deleted)
def delete_checkpoint(checkpoint_id: int, service: VersioningService = Depends(get_versioning)):
    return service.delete_checkpoint(checkpoint_id)


@app.post("/send")
async def send(
    req: SendRequest,
    db: Session = Depends(get_db),
    sender: Sender = Depends(get_sender),
):
    payload = req.model_dump()
    result = await sender.send(
        method=payload["method"],
        url=payload["url"],
        headers=payload["headers"],
        query_params=payload["query_params"],
        auth=payload["auth"],
        body=payload["body"],
    )

    history = HistoryItem(
        method=payload["method"],
        url=payload["url"],
        status_code=result["status_code"],
        duration_ms=result["duration_ms"],
    )
    db.add(history)
    db.commit()

    return result


@app.get("/history", response_model=List[HistoryOut])
def get_history(db: Session = Depends(get_db)):
    return db.query(HistoryItem).order_by(HistoryItem.id.desc()).limit(50).all()


def run():
    logger.info(f"API Tester backend v{__version__} on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
