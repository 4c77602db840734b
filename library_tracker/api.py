import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

import socketio
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .config import Settings, settings
from .library import Library, LibraryError, NotFoundError
from .services.broadcaster import EventBroadcaster
from .services.realtime import SocketGateway, create_socket_server
from .store import BookStore

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Models ---
class BookModel(BaseModel):
    id: int
    title: str
    author: str
    returnDateTime: str | None = None
    readerName: str | None = None
    favorites: List[str] = Field(default_factory=list)


class BookCreateModel(BaseModel):
    title: str | None = None
    author: str | None = None
    returnDateTime: str | None = Field(default=None, description="ISO-8601 return due time")
    readerName: str | None = None


class BookUpdateModel(BaseModel):
    title: str | None = Field(default=None, description="Keeps the current title when omitted")
    author: str | None = Field(default=None, description="Keeps the current author when omitted")
    returnDateTime: str | None = Field(default=None, description="Cleared when omitted")
    readerName: str | None = Field(default=None, description="Cleared when omitted")


class FavoriteRequest(BaseModel):
    userId: str | None = None


class FavoriteResponse(BaseModel):
    favoritesCount: int


class MessageModel(BaseModel):
    message: str


class DashboardStatsModel(BaseModel):
    bookCount: int
    connectedOwners: int
    mostFavorited: str | None = None
    mostFavoritedCount: int


# --- Dependencies ---
def get_library(request: Request) -> Library:
    return request.app.state.library


def get_broadcaster(request: Request) -> EventBroadcaster:
    return request.app.state.broadcaster


# --- Error handlers ---
async def library_error_handler(request: Request, exc: LibraryError) -> JSONResponse:
    status_code = 404 if isinstance(exc, NotFoundError) else 400
    return JSONResponse(status_code=status_code, content={"error": str(exc)})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed bodies as a plain 400 with the first problem found."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    detail = f"{location}: {message}" if location else message
    return JSONResponse(status_code=400, content={"error": detail})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# --- Routes ---
@router.get("/health")
async def health(library: Library = Depends(get_library),
                 broadcaster: EventBroadcaster = Depends(get_broadcaster)):
    """Lightweight liveness check."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "total_books": len(library.list_books()),
        "connected_users": len(broadcaster.presence()),
    }


@router.get("/books", response_model=List[BookModel])
async def list_books(library: Library = Depends(get_library)):
    return [book.to_dict() for book in library.list_books()]


@router.post("/books", response_model=BookModel, status_code=201)
async def add_book(payload: BookCreateModel,
                   library: Library = Depends(get_library),
                   broadcaster: EventBroadcaster = Depends(get_broadcaster)):
    book = await library.add_book(
        payload.title,
        payload.author,
        return_date_time=payload.returnDateTime,
        reader_name=payload.readerName,
    )
    await broadcaster.book_added(book)
    return book.to_dict()


@router.put("/books/{book_id}", response_model=BookModel)
async def update_book(book_id: str, payload: Optional[BookUpdateModel] = None,
                      library: Library = Depends(get_library),
                      broadcaster: EventBroadcaster = Depends(get_broadcaster)):
    # A PUT without a body behaves like an empty object
    payload = payload or BookUpdateModel()
    book = await library.update_book(
        book_id,
        title=payload.title,
        author=payload.author,
        return_date_time=payload.returnDateTime,
        reader_name=payload.readerName,
    )
    await broadcaster.book_updated(book)
    return book.to_dict()


@router.delete("/books/{book_id}", response_model=MessageModel)
async def delete_book(book_id: str,
                      library: Library = Depends(get_library),
                      broadcaster: EventBroadcaster = Depends(get_broadcaster)):
    book = await library.remove_book(book_id)
    await broadcaster.book_deleted(book)
    return {"message": "Book deleted successfully"}


@router.post("/books/{book_id}/favorite", response_model=FavoriteResponse)
async def toggle_favorite(book_id: str, payload: Optional[FavoriteRequest] = None,
                          library: Library = Depends(get_library),
                          broadcaster: EventBroadcaster = Depends(get_broadcaster)):
    payload = payload or FavoriteRequest()
    count = await library.toggle_favorite(book_id, payload.userId)
    # toggle_favorite only succeeds for numeric ids
    await broadcaster.favorite_updated(int(book_id.strip()), count)
    return {"favoritesCount": count}


@router.get("/dashboard/stats", response_model=DashboardStatsModel)
async def dashboard_stats(broadcaster: EventBroadcaster = Depends(get_broadcaster)):
    return broadcaster.dashboard_stats().to_dict()


# --- Application factory ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    library: Library = app.state.library
    logger.info(f"Serving {len(library.list_books())} books from {library.store.path}")
    yield


def create_app(app_settings: Optional[Settings] = None, books_file: Optional[str] = None) -> FastAPI:
    """Build the REST application with its own store, library and broadcaster."""
    app_settings = app_settings or settings
    store = BookStore(books_file or app_settings.books_file)
    library = Library(store)

    app = FastAPI(title=app_settings.app_name, version=app_settings.app_version, lifespan=lifespan)
    app.state.settings = app_settings
    app.state.library = library
    app.state.broadcaster = EventBroadcaster(library)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )
    app.add_exception_handler(LibraryError, library_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
    app.include_router(router)
    return app


def create_asgi_app(app_settings: Optional[Settings] = None) -> socketio.ASGIApp:
    """REST app with the Socket.IO server mounted in front of it (uvicorn factory)."""
    app_settings = app_settings or settings
    logging.basicConfig(level=app_settings.log_level)

    app = create_app(app_settings)
    sio = create_socket_server(app_settings)
    app.state.gateway = SocketGateway(app.state.broadcaster, sio)
    return socketio.ASGIApp(sio, other_asgi_app=app)
