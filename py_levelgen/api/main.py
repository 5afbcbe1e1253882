"""FastAPI main application."""

import threading
from datetime import datetime
from typing import Dict, List, Optional

import structlog
from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .. import __version__
from ..config.config import settings
from ..core.board import Board
from ..core.board_analysis import check_board
from ..core.exceptions import InvalidBoardError
from ..core.generator import GenerationRequest, GenerationResult, GenerationStatus, LevelGenerator
from ..core.level_file import LevelRecord, format_level, parse_level
from ..db.connection import db
from ..db.models import GenerationJob, Level
from ..utils.logging import configure_logging
from ..utils.random import resolve_seed

configure_logging(settings.log_level, settings.log_format)

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Puzzle Level Generator API",
    description="Generates block puzzle boards on square, triangle and hexagon grids",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Cancellation flags of jobs that have not finished yet
_cancel_events: Dict[str, threading.Event] = {}
_cancel_lock = threading.Lock()

FINISHED_STATUSES = ("completed", "failed", "cancelled")


# Request/Response models
class LevelGenerationRequest(GenerationRequest):
    """Request to generate a new level."""

    name: Optional[str] = Field(None, description="Custom level name")


class JobResponse(BaseModel):
    """Response with job information."""

    job_id: str
    status: str
    progress_percent: int
    message: str
    level_id: Optional[str] = None
    error_message: Optional[str] = None
    failure_reason: Optional[str] = None


class LevelResponse(BaseModel):
    """A generated level."""

    id: str
    name: str
    seed: str
    grid_shape: int
    rotate_hexagon: bool
    x_cells: int
    y_cells: int
    num_shapes: int
    min_shape_size: int
    max_shape_size: int
    grid: List[List[int]]
    level_data: str
    valid: bool
    created_at: Optional[datetime] = None
    generation_time_seconds: Optional[float] = None


class LevelSummary(BaseModel):
    """Summary information about a generated level."""

    id: str
    name: str
    seed: str
    grid_shape: int
    x_cells: int
    y_cells: int
    num_shapes: int
    created_at: Optional[datetime] = None


def _level_response(level: Level) -> LevelResponse:
    record = parse_level(level.level_data)
    board = Board.from_matrix(record.grid_shape, record.grid, record.rotate_hexagon)
    violations = check_board(board, level.num_shapes, level.min_shape_size, level.max_shape_size)
    return LevelResponse(
        id=level.id,
        name=level.name,
        seed=level.seed,
        grid_shape=level.grid_shape,
        rotate_hexagon=level.rotate_hexagon,
        x_cells=level.x_cells,
        y_cells=level.y_cells,
        num_shapes=level.num_shapes,
        min_shape_size=level.min_shape_size,
        max_shape_size=level.max_shape_size,
        grid=record.grid.tolist(),
        level_data=level.level_data,
        valid=not violations,
        created_at=level.created_at,
        generation_time_seconds=level.generation_time_seconds,
    )


def _job_response(job: GenerationJob, message: Optional[str] = None) -> JobResponse:
    return JobResponse(
        job_id=job.id,
        status=job.status,
        progress_percent=job.progress_percent or 0,
        message=message or f"Job {job.status}",
        level_id=job.level_id,
        error_message=job.error_message,
        failure_reason=job.failure_reason,
    )


def _store_level(session, request: LevelGenerationRequest, result: GenerationResult) -> Level:
    record = LevelRecord(
        grid_shape=request.grid_shape,
        rotate_hexagon=request.rotate_hexagon,
        grid=result.grid,
    )
    level = Level(
        name=request.name or f"Level {result.seed}",
        seed=result.seed,
        grid_shape=int(request.grid_shape),
        rotate_hexagon=request.rotate_hexagon,
        x_cells=request.x_cells,
        y_cells=request.y_cells,
        num_shapes=request.num_shapes,
        min_shape_size=result.min_shape_size,
        max_shape_size=result.max_shape_size,
        level_data=format_level(record),
        generation_time_seconds=result.elapsed_seconds,
    )
    session.add(level)
    session.flush()
    return level


def _create_generator(request: GenerationRequest) -> LevelGenerator:
    try:
        return LevelGenerator(request)
    except InvalidBoardError as e:
        raise HTTPException(status_code=422, detail=str(e))


def _start_timeout(cancel_event: threading.Event) -> threading.Timer:
    """Trip the cancellation flag once the generation timeout has passed."""
    timer = threading.Timer(settings.generation_timeout, cancel_event.set)
    timer.daemon = True
    timer.start()
    return timer


# Event handlers
@app.on_event("startup")
async def startup_event():
    """Initialize database on startup."""
    logger.info("Starting Puzzle Level Generator API")
    db.initialize()
    logger.info("API startup complete")


@app.on_event("shutdown")
async def shutdown_event():
    """Cancel unfinished jobs on shutdown."""
    logger.info("Shutting down Puzzle Level Generator API")
    with _cancel_lock:
        for cancel_event in _cancel_events.values():
            cancel_event.set()


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Puzzle Level Generator API",
        "version": __version__,
        "status": "running",
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    try:
        db.ping()
        return {"status": "healthy", "database": "connected"}
    except Exception as e:
        logger.error("Health check failed", error=str(e))
        raise HTTPException(status_code=503, detail="Service unhealthy")


@app.post("/levels/generate", response_model=LevelResponse)
def generate_level_now(request: LevelGenerationRequest):
    """
    Generate a level and wait for it.

    Fails with 422 when the board cannot be filled and 408 when the
    generation timeout cancelled the search.
    """
    generator = _create_generator(request)
    logger.info("Level generation requested", request=request.model_dump(exclude={"cell_types"}))

    cancel_event = threading.Event()
    timer = _start_timeout(cancel_event)
    try:
        result = generator.generate(cancel_event)
    finally:
        timer.cancel()

    if result.status == GenerationStatus.CANCELLED:
        raise HTTPException(status_code=408, detail="Level generation timed out")
    if result.status == GenerationStatus.FAILED:
        raise HTTPException(
            status_code=422,
            detail={"error": result.error, "failure_reason": result.failure.value},
        )

    with db.get_session() as session:
        level = _store_level(session, request, result)
        return _level_response(level)


@app.post("/jobs", response_model=JobResponse)
def create_generation_job(request: LevelGenerationRequest, background_tasks: BackgroundTasks):
    """
    Start a level generation job.

    Returns immediately with job ID. Use /jobs/{job_id} to check status.
    """
    request = request.model_copy(update={"seed": resolve_seed(request.seed)})
    _create_generator(request)

    with db.get_session() as session:
        job = GenerationJob(
            seed=request.seed,
            parameters_json=request.model_dump_json(),
            status="pending",
        )
        session.add(job)
        session.flush()
        job_id = job.id

    with _cancel_lock:
        _cancel_events[job_id] = threading.Event()

    background_tasks.add_task(run_level_generation, job_id, request)

    return JobResponse(
        job_id=job_id,
        status="pending",
        progress_percent=0,
        message="Level generation job started",
    )


@app.get("/jobs/{job_id}", response_model=JobResponse)
def get_job_status(job_id: str):
    """Get status of a level generation job."""
    with db.get_session() as session:
        job = session.get(GenerationJob, job_id)

        if not job:
            raise HTTPException(status_code=404, detail="Job not found")

        return _job_response(job)


@app.delete("/jobs/{job_id}", response_model=JobResponse)
def cancel_job(job_id: str):
    """Ask a pending or running job to stop."""
    with db.get_session() as session:
        job = session.get(GenerationJob, job_id)

        if not job:
            raise HTTPException(status_code=404, detail="Job not found")

        if job.status in FINISHED_STATUSES:
            raise HTTPException(status_code=409, detail=f"Job already {job.status}")

        with _cancel_lock:
            cancel_event = _cancel_events.get(job_id)
        if cancel_event is not None:
            cancel_event.set()

        logger.info("Job cancellation requested", job_id=job_id)
        return _job_response(job, message="Cancellation requested")


@app.get("/levels", response_model=List[LevelSummary])
def list_levels():
    """List all generated levels."""
    with db.get_session() as session:
        levels = session.query(Level).order_by(Level.created_at.desc()).all()

        return [
            LevelSummary(
                id=level.id,
                name=level.name,
                seed=level.seed,
                grid_shape=level.grid_shape,
                x_cells=level.x_cells,
                y_cells=level.y_cells,
                num_shapes=level.num_shapes,
                created_at=level.created_at,
            )
            for level in levels
        ]


@app.get("/levels/{level_id}", response_model=LevelResponse)
def get_level(level_id: str):
    """Get level details including its grid."""
    with db.get_session() as session:
        level = session.get(Level, level_id)

        if not level:
            raise HTTPException(status_code=404, detail="Level not found")

        return _level_response(level)


# Background task functions
def run_level_generation(job_id: str, request: LevelGenerationRequest):
    """
    Background task to generate a level.
    """
    logger.info("Starting level generation job", job_id=job_id)

    with _cancel_lock:
        cancel_event = _cancel_events.setdefault(job_id, threading.Event())
    timer = _start_timeout(cancel_event)

    try:
        with db.get_session() as session:
            job = session.get(GenerationJob, job_id)
            job.status = "running"
            job.started_at = datetime.utcnow()
            job.progress_percent = 10

        result = LevelGenerator(request).generate(cancel_event)

        with db.get_session() as session:
            job = session.get(GenerationJob, job_id)
            job.completed_at = datetime.utcnow()

            if result.status == GenerationStatus.COMPLETED:
                level = _store_level(session, request, result)
                job.level_id = level.id
                job.status = "completed"
                job.progress_percent = 100
            elif result.status == GenerationStatus.CANCELLED:
                job.status = "cancelled"
            else:
                job.status = "failed"
                job.error_message = result.error
                job.failure_reason = result.failure.value

        logger.info("Level generation job finished", job_id=job_id, status=result.status.value)

    except Exception as e:
        logger.error("Level generation job failed", job_id=job_id, error=str(e))
        with db.get_session() as session:
            job = session.get(GenerationJob, job_id)
            job.status = "failed"
            job.error_message = str(e)
            job.completed_at = datetime.utcnow()

    finally:
        timer.cancel()
        with _cancel_lock:
            _cancel_events.pop(job_id, None)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
