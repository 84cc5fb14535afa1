"""
FastAPI Backend for Pocket Mechanic
Exposes the diagnosis-to-video pipeline as REST API endpoints.
"""

from fastapi import FastAPI, HTTPException, Request, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional
import os
import time

from dotenv import load_dotenv

from models.domain import VehicleInfo
from models.schemas import (
    DiagnoseRequest, DiagnoseResponse, VideoRequest, VideoResponse,
    HealthResponse, StatsResponse, ErrorResponse
)
from services.context_builder import ContextBuilder
from services.diagnosis_service import DiagnosisGenerator
from services.diagnostic_pipeline import DiagnosticPipeline
from services.embedding_service import EmbeddingService
from services.ingestion_pipeline import IngestionPipeline
from services.integration_manager import HTTPDiagnosticSink, IntegrationManager
from services.knowledge_store import ChromaKnowledgeStore
from services.llm_service import LLMService
from services.media_uploader import LocalMediaStorage, MediaFile, MediaUploader
from services.video_search import VideoSearchService, YouTubeSearchService
from utils.errors import ConfigurationError
from utils.logger import setup_logger, log_success, log_error, log_warning

load_dotenv()

# Setup logger
logger = setup_logger(__name__)

# Global service instances
diagnostic_pipeline = None


def build_pipeline() -> DiagnosticPipeline:
    """
    Wire providers into the pipeline.

    Missing LLM or YouTube keys degrade to rule-based diagnosis and no videos.
    """
    context_builder = None
    knowledge_store = None
    try:
        embedding_service = EmbeddingService()
        knowledge_store = ChromaKnowledgeStore(embedding_function=embedding_service.embeddings)

        ingestion = IngestionPipeline(embedding_service, knowledge_store)
        status = ingestion.get_status()
        if status.get('is_empty'):
            log_warning(logger, "Knowledge store is empty. Seeding repair knowledge...")
            result = ingestion.run_pipeline(data_dir=os.getenv("KNOWLEDGE_DATA_DIR", "data/knowledge"))
            if result['status_code'] != 200:
                log_warning(logger, f"Knowledge seeding failed: {result['message']}")
            else:
                log_success(logger, f"Seeding complete: {result['total_in_collection']} documents loaded")
        else:
            log_success(logger, f"Knowledge store loaded: {status.get('total_documents', 0)} documents")

        context_builder = ContextBuilder(embedding_service, knowledge_store)
    except Exception as e:
        log_warning(logger, f"Knowledge retrieval disabled: {e}")

    llm_service = None
    try:
        llm_service = LLMService()
    except ValueError as e:
        log_warning(logger, f"{e}. Diagnoses will be rule-based.")

    search_provider = None
    try:
        search_provider = YouTubeSearchService()
    except ConfigurationError as e:
        log_warning(logger, str(e))

    sink = None
    try:
        sink = HTTPDiagnosticSink()
    except ConfigurationError:
        logger.info("No shop integration configured")

    return DiagnosticPipeline(
        diagnosis_generator=DiagnosisGenerator(llm_service, context_builder),
        video_search=VideoSearchService(search_provider),
        media_uploader=MediaUploader(LocalMediaStorage()),
        integration_manager=IntegrationManager(sink),
        knowledge_store=knowledge_store,
        llm_model=llm_service.model if llm_service else None
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup and shutdown logic for the FastAPI app.
    """
    global diagnostic_pipeline

    logger.info("\n" + "="*60)
    logger.info("🚀 Starting Pocket Mechanic API")
    logger.info("="*60 + "\n")

    try:
        logger.info("📦 Initializing services...")
        diagnostic_pipeline = build_pipeline()

        logger.info("\n" + "="*60)
        log_success(logger, "All services initialized successfully!")
        logger.info("📍 API running at: http://localhost:8000")
        logger.info("📚 Docs available at: http://localhost:8000/docs")
        logger.info("="*60 + "\n")

        yield  # App runs here

    except Exception as e:
        log_error(logger, f"Startup failed: {e}")
        raise

    finally:
        logger.info("\n🛑 Shutting down Pocket Mechanic API\n")


# Initialize FastAPI app
app = FastAPI(
    title="Pocket Mechanic API",
    description="AI vehicle diagnosis with educational repair videos",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware (allow frontend to connect)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify your frontend URL
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handler for custom errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all uncaught exceptions."""
    return JSONResponse(
        status_code=500,
        content={
            "status_code": 500,
            "status": "error",
            "message": str(exc),
            "error_type": type(exc).__name__
        }
    )


def _require_pipeline() -> DiagnosticPipeline:
    if diagnostic_pipeline is None:
        raise HTTPException(
            status_code=503,
            detail="Diagnostic pipeline not initialized"
        )
    return diagnostic_pipeline


# ==================== ENDPOINTS ====================

@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": "Pocket Mechanic API",
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "diagnose": "POST /api/diagnose",
            "analyze": "POST /api/analyze",
            "videos": "POST /api/videos",
            "health": "GET /api/health",
            "stats": "GET /api/stats",
            "docs": "GET /docs"
        }
    }


@app.post("/api/diagnose", response_model=DiagnoseResponse, responses={400: {"model": ErrorResponse}})
def diagnose(request: DiagnoseRequest):
    """
    Diagnose a text description of a vehicle problem.

    Declared sync so FastAPI runs the blocking pipeline in its threadpool.

    Returns:
        DiagnoseResponse with diagnosis, parts, cost, confidence and videos
    """
    pipeline = _require_pipeline()

    try:
        logger.info(f"\n📨 New diagnosis request: {request.description[:50]}...")
        start_time = time.time()

        result = pipeline.run(
            symptom_text=request.description,
            vehicle_info=request.vehicle_info.to_domain() if request.vehicle_info else None,
            external_order_id=request.external_order_id
        )

        log_success(logger, f"Diagnosis request completed in {time.time() - start_time:.2f}s\n")
        return result

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        log_error(logger, f"Diagnosis request failed: {e}\n")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/analyze", response_model=DiagnoseResponse, responses={400: {"model": ErrorResponse}})
async def analyze(
    description: str = Form(...),
    vehicleYear: Optional[int] = Form(None),
    vehicleMake: Optional[str] = Form(None),
    vehicleModel: Optional[str] = Form(None),
    externalOrderId: Optional[str] = Form(None),
    image: Optional[List[UploadFile]] = File(None),
    audio: Optional[UploadFile] = File(None)
):
    """
    Diagnose a problem described with a multipart form plus photos and audio.

    Missing vehicle fields default to the current year and "Unknown".
    The pipeline runs in the threadpool so it never blocks the event loop.
    """
    pipeline = _require_pipeline()

    if not description.strip():
        raise HTTPException(status_code=400, detail="Problem description is required")

    vehicle_info = None
    if vehicleYear or vehicleMake or vehicleModel:
        vehicle_info = VehicleInfo(
            year=vehicleYear or datetime.now().year,
            make=vehicleMake or "Unknown",
            model=vehicleModel or "Unknown"
        )

    media = {
        "images": [MediaFile(file.filename, await file.read()) for file in (image or []) if file.filename],
        "audio": MediaFile(audio.filename, await audio.read()) if audio and audio.filename else None,
    }

    try:
        logger.info(f"\n📨 New analysis request: {description[:50]}... ({len(media['images'])} images)")
        return await run_in_threadpool(
            pipeline.run,
            symptom_text=description,
            vehicle_info=vehicle_info,
            media=media,
            external_order_id=externalOrderId
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        log_error(logger, f"Analysis failed: {e}\n")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/videos", response_model=VideoResponse, responses={503: {"model": ErrorResponse}})
def videos(request: VideoRequest):
    """
    Find educational videos for an existing diagnosis.

    Returns 503 when video search is not configured.
    """
    pipeline = _require_pipeline()

    try:
        return pipeline.search_videos(
            diagnosis=request.diagnosis,
            symptoms=request.symptoms,
            vehicle_info=request.vehicle_info.to_domain() if request.vehicle_info else None
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        log_error(logger, f"Video search failed: {e}\n")
        raise HTTPException(status_code=500, detail="Failed to search for educational videos")


@app.get("/api/health", response_model=HealthResponse)
def health():
    """
    Health check endpoint - verifies all services are operational.
    """
    if diagnostic_pipeline is None:
        return {
            "status_code": 503,
            "status": "unhealthy",
            "reason": "Services not initialized"
        }

    try:
        return diagnostic_pipeline.health_check()
    except Exception as e:
        return {
            "status_code": 500,
            "status": "error",
            "reason": str(e)
        }


@app.get("/api/stats", response_model=StatsResponse)
def stats():
    """
    Statistics endpoint - returns usage metrics.
    """
    pipeline = _require_pipeline()

    try:
        return pipeline.get_stats()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


# Run with: uvicorn main:app --reload --host 0.0.0.0 --port 8000
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
