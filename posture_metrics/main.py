# Main FastAPI Application - Posture Metrics Service
#
# Endpoints run on FastAPI's threadpool; any call touching a session's
# PostureAnalyzer holds that session's lock.
import threading
import uuid
from typing import Dict, List, Optional, Tuple

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from posture_metrics import __version__
from posture_metrics import config
from posture_metrics import logger
from posture_metrics.analyzer import PostureAnalyzer
from posture_metrics.calibration import update_baseline
from posture_metrics.keypoint_decoder import SchemaMismatchError
from posture_metrics.models import Pose, PostureMetrics, UserBaseline

app = FastAPI(
    title="Posture Metrics API",
    description="Keypoint-to-metrics posture analysis (score, issues, calibration baseline)",
    version=__version__
)

# In-memory analysis sessions, one analyzer per camera stream
SESSIONS: Dict[str, PostureAnalyzer] = {}
SESSION_LOCKS: Dict[str, threading.Lock] = {}


# ============================================================================
# PYDANTIC MODELS
# ============================================================================

class CreateSessionRequest(BaseModel):
    enable_smoothing: bool = config.ENABLE_SMOOTHING
    smoothing_factor: float = Field(config.SMOOTHING_FACTOR, ge=0.0, le=1.0)
    issue_detection_threshold: float = Field(config.ISSUE_DETECTION_THRESHOLD, ge=0.0, le=1.0)
    calibration_samples: int = Field(config.CALIBRATION_MIN_SAMPLES, ge=1)


class PoseFrameRequest(BaseModel):
    pose: Pose
    baseline: Optional[UserBaseline] = None


class HeatmapFrameRequest(BaseModel):
    heatmaps: List[List[List[float]]]  # [height][width][keypoints]
    baseline: Optional[UserBaseline] = None


class CreateBaselineRequest(BaseModel):
    user_id: str


class UpdateBaselineRequest(BaseModel):
    baseline: UserBaseline
    poses: List[Pose] = Field(min_length=1)
    weight: float = Field(0.1, ge=0.0, le=1.0)


# ============================================================================
# HELPERS
# ============================================================================

def get_session(session_id: str) -> Tuple[PostureAnalyzer, threading.Lock]:
    analyzer = SESSIONS.get(session_id)
    if analyzer is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return analyzer, SESSION_LOCKS[session_id]


# ============================================================================
# STARTUP
# ============================================================================

@app.on_event("startup")
def startup_event():
    logger.log_lifecycle("STARTUP", f"Posture Metrics API v{__version__}")
    logger.log_api("Configuration", {
        "smoothing": config.ENABLE_SMOOTHING,
        "smoothing_factor": config.SMOOTHING_FACTOR,
        "issue_threshold": config.ISSUE_DETECTION_THRESHOLD,
        "calibration_samples": config.CALIBRATION_MIN_SAMPLES,
        "log_level": config.LOG_LEVEL
    })


# ============================================================================
# ENDPOINTS
# ============================================================================

@app.get("/health")
def health():
    return {"status": "ok", "sessions": len(SESSIONS)}


@app.post("/sessions")
def create_session(request: Optional[CreateSessionRequest] = None):
    request = request or CreateSessionRequest()
    session_id = str(uuid.uuid4())
    SESSIONS[session_id] = PostureAnalyzer(
        enable_smoothing=request.enable_smoothing,
        smoothing_factor=request.smoothing_factor,
        issue_detection_threshold=request.issue_detection_threshold,
        calibration_samples=request.calibration_samples,
    )
    SESSION_LOCKS[session_id] = threading.Lock()

    logger.log_api("Session Created", {"session_id": session_id})
    return {"session_id": session_id}


@app.delete("/sessions/{session_id}")
def delete_session(session_id: str):
    _, lock = get_session(session_id)
    with lock:
        del SESSIONS[session_id]
        del SESSION_LOCKS[session_id]
    logger.log_api("Session Closed", {"session_id": session_id})
    return {"message": "Session closed", "session_id": session_id}


@app.post("/sessions/{session_id}/frames/pose", response_model=PostureMetrics)
def analyze_pose_frame(session_id: str, request: PoseFrameRequest):
    analyzer, lock = get_session(session_id)
    with lock:
        return analyzer.analyze_pose(request.pose, request.baseline)


@app.post("/sessions/{session_id}/frames/heatmap")
def analyze_heatmap_frame(session_id: str, request: HeatmapFrameRequest):
    analyzer, lock = get_session(session_id)
    try:
        with lock:
            metrics = analyzer.analyze_heatmaps(request.heatmaps, request.baseline)
    except SchemaMismatchError as e:
        raise HTTPException(status_code=422, detail=str(e))

    if metrics is None:
        return {"skipped": True, "reason": "Pose confidence below minimum"}
    return metrics


@app.post("/sessions/{session_id}/calibration/samples")
def add_calibration_sample(session_id: str, pose: Pose):
    analyzer, lock = get_session(session_id)
    with lock:
        complete = analyzer.calibration.add_sample(pose)
        return {"complete": complete, "progress": analyzer.calibration.get_progress()}


@app.get("/sessions/{session_id}/calibration")
def get_calibration(session_id: str):
    analyzer, lock = get_session(session_id)
    calibration = analyzer.calibration
    with lock:
        return {
            "complete": calibration.is_calibration_complete(),
            "progress": calibration.get_progress(),
            "samples": len(calibration.get_samples()),
            "min_samples": calibration.min_samples,
            "max_samples": calibration.max_samples
        }


@app.post("/sessions/{session_id}/calibration/baseline", response_model=UserBaseline)
def create_baseline(session_id: str, request: CreateBaselineRequest):
    analyzer, lock = get_session(session_id)
    with lock:
        baseline = analyzer.calibration.create_baseline(request.user_id)
        progress = analyzer.calibration.get_progress()
    if baseline is None:
        raise HTTPException(
            status_code=409,
            detail=f"Calibration incomplete ({progress:.0f}%)"
        )

    logger.log_success("Baseline Ready", {
        "session_id": session_id,
        "user_id": baseline.user_id,
        "posture_type": baseline.posture_type.value
    })
    return baseline


@app.delete("/sessions/{session_id}/calibration")
def reset_calibration(session_id: str):
    analyzer, lock = get_session(session_id)
    with lock:
        analyzer.start_calibration()
    return {"message": "Calibration reset", "session_id": session_id}


@app.post("/baselines/update", response_model=UserBaseline)
def refine_baseline(request: UpdateBaselineRequest):
    try:
        return update_baseline(request.baseline, request.poses, request.weight)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
