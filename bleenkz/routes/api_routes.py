import asyncio
import base64
import binascii
import logging
import threading
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from bleenkz.detection.landmarks import LandmarkFrame
from bleenkz.services.blink_pipeline import BlinkPipeline
from bleenkz.services.llm_client import client as llm_client
from bleenkz.services.messages import FUNNY_PROMPT, MessageBoard, generate_text, smart_funny_message
from bleenkz.services.session import BlinkSession
from bleenkz.services.state_manager import manager as blink_state_manager

logger = logging.getLogger(__name__)

router = APIRouter()

pipeline = BlinkPipeline()
session = BlinkSession()
board = MessageBoard()
facemesh = None
data_logger = None


def _on_blink(event):
    stats = pipeline.analyzer.last_stats
    if data_logger is not None:
        try:
            data_logger.log(event.timestamp, pipeline.blink_count, stats.blinks_per_second, stats.pattern)
        except OSError as e:
            logger.warning("Blink log write failed: %s", e)
    pattern_line = board.on_pattern(stats.pattern)
    if pattern_line:
        blink_state_manager.update({"message": pattern_line})
        return
    line = board.on_blink(event.timestamp)
    if not line:
        return
    blink_state_manager.update({"message": line})
    if llm_client.configured:
        _spawn(_model_message, line)


def _model_message(default):
    """Swaps the catalog line for a model-written one; keeps the line on failure."""
    text = smart_funny_message(default, llm=llm_client)
    blink_state_manager.update({"message": text})


def _spawn(target, *args):
    t = threading.Thread(target=target, args=args, daemon=True)
    t.start()
    return t


pipeline.subscribe(session.on_blink)
pipeline.subscribe(_on_blink)


def init_services():
    global facemesh, data_logger
    if facemesh is None:
        try:
            from bleenkz.detection.facemesh import FaceMeshLandmarkExtractor
            facemesh = FaceMeshLandmarkExtractor()
        except Exception as e:
            logger.warning("FaceMesh init failed, /predict_frame disabled: %s", e)
            facemesh = None
    if data_logger is None:
        try:
            from bleenkz.utils.data_logger import DataLogger
            data_logger = DataLogger()
        except OSError as e:
            logger.warning("Blink CSV logging disabled: %s", e)
            data_logger = None


def shutdown_services():
    global facemesh
    if facemesh is not None:
        facemesh.close()
        facemesh = None


def publish(result=None):
    state = pipeline.snapshot()
    state.update(session.snapshot())
    state["blink_detected"] = bool(result is not None and result.blink_detected)
    blink_state_manager.update(state)
    return blink_state_manager.get()


class PointModel(BaseModel):
    x: float
    y: float


class LandmarkPayload(BaseModel):
    landmarks: List[PointModel] = []
    present: bool = True
    timestamp: Optional[float] = None


class FrameRequest(BaseModel):
    frame_data: Optional[str] = None
    timestamp: Optional[float] = None


class MessageRequest(BaseModel):
    prompt: Optional[str] = None
    model: Optional[str] = None
    options: Optional[Dict[str, Any]] = None


def _frame_response(result):
    state = publish(result)
    state["dropped"] = result is None
    return state


@router.get("/health")
async def health():
    return {"ok": True}


@router.get("/status")
async def get_status():
    return {
        "backendConnected": True,
        "landmarkModelLoaded": facemesh is not None,
        "textModelConfigured": llm_client.configured,
    }


@router.post("/frame")
async def submit_frame(payload: LandmarkPayload):
    if payload.present and payload.landmarks:
        frame = LandmarkFrame.from_pairs([(p.x, p.y) for p in payload.landmarks])
    else:
        frame = LandmarkFrame.absent()
    result = pipeline.process_frame(frame, ts=payload.timestamp)
    return _frame_response(result)


@router.post("/predict_frame")
async def predict_frame(req: FrameRequest):
    if facemesh is None:
        raise HTTPException(status_code=503, detail="Landmark model not loaded")
    if not req.frame_data:
        raise HTTPException(status_code=400, detail="Missing frame_data")

    from bleenkz.detection.facemesh import decode_image

    try:
        image = decode_image(base64.b64decode(req.frame_data))
    except (binascii.Error, ValueError):
        image = None
    if image is None:
        raise HTTPException(status_code=400, detail="Could not decode frame_data")

    frame = facemesh.extract_landmarks(image)
    result = pipeline.process_frame(frame, ts=req.timestamp)
    return _frame_response(result)


@router.post("/blink")
async def manual_blink():
    event = pipeline.register_manual_blink()
    state = publish()
    state["blink_detected"] = True
    state["event_timestamp"] = event.timestamp
    return state


@router.get("/blink_stats")
async def get_blink_stats():
    stats = pipeline.blink_stats()
    return {
        "blink_count": pipeline.blink_count,
        "blinks_per_second": stats.blinks_per_second,
        "pattern": stats.pattern,
    }


@router.post("/reset")
async def reset():
    pipeline.reset()
    session.reset()
    blink_state_manager.reset()
    return publish()


@router.post("/message")
async def message(req: MessageRequest):
    prompt = req.prompt or FUNNY_PROMPT
    loop = asyncio.get_running_loop()
    text, source = await loop.run_in_executor(
        None, lambda: generate_text(prompt, model=req.model, options=req.options, llm=llm_client)
    )
    return {"response": text, "source": source}


@router.get("/debug/state")
async def debug_state():
    return JSONResponse(blink_state_manager.get())


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await websocket.accept()
    try:
        while True:
            await websocket.send_json(blink_state_manager.get())
            await asyncio.sleep(0.1)
    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected")
    except RuntimeError as e:
        logger.warning("WebSocket error: %s", e)
