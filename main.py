import uuid
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, File, Header, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from eduaid.analyzer import analyze_upload
from eduaid.auth import UserStore, bearer_token
from eduaid.cache import InMemoryAnalysisStore
from eduaid.chat import chat_with_analysis
from eduaid.config import CONFIG, MAX_UPLOAD_BYTES
from eduaid.errors import AuthError, EmptyDatasetError, UnsupportedFileTypeError
from eduaid.insight_client import GroqInsightClient
from eduaid.reports import generate_analysis_pdf
from eduaid.utils import convert_numpy_types
from eduaid.visualizations import generate_dashboard_charts

logger = logging.getLogger(__name__)

VERSION = "1.0"

# Initialize FastAPI app
app = FastAPI(title="EDU-AID Backend", version=VERSION)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CONFIG["allowed_origins"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.analysis_store = InMemoryAnalysisStore()
app.state.insight_client = GroqInsightClient.from_config()
app.state.user_store = UserStore()

# ========== DEPENDENCIES ==========

def get_analysis_store(request: Request):
    return request.app.state.analysis_store


def get_insight_client(request: Request):
    return request.app.state.insight_client


def get_user_store(request: Request):
    return request.app.state.user_store


def _session_data(store, session_id):
    entry = store.get(session_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Analysis session not found")
    return entry["data"]

# ========== PYDANTIC MODELS ==========

class RegisterRequest(BaseModel):
    email: str
    password: str
    name: str

class LoginRequest(BaseModel):
    email: str
    password: str

class ChatRequest(BaseModel):
    message: str
    sessionId: Optional[str] = None

class StoreAnalysisRequest(BaseModel):
    sessionId: str
    analysisData: Dict[str, Any]

# ========== HEALTH ==========

@app.get("/api/health")
async def health(client=Depends(get_insight_client)):
    return {
        "status": "OK",
        "message": "EDU-AID Backend is running",
        "timestamp": datetime.now().isoformat(),
        "aiConfigured": client.available,
        "version": VERSION,
    }

# ========== AUTH ENDPOINTS ==========

@app.post("/api/auth/register")
async def register(request: RegisterRequest, users=Depends(get_user_store)):
    try:
        user = users.register(request.email, request.password, request.name)
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"status": "success", "message": "User registered successfully", "user": user}


@app.post("/api/auth/login")
async def login(request: LoginRequest, users=Depends(get_user_store)):
    try:
        token, user = users.login(request.email, request.password)
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"status": "success", "message": "Login successful", "token": token, "user": user}


@app.get("/api/auth/verify")
async def verify(authorization: Optional[str] = Header(None), users=Depends(get_user_store)):
    try:
        user = users.verify_token(bearer_token(authorization))
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"status": "success", "user": user}

# ========== ANALYSIS ENDPOINTS ==========

@app.post("/api/analysis/analyze")
async def analyze(
    file: UploadFile = File(...),
    store=Depends(get_analysis_store),
    client=Depends(get_insight_client),
):
    """Analyze an uploaded student results sheet and cache it under a new session"""
    content = await file.read()
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {CONFIG['max_upload_mb']}MB."
        )

    logger.info(f"Analyzing file: {file.filename} ({len(content)} bytes)")
    try:
        envelope = await run_in_threadpool(analyze_upload, content, file.filename, client)
    except (UnsupportedFileTypeError, EmptyDatasetError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Analysis error: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=(
                f"Error analyzing file: {str(e)}. Make sure your file contains valid student data "
                "with columns like: Full Name, Subject, SS1_1st, SS1_2nd, ..."
            )
        )

    envelope = convert_numpy_types(envelope)
    session_id = str(uuid.uuid4())
    store.set(session_id, envelope)

    analysis = envelope["analysisResults"]
    return {
        "status": "success",
        "sessionId": session_id,
        "fileName": file.filename,
        "fileSize": len(content),
        **envelope,
        "overallAssessment": analysis.get("overallAssessment"),
        "individualInsights": analysis.get("individualInsights"),
        "confidence": analysis.get("confidence"),
        "message": "File analyzed successfully! You can now ask questions about this analysis or download a PDF report.",
        "downloadUrl": f"/api/analysis/download-pdf/{session_id}",
    }


@app.get("/api/analysis/session/{session_id}")
async def get_session(session_id: str, store=Depends(get_analysis_store)):
    entry = store.get(session_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Session not found")
    data = entry["data"]
    return {
        "status": "success",
        "sessionId": session_id,
        "timestamp": data.get("timestamp") or entry["timestamp"],
        "totalStudents": data.get("totalStudents"),
        "totalSubjects": data.get("totalSubjects"),
        "hasData": True,
    }


@app.get("/api/analysis/download-pdf/{session_id}")
async def download_pdf(session_id: str, store=Depends(get_analysis_store)):
    data = _session_data(store, session_id)
    try:
        pdf_buffer = generate_analysis_pdf(data, session_id)
    except Exception as e:
        logger.error(f"PDF generation error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to generate PDF report")

    return StreamingResponse(
        pdf_buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="analysis-report-{session_id[:8]}.pdf"'}
    )


@app.get("/api/analysis/visualizations/{session_id}")
async def get_visualizations(session_id: str, store=Depends(get_analysis_store)):
    data = _session_data(store, session_id)
    return {"status": "success", "sessionId": session_id, "visualizations": generate_dashboard_charts(data)}


@app.get("/api/analysis/health")
async def analysis_health():
    return {
        "status": "success",
        "service": "analysis",
        "health": "healthy",
        "timestamp": datetime.now().isoformat(),
    }

# ========== CHAT ENDPOINTS ==========

@app.post("/api/chat/send")
async def chat_send(
    request: ChatRequest,
    store=Depends(get_analysis_store),
    client=Depends(get_insight_client),
):
    if not request.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")

    context = None
    if request.sessionId:
        entry = store.get(request.sessionId)
        if entry is not None:
            context = entry["data"]

    try:
        reply = await run_in_threadpool(chat_with_analysis, request.message, context, client)
    except Exception as e:
        logger.error(f"Chat error: {str(e)}", exc_info=True)
        return {"status": "error", "message": f"Chat failed: {str(e)}"}

    return {
        "status": "success",
        "message": reply,
        "hasAnalysisContext": context is not None,
        "timestamp": datetime.now().isoformat(),
    }


@app.post("/api/chat/store-analysis")
async def store_analysis(request: StoreAnalysisRequest, store=Depends(get_analysis_store)):
    if not request.sessionId or not request.analysisData:
        raise HTTPException(status_code=400, detail="Session ID and analysis data are required")
    store.set(request.sessionId, request.analysisData)
    return {
        "status": "success",
        "message": "Analysis data stored successfully",
        "sessionId": request.sessionId,
    }


@app.get("/api/chat/sessions")
async def list_sessions(store=Depends(get_analysis_store)):
    sessions = store.list_sessions()
    return {"status": "success", "sessions": sessions, "count": len(sessions)}


@app.delete("/api/chat/session/{session_id}")
async def delete_session(session_id: str, store=Depends(get_analysis_store)):
    if not store.delete(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "success", "message": "Session data cleared"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
