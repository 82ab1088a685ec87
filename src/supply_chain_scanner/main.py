"""FastAPI application for the supply-chain compromise scanner."""

import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from git.exc import GitCommandError

from . import __version__
from .aggregator import error_result
from .config import load_config
from .errors import SupplyChainScanError
from .models import ScanRequest, ScanResult, Signature
from .scanner import run_gate, scan_repository

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Supply-Chain Compromise Scanner",
    description="Scans repositories for dependency versions known to ship malicious code",
    version=__version__,
)

# CORS - allow common development origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:3000",
        "http://localhost:8000",
    ],
    allow_methods=["POST", "GET"],
    allow_headers=["*"],
)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/signatures", response_model=list[Signature])
def signatures() -> list[Signature]:
    """List the signatures the scanner is configured with."""
    try:
        return list(load_config().signatures)
    except SupplyChainScanError as e:
        logger.error(f"Invalid scanner configuration: {e}")
        raise HTTPException(status_code=500, detail=f"Invalid scanner configuration: {e}")


@app.post("/scan", response_model=ScanResult)
def scan(request: ScanRequest) -> ScanResult:
    """
    Scan a local directory or a git repository for compromised packages.

    - **path**: Local directory to scan
    - **repo_url**: URL of a git repository to clone and scan (used when path is absent)
    - **with_collaborators**: Run downstream security tools if the scan is clean
    - **workers**: Number of parallel file workers

    The status field carries the outcome; tool errors are reported in the
    body rather than as HTTP errors.
    """
    if not request.path and not request.repo_url:
        raise HTTPException(status_code=400, detail="Provide either 'path' or 'repo_url'")

    root = request.path or request.repo_url
    try:
        config = load_config(workers=request.workers)
        if request.path:
            logger.info(f"Scanning path: {request.path}")
            return run_gate(request.path, config, with_collaborators=request.with_collaborators)

        logger.info(f"Scanning repository: {request.repo_url}")
        return scan_repository(
            request.repo_url,
            config,
            with_collaborators=request.with_collaborators,
        )

    except GitCommandError as e:
        logger.error(f"Failed to clone repository: {e}")
        raise HTTPException(status_code=400, detail=f"Failed to clone repository: {str(e)}")
    except SupplyChainScanError as e:
        logger.error(f"Scan could not run: {e}")
        return error_result(root, str(e))
    except Exception as e:
        logger.error(f"Scan failed: {e}")
        raise HTTPException(status_code=500, detail=f"Scan failed: {str(e)}")
