"""
main.py

Entry point for the ISO 9001:2015 QMS Compliance API.

Configures logging from settings and starts uvicorn.

Usage
-----
    # Option 1: run directly
    python main.py

    # Option 2: run via uvicorn CLI (recommended for development)
    uvicorn main:app --reload --port 8000

    # Option 3: override settings through the environment
    QMS_HOST=0.0.0.0 QMS_PORT=8080 QMS_LOG_FORMAT=console python main.py

Once running, open your browser at:
    http://localhost:8000/docs      ← Swagger UI  (try every endpoint interactively)
    http://localhost:8000/redoc     ← ReDoc
    http://localhost:8000/health    ← liveness check
    http://localhost:8000/mcp       ← MCP endpoint (QMS_MCP_ENABLED=true)

Quick-start walkthrough (use Swagger UI or curl)
-------------------------------------------------
1.  POST  /api/v1/compliance/validate    post an Organization snapshot, read the findings
2.  POST  /api/v1/compliance/report      same payload, get score, gaps and recommendations
3.  POST  /api/v1/risks                  identify a risk
4.  POST  /api/v1/risks/{id}/assessment  set likelihood and impact
5.  GET   /api/v1/risks/register         view the ranked risk register
6.  POST  /api/v1/objectives             create a measurable quality objective
7.  POST  /api/v1/objectives/{id}/progress  report progress
8.  POST  /api/v1/audits                 plan an internal audit, then start / add findings / complete
"""

import uvicorn

from api import app
from config import get_settings
from logs import setup_logging

settings = get_settings()
setup_logging(settings.log_level, settings.log_format)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,   # auto-reload on file changes during development
        log_level=settings.log_level.lower(),
        log_config=None,          # keep the structlog handler installed above
    )
