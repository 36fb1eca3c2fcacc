"""Upload page and health check endpoints."""

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from imagerec.api.core.dependencies import HealthServiceDep
from imagerec.modules.health.service import OverallHealthStatus
from imagerec.utils.logger import get_logger

logger = get_logger(__name__)

root_router = APIRouter()
router = APIRouter(prefix="/health", tags=["health"])
v1_router = APIRouter(prefix="/health", tags=["health"])


@root_router.get("/", response_class=HTMLResponse)
async def root():
    """Upload page; the form posts to /upload and htmx swaps in the result."""
    html_content = """
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>Image Recognition</title>
        <script src="https://unpkg.com/htmx.org@1.9.12"></script>
        <style>
            * {
                margin: 0;
                padding: 0;
                box-sizing: border-box;
            }

            body {
                font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
                min-height: 100vh;
                background: #f8f9fa;
                color: #1a1a1a;
                display: flex;
                flex-direction: column;
                align-items: center;
                padding: 3rem 2rem;
            }

            .container {
                max-width: 640px;
                width: 100%;
            }

            h1 {
                font-size: 2.25rem;
                letter-spacing: -0.02em;
                margin-bottom: 0.5rem;
            }

            .subtitle {
                color: #555;
                margin-bottom: 2rem;
            }

            form {
                display: flex;
                flex-direction: column;
                gap: 1rem;
                padding: 1.5rem;
                background: #fff;
                border: 1px solid #e0e0e0;
            }

            button {
                padding: 0.75rem 1.5rem;
                font-size: 1rem;
                font-weight: 500;
                background: #1a1a1a;
                color: #fff;
                border: none;
                cursor: pointer;
            }

            .htmx-indicator {
                display: none;
            }

            .htmx-request .htmx-indicator {
                display: inline;
            }

            #result {
                margin-top: 2rem;
            }

            .predictions {
                list-style: none;
                display: flex;
                flex-direction: column;
                gap: 0.75rem;
                margin: 1rem 0;
            }

            .prediction .label {
                font-weight: 600;
                text-transform: capitalize;
            }

            .prediction .confidence {
                float: right;
                color: #555;
            }

            .bar {
                height: 6px;
                background: #e9ecef;
                margin: 0.25rem 0;
            }

            .fill {
                height: 100%;
                background: #1a1a1a;
            }

            .description,
            .meta {
                font-size: 0.875rem;
                color: #666;
            }

            .error {
                padding: 1rem;
                border: 1px solid #d9534f;
                color: #a94442;
                background: #fdf2f2;
            }
        </style>
    </head>
    <body>
        <div class="container">
            <h1>Image Recognition</h1>
            <p class="subtitle">Upload a JPEG, PNG or WebP image (up to 10 MB) to classify it.</p>

            <form hx-post="/upload" hx-encoding="multipart/form-data"
                  hx-target="#result" hx-target-error="#result" hx-swap="innerHTML">
                <input type="file" name="file" accept="image/jpeg,image/png,image/webp" required>
                <button type="submit">
                    Classify
                    <span class="htmx-indicator">&hellip;</span>
                </button>
            </form>

            <div id="result"></div>
        </div>

        <script>
            // htmx ignores 4xx/5xx bodies unless told to swap them
            document.body.addEventListener("htmx:beforeSwap", function (evt) {
                if (evt.detail.xhr.status >= 400) {
                    evt.detail.shouldSwap = true;
                    evt.detail.isError = false;
                }
            });
        </script>
    </body>
    </html>
    """
    return HTMLResponse(content=html_content, media_type="text/html")


@router.get("")
async def health():
    """Liveness check used by load balancers."""
    return {"status": "healthy", "service": "image-recognition-api"}


@router.get("/liveness")
async def liveness_check():
    """Simple liveness check - indicates if service is running."""
    return {"status": "alive", "service": "image-recognition-api"}


@v1_router.get("")
async def health_check(health_service: HealthServiceDep) -> OverallHealthStatus:
    """Comprehensive health check of the model registry and result store."""
    return await health_service.run_all_checks()
