import json
import logging
from contextlib import asynccontextmanager
from typing import Annotated, Optional

from fastapi import FastAPI, Response, Request, Depends, Query, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from app import classifier, order_flow
from app.config import Settings, get_settings
from app.logging_utils import setup_logging, RequestLoggingMiddleware, log_flow_data, mask_phone
from app.metrics import (
    record_order_flow_step,
    record_webhook_outcome,
    get_metrics,
    get_metrics_content_type,
)
from app.schemas import ChatRequest, ChatReply, HealthResponse, extract_inbound_message
from app.utils import verify_webhook_subscription
from app.whatsapp import WhatsAppClient, WhatsAppSendError


# Setup structured JSON logging
setup_logging(get_settings().LOG_LEVEL)
logger = logging.getLogger(__name__)

# Meta is pointed at either path; both behave identically
WEBHOOK_PATHS = ["/webhook", "/whatsapp/webhook"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log which WhatsApp settings are missing at startup (never their values)."""
    missing = get_settings().missing_whatsapp_settings()
    if missing:
        logger.warning(f"WhatsApp settings not configured: {', '.join(missing)}")
    else:
        logger.info("WhatsApp settings configured")
    yield


app = FastAPI(
    title="Sasyam WhatsApp Bot",
    description="Scripted order replies for Yellow.ai and the WhatsApp Cloud API",
    version="1.0.0",
    lifespan=lifespan,
)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)


def get_whatsapp_client(settings: Settings = Depends(get_settings)) -> WhatsAppClient:
    """Outbound client for the current settings; overridden in tests."""
    return WhatsAppClient(settings)


# =============================================================================
# Health Check Routes
# =============================================================================

@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "Sasyam WhatsApp bot server is running ✅"


@app.get("/health/live", response_model=HealthResponse)
async def health_live() -> HealthResponse:
    """
    Liveness probe - always returns 200 once the app is running.
    """
    return HealthResponse(status="ok")


@app.get("/health/ready", response_model=HealthResponse)
async def health_ready(
    response: Response,
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    """
    Readiness probe - returns 200 only if the WhatsApp token, phone-number id
    and verify token are all set. Otherwise returns 503.
    """
    missing = settings.missing_whatsapp_settings()
    if missing:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(
            status="not_ready",
            reason=f"{', '.join(missing)} not configured"
        )

    return HealthResponse(status="ready")


# =============================================================================
# Order Flow Route
# =============================================================================

@app.post("/api/message", response_model=ChatReply)
async def api_message(request: Request) -> ChatReply:
    """
    Answer one message of the scripted order flow.

    Body: {"phone": "...", "message": "..."}

    Always returns 200. A missing, blank or unparseable message is answered
    with a prompt to send a valid message.
    """
    raw_body = await request.body()

    try:
        chat = ChatRequest.model_validate_json(raw_body)
    except ValidationError as e:
        logger.warning(f"Unreadable /api/message body: {e.error_count()} validation errors")
        chat = ChatRequest()

    logger.info(f"Order-flow request from {mask_phone(chat.phone)}")

    reply = order_flow.handle_message(chat.message)

    record_order_flow_step(reply.step)
    log_flow_data(request, "order_flow", step=reply.step, **{"from": mask_phone(chat.phone)})

    return ChatReply(reply=reply.text)


# =============================================================================
# WhatsApp Webhook Routes
# =============================================================================

async def verify_webhook(
    mode: Annotated[Optional[str], Query(alias="hub.mode")] = None,
    token: Annotated[Optional[str], Query(alias="hub.verify_token")] = None,
    challenge: Annotated[Optional[str], Query(alias="hub.challenge")] = None,
    settings: Settings = Depends(get_settings),
) -> Response:
    """
    Meta subscription handshake.

    Returns hub.challenge verbatim when hub.mode is "subscribe" and
    hub.verify_token matches WHATSAPP_VERIFY_TOKEN, else 403.
    """
    result = verify_webhook_subscription(mode, token, challenge, settings.WHATSAPP_VERIFY_TOKEN)
    if result is None:
        return Response(status_code=status.HTTP_403_FORBIDDEN)

    logger.info("Webhook verified successfully")
    return PlainTextResponse(result, status_code=status.HTTP_200_OK)


async def receive_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    client: WhatsAppClient = Depends(get_whatsapp_client),
) -> Response:
    """
    Reply to an inbound WhatsApp message.

    - No message or a non-text message: 200 with an empty body, nothing sent
    - Text message: classify, send the reply, then 200
    - Send failure: 500
    """
    raw_body = await request.body()

    try:
        payload = json.loads(raw_body)
    except ValueError:
        logger.warning("Webhook body is not valid JSON")
        payload = None

    message = extract_inbound_message(payload)

    if message is None:
        logger.debug("No text message in webhook payload")
        record_webhook_outcome("ignored")
        log_flow_data(request, "webhook", result="ignored")
        return Response(status_code=status.HTTP_200_OK)

    category, reply = classifier.respond(message.text, settings.SASYAM_SUPPORT_NUMBER)
    sender = mask_phone(message.sender)

    try:
        await client.send_text(message.sender, reply)
    except WhatsAppSendError:
        logger.exception(f"Failed to send reply to {sender}")
        record_webhook_outcome("send_failed", category.value)
        log_flow_data(request, "webhook", category=category.value, result="send_failed", **{"from": sender})
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(f"Replied to {sender}, category: {category.value}")
    record_webhook_outcome("replied", category.value)
    log_flow_data(request, "webhook", category=category.value, result="replied", **{"from": sender})

    return Response(status_code=status.HTTP_200_OK)


for path in WEBHOOK_PATHS:
    app.add_api_route(path, verify_webhook, methods=["GET"])
    app.add_api_route(path, receive_webhook, methods=["POST"])


# =============================================================================
# Metrics Route
# =============================================================================

@app.get("/metrics")
async def metrics() -> Response:
    """
    Expose Prometheus-style metrics.

    Returns metrics in Prometheus text exposition format including:
    - http_requests_total: Total HTTP requests by method, path, status
    - order_flow_replies_total: Order-flow replies by step
    - webhook_requests_total: Webhook outcomes by result
    - request_latency_seconds: Request latency histogram
    """
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type()
    )
