from functools import lru_cache

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from gostly.config import PipelineConfig, settings
from gostly.database import get_db
from gostly.logging_config import get_logger, mask_sender
from gostly.services import phrases
from gostly.services.email_service import Mailer, ResendMailer
from gostly.services.handoff_service import send_handoff_email
from gostly.services.inbound_service import InboundPipeline
from gostly.services.language_service import detect_language
from gostly.services.llm import OpenAIProvider
from gostly.services.twiml_service import TWIML_CONTENT_TYPE, build_message_response, parse_inbound_form

logger = get_logger("whatsapp_webhook")

router = APIRouter(prefix="/api/whatsapp", tags=["whatsapp"])


@lru_cache
def get_pipeline() -> InboundPipeline:
    provider = None
    if settings.openai_api_key:
        provider = OpenAIProvider(settings.openai_api_key, default_model=settings.openai_model)
    else:
        logger.warning("OPENAI_API_KEY not set, replies will use the technical fallback")
    return InboundPipeline(PipelineConfig.from_settings(settings), provider)


@lru_cache
def get_mailer() -> Mailer:
    return ResendMailer(
        settings.resend_api_key,
        sender=settings.email_from,
        timeout_seconds=settings.email_timeout_seconds,
    )


def twiml_response(reply: str) -> Response:
    return Response(content=build_message_response(reply), status_code=200, media_type=TWIML_CONTENT_TYPE)


@router.post("/webhook")
async def handle_whatsapp_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    pipeline: InboundPipeline = Depends(get_pipeline),
    mailer: Mailer = Depends(get_mailer),
):
    """
    Twilio WhatsApp webhook. Always answers 200 with TwiML so Twilio never retries;
    host notification runs after the response is sent.
    """
    body_text = ""
    try:
        form = await request.form()
        message = parse_inbound_form(dict(form))
        body_text = message.body
        logger.info(
            "Inbound WhatsApp message",
            extra={"context": {"sender": mask_sender(message.from_number), "length": len(message.body)}},
        )

        result = await run_in_threadpool(pipeline.process, db, message)
    except Exception as e:
        logger.error(f"WhatsApp webhook failed: {e}", exc_info=True)
        language = detect_language(body_text)
        return twiml_response(phrases.phrase(phrases.TECHNICAL_DIFFICULTY_REPLY, language))

    if result.notice is not None:
        background_tasks.add_task(send_handoff_email, mailer, result.notice)

    return twiml_response(result.reply)


@router.get("/webhook")
async def whatsapp_webhook_probe():
    return PlainTextResponse("OK")
