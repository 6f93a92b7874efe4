import uuid
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from gostly.config import PipelineConfig
from gostly.database import get_db
from gostly.main import app
from gostly.models import MessageLog
from gostly.routers.whatsapp_webhook import get_mailer, get_pipeline
from gostly.services.email_service import Mailer
from gostly.services.inbound_service import InboundPipeline
from gostly.services.phrases import (
    FORWARDED_REPLY,
    MISSING_CODE_REPLY,
    TECHNICAL_DIFFICULTY_REPLY,
    UNKNOWN_FACT_REPLY,
)
from gostly.services.twiml_service import escape_xml

FORM = {"From": "whatsapp:+385911234567", "To": "whatsapp:+14155238886"}


@pytest.fixture
def mailer():
    mock = Mock(spec=Mailer)
    mock.send.return_value = True
    return mock


@pytest.fixture
def webhook_client(db_session, mailer):
    def _make(pipeline):
        def _override_get_db():
            yield db_session

        app.dependency_overrides[get_db] = _override_get_db
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        app.dependency_overrides[get_mailer] = lambda: mailer
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def active_property(make_property, make_billing_profile):
    def _make(**kwargs):
        owner_id = uuid.uuid4()
        prop = make_property(owner_id=owner_id, **kwargs)
        make_billing_profile(owner_id, monthly_limit=100)
        return prop

    return _make


class TestWebhookResponse:
    def test_returns_twiml_with_reply(self, webhook_client, make_llm, active_property, db_session):
        active_property()
        client = webhook_client(InboundPipeline(PipelineConfig(), make_llm(content="Check-in is after 15:00.")))

        response = client.post("/api/whatsapp/webhook", data={**FORM, "Body": "ANA123: When is check-in?"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/xml")
        assert "<Response><Message>Check-in is after 15:00.</Message></Response>" in response.text
        assert db_session.query(MessageLog).count() == 1

    def test_reply_is_xml_escaped(self, webhook_client, make_llm, active_property):
        active_property()
        client = webhook_client(InboundPipeline(PipelineConfig(), make_llm(content='Wi-Fi: "Villa<Ana>" & co')))

        response = client.post("/api/whatsapp/webhook", data={**FORM, "Body": "ANA123: wifi?"})

        assert "<Message>Wi-Fi: &quot;Villa&lt;Ana&gt;&quot; &amp; co</Message>" in response.text

    def test_missing_fields_get_missing_code_reply(self, webhook_client, make_llm):
        client = webhook_client(InboundPipeline(PipelineConfig(), make_llm()))

        response = client.post("/api/whatsapp/webhook", data={})

        assert response.status_code == 200
        assert escape_xml(MISSING_CODE_REPLY["en"]) in response.text

    def test_pipeline_crash_still_returns_200(self, webhook_client):
        pipeline = Mock(spec=InboundPipeline)
        pipeline.process.side_effect = RuntimeError("boom")
        client = webhook_client(pipeline)

        response = client.post("/api/whatsapp/webhook", data={**FORM, "Body": "ANA123: hi"})

        assert response.status_code == 200
        assert escape_xml(TECHNICAL_DIFFICULTY_REPLY["en"]) in response.text

    def test_probe(self, webhook_client, make_llm):
        client = webhook_client(InboundPipeline(PipelineConfig(), make_llm()))

        response = client.get("/api/whatsapp/webhook")

        assert response.status_code == 200
        assert response.text == "OK"


class TestHostNotification:
    def test_escalation_emails_host_after_response(self, webhook_client, make_llm, active_property, mailer):
        active_property(handoff_email="host@example.com")
        client = webhook_client(InboundPipeline(PipelineConfig(), make_llm(content=UNKNOWN_FACT_REPLY["en"])))

        response = client.post("/api/whatsapp/webhook", data={**FORM, "Body": "ANA123: Is there a sauna?"})

        assert escape_xml(FORWARDED_REPLY["en"]) in response.text
        mailer.send.assert_called_once()
        to, subject, body = mailer.send.call_args[0]
        assert to == "host@example.com"
        assert "Is there a sauna?" in body

    def test_no_handoff_email_skips_send(self, webhook_client, make_llm, active_property, mailer):
        active_property(handoff_email=None)
        client = webhook_client(InboundPipeline(PipelineConfig(), make_llm(content=UNKNOWN_FACT_REPLY["en"])))

        response = client.post("/api/whatsapp/webhook", data={**FORM, "Body": "ANA123: Is there a sauna?"})

        assert escape_xml(FORWARDED_REPLY["en"]) in response.text
        mailer.send.assert_not_called()

    def test_plain_answer_sends_nothing(self, webhook_client, make_llm, active_property, mailer):
        active_property()
        client = webhook_client(InboundPipeline(PipelineConfig(), make_llm(content="Parking is free.")))

        client.post("/api/whatsapp/webhook", data={**FORM, "Body": "ANA123: parking?"})

        mailer.send.assert_not_called()


class TestHealth:
    def test_health(self):
        response = TestClient(app).get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
