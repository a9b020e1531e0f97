import asyncio
from datetime import datetime
from types import SimpleNamespace

import pytest
import requests
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from prepwise.models import Feedback, User
from prepwise.schemas.feedback import (
    RUBRIC_CATEGORIES,
    FeedbackReport,
    FeedbackRequest,
    RubricCategory,
    TranscriptEntry,
)
from prepwise.services.feedback import (
    FeedbackService,
    build_feedback_prompt,
    format_transcript,
    get_feedback,
)
from prepwise.services.gemini import GeminiFeedbackModel, call_gemini_with_retry
from prepwise.services.resume import VapiFileClient
from prepwise.call import CallAgent, CallConfig, CallPurpose
from tests.fakes import FakeModel, FakeObserver, FakeTransport, make_assessment

FIXED_NOW = datetime(2025, 3, 1, 12, 0, 0)


def make_request(**overrides):
    data = {
        "interview_id": "int-1",
        "user_id": "user-1",
        "transcript": [
            TranscriptEntry(role="assistant", content="Tell me about yourself."),
            TranscriptEntry(role="user", content="I build web apps."),
        ],
    }
    data.update(overrides)
    return FeedbackRequest(**data)


def make_service(session_factory, model=None, resume_client=None):
    return FeedbackService(
        model or FakeModel(make_assessment()),
        session_factory=session_factory,
        resume_client=resume_client,
        clock=lambda: FIXED_NOW,
    )


def test_format_transcript_keeps_call_order():
    transcript = make_request().transcript

    assert format_transcript(transcript) == (
        "- assistant: Tell me about yourself.\n"
        "- user: I build web apps.\n"
    )
    assert format_transcript([]) == ""


def test_prompt_lists_every_rubric_category():
    prompt = build_feedback_prompt("- user: hi\n")

    assert "- user: hi" in prompt
    for name in RUBRIC_CATEGORIES:
        assert name in prompt
    assert "resume" not in prompt.lower()


def test_prompt_includes_resume_context_when_given():
    prompt = build_feedback_prompt("- user: hi\n", resume_text="Senior engineer at Acme")

    assert "Senior engineer at Acme" in prompt


def test_assessment_rejects_missing_category():
    with pytest.raises(ValidationError):
        make_assessment(categories=list(RubricCategory)[:4])


def test_assessment_rejects_duplicate_category():
    categories = list(RubricCategory)[:4] + [RubricCategory.COMMUNICATION_SKILLS]
    with pytest.raises(ValidationError):
        make_assessment(categories=categories)


def test_assessment_rejects_out_of_range_total():
    with pytest.raises(ValidationError):
        make_assessment(total_score=120)


def test_report_rejects_unknown_category_key():
    scores = {name: 50 for name in RUBRIC_CATEGORIES}
    scores["Punctuality"] = 50
    with pytest.raises(ValidationError):
        FeedbackReport(
            interview_id="int-1",
            user_id="user-1",
            total_score=50,
            category_scores=scores,
            strengths=[],
            areas_for_improvement=[],
            final_assessment="",
            created_at=FIXED_NOW,
        )


def test_request_accepts_camel_case_and_rejects_empty_ids():
    request = FeedbackRequest.model_validate({
        "interviewId": "int-1",
        "userId": "user-1",
        "transcript": [{"role": "user", "content": "hi"}],
        "feedbackId": "fb-1",
    })
    assert request.feedback_id == "fb-1"

    with pytest.raises(ValidationError):
        make_request(interview_id="")


def test_generate_feedback_persists_report(session_factory, db):
    model = FakeModel(make_assessment(total_score=81))
    service = make_service(session_factory, model)

    result = asyncio.run(service.generate_feedback(make_request()))

    assert result.success is True
    stored = get_feedback(db, result.feedback_id)
    assert stored.interview_id == "int-1"
    assert stored.user_id == "user-1"
    assert stored.total_score == 81
    assert set(stored.category_scores) == set(RUBRIC_CATEGORIES)
    assert stored.strengths == ["Clear answers"]
    assert stored.created_at == FIXED_NOW
    assert "- user: I build web apps." in model.calls[0][1]


def test_supplied_feedback_id_overwrites_existing_record(session_factory, db):
    first = make_service(session_factory, FakeModel(make_assessment(total_score=40)))
    second = make_service(session_factory, FakeModel(make_assessment(total_score=90)))

    r1 = asyncio.run(first.generate_feedback(make_request(feedback_id="fb-existing")))
    r2 = asyncio.run(second.generate_feedback(make_request(feedback_id="fb-existing")))

    assert r1.feedback_id == r2.feedback_id == "fb-existing"
    assert db.query(Feedback).count() == 1
    assert get_feedback(db, "fb-existing").total_score == 90


def test_new_identifier_allocated_without_feedback_id(session_factory, db):
    service = make_service(session_factory)

    r1 = asyncio.run(service.generate_feedback(make_request()))
    r2 = asyncio.run(service.generate_feedback(make_request()))

    assert r1.feedback_id != r2.feedback_id
    assert db.query(Feedback).count() == 2


def test_model_failure_reports_unsuccessful(session_factory, db):
    service = make_service(session_factory, FakeModel(error=RuntimeError("model unavailable")))

    result = asyncio.run(service.generate_feedback(make_request()))

    assert result.success is False
    assert result.feedback_id is None
    assert db.query(Feedback).count() == 0


def test_malformed_model_output_reports_unsuccessful(session_factory):
    service = make_service(session_factory, FakeModel(assessment=None))

    result = asyncio.run(service.generate_feedback(make_request()))

    assert result.success is False


def test_persistence_failure_reports_unsuccessful(session_factory, db):
    def broken_session():
        session = session_factory()

        def fail_commit():
            raise OperationalError("INSERT INTO feedback", {}, Exception("disk I/O error"))

        session.commit = fail_commit
        return session

    service = make_service(broken_session)

    result = asyncio.run(service.generate_feedback(make_request()))

    assert result.success is False
    assert db.query(Feedback).count() == 0


class FakeResumeClient:
    def __init__(self, text):
        self.text = text
        self.requested = []

    async def get_file_text(self, file_id):
        self.requested.append(file_id)
        return self.text


def test_resume_text_is_added_to_the_prompt(session_factory, db):
    db.add(User(id="user-1", name="Ada", vapi_file_id="file-123"))
    db.commit()
    model = FakeModel(make_assessment())
    resume = FakeResumeClient("Built a compiler in Rust")
    service = make_service(session_factory, model, resume_client=resume)

    result = asyncio.run(service.generate_feedback(make_request()))

    assert result.success is True
    assert resume.requested == ["file-123"]
    assert "Built a compiler in Rust" in model.calls[0][1]


def test_resume_is_skipped_for_users_without_a_file(session_factory, db):
    db.add(User(id="user-1", name="Ada"))
    db.commit()
    resume = FakeResumeClient("unused")
    service = make_service(session_factory, resume_client=resume)

    asyncio.run(service.generate_feedback(make_request()))

    assert resume.requested == []


def unreachable_database():
    raise OperationalError("SELECT 1", {}, Exception("database is locked"))


def test_unreachable_database_reports_unsuccessful():
    service = make_service(unreachable_database)

    result = asyncio.run(service.generate_feedback(make_request()))

    assert result.success is False


def test_user_lookup_failure_skips_resume_context(session_factory, db):
    def session_without_reads():
        session = session_factory()

        def fail_get(*args, **kwargs):
            raise OperationalError("SELECT users", {}, Exception("database is locked"))

        session.get = fail_get
        return session

    model = FakeModel(make_assessment())
    resume = FakeResumeClient("unused")
    service = make_service(session_without_reads, model, resume_client=resume)

    result = asyncio.run(service.generate_feedback(make_request()))

    assert result.success is True
    assert resume.requested == []
    assert db.query(Feedback).count() == 1


def test_unreachable_database_still_sends_the_caller_home():
    config = CallConfig(purpose=CallPurpose.INTERVIEW, user_name="Ada", user_id="user-1",
                        interview_id="int-1", questions=["Why this role?"])
    transport = FakeTransport()
    observer = FakeObserver()
    agent = CallAgent(transport, config, feedback_service=make_service(unreachable_database),
                      observer=observer, connect_timeout=None)

    async def scenario():
        async with agent.attached():
            await agent.start_call()
            await transport.emit("call-start")
            await transport.emit("call-end")

    asyncio.run(scenario())

    assert observer.navigations == ["/"]


def test_feedback_id_of_another_user_is_not_overwritten(session_factory, db):
    owner = make_service(session_factory, FakeModel(make_assessment(total_score=40)))
    intruder = make_service(session_factory, FakeModel(make_assessment(total_score=99)))

    mine = asyncio.run(owner.generate_feedback(make_request(feedback_id="fb-owned")))
    theirs = asyncio.run(intruder.generate_feedback(
        make_request(user_id="user-2", feedback_id="fb-owned", transcript=[])
    ))
    other_interview = asyncio.run(intruder.generate_feedback(
        make_request(interview_id="int-2", feedback_id="fb-owned")
    ))

    assert mine.success is True
    assert theirs.success is False
    assert other_interview.success is False
    stored = get_feedback(db, "fb-owned")
    assert stored.user_id == "user-1"
    assert stored.interview_id == "int-1"
    assert stored.total_score == 40


class FakeModels:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = 0

    def generate_content(self, model, contents, config=None):
        self.calls += 1
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeClient:
    def __init__(self, responses):
        self.models = FakeModels(responses)


def test_retry_recovers_from_unavailable():
    ok = SimpleNamespace(text="ok")
    client = FakeClient([Exception("503 UNAVAILABLE"), ok])

    response = call_gemini_with_retry(client, "m", "prompt", max_retries=2, initial_delay=0)

    assert response is ok
    assert client.models.calls == 2


def test_retry_does_not_repeat_non_retryable_errors():
    client = FakeClient([ValueError("400 invalid argument")])

    with pytest.raises(ValueError):
        call_gemini_with_retry(client, "m", "prompt", max_retries=3, initial_delay=0)
    assert client.models.calls == 1


def test_gemini_model_parses_fenced_json():
    payload = make_assessment(total_score=64).model_dump_json()
    client = FakeClient([SimpleNamespace(parsed=None, text=f"```json\n{payload}\n```")])
    model = GeminiFeedbackModel(client=client, model="m")

    assessment = asyncio.run(model.assess("system", "prompt"))

    assert assessment.total_score == 64
    assert set(assessment.scores_by_category()) == set(RUBRIC_CATEGORIES)


def test_gemini_model_rejects_empty_response():
    client = FakeClient([SimpleNamespace(parsed=None, text="")])
    model = GeminiFeedbackModel(client=client, model="m")

    with pytest.raises(ValueError):
        asyncio.run(model.assess("system", "prompt"))


def test_gemini_model_requires_api_key():
    model = GeminiFeedbackModel(api_key="")

    with pytest.raises(ValueError):
        model.client


class FakeHttpResponse:
    def __init__(self, data, status_error=None):
        self.data = data
        self.status_error = status_error

    def raise_for_status(self):
        if self.status_error:
            raise self.status_error

    def json(self):
        return self.data


class FakeHttpSession:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append((url, headers))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def test_vapi_file_client_returns_text():
    session = FakeHttpSession(FakeHttpResponse({"id": "file-1", "text": "Resume body"}))
    client = VapiFileClient(api_key="key", base_url="https://api.example.com/", session=session)

    assert client.get_file_text_sync("file-1") == "Resume body"
    assert session.calls == [("https://api.example.com/file/file-1", {"Authorization": "Bearer key"})]


def test_vapi_file_client_returns_none_on_http_failure():
    session = FakeHttpSession(requests.ConnectionError("refused"))
    client = VapiFileClient(api_key="key", base_url="https://api.example.com", session=session)

    assert asyncio.run(client.get_file_text("file-1")) is None
