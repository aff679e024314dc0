"""Tests for the Assessment service FastAPI app."""

import pytest
from httpx import ASGITransport, AsyncClient
from services.assessment.app import app as assessment_app
from services.content.app import app as content_app


def client_for(app) -> AsyncClient:
    """An HTTP client talking to `app` in-process."""
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


def _trail(quiz_blocked: bool = False) -> dict:
    return {"id": "t", "title": "Trail", "modules": [
        {"id": "m", "title": "Module", "content": [
            {"id": "intro", "title": "Intro", "type": "video", "order": 0},
            {"id": "final-quiz", "title": "Final quiz", "type": "quiz", "order": 1, "blocked": quiz_blocked},
        ]},
    ]}


def _quiz(**settings) -> dict:
    return {
        "id": "capitals",
        "title": "Capitals",
        "content_id": "final-quiz",
        "passing_score": 70,
        "questions": [
            {"id": "q1", "type": "single-choice", "text": "France?", "options": ["Paris", "Rome"],
             "correct_answer": "Paris", "explanation": "Paris has been the capital since 508."},
            {"id": "q2", "type": "single-choice", "text": "Italy?", "options": ["Paris", "Rome"],
             "correct_answer": "Rome"},
        ],
        **settings,
    }


async def _setup(quiz_blocked: bool = False, **settings) -> None:
    async with client_for(content_app) as ac:
        r = await ac.post("/trails", json=_trail(quiz_blocked))
        assert r.status_code == 201
    async with client_for(assessment_app) as ac:
        r = await ac.post("/assessment/quizzes", json=_quiz(**settings))
        assert r.status_code == 201


async def _trail_percentage(user_id: str) -> float:
    async with client_for(content_app) as ac:
        r = await ac.get("/trails/t/progress", params={"user_id": user_id})
    return r.json()["percentage"]


@pytest.mark.asyncio
async def test_questions_are_served_without_answers(session) -> None:
    await _setup()
    async with client_for(assessment_app) as ac:
        r = await ac.get("/assessment/quizzes/capitals/questions")
    body = r.json()
    assert [q["id"] for q in body] == ["q1", "q2"]
    assert all("correct_answer" not in q and "explanation" not in q for q in body)


@pytest.mark.asyncio
async def test_passing_attempt_completes_the_content(session) -> None:
    await _setup()
    async with client_for(assessment_app) as ac:
        r = await ac.post("/assessment/quizzes/capitals/attempts",
                          json={"user_id": "ana", "answers": {"q1": "paris", "q2": "Rome"}})
    assert r.status_code == 200
    body = r.json()
    assert body["result"]["percentage"] == 100
    assert body["result"]["passed"] is True
    assert body["review"][0]["correct_answer"] == "Paris"
    assert await _trail_percentage("ana") == 50


@pytest.mark.asyncio
async def test_failing_attempt_does_not_complete(session) -> None:
    await _setup()
    async with client_for(assessment_app) as ac:
        r = await ac.post("/assessment/quizzes/capitals/attempts",
                          json={"user_id": "ana", "answers": {"q1": "Paris"}})
    body = r.json()
    assert body["result"]["percentage"] == 50
    assert body["result"]["passed"] is False
    assert body["result"]["retake_allowed"] is True
    assert await _trail_percentage("ana") == 0


@pytest.mark.asyncio
async def test_retake_refused_when_disallowed(session) -> None:
    await _setup(allow_retakes=False, show_correct_answers=False)
    async with client_for(assessment_app) as ac:
        r = await ac.post("/assessment/quizzes/capitals/attempts", json={"user_id": "ana", "answers": {}})
        assert r.json()["result"]["retake_allowed"] is False
        assert all(item["correct_answer"] is None for item in r.json()["review"])
        r = await ac.post("/assessment/quizzes/capitals/attempts", json={"user_id": "ana", "answers": {}})
        if r.status_code != 409:
            pytest.fail(f"Expected 409, got {r.status_code}")
        r = await ac.get("/assessment/quizzes/capitals/attempts", params={"user_id": "ana"})
    assert len(r.json()) == 1
    assert r.json()[0]["passed"] is False


@pytest.mark.asyncio
async def test_retake_allowed_until_pass(session) -> None:
    await _setup(allow_retakes=True)
    async with client_for(assessment_app) as ac:
        await ac.post("/assessment/quizzes/capitals/attempts", json={"user_id": "ana", "answers": {}})
        r = await ac.post("/assessment/quizzes/capitals/attempts",
                          json={"user_id": "ana", "answers": {"q1": "Paris", "q2": "Rome"}})
        assert r.json()["result"]["passed"] is True
        r = await ac.post("/assessment/quizzes/capitals/attempts",
                          json={"user_id": "ana", "answers": {"q1": "Paris", "q2": "Rome"}})
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_blocked_quiz_content_refuses_completion(session) -> None:
    await _setup(quiz_blocked=True)
    async with client_for(assessment_app) as ac:
        r = await ac.post("/assessment/quizzes/capitals/attempts",
                          json={"user_id": "ana", "answers": {"q1": "Paris", "q2": "Rome"}})
    assert r.status_code == 403
    assert await _trail_percentage("ana") == 0


@pytest.mark.asyncio
async def test_ungradable_quiz_is_rejected(session) -> None:
    async with client_for(assessment_app) as ac:
        r = await ac.post("/assessment/quizzes", json={"id": "empty", "title": "Empty", "questions": []})
        assert r.status_code == 422
        r = await ac.post("/assessment/quizzes", json={"id": "odd", "title": "Odd", "questions": [
            {"id": "q", "type": "essay", "text": "Discuss", "correct_answer": "anything"}]})
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_unknown_quiz_is_404(session) -> None:
    async with client_for(assessment_app) as ac:
        r = await ac.post("/assessment/quizzes/ghost/attempts", json={"user_id": "ana", "answers": {}})
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_submission_against_stale_history_is_refused(session, monkeypatch) -> None:
    """Two submissions checked against the same history cannot both be stored."""
    from services.assessment import repo

    await _setup(allow_retakes=False)
    async with client_for(assessment_app) as ac:
        r = await ac.post("/assessment/quizzes/capitals/attempts", json={"user_id": "ana", "answers": {}})
        assert r.status_code == 200

        async def history_before_first_commit(session, quiz_id, user_id):
            return []

        monkeypatch.setattr(repo, "list_attempts", history_before_first_commit)
        r = await ac.post("/assessment/quizzes/capitals/attempts",
                          json={"user_id": "ana", "answers": {"q1": "Paris", "q2": "Rome"}})
        assert r.status_code == 409
        monkeypatch.undo()

        r = await ac.get("/assessment/quizzes/capitals/attempts", params={"user_id": "ana"})
    attempts = r.json()
    assert [(x["attempt_number"], x["passed"]) for x in attempts] == [(1, False)]
    assert await _trail_percentage("ana") == 0


@pytest.mark.asyncio
async def test_attempt_and_completion_commit_together(session, monkeypatch) -> None:
    """When the completion write fails, the attempt is not stored either."""
    import services.assessment.app as assessment_module
    from services.content import repo as content_repo

    async def failing_write(session, user_id, content_id, update, source):
        await content_repo.upsert_progress(session, user_id, content_id, update)
        raise RuntimeError("store went away")

    await _setup()
    monkeypatch.setattr(assessment_module, "write_progress", failing_write)
    async with client_for(assessment_app) as ac:
        with pytest.raises(RuntimeError):
            await ac.post("/assessment/quizzes/capitals/attempts",
                          json={"user_id": "ana", "answers": {"q1": "Paris", "q2": "Rome"}})
        r = await ac.get("/assessment/quizzes/capitals/attempts", params={"user_id": "ana"})
    assert r.json() == []
    assert await _trail_percentage("ana") == 0


@pytest.mark.asyncio
async def test_attempts_are_numbered_per_learner(session) -> None:
    await _setup()
    async with client_for(assessment_app) as ac:
        for user in ("ana", "ana", "bo"):
            await ac.post("/assessment/quizzes/capitals/attempts", json={"user_id": user, "answers": {}})
        ana = (await ac.get("/assessment/quizzes/capitals/attempts", params={"user_id": "ana"})).json()
        bo = (await ac.get("/assessment/quizzes/capitals/attempts", params={"user_id": "bo"})).json()
    assert [x["attempt_number"] for x in ana] == [2, 1]
    assert [x["attempt_number"] for x in bo] == [1]
