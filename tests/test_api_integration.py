"""Integration tests for API endpoints."""
import pytest
from fastapi.testclient import TestClient
from closer.main import app
from closer.db.database import get_db
from closer.db.init_db import SEED_CARDS
from closer.db.repository import CardRepository
from closer.rate_limit import limiter


@pytest.fixture(scope="function")
def test_client(session_factory):
    """Create a test client with a seeded in-memory database."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    limiter.reset()

    db = session_factory()
    CardRepository(db).add_all(SEED_CARDS)
    db.commit()
    db.close()

    client = TestClient(app)

    yield client

    app.dependency_overrides.clear()


def log_answers(client, learner_id, category, correct, total):
    for i in range(total):
        response = client.post("/api/log", json={
            "learner_id": learner_id,
            "card_id": f"{category}-{i}",
            "correct": i < correct,
            "response_time_ms": 1500,
            "category": category,
        })
        assert response.status_code == 200


class TestHealth:
    """Tests for health endpoints."""

    def test_health(self, test_client):
        """Health check reports a connected database."""
        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_readiness(self, test_client):
        """Readiness check reports ready."""
        assert test_client.get("/readiness").json()["status"] == "ready"


class TestAnswerLog:
    """Tests for /api/log."""

    def test_log_answer(self, test_client):
        """Logging an answer succeeds."""
        response = test_client.post("/api/log", json={
            "learner_id": "u1",
            "card_id": "g1",
            "correct": False,
            "response_time_ms": 3200,
            "category": "prepositions",
        })
        assert response.status_code == 200
        assert response.json() == {"ok": True}

    def test_missing_fields_rejected(self, test_client):
        """Answers without required fields are rejected."""
        response = test_client.post("/api/log", json={"learner_id": "u1", "correct": True})
        assert response.status_code == 422

    def test_negative_response_time_rejected(self, test_client):
        """Negative response times are rejected."""
        response = test_client.post("/api/log", json={
            "learner_id": "u1",
            "card_id": "g1",
            "correct": True,
            "response_time_ms": -5,
        })
        assert response.status_code == 422


class TestQuestions:
    """Tests for /api/questions."""

    def test_national_mode(self, test_client):
        """National mode serves every card with four options."""
        response = test_client.get("/api/questions")
        assert response.status_code == 200
        data = response.json()
        assert len(data) == len(SEED_CARDS)
        assert all(len(card["options"]) == 4 for card in data)

    def test_for_you_puts_weak_categories_first(self, test_client):
        """For-you mode leads with the weak category."""
        log_answers(test_client, "u1", "subjunctive", correct=1, total=4)
        log_answers(test_client, "u1", "verbs", correct=4, total=4)

        response = test_client.get("/api/questions", params={"mode": "for_you", "learner_id": "u1"})
        data = response.json()
        assert data[0]["category"] == "subjunctive"
        assert len(data) == len(SEED_CARDS)

    def test_for_you_without_history_is_unbiased(self, test_client):
        """Without history for-you matches national."""
        national = test_client.get("/api/questions").json()
        for_you = test_client.get("/api/questions", params={"mode": "for_you", "learner_id": "nobody"}).json()
        assert [c["id"] for c in for_you] == [c["id"] for c in national]

    def test_vocab_mode_serves_only_vocabulary(self, test_client):
        """Vocab mode leaves grammar cards out."""
        data = test_client.get("/api/questions", params={"mode": "vocab"}).json()
        vocabulary = [card for card in SEED_CARDS if card.card_type.value == "vocabulary"]
        assert len(data) == len(vocabulary)
        assert all(card["type"] == "vocabulary" for card in data)

    def test_unknown_mode_rejected(self, test_client):
        """Unknown modes are rejected."""
        assert test_client.get("/api/questions", params={"mode": "arcade"}).status_code == 422


class TestRuns:
    """Tests for /api/runs."""

    def test_submit_run_assigns_rank(self, test_client):
        """The server assigns the rank of a submitted run."""
        response = test_client.post("/api/runs", json={
            "learner_id": "u1",
            "score": 600_000,
            "elapsed_ms": 90000,
            "max_combo": 12,
            "correct_rate": 0.95,
        })
        assert response.status_code == 200
        assert response.json() == {"ok": True, "rank": "A"}

    def test_ranking_order(self, test_client):
        """The ranking orders by score, then time."""
        for learner, score, elapsed in [("a", 500, 9000), ("b", 900, 20000), ("c", 500, 4000)]:
            test_client.post("/api/runs", json={"learner_id": learner, "score": score, "elapsed_ms": elapsed})

        data = test_client.get("/api/runs").json()
        assert [run["learner_id"] for run in data] == ["b", "c", "a"]
        assert data[0]["rank"] is None

    def test_invalid_correct_rate_rejected(self, test_client):
        """Correct rates above 1 are rejected."""
        response = test_client.post("/api/runs", json={
            "learner_id": "u1", "score": 10, "elapsed_ms": 10, "correct_rate": 1.5
        })
        assert response.status_code == 422


class TestQuota:
    """Tests for /api/quota."""

    def test_new_learner_can_play(self, test_client):
        """A new learner is in the trial and can play."""
        data = test_client.get("/api/quota/u1").json()
        assert data["can_play"] is True
        assert data["in_free_trial"] is True
        assert data["plays_today"] == 0

    def test_play_is_counted(self, test_client):
        """Each started play is counted."""
        assert test_client.post("/api/quota/u1/play").json()["plays_today"] == 1
        assert test_client.post("/api/quota/u1/play").json()["plays_today"] == 2
        data = test_client.get("/api/quota/u1").json()
        assert data["plays_today"] == 2
        assert data["can_play"] is True


class TestReview:
    """Tests for /api/review."""

    def test_queue_starts_with_every_card(self, test_client):
        """A new learner's queue holds every card with its answer window."""
        data = test_client.get("/api/review/u1/queue").json()
        assert len(data) == len(SEED_CARDS)
        timeouts = {card["type"]: card["timeout_ms"] for card in data}
        assert timeouts == {"vocabulary": 5000, "grammar": 10000}

    def test_correct_answer_advances_stage(self, test_client):
        """A fast correct answer advances two stages and leaves the queue."""
        response = test_client.post("/api/review/u1/answer", json={
            "card_id": "1", "choice_index": 0, "response_time_ms": 800
        })
        assert response.status_code == 200
        data = response.json()
        assert data["correct"] is True
        assert data["stage"] == 3
        assert data["correct_count"] == 1

        queue_ids = {card["id"] for card in test_client.get("/api/review/u1/queue").json()}
        assert "1" not in queue_ids

    def test_wrong_answer_resets(self, test_client):
        """A wrong answer resets the card."""
        test_client.post("/api/review/u1/answer", json={"card_id": "2", "choice_index": 1, "response_time_ms": 800})
        data = test_client.post("/api/review/u1/answer", json={
            "card_id": "2", "choice_index": 3, "response_time_ms": 800
        }).json()
        assert data["correct"] is False
        assert data["stage"] == 1
        assert data["memory_strength"] == 0.5
        assert data["correct_count"] == 1

    def test_timeout_counts_as_miss(self, test_client):
        """A missing choice is a timeout and counts as a miss."""
        data = test_client.post("/api/review/u1/answer", json={
            "card_id": "g1", "response_time_ms": 10000
        }).json()
        assert data["timed_out"] is True
        assert data["correct"] is False
        assert data["stage"] == 1

    def test_unknown_card(self, test_client):
        """Answering an unknown card is a 404."""
        response = test_client.post("/api/review/u1/answer", json={
            "card_id": "nope", "choice_index": 0, "response_time_ms": 800
        })
        assert response.status_code == 404

    def test_review_answers_feed_weak_categories(self, test_client):
        """Review misses make a category weak."""
        for _ in range(3):
            test_client.post("/api/review/u1/answer", json={
                "card_id": "g2", "choice_index": 0, "response_time_ms": 800
            })
        data = test_client.get("/api/questions", params={"mode": "for_you", "learner_id": "u1"}).json()
        assert data[0]["id"] == "g2"

    def test_progress(self, test_client):
        """Progress lists reviewed and unreviewed cards."""
        test_client.post("/api/review/u1/answer", json={"card_id": "1", "choice_index": 0, "response_time_ms": 800})
        data = {item["card_id"]: item for item in test_client.get("/api/review/u1/progress").json()}
        assert data["1"]["scheduled"] is True
        assert data["2"]["scheduled"] is False


class TestVocabulary:
    """Tests for /api/vocabulary."""

    def test_register_and_list(self, test_client):
        """Registered words come back normalized with at most three meanings."""
        response = test_client.post("/api/vocabulary", json={
            "learner_id": "u1",
            "word": "  Postpone ",
            "meanings": ["延期する", "先送りする", "後回しにする", "遅らせる"],
            "source_card_id": "4",
        })
        assert response.status_code == 200

        data = test_client.get("/api/vocabulary", params={"learner_id": "u1"}).json()
        assert len(data) == 1
        assert data[0]["word"] == "postpone"
        assert data[0]["meanings"] == ["延期する", "先送りする", "後回しにする"]
        assert data[0]["source_card_id"] == "4"

    def test_registering_again_replaces_meanings(self, test_client):
        """A second registration of the same word updates it in place."""
        test_client.post("/api/vocabulary", json={"learner_id": "u1", "word": "acquire", "meanings": ["得る"]})
        test_client.post("/api/vocabulary", json={"learner_id": "u1", "word": "ACQUIRE", "meanings": ["買収する"]})

        data = test_client.get("/api/vocabulary", params={"learner_id": "u1"}).json()
        assert [entry["word"] for entry in data] == ["acquire"]
        assert data[0]["meanings"] == ["買収する"]

    def test_words_are_per_learner(self, test_client):
        """One learner's words are not listed for another."""
        test_client.post("/api/vocabulary", json={"learner_id": "u1", "word": "exceed", "meanings": ["超える"]})
        assert test_client.get("/api/vocabulary", params={"learner_id": "u2"}).json() == []

    def test_anonymous_and_missing_learner_get_empty_list(self, test_client):
        """Signed-out clients never see registered words."""
        test_client.post("/api/vocabulary", json={"learner_id": "anon", "word": "ensure", "meanings": ["確実にする"]})
        assert test_client.get("/api/vocabulary", params={"learner_id": "anon"}).json() == []
        assert test_client.get("/api/vocabulary").json() == []

    def test_blank_word_rejected(self, test_client):
        """A word of only spaces is rejected."""
        response = test_client.post("/api/vocabulary", json={"learner_id": "u1", "word": "   ", "meanings": []})
        assert response.status_code == 422
