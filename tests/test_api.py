"""Tests for the FastAPI backend."""

import sys
import os
import uuid

import pytest
from fastapi.testclient import TestClient

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import api
from api import app


client = TestClient(app)


def new_game(**kwargs):
    game_id = uuid.uuid4().hex
    response = client.post("/api/new-game", json={"game_id": game_id, **kwargs})
    assert response.status_code == 200
    return game_id


class TestNewGame:
    def test_create_game(self):
        game_id = uuid.uuid4().hex

        response = client.post("/api/new-game", json={"game_id": game_id, "depth": 2})

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "game_id": game_id, "depth": 2}

    def test_difficulty_maps_to_depth(self):
        response = client.post(
            "/api/new-game", json={"game_id": uuid.uuid4().hex, "difficulty": 4}
        )

        assert response.json()["depth"] == 4

    def test_invalid_depth(self):
        response = client.post(
            "/api/new-game", json={"game_id": uuid.uuid4().hex, "depth": 0}
        )

        assert response.status_code == 400

    def test_invalid_setup(self):
        response = client.post(
            "/api/new-game",
            json={"game_id": uuid.uuid4().hex, "custom_setup": {"z9": "hK"}},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_setup"

    def test_unknown_game(self):
        response = client.get("/api/board/no-such-game")

        assert response.status_code == 404


class TestBoardState:
    def test_initial_board(self):
        game_id = new_game(han_formation=2)

        data = client.get(f"/api/board/{game_id}").json()

        assert data["side_to_move"] == "CHO"
        assert data["move_count"] == 0
        assert data["passed"] == {"CHO": False, "HAN": False}
        assert data["in_check"] is False
        assert data["is_stalemate"] is False
        assert data["scores"] == {"CHO": 72.0, "HAN": 73.5}
        assert data["game_over"] is False
        assert data["outcome"] is None
        assert data["can_undo"] is False
        assert data["board"][0][1] == "hE"  # 상마마상
        assert data["board"][9][1] == "cH"

    def test_legal_moves(self):
        game_id = new_game()

        response = client.get(f"/api/legal-moves/{game_id}/a7")

        assert response.status_code == 200
        assert response.json()["from"] == "a7"
        assert set(response.json()["moves"]) == {"a6", "b7"}

    def test_legal_moves_wrong_side(self):
        game_id = new_game()

        response = client.get(f"/api/legal-moves/{game_id}/a4")

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_selection"

    def test_bad_square(self):
        game_id = new_game()

        response = client.get(f"/api/legal-moves/{game_id}/z99")

        assert response.status_code == 400


class TestActions:
    def test_move(self):
        game_id = new_game()

        response = client.post(
            "/api/move",
            json={"game_id": game_id, "from_square": "a7", "to_square": "a6"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["move"] == "a7a6"
        assert data["captured"] is None
        assert data["check"] is False
        assert data["game_over"] is None
        board = client.get(f"/api/board/{game_id}").json()
        assert board["side_to_move"] == "HAN"
        assert board["can_undo"] is True

    def test_illegal_move(self):
        game_id = new_game()

        response = client.post(
            "/api/move",
            json={"game_id": game_id, "from_square": "a7", "to_square": "a4"},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "illegal_move"

    def test_double_pass_ends_game(self):
        game_id = new_game()

        assert client.post(f"/api/pass/{game_id}").json()["game_over"] is None
        data = client.post(f"/api/pass/{game_id}").json()

        assert data["game_over"] == {
            "winner": "HAN",
            "reason": "double_pass",
            "cho_score": 72.0,
            "han_score": 73.5,
        }
        response = client.post(f"/api/pass/{game_id}")
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "game_over"

    def test_capture_and_check(self):
        game_id = new_game(custom_setup={"e9": "cK", "a10": "cR", "e2": "hK", "a2": "hH"})

        data = client.post(
            "/api/move",
            json={"game_id": game_id, "from_square": "a10", "to_square": "a2"},
        ).json()

        assert data["captured"] == "HORSE"
        assert data["check"] is True

    def test_undo(self):
        game_id = new_game()
        client.post(
            "/api/move",
            json={"game_id": game_id, "from_square": "a7", "to_square": "a6"},
        )

        response = client.post(f"/api/undo/{game_id}")

        assert response.status_code == 200
        board = client.get(f"/api/board/{game_id}").json()
        assert board["move_count"] == 0
        assert board["board"][6][0] == "cP"

    def test_undo_fresh_game(self):
        game_id = new_game()

        response = client.post(f"/api/undo/{game_id}")

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "nothing_to_undo"

    def test_undo_pair(self):
        game_id = new_game()
        client.post(
            "/api/move",
            json={"game_id": game_id, "from_square": "a7", "to_square": "a6"},
        )
        assert client.post(f"/api/undo-pair/{game_id}").status_code == 400

        client.post(
            "/api/move",
            json={"game_id": game_id, "from_square": "a4", "to_square": "a5"},
        )
        response = client.post(f"/api/undo-pair/{game_id}")

        assert response.status_code == 200
        assert client.get(f"/api/board/{game_id}").json()["move_count"] == 0


class TestAIMove:
    def test_ai_move(self):
        game_id = new_game(depth=1)

        response = client.post(f"/api/ai-move/{game_id}")

        assert response.status_code == 200
        data = response.json()
        assert set(data["move"]) == {"from", "to"}
        assert data["nodes_searched"] > 0
        board = client.get(f"/api/board/{game_id}").json()
        assert board["side_to_move"] == "HAN"
        assert board["move_count"] == 1

    def test_ai_takes_free_rook(self):
        game_id = new_game(
            depth=2, custom_setup={"e9": "cK", "d2": "hK", "a5": "cR", "a1": "hR"}
        )

        data = client.post(f"/api/ai-move/{game_id}").json()

        assert data["move"] == {"from": "a5", "to": "a1"}
        assert data["captured"] == "ROOK"

    def test_ai_move_finished_game(self):
        game_id = new_game()
        client.post(f"/api/pass/{game_id}")
        client.post(f"/api/pass/{game_id}")

        response = client.post(f"/api/ai-move/{game_id}")

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_search_state"

    def test_stalemate_reported(self):
        """No legal move and no check: the client is told to pass."""
        game_id = new_game(
            custom_setup={"d10": "cK", "a9": "hR", "e5": "hR", "e2": "hK"}
        )

        board = client.get(f"/api/board/{game_id}").json()
        assert board["is_stalemate"] is True
        assert board["in_check"] is False
        assert client.post(f"/api/ai-move/{game_id}").status_code == 400
        assert client.post(f"/api/pass/{game_id}").status_code == 200


class TestBusyGame:
    """While a search runs, no other request may touch the board."""

    @pytest.fixture
    def busy_game(self):
        game_id = new_game()
        session = api.games[game_id]
        session.is_processing = True
        yield game_id
        session.is_processing = False

    def test_legal_moves_rejected(self, busy_game):
        response = client.get(f"/api/legal-moves/{busy_game}/b8")

        assert response.status_code == 409

    def test_board_rejected(self, busy_game):
        response = client.get(f"/api/board/{busy_game}")

        assert response.status_code == 409

    def test_actions_rejected(self, busy_game):
        move = {"game_id": busy_game, "from_square": "a7", "to_square": "a6"}

        assert client.post("/api/move", json=move).status_code == 409
        assert client.post(f"/api/pass/{busy_game}").status_code == 409
        assert client.post(f"/api/undo/{busy_game}").status_code == 409
        assert client.post(f"/api/ai-move/{busy_game}").status_code == 409

    def test_board_untouched_while_busy(self, busy_game):
        before = api.games[busy_game].game.board.to_codes()

        client.get(f"/api/legal-moves/{busy_game}/a7")

        assert api.games[busy_game].game.board.to_codes() == before
        assert api.games[busy_game].game.move_count == 0

    def test_idle_again_after_ai_move(self):
        game_id = new_game(depth=1)

        assert client.post(f"/api/ai-move/{game_id}").status_code == 200
        assert api.games[game_id].is_processing is False
        assert client.get(f"/api/legal-moves/{game_id}/a4").status_code == 200
