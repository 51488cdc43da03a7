import random

from fastapi.testclient import TestClient

from arena_server.main import create_app
from arena_server.services.game_service import GameService


def make_client(respawn_delay=0.1):
    app = create_app(GameService(rng=random.Random(5)), respawn_delay=respawn_delay)
    return TestClient(app)


def join(ws):
    map_data = ws.receive_json()
    roster = ws.receive_json()
    assert map_data["type"] == "map_data"
    assert roster["type"] == "current_players"
    return roster


def test_http_endpoints():
    with make_client() as client:
        assert client.get("/").status_code == 200
        config = client.get("/api/game/config").json()
        assert (config["mapWidth"], config["mapHeight"]) == (1600, 1200)
        assert len(client.get("/api/game/map").json()["obstacles"]) == 3
        assert client.get("/api/game/stats").json()["totalPlayers"] == 0


def test_join_shoot_and_leave():
    with make_client() as client:
        with client.websocket_connect("/ws") as ws_a:
            roster_a = join(ws_a)
            a = roster_a["playerId"]
            assert list(roster_a["players"]) == [a]

            with client.websocket_connect("/ws") as ws_b:
                roster_b = join(ws_b)
                b = roster_b["playerId"]
                assert set(roster_b["players"]) == {a, b}

                joined = ws_a.receive_json()
                assert joined == {"type": "new_player", "player": roster_b["players"][b]}

                ws_a.send_json(
                    {"type": "shoot", "x": 100, "y": 100, "direction": {"x": 1, "y": 0}}
                )
                for ws in (ws_a, ws_b):
                    fired = ws.receive_json()
                    assert fired["type"] == "projectile_fired"
                    assert fired["projectile"]["owner"] == a

                assert client.get("/api/game/stats").json()["totalPlayers"] == 2

            assert ws_a.receive_json() == {"type": "player_removed", "playerId": b}
            assert b not in client.get("/api/game/players").json()["players"]


def test_hit_eliminates_and_respawns_victim():
    with make_client(respawn_delay=0.1) as client:
        with client.websocket_connect("/ws") as ws_a:
            a = join(ws_a)["playerId"]
            with client.websocket_connect("/ws") as ws_b:
                b = join(ws_b)["playerId"]
                ws_a.receive_json()  # new_player for b

                ws_a.send_json({"type": "hit", "projectileId": "p", "targetId": b})

                killed = {"type": "player_killed", "killer": a, "victim": b, "kills": 1}
                removed = {"type": "player_removed", "playerId": b}
                assert ws_a.receive_json() == killed
                assert ws_a.receive_json() == removed
                assert ws_b.receive_json() == killed
                assert ws_b.receive_json() == {"type": "eliminated"}
                assert ws_b.receive_json() == removed

                respawned = ws_a.receive_json()
                assert respawned["type"] == "new_player"
                assert respawned["player"]["id"] == b

                assert ws_b.receive_json()["type"] == "new_player"
                roster = ws_b.receive_json()
                assert roster["type"] == "current_players"
                assert set(roster["players"]) == {a, b}
                assert roster["players"][a]["kills"] == 1


def test_invalid_messages_keep_connection_open():
    with make_client() as client:
        with client.websocket_connect("/ws") as ws_a:
            join(ws_a)
            with client.websocket_connect("/ws") as ws_b:
                b = join(ws_b)["playerId"]
                ws_a.receive_json()

                ws_b.send_text("{broken")
                ws_b.send_json({"type": "move", "x": None, "y": 3})
                ws_b.send_json({"type": "move", "x": 100, "y": 100})

                assert ws_a.receive_json() == {
                    "type": "player_moved",
                    "id": b,
                    "x": 100,
                    "y": 100,
                }


def test_config_reports_effective_respawn_delay():
    with make_client(respawn_delay=0.25) as client:
        config = client.get("/api/game/config").json()
        assert config["respawnDelay"] == 250

        with client.websocket_connect("/ws") as ws:
            map_data = ws.receive_json()
            ws.receive_json()
            assert map_data["config"] == config
