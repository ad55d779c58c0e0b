"""HTTP tests for table and roll routes."""

from __future__ import annotations

from dicebox.engine import DiceEngine


async def _create_table(client, **body):
    resp = await client.post("/tables", json={"name": "Friday game", **body})
    assert resp.status_code == 201
    return resp.json()


async def test_create_and_read_table(client):
    table = await _create_table(client)
    assert table["name"] == "Friday game"
    assert table["historyCapacity"] == 50
    assert table["historySize"] == 0

    resp = await client.get(f"/tables/{table['id']}")
    assert resp.status_code == 200
    assert resp.json()["id"] == table["id"]


async def test_unknown_table(client):
    resp = await client.get("/tables/nope")
    assert resp.status_code == 404
    resp = await client.post("/tables/nope/rolls", json={"expression": "1d6"})
    assert resp.status_code == 404


async def test_delete_table(client):
    table = await _create_table(client)
    resp = await client.delete(f"/tables/{table['id']}")
    assert resp.status_code == 204
    resp = await client.get(f"/tables/{table['id']}")
    assert resp.status_code == 404


async def test_roll_returns_result(client, sink):
    table = await _create_table(client)
    resp = await client.post(
        f"/tables/{table['id']}/rolls",
        json={"expression": "3d8+1d4+2", "flavorText": "Damage", "speaker": {"alias": "Bo"}},
    )
    assert resp.status_code == 201
    data = resp.json()
    assert set(data) == {"expression", "groups", "flatModifierSum", "total", "formula", "timestamp"}
    assert [(g["count"], g["sides"]) for g in data["groups"]] == [(3, 8), (1, 4)]
    kept = sum(d["result"] for g in data["groups"] for d in g["dice"] if d["kept"])
    assert data["total"] == kept + 2

    event = sink.queue.get_nowait()
    assert event.flavor_text == "Damage"
    assert event.speaker == {"alias": "Bo"}


async def test_roll_without_sending(client, sink):
    table = await _create_table(client)
    resp = await client.post(
        f"/tables/{table['id']}/rolls", json={"expression": "1d6", "sendResult": False}
    )
    assert resp.status_code == 201
    assert sink.queue.empty()


async def test_bad_expression(client):
    table = await _create_table(client)
    resp = await client.post(f"/tables/{table['id']}/rolls", json={"expression": "hello"})
    assert resp.status_code == 422
    assert resp.json()["fragment"] == "hello"

    resp = await client.post(f"/tables/{table['id']}/rolls", json={"expression": "  "})
    assert resp.status_code == 422

    resp = await client.get(f"/tables/{table['id']}/rolls")
    assert resp.json() == []


async def test_history_newest_first(client):
    table = await _create_table(client)
    for expression in ("1d4", "1d6", "1d8"):
        await client.post(f"/tables/{table['id']}/rolls", json={"expression": expression})

    resp = await client.get(f"/tables/{table['id']}/rolls", params={"limit": 2})
    assert resp.status_code == 200
    assert [r["expression"] for r in resp.json()] == ["1d8", "1d6"]


async def test_history_capacity(client):
    table = await _create_table(client, historyCapacity=2)
    for expression in ("1d4", "1d6", "1d8"):
        await client.post(f"/tables/{table['id']}/rolls", json={"expression": expression})

    resp = await client.get(f"/tables/{table['id']}/rolls", params={"limit": 10})
    assert [r["expression"] for r in resp.json()] == ["1d8", "1d6"]


async def test_tables_have_separate_history(client):
    first = await _create_table(client)
    second = await _create_table(client)
    await client.post(f"/tables/{first['id']}/rolls", json={"expression": "1d6"})

    resp = await client.get(f"/tables/{second['id']}/rolls")
    assert resp.json() == []


async def test_latest_and_clear(client):
    table = await _create_table(client)
    resp = await client.get(f"/tables/{table['id']}/rolls/latest")
    assert resp.status_code == 404

    await client.post(f"/tables/{table['id']}/rolls", json={"expression": "4d6dl1"})
    resp = await client.get(f"/tables/{table['id']}/rolls/latest")
    assert resp.status_code == 200
    total = resp.json()["total"]

    resp = await client.get(f"/tables/{table['id']}/rolls/latest/text")
    assert resp.status_code == 200
    assert resp.text.startswith("4d6dl1 [")
    assert "(dropped: " in resp.text
    assert resp.text.endswith(f"= {total}")

    resp = await client.delete(f"/tables/{table['id']}/rolls")
    assert resp.status_code == 204
    resp = await client.get(f"/tables/{table['id']}/rolls")
    assert resp.json() == []


async def test_check_with_advantage(client, sink):
    table = await _create_table(client)
    resp = await client.post(
        f"/tables/{table['id']}/checks",
        json={"attribute": "dex", "bonus": 2, "advantage": True},
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["expression"] == "2d20kh1+2"
    (group,) = data["groups"]
    assert len(group["dice"]) == 2
    assert sink.queue.get_nowait().flavor_text == "Dex Check (Advantage)"


async def test_command(client):
    table = await _create_table(client)
    resp = await client.post(f"/tables/{table['id']}/commands", json={"text": "/r 2d6"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["reply"] == f"Rolled 2d6: **{data['result']['total']}**"


async def test_command_usage(client):
    table = await _create_table(client)
    resp = await client.post(f"/tables/{table['id']}/commands", json={"text": "/roll"})
    assert resp.status_code == 200
    assert resp.json()["result"] is None


async def test_unknown_command(client):
    table = await _create_table(client)
    resp = await client.post(f"/tables/{table['id']}/commands", json={"text": "/dance"})
    assert resp.status_code == 422
    assert resp.json()["fragment"] == "/dance"


async def test_random_source_failure_is_server_error(client, registry):
    class BrokenRandom:
        def randint(self, a, b):
            return b + 1

    table = await _create_table(client)
    registry.get(table["id"]).engine = DiceEngine(BrokenRandom())
    resp = await client.post(f"/tables/{table['id']}/rolls", json={"expression": "1d6"})
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Dice engine failure"}


async def test_list_tables(client):
    first = await _create_table(client)
    second = await _create_table(client, name="Sunday game")
    resp = await client.get("/tables")
    assert resp.status_code == 200
    assert {t["id"] for t in resp.json()} == {first["id"], second["id"]}
