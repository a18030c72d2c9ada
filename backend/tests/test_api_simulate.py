def _encounter(**kw):
    data = {
        "name": "Goblin ambush",
        "side1": [
            {"name": "Fighter", "hp": "3d10+6", "ac": 16, "attack_bonus": 5, "damage": "1d8+3", "start_zone": "melee"},
            {"name": "Archer", "hp": 18, "ac": 13, "attack_bonus": 5, "damage": "1d6+2", "range": "ranged"},
        ],
        "side2": [
            {"name": "Goblin 1", "hp": "2d6", "ac": 13, "attack_bonus": 4, "damage": "1d6+2", "start_zone": "melee"},
            {
                "name": "Goblin 2",
                "hp": "2d6",
                "ac": 13,
                "attack_bonus": 4,
                "damage": "1d6+2",
                "start_zone": "reach",
                "apl": [
                    {"action": "guard", "if": "self.health_percent < 30"},
                    {"action": "attack", "if": "enemy.in_range", "target": "lowest_hp"},
                    {"action": "move", "target": "nearest"},
                ],
            },
        ],
        "iterations": 200,
    }
    data.update(kw)
    return data


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_simulate_returns_stats_and_samples(client):
    r = client.post("/simulate", json={"encounter": _encounter(), "sample_count": 2, "seed": 11})
    assert r.status_code == 200, r.text
    body = r.json()

    s = body["stats"]
    assert s["iterations"] == 200
    assert s["seed"] == 11
    total = s["side1_win_rate"] + s["side2_win_rate"] + s["draw_rate"]
    assert abs(total - 100.0) < 1e-6

    assert len(body["sample_combats"]) == 2
    log = body["sample_combats"][0]
    assert log["trial"] == 0
    assert {a["name"] for a in log["final_state"]} == {"Fighter", "Archer", "Goblin 1", "Goblin 2"}
    assert log["events"][-1]["type"] == "CombatEnded"


def test_simulate_is_deterministic_with_seed(client):
    payload = {"encounter": _encounter(iterations=50), "sample_count": 1, "seed": 3}
    a = client.post("/simulate", json=payload).json()
    b = client.post("/simulate", json=payload).json()
    assert a == b


def test_simulate_config_error_is_422_with_location(client):
    enc = _encounter()
    enc["side2"][1]["apl"][0]["if"] = "self.luck > 3"
    r = client.post("/simulate", json={"encounter": enc})
    assert r.status_code == 422
    detail = r.json()["detail"]
    assert detail == [
        {
            "code": "UNKNOWN_CONDITION",
            "message": detail[0]["message"],
            "side": "side2",
            "actor": "Goblin 2",
            "entry_index": 0,
            "meta": {"action": "guard", "if": "self.luck > 3", "target": None},
        }
    ]


def test_simulate_schema_error_is_422(client):
    enc = _encounter()
    enc["side1"][0]["range"] = "artillery"
    r = client.post("/simulate", json={"encounter": enc})
    assert r.status_code == 422


ENCOUNTER_YAML = """
name: Duel
iterations: 60
side1:
  - name: Fighter
    hp: 3d10+6
    ac: 16
    attack_bonus: 5
    damage: 1d8+3
    start_zone: melee
side2:
  - name: Goblin
    hp: 2d6
    ac: 13
    attack_bonus: 4
    damage: 1d6+2
    start_zone: melee
    apl:
      - action: guard
        if: self.health_percent < 30
      - action: attack
        if: enemy.in_range
      - action: move
        target: nearest
"""


def test_simulate_accepts_yaml(client):
    r = client.post("/simulate", json={"encounter_yaml": ENCOUNTER_YAML, "sample_count": 1, "seed": 21})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["stats"]["iterations"] == 60
    assert len(body["sample_combats"]) == 1


def test_yaml_and_json_give_same_result(client):
    import yaml

    as_json = yaml.safe_load(ENCOUNTER_YAML)
    a = client.post("/simulate", json={"encounter_yaml": ENCOUNTER_YAML, "seed": 4, "sample_count": 1}).json()
    b = client.post("/simulate", json={"encounter": as_json, "seed": 4, "sample_count": 1}).json()
    assert a == b


def test_broken_yaml_is_400(client):
    r = client.post("/simulate", json={"encounter_yaml": "side1: [unclosed"})
    assert r.status_code == 400
    assert r.json()["detail"].startswith("Invalid YAML")

    r = client.post("/simulate", json={"encounter_yaml": "- just\n- a list\n"})
    assert r.status_code == 400


def test_yaml_schema_error_is_422(client):
    bad = ENCOUNTER_YAML.replace("ac: 16", "ac: sixteen")
    r = client.post("/simulate", json={"encounter_yaml": bad})
    assert r.status_code == 422


def test_yaml_config_error_points_to_actor(client):
    bad = ENCOUNTER_YAML.replace("damage: 1d6+2", "damage: 1x6")
    r = client.post("/simulate", json={"encounter_yaml": bad})
    assert r.status_code == 422
    issue = r.json()["detail"][0]
    assert (issue["code"], issue["actor"]) == ("BAD_DICE", "Goblin")


def test_encounter_source_must_be_exactly_one(client):
    assert client.post("/simulate", json={}).status_code == 422
    both = {"encounter": _encounter(), "encounter_yaml": ENCOUNTER_YAML}
    assert client.post("/simulate", json=both).status_code == 422


def test_cors_allows_browser_frontend(client):
    r = client.options(
        "/simulate",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
        },
    )
    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == "*"
