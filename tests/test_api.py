from formpilot.ai_client import AIConfigurationError

ANSWERS = {"name": "Ann", "email": "ann@example.com", "age": 30, "terms": True}


def create(client, config):
    response = client.post("/api/forms", json={"config": config})
    assert response.status_code == 201
    return response.json()["formId"]


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_form_crud(client, sample_config):
    form_id = create(client, sample_config)

    response = client.get(f"/api/forms/{form_id}")
    assert response.status_code == 200
    body = response.json()
    assert body["id"] == form_id
    assert body["config"]["title"] == "Profile Form"
    assert body["createdAt"] is not None
    assert body["lastModified"] is None

    listed = client.get("/api/forms").json()
    assert [form["id"] for form in listed] == [form_id]

    updated = client.put(
        f"/api/forms/{form_id}",
        json={"config": {"title": "Short", "elements": sample_config["elements"][:1]}},
    )
    assert updated.status_code == 200
    assert updated.json()["config"]["title"] == "Short"
    assert updated.json()["lastModified"] is not None

    assert client.delete(f"/api/forms/{form_id}").json() == {"deleted": form_id}
    assert client.get(f"/api/forms/{form_id}").status_code == 404


def test_create_accepts_bare_list_and_empty_body(client):
    response = client.post("/api/forms", json=[{"type": "text", "label": "Name", "name": "name"}])
    assert response.status_code == 201
    form = client.get(f"/api/forms/{response.json()['formId']}").json()
    assert form["config"]["title"] == "Untitled Form"

    empty = client.post("/api/forms")
    assert empty.status_code == 201
    form = client.get(f"/api/forms/{empty.json()['formId']}").json()
    assert form["config"] == {"title": "Untitled Form", "elements": []}


def test_create_rejects_invalid_config(client):
    response = client.post("/api/forms", json={"config": {"elements": [{"type": "", "label": "A", "name": "a"}]}})
    assert response.status_code == 400
    assert "index 0" in response.json()["error"]


def test_create_rejects_malformed_json(client):
    response = client.post(
        "/api/forms", content=b"{not json", headers={"content-type": "application/json"}
    )
    assert response.status_code == 400


def test_missing_forms(client, sample_config):
    assert client.get("/api/forms/nope").status_code == 404
    assert client.put("/api/forms/nope", json={"config": sample_config}).status_code == 404
    assert client.delete("/api/forms/nope").status_code == 404
    assert client.get("/api/forms/nope/submissions").status_code == 404


def test_submissions_and_export(client, sample_config):
    form_id = create(client, sample_config)
    response = client.post(f"/api/forms/{form_id}/submissions", json={"data": ANSWERS, "durationMs": 1500})
    assert response.status_code == 201
    assert response.json()["submissionId"]

    listed = client.get(f"/api/forms/{form_id}/submissions").json()
    assert len(listed) == 1
    assert listed[0]["formId"] == form_id
    assert listed[0]["durationMs"] == 1500
    assert listed[0]["data"]["age"] == 30

    assert client.get(f"/api/forms/{form_id}/export").json() == [ANSWERS]

    csv_response = client.get(f"/api/forms/{form_id}/export?format=csv")
    assert csv_response.headers["content-type"].startswith("text/csv")
    lines = csv_response.text.splitlines()
    assert lines[0] == "submittedAt,durationMs,name,email,age,education,terms"
    assert lines[1].endswith(",1500,Ann,ann@example.com,30,,true")


def test_invalid_submission_lists_errors(client, sample_config):
    form_id = create(client, sample_config)
    response = client.post(f"/api/forms/{form_id}/submissions", json={"data": {"name": "Ann"}})
    assert response.status_code == 400
    errors = response.json()["errors"]
    assert "Email is required" in errors
    assert "Accept terms must be checked" in errors


def test_empty_submission(client, sample_config):
    form_id = create(client, sample_config)
    response = client.post(f"/api/forms/{form_id}/submissions", json={"data": {}})
    assert response.status_code == 400
    assert response.json() == {"error": "Response data cannot be empty."}


def test_dashboard(client, sample_config):
    first = create(client, sample_config)
    second = create(client, sample_config)
    client.post(f"/api/forms/{first}/submissions", json={"data": ANSWERS, "durationMs": 2000})
    client.post(f"/api/forms/{first}/submissions", json={"data": ANSWERS, "durationMs": 4000})
    client.post(f"/api/forms/{second}/submissions", json={"data": ANSWERS, "durationMs": 9000})

    body = client.get("/api/dashboard").json()
    assert body["totalForms"] == 2
    assert body["totalResponses"] == 3
    assert body["overallAvgDurationSeconds"] == 5.0
    rows = {row["formId"]: row for row in body["responsesPerForm"]}
    assert rows[first]["averageDurationSeconds"] == 3.0
    assert rows[second]["responseCount"] == 1


def test_analysis_requires_form_id(client):
    response = client.get("/api/dashboard/analysis/")
    assert response.status_code == 400
    assert response.json() == {"error": "formId is required"}


def test_analysis_without_submissions(client, sample_config):
    form_id = create(client, sample_config)
    response = client.get(f"/api/dashboard/analysis/{form_id}")
    assert response.status_code == 200
    assert response.json() == {
        "insights": [],
        "charts": [],
        "rawResponse": None,
        "message": "No submissions found for this form.",
    }


def test_analysis_without_ai_configuration(client, ai_stub, sample_config):
    form_id = create(client, sample_config)
    client.post(f"/api/forms/{form_id}/submissions", json={"data": ANSWERS})
    ai_stub.error = AIConfigurationError("missing")
    response = client.get(f"/api/dashboard/analysis/{form_id}")
    assert response.status_code == 500
    assert response.json() == {"error": "AI service is not configured."}


def test_analysis(client, ai_stub, sample_config):
    form_id = create(client, sample_config)
    client.post(f"/api/forms/{form_id}/submissions", json={"data": ANSWERS})
    ai_stub.responses.append(
        'Here you go: {"insights": [{"title": "All adults"}], "charts": [{"type": "pie", "dataPoints": []}]}'
    )
    body = client.get(f"/api/dashboard/analysis/{form_id}").json()
    assert body["insights"][0]["title"] == "All adults"
    assert body["charts"][0]["type"] == "pie"
    assert body["charts"][0]["id"] == "chart-0"


def test_generate_and_improve(client, ai_stub):
    ai_stub.responses.append('{"formConfig": [{"type": "email", "label": "Email", "name": "email"}]}')
    response = client.post("/api/forms/generate", json={"prompt": "Newsletter signup"})
    assert response.status_code == 201
    form_id = response.json()["formId"]
    form = client.get(f"/api/forms/{form_id}").json()
    assert form["config"]["title"] == "Newsletter signup"

    ai_stub.responses.append(
        '{"formConfig": [{"type": "email", "label": "Email", "name": "email", "required": true},'
        ' {"type": "text", "label": "Name", "name": "name"}]}'
    )
    improved = client.post(f"/api/forms/{form_id}/improve", json={"prompt": "Add a name"})
    assert improved.status_code == 200
    assert len(improved.json()["formConfig"]["elements"]) == 2
    assert len(client.get(f"/api/forms/{form_id}").json()["config"]["elements"]) == 1


def test_generate_without_ai_configuration(client, ai_stub):
    ai_stub.error = AIConfigurationError("missing")
    response = client.post("/api/forms/generate", json={"prompt": "Newsletter signup"})
    assert response.status_code == 500
    assert client.get("/api/forms").json() == []


def test_oversized_duration_is_rejected(client, sample_config):
    form_id = create(client, sample_config)
    response = client.post(
        f"/api/forms/{form_id}/submissions", json={"data": ANSWERS, "durationMs": 10**20}
    )
    assert response.status_code == 400
    assert client.get(f"/api/forms/{form_id}/submissions").json() == []
