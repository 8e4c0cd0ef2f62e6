from sqlalchemy.exc import OperationalError

FIELDS = [
    {"name": "email", "label": "Email", "type": "email", "required": True},
    {"name": "company", "label": "Company", "type": "text", "required": False, "placeholder": "Acme Ltd"},
]


class TestFormsCRUD:
    def _create_form(self, client, name="Signup", fields=None, database_name="customers"):
        r = client.post("/api/forms", json={
            "name": name,
            "fields": fields if fields is not None else FIELDS,
            "database_name": database_name,
        })
        return r

    def test_create_form(self, client):
        r = self._create_form(client)
        assert r.status_code == 201
        data = r.json()
        assert data["name"] == "Signup"
        assert data["source"] == "manual"
        assert data["submission_count"] == 0
        assert data["web_link"] == f"http://testserver/form/{data['id']}"

    def test_create_requires_fields(self, client):
        r = self._create_form(client, fields=[])
        assert r.status_code == 400

    def test_create_requires_name(self, client):
        r = client.post("/api/forms", json={"fields": FIELDS, "database_name": "customers"})
        assert r.status_code == 400

    def test_create_rejects_unknown_database(self, client):
        r = self._create_form(client, database_name="payroll")
        assert r.status_code == 400

    def test_get_form_round_trip(self, client):
        form_id = self._create_form(client).json()["id"]

        r = client.get(f"/api/forms/{form_id}")
        assert r.status_code == 200
        assert r.json()["fields"] == [
            {"name": "email", "label": "Email", "type": "email", "required": True, "placeholder": None},
            {"name": "company", "label": "Company", "type": "text", "required": False, "placeholder": "Acme Ltd"},
        ]

    def test_get_unknown_form(self, client):
        r = client.get("/api/forms/nope")
        assert r.status_code == 404

    def test_update_form(self, client):
        form_id = self._create_form(client).json()["id"]

        r = client.put(f"/api/forms/{form_id}", json={
            "name": "Contact",
            "fields": [FIELDS[0]],
            "database_name": "orders",
        })
        assert r.status_code == 200

        data = client.get(f"/api/forms/{form_id}").json()
        assert data["name"] == "Contact"
        assert data["database_name"] == "orders"
        assert len(data["fields"]) == 1

    def test_update_requires_all_attributes(self, client):
        form_id = self._create_form(client).json()["id"]
        r = client.put(f"/api/forms/{form_id}", json={"name": "Contact"})
        assert r.status_code == 400

    def test_update_unknown_form(self, client):
        r = client.put("/api/forms/nope", json={
            "name": "Contact", "fields": FIELDS, "database_name": "orders",
        })
        assert r.status_code == 404

    def test_list_forms(self, client):
        self._create_form(client, name="One")
        self._create_form(client, name="Two", database_name="orders")

        r = client.get("/api/forms")
        assert r.status_code == 200
        assert {f["name"] for f in r.json()} == {"One", "Two"}

        r = client.get("/api/forms", params={"database_name": "orders"})
        assert [f["name"] for f in r.json()] == ["Two"]

    def test_delete_form(self, client):
        form_id = self._create_form(client).json()["id"]
        client.post(f"/api/forms/{form_id}/submit", json={"email": "a@example.com"})

        r = client.delete(f"/api/forms/{form_id}")
        assert r.status_code == 200

        assert client.get(f"/api/forms/{form_id}").status_code == 404
        assert client.get(f"/api/forms/{form_id}/submissions").status_code == 404
        assert form_id not in [f["id"] for f in client.get("/api/forms").json()]

    def test_delete_unknown_form(self, client):
        r = client.delete("/api/forms/nope")
        assert r.status_code == 404


class TestSubmissions:
    def _create_form(self, client):
        r = client.post("/api/forms", json={"name": "Signup", "fields": FIELDS, "database_name": "customers"})
        return r.json()["id"]

    def test_submit_form(self, client):
        form_id = self._create_form(client)

        r = client.post(f"/api/forms/{form_id}/submit", json={"email": "a@example.com", "company": "Acme"})
        assert r.status_code == 201
        data = r.json()
        assert data["form_id"] == form_id
        assert data["data"] == {"email": "a@example.com", "company": "Acme"}
        assert data["ip_address"] == "testclient"

    def test_submission_count_tracks_submissions(self, client):
        form_id = self._create_form(client)
        for i in range(3):
            client.post(f"/api/forms/{form_id}/submit", json={"email": f"{i}@example.com"})

        assert client.get(f"/api/forms/{form_id}").json()["submission_count"] == 3
        assert client.get("/api/forms").json()[0]["submission_count"] == 3

    def test_list_submissions(self, client):
        form_id = self._create_form(client)
        client.post(f"/api/forms/{form_id}/submit", json={"email": "first@example.com"})
        client.post(f"/api/forms/{form_id}/submit", json={"email": "second@example.com"})

        r = client.get(f"/api/forms/{form_id}/submissions")
        assert r.status_code == 200
        data = r.json()
        assert data["form"]["id"] == form_id
        assert [s["data"]["email"] for s in data["submissions"]] == ["second@example.com", "first@example.com"]

    def test_submit_unknown_form(self, client):
        r = client.post("/api/forms/nope/submit", json={"email": "a@example.com"})
        assert r.status_code == 404

    def test_submit_requires_object_payload(self, client):
        form_id = self._create_form(client)
        r = client.post(f"/api/forms/{form_id}/submit", json=["a@example.com"])
        assert r.status_code == 422
        assert client.get(f"/api/forms/{form_id}").json()["submission_count"] == 0

    def test_storage_failure_returns_500(self, client, store, monkeypatch):
        form_id = self._create_form(client)

        def broken(*args, **kwargs):
            raise OperationalError("INSERT INTO history", {}, Exception("disk full"))

        monkeypatch.setattr(store, "_record_history", broken)
        r = client.post(f"/api/forms/{form_id}/submit", json={"email": "a@example.com"})
        assert r.status_code == 500
        assert r.json() == {"detail": "record_submission failed"}

        monkeypatch.undo()
        assert client.get(f"/api/forms/{form_id}").json()["submission_count"] == 0
        assert client.get(f"/api/forms/{form_id}/submissions").json()["submissions"] == []


class TestPublicFormPage:
    def test_renders_fields(self, client):
        r = client.post("/api/forms", json={"name": "Signup", "fields": FIELDS, "database_name": "customers"})
        form_id = r.json()["id"]

        r = client.get(f"/form/{form_id}")
        assert r.status_code == 200
        assert "text/html" in r.headers["content-type"]
        assert "<title>Signup</title>" in r.text
        assert 'name="email"' in r.text
        assert 'placeholder="Acme Ltd"' in r.text
        assert f"/api/forms/{form_id}/submit" in r.text

    def test_escapes_user_content(self, client):
        r = client.post("/api/forms", json={
            "name": "<script>alert(1)</script>",
            "fields": [{"name": "x", "label": "<b>X</b>", "type": "text", "required": False}],
            "database_name": "customers",
        })
        form_id = r.json()["id"]

        page = client.get(f"/form/{form_id}").text
        assert "<script>alert(1)</script>" not in page
        assert "&lt;b&gt;X&lt;/b&gt;" in page

    def test_unknown_form_page(self, client):
        r = client.get("/form/nope")
        assert r.status_code == 404
        assert "Form not found" in r.text
