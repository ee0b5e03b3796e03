from unittest.mock import patch


def test_contact_notifies_admin_and_sender(client, outbox):
    resp = client.post("/api/contact", json={
        "name": "Visitor",
        "email": "visitor@example.com",
        "message": "Do you offer weekend batches?",
    })
    assert resp.status_code == 200

    to_admin, confirmation = outbox
    assert to_admin.recipients == ["admin@academy.test"]
    assert to_admin.reply_to == "visitor@example.com"
    assert "weekend batches" in to_admin.body
    assert "Not provided" in to_admin.body
    assert confirmation.recipients == ["visitor@example.com"]


def test_contact_validation(client):
    resp = client.post("/api/contact", json={"name": "Visitor", "email": "visitor@example.com"})
    assert resp.status_code == 400

    resp = client.post("/api/contact", json={"name": "V", "email": "not-an-email", "message": "hi"})
    assert resp.status_code == 400
    assert resp.get_json() == {"message": "Invalid email format"}


def test_contact_mail_failure(client):
    with patch("academy.routes.contact.send_email", side_effect=OSError("smtp down")):
        resp = client.post("/api/contact", json={"name": "V", "email": "v@example.com", "message": "hi"})
    assert resp.status_code == 500
    assert resp.get_json() == {"message": "Failed to send message"}


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}
