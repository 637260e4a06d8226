import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from app.features.waitlist.models.waitlist import WaitlistRole
from app.features.waitlist.services.waitlist import WaitlistService
from app.platform.config import settings
from app.platform.utils.file_upload import delete_certificate


def admin_rows(client, admin_headers, **params):
    response = client.get("/api/admin/list", params=params, headers=admin_headers)
    assert response.status_code == 200, response.json()
    return response.json()["data"]["rows"]


class TestSignup:
    def test_consumer_signup_success(self, client, consumer_signup, mock_send_email):
        response = client.post("/api/signup", json=consumer_signup())

        assert response.status_code == 201
        payload = response.json()
        assert payload["status"] == "success"
        assert payload["message"] == "Successfully added to waitlist"

        data = payload["data"]
        assert data["id"]
        assert len(data["referral_code"]) == 8
        assert len(data["queue_code"]) == 10
        assert data["referral_link"] == f"https://peerplates.co.uk/join?ref={data['referral_code']}"

        mock_send_email.assert_called_once_with(
            WaitlistRole.CONSUMER,
            "amara.okafor@gmail.com",
            "Amara Okafor",
            data["referral_code"],
            data["queue_code"],
        )

    def test_signup_response_shape(self, client, vendor_signup):
        payload = client.post("/api/signup", json=vendor_signup()).json()

        assert set(payload) == {"status_code", "status", "message", "data"}
        assert payload["status_code"] == 201
        assert set(payload["data"]) == {"id", "referral_code", "queue_code", "referral_link"}

    def test_consumer_columns_are_extracted(self, client, consumer_signup, signup, admin_headers):
        signup(consumer_signup(email="  Amara.Okafor@Gmail.com "))

        [row] = admin_rows(client, admin_headers, role="consumer")
        assert row["email"] == "amara.okafor@gmail.com"
        assert row["is_student"] is True
        assert row["university"] == "King's College London"
        assert row["top_cuisines"] == ["African", "Caribbean", "Thai"]
        assert row["dietary_preferences"] == ["Halal"]
        assert row["vendor_priority_score"] == 0
        assert row["review_status"] == "pending"

    def test_vendor_signup_is_scored(self, client, vendor_signup, signup, admin_headers):
        signup(vendor_signup())

        [row] = admin_rows(client, admin_headers, role="vendor")
        assert row["vendor_priority_score"] == 10
        assert row["score"] == 10
        assert row["postcode_area"] == "SE15"
        assert row["instagram_handle"] == "tundeskitchen"
        assert row["answers"]["has_food_ig"] == "Yes"
        assert row["top_cuisines"] == ["African", "Pastries"]

    def test_vendor_without_food_instagram(self, client, vendor_signup, signup, admin_headers):
        payload = vendor_signup()
        # Two compliance items keep the total under the cap: 4 + 1 + 2 + 1 + 2 = 10 with an IG page
        payload["answers"]["compliance_readiness"] = payload["answers"]["compliance_readiness"][:2]
        payload["answers"].update({"has_food_ig": "no", "ig_handle": "@ignored"})
        signup(payload)

        [row] = admin_rows(client, admin_headers, role="vendor")
        assert row["answers"]["has_food_ig"] == "No"
        assert row["answers"]["ig_handle"] == ""
        assert row["vendor_priority_score"] == 10 - 2

    def test_vendor_with_huge_portion_count(self, client, vendor_signup, signup, admin_headers):
        payload = vendor_signup()
        payload["answers"]["portions_per_week"] = 10**400
        signup(payload)

        [row] = admin_rows(client, admin_headers, role="vendor")
        assert row["vendor_priority_score"] == 10

    def test_full_name_alias(self, client, consumer_signup, signup, admin_headers):
        payload = consumer_signup()
        payload["full_name"] = payload.pop("fullName")
        signup(payload)

        [row] = admin_rows(client, admin_headers)
        assert row["full_name"] == "Amara Okafor"

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"hp": "http://spam.example"}, "Bot detected."),
            ({"role": "chef"}, "Invalid role."),
            ({"fullName": "   "}, "Full name is required."),
            ({"email": ""}, "Email is required."),
            ({"email": "not-an-email"}, "Please enter a valid email address."),
            ({"accepted_privacy": False}, "Privacy/Terms acceptance is required."),
            ({"accepted_privacy": "no"}, "Privacy/Terms acceptance is required."),
        ],
    )
    def test_signup_validation(self, client, consumer_signup, overrides, message):
        response = client.post("/api/signup", json=consumer_signup(**overrides))

        assert response.status_code == 400
        assert response.json()["message"] == message

    def test_too_many_cuisines(self, client, consumer_signup):
        payload = consumer_signup()
        payload["answers"]["top_cuisines"] = ["African", "Thai", "Indian", "Korean"]

        response = client.post("/api/signup", json=payload)

        assert response.status_code == 400
        assert response.json()["message"] == "Please select up to 3 cuisines."

    def test_instagram_handle_required_when_vendor_has_page(self, client, vendor_signup):
        payload = vendor_signup()
        payload["answers"]["ig_handle"] = "  "

        response = client.post("/api/signup", json=payload)

        assert response.status_code == 400
        assert response.json()["message"] == "Please provide your IG handle."

    def test_invalid_json_body(self, client):
        response = client.post(
            "/api/signup", content="{not json", headers={"content-type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid JSON body."

    def test_duplicate_email(self, client, consumer_signup, signup, mock_send_email):
        signup(consumer_signup())

        response = client.post(
            "/api/signup", json=consumer_signup(email="AMARA.OKAFOR@gmail.com", role="vendor")
        )

        assert response.status_code == 409
        assert response.json()["message"] == "This email is already on the waitlist."
        assert mock_send_email.call_count == 1

    def test_rejected_signup_sends_no_email(self, client, consumer_signup, mock_send_email):
        client.post("/api/signup", json=consumer_signup(hp="bot"))
        mock_send_email.assert_not_called()


class TestReferrals:
    def test_referrer_is_rewarded(self, client, consumer_signup, signup, admin_headers):
        referrer = signup(consumer_signup())
        signup(
            consumer_signup(
                fullName="Kemi Adeyemi",
                email="kemi.adeyemi@gmail.com",
                ref=referrer["referral_code"].lower(),
            )
        )

        rows = {row["email"]: row for row in admin_rows(client, admin_headers, role="consumer")}
        assert rows["amara.okafor@gmail.com"]["referrals_count"] == 1
        assert rows["amara.okafor@gmail.com"]["referral_points"] == settings.REFERRAL_POINTS_PER_SIGNUP
        assert rows["kemi.adeyemi@gmail.com"]["referred_by"] == referrer["referral_code"]
        assert rows["kemi.adeyemi@gmail.com"]["referral_points"] == 0

    def test_referred_by_alias(self, client, consumer_signup, signup, admin_headers):
        referrer = signup(consumer_signup())
        signup(
            consumer_signup(
                email="kemi.adeyemi@gmail.com", referredBy=referrer["referral_code"]
            )
        )

        rows = {row["email"]: row for row in admin_rows(client, admin_headers)}
        assert rows["kemi.adeyemi@gmail.com"]["referred_by"] == referrer["referral_code"]

    def test_unknown_referral_code_is_ignored(self, client, consumer_signup, signup, admin_headers):
        signup(consumer_signup(ref="NOSUCHCODE"))

        [row] = admin_rows(client, admin_headers)
        assert row["referred_by"] is None


class TestCertificateUpload:
    def multipart_fields(self, payload: dict) -> dict:
        fields = {
            key: str(value).lower() if isinstance(value, bool) else value
            for key, value in payload.items()
            if key != "answers"
        }
        fields["answers"] = json.dumps(payload["answers"])
        return fields

    def test_vendor_certificate_is_stored(
        self, client, vendor_signup, admin_headers, monkeypatch, tmp_path
    ):
        monkeypatch.setattr(settings, "CERTIFICATE_UPLOAD_DIR", str(tmp_path))

        response = client.post(
            "/api/signup",
            data=self.multipart_fields(vendor_signup()),
            files={"certificate_upload": ("hygiene.pdf", b"%PDF-1.4 level 2", "application/pdf")},
        )

        assert response.status_code == 201, response.json()
        queue_code = response.json()["data"]["queue_code"]

        [row] = admin_rows(client, admin_headers, role="vendor")
        assert row["vendor_priority_score"] == 10
        stored = tmp_path / Path(row["certificate_url"]).name
        assert stored.name.startswith(f"{queue_code}_")
        assert stored.suffix == ".pdf"
        assert stored.read_bytes() == b"%PDF-1.4 level 2"

    def test_certificate_type_is_checked(self, client, vendor_signup, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "CERTIFICATE_UPLOAD_DIR", str(tmp_path))

        response = client.post(
            "/api/signup",
            data=self.multipart_fields(vendor_signup()),
            files={"certificate_upload": ("notes.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 400
        assert response.json()["message"].startswith("Invalid file type")

    def test_certificate_size_is_checked(self, client, vendor_signup, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "CERTIFICATE_UPLOAD_DIR", str(tmp_path))
        monkeypatch.setattr(settings, "CERTIFICATE_MAX_BYTES", 10)

        response = client.post(
            "/api/signup",
            data=self.multipart_fields(vendor_signup()),
            files={"certificate_upload": ("big.png", b"x" * 64, "image/png")},
        )

        assert response.status_code == 400
        assert response.json()["message"].startswith("File too large")

    def test_certificate_removed_when_insert_fails(
        self, client, vendor_signup, signup, monkeypatch, tmp_path
    ):
        monkeypatch.setattr(settings, "CERTIFICATE_UPLOAD_DIR", str(tmp_path))
        signup(vendor_signup())

        # Slip past the early duplicate check so the unique email constraint fires on insert
        with patch.object(WaitlistService, "get_by_email", AsyncMock(return_value=None)):
            response = client.post(
                "/api/signup",
                data=self.multipart_fields(vendor_signup()),
                files={"certificate_upload": ("hygiene.pdf", b"%PDF-1.4", "application/pdf")},
            )

        assert response.status_code == 409
        assert list(tmp_path.iterdir()) == []

    def test_delete_certificate_by_public_path(self, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "CERTIFICATE_UPLOAD_DIR", str(tmp_path))
        stored = tmp_path / "ABC_123.pdf"
        stored.write_bytes(b"%PDF")

        delete_certificate("/static/certificates/ABC_123.pdf")
        delete_certificate("/certificates/never_saved.pdf")

        assert not stored.exists()


class TestQuestions:
    def test_vendor_questions(self, client):
        response = client.get("/api/questions/vendor")

        assert response.status_code == 200
        keys = [question["key"] for question in response.json()["data"]]
        assert "compliance_readiness" in keys
        assert "portions_per_week" in keys
        assert "ig_handle" in keys

    def test_consumer_questions(self, client):
        response = client.get("/api/questions/consumer")

        assert response.status_code == 200
        questions = {question["key"]: question for question in response.json()["data"]}
        assert questions["top_cuisines"]["max_selected"] == 3

    def test_unknown_role(self, client):
        response = client.get("/api/questions/chef")

        assert response.status_code == 422
        assert response.json()["message"] == "Validation failed"
