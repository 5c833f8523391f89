from datetime import date

import pytest

import routers.profile as profile_router
from conftest import auth_headers
from models.job_application import JobApplication
from models.profile import Profile
from models.saved_job import SavedJob
from models.travel_schedule import TravelSchedule
from services.profiles import URL_RE, is_valid_username, normalize_url


@pytest.fixture()
def draft(make_profile):
    return make_profile(
        "user_new", "jane_x1y2z3", first_name="Jane", last_name="Doe", is_profile_completed=False,
    )


def _setup_form(**overrides):
    form = {
        "username": "jane_doe",
        "first_name": "Jane",
        "last_name": "Doe",
        "user_type": "content_creator",
        "city": "Austin",
        "country": "United States of America",
        "bio": "Travel vlogger",
        "instagram_url": "instagram.com/janedoe",
        "is_public": "true",
    }
    form.update(overrides)
    return form


@pytest.mark.parametrize(
    "username, valid",
    [("jane_doe", True), ("ab", False), ("Jane", False), ("a" * 21, False), ("has space", False)],
)
def test_username_rules(username, valid):
    assert is_valid_username(username) is valid


def test_social_url_normalisation():
    assert normalize_url("instagram.com/janedoe") == "https://instagram.com/janedoe"
    assert normalize_url("http://youtube.com/@jane") == "http://youtube.com/@jane"
    assert normalize_url("   ") is None
    assert URL_RE.match("https://www.tiktok.com/jane-doe")
    assert not URL_RE.match("not a url")


def test_me_requires_session(client):
    assert client.get("/profile/me").status_code == 401


def test_username_availability(client, draft, make_profile):
    make_profile("user_taken", "taken_name")
    headers = auth_headers(draft.id)

    taken = client.get("/profile/username-available", params={"username": "taken_name"}, headers=headers).json()
    assert taken == {"username": "taken_name", "valid": True, "available": False}

    bad = client.get("/profile/username-available", params={"username": "No!"}, headers=headers).json()
    assert bad["valid"] is False and bad["available"] is False

    mine = client.get("/profile/username-available", params={"username": "jane_x1y2z3"}, headers=headers).json()
    assert mine["available"] is True


def test_setup_completes_creator_profile(client, draft):
    resp = client.post("/profile/setup", data=_setup_form(), headers=auth_headers(draft.id))

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["username"] == "jane_doe"
    assert body["is_profile_completed"] is True
    assert body["is_public"] is True
    assert body["instagram_url"] == "https://instagram.com/janedoe"

    again = client.post("/profile/setup", data=_setup_form(), headers=auth_headers(draft.id))
    assert again.status_code == 409


def test_setup_clears_creator_fields_for_business(client, draft):
    resp = client.post(
        "/profile/setup",
        data=_setup_form(user_type="business_owner", username="acme_corp"),
        headers=auth_headers(draft.id),
    )

    body = resp.json()
    assert body["user_type"] == "business_owner"
    assert body["bio"] is None
    assert body["instagram_url"] is None
    assert body["is_public"] is False


def test_setup_rejects_taken_username(client, draft, make_profile):
    make_profile("user_other", "jane_doe")
    resp = client.post("/profile/setup", data=_setup_form(), headers=auth_headers(draft.id))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Username is already taken"


def test_setup_validates_before_uploading(client, draft, monkeypatch):
    def fail_upload(*args, **kwargs):
        raise AssertionError("upload must not happen")

    monkeypatch.setattr(profile_router, "upload_profile_photo", fail_upload)
    resp = client.post(
        "/profile/setup",
        data=_setup_form(bio="x" * 501),
        files={"photo": ("me.png", b"not-really-an-image", "image/png")},
        headers=auth_headers(draft.id),
    )

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Bio must be less than 500 characters"


def test_taken_username_is_rejected_before_uploading(client, draft, make_profile, monkeypatch):
    make_profile("user_other", "taken_name")
    uploads = []
    monkeypatch.setattr(
        profile_router,
        "upload_profile_photo",
        lambda file_like, owner_id: uploads.append(owner_id) or "http://cdn.test/x.png",
    )

    resp = client.post(
        "/profile/setup",
        data=_setup_form(username="taken_name"),
        files={"photo": ("me.png", b"\x89PNG", "image/png")},
        headers=auth_headers(draft.id),
    )

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Username is already taken"
    assert uploads == []


def test_setup_creates_missing_profile_row(client, run):
    resp = client.post("/profile/setup", data=_setup_form(), headers=auth_headers("user_ghost"))

    assert resp.status_code == 200, resp.text
    assert resp.json()["username"] == "jane_doe"
    profile = run(lambda db: db.get(Profile, "user_ghost"))
    assert profile.is_profile_completed is True
    assert profile.first_name == "Jane"


def test_username_availability_before_profile_exists(client, make_profile):
    make_profile("user_taken", "taken_name")
    resp = client.get(
        "/profile/username-available", params={"username": "taken_name"}, headers=auth_headers("user_ghost"),
    )
    assert resp.json()["available"] is False


def test_setup_stores_uploaded_photo(client, draft, monkeypatch):
    monkeypatch.setattr(
        profile_router,
        "upload_profile_photo",
        lambda file_like, owner_id: f"http://cdn.test/{owner_id}/photo.png",
    )
    resp = client.post(
        "/profile/setup",
        data=_setup_form(),
        files={"photo": ("me.png", b"\x89PNG", "image/png")},
        headers=auth_headers(draft.id),
    )

    assert resp.json()["profile_photo_url"] == "http://cdn.test/user_new/photo.png"


def test_basic_info_update_refreshes_job_snapshots(client, make_profile):
    owner = make_profile("user_biz", "acme", user_type="business_owner", city="Lyon", country="France")
    job = client.post(
        "/findwork",
        json={"title": "Ambassador", "description": "Spring line"},
        headers=auth_headers(owner.id),
    ).json()

    resp = client.put(
        "/profile/me/basic",
        json={"first_name": "Acme", "last_name": "Group", "city": "Madrid", "country": "Spain"},
        headers=auth_headers(owner.id),
    )
    assert resp.status_code == 200

    refreshed = client.get(f"/findwork/{job['slug']}").json()
    assert refreshed["owner_city"] == "Madrid"
    assert refreshed["owner_country"] == "Spain"
    assert refreshed["owner_last_name"] == "Group"


def test_basic_info_requires_names(client, make_profile):
    creator = make_profile("user_jane", "jane_doe")
    resp = client.put("/profile/me/basic", json={"first_name": " ", "last_name": "Doe"}, headers=auth_headers(creator.id))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "First name and last name are required"


def test_social_links_are_creator_only(client, make_profile):
    owner = make_profile("user_biz", "acme", user_type="business_owner")
    creator = make_profile("user_jane", "jane_doe")

    resp = client.put("/profile/me/social", json={"youtube_url": "youtube.com/acme"}, headers=auth_headers(owner.id))
    assert resp.status_code == 403

    resp = client.put("/profile/me/social", json={"youtube_url": "not a url"}, headers=auth_headers(creator.id))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Please enter a valid YouTube URL"

    resp = client.put("/profile/me/social", json={"tiktok_url": "tiktok.com/jane"}, headers=auth_headers(creator.id))
    assert resp.status_code == 200
    assert resp.json()["tiktok_url"] == "https://tiktok.com/jane"


def test_visibility_toggle(client, make_profile):
    creator = make_profile("user_jane", "jane_doe")
    resp = client.put(
        "/profile/me/visibility",
        json={"is_public": True, "is_collaborated": True},
        headers=auth_headers(creator.id),
    )
    assert resp.json()["is_public"] is True
    assert resp.json()["is_collaborated"] is True


def test_photo_rejected_with_400(client, make_profile, monkeypatch):
    creator = make_profile("user_jane", "jane_doe")

    def too_big(file_like, owner_id):
        raise ValueError("Profile photo must be less than 5MB")

    monkeypatch.setattr(profile_router, "upload_profile_photo", too_big)
    resp = client.post(
        "/profile/me/photo",
        files={"photo": ("me.jpg", b"x", "image/jpeg")},
        headers=auth_headers(creator.id),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Profile photo must be less than 5MB"


def test_delete_account_cascades(client, make_profile, make_schedule, count_rows, monkeypatch):
    removed = []
    monkeypatch.setattr(profile_router, "delete_owner_objects", lambda owner_id: removed.append(owner_id) or 1)
    owner = make_profile("user_biz", "acme", user_type="business_owner")
    creator = make_profile("user_jane", "jane_doe")
    other = make_profile("user_bob", "bob")
    make_schedule(creator.id, date(2025, 3, 1), date(2025, 3, 10))
    slug = client.post(
        "/findwork", json={"title": "Ambassador", "description": "x"}, headers=auth_headers(owner.id)
    ).json()["slug"]
    for profile in (creator, other):
        client.post(f"/findwork/{slug}/save", headers=auth_headers(profile.id))
        client.post(f"/findwork/{slug}/apply", headers=auth_headers(profile.id))

    resp = client.delete("/profile/me", headers=auth_headers(creator.id))
    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    assert removed == [creator.id]
    assert count_rows(TravelSchedule) == 0
    assert count_rows(SavedJob) == 1
    assert count_rows(JobApplication) == 1

    client.delete("/profile/me", headers=auth_headers(owner.id))
    assert count_rows(SavedJob) == 0
    assert count_rows(JobApplication) == 0
    assert count_rows(Profile) == 1


def test_delete_account_survives_storage_failure(client, make_profile, monkeypatch):
    creator = make_profile("user_jane", "jane_doe")

    def broken(owner_id):
        raise Exception("bucket unavailable")

    monkeypatch.setattr(profile_router, "delete_owner_objects", broken)
    resp = client.delete("/profile/me", headers=auth_headers(creator.id))

    assert resp.status_code == 200
    assert client.get("/profile/me", headers=auth_headers(creator.id)).status_code == 401
